from secrets import token_hex
from geoalchemy2 import Geometry
from sqlalchemy import (
    ARRAY,
    TEXT,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    create_engine,
    func,
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.dialects.postgresql import JSONB

from transit.src.constants import BACKEND_URL, DEFAULT_LINE_COLOR
from transit.src.enums import PlatformType


# Global DBMS variables
engine = create_engine(url=BACKEND_URL, echo=False)
sessionMaker = sessionmaker(bind=engine, expire_on_commit=False)
ORMbase = declarative_base()


# ----------------------------------- Account DB Models ---------------------------------------#
class Account(ORMbase):
    """
    Represents a signed-up user of the application.

    Riders do not need an account; it is only required to reach the admin
    screens and to keep per-user recent searches.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the account.

        email (String(256)):
            Login identifier. Stored lower-cased.
            Must not be null and unique.

        password (TEXT):
            Argon2 hash of the password. Plaintext is never stored.

        updated_on (DateTime):
            Timestamp automatically updated whenever the account is modified.

        created_on (DateTime):
            Timestamp of when the account was created.
    """

    __tablename__ = "account"

    id = Column(Integer, primary_key=True)
    email = Column(String(256), nullable=False, unique=True)
    password = Column(TEXT, nullable=False)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class AccountToken(ORMbase):
    """
    Represents a signed-in session of an account.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the token.

        account_id (Integer):
            Foreign key referencing `account.id`. Cascades on delete.

        access_token (String(64)):
            Random 64 character hex string sent as a bearer token.

        expires_in (Integer):
            Validity of the token in seconds.

        expires_at (DateTime):
            Absolute expiry time. Expired tokens are ignored and later
            removed by `cleaner.py`.

        platform_type (Integer):
            Enum `PlatformType` describing the signing-in client.

        created_on (DateTime):
            Timestamp indicating when this token was created.
    """

    __tablename__ = "account_token"

    id = Column(Integer, primary_key=True)
    account_id = Column(
        Integer,
        ForeignKey("account.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    access_token = Column(
        String(64), unique=True, nullable=False, default=lambda: token_hex(32)
    )
    expires_in = Column(Integer, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    platform_type = Column(Integer, default=PlatformType.OTHER)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class Admin(ORMbase):
    """
    Registry of administrators. The presence of a row for an account is the
    admin privilege; there are no finer grained permissions.
    """

    __tablename__ = "admin"

    user_id = Column(
        Integer, ForeignKey("account.id", ondelete="CASCADE"), primary_key=True
    )
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


# ----------------------------------- Transit DB Models ---------------------------------------#
class City(ORMbase):
    """
    Represents a city used as the location anchor of bus lines.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the city.

        name (String(64)):
            Display name of the city. Must be unique.

        location (Geometry):
            Center of the city as a PostGIS `POINT` with SRID 4326.
            Stored as POINT(longitude latitude), exposed as {lat, lng}.

        updated_on (DateTime):
            Timestamp automatically updated whenever the record is modified.

        created_on (DateTime):
            Timestamp indicating when the record was first created.
    """

    __tablename__ = "city"

    id = Column(Integer, primary_key=True)
    name = Column(String(64), nullable=False, unique=True)
    location = Column(Geometry(geometry_type="POINT", srid=4326), nullable=False)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class BusLine(ORMbase):
    """
    Represents an urban bus line.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the bus line.

        name (String(128)):
            Display name of the line, e.g. "Ligne A".

        city_id (Integer):
            Foreign key referencing `city.id`. Cascades on delete.

        zones_covered (ARRAY(TEXT)):
            Ordered names of the zones served by the line.

        route_coordinates (Geometry):
            Path of the line as a PostGIS `LINESTRING` with SRID 4326.
            Optional, a line without geometry is simply not drawn.

        stops (JSONB):
            Ordered list of {"name": str, "coordinates": [longitude, latitude]}.

        color (String(16)):
            Display color, hex notation.

        price (Integer):
            Fare in FBU. Null means "not set", rendered as the default fare.

        active (Boolean):
            Inactive lines are hidden from riders.

        updated_on (DateTime):
            Timestamp automatically updated whenever the record is modified.

        created_on (DateTime):
            Timestamp indicating when the record was first created.
    """

    __tablename__ = "bus_line"

    id = Column(Integer, primary_key=True)
    name = Column(String(128), nullable=False, index=True)
    city_id = Column(
        Integer, ForeignKey("city.id", ondelete="CASCADE"), nullable=False, index=True
    )
    zones_covered = Column(ARRAY(TEXT), nullable=False, default=list)
    route_coordinates = Column(Geometry(geometry_type="LINESTRING", srid=4326))
    stops = Column(JSONB, nullable=False, default=list)
    color = Column(String(16), nullable=False, default=DEFAULT_LINE_COLOR)
    price = Column(Integer)
    active = Column(Boolean, nullable=False, default=True)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class TransportAgency(ORMbase):
    """
    Represents an intercity transport agency.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the agency.

        name (String(128)):
            Display name of the agency. Must be unique.

        contact_phone (TEXT):
            Optional phone number in RFC3966 format.

        contact_email (TEXT):
            Optional email address.

        logo_url (TEXT):
            Optional path of the agency logo in the `agency-logos` bucket.

        active (Boolean):
            Inactive agencies are hidden from riders.

        updated_on (DateTime):
            Timestamp automatically updated whenever the record is modified.

        created_on (DateTime):
            Timestamp indicating when the record was first created.
    """

    __tablename__ = "transport_agency"

    id = Column(Integer, primary_key=True)
    name = Column(String(128), nullable=False, unique=True)
    contact_phone = Column(TEXT)
    contact_email = Column(TEXT)
    logo_url = Column(TEXT)
    active = Column(Boolean, nullable=False, default=True)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class IntercityRoute(ORMbase):
    """
    Represents a route operated by a transport agency between two places.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the route.

        agency_id (Integer):
            Foreign key referencing `transport_agency.id`. Cascades on delete.

        departure_city_id, arrival_city_id (Integer):
            Optional references to `city.id`. The free-text points below are
            what riders see and search.

        departure_point, arrival_point (TEXT):
            Free-text names of the departure and arrival places.

        route_coordinates (Geometry):
            Optional path as a PostGIS `LINESTRING` with SRID 4326.

        frequency (TEXT):
            Free-text frequency, e.g. "Toutes les heures".

        duration_minutes (Integer):
            Optional travel time in minutes.

        price (Integer):
            Optional fare in FBU.

        schedule (ARRAY(TEXT)):
            Departure times, e.g. ["06:00", "14:00"].

        active (Boolean):
            Inactive routes are hidden from riders.
    """

    __tablename__ = "intercity_route"

    id = Column(Integer, primary_key=True)
    agency_id = Column(
        Integer,
        ForeignKey("transport_agency.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    departure_city_id = Column(Integer, ForeignKey("city.id", ondelete="SET NULL"))
    arrival_city_id = Column(Integer, ForeignKey("city.id", ondelete="SET NULL"))
    departure_point = Column(TEXT, nullable=False)
    arrival_point = Column(TEXT, nullable=False)
    route_coordinates = Column(Geometry(geometry_type="LINESTRING", srid=4326))
    frequency = Column(TEXT)
    duration_minutes = Column(Integer)
    price = Column(Integer)
    schedule = Column(ARRAY(TEXT), nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())
