"""
Remote data gateway.

One gateway class per backend table. Every method opens its own session,
targets a single table (intercity route reads also embed the agency name
through a read-only join), commits or rolls back, and closes the session.
There are no retries and nothing is cached: each call is a fresh round trip.

Failures raise `exceptions.GatewayError` (or a constraint violation), an
empty result set is a successful empty list.
"""

from typing import Any, Callable, List, Optional
from geoalchemy2.shape import from_shape
from shapely import wkb
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from transit.src import exceptions, schemas
from transit.src.constants import EPSG_4326
from transit.src.functions import updateIfChanged
from transit.src.db import (
    Admin,
    BusLine,
    City,
    IntercityRoute,
    TransportAgency,
    sessionMaker,
)


## Column conversion
def lineToColumn(line) -> Any:
    """Convert a LineString schema (or its dict form) into a geometry column value."""
    if line is None:
        return None
    if isinstance(line, dict):
        line = schemas.LineString.model_validate(line)
    return from_shape(line.toShape(), srid=EPSG_4326)


def columnToLine(value) -> Optional[dict]:
    """Convert a LINESTRING column value into its GeoJSON dict, [lon, lat] order."""
    if value is None:
        return None
    line = wkb.loads(bytes(value.data))
    return {"type": "LineString", "coordinates": [[x, y] for x, y in line.coords]}


def stopsToColumn(stops) -> list:
    if not stops:
        return []
    return [schemas.Stop.model_validate(stop).model_dump() for stop in stops]


class TableGateway:
    """
    Query layer scoped to one table.

    Subclasses set `model` (ORM class), `schema` (pydantic record), `fields`
    (writable columns) and optionally `parent` (foreign key used by
    `getRelated`).
    """

    model = None
    schema = None
    fields: List[str] = []
    parent: Optional[str] = None
    hasActive = True

    def __init__(self, sessionFactory: sessionmaker = sessionMaker):
        self.sessionFactory = sessionFactory

    def _execute(self, operation: Callable[[Session], Any]) -> Any:
        session = self.sessionFactory()
        try:
            result = operation(session)
            session.commit()
            return result
        except SQLAlchemyError as e:
            session.rollback()
            raise exceptions.backendError(e)
        finally:
            session.close()

    # Row conversion
    def _query(self, session: Session):
        return session.query(self.model)

    def _toRecord(self, row) -> dict:
        return {
            column.name: getattr(row, column.name)
            for column in self.model.__table__.columns
        }

    def _toSchema(self, row):
        return self.schema.model_validate(self._toRecord(row))

    def _toColumns(self, record: dict) -> dict:
        return {key: value for key, value in record.items() if key in self.fields}

    def _filter(self, query, filters: dict):
        for key, value in filters.items():
            query = query.filter(getattr(self.model, key) == value)
        return query

    def _fetch(self, session: Session, id: int):
        return session.query(self.model).filter(self.model.id == id).first()

    # Reads
    def listAll(
        self, limit: Optional[int] = None, newestFirst: bool = False, **filters
    ) -> list:
        def operation(session: Session):
            query = self._filter(self._query(session), filters)
            if newestFirst:
                query = query.order_by(self.model.created_on.desc())
            else:
                query = query.order_by(self.model.id.asc())
            if limit is not None:
                query = query.limit(limit)
            return [self._toSchema(row) for row in query.all()]

        return self._execute(operation)

    def listActive(self, limit: Optional[int] = None, **filters) -> list:
        if self.hasActive:
            filters["active"] = True
        return self.listAll(limit=limit, **filters)

    def getRelated(self, parent_id: int, activeOnly: bool = True) -> list:
        if self.parent is None:
            raise exceptions.InvalidValue("parent")
        filters = {self.parent: parent_id}
        if activeOnly:
            return self.listActive(**filters)
        return self.listAll(**filters)

    def get(self, id: int):
        def operation(session: Session):
            row = self._filter(self._query(session), {"id": id}).first()
            return None if row is None else self._toSchema(row)

        return self._execute(operation)

    def count(self, **filters) -> int:
        return self._execute(
            lambda session: self._filter(session.query(self.model), filters).count()
        )

    # Writes
    def insert(self, record: dict):
        def operation(session: Session):
            row = self.model(**self._toColumns(record))
            session.add(row)
            session.flush()
            return row.id

        return self.get(self._execute(operation))

    def update(self, id: int, record: dict):
        def operation(session: Session):
            row = self._fetch(session, id)
            if row is None:
                raise exceptions.InvalidIdentifier()
            updateIfChanged(row, self._toColumns(record), self.fields)

        self._execute(operation)
        return self.get(id)

    def delete(self, id: int) -> None:
        def operation(session: Session):
            row = self._fetch(session, id)
            if row is not None:
                session.delete(row)

        self._execute(operation)

    def toggleActive(self, id: int):
        if not self.hasActive:
            raise exceptions.InvalidValue("active")

        def operation(session: Session):
            row = self._fetch(session, id)
            if row is None:
                raise exceptions.InvalidIdentifier()
            row.active = not row.active

        self._execute(operation)
        return self.get(id)


class CityGateway(TableGateway):
    model = City
    schema = schemas.City
    fields = [City.name.key, City.location.key]
    hasActive = False

    def _toRecord(self, row) -> dict:
        point = wkb.loads(bytes(row.location.data))
        return {
            "id": row.id,
            "name": row.name,
            "coordinates": schemas.pointToCoordinates(point),
            "created_on": row.created_on,
        }

    def _toColumns(self, record: dict) -> dict:
        columns = {}
        if "name" in record:
            columns["name"] = record["name"]
        if record.get("coordinates") is not None:
            coordinates = schemas.Coordinates.model_validate(record["coordinates"])
            columns["location"] = from_shape(
                schemas.coordinatesToPoint(coordinates), srid=EPSG_4326
            )
        return columns


class BusLineGateway(TableGateway):
    model = BusLine
    schema = schemas.BusLine
    parent = BusLine.city_id.key
    fields = [
        BusLine.name.key,
        BusLine.city_id.key,
        BusLine.zones_covered.key,
        BusLine.route_coordinates.key,
        BusLine.stops.key,
        BusLine.color.key,
        BusLine.price.key,
        BusLine.active.key,
    ]

    def _toRecord(self, row) -> dict:
        record = super()._toRecord(row)
        record["route_coordinates"] = columnToLine(row.route_coordinates)
        return record

    def _toColumns(self, record: dict) -> dict:
        columns = super()._toColumns(record)
        if "route_coordinates" in columns:
            columns["route_coordinates"] = lineToColumn(columns["route_coordinates"])
        if "stops" in columns:
            columns["stops"] = stopsToColumn(columns["stops"])
        return columns


class TransportAgencyGateway(TableGateway):
    model = TransportAgency
    schema = schemas.TransportAgency
    fields = [
        TransportAgency.name.key,
        TransportAgency.contact_phone.key,
        TransportAgency.contact_email.key,
        TransportAgency.logo_url.key,
        TransportAgency.active.key,
    ]


class IntercityRouteGateway(TableGateway):
    model = IntercityRoute
    schema = schemas.IntercityRoute
    parent = IntercityRoute.agency_id.key
    fields = [
        IntercityRoute.agency_id.key,
        IntercityRoute.departure_city_id.key,
        IntercityRoute.arrival_city_id.key,
        IntercityRoute.departure_point.key,
        IntercityRoute.arrival_point.key,
        IntercityRoute.route_coordinates.key,
        IntercityRoute.frequency.key,
        IntercityRoute.duration_minutes.key,
        IntercityRoute.price.key,
        IntercityRoute.schedule.key,
        IntercityRoute.active.key,
    ]

    def _query(self, session: Session):
        # Embeds the agency name, read only
        return session.query(
            IntercityRoute, TransportAgency.name.label("agency_name")
        ).outerjoin(TransportAgency, TransportAgency.id == IntercityRoute.agency_id)

    def _toRecord(self, row) -> dict:
        route, agencyName = row
        record = super()._toRecord(route)
        record["route_coordinates"] = columnToLine(route.route_coordinates)
        record["agency_name"] = agencyName
        return record

    def _toColumns(self, record: dict) -> dict:
        columns = super()._toColumns(record)
        if "route_coordinates" in columns:
            columns["route_coordinates"] = lineToColumn(columns["route_coordinates"])
        return columns


class AdminGateway:
    """Administrators registry. Existence of a row is the admin privilege."""

    def __init__(self, sessionFactory: sessionmaker = sessionMaker):
        self.sessionFactory = sessionFactory

    def exists(self, user_id: int) -> bool:
        session = self.sessionFactory()
        try:
            row = session.query(Admin.user_id).filter(Admin.user_id == user_id).first()
            return row is not None
        except SQLAlchemyError as e:
            raise exceptions.backendError(e)
        finally:
            session.close()

    def insert(self, user_id: int) -> None:
        session = self.sessionFactory()
        try:
            if self.exists(user_id):
                return
            session.add(Admin(user_id=user_id))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise exceptions.backendError(e)
        finally:
            session.close()


class Gateway:
    """All table gateways sharing one session factory."""

    def __init__(self, sessionFactory: sessionmaker = sessionMaker):
        self.cities = CityGateway(sessionFactory)
        self.bus_lines = BusLineGateway(sessionFactory)
        self.agencies = TransportAgencyGateway(sessionFactory)
        self.intercity_routes = IntercityRouteGateway(sessionFactory)
        self.admins = AdminGateway(sessionFactory)
