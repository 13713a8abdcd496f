import argparse
from http import HTTPStatus
from requests import post
from geoalchemy2.shape import from_shape
from shapely.geometry import LineString, Point
from sqlalchemy import text

from transit.src import argon2
from transit.src.minio import createBucket, deleteBucket
from transit.src.constants import AGENCY_LOGOS, BACKEND_KEY, EPSG_4326
from transit.src.urls import (
    URL_ACCOUNT_TOKEN,
    URL_ADMIN_AGENCY,
    URL_ADMIN_BUS_LINE,
    URL_ADMIN_INTERCITY_ROUTE,
)
from transit.src.db import (
    Account,
    Admin,
    BusLine,
    City,
    sessionMaker,
    engine,
    ORMbase,
)


# ----------------------------------- Project Setup -------------------------------------------#
def removeTables():
    session = sessionMaker()
    ORMbase.metadata.drop_all(engine)
    session.commit()
    print("* All tables deleted")
    deleteBucket(AGENCY_LOGOS)
    print("* All buckets deleted")
    session.close()


def createTables():
    session = sessionMaker()
    session.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
    session.commit()
    ORMbase.metadata.create_all(engine)
    print("* All tables created")
    createBucket(AGENCY_LOGOS)
    print("* All buckets created")
    session.close()


def initDB():
    session = sessionMaker()
    admin = Account(
        email="admin@transport.bi",
        password=argon2.makePassword("password"),
    )
    session.add(admin)
    session.flush()
    session.add(Admin(user_id=admin.id))

    bujumbura = City(
        name="Bujumbura",
        location=from_shape(Point(29.36, -3.3731), srid=EPSG_4326),
    )
    gitega = City(
        name="Gitega",
        location=from_shape(Point(29.9246, -3.4271), srid=EPSG_4326),
    )
    session.add_all([bujumbura, gitega])
    session.flush()

    lineA = BusLine(
        name="Ligne A",
        city_id=bujumbura.id,
        zones_covered=["Centre-ville", "Rohero", "Kinindo"],
        route_coordinates=from_shape(
            LineString([(29.3599, -3.3822), (29.3644, -3.3919), (29.3556, -3.4025)]),
            srid=EPSG_4326,
        ),
        stops=[
            {"name": "Marché Central", "coordinates": [29.3599, -3.3822]},
            {"name": "Rohero", "coordinates": [29.3644, -3.3919]},
            {"name": "Kinindo", "coordinates": [29.3556, -3.4025]},
        ],
        color="#2563EB",
        price=500,
    )
    session.add(lineA)
    session.commit()
    print("* Initialization completed")
    session.close()


def registerAdmin(email: str):
    session = sessionMaker()
    account = (
        session.query(Account).filter(Account.email == email.strip().lower()).first()
    )
    if account is None:
        print(f"* No account registered with {email}")
    elif session.query(Admin).filter(Admin.user_id == account.id).first():
        print(f"* {email} is already an administrator")
    else:
        session.add(Admin(user_id=account.id))
        session.commit()
        print(f"* {email} is now an administrator")
    session.close()


def POST(URL: str, header: dict = {}, status_code: int = HTTPStatus.CREATED, **kwargs):
    response = post(URL, headers=header, **kwargs)
    if response.status_code != status_code:
        assert response.status_code == status_code
    else:
        return response


def testDB():
    # Base URL
    BASE_URL = "http://127.0.0.1:8080"
    apiKey = {"apikey": BACKEND_KEY}

    # Sign in as the administrator
    credentials = {"email": "admin@transport.bi", "password": "password"}
    response = POST(BASE_URL + URL_ACCOUNT_TOKEN, header=apiKey, data=credentials)
    print("* Created token for admin")
    header = {**apiKey, "Authorization": f"Bearer {response.json()['access_token']}"}

    # Create agencies
    agencyIDs = []
    for name, phone in [
        ("Volcano Express", "+25722223333"),
        ("Memento Transport", "+25722224444"),
    ]:
        agencyData = {"name": name, "contact_phone": phone}
        response = POST(BASE_URL + URL_ADMIN_AGENCY, header=header, data=agencyData)
        agencyIDs.append(response.json()["id"])
    print("* Created agencies")

    # Create intercity routes
    routes = [
        ("Bujumbura", "Gitega", "120", "10000", "06:00, 09:00, 14:00"),
        ("Bujumbura", "Ngozi", "180", "12000", "07:00, 13:00"),
        ("Gitega", "Ngozi", "90", "8000", "08:00"),
    ]
    for agencyID, route in zip([agencyIDs[0], agencyIDs[0], agencyIDs[1]], routes):
        departure, arrival, duration, price, schedule = route
        routeData = {
            "agency_id": agencyID,
            "departure_point": departure,
            "arrival_point": arrival,
            "duration_minutes": duration,
            "price": price,
            "schedule": schedule,
            "frequency": "Tous les jours",
        }
        POST(BASE_URL + URL_ADMIN_INTERCITY_ROUTE, header=header, data=routeData)
    print("* Created intercity routes")

    # Create a second bus line in the first city
    lineData = {
        "name": "Ligne B",
        "city_id": 1,
        "zones": "Centre-ville, Gasenyi, Kamenge",
        "price": "400",
        "color": "#059669",
        "stops": '[{"name": "Gasenyi", "coordinates": [29.3900, -3.3500]}]',
    }
    POST(BASE_URL + URL_ADMIN_BUS_LINE, header=header, data=lineData)
    print("* Created bus lines")


# Setup database
if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    # remove tables
    parser.add_argument("-rm", action="store_true", help="remove tables")
    parser.add_argument("-cr", action="store_true", help="create tables")
    parser.add_argument("-init", action="store_true", help="initialize DB")
    parser.add_argument("-test", action="store_true", help="add test data")
    parser.add_argument("-admin", metavar="EMAIL", help="register an administrator")
    args = parser.parse_args()

    if args.cr:
        createTables()
    if args.init:
        initDB()
    if args.admin:
        registerAdmin(args.admin)
    if args.test:
        testDB()
    if args.rm:
        removeTables()
