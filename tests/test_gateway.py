from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from geoalchemy2.shape import to_shape
from psycopg2.errorcodes import UNIQUE_VIOLATION
from sqlalchemy.exc import IntegrityError, OperationalError

from transit.src import exceptions
from transit.src.gateway import (
    AdminGateway,
    BusLineGateway,
    CityGateway,
    TransportAgencyGateway,
    columnToLine,
    lineToColumn,
    stopsToColumn,
)


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def sessionFactory(session):
    return MagicMock(return_value=session)


def test_backend_failure_is_a_gateway_error(session, sessionFactory):
    session.query.side_effect = OperationalError("SELECT", {}, Exception("down"))
    with pytest.raises(exceptions.GatewayError):
        BusLineGateway(sessionFactory).listActive()
    session.rollback.assert_called_once()
    session.close.assert_called_once()
    session.commit.assert_not_called()


def test_unique_violation_keeps_its_meaning(session, sessionFactory):
    orig = SimpleNamespace(
        diag=SimpleNamespace(
            sqlstate=UNIQUE_VIOLATION,
            message_detail='Key (name)=(Volcano Express) already exists.',
        )
    )
    session.flush.side_effect = IntegrityError("INSERT", {}, orig)
    with pytest.raises(exceptions.UniqueViolation) as error:
        TransportAgencyGateway(sessionFactory).insert({"name": "Volcano Express"})
    assert error.value.detail == "For name value Volcano Express already exists"
    session.rollback.assert_called_once()


def test_update_of_unknown_row(session, sessionFactory):
    session.query.return_value.filter.return_value.first.return_value = None
    with pytest.raises(exceptions.InvalidIdentifier):
        BusLineGateway(sessionFactory).update(99, {"name": "Ligne Z"})
    session.close.assert_called_once()


def test_delete_of_unknown_row_is_a_no_op(session, sessionFactory):
    session.query.return_value.filter.return_value.first.return_value = None
    BusLineGateway(sessionFactory).delete(99)
    session.delete.assert_not_called()
    session.commit.assert_called_once()
    session.close.assert_called_once()


def test_empty_result_is_an_empty_list(session, sessionFactory):
    query = session.query.return_value.filter.return_value
    query.order_by.return_value.all.return_value = []
    assert BusLineGateway(sessionFactory).listActive() == []


def test_cities_have_no_active_flag(sessionFactory):
    with pytest.raises(exceptions.InvalidValue):
        CityGateway(sessionFactory).toggleActive(1)
    sessionFactory.assert_not_called()


def test_cities_have_no_parent(sessionFactory):
    with pytest.raises(exceptions.InvalidValue):
        CityGateway(sessionFactory).getRelated(1)
    sessionFactory.assert_not_called()


def test_city_columns_store_longitude_first(sessionFactory):
    columns = CityGateway(sessionFactory)._toColumns(
        {"name": "Ngozi", "coordinates": {"lat": -2.9078, "lng": 29.8306}}
    )
    point = to_shape(columns["location"])
    assert (point.x, point.y) == (29.8306, -2.9078)


def test_line_column_round_trip():
    line = {"type": "LineString", "coordinates": [[29.3599, -3.3822], [29.3644, -3.3919]]}
    assert columnToLine(lineToColumn(line)) == line
    assert lineToColumn(None) is None
    assert columnToLine(None) is None


def test_bus_line_columns_drop_unknown_keys(sessionFactory):
    columns = BusLineGateway(sessionFactory)._toColumns(
        {"name": "Ligne Z", "zones": "ignored", "stops": None}
    )
    assert columns == {"name": "Ligne Z", "stops": []}


def test_stops_column_normalizes_named_coordinates():
    assert stopsToColumn([{"name": " Kinindo ", "lat": -3.4025, "lng": 29.3556}]) == [
        {"name": "Kinindo", "coordinates": [29.3556, -3.4025]}
    ]


def test_admin_lookup(session, sessionFactory):
    admins = AdminGateway(sessionFactory)
    session.query.return_value.filter.return_value.first.return_value = (1,)
    assert admins.exists(1) is True
    session.query.return_value.filter.return_value.first.return_value = None
    assert admins.exists(2) is False


def test_admin_lookup_failure(session, sessionFactory):
    session.query.side_effect = OperationalError("SELECT", {}, Exception("down"))
    with pytest.raises(exceptions.GatewayError):
        AdminGateway(sessionFactory).exists(1)
    session.close.assert_called_once()
