import pytest

from transit.src import admin, exceptions
from transit.src.auth import SessionContext


@pytest.fixture
def adminContext(authClient, gateway):
    token = authClient.signInWithPassword("admin@transport.bi", "password").access_token
    return SessionContext(authClient, gateway).initialize(token)


@pytest.fixture
def riderContext(authClient, gateway):
    token = authClient.signInWithPassword("rider@transport.bi", "password").access_token
    return SessionContext(authClient, gateway).initialize(token)


@pytest.fixture
def anonymousContext(authClient, gateway):
    return SessionContext(authClient, gateway).initialize(None)


FLOWS = [
    lambda c, g: admin.dashboard(c, g),
    lambda c, g: admin.listBusLines(c, g),
    lambda c, g: admin.createBusLine(c, g, {"name": "Ligne Z", "city_id": 1}),
    lambda c, g: admin.updateBusLine(c, g, 1, {"name": "Ligne Z"}),
    lambda c, g: admin.deleteBusLine(c, g, 1),
    lambda c, g: admin.toggleBusLine(c, g, 1),
    lambda c, g: admin.createAgency(c, g, {"name": "Agence"}),
    lambda c, g: admin.deleteAgency(c, g, 1),
    lambda c, g: admin.createIntercityRoute(
        c, g, {"agency_id": 1, "departure_point": "A", "arrival_point": "B"}
    ),
    lambda c, g: admin.createCity(c, g, {"name": "Ngozi", "lat": -2.9, "lng": 29.8}),
]


@pytest.mark.parametrize("flow", FLOWS)
def test_non_admin_is_rejected_before_any_fetch(flow, riderContext, gateway):
    with pytest.raises(exceptions.NoPermission):
        flow(riderContext, gateway)
    assert gateway.calls() == []


@pytest.mark.parametrize("flow", FLOWS)
def test_anonymous_is_rejected_before_any_fetch(flow, anonymousContext, gateway):
    with pytest.raises(exceptions.InvalidToken):
        flow(anonymousContext, gateway)
    assert gateway.calls() == []


def test_dashboard(adminContext, gateway):
    board = admin.dashboard(adminContext, gateway)
    assert board.email == "admin@transport.bi"
    assert (board.cities, board.bus_lines, board.agencies, board.intercity_routes) == (
        2,
        3,
        3,
        3,
    )


def test_list_bus_lines_newest_first_with_city_names(adminContext, gateway):
    lines = admin.listBusLines(adminContext, gateway)
    assert [(line.id, line.city_name) for line in lines] == [
        (3, "Ville non définie"),
        (2, "Bujumbura"),
        (1, "Bujumbura"),
    ]


def test_create_bus_line(adminContext, gateway):
    form = {
        "name": " Ligne D ",
        "city_id": 2,
        "zones": "Nyamugari, Magarama,, ",
        "price": "",
        "color": "#0ea5e9",
        "stops": '[{"name": "Marché", "lat": -3.42, "lng": 29.92}]',
    }
    line = admin.createBusLine(adminContext, gateway, form)
    assert line.name == "Ligne D"
    assert line.zones_covered == ["Nyamugari", "Magarama"]
    assert line.price == 500
    assert line.color == "#0EA5E9"
    assert line.stops[0].coordinates == [29.92, -3.42]
    assert line.active is True


def test_blank_name_is_rejected_without_insert(adminContext, gateway):
    with pytest.raises(exceptions.MissingParameter):
        admin.createBusLine(adminContext, gateway, {"name": "   ", "city_id": 1})
    assert "insert" not in gateway.bus_lines.calls


def test_update_changes_only_given_fields(adminContext, gateway):
    line = admin.updateBusLine(adminContext, gateway, 2, {"zones": "Kamenge"})
    assert line.zones_covered == ["Kamenge"]
    assert line.name == "Ligne B"
    assert line.price == 750
    with pytest.raises(exceptions.MissingParameter):
        admin.updateBusLine(adminContext, gateway, 2, {"name": ""})


def test_update_unknown_line(adminContext, gateway):
    with pytest.raises(exceptions.InvalidIdentifier):
        admin.updateBusLine(adminContext, gateway, 99, {"name": "Ligne Z"})


def test_toggle_and_delete(adminContext, gateway):
    assert admin.toggleBusLine(adminContext, gateway, 1).active is False
    assert admin.toggleBusLine(adminContext, gateway, 1).active is True
    admin.deleteBusLine(adminContext, gateway, 1)
    admin.deleteBusLine(adminContext, gateway, 1)
    assert [line.id for line in gateway.bus_lines.rows] == [2, 3]


def test_agency_contacts(adminContext, gateway):
    agency = admin.createAgency(
        adminContext,
        gateway,
        {"name": "Agence Nouvelle", "contact_phone": "", "contact_email": " "},
    )
    assert agency.contact_phone is None
    assert agency.contact_email is None
    assert agency.active is True
    with pytest.raises(exceptions.InvalidValue):
        admin.createAgency(
            adminContext, gateway, {"name": "Agence", "contact_email": "not-an-email"}
        )


def test_intercity_route_requires_endpoints(adminContext, gateway):
    with pytest.raises(exceptions.MissingParameter):
        admin.createIntercityRoute(
            adminContext, gateway, {"agency_id": 1, "departure_point": "Bujumbura"}
        )
    route = admin.createIntercityRoute(
        adminContext,
        gateway,
        {
            "agency_id": 2,
            "departure_point": "Ngozi",
            "arrival_point": "Kirundo",
            "duration_minutes": "75",
            "schedule": "06:00, 12:00",
        },
    )
    assert route.schedule == ["06:00", "12:00"]
    assert route.duration_minutes == 75
    assert route.price is None


def test_city_requires_coordinates(adminContext, gateway):
    with pytest.raises(exceptions.MissingParameter):
        admin.createCity(adminContext, gateway, {"name": "Ngozi", "lat": -2.9})
    city = admin.createCity(
        adminContext, gateway, {"name": "Ngozi", "lat": -2.9078, "lng": 29.8306}
    )
    assert city.coordinates.lat == -2.9078


@pytest.mark.parametrize(
    "text, fare", [("750", 750), ("", 500), (None, 500), ("abc", 500), ("600 FBU", 600), ("0", 0), (0, 0)]
)
def test_parse_fare(text, fare):
    assert admin.parseFare(text) == fare


def test_parse_fare_rejects_negative():
    with pytest.raises(exceptions.InvalidValue):
        admin.parseFare("-5")


@pytest.mark.parametrize("color", ["blue", "#12345", "#GGGGGG"])
def test_parse_color_rejects_invalid(color):
    with pytest.raises(exceptions.InvalidValue):
        admin.parseColor(color)


def test_parse_color_default():
    assert admin.parseColor("") == "#2563EB"


@pytest.mark.parametrize(
    "text",
    ['[{"name": "X", "coordinates": [200, 0]}]', "not json", '{"name": "X"}'],
)
def test_parse_stops_rejects_invalid(text):
    with pytest.raises(exceptions.InvalidGeometry):
        admin.parseStops(text)


def test_parse_route():
    assert admin.parseRoute("") is None
    line = admin.parseRoute('{"type": "LineString", "coordinates": [[29.3, -3.3], [29.4, -3.4]]}')
    assert line["coordinates"] == [[29.3, -3.3], [29.4, -3.4]]
    with pytest.raises(exceptions.InvalidGeometry):
        admin.parseRoute('{"type": "LineString", "coordinates": [[29.3, -3.3]]}')
