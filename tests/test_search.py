import asyncio
import pytest
from unittest.mock import MagicMock
from redis.exceptions import ConnectionError

from transit.src import schemas
from transit.src.loaders import FlowScope
from transit.src.search import (
    RecentSearches,
    RedisRecentSearches,
    pushRecent,
    search,
    searchEntities,
)


def line(id, name, zones):
    return schemas.BusLine(id=id, name=name, city_id=1, zones_covered=zones)


def route(id, departure, arrival, price=None, agency="Volcano Express"):
    return schemas.IntercityRoute(
        id=id,
        agency_id=1,
        agency_name=agency,
        departure_point=departure,
        arrival_point=arrival,
        price=price,
    )


def runSearch(query, gateway, recent):
    async def scenario():
        async with FlowScope() as scope:
            return await search(query, gateway, recent, scope)

    return asyncio.run(scenario())


def test_zone_match_example():
    lines = [line(1, "Ligne A", ["Kinindo"]), line(2, "Ligne B", ["Kamenge"])]
    results = searchEntities("kinindo", lines, [])
    assert [r.model_dump(exclude_none=True) for r in results] == [
        {"id": 1, "name": "Ligne A", "kind": "bus", "zones": ["Kinindo"]}
    ]


@pytest.mark.parametrize("query", ["", "   ", "\t\n"])
def test_blank_query_yields_nothing(query, busLines, routes):
    assert searchEntities(query, busLines, routes) == []


@pytest.mark.parametrize("query", ["ligne", "KIN", "a", "bujumbura", "gitega", "Ngo"])
def test_every_result_contains_the_query(query, busLines, routes):
    needle = query.lower()
    lines = {item.id: item for item in busLines}
    trips = {item.id: item for item in routes}
    for result in searchEntities(query, busLines, routes):
        if result.kind == "bus":
            candidate = lines[result.id]
            fields = [candidate.name] + candidate.zones_covered
        else:
            candidate = trips[result.id]
            fields = [candidate.departure_point, candidate.arrival_point]
        assert any(needle in field.lower() for field in fields)


def test_bus_lines_come_first_in_collection_order():
    lines = [line(3, "Ligne Z", ["Gitega"]), line(1, "Ligne A", ["Gitega Nord"])]
    trips = [route(9, "Gitega", "Ngozi"), route(4, "Bujumbura", "Gitega")]
    results = searchEntities("gitega", lines, trips)
    assert [(r.kind, r.id) for r in results] == [
        ("bus", 3),
        ("bus", 1),
        ("intercity", 9),
        ("intercity", 4),
    ]


def test_intercity_result_shape():
    (result,) = searchEntities("ngozi", [], [route(2, "Bujumbura", "Ngozi", price=12000)])
    assert result.name == "Bujumbura → Ngozi"
    assert result.agency == "Volcano Express"
    assert result.details == "12000 FBU"
    assert result.zones is None


def test_intercity_without_price_shows_default_fare():
    (result,) = searchEntities("ngozi", [], [route(2, "Bujumbura", "Ngozi")])
    assert result.details == "500 FBU"


def test_name_match_does_not_need_zone():
    results = searchEntities("ligne b", [line(2, "Ligne B", [])], [])
    assert [r.id for r in results] == [2]
    assert results[0].zones == []


def test_recent_searches_bounded_most_recent_first():
    recent = RecentSearches()
    for query in ["Kinindo", "Gitega", "Ngozi", "Rohero", "Kamenge", "Gasenyi", "Musaga"]:
        recent.add(query)
    assert recent.list() == ["Musaga", "Gasenyi", "Kamenge", "Rohero", "Ngozi"]


def test_recent_searches_move_repeated_query_to_front():
    items = pushRecent(["Gitega", "Kinindo", "Ngozi"], "  kinindo ")
    assert items == ["kinindo", "Gitega", "Ngozi"]


def test_redis_recent_searches_rewrites_list():
    client = MagicMock()
    client.lrange.return_value = ["Gitega", "Ngozi"]
    pipeline = client.pipeline.return_value

    store = RedisRecentSearches(client, 7)
    store.add("Ngozi")

    client.lrange.assert_called_once_with("recent_searches:7", 0, 4)
    pipeline.delete.assert_called_once_with("recent_searches:7")
    pipeline.rpush.assert_called_once_with("recent_searches:7", "Ngozi", "Gitega")
    pipeline.execute.assert_called_once()


def test_blank_search_does_not_reach_gateway(gateway):
    recent = RecentSearches()
    response = runSearch("   ", gateway, recent)
    assert response.results == []
    assert response.suggestions == ["Centre-ville", "Gasenyi", "Ngozi", "Gitega", "Bujumbura"]
    assert gateway.calls() == []
    assert recent.list() == []


def test_search_skips_inactive_lines_and_records_query(gateway):
    recent = RecentSearches()
    response = runSearch(" Kinindo ", gateway, recent)
    assert [(r.kind, r.id) for r in response.results] == [("bus", 1), ("intercity", 3)]
    assert response.query == "Kinindo"
    assert response.recent_searches == ["Kinindo"]


def test_search_degrades_when_one_collection_fails(gateway):
    gateway.intercity_routes.fail = True
    response = runSearch("kinindo", gateway, RecentSearches())
    assert [(r.kind, r.id) for r in response.results] == [("bus", 1)]


def test_search_with_both_collections_failing_is_empty(gateway):
    gateway.bus_lines.fail = True
    gateway.intercity_routes.fail = True
    response = runSearch("kinindo", gateway, RecentSearches())
    assert response.results == []


def test_unreachable_recent_store_does_not_fail_search(gateway):
    client = MagicMock()
    client.lrange.side_effect = ConnectionError("Connection refused")
    response = runSearch("kinindo", gateway, RedisRecentSearches(client, 7))
    assert [(r.kind, r.id) for r in response.results] == [("bus", 1), ("intercity", 3)]
    assert response.recent_searches == []

    response = runSearch("", gateway, RedisRecentSearches(client, 7))
    assert response.recent_searches == []
    assert response.suggestions
