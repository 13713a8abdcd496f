import asyncio, threading
import pytest

from transit.src.loaders import FlowScope, loadAgencies, loadCollections, loadHome


def runHome(gateway):
    async def scenario():
        async with FlowScope() as scope:
            return await loadHome(gateway, scope)

    return asyncio.run(scenario())


@pytest.mark.parametrize("slowTable", ["bus_lines", "intercity_routes"])
def test_home_merge_does_not_depend_on_completion_order(gateway, slowTable):
    getattr(gateway, slowTable).delay = 0.05
    home = runHome(gateway)
    assert [(entry.kind, entry.id) for entry in home] == [
        ("bus", 1),
        ("bus", 2),
        ("intercity", 1),
        ("intercity", 2),
        ("intercity", 3),
    ]


def test_home_entries(gateway):
    home = runHome(gateway)
    assert home[0].subtitle == "Centre-ville • Kinindo"
    assert home[0].fare == "500 FBU"
    assert home[2].name == "Bujumbura → Gitega"
    assert home[2].subtitle == "Volcano Express"
    assert home[2].fare == "10000 FBU"


def test_home_limits(gateway):
    for id in range(10, 20):
        gateway.bus_lines.insert({"name": f"Ligne {id}", "city_id": 1})
    for id in range(10, 20):
        gateway.intercity_routes.insert(
            {"agency_id": 2, "departure_point": "Ngozi", "arrival_point": "Kirundo"}
        )
    home = runHome(gateway)
    assert [entry.kind for entry in home] == ["bus"] * 5 + ["intercity"] * 3


def test_home_keeps_the_collection_that_loaded(gateway):
    gateway.bus_lines.fail = True
    home = runHome(gateway)
    assert [entry.kind for entry in home] == ["intercity"] * 3


def test_agencies_with_routes(gateway):
    async def scenario():
        async with FlowScope() as scope:
            return await loadAgencies(gateway, scope)

    agencies = asyncio.run(scenario())
    assert [agency.name for agency in agencies] == ["Volcano Express", "Memento Transport"]
    assert [route.id for route in agencies[0].routes] == [1, 2]
    assert agencies[0].routes[0].duration == "2h"
    assert agencies[0].routes[1].duration == "1h 30min"
    assert agencies[0].routes[1].fare == "500 FBU"
    assert agencies[1].routes[0].duration == "45min"


def test_timed_out_loader_yields_empty_collection():
    release = threading.Event()

    async def scenario():
        async with FlowScope(timeout=0.05) as scope:
            collections = await loadCollections(
                scope, lambda: release.wait(2) or ["late"], lambda: ["fast"]
            )
            release.set()
            return collections

    try:
        assert asyncio.run(scenario()) == [[], ["fast"]]
    finally:
        release.set()


def test_cancelled_scope_abandons_results():
    started, release = threading.Event(), threading.Event()
    delivered = []

    def slow():
        started.set()
        release.wait(2)
        return ["late"]

    async def scenario():
        async with FlowScope() as scope:
            task = asyncio.ensure_future(loadCollections(scope, slow))
            await asyncio.to_thread(started.wait, 2)
            scope.cancel()
            with pytest.raises(asyncio.CancelledError):
                delivered.append(await task)
            with pytest.raises(asyncio.CancelledError):
                scope.start(slow)
            release.set()

    try:
        asyncio.run(scenario())
    finally:
        release.set()
    assert delivered == []


def test_leaving_scope_cancels_pending_calls():
    started, release = threading.Event(), threading.Event()

    async def scenario():
        async with FlowScope() as scope:
            task = scope.start(lambda: started.set() or release.wait(2))
            await asyncio.to_thread(started.wait, 2)
        release.set()
        with pytest.raises(asyncio.CancelledError):
            await task

    try:
        asyncio.run(scenario())
    finally:
        release.set()
