import polars as pl
import pytest

from regionpower.engine.simulator import Engine, resolve_order
from regionpower.modules.base.systems.economy_system import EconomySystem
from regionpower.server.state import WorldStateStore
from regionpower.shared.buildings import BuildingCatalog
from regionpower.shared.actions import (
    ActionConstructBuilding, ActionSetSettlementOwner, ActionSetTax, GameAction,
)
from regionpower.shared.resources import Resource, ResourcePool

class RecordingSystem:
    def __init__(self, system_id, dependencies=(), log=None):
        self._id = system_id
        self._deps = list(dependencies)
        self.log = log if log is not None else []

    @property
    def id(self):
        return self._id

    @property
    def dependencies(self):
        return self._deps

    def update(self, state, delta_time):
        self.log.append(self._id)


@pytest.fixture
def state(catalog, make_settlement):
    store = WorldStateStore(catalog=catalog, resources=ResourcePool({"gold": 100, "wood": 100, "food": 1000}))
    store.set_settlements(make_settlement(
        {"population": 100, "tax_rate": 5, "building_limits": {"farm": 1}},
        {"population": 50, "owner": "neutral", "available_buildings": ["house"]},
    ))
    return store


def row(state, settlement_id=1):
    return state.get_settlement(settlement_id)


def test_systems_run_after_dependencies():
    log = []
    b = RecordingSystem("b", ["a"], log)
    a = RecordingSystem("a", [], log)
    c = RecordingSystem("c", ["b", "missing"], log)

    ordered = resolve_order([c, b, a])

    assert [s.id for s in ordered] == ["a", "b", "c"]


def test_dependency_cycle_is_rejected():
    with pytest.raises(ValueError):
        resolve_order([RecordingSystem("a", ["b"]), RecordingSystem("b", ["a"])])


def test_step_advances_tick(state):
    log = []
    Engine.step(state, [], 1.0, [RecordingSystem("x", log=log)])
    assert log == ["x"]
    assert state.globals["tick"] == 1


def test_tax_action_is_clamped(state):
    Engine.step(state, [ActionSetTax("p", 1, 42)], 1.0, [])
    assert row(state)["tax_rate"] == 10

    Engine.step(state, [ActionSetTax("p", 1, -3)], 1.0, [])
    assert row(state)["tax_rate"] == 0


def test_non_numeric_tax_rate_is_skipped(state):
    Engine.step(state, [ActionSetTax("p", 1, "high"), ActionSetTax("p", 1, 8)], 1.0, [])
    assert row(state)["tax_rate"] == 8
    assert state.globals["tick"] == 1


def test_actions_apply_before_systems(state):
    # Tax change must be visible to the economy in the same tick.
    Engine.step(state, [ActionSetTax("p", 1, 10)], 1.0, [EconomySystem()])
    assert state.resources[Resource.GOLD] == pytest.approx(100 + 100 * 2)


def test_capture_changes_owner_and_clears_protest(state):
    state.update_settlement(2, {"protest_timer": 30.0})

    Engine.step(state, [ActionSetSettlementOwner("p", 2, "player")], 1.0, [])

    assert row(state, 2)["owner"] == "player"
    assert row(state, 2)["protest_timer"] is None


def test_capture_with_unknown_owner_is_ignored(state):
    Engine.step(state, [ActionSetSettlementOwner("p", 2, "pirates")], 1.0, [])
    assert row(state, 2)["owner"] == "neutral"


def test_construction_appends_building(state):
    Engine.step(state, [ActionConstructBuilding("p", 1, "farm")], 1.0, [])

    assert row(state)["buildings"] == ["farm"]


def test_construction_respects_settlement_limit(state):
    Engine.step(state, [
        ActionConstructBuilding("p", 1, "farm"),
        ActionConstructBuilding("p", 1, "farm"),
    ], 1.0, [])

    assert row(state)["buildings"] == ["farm"]


def test_construction_respects_availability(state):
    Engine.step(state, [
        ActionConstructBuilding("p", 2, "farm"),
        ActionConstructBuilding("p", 2, "house"),
    ], 1.0, [])

    assert row(state, 2)["buildings"] == ["house"]


def test_construction_requires_resources(catalog, make_settlement):
    costly = WorldStateStore(
        catalog=BuildingCatalog.from_dicts([{"id": "palace", "cost": {"gold": 500}, "max_count": 1}]),
        resources=ResourcePool({"gold": 100}),
    )
    costly.set_settlements(make_settlement({}))

    Engine.step(costly, [ActionConstructBuilding("p", 1, "palace")], 1.0, [])

    assert row(costly)["buildings"] == []
    assert costly.resources[Resource.GOLD] == 100


def test_construction_deducts_cost(catalog, make_settlement):
    store = WorldStateStore(
        catalog=BuildingCatalog.from_dicts([{"id": "hut", "cost": {"wood": 30, "gold": 5}, "max_count": 3}]),
        resources=ResourcePool({"gold": 10, "wood": 100}),
    )
    store.set_settlements(make_settlement({}))

    Engine.step(store, [ActionConstructBuilding("p", 1, "hut")], 1.0, [])

    assert row(store)["buildings"] == ["hut"]
    assert store.resources[Resource.WOOD] == 70
    assert store.resources[Resource.GOLD] == 5


def test_actions_on_unknown_settlements_are_skipped(state):
    before = state.get_settlements()
    Engine.step(state, [
        ActionSetTax("p", 99, 3),
        ActionSetSettlementOwner("p", 99, "player"),
        ActionConstructBuilding("p", 99, "farm"),
    ], 1.0, [])

    assert state.get_settlements().equals(before)


def test_unhandled_action_is_ignored(state):
    Engine.step(state, [GameAction("p")], 1.0, [])
    assert state.globals["tick"] == 1


def test_economy_system_writes_back(state):
    Engine.step(state, [], 2.0, [EconomySystem()])

    assert state.globals["population"] == 100
    assert state.resources[Resource.GOLD] == pytest.approx(100 + 100 * 2)
    assert state.resources[Resource.FOOD] == pytest.approx(1000 - 100 * 0.1 * 2)
    assert Resource.FOOD in state.globals["income_summary"]


def test_store_update_rejects_unknown_ids_and_fields(state):
    with pytest.raises(KeyError):
        state.update_settlement(99, {"population": 1})
    with pytest.raises(KeyError):
        state.update_settlement(1, {"happiness": 1})


def test_store_returns_pool_copies(state):
    pool = state.get_resource_pool()
    pool[Resource.GOLD] = -50
    assert state.resources[Resource.GOLD] == 100

    state.set_resource_pool(pool)
    assert state.resources[Resource.GOLD] == 0
