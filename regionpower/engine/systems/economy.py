import math
from typing import Any, Dict, List, NamedTuple, Tuple

import polars as pl

from regionpower.engine.systems import rules
from regionpower.engine.systems.income import project_income
from regionpower.engine.systems.protest import ProtestState, advance_protest, is_protesting
from regionpower.shared.buildings import BuildingCatalog
from regionpower.shared.events import (
    EventProtestEnded, EventProtestStarted, EventSettlementLost, GameEvent,
)
from regionpower.shared.resources import Resource, ResourcePool
from regionpower.shared.settlements import (
    DEFAULT_SATISFACTION, DEFAULT_TAX_RATE, MAX_TAX_RATE, MIN_TAX_RATE,
    SETTLEMENT_SCHEMA, Owner,
)

# Columns written back by the economy pass. Everything else is owned by
# actions (buildings, tax rate) or static data.
UPDATED_COLUMNS = ("id", "owner", "population", "military", "satisfaction", "protest_timer")

class TickResult(NamedTuple):
    settlements: pl.DataFrame
    resource_pool: ResourcePool
    income_summary: Dict[Resource, float]


class EconomyPass:
    """
    One economic tick over every player-owned settlement.

    Design Philosophy:
        The pass is a pure function of its inputs. It copies the resource
        pool, walks player settlements in ascending id order against that
        single copy, and returns a new settlements frame. Nothing it is
        given is mutated, so the same inputs always produce the same output.

    Ordering policy:
        Settlements share one pool. When two of them compete for the last
        units of a resource, the lower settlement id is served first.

    After run(), 'events', 'population', 'military' and
    'influence_produced' describe what happened during the tick.
    """

    def __init__(self, catalog: BuildingCatalog):
        self.catalog = catalog
        self.events: List[GameEvent] = []
        self.population = 0
        self.military = 0
        self.influence_produced = 0.0

    def run(self, elapsed_seconds: float, settlements: pl.DataFrame, resource_pool: ResourcePool) -> TickResult:
        pool = resource_pool.copy()
        self.events = []
        self.influence_produced = 0.0

        player = settlements.filter(pl.col("owner") == Owner.PLAYER.value).sort("id")

        # Evaluated once against the pool at tick start. Food is only eaten at
        # the end of the tick, so a settlement can be denied growth even though
        # an earlier settlement's farms refilled the pool this tick.
        no_food = pool[Resource.FOOD] <= 0

        tick_population = 0.0
        influence_bonus = 0.0
        updates: List[Dict[str, Any]] = []

        for row in player.iter_rows(named=True):
            tick_population += row["population"] or 0
            update, bonus = self._advance_settlement(row, pool, elapsed_seconds, no_food)
            influence_bonus += bonus
            updates.append(update)

        # Global food upkeep
        food_consumption = tick_population * rules.FOOD_PER_CAPITA * elapsed_seconds
        aggregate_population = sum(u["population"] for u in updates if u["owner"] == Owner.PLAYER.value)
        if pool[Resource.FOOD] < food_consumption:
            aggregate_population = max(0.0, aggregate_population - rules.STARVATION_RATE * elapsed_seconds)
        pool[Resource.FOOD] = max(0.0, pool[Resource.FOOD] - food_consumption)

        pool.add(Resource.INFLUENCE, influence_bonus)
        self.influence_produced += influence_bonus
        pool.clamp()

        self.population = int(math.floor(aggregate_population))
        self.military = sum(u["military"] for u in updates if u["owner"] == Owner.PLAYER.value)

        new_settlements = self._apply_updates(settlements, updates)
        return TickResult(new_settlements, pool, project_income(new_settlements, pool, self.catalog))

    def _advance_settlement(self, row: Dict[str, Any], pool: ResourcePool,
                            elapsed: float, no_food: bool) -> Tuple[Dict[str, Any], float]:
        """
        Computes one settlement's new fields, mutating the shared pool.
        Returns the update row and the satisfaction-driven influence bonus.
        """
        settlement_id = row["id"]
        population = float(row["population"] or 0)
        military = row["military"] or 0
        satisfaction = row["satisfaction"] if row["satisfaction"] is not None else DEFAULT_SATISFACTION
        tax_rate = row["tax_rate"] if row["tax_rate"] is not None else DEFAULT_TAX_RATE
        timer = row["protest_timer"]

        multiplier = rules.PROTEST_OUTPUT_MULTIPLIER if is_protesting(timer) else 1.0

        total_workers = 0
        available_workers = population
        satisfaction_bonus = 0.0
        population_growth = 0.0
        population_used = 0
        military_growth = 0.0

        for building in self.catalog.in_catalog_order(row["buildings"] or []):
            total_workers += building.workers
            satisfaction_bonus += building.satisfaction_bonus

            # Production is all-or-nothing: staff and inputs are checked
            # before anything is taken.
            if building.production is not None:
                staffed = available_workers >= building.workers
                if staffed and pool.can_afford(building.consumption, elapsed):
                    available_workers -= building.workers
                    pool.spend(building.consumption, elapsed)
                    produced = building.production.amount * elapsed * multiplier
                    pool.add(building.production.type, produced)
                    if building.production.type == Resource.INFLUENCE:
                        self.influence_produced += produced

            if building.population is not None and not no_food:
                population_growth += building.population.growth_per_second * elapsed

            if building.military is not None:
                effect = building.military
                weapons_needed = effect.production_per_second * elapsed
                if population >= effect.population_use_per_unit and pool[Resource.WEAPONS] >= weapons_needed:
                    military_growth += weapons_needed
                    population_used += effect.population_use_per_unit
                    pool.add(Resource.WEAPONS, -weapons_needed)

        # Satisfaction
        delta = 0.0
        if population - total_workers < 0:
            delta -= rules.WORKER_SHORTAGE_PENALTY * elapsed
        elif total_workers > 0:
            shortfall = max(0.0, 1 - available_workers / total_workers)
            delta -= rules.WORKER_SHORTAGE_PENALTY * shortfall * elapsed
        delta += satisfaction_bonus * elapsed * rules.SATISFACTION_BONUS_SCALE
        delta += (rules.NEUTRAL_TAX_RATE - tax_rate) * rules.TAX_SATISFACTION_SCALE * elapsed
        new_satisfaction = min(rules.MAX_SATISFACTION, max(rules.MIN_SATISFACTION, satisfaction + delta))

        # Taxes
        if tax_rate == 0:
            gold = max(0.0, pool[Resource.GOLD])
            pool[Resource.GOLD] = gold - min(gold, population * rules.ZERO_TAX_UPKEEP * elapsed)
        else:
            pool.add(Resource.GOLD, rules.tax_income_rate(population, tax_rate) * elapsed)

        protest = advance_protest(new_satisfaction, timer, elapsed)
        if protest.state is ProtestState.LOST_CONTROL:
            self.events.append(EventSettlementLost(settlement_id))
            return {
                "id": settlement_id,
                "owner": Owner.NEUTRAL.value,
                "population": row["population"],
                "military": military,
                "satisfaction": rules.LOST_CONTROL_SATISFACTION,
                "protest_timer": None,
            }, 0.0

        if protest.started:
            self.events.append(EventProtestStarted(settlement_id, protest.timer))
        elif protest.ended:
            self.events.append(EventProtestEnded(settlement_id))

        bonus = rules.influence_bonus_rate(new_satisfaction) * elapsed

        # Starvation overrides growth for this tick.
        if pool[Resource.FOOD] <= 0:
            new_population = max(0.0, population - rules.STARVATION_RATE * elapsed)
            new_population = min(float(row["max_population"]), new_population)
        else:
            new_population = population + population_growth - population_used
            new_population = min(float(row["max_population"]), max(0.0, new_population))

        return {
            "id": settlement_id,
            "owner": Owner.PLAYER.value,
            "population": int(math.floor(new_population)),
            "military": int(math.floor(military + military_growth)),
            "satisfaction": new_satisfaction,
            "protest_timer": protest.timer,
        }, bonus

    @staticmethod
    def _apply_updates(settlements: pl.DataFrame, updates: List[Dict[str, Any]]) -> pl.DataFrame:
        if not updates:
            return settlements
        schema = {c: SETTLEMENT_SCHEMA[c] for c in UPDATED_COLUMNS}
        update_df = pl.DataFrame(updates, schema=schema)
        # include_nulls: a cleared protest timer must overwrite the old value.
        return settlements.update(update_df, on="id", include_nulls=True)


def advance(elapsed_seconds: float,
            settlements: pl.DataFrame,
            resource_pool: ResourcePool,
            catalog: BuildingCatalog) -> TickResult:
    """
    Advances every player settlement by 'elapsed_seconds'.

    Returns (updated_settlements, updated_resource_pool, income_summary).
    Inputs are left untouched.
    """
    return EconomyPass(catalog).run(elapsed_seconds, settlements, resource_pool)


def apply_tax_change(state, settlement_id: int, new_rate: int):
    """
    Sets a settlement's tax rate, clamped to the legal range.
    Unknown settlements and non-numeric rates are skipped.
    """
    try:
        rate = max(MIN_TAX_RATE, min(MAX_TAX_RATE, int(new_rate)))
        state.update_settlement(settlement_id, {"tax_rate": rate})
    except (KeyError, TypeError, ValueError) as e:
        print(f"[Economy] WARNING: Tax change skipped: {e}")
