from typing import Dict

import polars as pl

from regionpower.engine.systems import rules
from regionpower.engine.systems.protest import is_protesting
from regionpower.shared.buildings import BuildingCatalog
from regionpower.shared.resources import Resource, ResourcePool
from regionpower.shared.settlements import DEFAULT_SATISFACTION, DEFAULT_TAX_RATE, Owner

def project_income(settlements: pl.DataFrame,
                   pool: ResourcePool,
                   catalog: BuildingCatalog) -> Dict[Resource, float]:
    """
    Net per-second flow of every resource, projected from the current state.

    This is a display value, not a ledger: it applies worker gating and the
    protest multiplier but ignores whether the pool can actually pay for
    inputs, so it can differ slightly from what the next tick applies.
    """
    summary: Dict[Resource, float] = {r: 0.0 for r in Resource}
    player = settlements.filter(pl.col("owner") == Owner.PLAYER.value)

    total_population = 0.0
    # Zero-tax upkeep cannot drain more gold than the pool holds.
    gold_left = max(0.0, pool[Resource.GOLD])

    for row in player.iter_rows(named=True):
        population = row["population"] or 0
        total_population += population

        satisfaction = row["satisfaction"] if row["satisfaction"] is not None else DEFAULT_SATISFACTION
        tax_rate = row["tax_rate"] if row["tax_rate"] is not None else DEFAULT_TAX_RATE
        multiplier = rules.PROTEST_OUTPUT_MULTIPLIER if is_protesting(row["protest_timer"]) else 1.0

        available_workers = population
        for building in catalog.in_catalog_order(row["buildings"] or []):
            if building.production is not None and available_workers >= building.workers:
                available_workers -= building.workers
                for resource, amount in building.consumption.items():
                    summary[resource] -= amount
                summary[building.production.type] += building.production.amount * multiplier

            if building.military is not None and population >= building.military.population_use_per_unit:
                summary[Resource.WEAPONS] -= building.military.production_per_second

        tax = rules.tax_income_rate(population, tax_rate)
        if tax < 0:
            tax = -min(gold_left, -tax)
            gold_left += tax
        summary[Resource.GOLD] += tax

        summary[Resource.INFLUENCE] += rules.influence_bonus_rate(satisfaction)

    summary[Resource.FOOD] -= total_population * rules.FOOD_PER_CAPITA
    return summary
