from typing import List

from regionpower.engine.interfaces import ISystem
from regionpower.engine.systems.economy import EconomyPass
from regionpower.server.state import WorldStateStore

class EconomySystem(ISystem):
    """
    Runs the player economy: production, taxes, satisfaction, protests
    and population for every player-owned settlement.

    Reads one snapshot of the settlements table and the resource pool,
    computes the whole tick against it, then writes both back.
    """
    @property
    def id(self) -> str:
        return "base.economy"

    @property
    def dependencies(self) -> List[str]:
        return []

    def update(self, state: WorldStateStore, delta_time: float) -> None:
        if delta_time <= 0:
            return

        economy = EconomyPass(state.catalog)
        result = economy.run(delta_time, state.get_settlements(), state.get_resource_pool())

        state.set_settlements(result.settlements)
        state.set_resource_pool(result.resource_pool)
        state.globals["population"] = economy.population
        state.globals["military"] = economy.military
        state.globals["income_summary"] = result.income_summary
        state.events.extend(economy.events)
