import random
from typing import List, Optional

import polars as pl

from regionpower.engine.interfaces import ISystem
from regionpower.server.state import WorldStateStore
from regionpower.shared.events import EventOpponentReinforced
from regionpower.shared.settlements import Owner

class OpponentSystem(ISystem):
    """
    Basic AI for enemy settlements.

    Every tick, each enemy settlement independently has a small chance to
    gain a fixed number of units. Only enemy rows and only the 'military'
    column are touched, so it never overlaps with the player economy.
    """
    def __init__(self, chance: float = 0.1, amount: int = 5, rng: Optional[random.Random] = None):
        self.chance = chance
        self.amount = amount
        self.rng = rng if rng is not None else random.Random()

    @property
    def id(self) -> str:
        return "base.opponent"

    @property
    def dependencies(self) -> List[str]:
        return ["base.economy"]

    def update(self, state: WorldStateStore, delta_time: float) -> None:
        settlements = state.get_settlements()
        enemy_ids = (
            settlements.filter(pl.col("owner") == Owner.ENEMY.value)
            .sort("id")
            .get_column("id")
            .to_list()
        )

        reinforced = [sid for sid in enemy_ids if self.rng.random() < self.chance]
        if not reinforced:
            return

        settlements = settlements.with_columns(
            pl.when(pl.col("id").is_in(reinforced))
            .then(pl.col("military") + self.amount)
            .otherwise(pl.col("military"))
            .alias("military")
        )
        state.set_settlements(settlements)
        state.events.extend(EventOpponentReinforced(sid, self.amount) for sid in reinforced)
