import random
from typing import List, Optional

from regionpower.engine.interfaces import ISystem
from regionpower.shared.config import SimulationSettings

# Import Systems
from regionpower.modules.base.systems.economy_system import EconomySystem
from regionpower.modules.base.systems.opponent_system import OpponentSystem

def register(settings: Optional[SimulationSettings] = None, rng: Optional[random.Random] = None) -> List[ISystem]:
    """
    The session calls this function to discover what logic
    this module contributes to the game loop.
    """
    settings = settings or SimulationSettings()
    return [
        EconomySystem(),
        OpponentSystem(
            chance=settings.opponent_reinforce_chance,
            amount=settings.opponent_reinforce_amount,
            rng=rng,
        ),
    ]
