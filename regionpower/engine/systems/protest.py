from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Satisfaction thresholds and countdowns (seconds).
UNREST_THRESHOLD = 30.0
RIOT_TIMER = 60.0
PROTEST_TIMER = 300.0

class ProtestState(str, Enum):
    STABLE = "stable"
    PROTESTING = "protesting"
    LOST_CONTROL = "lost_control"


@dataclass(frozen=True)
class ProtestOutcome:
    state: ProtestState
    timer: Optional[float]
    # True only on the tick a protest begins.
    started: bool = False
    # True only on the tick a protest is resolved by recovery.
    ended: bool = False


def is_protesting(timer: Optional[float]) -> bool:
    return timer is not None and timer > 0


def advance_protest(satisfaction: float, timer: Optional[float], elapsed_seconds: float) -> ProtestOutcome:
    """
    Runs one step of the unrest state machine.

    Stable      -> Protesting(60)   satisfaction <= 0 (checked first)
    Stable      -> Protesting(300)  satisfaction < 30
    Protesting  -> Stable           satisfaction >= 30
    Protesting  -> Protesting(t-dt) otherwise, unless t-dt <= 0
    Protesting  -> LostControl      t-dt <= 0
    """
    if not is_protesting(timer):
        if satisfaction <= 0:
            return ProtestOutcome(ProtestState.PROTESTING, RIOT_TIMER, started=True)
        if satisfaction < UNREST_THRESHOLD:
            return ProtestOutcome(ProtestState.PROTESTING, PROTEST_TIMER, started=True)
        return ProtestOutcome(ProtestState.STABLE, None)

    if satisfaction >= UNREST_THRESHOLD:
        return ProtestOutcome(ProtestState.STABLE, None, ended=True)

    remaining = timer - elapsed_seconds
    if remaining <= 0:
        return ProtestOutcome(ProtestState.LOST_CONTROL, None)
    return ProtestOutcome(ProtestState.PROTESTING, remaining)
