from dataclasses import dataclass

@dataclass
class GameEvent:
    """
    Base class for all internal simulation events.

    Architecture Note:
        Events are distinct from Actions.
        - Actions: External commands FROM the user/network TO the engine.
        - Events: Internal signals FROM one system TO another (or to the session log).
    """
    pass

@dataclass
class EventProtestStarted(GameEvent):
    """
    Fired when a stable settlement begins protesting.
    'timer' is the countdown (seconds) before control is lost.
    """
    settlement_id: int
    timer: float

@dataclass
class EventProtestEnded(GameEvent):
    """Fired when satisfaction recovers before the protest timer expires."""
    settlement_id: int

@dataclass
class EventSettlementLost(GameEvent):
    """
    Fired when a protest timer expires. The settlement is now neutral.
    """
    settlement_id: int

@dataclass
class EventOpponentReinforced(GameEvent):
    """Fired by the opponent driver when an enemy settlement gains units."""
    settlement_id: int
    amount: int
