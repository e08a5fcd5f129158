from dataclasses import dataclass

# We use dataclasses here because they provide a concise way to define
# data structures that are immutable by convention and easy to serialize
# (e.g., to JSON for the WebSocket gateway).
@dataclass
class GameAction:
    """
    Base class for all discrete game actions following the Command Pattern.

    Architecture Note:
        Clients do not modify the world directly. They issue Actions,
        which the session queues and the Engine applies at the start of
        the next tick, before any system reads its snapshot.
    """
    # Identifies who initiated the action ('local_player', 'server', or a specific player ID).
    player_id: str

# --- Territory Actions ---

@dataclass
class ActionSetSettlementOwner(GameAction):
    """
    Transfers ownership of a settlement (capture, diplomacy, editor painting).
    """
    settlement_id: int
    new_owner: str

# --- Economy Actions ---

@dataclass
class ActionSetTax(GameAction):
    """
    Updates the tax rate of a single settlement. Clamped to [0, 10].
    """
    settlement_id: int
    tax_rate: int

@dataclass
class ActionConstructBuilding(GameAction):
    """
    Builds one instance of a catalog building, paying its cost from the pool.
    """
    settlement_id: int
    building_id: str
