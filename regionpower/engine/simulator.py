from typing import Dict, List, Sequence

from regionpower.server.state import WorldStateStore
from regionpower.shared.actions import (
    ActionConstructBuilding, ActionSetSettlementOwner, ActionSetTax, GameAction,
)
from regionpower.engine.interfaces import ISystem
from regionpower.engine.systems import economy, territory

def resolve_order(systems: Sequence[ISystem]) -> List[ISystem]:
    """
    Sorts systems so every system runs after its dependencies.
    Dependencies on systems that are not registered are ignored.
    Raises ValueError on cycles.
    """
    by_id: Dict[str, ISystem] = {s.id: s for s in systems}
    ordered: List[ISystem] = []
    visiting, done = set(), set()

    def visit(system: ISystem):
        if system.id in done:
            return
        if system.id in visiting:
            raise ValueError(f"Dependency cycle detected at system '{system.id}'")
        visiting.add(system.id)
        for dep in system.dependencies:
            if dep in by_id:
                visit(by_id[dep])
        visiting.discard(system.id)
        done.add(system.id)
        ordered.append(system)

    # Registration order breaks ties, which keeps the result stable.
    for system in systems:
        visit(system)
    return ordered


class Engine:
    """
    The deterministic core of the simulation.

    Design Philosophy:
        The Engine is 'Functional' in nature.
        Input: State + Actions + Time
        Output: New State

        It is completely decoupled from the scheduler and the network.
        This allows us to run this logic on a headless server
        or inside a local Pytest suite with zero changes.
    """

    @staticmethod
    def step(state: WorldStateStore, actions: List[GameAction], delta_time: float, systems: Sequence[ISystem]):
        """
        Advances the simulation by one 'Tick'.

        Args:
            state: The WorldStateStore holding settlements and the resource pool.
            actions: Player/AI commands queued since the previous tick.
            delta_time: Wall-clock seconds since the previous tick.
            systems: Systems in execution order (see resolve_order).
        """
        state.events.clear()
        state.current_actions = list(actions)

        # 1. Process Discrete Actions (Command Pattern)
        # Applied before any system takes its snapshot, in submission order.
        for action in actions:
            Engine._apply_action(state, action)

        # 2. Continuous Simulation (Systems)
        for system in systems:
            system.update(state, delta_time)

        # 3. Update Meta-State
        state.globals["tick"] += 1
        state.current_actions = []

    @staticmethod
    def _apply_action(state: WorldStateStore, action: GameAction):
        """
        Routes a generic GameAction to the specific system logic.
        """
        match action:
            # --- Territory Logic ---
            case ActionSetSettlementOwner(player_id, settlement_id, new_owner):
                territory.apply_ownership_change(state, settlement_id, new_owner)

            case ActionConstructBuilding(player_id, settlement_id, building_id):
                territory.apply_construction(state, state.catalog, settlement_id, building_id)

            # --- Economy Logic ---
            case ActionSetTax(player_id, settlement_id, tax_rate):
                economy.apply_tax_change(state, settlement_id, tax_rate)

            # --- Fallback ---
            case _:
                print(f"[Engine] WARNING: Received unhandled action type: {type(action).__name__}")
