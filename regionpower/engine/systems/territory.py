from regionpower.shared.buildings import BuildingCatalog
from regionpower.shared.settlements import Owner, limits_of

def apply_ownership_change(state, settlement_id: int, new_owner: str):
    """
    Transfers a settlement to a new owner (capture, diplomacy, editor).
    Any running protest belongs to the previous owner and is dropped.
    """
    try:
        owner = Owner(new_owner)
    except ValueError:
        print(f"[Territory] WARNING: Unknown owner '{new_owner}', ignoring capture of {settlement_id}.")
        return

    try:
        state.update_settlement(settlement_id, {"owner": owner.value, "protest_timer": None})
    except KeyError as e:
        print(f"[Territory] WARNING: Ownership change skipped: {e}")


def apply_construction(state, catalog: BuildingCatalog, settlement_id: int, building_id: str) -> bool:
    """
    Builds one instance of 'building_id' in a settlement, paying from the pool.

    Rejected (returns False) when the building is unknown, not available in
    this settlement, at its limit, or unaffordable. Nothing is spent then.
    """
    definition = catalog.get(building_id)
    if definition is None:
        print(f"[Territory] WARNING: Unknown building '{building_id}'.")
        return False

    try:
        row = state.get_settlement(settlement_id)
    except KeyError as e:
        print(f"[Territory] WARNING: Construction skipped: {e}")
        return False

    available = row["available_buildings"] or []
    if available and building_id not in available:
        print(f"[Territory] '{building_id}' is not available in settlement {settlement_id}.")
        return False

    buildings = list(row["buildings"] or [])
    limit = min(definition.max_count, limits_of(row).get(building_id, definition.max_count))
    if buildings.count(building_id) >= limit:
        print(f"[Territory] '{building_id}' limit ({limit}) reached in settlement {settlement_id}.")
        return False

    pool = state.get_resource_pool()
    if not pool.can_afford(definition.cost):
        print(f"[Territory] Not enough resources for '{building_id}' in settlement {settlement_id}.")
        return False

    pool.spend(definition.cost)
    state.set_resource_pool(pool)
    state.update_settlement(settlement_id, {"buildings": buildings + [building_id]})
    return True
