import polars as pl
from dataclasses import dataclass, field
from typing import Any, Dict, List

from regionpower.shared.actions import GameAction
from regionpower.shared.buildings import BuildingCatalog
from regionpower.shared.events import GameEvent
from regionpower.shared.resources import ResourcePool
from regionpower.shared.settlements import SETTLEMENT_SCHEMA

@dataclass
class WorldStateStore:
    """
    The central data store of a running game.

    Settlements are held as a flat polars table ('settlements'); the player
    faction's inventory is a single ResourcePool shared by every
    player-owned settlement. Systems never reach into these fields directly:
    the get_/update_/set_ methods below are the only mutation surface.
    """

    catalog: BuildingCatalog = field(default_factory=lambda: BuildingCatalog([]))

    # Keys are table names. Values are Polars DataFrames.
    tables: Dict[str, pl.DataFrame] = field(default_factory=lambda: {
        "settlements": pl.DataFrame(schema=SETTLEMENT_SCHEMA)
    })

    resources: ResourcePool = field(default_factory=ResourcePool)

    # Global simulation variables that don't fit into tables.
    globals: Dict[str, Any] = field(default_factory=lambda: {
        "tick": 0,
        "population": 0,
        "military": 0,
        "income_summary": {},
    })

    # Transient per-tick buffers. Not persisted.
    current_actions: List[GameAction] = field(default_factory=list)
    events: List[GameEvent] = field(default_factory=list)

    def get_table(self, name: str) -> pl.DataFrame:
        """
        Retrieves a reference to a simulation table.
        Raises KeyError if the table is missing to prevent silent logic failures.
        """
        if name not in self.tables:
            raise KeyError(f"Table '{name}' not found in WorldStateStore. Ensure Loader has initialized it.")
        return self.tables[name]

    def update_table(self, name: str, df: pl.DataFrame):
        """
        Replaces a table in the state.

        Note:
            Polars DataFrames are immutable, so 'updating' a table means
            swapping the reference. Readers holding the old frame keep a
            consistent snapshot.
        """
        self.tables[name] = df

    # --- Settlements ---

    def get_settlements(self) -> pl.DataFrame:
        return self.get_table("settlements")

    def get_settlement(self, settlement_id: int) -> Dict[str, Any]:
        rows = self.get_settlements().filter(pl.col("id") == settlement_id)
        if rows.is_empty():
            raise KeyError(f"Settlement {settlement_id} not found")
        return rows.row(0, named=True)

    def update_settlement(self, settlement_id: int, fields: Dict[str, Any]):
        """
        Applies a partial update to one settlement.
        Raises KeyError for unknown ids or unknown columns.
        """
        df = self.get_settlements()
        if df.filter(pl.col("id") == settlement_id).is_empty():
            raise KeyError(f"Settlement {settlement_id} not found")

        unknown = set(fields) - set(SETTLEMENT_SCHEMA)
        if unknown:
            raise KeyError(f"Unknown settlement fields: {sorted(unknown)}")

        schema = {"id": SETTLEMENT_SCHEMA["id"], **{name: SETTLEMENT_SCHEMA[name] for name in fields}}
        patch = pl.DataFrame([{"id": settlement_id, **fields}], schema=schema)
        # include_nulls: setting a field to None (e.g. protest_timer) must stick.
        df = df.update(patch, on="id", include_nulls=True)
        self.update_table("settlements", df)

    def set_settlements(self, df: pl.DataFrame):
        self.update_table("settlements", df)

    # --- Resource pool ---

    def get_resource_pool(self) -> ResourcePool:
        """Returns a copy, so callers can compute against a stable snapshot."""
        return self.resources.copy()

    def set_resource_pool(self, pool: ResourcePool):
        pool = pool.copy()
        pool.clamp()
        self.resources = pool
