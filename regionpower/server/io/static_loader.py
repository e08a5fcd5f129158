import rtoml
import polars as pl
from pathlib import Path
from typing import Any, Dict, List

from regionpower.shared.buildings import BuildingCatalog, BuildingDefinition, parse_building
from regionpower.shared.config import GameConfig
from regionpower.shared.resources import ResourcePool
from regionpower.engine.systems.rules import MAX_SATISFACTION, MIN_SATISFACTION
from regionpower.shared.settlements import MAX_TAX_RATE, MIN_TAX_RATE, Owner, settlements_frame
from regionpower.server.state import WorldStateStore

class StaticAssetLoader:
    """
    Responsible for loading immutable game data from static TOML files.
    It populates the initial WorldStateStore with Definitions, Entities and the
    starting inventory.

    Architecture:
    1. Definitions (data/definitions/buildings.toml): the building catalog.
    2. Settlements (data/world/settlements.toml): cities and regions.
    3. Resources (data/world/resources.toml): the starting resource pool.

    Every active mod is read in load order; later mods override earlier ones
    by id (buildings, settlements) or by key (resources).
    """

    def __init__(self, config: GameConfig):
        self.config = config

    def compile_initial_state(self) -> WorldStateStore:
        """
        Aggregates data from all active mods to build the starting world state.
        """
        print("[StaticLoader] Compiling immutable game data...")

        # PHASE 1: Definitions must exist before anything references them.
        catalog = self.load_catalog()

        # PHASE 2: Entities
        settlements = self._load_settlements()

        # PHASE 3: Global inventory
        pool = self._load_resources()

        state = WorldStateStore(catalog=catalog, resources=pool)
        state.set_settlements(settlements)
        print(f"[StaticLoader] Loaded {len(catalog)} buildings and {settlements.height} settlements.")
        return state

    # =========================================================================
    # SECTION: Definitions
    # =========================================================================

    def load_catalog(self) -> BuildingCatalog:
        definitions: List[BuildingDefinition] = []
        for entry in self._collect_list("definitions", "buildings"):
            try:
                definitions.append(parse_building(entry))
            except (KeyError, ValueError, TypeError) as e:
                # We log the error but continue loading other entries to make the engine robust.
                print(f"[StaticLoader] Skipping invalid building {entry.get('id', '?')}: {e}")
        return BuildingCatalog(definitions)

    # =========================================================================
    # SECTION: World
    # =========================================================================

    def _load_settlements(self) -> pl.DataFrame:
        rows = []
        for entry in self._collect_list("world", "settlements"):
            try:
                rows.append(self._check_settlement(entry))
            except (KeyError, ValueError, TypeError) as e:
                print(f"[StaticLoader] Skipping invalid settlement {entry.get('id', '?')}: {e}")
        if not rows:
            print("[StaticLoader] Warning: No settlement definitions found.")

        df = settlements_frame(rows)
        # keep='last' means the last loaded mod (highest priority) wins.
        return df.unique(subset=["id"], keep="last", maintain_order=True).sort("id")

    @staticmethod
    def _check_settlement(entry: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validates one settlement entry. Raises on rows the engine cannot
        simulate; out-of-range values are clamped and logged.
        """
        row = dict(entry)
        for key in ("id", "max_population"):
            if key not in row:
                raise KeyError(f"missing '{key}'")
            if isinstance(row[key], bool) or not isinstance(row[key], int):
                raise TypeError(f"'{key}' must be an integer, got {row[key]!r}")
        if row["max_population"] < 0:
            raise ValueError(f"negative max_population {row['max_population']}")
        if "owner" in row:
            row["owner"] = Owner(row["owner"]).value

        limits = {
            "population": (0, row["max_population"]),
            "satisfaction": (MIN_SATISFACTION, MAX_SATISFACTION),
            "tax_rate": (MIN_TAX_RATE, MAX_TAX_RATE),
        }
        for key, (low, high) in limits.items():
            value = row.get(key)
            if value is None:
                continue
            clamped = min(high, max(low, value))
            if clamped != value:
                print(f"[StaticLoader] Settlement {row['id']}: {key} {value} clamped to {clamped}")
                row[key] = clamped
        return row

    def _load_resources(self) -> ResourcePool:
        merged: Dict[str, float] = {}
        for data_dir in self.config.get_data_dirs():
            path = data_dir / "world" / "resources.toml"
            data = self._read_toml(path)
            table = data.get("resources", {})
            if isinstance(table, dict):
                merged.update(table)

        try:
            return ResourcePool(merged)
        except ValueError as e:
            print(f"[StaticLoader] Invalid starting resources, using empty pool: {e}")
            return ResourcePool()

    # =========================================================================
    # SECTION: TOML helpers
    # =========================================================================

    def _collect_list(self, folder_name: str, key: str) -> List[Dict[str, Any]]:
        """
        Reads '[[key]]' arrays from '<mod>/data/<folder_name>/<key>.toml'
        in every active mod, in load order.
        """
        collected: List[Dict[str, Any]] = []
        for data_dir in self.config.get_data_dirs():
            path = data_dir / folder_name / f"{key}.toml"
            raw = self._read_toml(path).get(key)
            if raw is None:
                continue
            if not isinstance(raw, list):
                print(f"[StaticLoader] Expected a list under '{key}' in {path.name}")
                continue
            collected.extend(item for item in raw if isinstance(item, dict))
            print(f"[StaticLoader] Loaded '{folder_name}/{key}' from {path}")
        return collected

    def _read_toml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                return rtoml.load(f)
        except Exception as e:
            print(f"[StaticLoader] Error reading {path}: {e}")
            return {}
