import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson
import polars as pl

from regionpower.server.state import WorldStateStore
from regionpower.shared.buildings import BuildingCatalog
from regionpower.shared.config import GameConfig
from regionpower.shared.resources import ResourcePool

SAVE_VERSION = 1
META_FILE = "meta.json"
TABLES_DIR = "tables"

# Globals that are derived every tick and not worth persisting.
TRANSIENT_GLOBALS = {"income_summary"}

@dataclass(frozen=True)
class SaveInfo:
    name: str
    timestamp: str
    tick: int


def sanitize_save_name(save_name: str) -> str:
    return "".join(c for c in save_name if c.isalnum() or c in " _-").strip()


class SaveManager:
    """
    Stores snapshots of a WorldStateStore under '<user_dir>/user_data/saves'.

    Layout of a save:
        <name>/tables/<table>.parquet   one file per polars table
        <name>/meta.json                resources, globals, timestamp (orjson)

    A save is first written to '<name>.partial' and renamed into place,
    so a crash mid-write never leaves a half-written save behind.
    """

    def __init__(self, config: GameConfig):
        self.save_root: Path = config.saves_dir
        self.save_root.mkdir(parents=True, exist_ok=True)

    def _slot(self, save_name: str) -> Optional[Path]:
        name = sanitize_save_name(save_name)
        return self.save_root / name if name else None

    def save_game(self, state: WorldStateStore, save_name: str) -> bool:
        slot = self._slot(save_name)
        if slot is None:
            print(f"[SaveManager] Error: Invalid save name '{save_name}'")
            return False

        partial = slot.with_name(f"{slot.name}.partial")
        print(f"[SaveManager] Saving '{slot.name}'...")
        try:
            shutil.rmtree(partial, ignore_errors=True)
            (partial / TABLES_DIR).mkdir(parents=True)

            for name, df in state.tables.items():
                df.write_parquet(partial / TABLES_DIR / f"{name}.parquet")
            (partial / META_FILE).write_bytes(orjson.dumps(self._meta(state), option=orjson.OPT_INDENT_2))

            shutil.rmtree(slot, ignore_errors=True)
            partial.rename(slot)
        except Exception as e:
            print(f"[SaveManager] Critical Save Failure: {e}")
            shutil.rmtree(partial, ignore_errors=True)
            return False

        print(f"[SaveManager] Saved '{slot.name}' (tick {state.globals.get('tick', 0)}).")
        return True

    @staticmethod
    def _meta(state: WorldStateStore) -> Dict[str, Any]:
        return {
            "version": SAVE_VERSION,
            "timestamp": datetime.now().isoformat(),
            "resources": state.resources.to_dict(),
            "globals": {k: v for k, v in state.globals.items() if k not in TRANSIENT_GLOBALS},
        }

    def load_game(self, save_name: str, catalog: BuildingCatalog) -> Optional[WorldStateStore]:
        """
        Rebuilds a store from a save. The catalog is static data and is
        supplied by the caller rather than stored in the save.
        Returns None if the save is missing or unreadable.
        """
        slot = self._slot(save_name)
        if slot is None or not (slot / META_FILE).exists():
            print(f"[SaveManager] Save '{save_name}' not found.")
            return None

        try:
            meta = orjson.loads((slot / META_FILE).read_bytes())
            state = WorldStateStore(catalog=catalog, resources=ResourcePool(meta.get("resources", {})))
            state.globals.update(meta.get("globals", {}))
            for table_file in sorted((slot / TABLES_DIR).glob("*.parquet")):
                state.update_table(table_file.stem, pl.read_parquet(table_file))
        except Exception as e:
            print(f"[SaveManager] Failed to load '{save_name}': {e}")
            return None

        print(f"[SaveManager] Loaded '{slot.name}' (tick {state.globals.get('tick', 0)}).")
        return state

    def get_save_list(self) -> List[SaveInfo]:
        """Newest first. Unreadable saves are left out."""
        saves = []
        for meta_file in self.save_root.glob(f"*/{META_FILE}"):
            if meta_file.parent.suffix == ".partial":
                continue
            try:
                meta = orjson.loads(meta_file.read_bytes())
            except (OSError, orjson.JSONDecodeError) as e:
                print(f"[SaveManager] Skipping unreadable save '{meta_file.parent.name}': {e}")
                continue
            saves.append(SaveInfo(
                name=meta_file.parent.name,
                timestamp=meta.get("timestamp", ""),
                tick=meta.get("globals", {}).get("tick", 0),
            ))
        return sorted(saves, key=lambda s: s.timestamp, reverse=True)

    def delete_save(self, save_name: str) -> bool:
        slot = self._slot(save_name)
        if slot is None or not slot.is_dir():
            return False
        try:
            shutil.rmtree(slot)
        except OSError as e:
            print(f"[SaveManager] Failed to delete '{save_name}': {e}")
            return False
        print(f"[SaveManager] Deleted save '{slot.name}'.")
        return True
