import json
import rtoml
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

# The installed package directory. Game data ships inside it under 'modules/'.
PACKAGE_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_MODS = ["base"]

@dataclass
class SimulationSettings:
    """
    Tunables read from 'server.toml'. Every field can be overridden
    by a key of the same name under the [simulation] table.
    """
    tick_interval: float = 1.0
    opponent_reinforce_chance: float = 0.1
    opponent_reinforce_amount: int = 5
    broadcast_workers: int = 4

    def override(self, values: Dict[str, Any]):
        """Unknown keys are ignored; values are cast to the field's type."""
        for f in fields(self):
            if f.name in values:
                setattr(self, f.name, type(getattr(self, f.name))(values[f.name]))


class GameConfig:
    """
    Where things live, and how the server is tuned.

    Static game data is read from '<project_root>/modules/<mod>/data'.
    Everything a server operator owns sits in 'user_dir' (the working
    directory by default):
        mods.json         {"active_mods": ["base", "my_mod"]}, load order
        server.toml       [simulation] overrides for SimulationSettings
        user_data/saves/  SaveManager output
    """
    def __init__(self, project_root: Path = PACKAGE_ROOT, user_dir: Optional[Path] = None):
        self.project_root = project_root
        self.user_dir = user_dir if user_dir is not None else Path.cwd()

        self.modules_dir = project_root / "modules"
        self.mods_file = self.user_dir / "mods.json"
        self.settings_file = self.user_dir / "server.toml"
        self.saves_dir = self.user_dir / "user_data" / "saves"

        self.active_mods: List[str] = self._read_active_mods()
        self.settings = SimulationSettings()
        self.settings.override(self._read_simulation_table())

    def _read_active_mods(self) -> List[str]:
        if not self.mods_file.exists():
            return list(DEFAULT_MODS)
        try:
            manifest = json.loads(self.mods_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            print(f"[Config] Warning: Failed to parse mods.json: {e}")
            return list(DEFAULT_MODS)

        mods = manifest.get("active_mods") if isinstance(manifest, dict) else None
        if not isinstance(mods, list):
            print("[Config] Warning: mods.json has no 'active_mods' list, using defaults")
            return list(DEFAULT_MODS)
        print(f"[Config] Mod load order: {mods}")
        return mods

    def _read_simulation_table(self) -> Dict[str, Any]:
        if not self.settings_file.exists():
            return {}
        try:
            table = rtoml.load(self.settings_file).get("simulation", {})
        except (OSError, rtoml.TomlParsingError) as e:
            print(f"[Config] Warning: Failed to parse server.toml: {e}")
            return {}
        return table if isinstance(table, dict) else {}

    def get_data_dirs(self) -> List[Path]:
        """Data directories of the active mods that exist, in load order."""
        return [d for d in (self.modules_dir / mod / "data" for mod in self.active_mods) if d.is_dir()]
