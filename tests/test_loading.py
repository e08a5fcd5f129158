import json

import pytest

from regionpower.modules.base.systems.economy_system import EconomySystem
from regionpower.server.io.static_loader import StaticAssetLoader
from regionpower.server.session import GameSession
from regionpower.shared.config import GameConfig
from regionpower.shared.resources import Resource

def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    write(root / "modules/base/data/definitions/buildings.toml", """
[[buildings]]
id = "farm"
name = "Farm"
production = { type = "food", amount = 10 }
max_count = 50

[[buildings]]
id = "broken"
production = { type = "mana", amount = 1 }

[[buildings]]
id = "steel_mill"
consumption = { metal = 2, oil = 1 }
production = { type = "steel", amount = 1 }
max_count = 3
""")
    write(root / "modules/base/data/world/settlements.toml", """
[[settlements]]
id = 2
name = "Second"
latitude = 1.0
longitude = 2.0
population = 10
max_population = 100

[[settlements]]
id = 1
name = "First"
latitude = 1.0
longitude = 2.0
population = 20
max_population = 200
owner = "player"
buildings = ["farm"]
building_limits = { farm = 2 }
""")
    write(root / "modules/base/data/world/resources.toml", """
[resources]
gold = 500
food = 250
""")
    write(root / "modules/extra/data/world/settlements.toml", """
[[settlements]]
id = 2
name = "Second (modded)"
latitude = 1.0
longitude = 2.0
population = 99
max_population = 100
owner = "enemy"
""")
    write(root / "modules/extra/data/world/resources.toml", """
[resources]
food = 1000
""")
    return root


def test_loads_base_module(project, tmp_path):
    state = StaticAssetLoader(GameConfig(project_root=project, user_dir=tmp_path)).compile_initial_state()

    # The invalid building is skipped, the rest keep file order.
    assert state.catalog.ids == ["farm", "steel_mill"]
    assert state.catalog.get("steel_mill").consumption == {Resource.METAL: 2.0, Resource.OIL: 1.0}

    df = state.get_settlements()
    assert df.get_column("id").to_list() == [1, 2]
    first = state.get_settlement(1)
    assert first["satisfaction"] == 50
    assert first["tax_rate"] == 5
    assert first["protest_timer"] is None
    assert first["building_limits"] == [{"building": "farm", "limit": 2}]
    assert state.get_settlement(2)["owner"] == "neutral"

    assert state.resources[Resource.GOLD] == 500
    assert state.resources[Resource.FOOD] == 250


def test_later_mods_override(project, tmp_path):
    (tmp_path / "mods.json").write_text(json.dumps({"active_mods": ["base", "extra"]}))
    config = GameConfig(project_root=project, user_dir=tmp_path)

    state = StaticAssetLoader(config).compile_initial_state()

    assert state.get_settlement(2)["name"] == "Second (modded)"
    assert state.get_settlement(2)["owner"] == "enemy"
    assert state.get_settlements().height == 2
    assert state.resources[Resource.FOOD] == 1000
    assert state.resources[Resource.GOLD] == 500


def test_shipped_data_loads(tmp_path):
    state = StaticAssetLoader(GameConfig(user_dir=tmp_path)).compile_initial_state()

    assert "farm" in state.catalog
    assert state.catalog.get("steel_factory").consumption[Resource.METAL] == 2
    assert state.get_settlements().height > 0
    assert state.resources[Resource.GOLD] > 0


def test_settings_overrides(tmp_path):
    (tmp_path / "server.toml").write_text("[simulation]\ntick_interval = 2\nopponent_reinforce_amount = 7\n")

    settings = GameConfig(user_dir=tmp_path).settings

    assert settings.tick_interval == 2.0
    assert isinstance(settings.tick_interval, float)
    assert settings.opponent_reinforce_amount == 7
    assert settings.opponent_reinforce_chance == 0.1


def test_broken_manifest_keeps_defaults(tmp_path):
    (tmp_path / "mods.json").write_text("{not json")
    assert GameConfig(user_dir=tmp_path).active_mods == ["base"]


def test_unusable_settlements_are_skipped(tmp_path):
    root = tmp_path / "project"
    write(root / "modules/base/data/world/settlements.toml", """
[[settlements]]
id = 1
name = "Good"
latitude = 0.0
longitude = 0.0
population = 10
max_population = 100
owner = "player"

[[settlements]]
id = 2
name = "No Capacity"
latitude = 0.0
longitude = 0.0
population = 10
owner = "player"

[[settlements]]
id = 3
name = "Bad Owner"
latitude = 0.0
longitude = 0.0
max_population = 100
owner = "pirates"

[[settlements]]
name = "No Id"
latitude = 0.0
longitude = 0.0
max_population = 100
""")

    state = StaticAssetLoader(GameConfig(project_root=root, user_dir=tmp_path)).compile_initial_state()

    assert state.get_settlements().get_column("id").to_list() == [1]


def test_out_of_range_settlement_values_are_clamped(tmp_path):
    root = tmp_path / "project"
    write(root / "modules/base/data/world/settlements.toml", """
[[settlements]]
id = 1
name = "Overfull"
latitude = 0.0
longitude = 0.0
population = 5000
max_population = 1000
owner = "player"
satisfaction = 140.0
tax_rate = 25
""")

    state = StaticAssetLoader(GameConfig(project_root=root, user_dir=tmp_path)).compile_initial_state()
    city = state.get_settlement(1)

    assert city["population"] == 1000
    assert city["satisfaction"] == 100
    assert city["tax_rate"] == 10


def test_skipped_settlement_does_not_stall_ticks(tmp_path):

    root = tmp_path / "project"
    write(root / "modules/base/data/world/settlements.toml", """
[[settlements]]
id = 1
name = "Good"
latitude = 0.0
longitude = 0.0
population = 10
max_population = 100
owner = "player"

[[settlements]]
id = 2
name = "No Capacity"
latitude = 0.0
longitude = 0.0
population = 10
owner = "player"
""")
    session = GameSession(GameConfig(project_root=root, user_dir=tmp_path), systems=[EconomySystem()])
    try:
        assert [session.tick(1.0) for _ in range(3)] == [True, True, True]
        assert session.state.globals["tick"] == 3
    finally:
        session.shutdown()
