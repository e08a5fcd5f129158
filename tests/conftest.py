import pytest

from regionpower.shared.buildings import BuildingCatalog
from regionpower.shared.resources import ResourcePool
from regionpower.shared.settlements import settlements_frame

# A small catalog with round numbers, so expected values are easy to derive.
TEST_BUILDINGS = [
    {"id": "house", "name": "House", "population": {"housing": 10, "growth": 3}, "max_count": 10},
    {"id": "farm", "name": "Farm", "production": {"type": "food", "amount": 10}, "max_count": 5},
    {
        "id": "mine", "name": "Mine",
        "production": {"type": "metal", "amount": 2},
        "workers": 50,
        "max_count": 5,
    },
    {
        "id": "refinery", "name": "Refinery",
        "production": {"type": "oil", "amount": 4},
        "consumption": {"type": "gold", "amount": 1},
        "max_count": 5,
    },
    {
        "id": "steel_mill", "name": "Steel Mill",
        "production": {"type": "steel", "amount": 1},
        "consumption": {"metal": 2, "oil": 1},
        "max_count": 3,
    },
    {"id": "barracks", "name": "Barracks", "military": {"production": 10, "population_use": 1}, "max_count": 5},
    {"id": "embassy", "name": "Embassy", "production": {"type": "influence", "amount": 1}, "max_count": 1},
    {"id": "theater", "name": "Theater", "satisfaction_bonus": 10, "max_count": 3},
]


@pytest.fixture
def catalog():
    return BuildingCatalog.from_dicts(TEST_BUILDINGS)


@pytest.fixture
def make_settlement():
    """Returns a builder for a one-row (or multi-row) settlements table."""
    def _make(*rows):
        defaults = {
            "name": "Testgrad",
            "latitude": 0.0,
            "longitude": 0.0,
            "population": 100,
            "max_population": 1000,
            "owner": "player",
        }
        return settlements_frame(
            [{**defaults, "id": i + 1, **row} for i, row in enumerate(rows)]
        )
    return _make


@pytest.fixture
def pool():
    def _pool(**amounts):
        return ResourcePool(amounts)
    return _pool
