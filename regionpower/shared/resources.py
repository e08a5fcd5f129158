from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

class Resource(str, Enum):
    """
    The fixed set of resource kinds tracked by the global pool.

    Inherits from 'str' so members compare equal to their raw names
    and serialize cleanly (Resource.FOOD == "food").
    """
    GOLD = "gold"
    WOOD = "wood"
    FOOD = "food"
    OIL = "oil"
    METAL = "metal"
    STEEL = "steel"
    WEAPONS = "weapons"
    INFLUENCE = "influence"

    @classmethod
    def parse(cls, key: Union[str, "Resource"]) -> "Resource":
        """
        Converts a raw key from data files into a Resource.
        Raises ValueError on unknown kinds so typos in TOML fail loudly.
        """
        if isinstance(key, Resource):
            return key
        try:
            return cls(str(key).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown resource kind '{key}'") from None


class ResourcePool:
    """
    Total mapping Resource -> float.

    Every kind is always present (missing keys are 0.0), so lookups can
    never fail with an 'unknown resource' error.
    """

    def __init__(self, amounts: Optional[Mapping[Union[str, Resource], float]] = None):
        self._amounts: Dict[Resource, float] = {r: 0.0 for r in Resource}
        if amounts:
            for key, value in amounts.items():
                self._amounts[Resource.parse(key)] = float(value)

    @classmethod
    def from_dict(cls, data: Mapping[str, float]) -> "ResourcePool":
        return cls(data)

    def __getitem__(self, resource: Resource) -> float:
        return self._amounts[resource]

    def __setitem__(self, resource: Resource, value: float):
        self._amounts[resource] = float(value)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._amounts)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResourcePool):
            return NotImplemented
        return self._amounts == other._amounts

    def __repr__(self) -> str:
        inner = ", ".join(f"{r.value}={v:.2f}" for r, v in self._amounts.items())
        return f"ResourcePool({inner})"

    def items(self) -> Iterator[Tuple[Resource, float]]:
        return iter(self._amounts.items())

    def copy(self) -> "ResourcePool":
        return ResourcePool(self._amounts)

    def add(self, resource: Resource, amount: float):
        self._amounts[resource] += amount

    def can_afford(self, costs: Mapping[Resource, float], scale: float = 1.0) -> bool:
        return all(self._amounts[r] >= amount * scale for r, amount in costs.items())

    def spend(self, costs: Mapping[Resource, float], scale: float = 1.0):
        """
        Subtracts costs without any affordability check.
        Callers are expected to check can_afford() first.
        """
        for r, amount in costs.items():
            self._amounts[r] -= amount * scale

    def clamp(self):
        """Floors every balance at zero."""
        for r, value in self._amounts.items():
            if value < 0:
                self._amounts[r] = 0.0

    def to_dict(self) -> Dict[str, float]:
        """Plain string-keyed dict for JSON payloads and save files."""
        return {r.value: v for r, v in self._amounts.items()}
