from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from regionpower.shared.resources import Resource

# Building definitions are immutable blueprints. Everything optional in the
# data files is normalized here, once, so the tick engine never has to
# inspect raw shapes.

@dataclass(frozen=True)
class ResourceYield:
    """A single produced resource: {type, amount} per second."""
    type: Resource
    amount: float

@dataclass(frozen=True)
class SingleEffect:
    """Consumption written as a single {type, amount} entry."""
    type: Resource
    amount: float

    def amounts(self) -> Dict[Resource, float]:
        return {self.type: self.amount}

@dataclass(frozen=True)
class MultiEffect:
    """Consumption written as a mapping of several resource kinds."""
    mapping: Dict[Resource, float]

    def amounts(self) -> Dict[Resource, float]:
        return dict(self.mapping)

ResourceEffect = Union[SingleEffect, MultiEffect]

@dataclass(frozen=True)
class PopulationEffect:
    housing: int = 0
    growth_per_second: float = 0.0

@dataclass(frozen=True)
class MilitaryEffect:
    production_per_second: float
    population_use_per_unit: int = 0

@dataclass(frozen=True)
class BuildingDefinition:
    id: str
    name: str
    max_count: int
    description: str = ""
    cost: Dict[Resource, float] = field(default_factory=dict)
    production: Optional[ResourceYield] = None
    # Always a mapping (possibly empty) after parsing.
    consumption: Dict[Resource, float] = field(default_factory=dict)
    population: Optional[PopulationEffect] = None
    military: Optional[MilitaryEffect] = None
    workers: int = 0
    satisfaction_bonus: float = 0.0


def parse_resource_effect(raw: Any) -> ResourceEffect:
    """
    Accepts both shapes found in data files:
        { type = "oil", amount = 1 }
        { metal = 2, oil = 1 }
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"Resource effect must be a table, got {type(raw).__name__}")
    if "type" in raw:
        return SingleEffect(Resource.parse(raw["type"]), float(raw.get("amount", 0)))
    return MultiEffect({Resource.parse(k): float(v) for k, v in raw.items()})


def parse_building(data: Mapping[str, Any]) -> BuildingDefinition:
    """
    Builds a definition from a raw TOML/dict entry.
    Raises ValueError/KeyError on malformed entries.
    """
    if "id" not in data:
        raise KeyError("Building definition is missing 'id'")

    production = None
    if data.get("production"):
        raw = data["production"]
        production = ResourceYield(Resource.parse(raw["type"]), float(raw["amount"]))

    consumption: Dict[Resource, float] = {}
    if data.get("consumption"):
        consumption = parse_resource_effect(data["consumption"]).amounts()

    population = None
    if data.get("population"):
        raw = data["population"]
        population = PopulationEffect(
            housing=int(raw.get("housing", 0)),
            growth_per_second=float(raw.get("growth", 0.0)),
        )

    military = None
    if data.get("military"):
        raw = data["military"]
        military = MilitaryEffect(
            production_per_second=float(raw.get("production", 0.0)),
            population_use_per_unit=int(raw.get("population_use", 0)),
        )

    return BuildingDefinition(
        id=str(data["id"]),
        name=str(data.get("name", data["id"])),
        description=str(data.get("description", "")),
        cost={Resource.parse(k): float(v) for k, v in data.get("cost", {}).items()},
        production=production,
        consumption=consumption,
        population=population,
        military=military,
        workers=int(data.get("workers", 0)),
        satisfaction_bonus=float(data.get("satisfaction_bonus", 0.0)),
        max_count=int(data.get("max_count", 1)),
    )


class BuildingCatalog:
    """
    Ordered, read-only collection of building definitions.
    Catalog order is the order in which the engine evaluates buildings.
    """

    def __init__(self, definitions: Iterable[BuildingDefinition]):
        self._definitions: Dict[str, BuildingDefinition] = {}
        for definition in definitions:
            # Later definitions override earlier ones (mods load after base)
            # but keep the original catalog position.
            self._definitions[definition.id] = definition
        self._order: Dict[str, int] = {bid: i for i, bid in enumerate(self._definitions)}

    @classmethod
    def from_dicts(cls, entries: Iterable[Mapping[str, Any]]) -> "BuildingCatalog":
        return cls(parse_building(e) for e in entries)

    def __iter__(self) -> Iterator[BuildingDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, building_id: str) -> bool:
        return building_id in self._definitions

    def get(self, building_id: str) -> Optional[BuildingDefinition]:
        return self._definitions.get(building_id)

    @property
    def ids(self) -> List[str]:
        return list(self._definitions)

    def in_catalog_order(self, building_ids: Iterable[str]) -> List[BuildingDefinition]:
        """
        Resolves a settlement's building multiset into definitions sorted by
        catalog position. Unknown ids are dropped.
        """
        known = [b for b in building_ids if b in self._definitions]
        known.sort(key=self._order.__getitem__)
        return [self._definitions[b] for b in known]
