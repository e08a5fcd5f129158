from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping

import polars as pl

class Owner(str, Enum):
    PLAYER = "player"
    NEUTRAL = "neutral"
    ENEMY = "enemy"


DEFAULT_SATISFACTION = 50.0
DEFAULT_TAX_RATE = 5
MIN_TAX_RATE = 0
MAX_TAX_RATE = 10

# Canonical column layout of the 'settlements' table.
# Loader, store and engine all build frames against this schema so that
# nullable columns (protest_timer) never collapse to the Null dtype.
LIMIT_STRUCT = pl.Struct({"building": pl.String, "limit": pl.Int64})

SETTLEMENT_SCHEMA: Dict[str, pl.DataType] = {
    "id": pl.Int64,
    "name": pl.String,
    "latitude": pl.Float64,
    "longitude": pl.Float64,
    "population": pl.Int64,
    "max_population": pl.Int64,
    "owner": pl.String,
    "military": pl.Int64,
    "buildings": pl.List(pl.String),
    "available_buildings": pl.List(pl.String),
    "building_limits": pl.List(LIMIT_STRUCT),
    "satisfaction": pl.Float64,
    "tax_rate": pl.Int64,
    "protest_timer": pl.Float64,
}

# snake_case column -> camelCase field used by clients.
PAYLOAD_FIELDS = {
    "id": "id",
    "name": "name",
    "latitude": "latitude",
    "longitude": "longitude",
    "population": "population",
    "max_population": "maxPopulation",
    "owner": "owner",
    "military": "military",
    "buildings": "buildings",
    "available_buildings": "availableBuildings",
    "building_limits": "buildingLimits",
    "satisfaction": "satisfaction",
    "tax_rate": "taxRate",
    "protest_timer": "protestTimer",
}


def _normalize_row(raw: Mapping[str, Any]) -> Dict[str, Any]:
    row = dict(raw)

    # Limits are written as a plain table in data files ({ farm = 3 }).
    limits = row.get("building_limits")
    if isinstance(limits, Mapping):
        row["building_limits"] = [{"building": k, "limit": int(v)} for k, v in limits.items()]

    row.setdefault("buildings", [])
    row.setdefault("available_buildings", [])
    row.setdefault("building_limits", [])
    row.setdefault("owner", Owner.NEUTRAL.value)
    row.setdefault("military", 0)
    row.setdefault("population", 0)
    if row.get("satisfaction") is None:
        row["satisfaction"] = DEFAULT_SATISFACTION
    if row.get("tax_rate") is None:
        row["tax_rate"] = DEFAULT_TAX_RATE
    return {col: row.get(col) for col in SETTLEMENT_SCHEMA}


def settlements_frame(rows: Iterable[Mapping[str, Any]]) -> pl.DataFrame:
    """
    Builds a 'settlements' table from raw dicts (TOML entries, test fixtures).
    Missing optional fields receive their defaults.
    """
    normalized = [_normalize_row(r) for r in rows]
    if not normalized:
        return pl.DataFrame(schema=SETTLEMENT_SCHEMA)
    return pl.DataFrame(normalized, schema=SETTLEMENT_SCHEMA)


def limits_of(row: Mapping[str, Any]) -> Dict[str, int]:
    """Per-settlement limit overrides as a plain dict."""
    return {entry["building"]: entry["limit"] for entry in (row.get("building_limits") or [])}


def to_payload(df: pl.DataFrame) -> List[Dict[str, Any]]:
    """Converts the table into the camelCase list sent to clients."""
    payload = []
    for row in df.iter_rows(named=True):
        item = {PAYLOAD_FIELDS[k]: v for k, v in row.items() if k in PAYLOAD_FIELDS}
        item["buildingLimits"] = limits_of(row)
        payload.append(item)
    return payload
