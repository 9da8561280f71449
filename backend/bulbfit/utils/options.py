"""
Option list formatting for selectable dropdowns.

Pair stages (modification, position) travel as a single string value
"<first>__<second>", with "" standing in for a missing half.
"""

from bulbfit.services.catalog import Modification, Position

PAIR_SEPARATOR = "__"

# Shown first, in this order; everything else follows alphabetically
TOP_BRANDS_ORDER = [
    "MERCEDES",
    "BMW",
    "HYUNDAI",
    "TOYOTA",
    "VOLKSWAGEN",
    "AUDI",
    "OPEL",
    "FORD",
    "PEUGEOT",
    "RENAULT",
]

_FOG_POSITIONS = {"fog lamps", "fog lamp", "fog light", "front fog light", "front fog lights"}


def option(value: str, label: str | None = None) -> dict[str, str]:
    return {"value": value, "label": label if label is not None else value}


def order_brands(brands: list[str]) -> list[str]:
    top = [b for b in TOP_BRANDS_ORDER if b in brands]
    rest = sorted(b for b in brands if b not in TOP_BRANDS_ORDER)
    return top + rest


def _norm_position(position: str) -> str:
    return position.strip().lower()


def position_order(position: str) -> int:
    """High beam -> low beam -> fog -> anything else."""
    p = _norm_position(position)
    if p == "high beam":
        return 0
    if p == "low beam":
        return 1
    if p in _FOG_POSITIONS:
        return 2
    return 999


def position_label(position: str) -> str:
    p = _norm_position(position)
    if p == "high beam":
        return "High beam"
    if p == "low beam":
        return "Low beam"
    if p in _FOG_POSITIONS:
        return "Fog lights"
    return position


def sort_positions(positions: list[Position]) -> list[Position]:
    return sorted(positions, key=lambda p: (position_order(p.position or ""), p.position or ""))


def modification_value(mod: Modification) -> str:
    return f"{mod.model_type or ''}{PAIR_SEPARATOR}{mod.body_type or ''}"


def modification_label(mod: Modification) -> str:
    return f"{mod.model_type or '—'} / {mod.body_type or '—'}"


def position_value(pos: Position) -> str:
    return f"{pos.position_category or ''}{PAIR_SEPARATOR}{pos.position or ''}"


def _split_pair(value: str) -> tuple[str | None, str | None]:
    first, _, second = value.partition(PAIR_SEPARATOR)
    return (first or None, second or None)


def parse_modification(value: str | None) -> Modification | None:
    """Inverse of modification_value(); empty input means unset."""
    if not value:
        return None
    return Modification(*_split_pair(value))


def parse_position(value: str | None) -> Position | None:
    """Inverse of position_value(); empty input means unset."""
    if not value:
        return None
    return Position(*_split_pair(value))


def format_options(category: str, options: list) -> list[dict[str, str]]:
    """Turn a category's domain values into {value, label} dropdown entries."""
    if category == "years":
        return [option(str(y)) for y in options]
    if category == "brands":
        return [option(b) for b in order_brands(options)]
    if category == "models":
        return [option(m) for m in options]
    if category == "modifications":
        return [option(modification_value(m), modification_label(m)) for m in options]
    if category == "positions":
        return [option(position_value(p), position_label(p.position or "")) for p in sort_positions(options)]
    if category == "bulbs":
        return [option(c.part_number) for c in options]
    raise ValueError(f"Unknown category: {category}")
