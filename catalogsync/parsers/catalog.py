"""
Pokémon TCG API record mapping.

Turns upstream set and card records into rows for the sets and cards
tables. Mapping never fails: missing or malformed fields become explicit
empty values, and the whole upstream record is kept under ``raw``.

API reference: https://docs.pokemontcg.io/
"""

import math
import re
from datetime import UTC, datetime
from typing import Any, TypeAlias, TypedDict

JsonValue: TypeAlias = None | bool | int | float | str | list["JsonValue"] | dict[str, "JsonValue"]

_LEADING_DIGITS = re.compile(r"^\d+")


class SetRow(TypedDict):
    """Row for the sets table."""

    id: str
    name: str
    series: str | None
    release_date: str | None
    printed_total: int | None
    total: int | None
    images: JsonValue
    legalities: JsonValue
    raw: JsonValue
    synced_at: datetime


class CardRow(TypedDict):
    """Row for the cards table."""

    id: str
    name: str
    number: str | None
    number_int: int | None
    set_id: str
    rarity: str | None
    supertype: str | None
    subtypes: list[str] | None
    types: list[str] | None
    images: JsonValue
    legalities: JsonValue
    tcgplayer_ref: JsonValue
    cardmarket_ref: JsonValue
    raw: JsonValue
    synced_at: datetime


def ensure_json(value: Any) -> JsonValue:
    """
    Restrict a value to JSON shapes.

    Primitives, lists and string-keyed dicts pass through (recursively);
    anything else becomes None. Members that are not JSON are dropped.
    """
    if value is None or isinstance(value, str | bool | int):
        return value
    if isinstance(value, float):
        # NaN and infinities are not JSON
        return value if math.isfinite(value) else None
    if isinstance(value, list | tuple):
        return [cleaned for item in value if (cleaned := ensure_json(item)) is not None or item is None]
    if isinstance(value, dict):
        result: dict[str, JsonValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                continue
            cleaned = ensure_json(item)
            if cleaned is None and item is not None:
                continue
            result[key] = cleaned
        return result
    return None


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_number(value: Any) -> int | None:
    """Upstream counts, only when they are real numbers."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return value


def _as_str_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def parse_number_int(number: str | None) -> int | None:
    """
    Leading integer of a printed card number.

    Examples: "4" -> 4, "25a" -> 25, "TG12" -> None
    """
    if not number:
        return None
    match = _LEADING_DIGITS.match(number)
    return int(match.group()) if match else None


def map_set(raw: dict[str, Any], synced_at: datetime | None = None) -> SetRow:
    """
    Map an upstream set record to a sets row.

    Args:
        raw: Set object from the /sets endpoint
        synced_at: Timestamp to stamp; defaults to now (UTC)

    Returns:
        SetRow with every column present
    """
    return SetRow(
        id=str(raw.get("id") or ""),
        name=_as_str(raw.get("name")) or "",
        series=_as_str(raw.get("series")),
        release_date=_as_str(raw.get("releaseDate")),
        printed_total=_as_number(raw.get("printedTotal")),
        total=_as_number(raw.get("total")),
        images=ensure_json(raw.get("images")),
        legalities=ensure_json(raw.get("legalities")),
        raw=ensure_json(raw),
        synced_at=synced_at or datetime.now(UTC),
    )


def map_card(raw: dict[str, Any], synced_at: datetime | None = None) -> CardRow:
    """
    Map an upstream card record to a cards row.

    A missing set becomes set_id "" rather than an error; the set reference
    is not checked against the sets table.

    Args:
        raw: Card object from the /cards endpoint
        synced_at: Timestamp to stamp; defaults to now (UTC)

    Returns:
        CardRow with every column present
    """
    card_set = raw.get("set")
    set_id = card_set.get("id") if isinstance(card_set, dict) else None
    number = _as_str(raw.get("number"))

    return CardRow(
        id=str(raw.get("id") or ""),
        name=_as_str(raw.get("name")) or "",
        number=number,
        number_int=parse_number_int(number),
        set_id=set_id if isinstance(set_id, str) else "",
        rarity=_as_str(raw.get("rarity")),
        supertype=_as_str(raw.get("supertype")),
        subtypes=_as_str_list(raw.get("subtypes")),
        types=_as_str_list(raw.get("types")),
        images=ensure_json(raw.get("images")),
        legalities=ensure_json(raw.get("legalities")),
        tcgplayer_ref=ensure_json(raw.get("tcgplayer")),
        cardmarket_ref=ensure_json(raw.get("cardmarket")),
        raw=ensure_json(raw),
        synced_at=synced_at or datetime.now(UTC),
    )
