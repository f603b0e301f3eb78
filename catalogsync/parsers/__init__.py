from catalogsync.parsers.catalog import CardRow, SetRow, ensure_json, map_card, map_set

__all__ = [
    "CardRow",
    "SetRow",
    "ensure_json",
    "map_card",
    "map_set",
]
