"""Tests for catalog record mapping."""

from datetime import UTC, datetime

import pytest

from catalogsync.parsers.catalog import (
    ensure_json,
    map_card,
    map_set,
    parse_number_int,
)

SYNCED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class TestEnsureJson:
    def test_primitives_pass_through(self) -> None:
        assert ensure_json("x") == "x"
        assert ensure_json(3) == 3
        assert ensure_json(1.5) == 1.5
        assert ensure_json(True) is True
        assert ensure_json(None) is None

    def test_nested_structures_kept(self) -> None:
        value = {"a": [1, {"b": None}], "c": "d"}
        assert ensure_json(value) == value

    def test_unsupported_values_become_none(self) -> None:
        assert ensure_json(lambda: 1) is None
        assert ensure_json(object()) is None
        assert ensure_json({1, 2}) is None

    def test_unsupported_members_dropped(self) -> None:
        """Non-JSON members are dropped rather than failing the whole value."""
        value = {"ok": 1, "bad": object(), 3: "int key"}
        assert ensure_json(value) == {"ok": 1}
        assert ensure_json([1, object(), None]) == [1, None]

    def test_non_finite_floats_dropped(self) -> None:
        assert ensure_json(float("nan")) is None
        assert ensure_json(float("inf")) is None


class TestParseNumberInt:
    @pytest.mark.parametrize(
        ("number", "expected"),
        [("4", 4), ("25a", 25), ("TG12", None), ("", None), (None, None)],
    )
    def test_leading_digits(self, number: str | None, expected: int | None) -> None:
        assert parse_number_int(number) == expected


class TestMapSet:
    def test_maps_all_fields(self, sample_sets: list[dict]) -> None:
        raw = sample_sets[0]

        row = map_set(raw, synced_at=SYNCED_AT)

        assert row["id"] == "base1"
        assert row["name"] == "Base"
        assert row["series"] == "Sword & Shield"
        assert row["release_date"] == "2020/02/07"
        assert row["printed_total"] == 202
        assert row["total"] == 216
        assert row["legalities"] == {"unlimited": "Legal", "standard": "Legal"}
        assert row["images"]["logo"].endswith("logo.png")
        assert row["raw"] == raw
        assert row["synced_at"] == SYNCED_AT

    def test_missing_fields_are_explicit_nulls(self) -> None:
        row = map_set({"id": "x1"}, synced_at=SYNCED_AT)

        assert row["name"] == ""
        assert row["series"] is None
        assert row["release_date"] is None
        assert row["printed_total"] is None
        assert row["total"] is None
        assert row["images"] is None
        assert row["legalities"] is None

    def test_non_numeric_counts_become_null(self) -> None:
        row = map_set({"id": "x1", "printedTotal": "102", "total": True}, synced_at=SYNCED_AT)

        assert row["printed_total"] is None
        assert row["total"] is None

    def test_stamps_current_time_by_default(self) -> None:
        before = datetime.now(UTC)
        row = map_set({"id": "x1"})

        assert row["synced_at"] >= before


class TestMapCard:
    def test_maps_all_fields(self, card_factory) -> None:
        raw = card_factory("swsh1-1", set_id="swsh1", number="1")

        row = map_card(raw, synced_at=SYNCED_AT)

        assert row["id"] == "swsh1-1"
        assert row["name"] == "Card swsh1-1"
        assert row["number"] == "1"
        assert row["number_int"] == 1
        assert row["set_id"] == "swsh1"
        assert row["rarity"] == "Common"
        assert row["supertype"] == "Pokémon"
        assert row["subtypes"] == ["Basic"]
        assert row["types"] == ["Grass"]
        assert row["tcgplayer_ref"] == raw["tcgplayer"]
        assert row["cardmarket_ref"] == raw["cardmarket"]
        assert row["raw"] == raw

    def test_missing_number_images_and_set(self) -> None:
        """Absent fields default; the raw payload is still the whole record."""
        raw = {"id": "xy1-1", "name": "Venusaur", "supertype": "Pokémon"}

        row = map_card(raw, synced_at=SYNCED_AT)

        assert row["number"] is None
        assert row["number_int"] is None
        assert row["images"] is None
        assert row["set_id"] == ""
        assert row["raw"] == raw

    def test_every_column_present(self) -> None:
        row = map_card({"id": "xy1-1"}, synced_at=SYNCED_AT)

        assert set(row) == {
            "id",
            "name",
            "number",
            "number_int",
            "set_id",
            "rarity",
            "supertype",
            "subtypes",
            "types",
            "images",
            "legalities",
            "tcgplayer_ref",
            "cardmarket_ref",
            "raw",
            "synced_at",
        }

    def test_malformed_shapes_do_not_raise(self) -> None:
        raw = {
            "id": "xy1-2",
            "name": 42,
            "set": "xy1",
            "subtypes": "Basic",
            "types": ["Fire", 7],
            "images": object(),
        }

        row = map_card(raw, synced_at=SYNCED_AT)

        assert row["name"] == ""
        assert row["set_id"] == ""
        assert row["subtypes"] is None
        assert row["types"] == ["Fire"]
        assert row["images"] is None
        assert "images" not in row["raw"]
