from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from catalogsync.config import settings
from catalogsync.db.database import drop_db, init_db


class FakeCatalogClient:
    """In-memory stand-in for CatalogClient that records every call."""

    def __init__(
        self,
        sets: list[dict[str, Any]] | None = None,
        cards: list[dict[str, Any]] | None = None,
    ) -> None:
        self.sets = sets or []
        self.cards = cards or []
        self.set_fetches = 0
        self.card_fetches: list[tuple[int, int]] = []

    async def __aenter__(self) -> "FakeCatalogClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def fetch_sets(self) -> list[dict[str, Any]]:
        self.set_fetches += 1
        return list(self.sets)

    async def fetch_cards_page(self, page: int, page_size: int) -> list[dict[str, Any]]:
        self.card_fetches.append((page, page_size))
        start = (page - 1) * page_size
        return list(self.cards[start : start + page_size])


def make_set(set_id: str, name: str | None = None) -> dict[str, Any]:
    return {
        "id": set_id,
        "name": name or f"Set {set_id}",
        "series": "Sword & Shield",
        "printedTotal": 202,
        "total": 216,
        "releaseDate": "2020/02/07",
        "legalities": {"unlimited": "Legal", "standard": "Legal"},
        "images": {
            "symbol": f"https://images.pokemontcg.io/{set_id}/symbol.png",
            "logo": f"https://images.pokemontcg.io/{set_id}/logo.png",
        },
    }


def make_card(card_id: str, set_id: str = "swsh1", number: str = "1") -> dict[str, Any]:
    return {
        "id": card_id,
        "name": f"Card {card_id}",
        "supertype": "Pokémon",
        "subtypes": ["Basic"],
        "types": ["Grass"],
        "number": number,
        "rarity": "Common",
        "set": {"id": set_id, "name": "Sword & Shield"},
        "legalities": {"unlimited": "Legal"},
        "images": {"small": f"https://images.pokemontcg.io/{card_id}.png"},
        "tcgplayer": {"url": f"https://prices.pokemontcg.io/tcgplayer/{card_id}"},
        "cardmarket": {"url": f"https://prices.pokemontcg.io/cardmarket/{card_id}"},
    }


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep tests independent of any local .env values."""
    monkeypatch.setattr(settings, "sync_token", "")
    monkeypatch.setattr(settings, "pokemon_tcg_api_key", "")
    monkeypatch.setattr(settings, "catalog_api_url", "https://api.pokemontcg.io/v2")
    monkeypatch.setattr(settings, "cards_page_size", 250)


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    await init_db(engine)
    yield engine
    await drop_db(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def sample_sets() -> list[dict[str, Any]]:
    return [make_set("base1", "Base"), make_set("swsh1", "Sword & Shield")]


@pytest.fixture
def sample_cards() -> list[dict[str, Any]]:
    """Five cards; with page size 2 that is pages [A, B], [C, D], [E]."""
    return [make_card(card_id, number=str(i + 1)) for i, card_id in enumerate("ABCDE")]


@pytest.fixture
def card_factory():
    return make_card


@pytest.fixture
def fake_catalog(sample_sets, sample_cards) -> FakeCatalogClient:
    return FakeCatalogClient(sets=sample_sets, cards=sample_cards)
