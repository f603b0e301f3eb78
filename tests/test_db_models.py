"""Tests for SQLAlchemy ORM models."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalogsync.models.db import CardDB, CardSetDB, SyncRunDB


class TestCardSetDB:
    async def test_create_set(self, session: AsyncSession) -> None:
        """Can store a set with JSON payloads."""
        card_set = CardSetDB(
            id="base1",
            name="Base",
            legalities={"unlimited": "Legal"},
            raw={"id": "base1", "name": "Base"},
        )
        session.add(card_set)
        await session.commit()

        saved = (await session.execute(select(CardSetDB))).scalar_one()

        assert saved.id == "base1"
        assert saved.legalities == {"unlimited": "Legal"}
        assert saved.synced_at is not None

    async def test_id_unique(self, session: AsyncSession) -> None:
        """Set id is the primary key."""
        session.add(CardSetDB(id="base1", name="Base"))
        await session.commit()

        session.add(CardSetDB(id="base1", name="Base Again"))
        with pytest.raises(IntegrityError):
            await session.commit()


class TestCardDB:
    async def test_card_without_stored_set(self, session: AsyncSession) -> None:
        """A card may reference a set id that is not in the sets table."""
        session.add(CardDB(id="xy1-1", name="Venusaur", set_id="xy1", subtypes=["Stage 2"]))
        await session.commit()

        saved = (await session.execute(select(CardDB))).scalar_one()

        assert saved.set_id == "xy1"
        assert saved.subtypes == ["Stage 2"]
        assert saved.images is None

    def test_repr(self) -> None:
        card = CardDB(id="xy1-1", name="Venusaur", set_id="xy1")
        assert "xy1-1" in repr(card)


class TestSyncRunDB:
    async def test_open_run_defaults(self, session: AsyncSession) -> None:
        """A new run has a start time and no outcome yet."""
        run = SyncRunDB(job="seed_cards")
        session.add(run)
        await session.commit()
        await session.refresh(run)

        assert run.id is not None
        assert run.started_at is not None
        assert run.finished_at is None
        assert run.ok is None
        assert run.notes is None
