"""
SQLAlchemy ORM models for the replicated catalog.

The sets and cards tables are keyed by the upstream id; sync_runs is the
append-only ledger of pipeline runs.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQL NULL for None, JSONB on PostgreSQL
JsonColumn = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")
TextList = JSON(none_as_null=True).with_variant(ARRAY(Text), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardSetDB(Base):
    """An upstream card set (expansion)."""

    __tablename__ = "sets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text)
    series: Mapped[str | None] = mapped_column(Text, nullable=True)
    release_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    printed_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    images: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    legalities: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    raw: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<CardSetDB(id={self.id}, name={self.name})>"


class CardDB(Base):
    """
    An upstream card.

    set_id is deliberately not a foreign key: upstream cards may reference
    a set that was never synced, or none at all (stored as "").
    """

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, index=True)
    number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    number_int: Mapped[int | None] = mapped_column(Integer, nullable=True)
    set_id: Mapped[str] = mapped_column(String(64), index=True, default="")
    rarity: Mapped[str | None] = mapped_column(Text, nullable=True)
    supertype: Mapped[str | None] = mapped_column(Text, nullable=True)
    subtypes: Mapped[list[str] | None] = mapped_column(TextList, nullable=True)
    types: Mapped[list[str] | None] = mapped_column(TextList, nullable=True)
    images: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    legalities: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    tcgplayer_ref: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    cardmarket_ref: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    raw: Mapped[Any] = mapped_column(JsonColumn, nullable=True)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, name={self.name}, set_id={self.set_id})>"


class SyncRunDB(Base):
    """
    One logical sync run.

    Inserted when the run starts and closed exactly once when it ends.
    """

    __tablename__ = "sync_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job: Mapped[str] = mapped_column(String(64), index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ok: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    notes: Mapped[dict[str, Any] | None] = mapped_column(JsonColumn, nullable=True)

    def __repr__(self) -> str:
        return f"<SyncRunDB(id={self.id}, job={self.job}, ok={self.ok})>"
