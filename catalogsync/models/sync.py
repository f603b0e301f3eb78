"""
Sync protocol types.

A sync is a small state machine: sets -> cards(1) -> cards(2) -> ... -> done.
Nothing here is persisted; a cursor lives only for the exchange between one
call and the next.
"""

from dataclasses import dataclass, replace
from enum import Enum


class SyncStep(str, Enum):
    """Steps a caller may request."""

    SETS = "sets"
    CARDS = "cards"


@dataclass(frozen=True)
class SyncCursor:
    """
    Everything needed to resume a sync from an arbitrary point.

    Attributes:
        step: Which step to run next
        page: 1-based card page (ignored for the sets step)
        page_size: Cards per page
        run_id: Ledger run this call belongs to, if one was opened
        sets_upserted: Sets written so far in this run
        cards_upserted: Cards written so far in this run
    """

    step: SyncStep
    page: int = 1
    page_size: int = 250
    run_id: int | None = None
    sets_upserted: int = 0
    cards_upserted: int = 0

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be positive, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    def advance(
        self, step: SyncStep, page: int, upserted: int, run_id: int | None = None
    ) -> "SyncCursor":
        """Cursor for the next call, with this step's count folded in."""
        if self.step is SyncStep.SETS:
            totals = {"sets_upserted": self.sets_upserted + upserted}
        else:
            totals = {"cards_upserted": self.cards_upserted + upserted}
        return replace(self, step=step, page=page, run_id=run_id or self.run_id, **totals)


@dataclass(frozen=True)
class StepOutcome:
    """Result of running exactly one step."""

    cursor: SyncCursor
    upserted: int
    run_id: int | None
    sets_upserted: int
    cards_upserted: int
    next_cursor: SyncCursor | None = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None

    @property
    def next_page(self) -> int | None:
        if self.next_cursor is None or self.next_cursor.step is not SyncStep.CARDS:
            return None
        return self.next_cursor.page


@dataclass(frozen=True)
class SyncSummary:
    """Final counts of a completed run."""

    run_id: int | None
    sets_upserted: int
    cards_upserted: int
