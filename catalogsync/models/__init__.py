from catalogsync.models.sync import StepOutcome, SyncCursor, SyncStep, SyncSummary

__all__ = [
    "StepOutcome",
    "SyncCursor",
    "SyncStep",
    "SyncSummary",
]
