from .sync_scheduler import (
    SyncScheduler,
    SyncTickResult,
    SyncTickStatus,
    SourceState,
)

__all__ = [
    "SyncScheduler",
    "SyncTickResult",
    "SyncTickStatus",
    "SourceState",
]
