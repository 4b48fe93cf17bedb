from .resource import (
    IndexerProgress,
    ResourceKey,
    UpdateCheckResult,
    UpdateStatus,
    WorkingCopyInfo,
)

__all__ = [
    "IndexerProgress",
    "ResourceKey",
    "UpdateCheckResult",
    "UpdateStatus",
    "WorkingCopyInfo",
]
