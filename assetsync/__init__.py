"""Synchronize versioned resource bundles from a git remote."""

__version__ = "0.1.0"

from assetsync.engine import AssetSync  # noqa: E402
from assetsync.errors import (  # noqa: E402
    AssetSyncError,
    CancellationError,
    IntegrityError,
    NetworkError,
    RefNotFoundError,
    StorageError,
    ValidationError,
)
from assetsync.model import (  # noqa: E402
    IndexerProgress,
    ResourceKey,
    UpdateCheckResult,
    UpdateStatus,
)
from assetsync.naming import (  # noqa: E402
    branch_name_from_locale_type,
    refspec_of_branch,
)

__all__ = [
    "AssetSync",
    "AssetSyncError",
    "CancellationError",
    "IntegrityError",
    "NetworkError",
    "RefNotFoundError",
    "StorageError",
    "ValidationError",
    "IndexerProgress",
    "ResourceKey",
    "UpdateCheckResult",
    "UpdateStatus",
    "branch_name_from_locale_type",
    "refspec_of_branch",
]
