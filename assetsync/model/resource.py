"""
Value types shared by the synchronization engine.

All types here are immutable: a progress snapshot or a check result handed to a
caller never changes after the fact.
"""

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Optional

from assetsync.naming import refspec_of_branch, require_branch_name


@dataclass(frozen=True)
class ResourceKey:
    """Identifies one logical asset bundle: a locale and a type."""

    locale: str
    type: str

    def __post_init__(self):
        # Validates both components; raises ValidationError
        require_branch_name(self.locale, self.type)

    @classmethod
    def of(cls, locale: str, type: str) -> "ResourceKey":
        return cls(locale=locale, type=type)

    @property
    def branch(self) -> str:
        return f"{self.locale}/{self.type}"

    @property
    def refspec(self) -> str:
        return refspec_of_branch(self.branch)

    def __str__(self):
        return self.branch


@dataclass(frozen=True)
class IndexerProgress:
    """
    Snapshot of a pack transfer.

    Attributes:
        total_objects: number of objects in the pack being received
        indexed_objects: received objects that have been hashed
        received_objects: objects that have been read from the pack
        local_objects: locally available objects used to complete a thin pack
        total_deltas: number of deltas in the pack
        indexed_deltas: deltas that have been resolved
        received_bytes: size of the pack received so far
    """

    total_objects: int = 0
    indexed_objects: int = 0
    received_objects: int = 0
    local_objects: int = 0
    total_deltas: int = 0
    indexed_deltas: int = 0
    received_bytes: int = 0

    @property
    def fraction(self) -> float:
        """Indexed share of the pack, 0.0 until the object count is known."""
        if not self.total_objects:
            return 0.0
        return self.indexed_objects / self.total_objects


@dataclass(frozen=True)
class UpdateCheckResult:
    is_update_available: bool
    local_sha: Optional[str]
    remote_sha: str


class UpdateStatus(IntEnum):
    """Outcome of an update; FAILED is only used when reporting batches."""

    FAILED = -1
    UP_TO_DATE = 0
    UPDATED = 1


@dataclass(frozen=True)
class WorkingCopyInfo:
    key: ResourceKey
    path: Path
    revision: Optional[str]
    remote_url: Optional[str]
