"""
Git operations for resource bundles.

Architecture:
    - Revision Store: one bare working copy per (locale, type) under the
      bundle directory; the checked-out revision is the resource's local branch
    - Transport Client: clone and fetch+checkout through dulwich, with
      IndexerProgress reporting and cancellation
    - Update Checker: ref listing against the remote, no objects fetched
    - File Access / Integrity Verifier: reads and hashes files of the
      checked-out tree
"""

from .checker import UpdateChecker
from .files import FileAccess
from .progress import ProgressCallback, ProgressTracker
from .store import RevisionStore
from .transport import TransportClient
from .verify import IntegrityVerifier, content_hash

__all__ = [
    "UpdateChecker",
    "FileAccess",
    "ProgressCallback",
    "ProgressTracker",
    "RevisionStore",
    "TransportClient",
    "IntegrityVerifier",
    "content_hash",
]
