"""
The synchronization engine, keyed by (locale, type).

Usage:
    with AssetSync(remote_url="https://example.com/bundles.git") as sync:
        result = sync.check_for_update("en", "cards")
        if result.is_update_available:
            sync.sync("en", "cards", on_progress=print)
        data = sync.file_data("cards/1.json", "en", "cards")

Each AssetSync owns its transport state, so several engines (for instance on
different bundle directories) can live in one process.
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Union

from assetsync.config import get_bundle_dir, get_lock_timeout, get_remote_url
from assetsync.errors import EngineStateError, StorageError
from assetsync.git import (
    FileAccess,
    IntegrityVerifier,
    ProgressCallback,
    RevisionStore,
    TransportClient,
    UpdateChecker,
)
from assetsync.model import (
    ResourceKey,
    UpdateCheckResult,
    UpdateStatus,
    WorkingCopyInfo,
)

logger = logging.getLogger(__name__)


class AssetSync:
    """Scoped synchronization context: startup() before use, shutdown() after."""

    def __init__(
        self,
        bundle_dir: Optional[Union[str, Path]] = None,
        remote_url: Optional[str] = None,
        lock_timeout: Optional[float] = None,
    ):
        """
        Args:
            bundle_dir: Directory holding the working copies
                (defaults to the configured bundle directory)
            remote_url: URL of the remote bundle repository
                (defaults to the configured remote)
            lock_timeout: Seconds to wait for a resource locked by another
                process (negative waits forever; defaults to the configured value)
        """
        self.bundle_dir = Path(bundle_dir) if bundle_dir else get_bundle_dir()
        self.remote_url = remote_url or get_remote_url()
        self.lock_timeout = get_lock_timeout() if lock_timeout is None else lock_timeout

        self._state_lock = threading.Lock()
        self._running = False
        self._transport: Optional[TransportClient] = None
        self.store = RevisionStore(self.bundle_dir)
        self.files = FileAccess(self.store)
        self.verifier = IntegrityVerifier(self.files)

    def startup(self) -> "AssetSync":
        with self._state_lock:
            if self._running:
                return self
            try:
                self.bundle_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(
                    f"Cannot create bundle directory {self.bundle_dir}: {e}"
                ) from e
            self._transport = TransportClient(
                self.store, self.remote_url, lock_timeout=self.lock_timeout
            )
            self._running = True
            logger.debug(f"Started asset sync on {self.bundle_dir}")
        return self

    def shutdown(self) -> None:
        with self._state_lock:
            if not self._running:
                return
            self._transport.release_locks()
            self._transport = None
            self._running = False
            logger.debug(f"Stopped asset sync on {self.bundle_dir}")

    @property
    def running(self) -> bool:
        return self._running

    def __enter__(self):
        return self.startup()

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def _transport_or_fail(self) -> TransportClient:
        transport = self._transport
        if not self._running or transport is None:
            raise EngineStateError(
                "AssetSync is not running; call startup() or use it as a context manager"
            )
        return transport

    def _require_running(self) -> None:
        self._transport_or_fail()

    def download(
        self, locale: str, type: str, on_progress: Optional[ProgressCallback] = None
    ) -> str:
        """Clone a resource; see TransportClient.download."""
        key = ResourceKey(locale, type)
        return self._transport_or_fail().download(key, on_progress)

    def update(
        self, locale: str, type: str, on_progress: Optional[ProgressCallback] = None
    ) -> UpdateStatus:
        """Fetch and check out a resource's new tip; see TransportClient.update."""
        key = ResourceKey(locale, type)
        return self._transport_or_fail().update(key, on_progress)

    def sync(
        self, locale: str, type: str, on_progress: Optional[ProgressCallback] = None
    ) -> UpdateStatus:
        """
        Download the resource if it has no working copy, update it otherwise.

        Returns:
            UPDATED after a download or a real update, UP_TO_DATE otherwise
        """
        key = ResourceKey(locale, type)
        return self._transport_or_fail().sync(key, on_progress)

    def check_for_update(self, locale: str, type: str) -> UpdateCheckResult:
        key = ResourceKey(locale, type)
        return UpdateChecker(self.store, self._transport_or_fail()).check_for_update(key)

    def revision(self, locale: str, type: str) -> Optional[str]:
        self._require_running()
        return self.store.revision(ResourceKey(locale, type))

    def working_copies(self) -> List[WorkingCopyInfo]:
        self._require_running()
        return self.store.working_copies()

    def file_hash(self, path: str, locale: str, type: str) -> str:
        self._require_running()
        return self.verifier.file_hash(path, ResourceKey(locale, type))

    def verify_file(self, path: str, locale: str, type: str, expected: str) -> str:
        self._require_running()
        return self.verifier.verify_file(path, ResourceKey(locale, type), expected)

    def file_exists(self, path: str, locale: str, type: str) -> bool:
        self._require_running()
        return self.files.file_exists(path, ResourceKey(locale, type))

    def contents_of_directory(self, path: str, locale: str, type: str) -> List[str]:
        self._require_running()
        return self.files.contents_of_directory(path, ResourceKey(locale, type))

    def file_data(self, path: str, locale: str, type: str) -> Optional[bytes]:
        self._require_running()
        return self.files.file_data(path, ResourceKey(locale, type))

    def write_file(self, path: str, locale: str, type: str, destination) -> Path:
        self._require_running()
        return self.files.write_file(path, ResourceKey(locale, type), destination)

    def checkout_file(self, path: str, locale: str, type: str, directory) -> Path:
        self._require_running()
        return self.verifier.checkout_file(path, ResourceKey(locale, type), directory)
