"""
Transport client: clone and fetch+checkout of resource branches over git.

Uses dulwich's protocol clients directly (``get_transport_and_path``,
``GitClient.get_refs``, ``GitClient.fetch_pack``) rather than the porcelain, so
that the pack stream can be observed for progress and cancelled from the
progress callback before anything is committed.

Guarantees:
    - download builds the working copy in a temporary sibling directory and
      renames it into place only once objects, refs and config are written.
      Any failure, including cancellation, removes the temporary directory.
    - update fetches objects first and moves the local branch last, with a
      single atomic ref write. A failed or cancelled update leaves the
      checked-out revision untouched.
    - Operations on one resource key are serialized by a thread lock and a
      file lock; operations on distinct keys do not share any lock.

Nothing is retried internally; errors are raised to the caller as
AssetSyncError subclasses.
"""

import logging
import os
import shutil
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Optional

from dulwich.client import get_transport_and_path
from dulwich.repo import Repo
from filelock import FileLock, Timeout

from assetsync.errors import (
    AssetSyncError,
    GitErrorCode,
    NetworkError,
    RefNotFoundError,
    StorageError,
    WorkingCopyExistsError,
    WorkingCopyMissingError,
    translate_transport_error,
)
from assetsync.git.progress import (
    PackReceiver,
    ProgressCallback,
    ProgressTracker,
    SidebandLogger,
    index_pack,
)
from assetsync.git.store import RevisionStore
from assetsync.model import ResourceKey, UpdateStatus
from assetsync.naming import REMOTE_NAME, parse_refspec

logger = logging.getLogger(__name__)


class TransportClient:
    """Downloads and updates resource working copies from a remote repository."""

    def __init__(
        self,
        store: RevisionStore,
        remote_url: Optional[str] = None,
        lock_timeout: float = -1,
    ):
        """
        Args:
            store: Revision store owning the working copies
            remote_url: URL of the remote bundle repository; working copies
                remember their own origin, which takes precedence on update
            lock_timeout: Seconds to wait for another process holding a
                resource's file lock (-1 waits forever)
        """
        self.store = store
        self.remote_url = remote_url
        self.lock_timeout = lock_timeout
        # Each resource key gets its own lock; the registry belongs to this
        # client so that independent clients in one process do not interact
        self._locks: Dict[ResourceKey, threading.Lock] = {}
        self._locks_lock = threading.Lock()

    def _get_lock(self, key: ResourceKey) -> threading.Lock:
        with self._locks_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def release_locks(self) -> None:
        with self._locks_lock:
            self._locks.clear()

    @contextmanager
    def exclusive(self, key: ResourceKey):
        """Hold the thread lock and the file lock of a resource key."""
        lock_path = self.store.lock_path_for(key)
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {lock_path.parent}: {e}", key=key) from e

        with self._get_lock(key):
            try:
                with FileLock(str(lock_path), timeout=self.lock_timeout):
                    yield
            except Timeout as e:
                raise StorageError(
                    f"Timed out waiting for lock {lock_path}",
                    code=GitErrorCode.LOCKED,
                    key=key,
                ) from e

    def _resolve_url(self, key: ResourceKey, repo: Optional[Repo] = None) -> str:
        url = None
        if repo is not None:
            url = self.store.remote_url_of(repo)
        url = url or self.remote_url
        if not url:
            raise NetworkError(
                "No remote URL configured for resource bundles", key=key
            )
        return url

    def remote_tip(self, key: ResourceKey) -> str:
        """
        List the remote's refs and return the tip of the resource's branch.

        No objects are fetched.

        Raises:
            NetworkError: If the remote cannot be reached
            RefNotFoundError: If the branch does not exist on the remote
        """
        if self.store.exists(key):
            with self.store.open(key) as repo:
                url = self._resolve_url(key, repo)
        else:
            url = self._resolve_url(key)

        _, src, _ = parse_refspec(key.refspec)
        try:
            client, path = get_transport_and_path(url)
            try:
                result = client.get_refs(path)
            finally:
                client.close()
        except Exception as e:
            raise translate_transport_error(e, url, key) from e

        # Newer dulwich wraps the refs in an LsRemoteResult
        refs = getattr(result, "refs", result)
        sha = refs.get(src.encode("ascii"))
        if sha is None:
            raise RefNotFoundError(key.branch, url, key=key)
        logger.debug(f"Remote tip of {key} is {sha.decode('ascii')}")
        return sha.decode("ascii")

    def _fetch_into(
        self,
        repo: Repo,
        key: ResourceKey,
        url: str,
        on_progress: Optional[ProgressCallback],
    ) -> str:
        """
        Fetch the resource's branch into ``repo`` following its refspec.

        Objects are added to the object store and the remote-tracking ref is
        moved; the checked-out branch is left alone.

        Returns:
            The remote tip SHA
        """
        _, src, dst = parse_refspec(key.refspec)
        src_ref = src.encode("ascii")
        wanted = {}

        def determine_wants(refs, depth=None):
            sha = refs.get(src_ref)
            if sha is None:
                raise RefNotFoundError(key.branch, url, key=key)
            wanted["sha"] = sha
            if sha in repo.object_store:
                return []
            return [sha]

        tracker = ProgressTracker(on_progress, key=key)
        receiver = PackReceiver(tracker, spool_dir=repo.object_store.path)
        try:
            try:
                client, path = get_transport_and_path(url)
                try:
                    client.fetch_pack(
                        path,
                        determine_wants,
                        repo.get_graph_walker(),
                        receiver,
                        progress=SidebandLogger(url),
                    )
                finally:
                    client.close()
            except AssetSyncError:
                raise
            except Exception as e:
                raise translate_transport_error(e, url, key) from e

            try:
                count = index_pack(receiver, repo.object_store, tracker)
            except AssetSyncError:
                raise
            except Exception as e:
                raise translate_transport_error(e, url, key) from e
        finally:
            receiver.close()

        remote_sha = wanted["sha"]
        repo.refs[dst.encode("ascii")] = remote_sha
        logger.info(
            f"Fetched {key} from {url}: {count} objects, tip {remote_sha.decode('ascii')[:7]}"
        )
        return remote_sha.decode("ascii")

    @staticmethod
    def _configure_remote(repo: Repo, key: ResourceKey, url: str) -> None:
        config = repo.get_config()
        section = (b"remote", REMOTE_NAME.encode("ascii"))
        config.set(section, b"url", url.encode("utf-8"))
        config.set(section, b"fetch", key.refspec.encode("ascii"))
        config.write_to_path()

    def download(
        self, key: ResourceKey, on_progress: Optional[ProgressCallback] = None
    ) -> str:
        """
        Clone the resource's branch into a fresh working copy.

        Args:
            key: The resource to download
            on_progress: Called with IndexerProgress snapshots; return False to cancel

        Returns:
            The checked-out revision SHA

        Raises:
            WorkingCopyExistsError: If the resource was already downloaded
            RefNotFoundError: If the branch does not exist on the remote
            CancellationError: If on_progress returned False
            NetworkError, StorageError: On transport or local failures
        """
        with self.exclusive(key):
            return self._download_locked(key, on_progress)

    def update(
        self, key: ResourceKey, on_progress: Optional[ProgressCallback] = None
    ) -> UpdateStatus:
        """
        Fetch the resource's branch and check out its new tip.

        Args:
            key: The resource to update
            on_progress: Called with IndexerProgress snapshots; return False to cancel

        Returns:
            UpdateStatus.UP_TO_DATE if the remote tip is already checked out,
            UpdateStatus.UPDATED if a new revision was checked out

        Raises:
            WorkingCopyMissingError: If the resource was never downloaded
            RefNotFoundError: If the branch no longer exists on the remote
            CancellationError: If on_progress returned False
            NetworkError, StorageError: On transport or local failures
        """
        with self.exclusive(key):
            return self._update_locked(key, on_progress)

    def sync(
        self, key: ResourceKey, on_progress: Optional[ProgressCallback] = None
    ) -> UpdateStatus:
        """
        Download the resource if it has no working copy, update it otherwise.

        The choice is made under the resource's lock, so concurrent calls on
        one key download once and update afterwards.

        Returns:
            UPDATED after a download or a real update, UP_TO_DATE otherwise
        """
        with self.exclusive(key):
            if not self.store.exists(key):
                self._download_locked(key, on_progress)
                return UpdateStatus.UPDATED
            return self._update_locked(key, on_progress)

    def _remove_stale(self, key: ResourceKey, path: Path) -> None:
        logger.warning(f"Removing {path}: not a working copy")
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            raise StorageError(f"Cannot remove stale {path}: {e}", key=key) from e

    def _download_locked(
        self, key: ResourceKey, on_progress: Optional[ProgressCallback]
    ) -> str:
        url = self._resolve_url(key)
        final_path = self.store.path_for(key)
        if self.store.exists(key):
            raise WorkingCopyExistsError(final_path, key=key)
        if final_path.exists():
            # Left behind by a crash or by hand; it holds nothing readable
            self._remove_stale(key, final_path)

        logger.info(f"Cloning {key.branch} from {url} to {final_path}")
        try:
            staging = Path(
                tempfile.mkdtemp(
                    prefix=f".{key.type}-", suffix=".partial", dir=final_path.parent
                )
            )
        except OSError as e:
            raise StorageError(f"Cannot create working copy: {e}", key=key) from e

        try:
            repo = Repo.init_bare(str(staging))
            try:
                self._configure_remote(repo, key, url)
                sha = self._fetch_into(repo, key, url, on_progress)
                self.store.commit_revision(repo, key, sha, None)
            finally:
                repo.close()
            os.rename(staging, final_path)
        except AssetSyncError:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise StorageError(f"Cannot create working copy: {e}", key=key) from e
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.info(f"Checked out {key.branch}@{sha[:7]} to {final_path}")
        return sha

    def _update_locked(
        self, key: ResourceKey, on_progress: Optional[ProgressCallback]
    ) -> UpdateStatus:
        path = self.store.path_for(key)
        if not self.store.exists(key):
            raise WorkingCopyMissingError(path, key=key)

        with self.store.open(key) as repo:
            url = self._resolve_url(key, repo)
            local_sha = self.store.revision_of(repo, key)
            logger.info(f"Updating {key.branch} at {path} from {url}")
            try:
                remote_sha = self._fetch_into(repo, key, url, on_progress)
            except OSError as e:
                raise StorageError(f"Cannot update working copy: {e}", key=key) from e

            if remote_sha == local_sha:
                logger.info(f"{key.branch} is up to date at {remote_sha[:7]}")
                return UpdateStatus.UP_TO_DATE

            self.store.commit_revision(repo, key, remote_sha, local_sha)

        old = local_sha[:7] if local_sha else "nothing"
        logger.info(f"Updated {key.branch} from {old} to {remote_sha[:7]}")
        return UpdateStatus.UPDATED
