"""
Revision store: where each resource lives on disk and which revision it holds.

Layout of the bundle directory:

    <bundle_dir>/
    ├── en/
    │   ├── cards.git/      # bare repository, HEAD -> refs/heads/en/cards
    │   ├── cards.lock      # file lock guarding transfers of en/cards
    │   └── sounds.git/
    └── jp/
        └── cards.git/

Working copies are bare repositories. The checked-out state of a resource is
its local branch ``refs/heads/<locale>/<type>``; files are read from the tree of
the commit that branch points to. Recording a new revision is therefore one
ref write, which dulwich performs through a lock file and an atomic rename, so
the recorded SHA and the content served to readers can never disagree.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from assetsync.errors import StorageError
from assetsync.model import ResourceKey, WorkingCopyInfo
from assetsync.naming import LOCAL_BRANCH_PREFIX, REMOTE_NAME

logger = logging.getLogger(__name__)

WORKING_COPY_SUFFIX = ".git"


def _sha_to_str(sha: Optional[bytes]) -> Optional[str]:
    if sha is None:
        return None
    if len(sha) == 20:
        return sha.hex()
    return sha.decode("ascii")


class RevisionStore:
    """Maps resource keys to working-copy paths and their recorded revisions."""

    def __init__(self, bundle_dir: Path):
        self.bundle_dir = Path(bundle_dir)

    def path_for(self, key: ResourceKey) -> Path:
        return self.bundle_dir / key.locale / f"{key.type}{WORKING_COPY_SUFFIX}"

    def lock_path_for(self, key: ResourceKey) -> Path:
        return self.bundle_dir / key.locale / f"{key.type}.lock"

    def exists(self, key: ResourceKey) -> bool:
        """
        Check whether the resource has a working copy.

        A directory at the working-copy path that is not a git repository does
        not count.
        """
        path = self.path_for(key)
        if not path.is_dir():
            return False
        try:
            Repo(str(path)).close()
        except NotGitRepository:
            logger.debug(f"{path} exists but is not a working copy")
            return False
        return True

    @contextmanager
    def open(self, key: ResourceKey) -> Iterator[Repo]:
        """
        Open the working copy of a resource.

        Raises:
            StorageError: If the working copy is missing or not a repository
        """
        path = self.path_for(key)
        try:
            repo = Repo(str(path))
        except NotGitRepository as e:
            raise StorageError(f"Not a working copy: {path}", key=key) from e
        try:
            yield repo
        finally:
            repo.close()

    def revision(self, key: ResourceKey) -> Optional[str]:
        """
        Get the revision currently checked out for a resource.

        Returns:
            The 40 character hex SHA, or None if there is no working copy
        """
        if not self.exists(key):
            return None
        with self.open(key) as repo:
            return self.revision_of(repo, key)

    @staticmethod
    def revision_of(repo: Repo, key: ResourceKey) -> Optional[str]:
        ref = (LOCAL_BRANCH_PREFIX + key.branch).encode("ascii")
        try:
            return _sha_to_str(repo.refs[ref])
        except KeyError:
            return None

    @staticmethod
    def commit_revision(
        repo: Repo, key: ResourceKey, new_sha: str, old_sha: Optional[str]
    ) -> None:
        """
        Check out ``new_sha`` by moving the resource's local branch.

        The move is a compare-and-swap: it fails if another writer moved the
        branch away from ``old_sha`` in the meantime.

        Raises:
            StorageError: If the ref could not be written
        """
        ref = (LOCAL_BRANCH_PREFIX + key.branch).encode("ascii")
        new = new_sha.encode("ascii")
        old = old_sha.encode("ascii") if old_sha else None
        try:
            if old is None and ref not in repo.refs:
                written = repo.refs.add_if_new(ref, new)
            else:
                written = repo.refs.set_if_equals(ref, old, new)
            repo.refs.set_symbolic_ref(b"HEAD", ref)
        except OSError as e:
            raise StorageError(f"Could not record revision {new_sha}: {e}", key=key) from e
        if not written:
            raise StorageError(
                f"Branch {key.branch} moved concurrently; expected {old_sha}", key=key
            )
        logger.debug(f"Recorded {key} at {new_sha}")

    @staticmethod
    def remote_url_of(repo: Repo) -> Optional[str]:
        config = repo.get_config()
        try:
            url = config.get((b"remote", REMOTE_NAME.encode("ascii")), b"url")
        except KeyError:
            return None
        return url.decode("utf-8") if url else None

    def working_copies(self) -> List[WorkingCopyInfo]:
        """
        Describe all working copies under the bundle directory.

        Directories that do not follow the layout or cannot be opened are
        skipped and logged.
        """
        if not self.bundle_dir.exists():
            return []

        results = []
        for path in sorted(self.bundle_dir.glob(f"*/*{WORKING_COPY_SUFFIX}")):
            if not path.is_dir():
                continue
            locale = path.parent.name
            type_ = path.name[: -len(WORKING_COPY_SUFFIX)]
            try:
                key = ResourceKey(locale, type_)
                with self.open(key) as repo:
                    results.append(
                        WorkingCopyInfo(
                            key=key,
                            path=path,
                            revision=self.revision_of(repo, key),
                            remote_url=self.remote_url_of(repo),
                        )
                    )
            except Exception as e:
                logger.debug(f"Skipping {path}: {e}")
                continue
        return results
