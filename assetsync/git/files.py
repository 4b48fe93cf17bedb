"""
Read access to the files of a checked-out resource.

Paths are relative to the root of the resource's tree. Files are read from the
commit recorded by the revision store, so readers always see one complete
revision even while an update is fetching the next one.
"""

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from dulwich.errors import NotTreeError
from dulwich.object_store import tree_lookup_path
from dulwich.objects import S_ISGITLINK, Tree
from dulwich.repo import Repo

from assetsync.errors import FileNotFoundInBundleError, StorageError
from assetsync.git.store import RevisionStore
from assetsync.model import ResourceKey

logger = logging.getLogger(__name__)


def split_path(path: str) -> Optional[List[str]]:
    """
    Normalize a bundle-relative path into its components.

    "", "." and "/" name the root. Returns None for paths that try to leave
    the tree through "..".
    """
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    if ".." in parts:
        return None
    return parts


class FileAccess:
    """Pass-through read accessors scoped to one resource's working copy."""

    def __init__(self, store: RevisionStore):
        self.store = store

    def _lookup(
        self, repo: Repo, key: ResourceKey, path: str
    ) -> Optional[Tuple[int, bytes]]:
        sha = self.store.revision_of(repo, key)
        if sha is None:
            return None
        parts = split_path(path)
        if parts is None:
            return None

        tree_id = repo[sha.encode("ascii")].tree
        if not parts:
            return stat.S_IFDIR, tree_id
        try:
            return tree_lookup_path(
                repo.object_store.__getitem__,
                tree_id,
                "/".join(parts).encode("utf-8"),
            )
        except (KeyError, NotTreeError):
            return None

    def read(self, path: str, key: ResourceKey) -> bytes:
        """
        Read a file's bytes.

        Raises:
            FileNotFoundInBundleError: If there is no working copy or no file at path
            StorageError: If the object store cannot be read
        """
        if not self.store.exists(key):
            raise FileNotFoundInBundleError(path, key=key)
        try:
            with self.store.open(key) as repo:
                entry = self._lookup(repo, key, path)
                if entry is None:
                    raise FileNotFoundInBundleError(path, key=key)
                mode, sha = entry
                if stat.S_ISDIR(mode) or S_ISGITLINK(mode):
                    raise FileNotFoundInBundleError(path, key=key)
                return repo.object_store[sha].as_raw_string()
        except (OSError, KeyError) as e:
            raise StorageError(f"Cannot read '{path}': {e}", key=key) from e

    def file_exists(self, path: str, key: ResourceKey) -> bool:
        if not self.store.exists(key):
            return False
        with self.store.open(key) as repo:
            entry = self._lookup(repo, key, path)
        if entry is None:
            return False
        mode, _ = entry
        return not (stat.S_ISDIR(mode) or S_ISGITLINK(mode))

    def contents_of_directory(self, path: str, key: ResourceKey) -> List[str]:
        """
        List the entry names of a directory, sorted.

        Returns an empty list when the resource has no working copy or the
        path is not a directory.
        """
        if not self.store.exists(key):
            return []
        with self.store.open(key) as repo:
            entry = self._lookup(repo, key, path)
            if entry is None or not stat.S_ISDIR(entry[0]):
                return []
            tree = repo.object_store[entry[1]]
            if not isinstance(tree, Tree):
                return []
            return sorted(e.path.decode("utf-8") for e in tree.iteritems())

    def file_data(self, path: str, key: ResourceKey) -> Optional[bytes]:
        """Read a file's bytes, or None if the resource or the file is missing."""
        try:
            return self.read(path, key)
        except FileNotFoundInBundleError:
            return None

    def write_file(self, path: str, key: ResourceKey, destination) -> Path:
        """
        Write a file of the bundle to ``destination``.

        Blobs are stored compressed, so the whole file is loaded first; bundle
        files are small enough for that.
        """
        data = self.read(path, key)
        destination = Path(destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            # Write next to the destination and rename, readers never see a partial file
            fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, destination)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {destination}: {e}", key=key) from e
        return destination
