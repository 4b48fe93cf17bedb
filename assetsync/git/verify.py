"""
Content hashing of checked-out files.

Hashes are SHA-256 over the file's bytes only. They do not depend on the
revision, the path or git's object ids, so byte-identical files hash the same
across revisions and resources.
"""

import hashlib
import logging
from pathlib import Path, PurePosixPath

from assetsync.errors import IntegrityError
from assetsync.git.files import FileAccess
from assetsync.model import ResourceKey

logger = logging.getLogger(__name__)


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class IntegrityVerifier:
    def __init__(self, files: FileAccess):
        self.files = files

    def file_hash(self, path: str, key: ResourceKey) -> str:
        """
        Compute the content hash of a file in a resource bundle.

        Args:
            path: Path of the file, relative to the bundle root
            key: The resource holding the file

        Returns:
            Hex encoded SHA-256 of the file's bytes

        Raises:
            FileNotFoundInBundleError: If the file does not exist in the bundle
            StorageError: If the file cannot be read
        """
        return content_hash(self.files.read(path, key))

    def verify_file(self, path: str, key: ResourceKey, expected: str) -> str:
        """
        Check a file against a known hash.

        Returns:
            The hash, equal to ``expected``

        Raises:
            IntegrityError: If the hashes differ
        """
        actual = self.file_hash(path, key)
        if actual != expected.lower():
            logger.warning(f"Hash mismatch for {path} in {key}: {actual} != {expected}")
            raise IntegrityError(
                f"Hash mismatch for '{path}': expected {expected}, got {actual}",
                key=key,
            )
        return actual

    def checkout_file(self, path: str, key: ResourceKey, directory) -> Path:
        """
        Materialize a file as ``<directory>/<hash><extension>``.

        Files are named by content, so a file already present under that name
        is reused without being rewritten.

        Returns:
            Path of the materialized file
        """
        data = self.files.read(path, key)
        suffix = PurePosixPath(path).suffix
        target = Path(directory) / f"{content_hash(data)}{suffix}"
        if target.exists():
            return target
        return self.files.write_file(path, key, target)
