"""
Exception classes for asset synchronization.

All core operations share one error domain (``GitError``). Each error carries
an integer code modelled on libgit2's error codes, a human-readable message and,
when known, the resource key the operation was working on. Errors raised by
dulwich or the operating system are translated at the transport boundary and
chained with ``raise ... from``.
"""

import socket
import ssl
from enum import IntEnum
from typing import Optional

from dulwich.errors import (
    GitProtocolError,
    HangupException,
    NotGitRepository,
)

ERROR_DOMAIN = "GitError"


class GitErrorCode(IntEnum):
    """Integer codes of the ``GitError`` domain."""

    OK = 0
    ERROR = -1
    NOTFOUND = -3
    EXISTS = -4
    USER = -7
    INVALIDSPEC = -12
    LOCKED = -14
    AUTH = -16
    CERTIFICATE = -17
    MISMATCH = -33


class AssetSyncError(Exception):
    """Base exception for all asset synchronization errors."""

    default_code = GitErrorCode.ERROR

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        key=None,
    ):
        self.message = message
        self.code = int(self.default_code if code is None else code)
        self.key = key
        super().__init__(message)

    @property
    def domain(self) -> str:
        return ERROR_DOMAIN

    def __str__(self):
        if self.key is not None:
            return f"[{self.key}] {self.message}"
        return self.message


class NetworkError(AssetSyncError):
    """Raised when the remote is unreachable or the transport fails."""

    pass


class RefNotFoundError(AssetSyncError):
    """Raised when the branch of a resource does not exist on the remote."""

    default_code = GitErrorCode.NOTFOUND

    def __init__(self, branch: str, remote_url: str = "", key=None):
        self.branch = branch
        self.remote_url = remote_url
        where = f" at {remote_url}" if remote_url else ""
        super().__init__(f"Branch '{branch}' not found{where}", key=key)


class CancellationError(AssetSyncError):
    """Raised when the progress callback asked to stop the transfer."""

    default_code = GitErrorCode.USER

    def __init__(self, key=None):
        super().__init__("Transfer cancelled by progress callback", key=key)


class IntegrityError(AssetSyncError):
    """Raised when a file is missing from a bundle or its hash does not match."""

    default_code = GitErrorCode.MISMATCH


class FileNotFoundInBundleError(IntegrityError):
    """Raised when a path does not name a file in the checked-out tree."""

    default_code = GitErrorCode.NOTFOUND

    def __init__(self, path: str, key=None):
        self.path = path
        super().__init__(f"No file at '{path}'", key=key)


class StorageError(AssetSyncError):
    """Raised on local filesystem or object storage failures."""

    pass


class ValidationError(AssetSyncError):
    """Raised when a locale or type cannot form a valid ref name."""

    default_code = GitErrorCode.INVALIDSPEC


class WorkingCopyExistsError(AssetSyncError):
    """Raised by download when the resource already has a working copy."""

    default_code = GitErrorCode.EXISTS

    def __init__(self, path, key=None):
        self.path = path
        super().__init__(
            f"Working copy already exists at {path}; use update instead", key=key
        )


class WorkingCopyMissingError(AssetSyncError):
    """Raised by update when the resource has not been downloaded yet."""

    default_code = GitErrorCode.NOTFOUND

    def __init__(self, path, key=None):
        self.path = path
        super().__init__(
            f"No working copy at {path}; download the resource first", key=key
        )


class EngineStateError(AssetSyncError):
    """Raised when an operation runs before startup or after shutdown."""

    pass


def translate_transport_error(
    exc: BaseException, remote_url: str = "", key=None
) -> AssetSyncError:
    """
    Map an exception raised while talking to the remote onto the error domain.

    Args:
        exc: The exception raised by dulwich or the socket layer
        remote_url: URL of the remote, used in the message
        key: Resource key the operation was working on

    Returns:
        An AssetSyncError subclass instance; the caller raises it ``from exc``.
    """
    if isinstance(exc, AssetSyncError):
        return exc

    target = f" {remote_url}" if remote_url else ""

    # dulwich's HTTP client raises these for 401/403; matched by name since
    # their module moved between dulwich releases
    name = type(exc).__name__
    if name in ("HTTPUnauthorized", "HTTPProxyUnauthorized"):
        return NetworkError(
            f"Authentication required by remote{target}: {exc}",
            code=GitErrorCode.AUTH,
            key=key,
        )

    if isinstance(exc, ssl.SSLError):
        return NetworkError(
            f"TLS failure talking to remote{target}: {exc}",
            code=GitErrorCode.CERTIFICATE,
            key=key,
        )
    if isinstance(exc, NotGitRepository):
        return NetworkError(
            f"Remote{target} is not a git repository: {exc}",
            code=GitErrorCode.NOTFOUND,
            key=key,
        )
    if isinstance(exc, (HangupException, GitProtocolError)):
        return NetworkError(f"Transport failure for{target}: {exc}", key=key)
    if isinstance(exc, (ConnectionError, TimeoutError, socket.gaierror)):
        return NetworkError(f"Cannot reach remote{target}: {exc}", key=key)
    if isinstance(exc, OSError):
        return StorageError(f"Local storage failure: {exc}", key=key)
    return NetworkError(f"Unexpected transport failure{target}: {exc}", key=key)
