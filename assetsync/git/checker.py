import logging

from assetsync.git.store import RevisionStore
from assetsync.git.transport import TransportClient
from assetsync.model import ResourceKey, UpdateCheckResult

logger = logging.getLogger(__name__)


class UpdateChecker:
    """Compares the checked-out revision of a resource with the remote tip."""

    def __init__(self, store: RevisionStore, transport: TransportClient):
        self.store = store
        self.transport = transport

    def check_for_update(self, key: ResourceKey) -> UpdateCheckResult:
        """
        Check whether the remote has a revision the working copy does not.

        Only the remote's refs are listed; no objects are downloaded and the
        working copy is not touched, so this is safe to call at any frequency.

        Raises:
            NetworkError: If the remote cannot be reached
            RefNotFoundError: If the branch does not exist on the remote
        """
        remote_sha = self.transport.remote_tip(key)
        local_sha = self.store.revision(key)
        result = UpdateCheckResult(
            is_update_available=local_sha is None or local_sha != remote_sha,
            local_sha=local_sha,
            remote_sha=remote_sha,
        )
        logger.debug(
            f"Update check for {key}: local={local_sha} remote={remote_sha} "
            f"available={result.is_update_available}"
        )
        return result
