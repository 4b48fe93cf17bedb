"""Error formatting for CLI output."""

from assetsync.errors import AssetSyncError


def format_sync_error(error: AssetSyncError) -> str:
    """Format an AssetSyncError with its domain and code.

    Example output:
        GitError(-3): [en/cards] Branch 'en/cards' not found at https://example.com/bundles.git
          caused by: NotGitRepository: ...
    """
    message = f"{error.domain}({error.code}): {error}"
    cause = error.__cause__
    if cause is not None:
        message += f"\n  caused by: {type(cause).__name__}: {cause}"
    return message
