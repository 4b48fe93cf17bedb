import sys
from contextlib import contextmanager

import click

from assetsync.cli.error_formatting import format_sync_error
from assetsync.cli.utils.logging import logger
from assetsync.engine import AssetSync
from assetsync.errors import AssetSyncError, CancellationError


@contextmanager
def engine_from_context(ctx: click.Context):
    """Start an AssetSync for the group's options and turn its errors into exit codes."""
    obj = ctx.find_root().obj or {}
    try:
        with AssetSync(
            bundle_dir=obj.get("BUNDLE_DIR"), remote_url=obj.get("REMOTE")
        ) as sync:
            yield sync
    except CancellationError as e:
        logger.error(format_sync_error(e))
        sys.exit(130)
    except AssetSyncError as e:
        logger.error(format_sync_error(e))
        sys.exit(1)
