import io
import logging
from pathlib import Path

import pytest

from assetsync import AssetSync
from tests.bundle_remote import CARDS_V1, BundleRemote


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("assetsync")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream

    logger.removeHandler(handler)
    log_stream.close()


@pytest.fixture
def remote(tmp_path):
    """Remote with an en/cards branch and a jp/cards branch."""
    bundle_remote = BundleRemote(tmp_path / "remote.git")
    bundle_remote.commit("en/cards", CARDS_V1, "en cards v1")
    bundle_remote.commit("jp/cards", {"cards/1.json": '{"id": 1}'}, "jp cards v1")
    yield bundle_remote
    bundle_remote.close()


@pytest.fixture
def bundle_dir(tmp_path) -> Path:
    return tmp_path / "bundle"


@pytest.fixture
def sync(remote, bundle_dir):
    """A started AssetSync pointed at the test remote."""
    with AssetSync(bundle_dir=bundle_dir, remote_url=remote.url) as engine:
        yield engine
