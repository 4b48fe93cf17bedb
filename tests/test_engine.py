import threading

import pytest

from assetsync import AssetSync
from assetsync.errors import (
    EngineStateError,
    NetworkError,
    ValidationError,
    WorkingCopyMissingError,
)
from assetsync.model import UpdateStatus
from tests.bundle_remote import CARDS_V2


@pytest.mark.integration
class TestLifecycle:
    def test_operations_require_startup(self, remote, bundle_dir):
        engine = AssetSync(bundle_dir=bundle_dir, remote_url=remote.url)
        assert not engine.running
        with pytest.raises(EngineStateError):
            engine.download("en", "cards")
        with pytest.raises(EngineStateError):
            engine.file_exists("README", "en", "cards")
        assert not bundle_dir.exists()

    def test_startup_creates_bundle_dir(self, remote, bundle_dir):
        engine = AssetSync(bundle_dir=bundle_dir, remote_url=remote.url)
        engine.startup()
        try:
            assert engine.running
            assert bundle_dir.is_dir()
        finally:
            engine.shutdown()

    def test_startup_and_shutdown_are_idempotent(self, remote, bundle_dir):
        engine = AssetSync(bundle_dir=bundle_dir, remote_url=remote.url)
        assert engine.startup() is engine
        engine.startup()
        engine.shutdown()
        engine.shutdown()
        assert not engine.running
        with pytest.raises(EngineStateError):
            engine.revision("en", "cards")

    def test_restart(self, remote, bundle_dir):
        engine = AssetSync(bundle_dir=bundle_dir, remote_url=remote.url)
        with engine:
            sha = engine.download("en", "cards")
        with engine:
            assert engine.revision("en", "cards") == sha

    def test_engines_are_independent(self, remote, tmp_path):
        with AssetSync(bundle_dir=tmp_path / "a", remote_url=remote.url) as first:
            with AssetSync(bundle_dir=tmp_path / "b", remote_url=remote.url) as second:
                first.download("en", "cards")
                assert second.revision("en", "cards") is None
                second.shutdown()
                assert first.update("en", "cards") == UpdateStatus.UP_TO_DATE


@pytest.mark.integration
class TestOperations:
    def test_invalid_key_fails_before_any_transfer(self, sync, bundle_dir):
        with pytest.raises(ValidationError):
            sync.download("en/us", "cards")
        with pytest.raises(ValidationError):
            sync.check_for_update("en", "")
        assert list(bundle_dir.iterdir()) == []

    def test_sync_downloads_then_updates(self, sync, remote):
        assert sync.sync("en", "cards") == UpdateStatus.UPDATED
        assert sync.sync("en", "cards") == UpdateStatus.UP_TO_DATE

        new_sha = remote.commit("en/cards", CARDS_V2)
        assert sync.sync("en", "cards") == UpdateStatus.UPDATED
        assert sync.revision("en", "cards") == new_sha

    def test_update_requires_download(self, sync):
        with pytest.raises(WorkingCopyMissingError):
            sync.update("en", "cards")

    def test_check_and_update_round(self, sync, remote):
        sync.download("en", "cards")
        remote.commit("en/cards", CARDS_V2)

        result = sync.check_for_update("en", "cards")
        assert result.is_update_available
        assert sync.update("en", "cards") == UpdateStatus.UPDATED
        assert sync.revision("en", "cards") == result.remote_sha

    def test_file_accessors(self, sync, tmp_path):
        sync.download("en", "cards")

        assert sync.contents_of_directory("cards", "en", "cards") == ["1.json", "2.json"]
        assert sync.file_exists("README", "en", "cards")
        assert sync.file_data("README", "en", "cards") == b"card bundle"

        digest = sync.file_hash("README", "en", "cards")
        assert sync.verify_file("README", "en", "cards", digest) == digest
        assert sync.checkout_file("README", "en", "cards", tmp_path).name == digest
        assert sync.write_file("README", "en", "cards", tmp_path / "README").exists()

    def test_working_copies(self, sync, remote, bundle_dir):
        sync.download("en", "cards")
        sync.download("jp", "cards")
        (bundle_dir / "stray").mkdir()

        copies = sync.working_copies()
        assert [str(copy.key) for copy in copies] == ["en/cards", "jp/cards"]
        assert copies[0].revision == remote.tip("en/cards")
        assert copies[0].remote_url == remote.url

    def test_no_remote_configured(self, bundle_dir, monkeypatch):
        monkeypatch.setattr("assetsync.engine.get_remote_url", lambda: None)
        with AssetSync(bundle_dir=bundle_dir) as engine:
            assert engine.remote_url is None
            with pytest.raises(NetworkError):
                engine.download("en", "cards")


@pytest.mark.integration
class TestStaleWorkingCopy:
    def test_accessors_treat_stale_directory_as_missing(self, sync, bundle_dir):
        (bundle_dir / "en" / "cards.git").mkdir(parents=True)

        assert not sync.file_exists("README", "en", "cards")
        assert sync.contents_of_directory("", "en", "cards") == []
        assert sync.file_data("README", "en", "cards") is None
        assert sync.revision("en", "cards") is None
        assert sync.check_for_update("en", "cards").is_update_available

    def test_sync_recovers_from_stale_directory(self, sync, bundle_dir, remote):
        (bundle_dir / "en" / "cards.git").mkdir(parents=True)

        assert sync.sync("en", "cards") == UpdateStatus.UPDATED
        assert sync.revision("en", "cards") == remote.tip("en/cards")
        assert sync.file_data("README", "en", "cards") == b"card bundle"

    def test_concurrent_sync(self, sync, remote):
        barrier = threading.Barrier(2)
        results = []
        errors = []

        def run():
            barrier.wait()
            try:
                results.append(sync.sync("en", "cards"))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=run) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(results) == [UpdateStatus.UP_TO_DATE, UpdateStatus.UPDATED]
