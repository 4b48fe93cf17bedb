"""Tests for reading and hashing files of checked-out resources."""

import hashlib

import pytest

from assetsync.errors import FileNotFoundInBundleError, IntegrityError
from assetsync.git import (
    FileAccess,
    IntegrityVerifier,
    RevisionStore,
    TransportClient,
    content_hash,
)
from assetsync.git.files import split_path
from assetsync.model import ResourceKey
from tests.bundle_remote import CARDS_V1, CARDS_V2

EN_CARDS = ResourceKey("en", "cards")
JP_CARDS = ResourceKey("jp", "cards")


@pytest.fixture
def store(bundle_dir):
    return RevisionStore(bundle_dir)


@pytest.fixture
def transport(store, remote):
    return TransportClient(store, remote.url)


@pytest.fixture
def files(store, transport):
    transport.download(EN_CARDS)
    return FileAccess(store)


@pytest.fixture
def verifier(files):
    return IntegrityVerifier(files)


@pytest.mark.short
@pytest.mark.parametrize(
    "path, expected",
    [
        ("", []),
        (".", []),
        ("/", []),
        ("cards/1.json", ["cards", "1.json"]),
        ("./cards//1.json", ["cards", "1.json"]),
        ("cards\\1.json", ["cards", "1.json"]),
        ("../secrets", None),
        ("cards/../README", None),
    ],
)
def test_split_path(path, expected):
    assert split_path(path) == expected


@pytest.mark.integration
class TestFileAccess:
    def test_contents_of_root(self, files):
        assert files.contents_of_directory("", EN_CARDS) == ["README", "cards"]

    def test_contents_of_subdirectory(self, files):
        assert files.contents_of_directory("cards", EN_CARDS) == ["1.json", "2.json"]
        assert files.contents_of_directory("cards/", EN_CARDS) == ["1.json", "2.json"]

    def test_contents_of_file_or_missing(self, files):
        assert files.contents_of_directory("README", EN_CARDS) == []
        assert files.contents_of_directory("sounds", EN_CARDS) == []

    def test_file_exists(self, files):
        assert files.file_exists("cards/1.json", EN_CARDS)
        assert files.file_exists("README", EN_CARDS)
        assert not files.file_exists("cards", EN_CARDS)
        assert not files.file_exists("cards/9.json", EN_CARDS)
        assert not files.file_exists("../README", EN_CARDS)

    def test_file_data(self, files):
        assert files.file_data("cards/2.json", EN_CARDS) == CARDS_V1["cards/2.json"].encode()
        assert files.file_data("cards/9.json", EN_CARDS) is None
        assert files.file_data("cards", EN_CARDS) is None

    def test_not_downloaded(self, files):
        assert files.contents_of_directory("", JP_CARDS) == []
        assert not files.file_exists("cards/1.json", JP_CARDS)
        assert files.file_data("cards/1.json", JP_CARDS) is None
        with pytest.raises(FileNotFoundInBundleError):
            files.read("cards/1.json", JP_CARDS)

    def test_read_missing(self, files):
        with pytest.raises(FileNotFoundInBundleError) as excinfo:
            files.read("cards/9.json", EN_CARDS)
        assert excinfo.value.path == "cards/9.json"
        assert excinfo.value.key == EN_CARDS

    def test_write_file(self, files, tmp_path):
        target = files.write_file("cards/1.json", EN_CARDS, tmp_path / "out" / "1.json")
        assert target.read_bytes() == CARDS_V1["cards/1.json"].encode()
        assert [p.name for p in target.parent.iterdir()] == ["1.json"]

    def test_reads_follow_update(self, files, transport, remote):
        remote.commit("en/cards", CARDS_V2)
        transport.update(EN_CARDS)
        assert files.contents_of_directory("cards", EN_CARDS) == [
            "1.json",
            "2.json",
            "3.json",
        ]
        assert files.file_data("cards/1.json", EN_CARDS) == CARDS_V2["cards/1.json"].encode()


@pytest.mark.integration
class TestIntegrityVerifier:
    def test_file_hash_is_sha256_of_content(self, verifier):
        expected = hashlib.sha256(CARDS_V1["cards/1.json"].encode()).hexdigest()
        assert verifier.file_hash("cards/1.json", EN_CARDS) == expected
        assert content_hash(CARDS_V1["cards/1.json"].encode()) == expected

    def test_file_hash_is_deterministic(self, verifier):
        first = verifier.file_hash("README", EN_CARDS)
        assert verifier.file_hash("README", EN_CARDS) == first
        assert len(first) == 64

    def test_identical_content_hashes_identically(self, verifier, transport, remote):
        remote.commit("jp/cards", {"cards/1.json": CARDS_V1["cards/2.json"]})
        transport.download(JP_CARDS)
        assert verifier.file_hash("cards/1.json", JP_CARDS) == verifier.file_hash(
            "cards/2.json", EN_CARDS
        )

    def test_hash_changes_after_update(self, verifier, transport, remote):
        before = verifier.file_hash("cards/1.json", EN_CARDS)
        unchanged = verifier.file_hash("cards/2.json", EN_CARDS)
        remote.commit("en/cards", CARDS_V2)
        transport.update(EN_CARDS)

        assert verifier.file_hash("cards/1.json", EN_CARDS) != before
        assert verifier.file_hash("cards/2.json", EN_CARDS) == unchanged

    def test_file_hash_missing(self, verifier):
        with pytest.raises(FileNotFoundInBundleError):
            verifier.file_hash("cards/9.json", EN_CARDS)

    def test_verify_file(self, verifier):
        digest = verifier.file_hash("README", EN_CARDS)
        assert verifier.verify_file("README", EN_CARDS, digest.upper()) == digest

    def test_verify_file_mismatch(self, verifier):
        with pytest.raises(IntegrityError) as excinfo:
            verifier.verify_file("README", EN_CARDS, "0" * 64)
        assert excinfo.value.key == EN_CARDS

    def test_checkout_file(self, verifier, tmp_path):
        digest = verifier.file_hash("cards/1.json", EN_CARDS)
        target = verifier.checkout_file("cards/1.json", EN_CARDS, tmp_path / "assets")

        assert target == tmp_path / "assets" / f"{digest}.json"
        assert target.read_bytes() == CARDS_V1["cards/1.json"].encode()

    def test_checkout_file_reuses_existing(self, verifier, tmp_path):
        first = verifier.checkout_file("README", EN_CARDS, tmp_path)
        mtime = first.stat().st_mtime_ns
        second = verifier.checkout_file("README", EN_CARDS, tmp_path)

        assert first == second
        assert second.stat().st_mtime_ns == mtime
        assert first.suffix == ""
