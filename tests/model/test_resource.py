import dataclasses

import pytest

from assetsync.errors import ValidationError
from assetsync.model import IndexerProgress, ResourceKey, UpdateCheckResult, UpdateStatus


@pytest.mark.short
def test_resource_key_branch_and_refspec():
    key = ResourceKey.of("en", "cards")
    assert key.branch == "en/cards"
    assert key.refspec == "+refs/heads/en/cards:refs/remotes/origin/en/cards"
    assert str(key) == "en/cards"


@pytest.mark.short
def test_resource_key_is_immutable_and_hashable():
    key = ResourceKey("en", "cards")
    with pytest.raises(dataclasses.FrozenInstanceError):
        key.locale = "jp"
    assert {key: 1}[ResourceKey("en", "cards")] == 1


@pytest.mark.short
def test_resource_key_validates():
    with pytest.raises(ValidationError):
        ResourceKey("en/us", "cards")


@pytest.mark.short
def test_indexer_progress_starts_at_zero():
    progress = IndexerProgress()
    assert dataclasses.astuple(progress) == (0, 0, 0, 0, 0, 0, 0)
    assert progress.fraction == 0.0


@pytest.mark.short
def test_indexer_progress_fraction():
    assert IndexerProgress(total_objects=8, indexed_objects=2).fraction == 0.25


@pytest.mark.short
def test_update_check_result_fields():
    result = UpdateCheckResult(
        is_update_available=True, local_sha=None, remote_sha="abc123"
    )
    assert result.is_update_available
    assert result.local_sha is None


@pytest.mark.short
def test_update_status_values():
    assert UpdateStatus.UP_TO_DATE == 0
    assert UpdateStatus.UPDATED == 1
    assert UpdateStatus.FAILED == -1
