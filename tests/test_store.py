from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from ghdb.errors import CacheNotFoundError, CorruptCacheError
from ghdb.github import PullRequest, Repository
from ghdb.store import ZERO_TIME, Snapshot, SnapshotStore


def _repo(i: int) -> Repository:
    return Repository(
        name=f"repo-{i}",
        owner="octo",
        clone_url=f"https://github.com/octo/repo-{i}.git",
        html_url=f"https://github.com/octo/repo-{i}",
        description="desc" if i % 2 else None,
    )


def _pr(i: int) -> PullRequest:
    return PullRequest(
        number=i,
        title=f"PR {i}",
        author="alice",
        html_url=f"https://github.com/octo/repo-{i}/pull/{i}",
        repository_url=f"https://api.github.com/repos/octo/repo-{i}",
        draft=bool(i % 2),
    )


@pytest.mark.parametrize("count", [0, 1, 25])
def test_snapshot_roundtrip(tmp_path, count):
    snapshot = Snapshot(
        timestamp=datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc),
        repositories=tuple(_repo(i) for i in range(count)),
        pull_requests=tuple(_pr(i) for i in range(count)),
    )
    path = tmp_path / "cache.json"
    SnapshotStore(path).save(snapshot)

    assert SnapshotStore(path).load() == snapshot


def test_zero_timestamp_roundtrip(tmp_path):
    path = tmp_path / "cache.json"
    SnapshotStore(path).save(Snapshot())

    loaded = SnapshotStore(path).load()
    assert loaded.timestamp == ZERO_TIME
    assert loaded.repositories == ()
    assert loaded.pull_requests == ()


def test_load_missing_file_is_not_found(tmp_path):
    store = SnapshotStore(tmp_path / "missing" / "cache.json")
    with pytest.raises(CacheNotFoundError):
        store.load()


def test_load_invalid_json_is_corrupt(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text('{"timestamp": "2024-01-01T00:00:00Z", "repositories": [')
    with pytest.raises(CorruptCacheError):
        SnapshotStore(path).load()


def test_load_incompatible_schema_is_corrupt(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({
        "timestamp": "2024-01-01T00:00:00Z",
        "repositories": [{"name": "only-a-name"}],
        "pull_requests": [],
    }))
    with pytest.raises(CorruptCacheError):
        SnapshotStore(path).load()


@pytest.mark.parametrize("section", ["repositories", "pull_requests"])
def test_load_non_object_record_is_corrupt(tmp_path, section):
    path = tmp_path / "cache.json"
    data = {"timestamp": "2024-01-01T00:00:00Z", "repositories": [], "pull_requests": []}
    data[section] = [1]
    path.write_text(json.dumps(data))
    with pytest.raises(CorruptCacheError):
        SnapshotStore(path).load()


def test_load_missing_section_is_corrupt(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({"timestamp": "2024-01-01T00:00:00Z", "repositories": []}))
    with pytest.raises(CorruptCacheError):
        SnapshotStore(path).load()


def test_load_is_cached_in_memory(tmp_path):
    path = tmp_path / "cache.json"
    SnapshotStore(path).save(Snapshot(repositories=(_repo(1),)))

    store = SnapshotStore(path)
    first = store.load()
    path.unlink()

    assert store.load() is first


def test_interrupted_save_keeps_previous_snapshot(tmp_path):
    path = tmp_path / "cache.json"
    previous = Snapshot(repositories=(_repo(1),))
    SnapshotStore(path).save(previous)

    with patch("ghdb.store.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            SnapshotStore(path).save(Snapshot(repositories=(_repo(2), _repo(3))))

    assert SnapshotStore(path).load() == previous
    assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]


def test_interrupted_first_save_leaves_not_found(tmp_path):
    path = tmp_path / "cache.json"

    with patch("ghdb.store.json.dump", side_effect=KeyboardInterrupt):
        with pytest.raises(KeyboardInterrupt):
            SnapshotStore(path).save(Snapshot(repositories=(_repo(1),)))

    with pytest.raises(CacheNotFoundError):
        SnapshotStore(path).load()
    assert list(tmp_path.iterdir()) == []


def test_cache_file_uses_github_field_names(tmp_path):
    path = tmp_path / "cache.json"
    SnapshotStore(path).save(Snapshot(repositories=(_repo(1),), pull_requests=(_pr(1),)))

    data = json.loads(path.read_text())
    assert set(data) == {"timestamp", "repositories", "pull_requests"}
    assert data["repositories"][0]["owner"] == {"login": "octo"}
    assert data["pull_requests"][0]["user"] == {"login": "alice"}
