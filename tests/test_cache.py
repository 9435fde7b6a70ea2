import json
import time
from pathlib import Path
from typing import Callable

import pytest

from repobeats.cache import CommitCache, default_cache_dir
from repobeats.errors import CacheError
from repobeats.models import CommitRecord

MakeCommit = Callable[..., CommitRecord]
REPO = "/work/project"


def _query(**overrides: object) -> dict[str, object]:
    query: dict[str, object] = {"since": None, "until": None, "max_commits": 1000}
    query.update(overrides)
    return query


def test_round_trip(tmp_path: Path, make_commit: MakeCommit) -> None:
    cache = CommitCache(tmp_path)
    commits = [make_commit(author_name="alice", additions=4), make_commit(message="fix")]
    cache.set(REPO, "head1", commits, **_query())
    assert cache.get(REPO, "head1", **_query()) == commits


def test_miss_for_other_query(tmp_path: Path, make_commit: MakeCommit) -> None:
    cache = CommitCache(tmp_path)
    cache.set(REPO, "head1", [make_commit()], **_query())
    assert cache.get(REPO, "head1", **_query(since="2024-01-01")) is None
    assert cache.get(REPO, "head1", **_query(max_commits=10)) is None
    assert cache.get("/work/other", "head1", **_query()) is None


def test_head_change_drops_entry(tmp_path: Path, make_commit: MakeCommit) -> None:
    cache = CommitCache(tmp_path)
    cache.set(REPO, "head1", [make_commit()], **_query())
    assert cache.get(REPO, "head2", **_query()) is None
    assert cache.get(REPO, "head1", **_query()) is None


def test_expired_entry_dropped(tmp_path: Path, make_commit: MakeCommit, monkeypatch: pytest.MonkeyPatch) -> None:
    cache = CommitCache(tmp_path, max_age=60)
    cache.set(REPO, "head1", [make_commit()], **_query())
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now + 61)
    assert cache.get(REPO, "head1", **_query()) is None


def test_corrupt_entry_is_a_miss(tmp_path: Path, make_commit: MakeCommit) -> None:
    cache = CommitCache(tmp_path)
    cache.set(REPO, "head1", [make_commit()], **_query())
    (entry,) = tmp_path.glob("*/*.json")
    entry.write_text("{not json", encoding="utf-8")
    assert cache.get(REPO, "head1", **_query()) is None


def test_entry_is_plain_json(tmp_path: Path, make_commit: MakeCommit) -> None:
    cache = CommitCache(tmp_path)
    cache.set(REPO, "head1", [make_commit(files_changed=3)], **_query(until="HEAD~1"))
    (entry,) = tmp_path.glob("*/*.json")
    payload = json.loads(entry.read_text(encoding="utf-8"))
    assert payload["head"] == "head1"
    assert payload["until"] == "HEAD~1"
    assert payload["commits"][0]["filesChanged"] == 3


def test_invalidate_and_clear(tmp_path: Path, make_commit: MakeCommit) -> None:
    cache = CommitCache(tmp_path)
    cache.set(REPO, "h", [make_commit()], **_query())
    cache.set("/work/other", "h", [make_commit()], **_query())

    cache.invalidate(REPO)
    assert cache.get(REPO, "h", **_query()) is None
    assert cache.get("/work/other", "h", **_query()) is not None

    cache.clear()
    assert list(tmp_path.glob("*/*.json")) == []


def test_cache_key_is_stable() -> None:
    first = CommitCache.cache_key(REPO, since=None, until=None, max_commits=5)
    assert first == CommitCache.cache_key(REPO, since="", until="", max_commits=5)
    assert len(first) == 16
    assert first != CommitCache.cache_key(REPO, since=None, until=None, max_commits=6)


def test_default_dir_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOBEATS_CACHE_DIR", str(tmp_path / "c"))
    assert default_cache_dir() == tmp_path / "c"
    assert CommitCache().cache_dir.is_dir()


def test_unusable_directory_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(CacheError):
        CommitCache(blocker / "sub")
