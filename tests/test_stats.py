from typing import Callable

from repobeats.models import CommitRecord
from repobeats.stats import UNKNOWN_AUTHOR, compute_stats

MakeCommit = Callable[..., CommitRecord]


def test_totals_and_range(make_commit: MakeCommit) -> None:
    commits = [
        make_commit(timestamp=5_000, additions=3, deletions=1, files_changed=2),
        make_commit(timestamp=2_000, additions=7),
        make_commit(timestamp=9_000, deletions=4, files_changed=1),
    ]
    stats = compute_stats(commits)
    assert stats.total_commits == 3
    assert stats.total_additions == 10
    assert stats.total_deletions == 5
    assert stats.total_files_changed == 3
    assert (stats.date_range.earliest, stats.date_range.latest) == (2_000, 9_000)


def test_authors_ranked_by_activity(make_commit: MakeCommit) -> None:
    commits = [
        make_commit(author_name="bob", author_email="bob@example.com"),
        make_commit(author_name="alice", author_email="alice@example.com"),
        make_commit(author_name="alice"),
        make_commit(),
    ]
    authors = compute_stats(commits).authors
    assert [(a.name, a.commit_count) for a in authors] == [
        ("alice", 2),
        ("bob", 1),
        (UNKNOWN_AUTHOR, 1),
    ]
    assert authors[0].email == "alice@example.com"


def test_empty_history_uses_now() -> None:
    stats = compute_stats([], now_ms=1_234)
    assert stats.total_commits == 0
    assert stats.authors == ()
    assert stats.date_range.earliest == stats.date_range.latest == 1_234


def test_wire_names(make_commit: MakeCommit) -> None:
    dumped = compute_stats([make_commit(author_name="x")]).model_dump(by_alias=True)
    assert "totalCommits" in dumped
    assert dumped["authors"][0]["commitCount"] == 1
