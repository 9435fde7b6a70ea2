from __future__ import annotations

import time
from collections.abc import Sequence

from .models import AuthorStats, CommitRecord, CommitStats, DateRange

UNKNOWN_AUTHOR = "Unknown"


def compute_stats(commits: Sequence[CommitRecord], now_ms: int | None = None) -> CommitStats:
    """Aggregate counts, date range and per-author totals.

    Authors are ordered by commit count, most active first; ties keep the
    order in which authors were first seen. An empty history reports
    ``now_ms`` (default: the current time) as both ends of the range.
    """
    authors: dict[str, tuple[str | None, int]] = {}
    for commit in commits:
        name = commit.author_name or UNKNOWN_AUTHOR
        email, count = authors.get(name, (commit.author_email, 0))
        authors[name] = (email, count + 1)

    if commits:
        earliest = min(commit.timestamp for commit in commits)
        latest = max(commit.timestamp for commit in commits)
    else:
        earliest = latest = now_ms if now_ms is not None else int(time.time() * 1000)

    ranked = sorted(authors.items(), key=lambda item: item[1][1], reverse=True)
    return CommitStats(
        total_commits=len(commits),
        total_additions=sum(commit.additions or 0 for commit in commits),
        total_deletions=sum(commit.deletions or 0 for commit in commits),
        total_files_changed=sum(commit.files_changed or 0 for commit in commits),
        date_range=DateRange(earliest=earliest, latest=latest),
        authors=tuple(
            AuthorStats(name=name, email=email, commit_count=count)
            for name, (email, count) in ranked
        ),
    )
