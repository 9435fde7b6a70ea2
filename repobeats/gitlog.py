from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from .errors import GitCommandError, RepoNotFoundError
from .models import CommitRecord, RepoSummary
from .stats import compute_stats
from .timeutils import parse_git_date

_LOGGER = logging.getLogger("repobeats.gitlog")

DEFAULT_MAX_COMMITS = 1000

_RECORD_MARK = "COMMIT_START"
_FIELD_SEP = "\x1f"
_LOG_FORMAT = _FIELD_SEP.join(("%H", "%an", "%ae", "%aI", "%s"))

_FILES_RE = re.compile(r"(\d+)\s+files?\s+changed")
_INSERTIONS_RE = re.compile(r"(\d+)\s+insertions?\(\+\)")
_DELETIONS_RE = re.compile(r"(\d+)\s+deletions?\(-\)")


def _parse_header(line: str) -> dict[str, object]:
    sha, author_name, author_email, date, message = (line.split(_FIELD_SEP, 4) + [""] * 5)[:5]
    return {
        "sha": sha.strip(),
        "author_name": author_name or None,
        "author_email": author_email or None,
        "timestamp": parse_git_date(date),
        "message": message,
    }


def _parse_shortstat(line: str) -> dict[str, int]:
    counts = {"files_changed": 0, "additions": 0, "deletions": 0}
    for key, pattern in (
        ("files_changed", _FILES_RE),
        ("additions", _INSERTIONS_RE),
        ("deletions", _DELETIONS_RE),
    ):
        match = pattern.search(line)
        if match:
            counts[key] = int(match.group(1))
    return counts


def parse_log(output: str, *, include_stats: bool) -> list[CommitRecord]:
    """Parse ``git log`` output produced with this module's format string."""
    commits: list[CommitRecord] = []
    for block in output.split(_RECORD_MARK):
        lines = [line for line in block.strip().splitlines() if line.strip()]
        if not lines:
            continue
        try:
            fields = _parse_header(lines[0])
            if include_stats:
                stat_line = next((line for line in lines[1:] if "changed" in line), "")
                fields.update(_parse_shortstat(stat_line))
            commits.append(CommitRecord.model_validate(fields))
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError too
            raise GitCommandError("log", f"unparseable commit record {lines[0]!r}: {exc}") from exc
    return commits


class GitRepository:
    """Read-only view of a git working tree via the ``git`` binary."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).resolve()

    @property
    def name(self) -> str:
        return self.path.name

    def _git(self, *args: str) -> str:
        command = ["git", "-C", str(self.path), *args]
        try:
            result = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise GitCommandError(args[0], str(exc)) from exc
        if result.returncode != 0:
            raise GitCommandError(args[0], result.stderr.strip() or f"exit {result.returncode}")
        return result.stdout

    def validate(self) -> None:
        if not self.path.is_dir():
            raise RepoNotFoundError(str(self.path))
        try:
            inside = self._git("rev-parse", "--is-inside-work-tree").strip()
        except GitCommandError as exc:
            raise RepoNotFoundError(str(self.path)) from exc
        if inside != "true":
            raise RepoNotFoundError(str(self.path))

    def head(self) -> str:
        return self._git("rev-parse", "HEAD").strip()

    def branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD").strip()

    def commits(
        self,
        *,
        since: str | None = None,
        until: str | None = None,
        max_commits: int = DEFAULT_MAX_COMMITS,
        include_stats: bool = True,
    ) -> list[CommitRecord]:
        """Newest-first commit records, optionally with --shortstat counts."""
        self.validate()
        args = ["log", f"--max-count={max_commits}", f"--format={_RECORD_MARK}{_LOG_FORMAT}"]
        if include_stats:
            args.append("--shortstat")
        if since:
            args.append(f"--since={since}")
        if until:
            args.append(f"--until={until}")

        output = self._git(*args)
        commits = parse_log(output, include_stats=include_stats)
        _LOGGER.debug("Read %d commits from %s", len(commits), self.path)
        return commits

    def summary(self) -> RepoSummary:
        commits = self.commits(include_stats=True)
        return RepoSummary(
            name=self.name,
            path=str(self.path),
            head=self.head(),
            branch=self.branch(),
            stats=compute_stats(commits),
        )
