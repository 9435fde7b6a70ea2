from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from collections.abc import Sequence
from pathlib import Path

from .errors import CacheError
from .models import CommitRecord, load_commits

_LOGGER = logging.getLogger("repobeats.cache")
_CACHE_DIR_ENV = "REPOBEATS_CACHE_DIR"

DEFAULT_MAX_AGE_SECONDS = 3600


def default_cache_dir() -> Path:
    configured = os.environ.get(_CACHE_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "repobeats"


def _digest(text: str, length: int) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


class CommitCache:
    """Best-effort JSON cache of commit lists, keyed by repository and query.

    An entry is only served while the repository HEAD it was recorded
    against is unchanged and it is younger than ``max_age``. Read and write
    problems are logged and behave like a miss.
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        *,
        max_age: float = DEFAULT_MAX_AGE_SECONDS,
    ) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else default_cache_dir()
        self.max_age = max_age
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheError(f"Failed to create cache directory {self.cache_dir}: {exc}") from exc

    @staticmethod
    def cache_key(
        repo_path: str, *, since: str | None, until: str | None, max_commits: int
    ) -> str:
        return _digest(f"{repo_path}|{since or ''}|{until or ''}|{max_commits}", 16)

    def _repo_dir(self, repo_path: str) -> Path:
        return self.cache_dir / _digest(repo_path, 12)

    def _entry_path(
        self, repo_path: str, since: str | None, until: str | None, max_commits: int
    ) -> Path:
        key = self.cache_key(repo_path, since=since, until=until, max_commits=max_commits)
        return self._repo_dir(repo_path) / f"{key}.json"

    def get(
        self,
        repo_path: str,
        head: str,
        *,
        since: str | None = None,
        until: str | None = None,
        max_commits: int,
    ) -> list[CommitRecord] | None:
        path = self._entry_path(repo_path, since, until, max_commits)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
            if entry.get("head") != head:
                _LOGGER.debug("Cache entry %s is for another HEAD; dropping", path.name)
                path.unlink(missing_ok=True)
                return None
            if time.time() - float(entry.get("cachedAt", 0)) > self.max_age:
                _LOGGER.debug("Cache entry %s expired; dropping", path.name)
                path.unlink(missing_ok=True)
                return None
            return load_commits(entry["commits"])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            _LOGGER.warning("Cache read failed for %s: %s", path, exc)
            return None

    def set(
        self,
        repo_path: str,
        head: str,
        commits: Sequence[CommitRecord],
        *,
        since: str | None = None,
        until: str | None = None,
        max_commits: int,
    ) -> None:
        path = self._entry_path(repo_path, since, until, max_commits)
        entry = {
            "head": head,
            "since": since,
            "until": until,
            "maxCommits": max_commits,
            "commits": [commit.to_wire() for commit in commits],
            "cachedAt": time.time(),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(entry), encoding="utf-8")
        except OSError as exc:
            _LOGGER.warning("Cache write failed for %s: %s", path, exc)

    def invalidate(self, repo_path: str) -> None:
        repo_dir = self._repo_dir(repo_path)
        if not repo_dir.exists():
            return
        try:
            for entry in repo_dir.iterdir():
                entry.unlink()
        except OSError as exc:
            _LOGGER.warning("Cache invalidation failed for %s: %s", repo_dir, exc)

    def clear(self) -> None:
        try:
            for repo_dir in self.cache_dir.iterdir():
                if repo_dir.is_dir():
                    for entry in repo_dir.iterdir():
                        entry.unlink()
        except OSError as exc:
            _LOGGER.warning("Cache clear failed: %s", exc)
