from __future__ import annotations

from typing import Any


class RepoBeatsError(Exception):
    """Base error for the repobeats library."""

    code = "REPOBEATS_ERROR"


class EmptyInputError(RepoBeatsError):
    """Raised when there are no commits or notes to process."""

    code = "EMPTY_INPUT"


class NoVoiceSelectedError(RepoBeatsError):
    """Raised when synthesis is requested with zero enabled voices."""

    code = "NO_VOICE_SELECTED"


class InvalidConfigurationError(RepoBeatsError):
    """Raised when a mapping configuration cannot be parsed or validated."""

    code = "INVALID_CONFIGURATION"

    def __init__(self, message: str, issues: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class RepoNotFoundError(RepoBeatsError):
    """Raised when a path is not a git working tree."""

    code = "REPO_NOT_FOUND"

    def __init__(self, path: str) -> None:
        super().__init__(f"Git repository not found at: {path}")
        self.path = path


class GitCommandError(RepoBeatsError):
    """Raised when a git subprocess fails."""

    code = "GIT_COMMAND_ERROR"

    def __init__(self, command: str, message: str) -> None:
        super().__init__(f"Git command failed [{command}]: {message}")
        self.command = command


class CacheError(RepoBeatsError):
    """Raised when the commit cache directory cannot be prepared."""

    code = "CACHE_ERROR"


class ExportError(RepoBeatsError):
    """Raised when an export bundle cannot be assembled."""

    code = "EXPORT_ERROR"
