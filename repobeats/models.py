from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class CommitRecord(BaseModel):
    """One commit as handed over by the history backend.

    Field names are snake_case in Python and camelCase on the wire
    (``authorName``, ``filesChanged``), matching exported commit dumps.
    """

    sha: str = Field(min_length=7, max_length=40)
    author_name: str | None = None
    author_email: str | None = None
    timestamp: int = Field(gt=0, description="Epoch milliseconds.")
    message: str | None = None
    files_changed: int | None = Field(default=None, ge=0)
    additions: int | None = Field(default=None, ge=0)
    deletions: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(**_WIRE_CONFIG, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def load_commits(items: Iterable[Mapping[str, Any] | CommitRecord]) -> list[CommitRecord]:
    """Coerce wire dicts (or records) into CommitRecords, preserving order."""
    return [
        item if isinstance(item, CommitRecord) else CommitRecord.model_validate(item)
        for item in items
    ]


class NoteEvent(BaseModel):
    pitch: int = Field(ge=0, le=127)
    velocity: int = Field(ge=0, le=127)
    start_ms: int = Field(ge=0)
    duration_ms: int = Field(gt=0)
    commit_sha: str

    model_config = ConfigDict(**_WIRE_CONFIG, extra="forbid")

    @property
    def end_ms(self) -> int:
        return self.start_ms + self.duration_ms


class RenderResult(BaseModel):
    """Output of the note generator and input to every exporter."""

    notes: tuple[NoteEvent, ...]
    duration_ms: int = Field(ge=0)
    note_count: int = Field(ge=0)

    model_config = ConfigDict(**_WIRE_CONFIG, extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class AuthorStats(BaseModel):
    name: str
    email: str | None = None
    commit_count: int = Field(gt=0)

    model_config = ConfigDict(**_WIRE_CONFIG, extra="forbid")


class DateRange(BaseModel):
    earliest: int
    latest: int

    model_config = ConfigDict(**_WIRE_CONFIG, extra="forbid")


class CommitStats(BaseModel):
    total_commits: int = Field(ge=0)
    total_additions: int = Field(ge=0)
    total_deletions: int = Field(ge=0)
    total_files_changed: int = Field(ge=0)
    date_range: DateRange
    authors: tuple[AuthorStats, ...] = ()

    model_config = ConfigDict(**_WIRE_CONFIG, extra="forbid")


class RepoSummary(BaseModel):
    name: str
    path: str
    head: str
    branch: str
    stats: CommitStats

    model_config = ConfigDict(**_WIRE_CONFIG, extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
