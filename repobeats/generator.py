"""Commit history -> note sequence.

Each commit becomes exactly one note. Notes are laid end to end in
timestamp order, so the piece has no rests and no overlaps: a note starts
where the previous one stops.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import tzinfo

from .config import DurationConfig, MappingConfig, PitchConfig, VelocityConfig
from .errors import EmptyInputError
from .hashing import hash_string
from .models import CommitRecord, NoteEvent, RenderResult
from .scales import note_in_scale
from .timeutils import day_of_week, hour_of_day, round_half_up

_LOGGER = logging.getLogger("repobeats.generator")

MIDI_MAX_PITCH = 127

# Normalization ceilings: counts at or above these map to 1.0
ADDITIONS_CEILING = 500
DELETIONS_CEILING = 500
DIFF_CEILING = 1000
FILES_CEILING = 20
MESSAGE_CEILING = 200

# Stand-ins for counts missing from a commit record
DEFAULT_FILES_CHANGED = 1
DEFAULT_MESSAGE_LENGTH = 50


def _ratio(value: int, ceiling: int) -> float:
    return min(value / ceiling, 1.0)


def _files_changed(commit: CommitRecord) -> int:
    return DEFAULT_FILES_CHANGED if commit.files_changed is None else commit.files_changed


def _message_length(commit: CommitRecord) -> int:
    return DEFAULT_MESSAGE_LENGTH if commit.message is None else len(commit.message)


def pitch_signal(commit: CommitRecord, pitch: PitchConfig, tz: tzinfo | None = None) -> int:
    """Raw integer the pitch is quantized from."""
    match pitch.source:
        case "author":
            return hash_string(commit.author_name if commit.author_name is not None else "unknown")
        case "hour":
            return hour_of_day(commit.timestamp, tz)
        case "dayOfWeek":
            return day_of_week(commit.timestamp, tz)
        case _:
            # "sha" and anything unrecognised: permissive fallback, not validation
            return hash_string(commit.sha)


def compute_pitch(commit: CommitRecord, pitch: PitchConfig, tz: tzinfo | None = None) -> int:
    value = note_in_scale(
        pitch_signal(commit, pitch, tz),
        pitch.scale,
        pitch.root_note,
        pitch.octave_min,
        pitch.octave_max,
    )
    # octave 8 plus a high root/offset can pass 127; fold down keeping the pitch class
    while value > MIDI_MAX_PITCH:
        value -= 12
    return value


def compute_velocity(
    commit: CommitRecord, velocity: VelocityConfig, tz: tzinfo | None = None
) -> int:
    match velocity.source:
        case "additions":
            normalized = _ratio(commit.additions or 0, ADDITIONS_CEILING)
        case "deletions":
            normalized = _ratio(commit.deletions or 0, DELETIONS_CEILING)
        case "files":
            normalized = _ratio(_files_changed(commit), FILES_CEILING)
        case "messageLength":
            normalized = _ratio(_message_length(commit), MESSAGE_CEILING)
        case "timeOfDay":
            hour = hour_of_day(commit.timestamp, tz)
            normalized = hour / 12 if hour < 12 else (24 - hour) / 12
        case _:
            return velocity.min

    return round_half_up(velocity.min + normalized * (velocity.max - velocity.min))


def compute_base_duration(commit: CommitRecord, duration: DurationConfig) -> int:
    """Duration in ms before tempo scaling."""
    match duration.source:
        case "diff":
            total_changes = (commit.additions or 0) + (commit.deletions or 0)
            normalized = _ratio(total_changes, DIFF_CEILING)
        case "files":
            normalized = _ratio(_files_changed(commit), FILES_CEILING)
        case "messageLength":
            normalized = _ratio(_message_length(commit), MESSAGE_CEILING)
        case _:
            return duration.min_ms

    return round_half_up(duration.min_ms + normalized * (duration.max_ms - duration.min_ms))


def generate(
    commits: Sequence[CommitRecord],
    mapping: MappingConfig,
    *,
    tz: tzinfo | None = None,
) -> RenderResult:
    """Map commits onto notes according to ``mapping``.

    Args:
        commits: Commit records in any order; they are stably sorted by
            timestamp, so equal timestamps keep their input order.
        mapping: An already validated mapping configuration.
        tz: Time zone for the hour/day-of-week sources. Defaults to the
            local zone of the running process.

    Raises:
        EmptyInputError: if ``commits`` is empty.
    """
    if not commits:
        raise EmptyInputError("No commits to render")

    ordered = sorted(commits, key=lambda commit: commit.timestamp)
    tempo_scale = mapping.tempo.duration_scale

    notes: list[NoteEvent] = []
    current_ms = 0
    for commit in ordered:
        base_duration = compute_base_duration(commit, mapping.duration)
        duration_ms = round_half_up(base_duration * tempo_scale)
        notes.append(
            NoteEvent(
                pitch=compute_pitch(commit, mapping.pitch, tz),
                velocity=compute_velocity(commit, mapping.velocity, tz),
                start_ms=current_ms,
                duration_ms=duration_ms,
                commit_sha=commit.sha,
            )
        )
        current_ms += duration_ms

    _LOGGER.debug(
        "Generated %d notes (%d ms) with mapping %r", len(notes), current_ms, mapping.name
    )
    return RenderResult(notes=tuple(notes), duration_ms=current_ms, note_count=len(notes))
