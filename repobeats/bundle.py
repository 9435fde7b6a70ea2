from __future__ import annotations

import io
import json
import logging
import time
import zipfile
from collections.abc import Sequence
from datetime import datetime, timezone

from . import __version__
from .config import MappingConfig
from .errors import ExportError, RepoBeatsError
from .generator import generate
from .hashing import anonymize_string
from .midi import encode_midi
from .models import CommitRecord

_LOGGER = logging.getLogger("repobeats.bundle")

_README = """RepoBeats Export
================

Generated: {generated}
Repository: {repo_name}
Commits: {commit_count}
Duration: {duration_s}s

Files:
- repobeats.json : Metadata and mapping configuration
- commits.json   : Commit data used for generation
- track.mid      : Generated MIDI file

Open track.mid with any MIDI player or DAW.
"""


def anonymize_commits(commits: Sequence[CommitRecord]) -> list[CommitRecord]:
    """Hash author names and drop emails and messages."""
    return [
        commit.model_copy(
            update={
                "author_name": anonymize_string(commit.author_name or "unknown"),
                "author_email": None,
                "message": None,
            }
        )
        for commit in commits
    ]


def create_bundle(
    commits: Sequence[CommitRecord],
    mapping: MappingConfig,
    repo_name: str,
    *,
    anonymize: bool = False,
) -> bytes:
    """Build a zip holding the MIDI track, the commit data and its metadata."""
    processed = anonymize_commits(commits) if anonymize else list(commits)
    try:
        result = generate(processed, mapping)
        midi_bytes = encode_midi(
            result, mapping.tempo.bpm, mapping.instrument, track_name=mapping.name
        )
    except RepoBeatsError as exc:
        raise ExportError(f"Export failed: {exc}") from exc

    metadata = {
        "version": __version__,
        "generatedAt": int(time.time() * 1000),
        "repo": {"name": repo_name, "commitCount": len(commits)},
        "mapping": mapping.to_wire(),
        "options": {"anonymize": anonymize},
        "stats": {"durationMs": result.duration_ms, "noteCount": result.note_count},
    }
    readme = _README.format(
        generated=datetime.now(timezone.utc).isoformat(),
        repo_name=repo_name,
        commit_count=len(commits),
        duration_s=round(result.duration_ms / 1000),
    )

    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
            archive.writestr("repobeats.json", json.dumps(metadata, indent=2))
            archive.writestr(
                "commits.json", json.dumps([commit.to_wire() for commit in processed], indent=2)
            )
            archive.writestr("track.mid", midi_bytes)
            archive.writestr("README.txt", readme)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ExportError(f"Archive creation failed: {exc}") from exc

    _LOGGER.debug("Bundled %d commits for %s", len(commits), repo_name)
    return buffer.getvalue()
