from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from . import __version__
from .bundle import anonymize_commits, create_bundle
from .cache import CommitCache
from .config import MappingConfig, load_mapping
from .errors import InvalidConfigurationError
from .gitlog import DEFAULT_MAX_COMMITS, GitRepository
from .hashing import sha7
from .logging_utils import configure_logging, log_exception
from .models import CommitRecord, load_commits
from .presets import PRESETS, get_preset
from .scales import midi_note_to_name
from .session import RenderSession
from .spinner import Spinner, render_error
from .stats import compute_stats
from .synth import VOICES, parse_voices
from .timeutils import format_date, format_duration

_LOGGER = logging.getLogger("repobeats.cli")
_CONSOLE = Console()

FORMATS = ("midi", "wav", "json", "bundle")
_EXTENSIONS = {"midi": ".mid", "wav": ".wav", "json": ".json", "bundle": "-repobeats.zip"}
# Rough per-commit length used by the inspect preview
_PREVIEW_MS_PER_NOTE = 300


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repobeats", description="Transform your git commits into music."
    )
    parser.add_argument("-v", "--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Export commits as MIDI, WAV, JSON, or bundle.")
    export.add_argument("path", nargs="?", default=".", help="Path to git repository.")
    export.add_argument("-f", "--format", choices=FORMATS, default="bundle")
    export.add_argument("-o", "--out", type=str, default=None, help="Output file path.")
    export.add_argument("--preset", type=str, default="default", choices=sorted(PRESETS))
    export.add_argument("--mapping", type=str, default=None, help="Mapping JSON file (overrides --preset).")
    export.add_argument(
        "--voices",
        type=str,
        default=",".join(VOICES),
        help="Voices for WAV output, comma separated.",
    )
    export.add_argument("--commits", type=str, default=None, help="Read commits from a JSON export instead of git.")
    export.add_argument("--seed", type=int, default=None, help="Seed for the drum noise.")
    export.add_argument("--anonymize", action="store_true", help="Anonymize authors and drop messages.")
    _add_range_arguments(export)

    inspect = sub.add_parser("inspect", help="Display commit statistics and a mapping preview.")
    inspect.add_argument("path", nargs="?", default=".", help="Path to git repository.")
    inspect.add_argument("--json", action="store_true", help="Output as JSON.")
    _add_range_arguments(inspect)

    sub.add_parser("presets", help="List the built-in mapping presets.")
    return parser


def _add_range_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--since", type=str, default=None, help="Start date or revision.")
    parser.add_argument("--until", type=str, default=None, help="End date or revision.")
    parser.add_argument("--max-commits", type=int, default=DEFAULT_MAX_COMMITS)
    parser.add_argument("--no-cache", action="store_true", help="Bypass the commit cache.")


def _resolve_mapping(args: argparse.Namespace) -> MappingConfig:
    if args.mapping:
        return load_mapping(args.mapping)
    return get_preset(args.preset)


def _read_commit_file(path: str) -> list[CommitRecord]:
    try:
        payload: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidConfigurationError(f"Cannot read commits from {path}: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("commits", [])
    return load_commits(payload)


def _collect_commits(repo: GitRepository, args: argparse.Namespace) -> list[CommitRecord]:
    repo.validate()
    query = {"since": args.since, "until": args.until, "max_commits": args.max_commits}
    cache = None if args.no_cache else CommitCache()
    head = repo.head()
    if cache is not None:
        cached = cache.get(str(repo.path), head, **query)
        if cached is not None:
            _LOGGER.info("Using %d cached commits for %s", len(cached), repo.path)
            return cached
    commits = repo.commits(include_stats=True, **query)
    if cache is not None:
        cache.set(str(repo.path), head, commits, **query)
    return commits


def _export(args: argparse.Namespace) -> int:
    mapping = _resolve_mapping(args)
    repo_path = Path(args.path).resolve()
    repo_name = repo_path.name
    out_path = Path(args.out or f"{repo_name}{_EXTENSIONS[args.format]}").resolve()

    with Spinner("Collecting commit data...") as spinner:
        if args.commits:
            commits = _read_commit_file(args.commits)
        else:
            commits = _collect_commits(GitRepository(repo_path), args)
        spinner.update(f"Generating {args.format}...")
        _CONSOLE.print(f"Found {len(commits)} commits")

        if not commits:
            _CONSOLE.print("[yellow]No commits found in the specified range[/yellow]")
            return 0

        if args.format == "json":
            exported = anonymize_commits(commits) if args.anonymize else commits
            data = {
                "commits": [commit.to_wire() for commit in exported],
                "mapping": mapping.to_wire(),
            }
            out_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        elif args.format == "bundle":
            out_path.write_bytes(
                create_bundle(commits, mapping, repo_name, anonymize=args.anonymize)
            )
        else:
            voices = parse_voices(args.voices)
            session = RenderSession(mapping, voices=voices, seed=args.seed)
            session.generate(commits)
            if args.format == "midi":
                session.save_midi(out_path)
            else:
                spinner.update("Rendering WAV audio...")
                session.save_wav(out_path)
                _CONSOLE.print(f"[dim]  Voices: {', '.join(voices)}[/dim]")

    _CONSOLE.print(f"{args.format.upper()} exported to [cyan]{out_path}[/cyan]")
    _CONSOLE.print("[green]Export complete![/green]")
    return 0


def _inspect(args: argparse.Namespace) -> int:
    repo = GitRepository(args.path)
    with Spinner("Analyzing repository..."):
        commits = _collect_commits(repo, args)
        branch = repo.branch()
        head = repo.head()
    stats = compute_stats(commits)

    if args.json:
        payload = {
            "name": repo.name,
            "path": str(repo.path),
            "head": head,
            "branch": branch,
            "stats": stats.model_dump(by_alias=True, exclude_none=True),
            "commits": [commit.to_wire() for commit in commits],
        }
        _CONSOLE.print_json(json.dumps(payload))
        return 0

    _CONSOLE.print(f"\n[bold cyan]  RepoBeats Inspection: {repo.name}[/bold cyan]\n")
    _CONSOLE.print("[bold]  Repository Info[/bold]")
    _CONSOLE.print(f"    Branch:        [yellow]{branch}[/yellow]")
    _CONSOLE.print(f"    HEAD:          [dim]{sha7(head)}[/dim]\n")
    _CONSOLE.print("[bold]  Commit Statistics[/bold]")
    _CONSOLE.print(f"    Total commits: [green]{stats.total_commits}[/green]")
    if commits:
        earliest, latest = stats.date_range.earliest, stats.date_range.latest
        _CONSOLE.print(f"    Date range:    {format_date(earliest)} -> {format_date(latest)}")
        _CONSOLE.print(f"    Duration:      {format_duration(latest - earliest)}")
        _CONSOLE.print(f"    Additions:     [green]+{stats.total_additions}[/green]")
        _CONSOLE.print(f"    Deletions:     [red]-{stats.total_deletions}[/red]\n")
        _CONSOLE.print("[bold]  Top Authors[/bold]")
        for author in stats.authors[:5]:
            share = author.commit_count / stats.total_commits * 100
            _CONSOLE.print(f"    [blue]{author.name}[/blue]: {author.commit_count} commits ({share:.1f}%)")
        _CONSOLE.print("\n[bold]  Mapping Preview (Default Preset)[/bold]")
        estimate = format_duration(len(commits) * _PREVIEW_MS_PER_NOTE)
        _CONSOLE.print(f"    Estimated duration: [cyan]{estimate}[/cyan] @ 120 BPM")
        _CONSOLE.print(f"    Notes:              [cyan]{len(commits)}[/cyan]")
    _CONSOLE.print()
    return 0


def _presets() -> int:
    table = Table(title="Mapping presets")
    for column in ("Preset", "BPM", "Pitch", "Duration", "Velocity", "Program"):
        table.add_column(column)
    for key, preset in PRESETS.items():
        pitch = preset.pitch
        table.add_row(
            key,
            str(preset.tempo.bpm),
            f"{pitch.source} / {pitch.scale} / {midi_note_to_name(pitch.root_note)} "
            f"oct {pitch.octave_min}-{pitch.octave_max}",
            f"{preset.duration.source} {preset.duration.min_ms}-{preset.duration.max_ms}ms",
            f"{preset.velocity.source} {preset.velocity.min}-{preset.velocity.max}",
            str(preset.instrument.program) if preset.instrument else "-",
        )
    _CONSOLE.print(table)
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "export":
            return _export(args)
        if args.command == "inspect":
            return _inspect(args)
        if args.command == "presets":
            return _presets()
        parser.print_help()
        return 1
    except Exception as exc:
        debug = bool(os.environ.get("REPOBEATS_DEBUG"))
        _LOGGER.warning("repobeats %s failed: %s", args.command, exc, exc_info=debug)
        log_exception(f"repobeats {args.command}", exc)
        render_error(f"repobeats {args.command}", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
