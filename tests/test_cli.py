import io
import json
import shutil
import subprocess
import zipfile
from pathlib import Path

import mido
import pytest

from repobeats.cli import build_parser, main
from repobeats.wav import HEADER_SIZE

COMMITS = [
    {"sha": "abc1234", "timestamp": 1_700_000_000_000, "authorName": "alice", "additions": 10, "filesChanged": 2},
    {"sha": "def5678", "timestamp": 1_700_000_060_000, "authorName": "bob", "deletions": 4, "message": "fix"},
]


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOBEATS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("REPOBEATS_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("REPOBEATS_DEBUG", raising=False)


@pytest.fixture
def commits_file(tmp_path: Path) -> Path:
    path = tmp_path / "commits.json"
    path.write_text(json.dumps({"commits": COMMITS}), encoding="utf-8")
    return path


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["export"])
    assert args.format == "bundle"
    assert args.preset == "default"
    assert args.path == "."
    assert args.max_commits == 1000


def test_presets_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["presets"]) == 0
    assert "Mapping presets" in capsys.readouterr().out


def test_export_midi(tmp_path: Path, commits_file: Path) -> None:
    out = tmp_path / "song.mid"
    code = main(["export", "--commits", str(commits_file), "-f", "midi", "-o", str(out), "--preset", "intense"])
    assert code == 0
    midi = mido.MidiFile(file=io.BytesIO(out.read_bytes()))
    assert [msg.program for msg in midi.tracks[0] if msg.type == "program_change"] == [30]


def test_export_wav(tmp_path: Path, commits_file: Path) -> None:
    out = tmp_path / "song.wav"
    code = main(
        ["export", "--commits", str(commits_file), "-f", "wav", "-o", str(out), "--voices", "piano,drums", "--seed", "3"]
    )
    assert code == 0
    data = out.read_bytes()
    assert data[:4] == b"RIFF"
    assert len(data) > HEADER_SIZE


def test_export_json_anonymized(tmp_path: Path, commits_file: Path) -> None:
    out = tmp_path / "song.json"
    code = main(["export", "--commits", str(commits_file), "-f", "json", "-o", str(out), "--anonymize"])
    assert code == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert [commit["sha"] for commit in payload["commits"]] == ["abc1234", "def5678"]
    assert all(commit["authorName"].startswith("anon_") for commit in payload["commits"])
    assert "message" not in payload["commits"][1]
    assert payload["mapping"]["name"] == "Default"


def test_export_bundle_with_mapping_file(tmp_path: Path, commits_file: Path) -> None:
    mapping = tmp_path / "mapping.json"
    mapping.write_text(
        json.dumps(
            {
                "name": "Custom",
                "tempo": {"bpm": 100},
                "pitch": {"source": "author", "scale": "blues"},
                "duration": {"source": "diff", "minMs": 100, "maxMs": 400},
                "velocity": {"source": "fixed", "min": 80, "max": 80},
            }
        ),
        encoding="utf-8",
    )
    out = tmp_path / "song.zip"
    code = main(["export", "--commits", str(commits_file), "--mapping", str(mapping), "-o", str(out)])
    assert code == 0
    metadata = json.loads(zipfile.ZipFile(out).read("repobeats.json"))
    assert metadata["mapping"]["name"] == "Custom"
    assert metadata["mapping"]["tempo"]["bpm"] == 100


def test_invalid_mapping_fails_and_logs(tmp_path: Path, commits_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    mapping = tmp_path / "bad.json"
    mapping.write_text(json.dumps({"tempo": {"bpm": 5}}), encoding="utf-8")

    code = main(["export", "--commits", str(commits_file), "--mapping", str(mapping), "-o", str(tmp_path / "x.zip")])

    assert code == 1
    assert "InvalidConfigurationError" in capsys.readouterr().err
    assert "InvalidConfigurationError" in (tmp_path / "logs" / "repobeats.log").read_text(encoding="utf-8")
    assert not (tmp_path / "x.zip").exists()


def test_empty_commit_file_writes_nothing(tmp_path: Path) -> None:
    empty = tmp_path / "empty.json"
    empty.write_text("[]", encoding="utf-8")
    out = tmp_path / "song.wav"
    assert main(["export", "--commits", str(empty), "-f", "wav", "-o", str(out)]) == 0
    assert not out.exists()


def test_unreadable_commit_file(tmp_path: Path) -> None:
    assert main(["export", "--commits", str(tmp_path / "missing.json"), "-f", "midi"]) == 1


def test_export_outside_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    assert main(["export", str(tmp_path / "nowhere"), "-f", "midi"]) == 1


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_inspect_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    for args in (
        ["init", "-q"],
        ["-c", "user.name=Alice", "-c", "user.email=a@example.com", "-c", "commit.gpgsign=false",
         "commit", "-q", "--allow-empty", "-m", "start"],
    ):
        subprocess.run(["git", "-C", str(repo), *args], check=True, capture_output=True)

    assert main(["inspect", str(repo), "--json"]) == 0
    output = capsys.readouterr().out
    assert '"totalCommits": 1' in output

    # second run is served from the cache
    assert main(["inspect", str(repo)]) == 0
    assert list((tmp_path / "cache").glob("*/*.json"))
