import io

import mido
import pytest

from repobeats.config import InstrumentConfig
from repobeats.errors import EmptyInputError
from repobeats.midi import TICKS_PER_BEAT, encode_midi
from repobeats.models import NoteEvent, RenderResult


def _result(*durations: int) -> RenderResult:
    notes = []
    start = 0
    for index, duration in enumerate(durations):
        notes.append(
            NoteEvent(
                pitch=60 + index,
                velocity=80,
                start_ms=start,
                duration_ms=duration,
                commit_sha=f"{index:07x}",
            )
        )
        start += duration
    return RenderResult(notes=tuple(notes), duration_ms=start, note_count=len(notes))


def _load(data: bytes) -> mido.MidiFile:
    return mido.MidiFile(file=io.BytesIO(data))


def test_header_and_tempo() -> None:
    data = encode_midi(_result(500), 120)
    assert data[:4] == b"MThd"
    midi = _load(data)
    assert midi.ticks_per_beat == TICKS_PER_BEAT
    tempos = [msg.tempo for msg in midi.tracks[0] if msg.type == "set_tempo"]
    assert tempos == [500_000]


def test_note_durations_in_ticks() -> None:
    midi = _load(encode_midi(_result(500, 250, 1000), 120))
    offs = [msg for msg in midi.tracks[0] if msg.type == "note_off"]
    assert [msg.time for msg in offs] == [128, 64, 256]
    ons = [msg for msg in midi.tracks[0] if msg.type == "note_on"]
    assert [msg.note for msg in ons] == [60, 61, 62]
    assert all(msg.time == 0 for msg in ons)
    assert all(msg.velocity == 80 for msg in ons)


def test_playback_length_matches_notes() -> None:
    midi = _load(encode_midi(_result(500, 500), 120))
    assert midi.length == pytest.approx(1.0)


def test_instrument_and_track_name() -> None:
    data = encode_midi(
        _result(200), 90, InstrumentConfig(program=30, channel=3), track_name="Intense"
    )
    track = _load(data).tracks[0]
    names = [msg.name for msg in track if msg.type == "track_name"]
    assert names == ["Intense"]
    programs = [(msg.channel, msg.program) for msg in track if msg.type == "program_change"]
    assert programs == [(3, 30)]
    assert {msg.channel for msg in track if msg.type == "note_on"} == {3}


def test_short_notes_last_at_least_one_tick() -> None:
    track = _load(encode_midi(_result(1), 40)).tracks[0]
    assert [msg.time for msg in track if msg.type == "note_off"] == [1]


def test_empty_result_rejected() -> None:
    with pytest.raises(EmptyInputError):
        encode_midi(RenderResult(notes=(), duration_ms=0, note_count=0), 120)
