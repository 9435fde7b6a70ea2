from __future__ import annotations

import io
import logging

import mido

from .config import InstrumentConfig
from .errors import EmptyInputError
from .models import RenderResult
from .timeutils import ms_to_ticks

_LOGGER = logging.getLogger("repobeats.midi")

TICKS_PER_BEAT = 128


def encode_midi(
    result: RenderResult,
    bpm: int,
    instrument: InstrumentConfig | None = None,
    *,
    track_name: str | None = None,
) -> bytes:
    """Encode a generated note sequence as a single-track Standard MIDI File.

    Notes keep their back-to-back layout: each note_on follows the previous
    note_off directly, and lasts at least one tick.
    """
    if not result.notes:
        raise EmptyInputError("No notes to encode")

    channel = instrument.channel if instrument is not None else 0

    mid = mido.MidiFile(type=1)
    mid.ticks_per_beat = TICKS_PER_BEAT
    track = mido.MidiTrack()
    mid.tracks.append(track)

    if track_name:
        track.append(mido.MetaMessage("track_name", name=track_name, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))
    if instrument is not None:
        track.append(
            mido.Message("program_change", channel=channel, program=instrument.program, time=0)
        )

    for note in result.notes:
        duration_ticks = max(1, ms_to_ticks(note.duration_ms, bpm, TICKS_PER_BEAT))
        track.append(
            mido.Message(
                "note_on", channel=channel, note=note.pitch, velocity=note.velocity, time=0
            )
        )
        track.append(
            mido.Message("note_off", channel=channel, note=note.pitch, velocity=0, time=duration_ticks)
        )

    buffer = io.BytesIO()
    mid.save(file=buffer)
    _LOGGER.debug("Encoded %d notes as MIDI (%d bytes)", len(result.notes), buffer.tell())
    return buffer.getvalue()
