from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Literal

from .errors import InvalidConfigurationError

ScaleName = Literal["chromatic", "major", "minor", "pentatonic", "blues", "dorian"]

# Semitone offsets from the root, one octave, always starting at 0
SCALES: Mapping[ScaleName, tuple[int, ...]] = MappingProxyType(
    {
        "chromatic": (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11),
        "major": (0, 2, 4, 5, 7, 9, 11),
        "minor": (0, 2, 3, 5, 7, 8, 10),
        "pentatonic": (0, 2, 4, 7, 9),
        "blues": (0, 3, 5, 6, 7, 10),
        "dorian": (0, 2, 3, 5, 7, 9, 10),
    }
)

NOTE_NAMES: tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# General MIDI programs referenced by the presets
MIDI_PROGRAMS: Mapping[str, int] = MappingProxyType(
    {
        "acoustic_grand_piano": 0,
        "electric_piano": 4,
        "harpsichord": 6,
        "vibraphone": 11,
        "marimba": 12,
        "organ": 19,
        "acoustic_guitar": 24,
        "electric_guitar": 26,
        "overdriven_guitar": 30,
        "electric_bass": 33,
        "synth_bass": 38,
        "violin": 40,
        "strings": 48,
        "synth_strings": 50,
        "choir": 52,
        "synth_lead": 80,
        "synth_pad": 88,
    }
)


def scale_offsets(scale: ScaleName) -> tuple[int, ...]:
    """Return the semitone offsets for a named scale."""
    try:
        return SCALES[scale]
    except KeyError as exc:
        raise InvalidConfigurationError(
            f"Unknown scale: {scale!r}. Valid: {list(SCALES.keys())}"
        ) from exc


def note_in_scale(
    value: int,
    scale: ScaleName,
    root_note: int,
    octave_min: int,
    octave_max: int,
) -> int:
    """Quantize an arbitrary integer signal onto a scale within an octave range.

    The signal indexes the ``len(scale) * octave_span`` addressable notes; only
    the pitch class of ``root_note`` transposes the result. Octaves follow the
    MIDI convention where note 0 is C-1.
    """
    offsets = scale_offsets(scale)
    octave_span = octave_max - octave_min + 1
    total_notes = len(offsets) * octave_span

    note_index = abs(value) % total_notes
    octave_offset = note_index // len(offsets)
    scale_index = note_index % len(offsets)

    base = (octave_min + 1) * 12
    return base + octave_offset * 12 + offsets[scale_index] + root_note % 12


def midi_note_to_name(note: int) -> str:
    """60 -> 'C4'."""
    octave = note // 12 - 1
    return f"{NOTE_NAMES[note % 12]}{octave}"
