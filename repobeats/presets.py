from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Literal

from .config import (
    DurationConfig,
    InstrumentConfig,
    MappingConfig,
    PitchConfig,
    TempoConfig,
    VelocityConfig,
)
from .errors import InvalidConfigurationError
from .scales import MIDI_PROGRAMS

PresetName = Literal["default", "chill", "intense", "minimal", "ambient"]

DEFAULT_PRESET = MappingConfig(
    name="Default",
    tempo=TempoConfig(mode="fixed", bpm=120),
    pitch=PitchConfig(source="sha", scale="pentatonic", root_note=60, octave_min=3, octave_max=6),
    duration=DurationConfig(source="files", min_ms=100, max_ms=500),
    velocity=VelocityConfig(source="additions", min=50, max=100),
    instrument=InstrumentConfig(program=MIDI_PROGRAMS["acoustic_grand_piano"], channel=0),
)

CHILL_PRESET = MappingConfig(
    name="Chill",
    tempo=TempoConfig(mode="fixed", bpm=70),
    pitch=PitchConfig(source="hour", scale="major", root_note=48, octave_min=3, octave_max=5),
    duration=DurationConfig(source="messageLength", min_ms=300, max_ms=1200),
    velocity=VelocityConfig(source="timeOfDay", min=30, max=70),
    instrument=InstrumentConfig(program=MIDI_PROGRAMS["electric_piano"], channel=0),
)

INTENSE_PRESET = MappingConfig(
    name="Intense",
    tempo=TempoConfig(mode="fixed", bpm=160),
    pitch=PitchConfig(source="sha", scale="minor", root_note=60, octave_min=2, octave_max=7),
    duration=DurationConfig(source="diff", min_ms=50, max_ms=300),
    velocity=VelocityConfig(source="deletions", min=70, max=127),
    instrument=InstrumentConfig(program=MIDI_PROGRAMS["overdriven_guitar"], channel=0),
)

MINIMAL_PRESET = MappingConfig(
    name="Minimal",
    tempo=TempoConfig(mode="fixed", bpm=90),
    pitch=PitchConfig(source="author", scale="pentatonic", root_note=60, octave_min=4, octave_max=5),
    duration=DurationConfig(source="fixed", min_ms=200, max_ms=200),
    velocity=VelocityConfig(source="fixed", min=60, max=60),
    instrument=InstrumentConfig(program=MIDI_PROGRAMS["acoustic_grand_piano"], channel=0),
)

AMBIENT_PRESET = MappingConfig(
    name="Ambient",
    tempo=TempoConfig(mode="frequency", bpm=60, window_days=7),
    pitch=PitchConfig(source="dayOfWeek", scale="dorian", root_note=48, octave_min=3, octave_max=5),
    duration=DurationConfig(source="messageLength", min_ms=500, max_ms=2000),
    velocity=VelocityConfig(source="timeOfDay", min=20, max=60),
    instrument=InstrumentConfig(program=MIDI_PROGRAMS["synth_pad"], channel=0),
)

PRESETS: Mapping[PresetName, MappingConfig] = MappingProxyType(
    {
        "default": DEFAULT_PRESET,
        "chill": CHILL_PRESET,
        "intense": INTENSE_PRESET,
        "minimal": MINIMAL_PRESET,
        "ambient": AMBIENT_PRESET,
    }
)


def get_preset(name: str) -> MappingConfig:
    try:
        return PRESETS[name.lower()]  # type: ignore[index]
    except KeyError as exc:
        raise InvalidConfigurationError(
            f"Unknown preset: {name!r}. Available presets: {', '.join(PRESETS)}"
        ) from exc
