"""
Note sequence -> stereo audio.

Architecture:

1. Voices: additive waveform recipes over time-since-onset
2. Envelope: linear attack / sustain / release per note
3. Mixer: per-note amplitude split across voices, frequency-derived pan,
   final peak normalization
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Callable, Literal, TypeAlias, get_args

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from .errors import EmptyInputError, InvalidConfigurationError, NoVoiceSelectedError
from .models import NoteEvent

_LOGGER = logging.getLogger("repobeats.synth")

# =============================================================================
# CONSTANTS
# =============================================================================

SAMPLE_RATE = 44_100
TAIL_MS = 500

ATTACK_SEC = 0.01
RELEASE_FRACTION = 0.1
NOTE_GAIN = 0.3
PAN_SPREAD = 0.3
PEAK_CEILING = 0.9

DRUM_NOISE_SEC = 0.05

VoiceName = Literal["guitar", "piano", "drums", "strings"]
# Canonical mixing order; enabled voices are always summed in this order
VOICES: tuple[VoiceName, ...] = get_args(VoiceName)

FloatArray: TypeAlias = NDArray[np.float64]
VoiceFn: TypeAlias = Callable[[FloatArray, FloatArray, np.random.Generator], FloatArray]


class StereoAudio(BaseModel):
    """Two equal-length float channels at a fixed sample rate."""

    left: FloatArray
    right: FloatArray
    sample_rate: int = SAMPLE_RATE

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @model_validator(mode="after")
    def _coerce_channels(self) -> "StereoAudio":
        left = np.asarray(self.left, dtype=np.float64).reshape(-1)
        right = np.asarray(self.right, dtype=np.float64).reshape(-1)
        if left.shape != right.shape:
            raise ValueError(
                f"channel length mismatch: left={left.size} right={right.size}"
            )
        object.__setattr__(self, "left", left)
        object.__setattr__(self, "right", right)
        return self

    @property
    def num_samples(self) -> int:
        return int(self.left.size)

    @property
    def duration_seconds(self) -> float:
        return self.num_samples / self.sample_rate

    @property
    def peak(self) -> float:
        if self.num_samples == 0:
            return 0.0
        return float(max(np.max(np.abs(self.left)), np.max(np.abs(self.right))))

    def interleaved(self) -> FloatArray:
        """L, R, L, R, ... as one flat array."""
        return np.column_stack((self.left, self.right)).reshape(-1)


# =============================================================================
# PART 1: VOICES
# =============================================================================


def midi_to_frequency(pitch: int) -> float:
    return 440.0 * 2 ** ((pitch - 69) / 12)


def voice_piano(phase: FloatArray, t: FloatArray, rng: np.random.Generator) -> FloatArray:
    """Fundamental plus two decaying upper harmonics."""
    sample = np.sin(phase) * 0.5
    sample += np.sin(phase * 2) * 0.25 * np.exp(-t * 3)
    sample += np.sin(phase * 3) * 0.125 * np.exp(-t * 5)
    return sample


def voice_guitar(phase: FloatArray, t: FloatArray, rng: np.random.Generator) -> FloatArray:
    """Plucked string: four harmonics, each with its own decay."""
    sample = np.sin(phase) * 0.4 * np.exp(-t * 2)
    sample += np.sin(phase * 2) * 0.3 * np.exp(-t * 3)
    sample += np.sin(phase * 3) * 0.2 * np.exp(-t * 4)
    sample += np.sin(phase * 4) * 0.1 * np.exp(-t * 5)
    return sample


def voice_strings(phase: FloatArray, t: FloatArray, rng: np.random.Generator) -> FloatArray:
    """Three sustained harmonics sharing a 5 Hz vibrato."""
    vibrato = 1 + np.sin(2 * np.pi * 5 * t) * 0.003
    sample = np.sin(phase * vibrato) * 0.4
    sample += np.sin(phase * 2 * vibrato) * 0.3
    sample += np.sin(phase * 3 * vibrato) * 0.2
    return sample


def voice_drums(phase: FloatArray, t: FloatArray, rng: np.random.Generator) -> FloatArray:
    """Noise burst over a decaying sine an octave below the note."""
    sample = np.zeros_like(t)
    burst = t < DRUM_NOISE_SEC
    count = int(np.count_nonzero(burst))
    if count:
        sample[burst] = rng.uniform(-1.0, 1.0, count) * np.exp(-t[burst] * 30)
    sample += np.sin(phase * 0.5) * np.exp(-t * 10) * 0.5
    return sample


VOICE_FUNCTIONS: Mapping[VoiceName, VoiceFn] = MappingProxyType(
    {
        "guitar": voice_guitar,
        "piano": voice_piano,
        "drums": voice_drums,
        "strings": voice_strings,
    }
)


def parse_voices(text: str | None) -> tuple[VoiceName, ...]:
    """Parse a comma separated voice list as given on the command line.

    Unknown names are ignored; an empty selection enables every voice.
    """
    requested = {part.strip().lower() for part in (text or "").split(",")}
    selected = tuple(voice for voice in VOICES if voice in requested)
    return selected or VOICES


def _resolve_voices(voices: Iterable[str]) -> tuple[VoiceName, ...]:
    # a bare string names one voice, it is not an iterable of names
    requested = {voices} if isinstance(voices, str) else set(voices)
    if not requested:
        raise NoVoiceSelectedError("No instrument voices enabled")
    unknown = requested.difference(VOICES)
    if unknown:
        raise InvalidConfigurationError(
            f"Unknown voice(s): {sorted(unknown)}. Valid: {list(VOICES)}"
        )
    return tuple(voice for voice in VOICES if voice in requested)


# =============================================================================
# PART 2: ENVELOPE + MIXER
# =============================================================================


def note_envelope(t: FloatArray, progress: FloatArray) -> FloatArray:
    """Linear attack over ATTACK_SEC, linear release over the last RELEASE_FRACTION."""
    release_start = 1 - RELEASE_FRACTION
    envelope = np.where(
        t < ATTACK_SEC,
        t / ATTACK_SEC,
        np.where(progress > release_start, 1 - (progress - release_start) / RELEASE_FRACTION, 1.0),
    )
    return np.clip(envelope, 0.0, 1.0)


def stereo_gains(frequency: float) -> tuple[float, float]:
    pan = (frequency % 100) / 100 - 0.5
    return 0.5 - pan * PAN_SPREAD, 0.5 + pan * PAN_SPREAD


def render_note(
    left: FloatArray,
    right: FloatArray,
    note: NoteEvent,
    voices: Sequence[VoiceName],
    rng: np.random.Generator,
    sr: int = SAMPLE_RATE,
) -> None:
    """Add one note, played by every voice in ``voices``, into both channels."""
    start = math.floor(note.start_ms / 1000 * sr)
    length = math.floor(note.duration_ms / 1000 * sr)
    end = min(start + length, left.size)
    if length <= 0 or end <= start:
        return

    index = np.arange(end - start, dtype=np.float64)
    t = index / sr
    envelope = note_envelope(t, index / length)

    frequency = midi_to_frequency(note.pitch)
    phase = 2 * np.pi * frequency * t
    amplitude = (note.velocity / 127) * NOTE_GAIN / len(voices)
    gain_left, gain_right = stereo_gains(frequency)

    for voice in voices:
        sample = VOICE_FUNCTIONS[voice](phase, t, rng) * amplitude * envelope
        left[start:end] += sample * gain_left
        right[start:end] += sample * gain_right


def normalize_peak(
    left: FloatArray, right: FloatArray, ceiling: float = PEAK_CEILING
) -> tuple[FloatArray, FloatArray]:
    """Scale both channels down together when the peak exceeds ``ceiling``."""
    peak = float(max(np.max(np.abs(left), initial=0.0), np.max(np.abs(right), initial=0.0)))
    if peak > ceiling:
        scale = ceiling / peak
        return left * scale, right * scale
    return left, right


# =============================================================================
# PART 3: RENDER
# =============================================================================


def buffer_length(notes: Sequence[NoteEvent], sr: int = SAMPLE_RATE) -> int:
    """Samples needed for the last note plus TAIL_MS of silence."""
    last = notes[-1]
    total_ms = last.start_ms + last.duration_ms + TAIL_MS
    return math.ceil(total_ms / 1000 * sr)


def render(
    notes: Sequence[NoteEvent],
    tempo: float,
    voices: Iterable[str],
    *,
    rng: np.random.Generator | None = None,
) -> StereoAudio:
    """
    Render a note sequence to normalized stereo audio.

    Args:
        notes: Notes in generation order; the last one defines the length.
        tempo: Tempo of the piece in bpm. Note timing is already absolute,
               so this is carried for the export hand-off only.
        voices: Enabled voice names, any subset of VOICES.
        rng: Optional RNG for the drum noise; pass a seeded generator for
             reproducible output.

    Raises:
        EmptyInputError: no notes.
        NoVoiceSelectedError: no voices.
        InvalidConfigurationError: an unknown voice name.
    """
    if not notes:
        raise EmptyInputError("No notes to render")
    enabled = _resolve_voices(voices)
    local_rng = rng or np.random.default_rng()

    total = buffer_length(notes)
    left = np.zeros(total)
    right = np.zeros(total)

    for note in notes:
        render_note(left, right, note, enabled, local_rng)

    left, right = normalize_peak(left, right)
    _LOGGER.debug(
        "Rendered %d notes at %s bpm with %s into %d samples",
        len(notes),
        tempo,
        ",".join(enabled),
        total,
    )
    return StereoAudio(left=left, right=right)
