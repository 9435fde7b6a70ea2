from __future__ import annotations

from .config import (
    DurationConfig,
    InstrumentConfig,
    MappingConfig,
    PitchConfig,
    TempoConfig,
    VelocityConfig,
    load_mapping,
)
from .errors import (
    EmptyInputError,
    InvalidConfigurationError,
    NoVoiceSelectedError,
    RepoBeatsError,
)
from .generator import generate
from .hashing import hash_string
from .models import CommitRecord, NoteEvent, RenderResult, load_commits
from .presets import PRESETS, get_preset
from .scales import SCALES, note_in_scale, scale_offsets
from .session import RenderSession
from .synth import SAMPLE_RATE, VOICES, StereoAudio, render
from .wav import decode_wav, encode_wav, write_wav

__all__ = [
    "PRESETS",
    "SAMPLE_RATE",
    "SCALES",
    "VOICES",
    "CommitRecord",
    "DurationConfig",
    "EmptyInputError",
    "InstrumentConfig",
    "InvalidConfigurationError",
    "MappingConfig",
    "NoVoiceSelectedError",
    "NoteEvent",
    "PitchConfig",
    "RenderResult",
    "RenderSession",
    "RepoBeatsError",
    "StereoAudio",
    "TempoConfig",
    "VelocityConfig",
    "decode_wav",
    "encode_wav",
    "generate",
    "get_preset",
    "hash_string",
    "load_commits",
    "load_mapping",
    "note_in_scale",
    "render",
    "scale_offsets",
    "write_wav",
]

__version__ = "0.1.0"
