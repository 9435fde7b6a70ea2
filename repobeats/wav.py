from __future__ import annotations

import io
import struct
from pathlib import Path

import numpy as np
import soundfile as sf  # type: ignore[import]

from .synth import SAMPLE_RATE, StereoAudio

NUM_CHANNELS = 2
BITS_PER_SAMPLE = 16
BLOCK_ALIGN = NUM_CHANNELS * BITS_PER_SAMPLE // 8
PCM_FORMAT = 1
PCM_SCALE = 32767
HEADER_SIZE = 44

# RIFF header, "fmt " chunk and "data" chunk header, all little-endian
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def encode_header(num_samples: int, sample_rate: int = SAMPLE_RATE) -> bytes:
    data_size = num_samples * BLOCK_ALIGN
    return _HEADER.pack(
        b"RIFF",
        HEADER_SIZE + data_size - 8,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT,
        NUM_CHANNELS,
        sample_rate,
        sample_rate * BLOCK_ALIGN,
        BLOCK_ALIGN,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def quantize(samples: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1] and scale to int16, rounding halves up."""
    clamped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    return np.floor(clamped * PCM_SCALE + 0.5).astype("<i2")


def encode_wav(audio: StereoAudio) -> bytes:
    """Serialize stereo audio as a 16-bit PCM WAV byte string.

    The layout is the canonical 44-byte header followed by interleaved
    left/right samples; no other chunks are written.
    """
    header = encode_header(audio.num_samples, audio.sample_rate)
    return header + quantize(audio.interleaved()).tobytes()


def decode_wav(data: bytes) -> StereoAudio:
    """Read WAV bytes back into float channels (inverse of ``encode_wav``)."""
    frames, sample_rate = sf.read(io.BytesIO(data), dtype="int16", always_2d=True)
    if frames.shape[1] == 1:
        frames = np.repeat(frames, 2, axis=1)
    scaled = frames[:, :2].astype(np.float64) / PCM_SCALE
    return StereoAudio(left=scaled[:, 0], right=scaled[:, 1], sample_rate=int(sample_rate))


def write_wav(path: str | Path, audio: StereoAudio) -> Path:
    """Write ``encode_wav(audio)`` to ``path``."""
    target = Path(path)
    target.write_bytes(encode_wav(audio))
    return target


def read_wav(path: str | Path) -> StereoAudio:
    return decode_wav(Path(path).read_bytes())
