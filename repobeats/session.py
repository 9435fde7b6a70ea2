from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np

from .config import MappingConfig
from .errors import EmptyInputError
from .generator import generate
from .midi import encode_midi
from .models import CommitRecord, RenderResult, load_commits
from .synth import VOICES, StereoAudio, VoiceName, render
from .wav import encode_wav, write_wav

_LOGGER = logging.getLogger("repobeats.session")


class RenderSession:
    """Caller-owned render state: one mapping, one voice set, the latest outputs.

    Nothing here is process-wide; create one session per piece.
    """

    def __init__(
        self,
        mapping: MappingConfig,
        *,
        voices: Iterable[VoiceName] = VOICES,
        seed: int | None = None,
    ) -> None:
        self.mapping = mapping
        if isinstance(voices, str):
            voices = (voices,)
        self.voices: tuple[VoiceName, ...] = tuple(voices)
        self.seed = seed
        self.result: RenderResult | None = None
        self.audio: StereoAudio | None = None

    @property
    def bpm(self) -> int:
        return self.mapping.tempo.bpm

    def generate(
        self, commits: Sequence[CommitRecord] | Sequence[Mapping[str, Any]]
    ) -> RenderResult:
        self.result = generate(load_commits(commits), self.mapping)
        self.audio = None
        return self.result

    def render_audio(self) -> StereoAudio:
        result = self._require_result()
        rng = np.random.default_rng(self.seed)
        self.audio = render(result.notes, self.bpm, self.voices, rng=rng)
        return self.audio

    def wav_bytes(self) -> bytes:
        return encode_wav(self._require_audio())

    def midi_bytes(self) -> bytes:
        return encode_midi(
            self._require_result(),
            self.bpm,
            self.mapping.instrument,
            track_name=self.mapping.name,
        )

    def save_wav(self, path: str | Path) -> Path:
        target = write_wav(path, self._require_audio())
        _LOGGER.info("Wrote %s", target)
        return target

    def save_midi(self, path: str | Path) -> Path:
        target = Path(path)
        target.write_bytes(self.midi_bytes())
        _LOGGER.info("Wrote %s", target)
        return target

    def _require_result(self) -> RenderResult:
        if self.result is None:
            raise EmptyInputError("No notes generated yet; call generate() first")
        return self.result

    def _require_audio(self) -> StereoAudio:
        if self.audio is None:
            self.render_audio()
        assert self.audio is not None
        return self.audio
