from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidConfigurationError
from .scales import ScaleName

_LOGGER = logging.getLogger("repobeats.config")

TempoMode = Literal["fixed", "frequency"]
PitchSource = Literal["sha", "author", "hour", "dayOfWeek"]
DurationSource = Literal["diff", "files", "messageLength", "fixed"]
VelocitySource = Literal["additions", "deletions", "files", "messageLength", "timeOfDay", "fixed"]

REFERENCE_BPM = 120

M = TypeVar("M", bound="_MappingModel")


def _format_issues(exc: ValidationError) -> tuple[str, list[dict[str, Any]]]:
    issues = exc.errors(include_url=False, include_context=False, include_input=False)
    parts = []
    for issue in issues:
        location = ".".join(str(item) for item in issue["loc"]) or "mapping"
        parts.append(f"{location}: {issue['msg']}")
    return "; ".join(parts), [dict(issue) for issue in issues]


def _invalid(exc: ValidationError) -> InvalidConfigurationError:
    message, issues = _format_issues(exc)
    return InvalidConfigurationError(f"Mapping validation failed: {message}", issues)


class _MappingModelMeta(type(BaseModel)):  # type: ignore[misc]
    # Converts at the constructor call only. Nested sections are built by
    # pydantic-core without going through here, so the outer ValidationError
    # keeps every failing field with its full location.
    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        try:
            return super().__call__(*args, **kwargs)
        except ValidationError as exc:
            raise _invalid(exc) from exc


class _MappingModel(BaseModel, metaclass=_MappingModelMeta):
    """Frozen pydantic model that reports failures as InvalidConfigurationError.

    Validation happens once, when the object is built; a constructed
    configuration is always within its declared bounds.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def from_dict(cls: type[M], data: Mapping[str, Any]) -> M:
        """Create config from dict (e.g., from JSON)."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise _invalid(exc) from exc

    @classmethod
    def from_json(cls: type[M], text: str | bytes) -> M:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidConfigurationError(f"Mapping is not valid JSON: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise InvalidConfigurationError("Mapping JSON must be an object")
        return cls.from_dict(payload)

    def to_wire(self) -> dict[str, Any]:
        """camelCase dict, the form accepted by ``from_dict``."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TempoConfig(_MappingModel):
    mode: TempoMode = "fixed"
    bpm: int = Field(default=REFERENCE_BPM, ge=20, le=300)
    # Only read by the frequency mode, which currently behaves like fixed.
    window_days: int | None = Field(default=None, ge=1, le=365)

    @model_validator(mode="after")
    def _window_for_frequency(self) -> "TempoConfig":
        if self.mode == "frequency" and self.window_days is None:
            raise ValueError("window_days is required when mode is 'frequency'")
        return self

    @property
    def duration_scale(self) -> float:
        """Factor applied to note durations; 120 bpm leaves them unchanged."""
        return REFERENCE_BPM / self.bpm


class PitchConfig(_MappingModel):
    source: PitchSource
    scale: ScaleName = "pentatonic"
    root_note: int = Field(default=60, ge=0, le=127)
    octave_min: int = Field(default=3, ge=0, le=8)
    octave_max: int = Field(default=6, ge=0, le=8)

    @model_validator(mode="after")
    def _ordered_octaves(self) -> "PitchConfig":
        if self.octave_min > self.octave_max:
            raise ValueError(
                f"octave_min ({self.octave_min}) must not exceed octave_max ({self.octave_max})"
            )
        return self


class DurationConfig(_MappingModel):
    source: DurationSource
    min_ms: int = Field(default=100, ge=50, le=5000)
    max_ms: int = Field(default=1000, ge=100, le=10000)

    @model_validator(mode="after")
    def _ordered_bounds(self) -> "DurationConfig":
        if self.min_ms > self.max_ms:
            raise ValueError(f"min_ms ({self.min_ms}) must not exceed max_ms ({self.max_ms})")
        return self


class VelocityConfig(_MappingModel):
    source: VelocitySource
    min: int = Field(default=40, ge=1, le=127)
    max: int = Field(default=100, ge=1, le=127)

    @model_validator(mode="after")
    def _ordered_bounds(self) -> "VelocityConfig":
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self


class InstrumentConfig(_MappingModel):
    program: int = Field(default=0, ge=0, le=127)
    channel: int = Field(default=0, ge=0, le=15)


class MappingConfig(_MappingModel):
    """How commit attributes translate into pitch, velocity, duration and tempo."""

    name: str | None = None
    tempo: TempoConfig
    pitch: PitchConfig
    duration: DurationConfig
    velocity: VelocityConfig
    instrument: InstrumentConfig | None = None


def load_mapping(path: str | Path) -> MappingConfig:
    """Read a mapping configuration from a JSON file."""
    target = Path(path)
    try:
        text = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidConfigurationError(f"Cannot read mapping file {target}: {exc}") from exc
    mapping = MappingConfig.from_json(text)
    _LOGGER.debug("Loaded mapping %r from %s", mapping.name, target)
    return mapping
