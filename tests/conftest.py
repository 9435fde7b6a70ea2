from __future__ import annotations

from typing import Any, Callable

import pytest

from repobeats.models import CommitRecord

# 2023-11-14 00:00:00 UTC, a Tuesday
TUESDAY_MIDNIGHT_UTC_MS = 1_699_920_000_000
HOUR_MS = 3_600_000


@pytest.fixture
def make_commit() -> Callable[..., CommitRecord]:
    counter = iter(range(1, 10_000))

    def _make(**overrides: Any) -> CommitRecord:
        index = next(counter)
        fields: dict[str, Any] = {
            "sha": f"{index:07x}deadbeef",
            "timestamp": TUESDAY_MIDNIGHT_UTC_MS + index * 1000,
        }
        fields.update(overrides)
        return CommitRecord(**fields)

    return _make
