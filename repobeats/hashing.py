from __future__ import annotations

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN else value


def _code_units(text: str) -> list[int]:
    # UTF-16 code units, so astral characters hash as surrogate pairs
    raw = text.encode("utf-16-le", "surrogatepass")
    return [raw[i] | (raw[i + 1] << 8) for i in range(0, len(raw), 2)]


def hash_string(text: str) -> int:
    """Stable, platform independent string hash.

    Accumulates ``h = h * 31 + unit`` over the UTF-16 code units of ``text``
    with signed 32-bit wraparound and returns the absolute value of the
    result. Identical inputs hash identically across runs and interpreters.
    """
    acc = 0
    for unit in _code_units(text):
        acc = _to_int32(acc * 31 + unit)
    return abs(acc)


def hash_to_range(value: int, low: int, high: int) -> int:
    return low + value % (high - low + 1)


def anonymize_string(text: str) -> str:
    digest = format(hash_string(text), "x")
    return f"anon_{digest[:8]}"


def sha7(full_sha: str) -> str:
    return full_sha[:7]
