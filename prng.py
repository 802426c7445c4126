"""
Deterministic randomness for the oracle.

Everything that looks random on the site (mock inventory, daily market board,
suggested acquisitions) is derived from a string seed through these helpers,
so that every visitor sees the same values for the same day or minute.
"""

import math
from datetime import datetime, timezone
from typing import Callable

FNV_OFFSET = 2166136261
FNV_PRIME = 16777619
MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


def stable_hash32(text: str) -> int:
    """FNV-1a over UTF-16 code units (matches the browser-side hash)."""
    h = FNV_OFFSET
    data = str(text).encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = _imul(h, FNV_PRIME)
    return h


def mulberry32(seed: int) -> Callable[[], float]:
    state = seed & MASK32

    def rand() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & MASK32
        t = _imul(state ^ (state >> 15), 1 | state)
        t ^= (t + _imul(t ^ (t >> 7), 61 | t)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296

    return rand


def rng_for(seed_text: str) -> Callable[[], float]:
    return mulberry32(stable_hash32(seed_text))


def unit_from_seed(seed_text: str) -> float:
    # Coarse 0..1 value, stable per seed string
    return (stable_hash32(seed_text) % 10_000) / 10_000


# ------------------------------- Numeric helpers -------------------------------

def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def round1(x: float) -> float:
    return round_half_up(x * 10) / 10


def round2(x: float) -> float:
    return round_half_up(x * 100) / 100


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def pct(n: int, d: int) -> int:
    if not d:
        return 0
    return round_half_up((n / d) * 100)


def num_str(x: float) -> str:
    """Render a number the way it appears in seed strings ("7" not "7.0")."""
    if float(x).is_integer():
        return str(int(x))
    return repr(float(x))


def as_utc(when: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def utc_day_key(when: datetime) -> str:
    return as_utc(when).strftime("%Y-%m-%d")


def iso_utc(when: datetime) -> str:
    when = as_utc(when)
    return when.strftime("%Y-%m-%dT%H:%M:%S.") + f"{when.microsecond // 1000:03d}Z"
