"""
Synthetic daily market board.

Ranks a fixed candidate set of naming patterns (tokens, label shapes and
starting letters) by a simulated share of attention. Inputs are the static
market tables and the UTC day only; the live inventory is never read, so the
board is identical for every visitor on the same day.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from oracle_config import MarketTables
from prng import clamp, round1, round_half_up, unit_from_seed, utc_day_key

KINDS = ("token", "shape", "start")
_RUN = re.compile(r"([a#\-?])(\d+)")
_NON_ALPHA = re.compile(r"[^a-z]")
_VOWEL_GROUP = re.compile(r"[aeiouy]+")


@dataclass(frozen=True)
class MarketKey:
    kind: str
    value: str

    @classmethod
    def parse(cls, key: str) -> "MarketKey":
        for kind in KINDS:
            if key.startswith(kind + ":"):
                return cls(kind, key[len(kind) + 1:])
        return cls("token", key)

    def __str__(self) -> str:
        return f"{self.kind}:{self.value}"


@dataclass
class MarketSignal:
    key: MarketKey
    dominance: float
    dominance_delta: float
    base_score: int
    bids: int
    offers: int
    watch: int
    score: float

    def to_dict(self) -> dict:
        return {
            "key": str(self.key),
            "kind": self.key.kind,
            "value": self.key.value,
            "dominance": self.dominance,
            "dominanceDelta": self.dominance_delta,
            "baseScore": self.base_score,
            "bids": self.bids,
            "offers": self.offers,
            "watch": self.watch,
        }


@dataclass
class MarketBoard:
    day: str
    previous_day: str
    version: str
    signals: List[MarketSignal]

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "previousDay": self.previous_day,
            "tablesVersion": self.version,
            "signals": [s.to_dict() for s in self.signals],
        }


# ------------------------------- Shape encoding -------------------------------

def syllable_groups(word: str) -> int:
    return len(_VOWEL_GROUP.findall(word))


def vowel_ratio_of(word: str) -> float:
    letters = _NON_ALPHA.sub("", word)
    if not letters:
        return 0.0
    return sum(1 for ch in letters if ch in "aeiouy") / len(letters)


def shape_of_label(label: str) -> str:
    """Run-length class encoding: letters=a, digits=#, hyphen=-, other=? (e.g. a5-1#2)."""
    raw = []
    for ch in label.lower():
        if "a" <= ch <= "z":
            raw.append("a")
        elif "0" <= ch <= "9":
            raw.append("#")
        elif ch == "-":
            raw.append("-")
        else:
            raw.append("?")
    out = []
    i = 0
    while i < len(raw):
        j = i + 1
        while j < len(raw) and raw[j] == raw[i]:
            j += 1
        out.append(f"{raw[i]}{j - i}")
        i = j
    return "".join(out)


def shape_runs(shape: str) -> Dict[str, int]:
    runs = {"letters": 0, "digits": 0, "hyphens": 0, "other": 0, "total": 0}
    for ch, n in _RUN.findall(shape):
        n = int(n)
        runs["total"] += n
        if ch == "a":
            runs["letters"] += n
        elif ch == "#":
            runs["digits"] += n
        elif ch == "-":
            runs["hyphens"] += n
        else:
            runs["other"] += n
    return runs


def weighted_shape_baseline(weights: Dict[str, float]) -> dict:
    """Average market composition implied by a shape distribution."""
    total_w = sum_len = w_hyphen = w_digit = w_short = w_brandable = 0.0
    for shape, w in weights.items():
        if not w:
            continue
        r = shape_runs(shape)
        total_w += w
        sum_len += r["total"] * w
        if r["hyphens"] > 0:
            w_hyphen += w
        if r["digits"] > 0:
            w_digit += w
        if 0 < r["total"] <= 5:
            w_short += w
        if 4 <= r["total"] <= 7 and r["digits"] == 0 and r["hyphens"] == 0 and r["other"] == 0:
            w_brandable += w

    def share(x: float) -> int:
        return round_half_up(x / total_w * 100) if total_w else 0

    return {
        "avgLen": round1(sum_len / total_w) if total_w else 0,
        "hyphenRate": share(w_hyphen),
        "digitRate": share(w_digit),
        "shortShare": share(w_short),
        "brandableShare": share(w_brandable),
    }


# ------------------------------- Base scores -------------------------------

def _momentum(weight: float, scale: float, cap: float) -> float:
    return clamp(round_half_up(math.log2(1 + weight) * scale), 0, cap)


def score_token(value: str, weight: float, day: str, tables: MarketTables) -> float:
    t = value.lower()
    n = len(t)
    vr = vowel_ratio_of(t)
    syll = syllable_groups(t)

    if n <= 3:
        len_score = 34
    elif n <= 4:
        len_score = 38
    elif n <= 5:
        len_score = 32
    elif n <= 6:
        len_score = 26
    elif n <= 8:
        len_score = 16
    elif n <= 10:
        len_score = 9
    else:
        len_score = 4

    if vr == 0:
        vowel_score = 0
    elif 0.25 <= vr <= 0.6:
        vowel_score = 22
    elif 0.15 <= vr <= 0.72:
        vowel_score = 14
    else:
        vowel_score = 7

    syll_score = 16 if 1 <= syll <= 3 else (0 if syll == 0 else 9)
    momentum = _momentum(weight, 9, 24)
    regime = 0.85 + 0.35 * unit_from_seed(f"{day}:regime:token:{t}")
    bump = 12 if t in tables.keyword_bump_tokens else 0
    penalty = -25 if t in tables.penalty_tokens else 0

    return clamp((len_score + vowel_score + syll_score + momentum + bump + penalty) * regime, 0, 100)


def score_shape(value: str, weight: float, day: str) -> float:
    r = shape_runs(value)
    total = r["total"]
    letter_pct = r["letters"] / total if total else 0
    digit_pct = r["digits"] / total if total else 0
    hyphen_pct = r["hyphens"] / total if total else 0

    if total <= 3:
        length_score = 36
    elif total <= 4:
        length_score = 40
    elif total <= 6:
        length_score = 34
    elif total <= 8:
        length_score = 24
    elif total <= 10:
        length_score = 14
    else:
        length_score = 6

    purity = round_half_up(letter_pct * 35)
    penalties = round_half_up(digit_pct * 26 + hyphen_pct * 22 + (14 if r["other"] else 0))
    momentum = _momentum(weight, 8, 20)
    regime = 0.88 + 0.32 * unit_from_seed(f"{day}:regime:shape:{value}")

    return clamp((length_score + purity + momentum - penalties) * regime, 0, 100)


def score_start(value: str, weight: float, day: str, tables: MarketTables) -> float:
    c = value[:1].lower()
    base_letter = tables.start_letter_scores.get(c, 8)
    momentum = _momentum(weight, 10, 24)
    regime = 0.9 + 0.3 * unit_from_seed(f"{day}:regime:start:{c}")
    return clamp((base_letter + momentum) * 2.4 * regime, 0, 100)


def base_score_for(key: MarketKey, day: str, tables: MarketTables) -> float:
    if key.kind == "shape":
        return score_shape(key.value, tables.shape_weights.get(key.value, 0), day)
    if key.kind == "start":
        return score_start(key.value, tables.start_weights.get(key.value, 0), day, tables)
    return score_token(key.value, tables.token_weights.get(key.value, 0), day, tables)


def telemetry_for(key: str, day: str, tables: MarketTables) -> dict:
    """Attractiveness -> synthetic bids/offers/watchers; stable within a day."""
    base = base_score_for(MarketKey.parse(key), day, tables)
    jitter = (unit_from_seed(f"{day}:jitter:{key}") - 0.5) * 2
    heat = clamp(base / 100, 0, 1)

    bids = round_half_up(clamp(2 + heat * 220 + jitter * (18 + heat * 12), 0, 360))
    offers = round_half_up(clamp(heat * 22 + jitter * (2 + heat * 3), 0, 60))
    watch = round_half_up(clamp(12 + heat * 640 + jitter * (40 + heat * 80), 0, 1400))

    return {
        "bids": bids,
        "offers": offers,
        "watch": watch,
        "score": bids * 2.6 + offers * 11 + watch * 0.55,
        "baseScore": round_half_up(base),
    }


# ------------------------------- Board -------------------------------

def normalize_day(value: str) -> str:
    """Validate a YYYY-MM-DD day key; raises ValueError otherwise."""
    return datetime.strptime(str(value).strip(), "%Y-%m-%d").strftime("%Y-%m-%d")


def _dominance(day: str, candidates: List[str], tables: MarketTables):
    rows = {k: telemetry_for(k, day, tables) for k in candidates}
    total = sum(r["score"] for r in rows.values())
    shares = {k: (r["score"] / total * 100 if total else 0.0) for k, r in rows.items()}
    return rows, shares


def compute_market_signals(when, tables: MarketTables) -> MarketBoard:
    """Board for the UTC day of `when` (a datetime or a YYYY-MM-DD key)."""
    if isinstance(when, datetime):
        day = utc_day_key(when)
        prev_day = utc_day_key(when - timedelta(days=1))
    else:
        day = normalize_day(when)
        prev_day = (datetime.strptime(day, "%Y-%m-%d") - timedelta(days=1)).strftime("%Y-%m-%d")

    candidates = tables.candidates()
    today_rows, today_share = _dominance(day, candidates, tables)
    _, prev_share = _dominance(prev_day, candidates, tables)

    signals = []
    for k in candidates:
        row = today_rows[k]
        signals.append(MarketSignal(
            key=MarketKey.parse(k),
            dominance=round1(today_share[k]),
            dominance_delta=round1(today_share[k] - prev_share.get(k, 0.0)),
            base_score=row["baseScore"],
            bids=row["bids"],
            offers=row["offers"],
            watch=row["watch"],
            score=row["score"],
        ))
    return MarketBoard(day=day, previous_day=prev_day, version=tables.version, signals=signals)


def rank_signals(signals: List[MarketSignal], kind: Optional[str] = None,
                 limit: Optional[int] = None) -> List[MarketSignal]:
    picked = [s for s in signals if kind is None or s.key.kind == kind]
    picked.sort(key=lambda s: (-s.score, str(s.key)))
    return picked[:limit] if limit else picked


def featured_signals(signals: List[MarketSignal], keys: List[str]) -> List[MarketSignal]:
    by_key = {str(s.key): s for s in signals}
    return [by_key[k] for k in keys if k in by_key]
