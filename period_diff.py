"""
Curation-cycle statistics: what changed since the last daily boundary.

The daily curation runs at a configured UTC hour:minute. "Current" always
means [most recent boundary, now) and "previous" the 24 hours before it.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from inventory import DomainRecord
from market_sim import shape_of_label, syllable_groups, vowel_ratio_of
from portfolio import alpha_tokens, top_n
from prng import as_utc, iso_utc, pct, round1, round_half_up
from scorer import label_of

DAY = timedelta(days=1)
STAGES = ("INGEST", "EXTRACT", "SCORE", "ADAPT")
WAITING = "WAITING FOR NEXT CURATION"


@dataclass
class PeriodStats:
    count: int = 0
    avg_len: float = 0
    p_digits: int = 0
    p_hyphen: int = 0
    vowel_pct: int = 0
    avg_syllables: float = 0
    top_token: Optional[Tuple[str, int]] = None

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "avgLen": self.avg_len,
            "pDigits": self.p_digits,
            "pHyphen": self.p_hyphen,
            "vowelPct": self.vowel_pct,
            "avgSyllables": self.avg_syllables,
            "topToken": {"token": self.top_token[0], "count": self.top_token[1]} if self.top_token else None,
        }


@dataclass
class Window:
    start: datetime
    end: datetime

    def contains(self, t: Optional[datetime]) -> bool:
        return t is not None and self.start <= as_utc(t) < self.end

    def to_dict(self) -> dict:
        return {"start": iso_utc(self.start), "end": iso_utc(self.end)}


# ------------------------------- Windows -------------------------------

def last_boundary(now: datetime, hour: int, minute: int) -> datetime:
    now = as_utc(now)
    b = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return b if b <= now else b - DAY


def curation_windows(now: datetime, hour: int = 0, minute: int = 0) -> Tuple[Window, Window]:
    """(previous, current) half-open windows around the most recent boundary."""
    b = last_boundary(now, hour, minute)
    return Window(b - DAY, b), Window(b, as_utc(now))


# ------------------------------- Stats -------------------------------

def compute_period_stats(records: Iterable[DomainRecord], window: Window, suffix: str = "fun") -> PeriodStats:
    labels = [lab for lab in (label_of(r.domain, suffix) for r in records if window.contains(r.created_at)) if lab]
    count = len(labels)
    if count == 0:
        return PeriodStats()

    letters_only = [s for s in ("".join(c for c in lab if "a" <= c <= "z") for lab in labels) if s]
    syllables = [syllable_groups(s) for s in letters_only]
    top = top_n(alpha_tokens(labels), 1)

    return PeriodStats(
        count=count,
        avg_len=round1(sum(len(s) for s in labels) / count),
        p_digits=pct(sum(1 for s in labels if any("0" <= c <= "9" for c in s)), count),
        p_hyphen=pct(sum(1 for s in labels if "-" in s), count),
        vowel_pct=round_half_up(vowel_ratio_of("".join(letters_only)) * 100) if letters_only else 0,
        avg_syllables=round1(sum(syllables) / len(syllables)) if syllables else 0,
        top_token=top[0] if top else None,
    )


def diff_stats(cur: PeriodStats, prev: PeriodStats) -> dict:
    return {
        "count": cur.count - prev.count,
        "avgLen": round1(cur.avg_len - prev.avg_len),
        "pDigits": cur.p_digits - prev.p_digits,
        "pHyphen": cur.p_hyphen - prev.p_hyphen,
        "vowelPct": cur.vowel_pct - prev.vowel_pct,
        "avgSyllables": round1(cur.avg_syllables - prev.avg_syllables),
    }


def period_diff(records: List[DomainRecord], now: datetime, hour: int = 0, minute: int = 0,
                suffix: str = "fun") -> dict:
    prev_w, cur_w = curation_windows(now, hour, minute)
    cur = compute_period_stats(records, cur_w, suffix)
    prev = compute_period_stats(records, prev_w, suffix)
    return {
        "current": {"window": cur_w.to_dict(), "stats": cur.to_dict()},
        "previous": {"window": prev_w.to_dict(), "stats": prev.to_dict()},
        "delta": diff_stats(cur, prev),
    }


# ------------------------------- Composition -------------------------------

def acquisition_counts(records: List[DomainRecord], now: datetime) -> dict:
    now = as_utc(now)
    times = [as_utc(r.created_at) for r in records if r.created_at is not None]
    ages = [now - t for t in times]
    return {
        "acquired24h": sum(1 for a in ages if a <= DAY),
        "acquired7d": sum(1 for a in ages if a <= 7 * DAY),
        "acquiredPrev24h": sum(1 for a in ages if DAY < a <= 2 * DAY),
        "createdCoverage": pct(len(times), len(records)),
        "newestCreatedAt": iso_utc(max(times)) if times else None,
        "oldestCreatedAt": iso_utc(min(times)) if times else None,
    }


def composition(records: List[DomainRecord], suffix: str = "fun") -> dict:
    labels = [lab for lab in (label_of(r.domain, suffix) for r in records) if lab]
    starts = [s[0] for s in labels if "a" <= s[0] <= "z"]
    return {
        "topTokens": [{"token": t, "count": c} for t, c in top_n(alpha_tokens(labels), 4)],
        "topStarts": [{"letter": t, "count": c} for t, c in top_n(starts, 3)],
        "topShapes": [{"shape": t, "count": c} for t, c in top_n((shape_of_label(s) for s in labels), 3)],
    }


def curation_status(now: datetime, hour: int = 0, minute: int = 0, stage_seconds: float = 2.6) -> dict:
    """Where the daily run stands: active stage or countdown to the next one."""
    now = as_utc(now)
    run_start = last_boundary(now, hour, minute)
    stage_len = timedelta(seconds=stage_seconds)
    run_end = run_start + stage_len * len(STAGES)
    in_run = run_start <= now < run_end

    stage_index = min(len(STAGES) - 1, int((now - run_start) / stage_len)) if in_run else -1
    next_run = run_start + DAY
    return {
        "inRun": in_run,
        "stageIndex": stage_index,
        "stage": STAGES[stage_index] if stage_index >= 0 else WAITING,
        "lastRunAt": iso_utc(run_start),
        "nextRunAt": iso_utc(next_run),
        "nextInSeconds": int((next_run - now).total_seconds()),
        "window": f"{hour:02d}:{minute:02d} UTC",
    }
