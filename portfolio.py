"""
Portfolio-level guidance over the whole reserve.

Aggregates the scorer's lexical features across every record, compares them
with a fixed "typical market" baseline and turns the deviations into issues,
recommendations and a deterministic list of suggested next acquisitions.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from inventory import DomainRecord
from oracle_config import Vocabulary
from prng import iso_utc, num_str, pct, rng_for, round1, utc_day_key
from scorer import label_of

SUGGESTION_COUNT = 6
SUGGESTION_MAX_LEN = 14
_BRANDABLE = re.compile(r"^[a-z]+$")
_NON_ALPHA = re.compile(r"[^a-z]")
_DIGIT = re.compile(r"[0-9]")


@dataclass
class Issue:
    severity: str  # low | med | high
    title: str
    detail: str

    def to_dict(self) -> dict:
        return {"severity": self.severity, "title": self.title, "detail": self.detail}


@dataclass
class PortfolioSummary:
    count: int
    avg_label_len: float
    short_pct: int
    brandable_pct: int
    hyphen_pct: int
    digits_pct: int
    top_tokens: List[str]
    deltas: Optional[Dict[str, float]]
    summary: str
    issues: List[Issue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    target_criteria: List[str] = field(default_factory=list)
    suggested_domains: List[str] = field(default_factory=list)
    fetched_at: Optional[str] = None
    source: Optional[str] = None
    generated_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": "pipeline",
            "summary": self.summary,
            "stats": {
                "count": self.count,
                "avgLabelLen": self.avg_label_len,
                "shortPct": self.short_pct,
                "brandablePct": self.brandable_pct,
                "hyphenPct": self.hyphen_pct,
                "digitsPct": self.digits_pct,
                "topTokens": list(self.top_tokens),
            },
            "deltas": dict(self.deltas) if self.deltas is not None else None,
            "issues": [i.to_dict() for i in self.issues],
            "recommendations": list(self.recommendations),
            "targetCriteria": list(self.target_criteria),
            "suggestedDomains": list(self.suggested_domains),
            "basedOn": {"domainsBought": self.count, "fetchedAt": self.fetched_at, "source": self.source},
            "generatedAt": self.generated_at,
        }


def top_n(items: Iterable[str], n: int) -> List[Tuple[str, int]]:
    # Ties keep first-seen order
    counts = Counter(items)
    return sorted(counts.items(), key=lambda kv: -kv[1])[:n]


def alpha_tokens(labels: Iterable[str]) -> List[str]:
    """Letters-only hyphen-separated tokens of at least 3 chars."""
    out = []
    for s in labels:
        for t in s.split("-"):
            t = _NON_ALPHA.sub("", t)
            if len(t) >= 3:
                out.append(t)
    return out


def suggest_domains(day: str, top_tokens: List[str], avg_label_len: float, vocab: Vocabulary,
                    count: int = SUGGESTION_COUNT) -> List[str]:
    """Same day and same portfolio state always give the same suggestions."""
    rand = rng_for(f"oracle:suggest:{day}:{','.join(top_tokens)}:{num_str(avg_label_len)}")
    token_pool = list(vocab.keyword_tokens) + list(vocab.suffix_tokens)
    suffix_pool = list(vocab.suggestion_suffixes)
    if not token_pool:
        return []

    def pick(arr: List[str]) -> str:
        return arr[int(rand() * len(arr))]

    out: List[str] = []
    attempts = 0
    while len(out) < count and attempts < count * 50:
        attempts += 1
        left = pick(token_pool)
        right = "" if (rand() < 0.55 or not suffix_pool) else pick(suffix_pool)
        label = f"{left}{right}"[:SUGGESTION_MAX_LEN]
        dom = f"{label}.{vocab.suffix}"
        if dom not in out:
            out.append(dom)
    return out


def analyze_portfolio(records: List[DomainRecord], vocab: Vocabulary, now: datetime,
                      fetched_at: Optional[str] = None, source: Optional[str] = None) -> PortfolioSummary:
    labels = [lab for lab in (label_of(r.domain, vocab.suffix) for r in records) if lab]
    count = len(labels)
    generated_at = iso_utc(now)

    if count == 0:
        return PortfolioSummary(
            count=0,
            avg_label_len=0,
            short_pct=0,
            brandable_pct=0,
            hyphen_pct=0,
            digits_pct=0,
            top_tokens=[],
            deltas=None,
            summary="No domains found yet. Add domains to unlock oracle guidance.",
            issues=[Issue(
                severity="high",
                title="No reserve data available",
                detail="Oracle needs the domain list to produce portfolio-level guidance.",
            )],
            recommendations=[],
            target_criteria=list(vocab.empty_target_criteria),
            suggested_domains=[],
            fetched_at=fetched_at,
            source=source,
            generated_at=generated_at,
        )

    avg_label_len = round1(sum(len(s) for s in labels) / count)
    short_pct = pct(sum(1 for s in labels if len(s) <= 5), count)
    hyphen_pct = pct(sum(1 for s in labels if "-" in s), count)
    digits_pct = pct(sum(1 for s in labels if _DIGIT.search(s)), count)
    brandable_pct = pct(sum(1 for s in labels if _BRANDABLE.match(s) and 4 <= len(s) <= 7), count)
    top_tokens = [t for t, _ in top_n(alpha_tokens(labels), 3)]

    base = vocab.baseline
    deltas = {
        "avgLabelLen": round1(avg_label_len - base["avg_label_len"]),
        "shortPct": short_pct - base["short_pct"],
        "brandablePct": brandable_pct - base["brandable_pct"],
        "hyphenPct": hyphen_pct - base["hyphen_pct"],
        "digitsPct": digits_pct - base["digits_pct"],
    }

    issues: List[Issue] = []
    recs: List[str] = []

    if hyphen_pct - base["hyphen_pct"] >= 12:
        issues.append(Issue(
            "med",
            "Hyphen rate is high vs baseline",
            f"Portfolio hyphen rate is {hyphen_pct}% (baseline ~{num_str(base['hyphen_pct'])}%). "
            "This can reduce aftermarket liquidity.",
        ))
        recs.append("Shift next buys toward single-token names (no hyphen) for better liquidity.")

    if digits_pct - base["digits_pct"] >= 8:
        issues.append(Issue(
            "med",
            "Digit rate is high vs baseline",
            f"Portfolio digits rate is {digits_pct}% (baseline ~{num_str(base['digits_pct'])}%). "
            "Digits often score worse on trust/brandability.",
        ))
        recs.append("Reduce digit-heavy picks; if using digits, keep them meaningful (e.g., '24', '69') "
                    "and avoid random suffixes.")

    if avg_label_len - base["avg_label_len"] >= 2:
        issues.append(Issue(
            "low",
            "Average label length is above baseline",
            f"Avg label length is {num_str(avg_label_len)} (baseline ~{num_str(base['avg_label_len'])}). "
            "Shorter names tend to be more liquid.",
        ))
        recs.append("Target 4-8 character labels for the next wave to rebalance average length.")

    if brandable_pct < 25:
        issues.append(Issue(
            "low",
            "Low brandable share",
            f"Only {brandable_pct}% of names are 4-7 letters (letters-only). "
            "These often have the best brandability.",
        ))
        recs.append("Increase the share of 4-7 letter letters-only labels (brandable core).")

    if not recs:
        recs.append("Keep the mix balanced: stay close to baseline on hyphens/digits while increasing "
                    "brandable 4-7 letter names.")

    parts = [
        f"Portfolio snapshot: {count} domains • avg label {num_str(avg_label_len)} • brandable {brandable_pct}% "
        f"• short {short_pct}% • hyphen {hyphen_pct}% • digits {digits_pct}%"
    ]
    if top_tokens:
        parts.append(f"Top tokens: {', '.join(top_tokens)}")

    return PortfolioSummary(
        count=count,
        avg_label_len=avg_label_len,
        short_pct=short_pct,
        brandable_pct=brandable_pct,
        hyphen_pct=hyphen_pct,
        digits_pct=digits_pct,
        top_tokens=top_tokens,
        deltas=deltas,
        summary=" • ".join(parts),
        issues=issues,
        recommendations=recs[:6],
        target_criteria=list(vocab.target_criteria),
        suggested_domains=suggest_domains(utc_day_key(now), top_tokens, avg_label_len, vocab),
        fetched_at=fetched_at,
        source=source,
        generated_at=generated_at,
    )
