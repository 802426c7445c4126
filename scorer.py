"""
Heuristic brandability scorer for a single domain.

Bias: short, clean, pronounceable labels built from market-aligned tokens.
Every scoring branch also produces a human-readable reason or caution.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from oracle_config import Vocabulary
from prng import clamp, round_half_up

VOWELS = set("aeiouy")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_TOKEN = re.compile(r"^[a-z0-9]+$")
_NON_ALPHA = re.compile(r"[^a-z]")
_DIGIT = re.compile(r"[0-9]")


@dataclass
class ScoreFeatures:
    label: str
    label_len: int
    tokens: List[str]
    has_hyphen: bool
    has_digits: bool
    vowel_pct: int

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "labelLen": self.label_len,
            "tokens": list(self.tokens),
            "hasHyphen": self.has_hyphen,
            "hasDigits": self.has_digits,
            "vowelPct": self.vowel_pct,
        }


@dataclass
class ScoreResult:
    domain: str
    score: int
    verdict: str
    reasons: List[str] = field(default_factory=list)
    cautions: List[str] = field(default_factory=list)
    features: Optional[ScoreFeatures] = None
    source: str = "heuristic"
    generated_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": "domain",
            "domain": self.domain,
            "score": self.score,
            "verdict": self.verdict,
            "reasons": list(self.reasons),
            "cautions": list(self.cautions),
            "features": self.features.to_dict() if self.features else None,
            "source": self.source,
            "generatedAt": self.generated_at,
        }


# ------------------------------- Label features -------------------------------

def normalize_domain(domain) -> str:
    if domain is None:
        return ""
    return str(domain).strip().lower()


def label_of(domain, suffix: str = "fun") -> str:
    d = normalize_domain(domain)
    tail = f".{suffix}"
    if d.endswith(tail):
        d = d[: -len(tail)]
    elif "." in d.strip("."):
        d = d.strip(".").rsplit(".", 1)[0]
    return d.strip(".")


def tokens_of(label: str, suffix: str = "fun") -> List[str]:
    out = []
    for part in label.split("-"):
        for t in _NON_ALNUM.split(part):
            t = t.strip().lower()
            if t and t != suffix:
                out.append(t)
    return out


def letters_of(label: str) -> str:
    return _NON_ALPHA.sub("", label)


def vowel_pct_of(label: str) -> int:
    letters = letters_of(label)
    if not letters:
        return 0
    v = sum(1 for ch in letters if ch in VOWELS)
    return round_half_up(v / len(letters) * 100)


def verdict_for(score: int) -> str:
    if score >= 75:
        return "strong"
    if score <= 45:
        return "weak"
    return "okay"


def _dedupe(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _length_points(n: int) -> int:
    if n <= 3:
        return -12
    if n <= 5:
        return 10
    if n <= 8:
        return 14
    if n <= 12:
        return 2
    return -14 - min(16, n - 12)


# ------------------------------- Scorer -------------------------------

def score_domain(domain, vocab: Vocabulary) -> ScoreResult:
    name = normalize_domain(domain)
    label = label_of(name, vocab.suffix)
    has_hyphen = "-" in label
    has_digits = bool(_DIGIT.search(label))
    tokens = [t for t in tokens_of(label, vocab.suffix) if _TOKEN.match(t)]
    vowel_pct = vowel_pct_of(label)
    label_len = len(label)
    letters_only = letters_of(label)

    keywords, suffixes, numerics = vocab.keyword_set, vocab.suffix_set, vocab.numeric_set

    score = 50
    score += _length_points(label_len)

    if has_hyphen:
        score -= 8

    culture_numeric = next((t for t in tokens if t in numerics), None)
    if has_digits:
        score -= 3 if culture_numeric else 10

    if len(letters_only) == label_len and 4 <= label_len <= 7:
        score += 10

    if 30 <= vowel_pct <= 60:
        score += 6
    elif vowel_pct < 20 or vowel_pct > 70:
        score -= 6

    keyword_hits = [t for t in tokens if t in keywords]
    suffix_hits = [t for t in tokens if t in suffixes]
    numeric_hits = [t for t in tokens if t in numerics]
    strong_hits = _dedupe(keyword_hits + suffix_hits + numeric_hits)
    if strong_hits:
        score += min(14, 6 + 4 * len(strong_hits))

    score = int(clamp(round_half_up(score), 0, 100))

    reasons: List[str] = []
    cautions: List[str] = []

    if label_len <= 8:
        reasons.append(f"Short label ({label_len} chars) tends to be easier to recall")
    else:
        cautions.append(f"Long label ({label_len} chars) can reduce type-in + resale liquidity")

    if not has_hyphen:
        reasons.append("No hyphen (cleaner naming structure)")
    else:
        cautions.append("Hyphenated labels often trade thinner than single-token names")

    if not has_digits:
        reasons.append('No digits (less "generated" vibe)')
    elif culture_numeric:
        reasons.append(f"Culture-centric numeric ({culture_numeric}) can resonate in meme-friendly markets")
    else:
        cautions.append("Digits can lower trust/brandability for many buyers")

    if 30 <= vowel_pct <= 60:
        reasons.append(f"Pronounceability looks decent (vowels ~{vowel_pct}%)")
    else:
        cautions.append(f"Pronounceability may be weaker (vowels ~{vowel_pct}%)")

    tld = vocab.suffix
    if keyword_hits and suffix_hits:
        reasons.append(f"Market pattern: {keyword_hits[0]} + {suffix_hits[0]}")
    elif numeric_hits and keyword_hits:
        reasons.append(f"Market pattern: {numeric_hits[0]} + {keyword_hits[0]}")
    elif keyword_hits:
        reasons.append(f"Common .{tld} market keyword(s): {', '.join(keyword_hits[:3])}")
    elif numeric_hits:
        reasons.append(f"Culture-centric numeric: {numeric_hits[0]} (meme-friendly, market-validated)")
    elif suffix_hits:
        reasons.append(f"Common .{tld} naming suffix: {', '.join(suffix_hits[:2])}")
    elif tokens:
        reasons.append(f"Readable token(s): {', '.join(tokens[:3])}")

    return ScoreResult(
        domain=name,
        score=score,
        verdict=verdict_for(score),
        reasons=_dedupe(reasons)[:6],
        cautions=_dedupe(cautions)[:5],
        features=ScoreFeatures(
            label=label,
            label_len=label_len,
            tokens=tokens[:6],
            has_hyphen=has_hyphen,
            has_digits=has_digits,
            vowel_pct=vowel_pct,
        ),
    )
