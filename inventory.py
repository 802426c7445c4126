"""
Reserve inventory: simulated, manual or registrar-sourced domain records.

The simulated list starts empty at a fixed epoch and grows by two domains per
minute (one at :00, one at :30) up to a cap. Names are drawn from a generator
seeded with the epoch's date, so the sequence of names never reshuffles; only
its length grows with wall-clock time.
"""

import json
import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from oracle_config import EngineConfig, parse_timestamp, ConfigError
from prng import as_utc, iso_utc, rng_for, round2, stable_hash32

logger = logging.getLogger("oracle")

MAX_LABEL_LEN = 20


@dataclass
class DomainRecord:
    domain: str
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    expires: Optional[datetime] = None
    renewal_period: Optional[int] = None
    privacy: Optional[bool] = None
    auto_renew: Optional[bool] = None
    locked: Optional[bool] = None
    name_servers: Optional[List[str]] = None
    price_usd: Optional[float] = None

    def to_dict(self) -> dict:
        out = {
            "domain": self.domain,
            "status": self.status,
            "createdAt": iso_utc(self.created_at) if self.created_at else None,
            "expires": iso_utc(self.expires) if self.expires else None,
            "renewalPeriod": self.renewal_period,
            "privacy": self.privacy,
            "autoRenew": self.auto_renew,
            "locked": self.locked,
            "nameServers": list(self.name_servers) if self.name_servers is not None else None,
            "priceUsd": self.price_usd,
        }
        return {k: v for k, v in out.items() if v is not None}


# ------------------------------- Simulated inventory -------------------------------

def minutes_elapsed(now: datetime, epoch: datetime) -> int:
    return math.floor((now - epoch).total_seconds() / 60)


def target_count(now: datetime, epoch: datetime, cap: int) -> int:
    return max(0, min(minutes_elapsed(now, epoch) * 2, cap))


class _LabelMaker:
    def __init__(self, rand: Callable[[], float], first: List[str], second: List[str]):
        self.rand = rand
        self.first = first
        self.second = second

    def pick(self, arr: List[str]) -> str:
        return arr[math.floor(self.rand() * len(arr))]

    def make(self, i: int) -> str:
        w1 = self.pick(self.first)
        w2 = self.pick(self.second)
        w3 = self.pick(self.first)

        # 55% single word, 40% hyphenated pair, 5% three-part
        if self.rand() < 0.55:
            label = w1
        elif self.rand() < 0.95:
            label = f"{w1}-{w2}"
        else:
            label = f"{w1}-{w2}-{w3}"

        if self.rand() < 0.08:
            label = f"{label}{10 + math.floor(self.rand() * 90)}"

        if i > 0 and self.rand() < 0.1:
            label = f"{label}-{1 + math.floor(self.rand() * 9)}"

        return label[:MAX_LABEL_LEN]


def build_mock_domains(now: datetime, cfg: EngineConfig) -> List[DomainRecord]:
    """Deterministic mock reserve for `now`, newest first."""
    now = as_utc(now)
    epoch = cfg.epoch
    n = target_count(now, epoch, cfg.inventory_cap)
    if n == 0:
        return []

    epoch_date = epoch.strftime("%Y-%m-%d")
    rand = rng_for(f"{cfg.seed_namespace}:{epoch_date}:{cfg.seed_salt}")
    vocab = cfg.vocabulary
    maker = _LabelMaker(rand, vocab.mock_first_words, vocab.mock_second_words)
    suffix = vocab.suffix

    out: List[DomainRecord] = []
    used = set()
    for i in range(n):
        created_at = epoch + timedelta(seconds=(i // 2) * 60 + (i % 2) * 30)
        expires = now + timedelta(days=320 + math.floor(rand() * 120))

        label = maker.make(i)
        domain = f"{label}.{suffix}"
        if domain in used:
            for k in range(2, 11):
                candidate = f"{label}-{k}.{suffix}"
                if candidate not in used:
                    domain = candidate
                    break
        if domain in used:
            logger.debug("Mock collision skipped | index=%d label=%s", i, label)
            continue
        used.add(domain)

        out.append(DomainRecord(
            domain=domain,
            status="ACTIVE",
            created_at=created_at,
            expires=expires,
            renewal_period=1,
            privacy=rand() < 0.35,
            auto_renew=rand() < 0.55,
            locked=True,
            name_servers=list(cfg.name_servers),
        ))

    out.sort(key=lambda d: d.created_at, reverse=True)
    return out


# ------------------------------- Prices -------------------------------

def price_for_domain_usd(domain: str, price_min: float = 2.0, price_max: float = 10.0) -> float:
    """Synthetic purchase price; stable per domain, independent of any other row."""
    r = (stable_hash32(domain) % 1_000_000) / 1_000_000
    return round2(price_min + r * (price_max - price_min))


def attach_prices(records: Iterable[DomainRecord], cfg: EngineConfig) -> List[DomainRecord]:
    out = []
    for rec in records:
        price = price_for_domain_usd(rec.domain, cfg.price_min_usd, cfg.price_max_usd) if rec.domain else None
        out.append(replace(rec, price_usd=price))
    return out


def sum_total_spent_usd(records: Iterable[DomainRecord]) -> float:
    return round2(sum(r.price_usd for r in records if isinstance(r.price_usd, (int, float))))


# ------------------------------- Real inventories -------------------------------

def _opt_timestamp(value) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return parse_timestamp(value)
    except ConfigError:
        return None


def _typed(rec: dict, key: str, kind):
    v = rec.get(key)
    if kind is int and isinstance(v, bool):
        return None
    return v if isinstance(v, kind) else None


def read_manual_domains(path: str) -> Optional[List[DomainRecord]]:
    """Curated reserve from a JSON file; None when missing, unreadable or empty."""
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            parsed = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug("Manual domains unavailable | path=%s error=%s", path, str(e))
        return None

    rows = parsed if isinstance(parsed, list) else (parsed.get("domains") if isinstance(parsed, dict) else None)
    if not isinstance(rows, list):
        return None

    out = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        domain = row.get("domain") if isinstance(row.get("domain"), str) else ""
        if not domain:
            continue
        out.append(DomainRecord(
            domain=domain,
            status="ACTIVE",
            created_at=_opt_timestamp(row.get("createdAt")),
            renewal_period=1,
            locked=True,
        ))
    return out or None


def records_from_registrar(rows: Iterable) -> List[DomainRecord]:
    """Keep only the display-safe fields of registrar API rows."""
    out = []
    for row in rows:
        rec = row if isinstance(row, dict) else {}
        servers = rec.get("nameServers")
        if not (isinstance(servers, list) and all(isinstance(s, str) for s in servers)):
            servers = None
        out.append(DomainRecord(
            domain=_typed(rec, "domain", str) or "",
            status=_typed(rec, "status", str),
            created_at=_opt_timestamp(rec.get("createdAt")),
            expires=_opt_timestamp(rec.get("expires")),
            renewal_period=_typed(rec, "renewalPeriod", int),
            privacy=_typed(rec, "privacy", bool),
            auto_renew=_typed(rec, "renewAuto", bool),
            locked=_typed(rec, "locked", bool),
            name_servers=servers,
        ))
    return out
