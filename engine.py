#!/usr/bin/env python3
"""
Reserve oracle engine: snapshot assembly and command-line entry point.

A snapshot is the reserve inventory as seen at one instant, taken from one of
three sources:
- manual: a curated JSON file (see `read_manual_domains`)
- mock: the deterministic simulated inventory
- registrar: the live registrar API, when credentials are configured

Everything downstream (portfolio analysis, period diffs, exports) is computed
from a snapshot. The market board is independent of it.

Usage:
    python engine.py --config config.yaml snapshot
    python engine.py --config config.yaml score creator-hub.fun
    python engine.py --config config.yaml portfolio
    python engine.py --config config.yaml market --day 2026-01-20 --kind token --limit 10
    python engine.py --config config.yaml periods --now 2026-01-15T12:00:00Z
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from explainer import ModelExplainer, explain_domain
from inventory import (
    DomainRecord,
    attach_prices,
    build_mock_domains,
    read_manual_domains,
    records_from_registrar,
    sum_total_spent_usd,
)
from market_sim import compute_market_signals, featured_signals, normalize_day, rank_signals, weighted_shape_baseline
from oracle_config import (
    ConfigError,
    EngineConfig,
    SourceConfig,
    jsonl_emit,
    load_config,
    parse_timestamp,
    setup_logging,
)
from period_diff import acquisition_counts, composition, curation_status, period_diff
from portfolio import analyze_portfolio
from prng import iso_utc
from registrar import RegistrarAPIError, RegistrarClient
from snapshot_cache import DisabledCache, SnapshotCache

logger = logging.getLogger("oracle")

SNAPSHOT_KEY = "domains"


@dataclass
class DomainsSnapshot:
    domains: List[DomainRecord] = field(default_factory=list)
    fetched_at: Optional[str] = None
    source: Optional[str] = None
    mock: bool = False
    error: Optional[str] = None
    status: int = 200
    details: object = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def stats(self) -> Dict[str, float]:
        return {"domainsBought": len(self.domains), "totalSpentUsd": sum_total_spent_usd(self.domains)}

    def to_dict(self) -> dict:
        if not self.ok:
            out = {"error": self.error, "status": self.status}
            if self.details is not None:
                out["details"] = self.details
            return out
        out = {
            "domains": [d.to_dict() for d in self.domains],
            "fetchedAt": self.fetched_at,
            "source": self.source,
            "stats": self.stats,
        }
        if self.mock:
            out["mock"] = True
        return out


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ------------------------------- Snapshot -------------------------------

def _snapshot(records: List[DomainRecord], source: str, cfg: EngineConfig, now: datetime) -> DomainsSnapshot:
    return DomainsSnapshot(
        domains=attach_prices(records, cfg),
        fetched_at=iso_utc(now),
        source=source,
        mock=source == "mock",
    )


def build_snapshot(src: SourceConfig, cfg: EngineConfig, now: datetime,
                   client: Optional[RegistrarClient] = None, params: Optional[dict] = None) -> DomainsSnapshot:
    """Pick the inventory source and build one priced snapshot. Never raises on source errors."""
    if src.force_manual:
        return _snapshot(read_manual_domains(src.manual_path) or [], "manual", cfg, now)

    client = client or RegistrarClient(src)
    if not client.configured or src.force_mock:
        manual = read_manual_domains(src.manual_path)
        if manual is not None:
            return _snapshot(manual, "manual", cfg, now)
        if src.disable_mock:
            return DomainsSnapshot(
                error="Registrar API is not configured. Set REGISTRAR_API_KEY and REGISTRAR_API_SECRET.",
                status=501,
            )
        return _snapshot(build_mock_domains(now, cfg), "mock", cfg, now)

    try:
        rows = client.list_domains(params)
    except RegistrarAPIError as e:
        logger.error("Registrar error | status=%s error=%s", str(e.status), str(e))
        jsonl_emit(cfg.logging, "registrar_error", {"status": e.status, "error": str(e)})
        return DomainsSnapshot(error=str(e), status=e.status or 502, details=e.details)
    return _snapshot(records_from_registrar(rows), "registrar", cfg, now)


def load_snapshot(src: SourceConfig, cfg: EngineConfig, now: datetime,
                  cache: Optional[SnapshotCache] = None, refresh: bool = False,
                  client: Optional[RegistrarClient] = None, params: Optional[dict] = None) -> DomainsSnapshot:
    cache = cache or DisabledCache()
    key = SNAPSHOT_KEY + "".join(f"|{k}={v}" for k, v in sorted((params or {}).items()))
    if not refresh:
        hit = cache.get(key)
        if hit is not None:
            snap, age = hit
            logger.debug("Snapshot cache hit | age=%.1fs", age)
            return snap

    snap = build_snapshot(src, cfg, now, client=client, params=params)
    if snap.ok:
        cache.put(key, snap)
        logger.info("Snapshot built | source=%s domains=%d", snap.source, len(snap.domains))
        jsonl_emit(cfg.logging, "snapshot_built", {
            "source": snap.source, "domains": len(snap.domains), "fetchedAt": snap.fetched_at,
        })
    return snap


# ------------------------------- Reports -------------------------------

def curation_report(snap: DomainsSnapshot, cfg: EngineConfig, now: datetime) -> dict:
    suffix = cfg.vocabulary.suffix
    hour, minute = cfg.curation_utc_hour, cfg.curation_utc_minute
    return {
        "periods": period_diff(snap.domains, now, hour, minute, suffix),
        "composition": composition(snap.domains, suffix),
        "acquisitions": acquisition_counts(snap.domains, now),
        "curation": curation_status(now, hour, minute, cfg.stage_seconds),
        "marketBaseline": weighted_shape_baseline(cfg.market.shape_weights),
        "basedOn": {"domainsBought": len(snap.domains), "fetchedAt": snap.fetched_at, "source": snap.source},
    }


def market_report(cfg: EngineConfig, when, kind: Optional[str] = None, limit: Optional[int] = None) -> dict:
    if limit is not None and limit <= 0:
        raise ValueError("limit must be a positive integer")
    board = compute_market_signals(when, cfg.market)
    out = board.to_dict()
    out["signals"] = [s.to_dict() for s in rank_signals(board.signals, kind, limit)]
    out["featured"] = [s.to_dict() for s in featured_signals(board.signals, cfg.market.featured_keys)]
    return out


def positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return n


# ------------------------------- CLI -------------------------------

def _print_json(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: Optional[List[str]] = None, clock: Callable[[], datetime] = utc_now) -> int:
    parser = argparse.ArgumentParser(description="Reserve oracle: deterministic domain valuation and market board")
    parser.add_argument("--config", default=os.environ.get("ORACLE_CONFIG"), help="Path to YAML config")
    parser.add_argument("--now", help="Pin the clock (ISO timestamp, UTC if no offset)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("snapshot", help="Print the current inventory snapshot")
    p_score = sub.add_parser("score", help="Explain a single domain")
    p_score.add_argument("domain")
    sub.add_parser("portfolio", help="Portfolio summary of the current inventory")
    p_market = sub.add_parser("market", help="Daily market board")
    p_market.add_argument("--day", type=normalize_day, help="UTC day key YYYY-MM-DD (default: today)")
    p_market.add_argument("--kind", choices=["token", "shape", "start"])
    p_market.add_argument("--limit", type=positive_int)
    sub.add_parser("periods", help="Curation period diff and composition")
    args = parser.parse_args(argv)

    try:
        src, cfg = load_config(args.config)
        now = parse_timestamp(args.now) if args.now else clock()
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2

    setup_logging(cfg.logging)
    logger.debug("Starting oracle | command=%s now=%s", args.command, iso_utc(now))

    if args.command == "score":
        explainer = ModelExplainer(cfg.explainer, cfg.vocabulary)
        _print_json(explain_domain(args.domain, cfg.vocabulary, explainer, cfg.logging, now=now).to_dict())
        return 0

    if args.command == "market":
        _print_json(market_report(cfg, args.day or now, args.kind, args.limit))
        return 0

    snap = load_snapshot(src, cfg, now)
    if not snap.ok:
        _print_json(snap.to_dict())
        return 1

    if args.command == "snapshot":
        _print_json(snap.to_dict())
    elif args.command == "portfolio":
        _print_json(analyze_portfolio(snap.domains, cfg.vocabulary, now, snap.fetched_at, snap.source).to_dict())
    elif args.command == "periods":
        _print_json(curation_report(snap, cfg, now))
    return 0


if __name__ == "__main__":
    sys.exit(main())
