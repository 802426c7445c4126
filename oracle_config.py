"""
Configuration for the reserve oracle.

Two kinds of settings live here:
- runtime/source settings (where the inventory comes from, cache TTL, logging)
- static, versioned tables (vocabularies, baselines, market candidate weights)

Tables are loaded once at startup and injected into the scorer, analyzer and
market simulator. Update them in YAML (or a separate vocabulary file) and bump
`version`; scoring code does not need to change.
"""

import copy
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Dict, List, Optional, Tuple

import yaml


class ConfigError(Exception):
    pass


# ------------------------------- Default tables -------------------------------

DEFAULT_VOCABULARY = {
    "version": "2026.01",
    "suffix": "fun",
    # Market-aligned buckets used for explanations and recommendations
    "keyword_tokens": [
        "ai",
        "strawberry", "loop", "instant", "idols",
        "meme", "creator", "clip", "beat", "dance", "quiz", "crew", "club",
        "chat", "stream", "viral", "random", "luck", "play", "pixel",
        "arcade", "party", "vibe", "toon", "games",
    ],
    "suffix_tokens": ["studio", "lab", "labs", "hub", "zone", "vault", "arena", "bot"],
    "culture_numerics": ["404", "69", "420", "1337"],
    "baseline": {
        "avg_label_len": 6.9,
        "brandable_pct": 33,
        "short_pct": 25,
        "hyphen_pct": 36,
        "digits_pct": 13,
    },
    "suggestion_suffixes": ["lab", "hub", "zone", "club", "studio", "vault", "room", "loop", "arena"],
    "target_criteria": [
        "4-7 letters, letters-only (brandable core)",
        "AI-related terms or novelty/lifestyle keywords (strawberry/loop/instant/idols)",
        "Culture-centric numerics (404) or .fun-native tokens (creator/clip/beat/quiz/party)",
    ],
    "empty_target_criteria": [
        "Prioritize single-token .fun names (4-7 letters)",
        "Avoid digits unless there is a strong meme/format reason",
        "Keep hyphenation low for better resale liquidity",
    ],
    # Word pools for the simulated inventory
    "mock_first_words": [
        "meme", "fun", "vibe", "lol", "hype", "party", "arcade", "pixel", "toon",
        "clip", "beat", "dance", "spin", "quiz", "crew", "club", "chat", "stream",
        "creator", "viral", "random", "luck", "play",
    ],
    "mock_second_words": [
        "lab", "labs", "studio", "vault", "arena", "zone", "hub", "room", "loop",
        "stash", "mint", "drop", "show", "wave", "party", "games", "bot",
    ],
}

DEFAULT_MARKET_TABLES = {
    "version": "2026.01",
    # Prior weights double as momentum counts for each candidate
    "token_weights": {
        "fun": 96, "play": 88, "game": 30, "games": 28, "party": 38, "vibe": 80,
        "laugh": 74, "lol": 76, "meme": 92, "memes": 88, "viral": 70, "trend": 68,
        "hype": 66, "mix": 62, "dance": 60, "music": 58, "beat": 56, "clip": 42,
        "gif": 60, "mash": 54, "quiz": 36, "spin": 56, "wheel": 52, "luck": 54,
        "random": 52, "story": 50, "toon": 48, "pixel": 50, "arcade": 62, "arena": 48,
        "creator": 82, "crew": 52, "club": 56, "chat": 64, "stream": 62, "live": 58,
        "social": 54, "fans": 52, "studio": 54, "labs": 52,
        "ai": 88, "rooms": 85, "strawberry": 76, "loop": 74, "instant": 72, "idols": 70,
        "bot": 54, "agent": 50,
    },
    "shape_weights": {
        "a3": 72, "a4": 92, "a5": 90, "a6": 84, "a7": 70, "a8": 58, "a9": 48,
        "a3-1a3": 66, "a4-1a3": 62, "a3-1a4": 64, "a4-1a4": 60, "a5-1a4": 54, "a4-1a5": 52,
        "a4#2": 40, "a5#2": 36, "a5#3": 30, "a6#2": 28,
    },
    "start_weights": {
        "s": 90, "m": 84, "c": 82, "a": 80, "t": 76, "p": 74, "b": 72, "f": 70, "g": 66,
        "n": 64, "l": 62, "h": 58, "v": 56, "d": 54, "k": 52, "w": 50, "z": 44,
    },
    # Brandability of a starting letter, before momentum
    "start_letter_scores": {
        "a": 10, "b": 12, "c": 13, "d": 10, "e": 9, "f": 12, "g": 11, "h": 9, "i": 9,
        "j": 12, "k": 12, "l": 12, "m": 14, "n": 11, "o": 9, "p": 12, "q": 7, "r": 11,
        "s": 15, "t": 13, "u": 8, "v": 11, "w": 10, "x": 9, "y": 8, "z": 9,
    },
    "keyword_bump_tokens": [
        "ai", "rooms", "creator", "strawberry", "loop", "instant", "idols", "labs",
        "studio", "market", "trade", "coin", "dex", "swap", "memes", "meme", "fun",
        "play", "vault", "reserve",
    ],
    "penalty_tokens": ["party", "clip", "quiz", "game", "games"],
    "featured_keys": ["token:ai", "token:rooms", "token:creator"],
}


# ------------------------------- Config dataclasses -------------------------------

@dataclass
class Vocabulary:
    version: str
    suffix: str
    keyword_tokens: List[str]
    suffix_tokens: List[str]
    culture_numerics: List[str]
    baseline: Dict[str, float]
    suggestion_suffixes: List[str]
    target_criteria: List[str]
    empty_target_criteria: List[str]
    mock_first_words: List[str]
    mock_second_words: List[str]

    @property
    def keyword_set(self) -> frozenset:
        return frozenset(self.keyword_tokens)

    @property
    def suffix_set(self) -> frozenset:
        return frozenset(self.suffix_tokens)

    @property
    def numeric_set(self) -> frozenset:
        return frozenset(self.culture_numerics)


@dataclass
class MarketTables:
    version: str
    token_weights: Dict[str, float]
    shape_weights: Dict[str, float]
    start_weights: Dict[str, float]
    start_letter_scores: Dict[str, float]
    keyword_bump_tokens: List[str]
    penalty_tokens: List[str]
    featured_keys: List[str]

    def candidates(self) -> List[str]:
        return (
            [f"token:{t}" for t in self.token_weights]
            + [f"shape:{s}" for s in self.shape_weights]
            + [f"start:{c}" for c in self.start_weights]
        )


@dataclass
class SourceConfig:
    api_key: str
    api_secret: str
    env: str
    base_url: str
    manual_path: str
    force_mock: bool
    disable_mock: bool
    force_manual: bool
    timeout_seconds: int


@dataclass
class EngineConfig:
    epoch: datetime
    inventory_cap: int
    seed_namespace: str
    seed_salt: str
    name_servers: List[str]
    price_min_usd: float
    price_max_usd: float
    curation_utc_hour: int
    curation_utc_minute: int
    stage_seconds: float
    cache_ttl_seconds: int
    vocabulary: Vocabulary
    market: MarketTables
    explainer: dict = field(default_factory=dict)
    logging: dict = field(default_factory=dict)


# ------------------------------- Loaders -------------------------------

def _env_flag(name: str) -> Optional[bool]:
    v = os.environ.get(name)
    if v is None:
        return None
    return v.strip() == "1"


def parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        ts = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError as e:
            raise ConfigError(f"invalid timestamp: {value!r}") from e
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def build_vocabulary(raw: Optional[dict] = None) -> Vocabulary:
    v = copy.deepcopy(DEFAULT_VOCABULARY)
    v.update(raw or {})
    baseline = dict(DEFAULT_VOCABULARY["baseline"])
    baseline.update((raw or {}).get("baseline", {}) or {})
    try:
        return Vocabulary(
            version=str(v["version"]),
            suffix=str(v["suffix"]).strip().lower().lstrip("."),
            keyword_tokens=[str(t).lower() for t in v["keyword_tokens"]],
            suffix_tokens=[str(t).lower() for t in v["suffix_tokens"]],
            culture_numerics=[str(t) for t in v["culture_numerics"]],
            baseline={k: float(x) for k, x in baseline.items()},
            suggestion_suffixes=[str(t).lower() for t in v["suggestion_suffixes"]],
            target_criteria=[str(t) for t in v["target_criteria"]],
            empty_target_criteria=[str(t) for t in v["empty_target_criteria"]],
            mock_first_words=[str(t).lower() for t in v["mock_first_words"]],
            mock_second_words=[str(t).lower() for t in v["mock_second_words"]],
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid vocabulary: {e}") from e


def build_market_tables(raw: Optional[dict] = None) -> MarketTables:
    m = copy.deepcopy(DEFAULT_MARKET_TABLES)
    m.update(raw or {})
    try:
        tables = MarketTables(
            version=str(m["version"]),
            token_weights={str(k).lower(): float(w) for k, w in dict(m["token_weights"]).items()},
            shape_weights={str(k): float(w) for k, w in dict(m["shape_weights"]).items()},
            start_weights={str(k).lower(): float(w) for k, w in dict(m["start_weights"]).items()},
            start_letter_scores={str(k).lower(): float(w) for k, w in dict(m["start_letter_scores"]).items()},
            keyword_bump_tokens=[str(t).lower() for t in m["keyword_bump_tokens"]],
            penalty_tokens=[str(t).lower() for t in m["penalty_tokens"]],
            featured_keys=[str(k) for k in m["featured_keys"]],
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid market tables: {e}") from e
    if not tables.candidates():
        raise ConfigError("market tables define no candidates")
    return tables


def load_vocabulary_file(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"vocabulary file must be a mapping: {path}")
    return data


def load_config(path: Optional[str] = None) -> Tuple[SourceConfig, EngineConfig]:
    cfg = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
        if not isinstance(cfg, dict):
            raise ConfigError(f"config root must be a mapping: {path}")

    src = cfg.get("source", {}) or {}
    eng = cfg.get("engine", {}) or {}

    tables = dict(cfg.get("tables", {}) or {})
    vocab_path = str(eng.get("vocabulary_path", "") or "")
    if vocab_path:
        tables = {**load_vocabulary_file(vocab_path), **tables}

    force_mock = _env_flag("ORACLE_FORCE_MOCK")
    disable_mock = _env_flag("ORACLE_DISABLE_MOCK")
    force_manual = _env_flag("ORACLE_FORCE_MANUAL")

    source_cfg = SourceConfig(
        api_key=str(os.environ.get("REGISTRAR_API_KEY", src.get("api_key", "")) or ""),
        api_secret=str(os.environ.get("REGISTRAR_API_SECRET", src.get("api_secret", "")) or ""),
        env=str(os.environ.get("REGISTRAR_ENV", src.get("env", "production"))).lower(),
        base_url=str(os.environ.get("REGISTRAR_API_BASE_URL", src.get("base_url", "")) or ""),
        manual_path=str(os.environ.get("ORACLE_MANUAL_DOMAINS_PATH", src.get("manual_path", "data/domains.json"))),
        force_mock=force_mock if force_mock is not None else bool(src.get("force_mock", False)),
        disable_mock=disable_mock if disable_mock is not None else bool(src.get("disable_mock", False)),
        force_manual=force_manual if force_manual is not None else bool(src.get("force_manual", False)),
        timeout_seconds=int(src.get("timeout_seconds", 30)),
    )

    try:
        engine_cfg = EngineConfig(
            epoch=parse_timestamp(eng.get("epoch", "2026-01-14T21:55:00Z")),
            inventory_cap=int(eng.get("inventory_cap", 1000)),
            seed_namespace=str(eng.get("seed_namespace", "reserve:mock")),
            seed_salt=str(eng.get("seed_salt", "reset")),
            name_servers=list(eng.get("name_servers", ["ns1.vercel-dns.com", "ns2.vercel-dns.com"])),
            price_min_usd=float(eng.get("price_min_usd", 2.0)),
            price_max_usd=float(eng.get("price_max_usd", 10.0)),
            curation_utc_hour=int(eng.get("curation_utc_hour", 0)),
            curation_utc_minute=int(eng.get("curation_utc_minute", 0)),
            stage_seconds=float(eng.get("stage_seconds", 2.6)),
            cache_ttl_seconds=int(eng.get("cache_ttl_seconds", 60)),
            vocabulary=build_vocabulary(tables.get("vocabulary")),
            market=build_market_tables(tables.get("market")),
            explainer=dict(cfg.get("explainer", {}) or {}),
            logging=dict(cfg.get("logging", {}) or {}),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid engine config: {e}") from e

    if engine_cfg.inventory_cap < 0:
        raise ConfigError("engine.inventory_cap must be >= 0")
    if not (0 <= engine_cfg.curation_utc_hour <= 23 and 0 <= engine_cfg.curation_utc_minute <= 59):
        raise ConfigError("engine.curation_utc_hour/minute must be a valid UTC time of day")
    if engine_cfg.price_max_usd < engine_cfg.price_min_usd:
        raise ConfigError("engine.price_max_usd must be >= price_min_usd")

    return source_cfg, engine_cfg


def default_engine_config() -> EngineConfig:
    _, engine_cfg = load_config(None)
    return engine_cfg


# ------------------------------- Logging -------------------------------

def setup_logging(cfg_logging: dict):
    logger = logging.getLogger("oracle")
    if logger.handlers:
        return logger
    cfg_logging = cfg_logging or {}
    level_name = str(cfg_logging.get("level", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    log_file = cfg_logging.get("file", "logs/oracle.log")
    if log_file:
        if os.path.dirname(log_file):
            os.makedirs(os.path.dirname(log_file), exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=int(cfg_logging.get("rotate_max_mb", 5)) * 1024 * 1024,
                                      backupCount=int(cfg_logging.get("rotate_backups", 3)))
        handler.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(sh)
    return logger


def jsonl_emit(cfg_logging: dict, event: str, payload: dict):
    path = (cfg_logging or {}).get("jsonl_file")
    if not path:
        return
    if os.path.dirname(path):
        os.makedirs(os.path.dirname(path), exist_ok=True)
    try:
        with open(path, "a", encoding="utf-8") as f:
            rec = {"event": event, **payload}
            f.write(json.dumps(rec, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        logging.getLogger("oracle").debug("JSONL emit failed | path=%s error=%s", path, str(e))
