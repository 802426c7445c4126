"""Shared fixtures for the reserve oracle test suite."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from inventory import DomainRecord
from oracle_config import SourceConfig, default_engine_config
from snapshot_cache import DisabledCache

ORACLE_ENV = [
    "REGISTRAR_API_KEY",
    "REGISTRAR_API_SECRET",
    "REGISTRAR_ENV",
    "REGISTRAR_API_BASE_URL",
    "ORACLE_MANUAL_DOMAINS_PATH",
    "ORACLE_FORCE_MOCK",
    "ORACLE_DISABLE_MOCK",
    "ORACLE_FORCE_MANUAL",
    "ANTHROPIC_API_KEY",
    "ORACLE_CONFIG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ORACLE_ENV:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@pytest.fixture
def engine_cfg():
    return default_engine_config()


@pytest.fixture
def vocab(engine_cfg):
    return engine_cfg.vocabulary


@pytest.fixture
def tables(engine_cfg):
    return engine_cfg.market


@pytest.fixture
def make_source(tmp_path):
    """Build a SourceConfig; the manual file does not exist unless written."""
    def _make(**overrides):
        values = dict(
            api_key="",
            api_secret="",
            env="production",
            base_url="",
            manual_path=str(tmp_path / "domains.json"),
            force_mock=False,
            disable_mock=False,
            force_manual=False,
            timeout_seconds=5,
        )
        values.update(overrides)
        return SourceConfig(**values)
    return _make


@pytest.fixture
def write_manual(tmp_path):
    def _write(payload, name="domains.json"):
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def no_cache():
    return DisabledCache()


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------

@pytest.fixture
def epoch(engine_cfg):
    return engine_cfg.epoch


@pytest.fixture
def early_now(epoch):
    """Ten minutes after the epoch: twenty mock slots."""
    return epoch + timedelta(minutes=10)


@pytest.fixture
def fixed_now():
    return datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@pytest.fixture
def make_record():
    def _make(domain, created_at=None, **kw):
        return DomainRecord(domain=domain, status="ACTIVE", created_at=created_at, **kw)
    return _make
