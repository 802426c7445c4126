import dataclasses
from datetime import datetime, timedelta, timezone

from hypothesis import given, strategies as st

from inventory import (
    DomainRecord,
    attach_prices,
    build_mock_domains,
    price_for_domain_usd,
    read_manual_domains,
    records_from_registrar,
    sum_total_spent_usd,
    target_count,
)
from scorer import label_of


def generation_order(records):
    return [r.domain for r in sorted(records, key=lambda r: r.created_at)]


class TestMockInventory:
    def test_empty_at_and_before_epoch(self, engine_cfg, epoch):
        assert build_mock_domains(epoch, engine_cfg) == []
        assert build_mock_domains(epoch - timedelta(hours=3), engine_cfg) == []

    def test_two_slots_per_minute(self, engine_cfg, epoch):
        assert target_count(epoch + timedelta(minutes=1), epoch, 1000) == 2
        assert target_count(epoch + timedelta(minutes=1, seconds=59), epoch, 1000) == 2
        recs = build_mock_domains(epoch + timedelta(minutes=1), engine_cfg)
        assert len(recs) == 2
        assert {r.created_at for r in recs} == {epoch, epoch + timedelta(seconds=30)}

    def test_deterministic(self, engine_cfg, early_now):
        assert build_mock_domains(early_now, engine_cfg) == build_mock_domains(early_now, engine_cfg)

    def test_prefix_stable_growth(self, engine_cfg, epoch):
        small = build_mock_domains(epoch + timedelta(minutes=10), engine_cfg)
        large = build_mock_domains(epoch + timedelta(minutes=20), engine_cfg)
        assert len(large) >= len(small)
        assert generation_order(large)[: len(small)] == generation_order(small)

    def test_capped(self, engine_cfg, epoch):
        later = epoch + timedelta(days=3)
        assert target_count(later, epoch, engine_cfg.inventory_cap) == 1000
        recs = build_mock_domains(later, engine_cfg)
        assert 0 < len(recs) <= 1000
        assert len({r.domain for r in recs}) == len(recs)

    def test_zero_cap(self, engine_cfg, early_now):
        cfg = dataclasses.replace(engine_cfg, inventory_cap=0)
        assert build_mock_domains(early_now, cfg) == []

    def test_row_invariants(self, engine_cfg, early_now):
        recs = build_mock_domains(early_now, engine_cfg)
        assert recs
        assert len({r.domain for r in recs}) == len(recs)
        assert [r.created_at for r in recs] == sorted((r.created_at for r in recs), reverse=True)
        for r in recs:
            assert r.domain.endswith(".fun")
            assert label_of(r.domain)
            assert r.expires > r.created_at
            assert r.status == "ACTIVE"
            assert r.locked is True
            assert r.renewal_period == 1
            assert isinstance(r.privacy, bool) and isinstance(r.auto_renew, bool)
            assert r.name_servers == engine_cfg.name_servers

    def test_names_depend_on_epoch_date_only(self, engine_cfg, epoch):
        shifted = dataclasses.replace(engine_cfg, epoch=epoch + timedelta(minutes=30))
        base = build_mock_domains(epoch + timedelta(minutes=5), engine_cfg)
        moved = build_mock_domains(epoch + timedelta(minutes=35), shifted)
        assert generation_order(base) == generation_order(moved)

    def test_to_dict_camel_case(self, engine_cfg, early_now):
        row = attach_prices(build_mock_domains(early_now, engine_cfg), engine_cfg)[0].to_dict()
        for key in ("domain", "createdAt", "expires", "renewalPeriod", "autoRenew", "nameServers", "priceUsd"):
            assert key in row
        assert row["createdAt"].endswith("Z")


class TestPrices:
    def test_stable_per_domain(self):
        assert price_for_domain_usd("creator-hub.fun") == price_for_domain_usd("creator-hub.fun")

    @given(st.text(min_size=1))
    def test_range_and_cents(self, domain):
        p = price_for_domain_usd(domain)
        assert 2.0 <= p <= 10.0
        assert round(p, 2) == p

    def test_attach_and_sum(self, engine_cfg, early_now):
        recs = attach_prices(build_mock_domains(early_now, engine_cfg), engine_cfg)
        for r in recs:
            assert r.price_usd == price_for_domain_usd(r.domain)
        assert sum_total_spent_usd(recs) == round(sum(r.price_usd for r in recs), 2)

    def test_sum_ignores_unpriced(self):
        assert sum_total_spent_usd([DomainRecord(domain="a.fun")]) == 0


class TestManualDomains:
    def test_list_payload(self, write_manual):
        path = write_manual([
            {"domain": "meme.fun", "createdAt": "2026-01-15T10:00:00Z"},
            {"domain": "vibe.fun"},
            {"name": "ignored.fun"},
            "junk",
        ])
        recs = read_manual_domains(path)
        assert [r.domain for r in recs] == ["meme.fun", "vibe.fun"]
        assert recs[0].created_at == datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)
        assert recs[1].created_at is None

    def test_object_payload(self, write_manual):
        recs = read_manual_domains(write_manual({"domains": [{"domain": "loop.fun"}]}))
        assert [r.domain for r in recs] == ["loop.fun"]

    def test_bad_created_at_is_dropped(self, write_manual):
        recs = read_manual_domains(write_manual([{"domain": "loop.fun", "createdAt": "yesterday"}]))
        assert recs[0].created_at is None

    def test_missing_or_empty_gives_none(self, tmp_path, write_manual):
        assert read_manual_domains(str(tmp_path / "nope.json")) is None
        assert read_manual_domains(write_manual([])) is None
        assert read_manual_domains(write_manual({"domains": "x"})) is None

    def test_malformed_json_gives_none(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert read_manual_domains(str(path)) is None


class TestRegistrarRows:
    def test_keeps_safe_fields(self):
        recs = records_from_registrar([{
            "domain": "ai.fun",
            "status": "ACTIVE",
            "createdAt": "2026-01-10T00:00:00Z",
            "expires": "2027-01-10T00:00:00Z",
            "renewalPeriod": 1,
            "privacy": False,
            "renewAuto": True,
            "locked": True,
            "nameServers": ["ns1.example.com"],
            "contactRegistrant": {"email": "secret@example.com"},
        }])
        row = recs[0].to_dict()
        assert row["autoRenew"] is True
        assert row["nameServers"] == ["ns1.example.com"]
        assert "contactRegistrant" not in row

    def test_wrong_types_are_dropped(self):
        rec = records_from_registrar([{
            "domain": "ai.fun",
            "renewalPeriod": True,
            "privacy": "no",
            "nameServers": ["ok", 3],
        }])[0]
        assert rec.renewal_period is None
        assert rec.privacy is None
        assert rec.name_servers is None

    def test_non_object_rows(self):
        assert records_from_registrar(["x"])[0].domain == ""
