from datetime import datetime, timedelta, timezone

from hypothesis import given, settings, strategies as st

from prng import (
    iso_utc,
    mulberry32,
    num_str,
    pct,
    rng_for,
    round1,
    round_half_up,
    stable_hash32,
    unit_from_seed,
    utc_day_key,
)


class TestStableHash:
    def test_empty_string_is_offset_basis(self):
        assert stable_hash32("") == 2166136261

    def test_known_fnv1a_vectors(self):
        assert stable_hash32("a") == 0xE40C292C
        assert stable_hash32("foobar") == 0xBF9CF968

    def test_non_string_is_coerced(self):
        assert stable_hash32(404) == stable_hash32("404")

    @given(st.text())
    def test_fits_in_32_bits(self, text):
        assert 0 <= stable_hash32(text) <= 0xFFFFFFFF


class TestMulberry:
    def test_same_seed_same_sequence(self):
        a, b = mulberry32(12345), mulberry32(12345)
        assert [a() for _ in range(50)] == [b() for _ in range(50)]

    def test_different_seeds_diverge(self):
        a, b = rng_for("reserve:mock:2026-01-14:reset"), rng_for("reserve:mock:2026-01-15:reset")
        assert [a() for _ in range(5)] != [b() for _ in range(5)]

    @given(st.integers(min_value=0, max_value=2**32 - 1))
    @settings(max_examples=50)
    def test_values_in_unit_interval(self, seed):
        rand = mulberry32(seed)
        for _ in range(20):
            assert 0.0 <= rand() < 1.0

    @given(st.text())
    def test_unit_from_seed_range(self, text):
        u = unit_from_seed(text)
        assert 0.0 <= u < 1.0
        assert u == unit_from_seed(text)


class TestNumericHelpers:
    def test_round_half_up_matches_browser_rounding(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(0.49) == 0

    def test_round1(self):
        assert round1(6.25) == 6.3
        assert round1(-1.0) == -1.0

    def test_pct_zero_denominator(self):
        assert pct(5, 0) == 0
        assert pct(1, 3) == 33
        assert pct(2, 3) == 67

    def test_num_str(self):
        assert num_str(7.0) == "7"
        assert num_str(6.9) == "6.9"
        assert num_str(0) == "0"


class TestTime:
    def test_iso_utc_millis(self):
        assert iso_utc(datetime(2026, 1, 14, 21, 55, tzinfo=timezone.utc)) == "2026-01-14T21:55:00.000Z"

    def test_day_key_uses_utc(self):
        plus5 = timezone(timedelta(hours=5))
        assert utc_day_key(datetime(2026, 1, 15, 1, 0, tzinfo=plus5)) == "2026-01-14"

    def test_naive_is_treated_as_utc(self):
        assert utc_day_key(datetime(2026, 1, 15, 23, 59)) == "2026-01-15"
