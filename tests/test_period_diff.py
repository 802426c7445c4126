from datetime import datetime, timedelta, timezone

from period_diff import (
    PeriodStats,
    WAITING,
    acquisition_counts,
    composition,
    compute_period_stats,
    curation_status,
    curation_windows,
    last_boundary,
    period_diff,
)

UTC = timezone.utc


def at(day, hour, minute=0, second=0):
    return datetime(2026, 1, day, hour, minute, second, tzinfo=UTC)


class TestWindows:
    def test_boundary_earlier_today(self):
        assert last_boundary(at(15, 12), 0, 0) == at(15, 0)

    def test_boundary_later_today_falls_back_a_day(self):
        assert last_boundary(at(15, 12), 18, 30) == at(14, 18, 30)

    def test_exact_boundary_is_current(self):
        assert last_boundary(at(15, 0), 0, 0) == at(15, 0)

    def test_windows_are_adjacent(self):
        prev, cur = curation_windows(at(15, 12))
        assert (prev.start, prev.end) == (at(14, 0), at(15, 0))
        assert (cur.start, cur.end) == (at(15, 0), at(15, 12))
        assert cur.contains(at(15, 0))
        assert not cur.contains(at(15, 12))
        assert not prev.contains(at(15, 0))
        assert not cur.contains(None)


class TestStats:
    def test_empty_window_is_all_zero(self, make_record):
        _, cur = curation_windows(at(15, 12))
        stats = compute_period_stats([make_record("meme.fun")], cur)
        assert stats == PeriodStats()
        assert stats.top_token is None
        assert stats.to_dict()["topToken"] is None

    def test_period_diff(self, make_record):
        recs = [
            make_record("meme-lab.fun", at(15, 1)),
            make_record("vibe.fun", at(15, 2)),
            make_record("loop42.fun", at(14, 10)),
            make_record("old.fun", at(10, 10)),
            make_record("undated.fun"),
        ]
        out = period_diff(recs, at(15, 12))
        cur, prev = out["current"]["stats"], out["previous"]["stats"]
        assert cur == {
            "count": 2, "avgLen": 6.0, "pDigits": 0, "pHyphen": 50, "vowelPct": 45,
            "avgSyllables": 2.5, "topToken": {"token": "meme", "count": 1},
        }
        assert prev == {
            "count": 1, "avgLen": 6.0, "pDigits": 100, "pHyphen": 0, "vowelPct": 50,
            "avgSyllables": 1.0, "topToken": {"token": "loop", "count": 1},
        }
        assert out["delta"] == {
            "count": 1, "avgLen": 0.0, "pDigits": -100, "pHyphen": 50, "vowelPct": -5, "avgSyllables": 1.5,
        }
        assert out["current"]["window"] == {"start": "2026-01-15T00:00:00.000Z", "end": "2026-01-15T12:00:00.000Z"}


class TestComposition:
    def test_acquisition_counts(self, make_record):
        now = at(15, 12)
        recs = [
            make_record("a.fun", now - timedelta(hours=1)),
            make_record("b.fun", now - timedelta(hours=30)),
            make_record("c.fun", now - timedelta(days=3)),
            make_record("d.fun"),
        ]
        out = acquisition_counts(recs, now)
        assert out["acquired24h"] == 1
        assert out["acquired7d"] == 3
        assert out["acquiredPrev24h"] == 1
        assert out["createdCoverage"] == 75
        assert out["newestCreatedAt"] == "2026-01-15T11:00:00.000Z"

    def test_naive_timestamps_read_as_utc(self, make_record):
        now = at(15, 12)
        recs = [make_record("meme.fun", datetime(2026, 1, 15, 1, 0)), make_record("vibe.fun", now - timedelta(hours=1))]
        out = acquisition_counts(recs, now)
        assert out["acquired24h"] == 2
        assert out["oldestCreatedAt"] == "2026-01-15T01:00:00.000Z"
        diff = period_diff(recs, now)
        assert diff["current"]["stats"]["count"] == 2

    def test_acquisition_counts_empty(self):
        out = acquisition_counts([], at(15, 12))
        assert out["createdCoverage"] == 0
        assert out["newestCreatedAt"] is None

    def test_composition(self, make_record):
        recs = [make_record(d) for d in ("meme.fun", "meme-lab.fun", "mint.fun", "vibe.fun")]
        out = composition(recs)
        assert out["topTokens"][0] == {"token": "meme", "count": 2}
        assert out["topStarts"][0] == {"letter": "m", "count": 3}
        assert out["topShapes"][0] == {"shape": "a4", "count": 3}


class TestCurationStatus:
    def test_in_run_stage(self):
        out = curation_status(at(15, 0, 0, 3))
        assert out["inRun"] is True
        assert out["stage"] == "EXTRACT"
        assert out["stageIndex"] == 1

    def test_waiting(self):
        out = curation_status(at(15, 6))
        assert out["inRun"] is False
        assert out["stage"] == WAITING
        assert out["nextRunAt"] == "2026-01-16T00:00:00.000Z"
        assert out["nextInSeconds"] == 18 * 3600
        assert out["window"] == "00:00 UTC"

    def test_custom_boundary(self):
        out = curation_status(at(15, 6), 18, 30)
        assert out["lastRunAt"] == "2026-01-14T18:30:00.000Z"
        assert out["window"] == "18:30 UTC"
