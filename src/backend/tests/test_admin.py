"""Tests for the admin dashboard period buckets and job-site ranking."""

from datetime import date, datetime
from uuid import uuid4

from curriculopro.services.admin_service import build_buckets, day_keys, month_keys, rank_job_sites


def test_day_keys_include_today():
    keys = day_keys(3, date(2026, 3, 2))
    assert keys == ["2026-02-27", "2026-02-28", "2026-03-01", "2026-03-02"]


def test_month_keys_cross_year():
    assert month_keys(2, date(2026, 1, 15)) == ["2025-11", "2025-12", "2026-01"]


def test_buckets_count_events():
    keys = ["2026-03-01", "2026-03-02"]
    buckets = build_buckets(
        keys,
        lambda ts: ts.date().isoformat(),
        registrations=[datetime(2026, 3, 1, 9), datetime(2026, 3, 2, 10), datetime(2026, 3, 2, 11)],
        analyses=[datetime(2026, 3, 2, 12)],
        sales=[(datetime(2026, 3, 1, 8), 9.9), (datetime(2026, 3, 1, 20), 24.9)],
    )
    assert [b.period for b in buckets] == keys
    assert [b.registrations for b in buckets] == [1, 2]
    assert [b.analyses for b in buckets] == [0, 1]
    assert buckets[0].revenue == 34.8
    assert buckets[1].revenue == 0.0


def test_events_outside_range_ignored():
    buckets = build_buckets(
        ["2026-03"],
        lambda ts: ts.strftime("%Y-%m"),
        registrations=[datetime(2026, 2, 28)],
        analyses=[],
        sales=[(datetime(2025, 3, 1), 100.0)],
    )
    assert buckets[0].registrations == 0
    assert buckets[0].revenue == 0.0


def test_job_site_ranking_orders_by_analyses():
    catho, indeed = uuid4(), uuid4()
    uses = [
        (indeed, "Indeed", datetime(2026, 3, 2)),
        (catho, "Catho", datetime(2026, 3, 5)),
        (catho, "Catho", datetime(2026, 3, 1)),
        (catho, "Catho", datetime(2026, 3, 9)),
    ]
    ranking = rank_job_sites(uses)
    assert [(r.site_name, r.analyses) for r in ranking] == [("Catho", 3), ("Indeed", 1)]
    assert ranking[0].first_used == datetime(2026, 3, 1)
    assert ranking[0].last_used == datetime(2026, 3, 9)


def test_job_site_ranking_limit():
    uses = [(uuid4(), f"Site {i}", datetime(2026, 3, 1)) for i in range(5)]
    assert len(rank_job_sites(uses, limit=2)) == 2
