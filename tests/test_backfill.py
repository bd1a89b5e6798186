"""Tests for the job posting backfill."""
import pandas as pd
import pytest
from cityzip.core.backfill import BackfillJob, BackfillStats
from cityzip.core.resolver import Resolver


@pytest.fixture
def jobs():
    """Job postings with a mix of resolvable and unresolvable locations."""
    return pd.DataFrame([
        {"job_id": 1, "location": "2100 København Ø", "company_zip": None, "zipcode": None, "city": None},
        {"job_id": 2, "location": "Aarhus, Danmark", "company_zip": "8200", "zipcode": None, "city": None},
        {"job_id": 3, "location": "Stockholm, Sverige", "company_zip": None, "zipcode": None, "city": None},
        {"job_id": 4, "location": "Atlantis", "company_zip": None, "zipcode": None, "city": None},
        {"job_id": 5, "location": "Roskilde", "company_zip": None, "zipcode": "4000", "city": "Roskilde"},
        {"job_id": 6, "location": "KBH", "company_zip": None, "zipcode": None, "city": None},
        {"job_id": 7, "location": None, "company_zip": None, "zipcode": None, "city": None},
    ])


@pytest.fixture
def job(snapshot):
    return BackfillJob(Resolver(snapshot), chunk_size=2, workers=3)


def test_select_rows(job, jobs):
    """Only rows missing zipcode or city are selected."""
    selected = job.select_rows(jobs)
    assert list(selected["job_id"]) == [1, 2, 3, 4, 6, 7]

    assert list(job.select_rows(jobs, limit=2)["job_id"]) == [1, 2]
    assert list(job.select_rows(jobs, only_city="aarhus")["job_id"]) == [2]


def test_select_rows_without_target_columns(job):
    """Missing zipcode and city columns mean every row needs work."""
    df = pd.DataFrame([{"job_id": 1, "location": "Aalborg"}])
    assert len(job.select_rows(df)) == 1


def test_run(job, jobs):
    """Test a full backfill run."""
    report = job.run(jobs)
    stats = report.stats

    assert stats.processed == 6
    assert stats.updated == 3
    assert stats.missing_city == 2
    assert stats.missing_zip == 1
    assert stats.used_context == 1
    assert stats.used_alias == 1
    assert stats.skipped == 3
    assert stats.success_rate == 50.0

    assert [u["job_id"] for u in report.updates] == [1, 2, 6]

    frame = report.frame.set_index("job_id")
    assert frame.loc[1, "zipcode"] == "1150"
    assert frame.loc[1, "city"] == "København"
    assert frame.loc[2, "zipcode"] == "8200"
    assert frame.loc[6, "zipcode"] == "1150"
    assert frame.loc[5, "zipcode"] == "4000"
    assert pd.isna(frame.loc[4, "zipcode"])

    # The input frame is never modified
    assert jobs["zipcode"].isna().sum() == 6


def test_dry_run(job, jobs):
    """A dry run reports updates without applying them."""
    report = job.run(jobs, dry_run=True)
    assert report.stats.updated == 3
    assert len(report.updates) == 3
    assert report.frame["zipcode"].isna().sum() == 6


def test_results_independent_of_workers(snapshot, jobs):
    """Chunking and worker count do not change the outcome."""
    serial = BackfillJob(Resolver(snapshot), chunk_size=100, workers=1).run(jobs)
    parallel = BackfillJob(Resolver(snapshot), chunk_size=1, workers=4).run(jobs)

    assert serial.stats == parallel.stats
    assert serial.updates == parallel.updates


def test_debug_suggestions(snapshot, caplog):
    """Debug mode logs suggestions for unresolved cities."""
    df = pd.DataFrame([{"job_id": 9, "location": "Roskllde", "zipcode": None, "city": None}])
    job = BackfillJob(Resolver(snapshot), debug=True)

    with caplog.at_level("WARNING", logger="cityzip"):
        report = job.run(df)

    assert report.stats.missing_zip == 1
    assert any("roskilde" in r.getMessage() for r in caplog.records)


def test_stats_merge():
    """Test merging chunk counters."""
    merged = BackfillStats(processed=2, updated=1).merge(BackfillStats(processed=3, updated=3, missing_zip=1))
    assert merged.processed == 5
    assert merged.updated == 4
    assert merged.missing_zip == 1
    assert BackfillStats().success_rate == 0.0
