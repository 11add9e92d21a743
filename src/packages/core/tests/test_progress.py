"""Tests for progress rendering."""
from datetime import datetime, timedelta, timezone

from profile_batch_core.jobs import job_status_from_row
from profile_batch_core.jobs.progress import CALCULATING, format_eta, format_rate
from profile_batch_core.util import to_iso

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def job_row(**overrides):
    row = {
        "id": 7,
        "file_name": "profiles.xlsx",
        "status": "processing",
        "batch_size": 50,
        "total_items": 200,
        "processed": 50,
        "successful": 45,
        "failed": 5,
        "processing_rate": 10.0,
        "estimated_completion": to_iso(NOW + timedelta(minutes=15)),
        "error_message": None,
        "result_path": None,
        "started_at": to_iso(NOW - timedelta(minutes=5)),
        "completed_at": None,
        "created_at": to_iso(NOW - timedelta(minutes=6)),
    }
    row.update(overrides)
    return row


def test_format_eta_minutes():
    assert format_eta(to_iso(NOW + timedelta(minutes=15)), NOW) == "15m"


def test_format_eta_rounds_up_partial_minutes():
    assert format_eta(to_iso(NOW + timedelta(seconds=61)), NOW) == "2m"


def test_format_eta_in_the_past():
    assert format_eta(to_iso(NOW - timedelta(minutes=3)), NOW) == "0m"


def test_format_eta_unknown():
    assert format_eta(None, NOW) == CALCULATING


def test_format_rate():
    assert format_rate(12.34) == "12.3 profiles/min"
    assert format_rate(None) == CALCULATING


def test_status_from_row():
    status = job_status_from_row(job_row(), NOW)

    assert status.job_id == 7
    assert status.status == "processing"
    assert status.progress.percentage == 25
    assert status.progress.remaining == 150
    assert (status.progress.successful, status.progress.failed) == (45, 5)
    assert status.progress.eta == "15m"
    assert status.progress.rate == "10.0 profiles/min"
    assert status.result_available is False


def test_status_before_first_item():
    status = job_status_from_row(
        job_row(status="pending", total_items=0, processed=0, successful=0, failed=0,
                processing_rate=None, estimated_completion=None, started_at=None),
        NOW,
    )

    assert status.progress.percentage == 0
    assert status.progress.remaining == 0
    assert status.progress.eta == CALCULATING
    assert status.progress.rate == CALCULATING


def test_status_of_completed_job():
    status = job_status_from_row(
        job_row(status="completed", processed=200, successful=190, failed=10,
                estimated_completion=None, result_path="/data/results/job_7_results.xlsx"),
        NOW,
    )

    assert status.progress.percentage == 100
    assert status.progress.remaining == 0
    assert status.result_available is True
