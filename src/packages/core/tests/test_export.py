"""Tests for xlsx result export."""
import io

import pandas as pd
import pytest

from conftest import OWNER_ID, make_record, profile_url
from profile_batch_core.export import COLUMNS, build_results_frame, export_results, save_job_results
from profile_batch_core.extract import ProfileRecord
from profile_batch_core.jobs import create_job, list_items_by_job
from profile_batch_core.jobs import repo


def read_xlsx(data: bytes) -> pd.DataFrame:
    return pd.read_excel(io.BytesIO(data), engine="openpyxl", keep_default_na=False)


@pytest.fixture
def finished_job():
    """A job with one success, one failure and one item never attempted."""
    job_id = create_job(OWNER_ID, "profiles.csv", "/tmp/profiles.csv")["id"]
    urls = [profile_url(1), profile_url(2), profile_url(3)]
    repo.create_items(job_id, urls)
    ok, bad, _ = list_items_by_job(job_id)

    record = ProfileRecord(
        **{
            **make_record(urls[0]).model_dump(),
            "positions": [{"title": "Engineer", "company": "Analytical Engines"}],
            "education": [{"school": "Home", "degree": "Self-taught", "field_of_study": "Mathematics"}],
            "current_company": "Analytical Engines",
        }
    )
    repo.update_item(ok["id"], "success", payload=record.model_dump())
    repo.update_item(bad["id"], "failed", error_kind="not_found", error_message="Profile API error 404")
    return job_id


def test_results_frame_columns_and_rows(finished_job):
    df = build_results_frame(list_items_by_job(finished_job))

    assert list(df.columns) == COLUMNS
    assert list(df["status"]) == ["success", "failed", "pending"]

    row = df.iloc[0]
    assert row["first_name"] == "Ada"
    assert row["positions"] == "Engineer at Analytical Engines"
    assert row["education"] == "Self-taught, Mathematics, Home"
    assert row["skills"] == "python; sql"
    assert row["error_type"] == ""

    assert df.iloc[1]["error_type"] == "not_found"
    assert df.iloc[1]["first_name"] == ""


def test_empty_frame_keeps_columns():
    assert list(build_results_frame([]).columns) == COLUMNS


def test_save_job_results(finished_job, tmp_path):
    path = save_job_results(finished_job, list_items_by_job(finished_job), str(tmp_path / "out"))

    assert path.endswith(f"job_{finished_job}_results.xlsx")
    df = pd.read_excel(path, engine="openpyxl", sheet_name="Profiles", keep_default_na=False)
    assert len(df) == 3
    assert df.loc[0, "url"] == profile_url(1)


def test_save_job_results_uses_results_dir_env(finished_job, db):
    path = save_job_results(finished_job, [])
    assert path.startswith(str(db.parent / "results"))


@pytest.mark.parametrize(
    "kind,expected",
    [
        ("successful", [profile_url(1)]),
        ("failed", [profile_url(2)]),
        ("all", [profile_url(1), profile_url(2)]),
    ],
)
def test_export_results_by_kind(finished_job, kind, expected):
    df = read_xlsx(export_results(OWNER_ID, kind))
    assert list(df["url"]) == expected


def test_export_results_only_includes_owner_items(finished_job):
    assert read_xlsx(export_results(OWNER_ID + 1, "all")).empty


def test_export_results_unknown_kind():
    with pytest.raises(ValueError, match="Unknown export type"):
        export_results(OWNER_ID, "pending")
