"""Test extraction logging: daily JSONL files with retention cleanup."""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from sourcetables.querylog import (
    SQL_PREVIEW_CHARS,
    _project_slug,
    cleanup_old_logs,
    log_extraction,
)


def test_project_slug_encodes_cwd():
    with patch("sourcetables.querylog.os.getcwd", return_value="/home/etl/jobs/daily"):
        slug = _project_slug()
    assert slug == "home-etl-jobs-daily"


def test_log_extraction_creates_file(tmp_path):
    """log_extraction creates a daily JSONL file and appends an entry."""
    with patch("sourcetables.querylog._LOG_ROOT", tmp_path), patch(
        "sourcetables.querylog.os.getcwd", return_value="/test/project"
    ):
        log_extraction(sql="SELECT * FROM t", source="text", tables=["t"], statements=1)

    project_dir = tmp_path / "test-project"
    log_files = list(project_dir.glob("*.jsonl"))
    assert len(log_files) == 1

    today = datetime.now(UTC).strftime("%Y-%m-%d")
    assert log_files[0].name == f"{today}.jsonl"

    entry = json.loads(log_files[0].read_text().strip())
    assert entry["sql"] == "SELECT * FROM t"
    assert entry["source"] == "text"
    assert entry["tables"] == ["t"]
    assert entry["statements"] == 1
    assert entry["error"] is False
    assert entry["diagnostics"] == []
    assert "ts" in entry


def test_log_extraction_appends(tmp_path):
    with patch("sourcetables.querylog._LOG_ROOT", tmp_path), patch(
        "sourcetables.querylog.os.getcwd", return_value="/test/project"
    ):
        log_extraction(sql="SELECT 1", source="text")
        log_extraction(sql="SELECT 2", source="file", error=True)

    lines = next((tmp_path / "test-project").glob("*.jsonl")).read_text().strip().split("\n")
    assert len(lines) == 2
    assert json.loads(lines[0])["sql"] == "SELECT 1"
    assert json.loads(lines[1])["error"] is True


def test_long_sql_is_truncated(tmp_path):
    sql = "SELECT * FROM t WHERE " + "x = 1 AND " * 1000
    with patch("sourcetables.querylog._LOG_ROOT", tmp_path), patch(
        "sourcetables.querylog.os.getcwd", return_value="/test/project"
    ):
        log_extraction(sql=sql, source="text", engine="scan", duration_ms=1.5)

    entry = json.loads(next((tmp_path / "test-project").glob("*.jsonl")).read_text())
    assert len(entry["sql"]) == SQL_PREVIEW_CHARS
    assert entry["sql_length"] == len(sql)
    assert entry["engine"] == "scan"
    assert entry["duration_ms"] == 1.5


def test_cleanup_deletes_old_files(tmp_path):
    with patch("sourcetables.querylog._LOG_ROOT", tmp_path), patch(
        "sourcetables.querylog.os.getcwd", return_value="/test/project"
    ):
        project_dir = tmp_path / "test-project"
        project_dir.mkdir(parents=True)

        old_date = (datetime.now(UTC) - timedelta(days=45)).strftime("%Y-%m-%d")
        recent_date = (datetime.now(UTC) - timedelta(days=5)).strftime("%Y-%m-%d")
        (project_dir / f"{old_date}.jsonl").write_text("{}\n")
        (project_dir / f"{recent_date}.jsonl").write_text("{}\n")
        (project_dir / "notes.jsonl").write_text("{}\n")

        deleted = cleanup_old_logs(retention_days=30)

    assert deleted == 1
    assert not (project_dir / f"{old_date}.jsonl").exists()
    assert (project_dir / f"{recent_date}.jsonl").exists()
    assert (project_dir / "notes.jsonl").exists()


def test_cleanup_missing_dir(tmp_path):
    with patch("sourcetables.querylog._LOG_ROOT", tmp_path / "nope"):
        assert cleanup_old_logs() == 0
