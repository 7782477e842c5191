"""Tests for src/errors.py — exception hierarchy and DeployReport."""

from datetime import datetime, timedelta

from hexo_buddy.errors import (
    CommandError,
    ConfigError,
    ConfigValueError,
    DeployReport,
    HexoBuddyError,
    WorkspaceNotFoundError,
    load_report,
    save_report,
)
from hexo_buddy.models import DeployState


class TestHierarchy:
    def test_workspace_not_found_is_command_error(self):
        err = WorkspaceNotFoundError("workspace not found: None")
        assert isinstance(err, CommandError)
        assert err.detail == "workspace not found: None"

    def test_command_error_keeps_returncode(self):
        err = CommandError("disk full", returncode=1)
        assert err.returncode == 1
        assert str(err) == "disk full"

    def test_config_value_error_is_value_error(self):
        err = ConfigValueError("bad")
        assert isinstance(err, ValueError)
        assert isinstance(err, ConfigError)
        assert isinstance(err, HexoBuddyError)


class TestDeployReport:
    def test_new_report_is_idle(self):
        report = DeployReport()
        assert report.state == DeployState.IDLE
        assert report.success is False
        assert report.finished_at is None

    def test_mark_stage_complete(self):
        report = DeployReport()
        report.mark_stage_complete("generating")
        report.mark_stage_complete("generating")  # duplicate ignored
        assert report.stages_completed == ["generating"]

    def test_fail(self):
        report = DeployReport()
        report.fail("generating", "disk full")
        assert report.state == DeployState.FAILED
        assert report.failed_stage == "generating"
        assert report.error == "disk full"
        assert report.success is False

    def test_summary_text_success(self):
        report = DeployReport(state=DeployState.SUCCEEDED)
        report.mark_stage_complete("generating")
        report.mark_stage_complete("publishing")
        report.finish()
        text = report.summary_text()
        assert "succeeded" in text
        assert "generating, publishing" in text

    def test_summary_text_failure(self):
        report = DeployReport()
        report.fail("publishing", "permission denied")
        text = report.summary_text()
        assert "failed" in text
        assert "Error (publishing): permission denied" in text

    def test_summary_text_minutes(self):
        start = datetime(2026, 1, 1, 12, 0, 0)
        report = DeployReport(started_at=start, finished_at=start + timedelta(minutes=3))
        assert "in 3.0m" in report.summary_text()


class TestSaveLoadReport:
    def test_save_and_load(self, tmp_path):
        report = DeployReport()
        report.mark_stage_complete("generating")
        report.fail("publishing", "rejected")
        report.finish()

        save_report(report, tmp_path)
        loaded = load_report(tmp_path)

        assert loaded is not None
        assert loaded.state == DeployState.FAILED
        assert loaded.stages_completed == ["generating"]
        assert loaded.error == "rejected"

    def test_load_nonexistent(self, tmp_path):
        assert load_report(tmp_path) is None

    def test_load_corrupt(self, tmp_path):
        (tmp_path / ".hexo-buddy-last-deploy.json").write_text("not json")
        assert load_report(tmp_path) is None
