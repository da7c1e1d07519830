"""Tests for the CLI module."""

import json
from unittest.mock import patch

import pytest

from dashboard_export.cli import (
    cmd_activity,
    cmd_export,
    cmd_sessions,
    cmd_status,
    format_output,
)
from dashboard_export.models import StatusFacts


class TestFormatOutput:
    """Tests for output formatting."""

    def test_json_output(self):
        data = {"key": "value", "count": 42}
        result = format_output(data, json_output=True)
        assert '"key": "value"' in result
        assert '"count": 42' in result

    def test_export_format(self):
        data = {
            "output_path": "/tmp/data.json",
            "gateway_status": "running",
            "session_count": 2,
            "activity_count": 7,
        }
        result = format_output(data)
        assert "Dashboard data exported to /tmp/data.json" in result
        assert "Sessions: 2" in result

    def test_sessions_format(self):
        data = {
            "hours": 24,
            "sessions": [
                {"key": "agent:main:main", "model": "m", "totalTokens": 15, "lastActivity": None}
            ],
        }
        result = format_output(data)
        assert "Sessions active in the last 24 hours: 1" in result
        assert "agent:main:main - m (15 tokens, last never)" in result

    def test_status_format(self):
        result = format_output(StatusFacts(auth_providers=["anthropic", "openai"]).to_dict())
        assert "Gateway: stopped" in result
        assert "Auth providers: anthropic, openai" in result

    def test_unknown_shape_falls_back_to_json(self):
        assert json.loads(format_output({"unexpected": 1})) == {"unexpected": 1}


class Args:
    """Namespace stand-in for argparse results."""

    def __init__(self, **kwargs):
        self.json = False
        self.sessions_dir = None
        self.hours = 24
        self.__dict__.update(kwargs)


class TestCliCommands:
    """Tests for CLI command functions."""

    def test_cmd_export(self, populated_sessions_dir, tmp_path, capsys):
        output = tmp_path / "data.json"
        cmd_export(Args(sessions_dir=str(populated_sessions_dir), output=str(output), no_status=True))

        captured = capsys.readouterr()
        assert f"Dashboard data exported to {output}" in captured.out
        document = json.loads(output.read_text())
        assert set(document) == {"timestamp", "gateway", "sessions", "activityLog"}
        assert len(document["sessions"]) == 1

    def test_cmd_export_runs_probe(self, sessions_dir, tmp_path, capsys):
        facts = StatusFacts(gateway_running=True)
        with patch("dashboard_export.cli.StatusProbe") as probe_cls:
            probe_cls.return_value.collect.return_value = facts
            cmd_export(
                Args(sessions_dir=str(sessions_dir), output=str(tmp_path / "d.json"), no_status=False)
            )
        assert "Gateway: running" in capsys.readouterr().out

    def test_cmd_export_write_failure_exits(self, sessions_dir, tmp_path, capsys):
        output = tmp_path / "missing" / "data.json"
        with pytest.raises(SystemExit) as exc_info:
            cmd_export(Args(sessions_dir=str(sessions_dir), output=str(output), no_status=True))

        assert exc_info.value.code == 1
        assert "Could not write snapshot" in capsys.readouterr().err

    def test_cmd_sessions(self, populated_sessions_dir, capsys):
        cmd_sessions(Args(sessions_dir=str(populated_sessions_dir)))
        captured = capsys.readouterr()
        assert "Sessions active in the last 24 hours: 1" in captured.out
        assert "agent:main:main" in captured.out

    def test_cmd_activity_filtered(self, populated_sessions_dir, capsys):
        cmd_activity(
            Args(sessions_dir=str(populated_sessions_dir), json=True, limit=50, type="tool_call")
        )
        data = json.loads(capsys.readouterr().out)
        assert [e["summary"] for e in data["activityLog"]] == ["exec"]

    def test_cmd_activity_limit(self, populated_sessions_dir, capsys):
        cmd_activity(Args(sessions_dir=str(populated_sessions_dir), json=True, limit=1, type=None))
        data = json.loads(capsys.readouterr().out)
        assert len(data["activityLog"]) == 1
        assert data["activityLog"][0]["eventType"] == "tool_call"

    @pytest.mark.parametrize("limit", [0, -3])
    def test_cmd_activity_zero_or_negative_limit_is_empty(
        self, populated_sessions_dir, capsys, limit
    ):
        cmd_activity(
            Args(sessions_dir=str(populated_sessions_dir), json=True, limit=limit, type=None)
        )
        data = json.loads(capsys.readouterr().out)
        assert data["activityLog"] == []

    def test_cmd_activity_redacts(self, populated_sessions_dir, capsys):
        cmd_activity(Args(sessions_dir=str(populated_sessions_dir), limit=50, type=None))
        out = capsys.readouterr().out
        assert "[GitHub token redacted]" in out
        assert "ghp_" not in out

    def test_cmd_status(self, capsys):
        with patch("dashboard_export.cli.StatusProbe") as probe_cls:
            probe_cls.return_value.collect.return_value = StatusFacts(primary_model="m1")
            cmd_status(Args(json=True))
        data = json.loads(capsys.readouterr().out)
        assert data["model"]["primary"] == "m1"
        assert data["status"] == "stopped"
