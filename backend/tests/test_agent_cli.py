"""
Tests for the pos-agent command line.
"""

import json

from typer.testing import CliRunner

import pos_agent.cli as cli_module
from pos_agent.runner import CheckResult

runner = CliRunner()


def write_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "backendUrl": "http://pos.test",
                "agents": [{"label": "Screen 1", "username": "counter", "password": "x"}],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_missing_config_exits_with_error(tmp_path):
    result = runner.invoke(cli_module.app, ["check", "--config", str(tmp_path / "absent.json")])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_run_with_missing_config(tmp_path):
    result = runner.invoke(cli_module.app, ["run", "--config", str(tmp_path / "absent.json")])
    assert result.exit_code == 1


def test_check_prints_table(tmp_path, monkeypatch):
    async def fake_check(self):
        return [CheckResult("Screen 1", ok=True, theater_id=1, printer="usb auto-detect")]

    monkeypatch.setattr(cli_module.AgentRunner, "check", fake_check)

    result = runner.invoke(cli_module.app, ["check", "--config", str(write_config(tmp_path))])

    assert result.exit_code == 0
    assert "Screen 1" in result.output
    assert "usb auto-detect" in result.output


def test_check_fails_when_no_agent_is_ok(tmp_path, monkeypatch):
    async def fake_check(self):
        return [CheckResult("Screen 1", ok=False, error="Login failed with HTTP 401")]

    monkeypatch.setattr(cli_module.AgentRunner, "check", fake_check)

    result = runner.invoke(cli_module.app, ["check", "--config", str(write_config(tmp_path))])

    assert result.exit_code == 1
