"""Tests for the agentbox CLI.

Commands are driven through click's CliRunner; the version check also
runs the module in a subprocess to cover the entry point.
"""

import subprocess
import sys
from unittest.mock import patch

from click.testing import CliRunner

from agentbox import __version__
from agentbox.agent.orchestrator import AgentReply, StopReason
from agentbox.cli import app


class TestCLIBasic:
    def test_version(self):
        result = subprocess.run(
            [sys.executable, "-m", "agentbox.cli", "--version"],
            capture_output=True,
            text=True,
            timeout=30,
        )
        assert __version__ in result.stdout

    def test_help_lists_commands(self):
        result = CliRunner().invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("serve", "sandbox", "exec", "check", "chat"):
            assert command in result.output


class TestCheckCommand:
    def test_accepts_safe_code(self):
        result = CliRunner().invoke(app, ["check"], input="print(1)\n")
        assert result.exit_code == 0
        assert "Accepted" in result.output

    def test_rejects_dangerous_code(self):
        result = CliRunner().invoke(app, ["check"], input="import os\n")
        assert result.exit_code == 1
        assert "Rejected: Potentially dangerous code detected" in result.output


class TestExecCommand:
    def test_runs_code(self, tmp_path):
        script = tmp_path / "snippet.py"
        script.write_text("print(15 * 37)\n")
        result = CliRunner().invoke(app, ["exec", str(script)], env={"SANDBOX_MEMORY_LIMIT_MB": "0"})
        assert result.exit_code == 0
        assert "555" in result.output

    def test_json_output_and_failure_exit(self):
        result = CliRunner().invoke(
            app, ["exec", "--json-output"], input="eval('1')\n",
        )
        assert result.exit_code == 1
        assert '"status": "SAFETY_REJECTED"' in result.output


class TestChatCommand:
    def test_prints_reply(self):
        reply = AgentReply(thread_id="t-1", content="It's 90 degrees and sunny.",
                           stop_reason=StopReason.FINAL_ANSWER)
        with patch("agentbox.agent.orchestrator.AgentOrchestrator.from_settings") as build:
            build.return_value.run = _async_return(reply)
            result = CliRunner().invoke(app, ["chat", "Weather?", "--thread", "t-1"])

        assert result.exit_code == 0
        assert "It's 90 degrees and sunny." in result.output

    def test_timeout_exit_code(self):
        reply = AgentReply(thread_id="default", content="Request deadline exceeded",
                           stop_reason=StopReason.DEADLINE, timed_out=True)
        with patch("agentbox.agent.orchestrator.AgentOrchestrator.from_settings") as build:
            build.return_value.run = _async_return(reply)
            result = CliRunner().invoke(app, ["chat", "Weather?"])

        assert result.exit_code == 2


def _async_return(value):
    async def run(*args, **kwargs):
        return value
    return run
