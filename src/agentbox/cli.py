"""
Agentbox CLI

Command-line interface for agentbox.

Commands:
    agentbox serve            Start the chat API server
    agentbox sandbox          Start the sandbox RPC server
    agentbox exec [FILE]      Run code through the local sandbox
    agentbox check [FILE]     Run only the safety filter
    agentbox chat "prompt"    One agent turn against the configured oracle

Usage:
    agentbox exec - <<< 'print(15 * 37)'
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from agentbox import __version__
from agentbox.config import Settings
from agentbox.logging import configure_logging
from agentbox.sandbox.executor import SandboxConfig, SandboxedExecutor
from agentbox.sandbox.models import ExecutionStatus
from agentbox.sandbox.safety import SafetyFilter


@click.group()
@click.version_option(version=__version__, prog_name="agentbox")
def app() -> None:
    """agentbox: tool-dispatching agent loop with a code sandbox"""


@app.command()
@click.option("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port (default: $PORT or 3001)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the chat API server."""
    settings = Settings.from_env()
    _run_uvicorn(
        "agentbox.api.server:app",
        host or settings.host,
        port or settings.port,
        reload,
        "Agent API",
    )


@app.command()
@click.option("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port (default: $SANDBOX_PORT or 3000)")
def sandbox(host: str | None, port: int | None) -> None:
    """Start the sandbox RPC server."""
    settings = Settings.from_env()
    _run_uvicorn(
        "agentbox.sandbox.server:app",
        host or settings.host,
        port or settings.sandbox_port,
        False,
        "Sandbox",
    )


@app.command(name="exec")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--timeout", type=float, default=None, help="Wall-clock budget in seconds")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def exec_code(source, timeout: float | None, json_output: bool) -> None:
    """Run code from SOURCE (a file, or - for stdin) in the sandbox."""
    settings = Settings.from_env()
    configure_logging(level="WARNING")
    executor = SandboxedExecutor(SandboxConfig(
        timeout_seconds=timeout or settings.sandbox_timeout_seconds,
        max_output_bytes=settings.sandbox_max_output_bytes,
        memory_limit_mb=settings.sandbox_memory_limit_mb,
    ))
    result = asyncio.run(executor.execute(source.read()))

    if json_output:
        click.echo(json.dumps(result.to_wire(), indent=2))
    else:
        if result.stdout:
            click.echo(result.stdout, nl=False)
        if result.stderr:
            click.echo(result.stderr, err=True)
        click.echo(f"[{result.status.value}]", err=True)

    if result.status != ExecutionStatus.OK:
        sys.exit(1)


@app.command()
@click.argument("source", type=click.File("r"), default="-")
def check(source) -> None:
    """Run only the safety filter over SOURCE."""
    configure_logging(level="ERROR")
    verdict = SafetyFilter().check(source.read())
    if verdict.accepted:
        click.echo("Accepted")
        return
    click.echo(f"Rejected: {verdict.reason} ({verdict.detail})")
    sys.exit(1)


@app.command()
@click.argument("prompt")
@click.option("--thread", "thread_id", default="default", help="Thread identifier")
def chat(prompt: str, thread_id: str) -> None:
    """Send one PROMPT through the agent loop and print the answer."""
    from agentbox.agent.orchestrator import AgentOrchestrator

    settings = Settings.from_env()
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    orchestrator = AgentOrchestrator.from_settings(settings)

    try:
        reply = asyncio.run(orchestrator.run(thread_id, prompt))
    except KeyboardInterrupt:
        click.echo("\n  Interrupted.")
        sys.exit(1)

    click.echo(reply.content)
    if reply.timed_out:
        sys.exit(2)


def _run_uvicorn(target: str, host: str, port: int, reload: bool, label: str) -> None:
    import uvicorn

    click.echo(f"  {label} listening on {host}:{port}")
    uvicorn.run(target, host=host, port=port, reload=reload)


def cli() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    cli()
