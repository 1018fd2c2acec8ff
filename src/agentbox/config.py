"""
Agentbox Configuration

Environment-style configuration for the chat API, the orchestrator and
the sandbox. Values come from the process environment, optionally
seeded from a .env file via python-dotenv.

Usage:
    from agentbox.config import Settings

    settings = Settings.from_env()
    settings.sandbox_url          # "http://localhost:3000"
    settings.uses_local_sandbox   # False
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from agentbox.exceptions import ConfigurationError

DEFAULT_SANDBOX_URL = "http://localhost:3000"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class Settings(BaseModel):
    """Runtime settings for every agentbox component."""

    # Sandbox
    sandbox_url: str | None = DEFAULT_SANDBOX_URL
    sandbox_timeout_seconds: float = Field(default=10.0, gt=0, le=300.0)
    sandbox_max_output_bytes: int = Field(default=65536, ge=1024, le=1048576)
    sandbox_memory_limit_mb: int | None = Field(default=256, ge=32)
    sandbox_max_concurrency: int = Field(default=4, ge=1, le=64)

    # Orchestrator
    max_iterations: int = Field(default=10, ge=1, le=100)
    deadline_seconds: float | None = Field(default=120.0, gt=0)

    # Oracle
    oracle_provider: str = "claude"
    oracle_model: str | None = None
    temperature: float = Field(default=0.1, ge=0.0, le=1.0)

    # Servers
    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)
    sandbox_port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def uses_local_sandbox(self) -> bool:
        """True when code should run in-process instead of over HTTP."""
        return not self.sandbox_url or self.sandbox_url.lower() == "local"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv: bool = True,
    ) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (used by tests).
            dotenv: Load a .env file into os.environ first.

        Raises:
            ConfigurationError: If a variable cannot be parsed.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        values: dict = {}

        url = environ.get("SANDBOX_URL", environ.get("EXECUTOR_URL"))
        if url is not None:
            values["sandbox_url"] = url.strip() or None

        _read(environ, values, "SANDBOX_TIMEOUT_SECONDS", "sandbox_timeout_seconds", float)
        _read(environ, values, "SANDBOX_MAX_OUTPUT_BYTES", "sandbox_max_output_bytes", int)
        _read(environ, values, "SANDBOX_MAX_CONCURRENCY", "sandbox_max_concurrency", int)
        _read(environ, values, "AGENT_MAX_ITERATIONS", "max_iterations", int)
        _read(environ, values, "ORACLE_TEMPERATURE", "temperature", float)
        _read(environ, values, "PORT", "port", int)
        _read(environ, values, "SANDBOX_PORT", "sandbox_port", int)

        memory = environ.get("SANDBOX_MEMORY_LIMIT_MB")
        if memory is not None:
            parsed = _parse("SANDBOX_MEMORY_LIMIT_MB", memory, int)
            values["sandbox_memory_limit_mb"] = parsed or None

        deadline = environ.get("AGENT_DEADLINE_SECONDS")
        if deadline is not None:
            parsed = _parse("AGENT_DEADLINE_SECONDS", deadline, float)
            values["deadline_seconds"] = parsed or None

        if "ORACLE_PROVIDER" in environ:
            values["oracle_provider"] = environ["ORACLE_PROVIDER"]
        if environ.get("ORACLE_MODEL"):
            values["oracle_model"] = environ["ORACLE_MODEL"]
        if "HOST" in environ:
            values["host"] = environ["HOST"]
        if "CORS_ORIGINS" in environ:
            values["cors_origins"] = [
                o.strip() for o in environ["CORS_ORIGINS"].split(",") if o.strip()
            ]
        if "LOG_LEVEL" in environ:
            values["log_level"] = environ["LOG_LEVEL"].upper()
        if "LOG_JSON" in environ:
            values["log_json"] = _parse_bool("LOG_JSON", environ["LOG_JSON"])

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigurationError("environment", str(values), str(e)) from e


def _read(environ: Mapping[str, str], values: dict, variable: str, field: str, cast) -> None:
    raw = environ.get(variable)
    if raw is not None:
        values[field] = _parse(variable, raw, cast)


def _parse(variable: str, raw: str, cast):
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(variable, raw, f"expected {cast.__name__}") from e


def _parse_bool(variable: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(variable, raw, "expected a boolean")
