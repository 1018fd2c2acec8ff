"""
Agentbox Sandbox Server

FastAPI app exposing the execution sandbox over HTTP. Every request
gets exactly one JSON response, including on unexpected failures.

Usage:
    uvicorn agentbox.sandbox.server:app --port 3000
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from agentbox.config import Settings
from agentbox.logging import get_logger
from agentbox.sandbox.executor import SandboxConfig, SandboxedExecutor
from agentbox.sandbox.models import ExecutionRequest

logger = get_logger("agentbox.sandbox.server")


def create_sandbox_app(sandbox: SandboxedExecutor | None = None) -> FastAPI:
    """Build the sandbox RPC app around an executor."""
    if sandbox is None:
        settings = Settings.from_env()
        sandbox = SandboxedExecutor(SandboxConfig(
            timeout_seconds=settings.sandbox_timeout_seconds,
            max_output_bytes=settings.sandbox_max_output_bytes,
            memory_limit_mb=settings.sandbox_memory_limit_mb,
            max_concurrency=settings.sandbox_max_concurrency,
        ))

    app = FastAPI(title="agentbox sandbox", version="0.1.0")
    app.state.sandbox = sandbox

    @app.post("/")
    async def execute(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return JSONResponse({"error": "Code is required"}, status_code=400)

        try:
            req = ExecutionRequest.model_validate(body)
        except ValueError:
            return JSONResponse({"error": "Invalid request"}, status_code=400)
        if not req.code:
            return JSONResponse({"error": "Code is required"}, status_code=400)

        try:
            result = await app.state.sandbox.execute(req.code, req.time_budget)
        except Exception as e:
            logger.exception("Unhandled sandbox error")
            return JSONResponse(
                {"stdout": "", "stderr": f"Execution error: {e}"},
                status_code=500,
            )
        return JSONResponse(result.to_wire())

    @app.get("/health")
    async def health() -> dict:
        return {"status": "OK"}

    return app


app = create_sandbox_app()
