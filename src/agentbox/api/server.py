"""
Agentbox Chat API Server

FastAPI app exposing the agent loop to a chat UI.

Endpoints:
    POST /generate            {prompt, thread_id?} → {content, thread_id, timed_out}
    GET  /threads/{thread_id} → stored history
    GET  /health              → {"status": "OK"}

Usage:
    uvicorn agentbox.api.server:app --port 3001
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from agentbox import __version__
from agentbox.agent.orchestrator import AgentOrchestrator
from agentbox.config import Settings
from agentbox.exceptions import AgentboxAPIError, RequestValidationError
from agentbox.logging import configure_logging, get_logger

logger = get_logger("agentbox.api")

DEFAULT_THREAD_ID = "default"


# ─── Request/Response Models ────────────────────────────────

class GenerateRequest(BaseModel):
    prompt: str | None = None
    thread_id: str | None = None


class GenerateResponse(BaseModel):
    content: str
    thread_id: str
    timed_out: bool = False


# ─── App Factory ────────────────────────────────────────────

def create_app(
    orchestrator: AgentOrchestrator | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the chat API.

    Without an orchestrator one is wired from settings at startup, so
    importing this module never needs provider credentials.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "orchestrator", None) is None:
            configure_logging(level=settings.log_level, json_output=settings.log_json)
            app.state.orchestrator = AgentOrchestrator.from_settings(settings)
            logger.info("Agent API ready", extra={"event_type": "STARTUP"})
        yield

    app = FastAPI(title="agentbox", version=__version__, lifespan=lifespan)
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(AgentboxAPIError)
    async def _api_error(request: Request, exc: AgentboxAPIError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(request: Request):
        body = await _json_body(request)
        try:
            req = GenerateRequest.model_validate(body)
        except ValueError as e:
            raise RequestValidationError("prompt", "Prompt is required") from e

        if not req.prompt or not req.prompt.strip():
            raise RequestValidationError("prompt")

        thread_id = req.thread_id or DEFAULT_THREAD_ID
        orch = _orchestrator(request)
        try:
            reply = await orch.run(thread_id, req.prompt)
        except RequestValidationError:
            raise
        except Exception as e:
            logger.exception("Error handling chat request", extra={"thread_id": thread_id})
            raise AgentboxAPIError("Internal server error", status_code=500) from e

        return GenerateResponse(
            content=reply.content or "No response generated",
            thread_id=thread_id,
            timed_out=reply.timed_out,
        )

    @app.get("/threads/{thread_id}")
    async def get_thread(thread_id: str, request: Request) -> dict:
        orch = _orchestrator(request)
        thread = await orch.store.snapshot(thread_id)
        return {
            "thread_id": thread.id,
            "messages": [m.model_dump(mode="json") for m in thread.messages],
        }

    @app.get("/health")
    async def health() -> dict:
        return {"status": "OK"}

    return app


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _orchestrator(request: Request) -> AgentOrchestrator:
    orch = getattr(request.app.state, "orchestrator", None)
    if orch is None:
        raise AgentboxAPIError("Agent not initialized", status_code=503)
    return orch


app = create_app()
