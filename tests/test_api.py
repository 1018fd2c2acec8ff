"""Tests for the chat API server.

Uses httpx + ASGITransport against apps built with an injected
orchestrator, so no provider credentials are needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from agentbox.agent.orchestrator import AgentOrchestrator, AgentReply, StopReason
from agentbox.api.server import create_app
from agentbox.config import Settings
from agentbox.conversation.store import ConversationStore
from agentbox.oracle.base import FinalAnswer

from conftest import ScriptedOracle, tool_request


def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _app(decisions, registry):
    agent = AgentOrchestrator(ScriptedOracle(decisions), registry)
    return create_app(orchestrator=agent, settings=Settings()), agent


def _mock_orchestrator(reply=None, side_effect=None):
    orch = MagicMock()
    orch.run = AsyncMock(return_value=reply, side_effect=side_effect)
    orch.store = ConversationStore()
    return orch


# ─── Generate Endpoint ──────────────────────────────────────


class TestGenerate:
    async def test_generate_answer(self, registry):
        app, _ = _app([
            tool_request("weather", query="San Francisco"),
            lambda history: FinalAnswer(text=history[-1].content),
        ], registry)

        async with _client(app) as client:
            response = await client.post(
                "/generate", json={"prompt": "Weather in SF?", "thread_id": "t-42"},
            )

        assert response.status_code == 200
        assert response.json() == {
            "content": "It's 60 degrees and foggy.",
            "thread_id": "t-42",
            "timed_out": False,
        }

    async def test_default_thread(self, registry):
        app, agent = _app([FinalAnswer(text="Hello")], registry)
        async with _client(app) as client:
            response = await client.post("/generate", json={"prompt": "Hi"})

        assert response.json()["thread_id"] == "default"
        assert "default" in agent.store

    @pytest.mark.parametrize(
        "body",
        [{}, {"prompt": ""}, {"prompt": "   "}, {"prompt": 123}, {"thread_id": "t-1"}],
    )
    async def test_missing_prompt_is_400(self, body, registry):
        app, agent = _app([], registry)
        async with _client(app) as client:
            response = await client.post("/generate", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}
        assert len(agent.store) == 0

    async def test_non_json_body_is_400(self, registry):
        app, _ = _app([], registry)
        async with _client(app) as client:
            response = await client.post("/generate", content=b"hello")
        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}

    async def test_internal_failure_is_500(self):
        orch = _mock_orchestrator(side_effect=RuntimeError("store exploded"))
        app = create_app(orchestrator=orch, settings=Settings())
        async with _client(app) as client:
            response = await client.post("/generate", json={"prompt": "Hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    async def test_empty_answer_placeholder(self):
        reply = AgentReply(thread_id="default", content="", stop_reason=StopReason.FINAL_ANSWER)
        app = create_app(orchestrator=_mock_orchestrator(reply), settings=Settings())
        async with _client(app) as client:
            response = await client.post("/generate", json={"prompt": "Hi"})
        assert response.json()["content"] == "No response generated"

    async def test_timed_out_flag(self):
        reply = AgentReply(
            thread_id="default",
            content="Request deadline of 1s exceeded",
            stop_reason=StopReason.DEADLINE,
            timed_out=True,
        )
        app = create_app(orchestrator=_mock_orchestrator(reply), settings=Settings())
        async with _client(app) as client:
            response = await client.post("/generate", json={"prompt": "Hi"})
        assert response.status_code == 200
        assert response.json()["timed_out"] is True

    async def test_not_initialized_is_503(self):
        app = create_app(settings=Settings())
        async with _client(app) as client:
            response = await client.post("/generate", json={"prompt": "Hi"})
        assert response.status_code == 503
        assert response.json() == {"error": "Agent not initialized"}


# ─── Threads & Health ───────────────────────────────────────


class TestThreadsEndpoint:
    async def test_history_after_turn(self, registry):
        app, _ = _app([FinalAnswer(text="Hello")], registry)
        async with _client(app) as client:
            await client.post("/generate", json={"prompt": "Hi", "thread_id": "t-1"})
            response = await client.get("/threads/t-1")

        data = response.json()
        assert data["thread_id"] == "t-1"
        assert [(m["role"], m["content"]) for m in data["messages"]] == [
            ("user", "Hi"),
            ("assistant", "Hello"),
        ]

    async def test_unknown_thread_is_empty(self, registry):
        app, _ = _app([], registry)
        async with _client(app) as client:
            response = await client.get("/threads/nobody")
        assert response.json() == {"thread_id": "nobody", "messages": []}


class TestHealth:
    async def test_health(self, registry):
        app, _ = _app([], registry)
        async with _client(app) as client:
            response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "OK"}
