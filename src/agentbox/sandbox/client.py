"""
Agentbox Sandbox RPC Client

Talks to a sandbox server over HTTP (POST {code} -> {stdout, stderr,
status}). Transport problems raise SandboxUnavailableError; an
execution that ran and failed comes back as a normal ExecutionResult.
"""

from __future__ import annotations

import httpx

from agentbox.exceptions import SandboxUnavailableError
from agentbox.logging import get_logger
from agentbox.sandbox.models import ExecutionResult

logger = get_logger("agentbox.sandbox.client")


class SandboxClient:
    """Async HTTP client for a remote sandbox.

    The request timeout is the execution budget plus a margin, so the
    server always gets the chance to report a TIMEOUT itself.
    """

    def __init__(
        self,
        url: str,
        *,
        time_budget: float = 10.0,
        timeout_margin: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._url = url
        self._time_budget = time_budget
        self._timeout_margin = timeout_margin
        self._client = client

    @property
    def url(self) -> str:
        return self._url

    async def execute(self, code: str, time_budget: float | None = None) -> ExecutionResult:
        """Send code to the sandbox server and return its result.

        Raises:
            SandboxUnavailableError: Connection failure, timeout, non-2xx
                status or a body that is not a result payload.
        """
        budget = self._time_budget if time_budget is None else time_budget
        timeout = budget + self._timeout_margin
        payload = {"code": code}
        if time_budget is not None:
            payload["time_budget"] = time_budget

        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=payload, timeout=timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self._url, json=payload, timeout=timeout)
        except httpx.HTTPError as e:
            logger.warning("Sandbox request failed: %s", e)
            raise SandboxUnavailableError(self._url, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            raise SandboxUnavailableError(
                self._url,
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
            return ExecutionResult.from_wire(body)
        except ValueError as e:
            raise SandboxUnavailableError(self._url, f"malformed response: {e}") from e
