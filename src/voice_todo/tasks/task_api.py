# src/voice_todo/tasks/task_api.py

"""
Async client for the remote task REST API.

    GET    /api/tasks[?query=&priority=&scheduled=]
    POST   /api/tasks
    PATCH  /api/tasks/{id}
    DELETE /api/tasks/{id}

Every request goes through with_retry(). httpx failures are converted into
TransportError with a structured ErrorKind here, at the boundary, so nothing
downstream has to look at exception messages.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..core.retry import RetryPolicy, with_retry
from ..errors import ErrorKind, HttpStatusError, TransportError
from .task_models import Task

logger = logging.getLogger(__name__)

API_RETRY_POLICY = RetryPolicy(max_retries=2, initial_delay_ms=500, timeout_ms=8000)


class TaskApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        policy: RetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.policy = policy or API_RETRY_POLICY
        # Per-attempt timeouts are enforced by with_retry; the client itself never gives up first.
        self._client = client or httpx.AsyncClient(timeout=None)
        logger.info("TaskApiClient initialized with API base URL: %s", self.base_url)

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- low-level ----

    async def _send_once(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                content=json.dumps(payload) if payload is not None else None,
                headers=self.headers,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request timeout: {method} {url}", kind=ErrorKind.TIMEOUT) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Network error: {method} {url}: {exc}", kind=ErrorKind.NETWORK) from exc

        if not response.is_success:
            body = response.text
            logger.warning("HTTP %s from %s %s: %s", response.status_code, method, url, body[:200])
            raise HttpStatusError(response.status_code, body)

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {method} {url}") from exc

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        return await with_retry(
            lambda: self._send_once(method, url, params=params, payload=payload),
            self.policy,
        )

    # ---- API ----

    async def list_tasks(
        self,
        *,
        query: str | None = None,
        priority: int | None = None,
        scheduled: str | None = None,
    ) -> list[Task]:
        params: dict[str, str] = {}
        if query:
            params["query"] = query
        if priority is not None:
            params["priority"] = str(priority)
        if scheduled:
            params["scheduled"] = scheduled

        data = await self._request("GET", "/api/tasks", params=params or None)
        if not isinstance(data, list):
            raise TransportError("Unexpected task list payload")

        tasks = [Task.from_api(item) for item in data if isinstance(item, dict) and "id" in item]
        logger.debug("Fetched %d tasks (filters=%s)", len(tasks), params)
        return tasks

    async def create_task(self, payload: dict[str, Any]) -> Task:
        data = await self._request("POST", "/api/tasks", payload=payload)
        return Task.from_api(data)

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        data = await self._request("PATCH", f"/api/tasks/{task_id}", payload=changes)
        return Task.from_api(data)

    async def delete_task(self, task_id: str) -> Task:
        data = await self._request("DELETE", f"/api/tasks/{task_id}")
        return Task.from_api(data)
