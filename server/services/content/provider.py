"""Client for the external content generation service."""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("studymate.content")

TASKS = ("summary", "flashcards", "quizzes", "chat", "quiz_feedback")


@dataclass
class GenerationError(Exception):
    """Structured error from the content service. Never expose raw tracebacks."""
    kind: str  # timeout | unavailable | invalid_json | invalid_schema | provider_error
    message: str
    details: Optional[Dict[str, Any]] = None


class ContentProvider(ABC):
    """Abstract provider for study content generation, chat replies and quiz feedback."""

    name: str = "base"

    @abstractmethod
    async def generate(self, task: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Run one generation task. Returns parsed JSON or raises GenerationError."""
        ...

    @abstractmethod
    async def test_connection(self) -> tuple[bool, str]:
        """Test if the service is reachable. Returns (ok, message)."""
        ...


class HttpContentProvider(ContentProvider):
    """
    JSON over HTTP: POST {base_url}/generate/{task}.

    Rate-limited responses (429) are retried with exponential backoff;
    everything else fails fast.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        api_key: Optional[str] = None,
        timeout_s: int = 60,
        retries: int = 3,
        backoff_s: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.retries = retries
        self.backoff_s = backoff_s
        self.transport = transport
        self.name = "http"

    def _client(self, timeout) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        return httpx.AsyncClient(timeout=timeout, headers=headers, transport=self.transport)

    async def _post(self, client: httpx.AsyncClient, task: str, payload: Dict[str, Any]) -> httpx.Response:
        delay = self.backoff_s
        for attempt in range(self.retries + 1):
            resp = await client.post(f"{self.base_url}/generate/{task}", json=payload)
            if resp.status_code != 429 or attempt == self.retries:
                return resp
            logger.warning("Content service rate limited (%s); retrying in %.1fs", task, delay)
            await asyncio.sleep(delay)
            delay *= 2
        return resp

    async def generate(self, task: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if task not in TASKS:
            raise ValueError(f"Unknown generation task: {task}")
        try:
            async with self._client(self.timeout_s) as client:
                resp = await self._post(client, task, payload)
        except httpx.TimeoutException as e:
            raise GenerationError(kind="timeout", message="Content request timed out", details={"error": str(e)})
        except httpx.ConnectError as e:
            raise GenerationError(kind="unavailable", message="Cannot connect to content service", details={"error": str(e)})
        except httpx.HTTPError as e:
            logger.exception("Content request failed")
            raise GenerationError(kind="provider_error", message="Content request failed", details={"error": str(e)})
        if resp.status_code != 200:
            raise GenerationError(
                kind="provider_error",
                message=f"Content service returned {resp.status_code}",
                details={"status": resp.status_code, "body": resp.text[:200]},
            )
        try:
            data = resp.json()
        except json.JSONDecodeError as e:
            raise GenerationError(kind="invalid_json", message="Content service returned invalid JSON", details={"error": str(e)})
        if not isinstance(data, dict):
            raise GenerationError(kind="invalid_schema", message="Content service returned a non-object")
        return data

    async def test_connection(self) -> tuple[bool, str]:
        try:
            async with self._client(5) as client:
                resp = await client.get(f"{self.base_url}/health")
            if resp.status_code == 200:
                return True, "Content service available"
            return False, f"Content service returned {resp.status_code}"
        except httpx.HTTPError as e:
            return False, str(e) or type(e).__name__


class FakeProvider(ContentProvider):
    """Test double: returns canned responses keyed by task."""

    def __init__(self, canned: Optional[Dict[str, Dict[str, Any]]] = None, error: Optional[GenerationError] = None):
        self.canned = canned or {}
        self.error = error
        self.calls: list[tuple[str, Dict[str, Any]]] = []
        self.name = "fake"

    async def generate(self, task: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((task, payload))
        if self.error:
            raise self.error
        return self.canned.get(task, {})

    async def test_connection(self) -> tuple[bool, str]:
        if self.error and self.error.kind == "unavailable":
            return False, "Fake unavailable"
        return True, "Fake OK"


_provider: Optional[ContentProvider] = None


def get_provider(settings) -> Optional[ContentProvider]:
    """Get configured provider. Returns None if disabled."""
    if not getattr(settings, "content_enabled", False):
        return None
    global _provider
    if _provider is None:
        _provider = HttpContentProvider(
            base_url=settings.content_base_url,
            api_key=settings.content_api_key,
            timeout_s=settings.content_timeout_s,
        )
    return _provider


def reset_provider() -> None:
    """Reset cached provider (for tests)."""
    global _provider
    _provider = None
