"""Shared aiohttp plumbing for the REST collaborators."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, TypeVar

import aiohttp
import pydantic

from vibely_realtime.application.exceptions import UpstreamError
from vibely_realtime.config import settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def create_session() -> aiohttp.ClientSession:
    headers = {"Cookie": settings.SESSION_COOKIE} if settings.SESSION_COOKIE else None
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.HTTP_TIMEOUT_SECONDS),
        headers=headers,
    )


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    **kwargs: Any,
) -> Any:
    """Perform a request and return the decoded JSON body (None when empty).

    Raises UpstreamError on transport failure, timeout or a non-2xx status.
    """
    try:
        async with session.request(method, url, **kwargs) as resp:
            text = await resp.text()
            if resp.status >= 400:
                raise UpstreamError(_error_detail(text, resp.status), status=resp.status)
    except aiohttp.ClientError as exc:
        logger.warning("%s %s failed: %s", method, url, exc)
        raise UpstreamError(str(exc)) from exc
    except asyncio.TimeoutError as exc:
        logger.warning("%s %s timed out", method, url)
        raise UpstreamError(f"Request to {url} timed out") from exc

    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError as exc:
        raise UpstreamError(f"Invalid JSON from {url}", status=resp.status) from exc


def _error_detail(text: str, status: int) -> str:
    try:
        body = json.loads(text)
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {status}"


def parse_payload(model: type[ModelT], data: Any) -> ModelT:
    """Validate a response body, turning a schema mismatch into UpstreamError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        logger.warning("Unexpected %s in response: %s", model.__name__, exc)
        raise UpstreamError(f"Unexpected response shape for {model.__name__}") from exc
