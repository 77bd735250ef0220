"""Shared HTTP and result-normalization helpers for engine adapters."""

import math
from typing import Any

import httpx
from pydantic import ValidationError

from extsearch.contracts.search_v1 import ResultItem
from extsearch.search.errors import EngineError, RateLimitedError
from extsearch.search.heuristics import (
    extract_domain,
    guess_content_type,
    is_indie_web,
    privacy_score,
)

HTTP_TIMEOUT_SECONDS = 10.0
_ERROR_BODY_PREVIEW = 200

# Raised while reading a decoded payload whose shape is not what the engine documents.
MALFORMED_PAYLOAD_ERRORS = (TypeError, ValueError, AttributeError, ValidationError)


async def fetch_json(
    engine_id: str,
    url: str,
    *,
    params: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout: float = HTTP_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """GET ``url`` and decode a JSON object, mapping failures to EngineError."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(
                url,
                params=params,
                headers=headers,
                follow_redirects=True,
            )
            if response.status_code == 429:
                raise RateLimitedError(engine_id, f"{engine_id}: HTTP 429 rate limited")
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        body = (e.response.text or "")[:_ERROR_BODY_PREVIEW]
        raise EngineError(
            engine_id, f"{engine_id}: HTTP {e.response.status_code} {body}".strip()
        ) from e
    except httpx.HTTPError as e:
        raise EngineError(engine_id, f"{engine_id}: {type(e).__name__}: {e}") from e
    except ValueError as e:
        raise EngineError(engine_id, f"{engine_id}: invalid JSON payload") from e
    if not isinstance(data, dict):
        raise EngineError(engine_id, f"{engine_id}: unexpected payload type {type(data).__name__}")
    return data


def build_result(
    engine_id: str,
    *,
    url: str,
    title: str | None,
    snippet: str | None,
    position: int,
    **fields: Any,
) -> ResultItem:
    """ResultItem annotated with indie, privacy and content-type heuristics.

    Explicit ``fields`` win over the heuristic values.
    """
    domain = extract_domain(url)
    values: dict[str, Any] = {
        "engine": engine_id,
        "url": url,
        "title": title or "Untitled",
        "snippet": snippet or None,
        "position": position,
        "is_indie_web": is_indie_web(domain),
        "privacy_score": privacy_score(domain),
        "content_type": guess_content_type(url, title or "", snippet),
    }
    values.update(fields)
    return ResultItem(**values)


def with_site_scope(q: str, site_scope: str | None) -> str:
    return f"site:{site_scope} {q}" if site_scope else q


def malformed_payload(engine_id: str, exc: Exception) -> EngineError:
    return EngineError(engine_id, f"{engine_id}: malformed payload: {type(exc).__name__}: {exc}")


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def section(data: dict[str, Any], key: str) -> dict[str, Any]:
    """Nested object ``data[key]``; absent means empty, any other type is malformed."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"'{key}' is {type(value).__name__}, expected object")
    return value


def result_items(value: Any) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"'results' is {type(value).__name__}, expected list")
    for item in value:
        if not isinstance(item, dict):
            raise TypeError(f"result entry is {type(item).__name__}, expected object")
    return value


def item_url(item: dict[str, Any]) -> str | None:
    url = item.get("url")
    if url is None or url == "":
        return None
    if not isinstance(url, str):
        raise TypeError(f"result url is {type(url).__name__}, expected string")
    return url


def reported_total(value: Any) -> int | None:
    """Engine-reported hit count; None when absent or negative."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        raise ValueError(f"result count {value!r} is not finite")
    return int(value) if value >= 0 else None
