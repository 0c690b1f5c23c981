"""Single-shot client for hosted inference endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import InferenceError, RateLimitError

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = frozenset({402, 429})
RATE_LIMIT_MESSAGE = "API rate limit exceeded or invalid token."


def build_headers(token: Optional[str] = None) -> Dict[str, str]:
    """JSON content type plus a bearer token when one is configured."""
    headers = {"Content-Type": "application/json"}
    token = (token or "").strip()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _error_detail(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


def raise_for_status(resp: httpx.Response) -> None:
    """Turn a non-success response into the matching InferenceError."""
    if resp.status_code in RATE_LIMIT_STATUSES:
        raise RateLimitError(RATE_LIMIT_MESSAGE, status_code=resp.status_code)
    if resp.is_success:
        return
    message = f"API error: {resp.status_code} {resp.reason_phrase}".rstrip()
    detail = _error_detail(resp)
    if detail:
        message += f" - {detail}"
    raise InferenceError(message, status_code=resp.status_code)


class InferenceClient:
    """POST ``{"inputs": ...}`` to one model endpoint and return the decoded JSON.

    Exactly one attempt is made per call; there is no retry or backoff.
    """

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.url = url
        self.token = token
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def query(self, text: str, prompt: str = "") -> Any:
        payload = {"inputs": f"{prompt}{text}"}
        logger.info("POST %s (%d chars)", self.url, len(payload["inputs"]))
        try:
            resp = self._client.post(
                self.url, json=payload, headers=build_headers(self.token)
            )
        except httpx.HTTPError as exc:
            logger.warning("Inference request to %s failed: %s", self.url, exc)
            raise InferenceError(f"Network error: {exc}") from exc

        try:
            raise_for_status(resp)
        except InferenceError as exc:
            logger.warning("Inference endpoint %s answered %s", self.url, exc)
            raise

        try:
            return resp.json()
        except ValueError as exc:
            raise InferenceError(
                "API returned a response that is not JSON.", status_code=resp.status_code
            ) from exc

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "InferenceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
