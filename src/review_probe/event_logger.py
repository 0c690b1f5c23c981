"""Visitor id persistence and webhook event logging.

Events go to a spreadsheet-backed web app (URL ending in ``/exec``) as
form-encoded POSTs. Every outcome is reported as a short status string;
transport and HTTP failures never raise.
"""

from __future__ import annotations

import json
import logging
import platform
import random
import string
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from .models import EventRecord
from .state_store import StateStore

logger = logging.getLogger(__name__)

USER_ID_KEY = "uid"
WEBHOOK_URL_KEY = "gas_url"
MIN_USER_ID_LENGTH = 12
SEGMENT_LENGTH = 8

STATUS_MISSING_URL = "Missing Web App URL"
STATUS_INVALID_URL = "Invalid URL"
STATUS_INVALID_SAVE = "Invalid URL (must end with /exec)"
STATUS_SAVED = "Saved Web App URL"
STATUS_NETWORK_ERROR = "Network error"
STATUS_LOGGED = "Logged"

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _random_segment(rng: random.Random | Any) -> str:
    return "".join(rng.choice(_BASE36) for _ in range(SEGMENT_LENGTH))


def generate_client_id(
    now_ms: Optional[int] = None, rng: Optional[random.Random] = None
) -> str:
    """Build ``u_<base36 time>_<segment>_<segment>``."""
    chooser = rng or random.SystemRandom()
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"u_{to_base36(stamp)}_{_random_segment(chooser)}_{_random_segment(chooser)}"


def get_or_create_client_id(store: StateStore) -> str:
    """Return the persisted visitor id, creating one on first use."""
    uid = store.get(USER_ID_KEY)
    if uid and len(uid) >= MIN_USER_ID_LENGTH:
        return uid
    uid = generate_client_id()
    store.set(USER_ID_KEY, uid)
    logger.info("Created visitor id %s", uid)
    return uid


def is_valid_exec_url(url: str) -> bool:
    """Accept http(s) URLs with a host whose path ends in ``/exec``."""
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
        # Rejects non-numeric or out-of-range ports.
        parsed.port
        httpx.URL(url)
    except (ValueError, httpx.InvalidURL):
        return False
    return (
        parsed.scheme in {"http", "https"}
        and bool(parsed.netloc)
        and parsed.path.endswith("/exec")
    )


def read_webhook_url(store: StateStore) -> Optional[str]:
    return store.get(WEBHOOK_URL_KEY)


def save_webhook_url(store: StateStore, url: str) -> str:
    """Validate and persist the web app URL; returns the status to show."""
    url = (url or "").strip()
    if not url:
        return STATUS_MISSING_URL
    if not is_valid_exec_url(url):
        return STATUS_INVALID_SAVE
    store.set(WEBHOOK_URL_KEY, url)
    return STATUS_SAVED


def default_meta(page: str = "cli") -> Dict[str, Any]:
    return {
        "page": page,
        "ua": f"review-probe/{platform.python_version()} ({platform.system()})",
    }


class EventLogger:
    """Send one fire-and-forget event per user action to the saved webhook."""

    def __init__(
        self,
        store: StateStore,
        client: Optional[httpx.Client] = None,
        page: str = "cli",
        timeout: float = 30.0,
    ):
        self.store = store
        self.page = page
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._owns_client = client is None

    def build_record(
        self,
        event: str,
        variant: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> EventRecord:
        merged = {**default_meta(self.page), **(meta or {})}
        return EventRecord(
            event=event,
            variant=variant or "",
            user_id=get_or_create_client_id(self.store),
            ts=int(time.time() * 1000),
            meta=merged,
        )

    @staticmethod
    def form_fields(record: EventRecord) -> Dict[str, str]:
        return {
            "event": record.event,
            "variant": record.variant,
            "userId": record.user_id,
            "ts": str(record.ts),
            "meta": json.dumps(record.meta, ensure_ascii=False),
        }

    def send(
        self,
        event: str,
        variant: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> str:
        url = read_webhook_url(self.store)
        if not url:
            return STATUS_MISSING_URL
        if not is_valid_exec_url(url):
            return STATUS_INVALID_URL

        record = self.build_record(event, variant, meta)
        try:
            resp = self._client.post(url, data=self.form_fields(record))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Event %s not delivered: %s", event, exc)
            return STATUS_NETWORK_ERROR
        if not resp.is_success:
            logger.warning("Event %s rejected with HTTP %s", event, resp.status_code)
            return f"HTTP {resp.status_code}"
        logger.info("Logged %s (variant=%r) for %s", event, record.variant, record.user_id)
        return STATUS_LOGGED

    def cta_click(self, variant: str) -> str:
        return self.send("cta_click", variant=variant)

    def heartbeat(self) -> str:
        return self.send("heartbeat", variant="")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
