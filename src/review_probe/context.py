"""Application state shared by the CLI commands and the HTTP service."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import List, Optional

import httpx

from .config import Settings, get_settings
from .event_logger import EventLogger
from .inference import InferenceClient
from .state_store import StateStore


@dataclass
class AppContext:
    """Loaded reviews plus the clients and storage a page action needs."""

    settings: Settings
    store: StateStore
    http: httpx.Client
    reviews: List[str] = dataclasses.field(default_factory=list)
    page: str = "cli"

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        http: Optional[httpx.Client] = None,
        page: str = "cli",
    ) -> "AppContext":
        settings = settings or get_settings()
        return cls(
            settings=settings,
            store=StateStore(settings.state_path),
            http=http or httpx.Client(timeout=settings.http_timeout, follow_redirects=True),
            page=page,
        )

    def sentiment_client(self) -> InferenceClient:
        return InferenceClient(
            self.settings.sentiment_model_url,
            token=self.settings.hf_token,
            client=self.http,
        )

    def noun_client(self) -> InferenceClient:
        return InferenceClient(
            self.settings.noun_model_url,
            token=self.settings.hf_token,
            client=self.http,
        )

    def event_logger(self) -> EventLogger:
        return EventLogger(self.store, client=self.http, page=self.page)

    def close(self) -> None:
        self.http.close()
