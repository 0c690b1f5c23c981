"""Data models shared by the CLI and the HTTP service."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EventRecord(BaseModel):
    """One logged visitor action, sent once and never read back."""

    event: str = Field(..., min_length=1)
    variant: str = ""
    user_id: str = Field(..., alias="userId")
    ts: int = Field(..., description="Epoch milliseconds when the event was built.")
    meta: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class AnalyzeRequest(BaseModel):
    """Optional explicit review text; a random review is used when omitted."""

    text: Optional[str] = Field(None, description="Review text to analyze.")


class WebhookRequest(BaseModel):
    url: str


class EventRequest(BaseModel):
    event: str = Field(..., min_length=1)
    variant: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
