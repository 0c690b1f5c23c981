"""FastAPI service exposing the reviewer pages and the event logger as JSON."""

from __future__ import annotations

import dataclasses
import logging
import os
from contextlib import asynccontextmanager
from threading import Lock
from typing import Any, AsyncIterator, Dict

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .config import configure_logging
from .context import AppContext
from .event_logger import (
    STATUS_INVALID_URL,
    STATUS_LOGGED,
    STATUS_MISSING_URL,
    STATUS_SAVED,
    save_webhook_url,
)
from .inference import RATE_LIMIT_STATUSES
from .models import AnalyzeRequest, EventRequest, WebhookRequest
from .reviewer import STATUS_BUSY, STATUS_NO_REVIEWS, AnalysisOutcome, Reviewer

logger = logging.getLogger(__name__)

_STATE_LOCK = Lock()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    ctx = getattr(app.state, "context", None)
    if ctx is not None:
        ctx.close()
    app.state.context = None
    app.state.reviewer = None


app = FastAPI(title="Review Probe", lifespan=lifespan)


def _add_cors(app: FastAPI) -> None:
    """Let the static pages call the service from another origin."""
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Starlette/FastAPI disallow wildcard origins when credentials are enabled.
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


_add_cors(app)


def get_context(request: Request) -> AppContext:
    """Return the app context, building one from the environment on first use."""
    ctx = getattr(request.app.state, "context", None)
    if ctx is not None:
        return ctx
    with _STATE_LOCK:
        ctx = getattr(request.app.state, "context", None)
        if ctx is None:
            ctx = AppContext.from_settings(page="server")
            request.app.state.context = ctx
    return ctx


def _reviewer(request: Request) -> Reviewer:
    ctx = get_context(request)
    with _STATE_LOCK:
        reviewer = getattr(request.app.state, "reviewer", None)
        if reviewer is None:
            reviewer = Reviewer(ctx)
            request.app.state.reviewer = reviewer
        if not reviewer.context.reviews:
            loaded = reviewer.load()
            if loaded.error:
                logger.warning("%s %s", loaded.status, loaded.error)
    return reviewer


def _require_reviews(reviewer: Reviewer) -> None:
    """Surface the dataset load failure instead of a bare empty-dataset answer."""
    loaded = reviewer.last_load
    if not reviewer.context.reviews and loaded is not None and loaded.error:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{loaded.status} {loaded.error}",
        )


def _outcome_body(outcome: AnalysisOutcome) -> Dict[str, Any]:
    if outcome.error:
        if outcome.error == STATUS_NO_REVIEWS:
            code = status.HTTP_404_NOT_FOUND
        elif outcome.error == STATUS_BUSY:
            code = status.HTTP_409_CONFLICT
        elif outcome.error_code in RATE_LIMIT_STATUSES:
            code = status.HTTP_429_TOO_MANY_REQUESTS
        else:
            code = status.HTTP_502_BAD_GATEWAY
        raise HTTPException(status_code=code, detail=outcome.error)
    return dataclasses.asdict(outcome)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/reviews")
def list_reviews(request: Request) -> Dict[str, Any]:
    reviewer = _reviewer(request)
    loaded = reviewer.last_load
    return {
        "count": len(reviewer.context.reviews),
        "status": loaded.status if loaded else None,
        "error": loaded.error if loaded else None,
    }


@app.get("/reviews/random")
def random_review(request: Request) -> Dict[str, str]:
    reviewer = _reviewer(request)
    _require_reviews(reviewer)
    review = reviewer.pick()
    if review is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=STATUS_NO_REVIEWS)
    return {"review": review}


@app.post("/analyze/sentiment")
def analyze_sentiment(request: Request, payload: AnalyzeRequest | None = None) -> Dict[str, Any]:
    reviewer = _reviewer(request)
    text = payload.text if payload and payload.text else None
    if text is None:
        _require_reviews(reviewer)
        text = reviewer.pick()
    return _outcome_body(reviewer.analyze(text))


@app.post("/analyze/nouns")
def analyze_nouns(request: Request, payload: AnalyzeRequest | None = None) -> Dict[str, Any]:
    reviewer = _reviewer(request)
    text = payload.text if payload and payload.text else None
    if text is None:
        _require_reviews(reviewer)
    return _outcome_body(reviewer.count_nouns(text))


@app.put("/webhook")
def put_webhook(request: Request, payload: WebhookRequest) -> Dict[str, str]:
    result = save_webhook_url(get_context(request).store, payload.url)
    if result != STATUS_SAVED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result)
    return {"status": result}


@app.post("/events")
def post_event(request: Request, payload: EventRequest) -> Dict[str, str]:
    ctx = get_context(request)
    result = ctx.event_logger().send(payload.event, variant=payload.variant, meta=payload.meta)
    if result in (STATUS_MISSING_URL, STATUS_INVALID_URL):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result)
    if result != STATUS_LOGGED:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result)
    return {"status": result}


if __name__ == "__main__":
    import uvicorn

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run(
        "review_probe.server:app",
        host=os.getenv("PROBE_HOST", "0.0.0.0"),
        port=int(os.getenv("PROBE_PORT", "8000")),
        reload=os.getenv("PROBE_RELOAD", "false").lower() == "true",
    )
