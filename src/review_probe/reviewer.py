"""Reviewer flows: pick a random review and ask hosted models about it.

Both reviewer variants share one flow. The sentiment action classifies the
review; the noun action sends it to a second endpoint with an instruction
prompt and grades the answer as low, medium or high. Each action makes at
most one request and always returns an ``AnalysisOutcome``; failures are
reported through its status and error fields.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .context import AppContext
from .dataset import load_reviews, pick_random
from .errors import ReviewProbeError
from .inference import InferenceClient
from .interpret import (
    NounLevelResult,
    SentimentResult,
    interpret_noun_level,
    interpret_sentiment,
)

logger = logging.getLogger(__name__)

STATUS_DONE = "Done."
STATUS_FAILED = "Error during analysis."
STATUS_NO_REVIEWS = "No reviews loaded."
STATUS_BUSY = "Request already in progress."


@dataclass
class LoadOutcome:
    count: int
    status: str
    error: str | None = None


@dataclass
class AnalysisOutcome:
    review: str | None
    status: str
    sentiment: SentimentResult | None = None
    noun_level: NounLevelResult | None = None
    error: str | None = None
    error_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Reviewer:
    """Runs reviewer actions against an ``AppContext``, one request at a time."""

    def __init__(self, context: AppContext, rng: Optional[random.Random] = None):
        self.context = context
        self.rng = rng
        self.last_load: LoadOutcome | None = None
        self._in_flight = threading.Lock()

    def load(self, source: Optional[str] = None) -> LoadOutcome:
        source = source or self.context.settings.reviews_source
        try:
            reviews = load_reviews(source, client=self.context.http)
        except ReviewProbeError as exc:
            self.context.reviews = []
            self.last_load = LoadOutcome(
                count=0, status="Failed to load TSV.", error=str(exc)
            )
        else:
            self.context.reviews = reviews
            self.last_load = LoadOutcome(
                count=len(reviews), status=f"Loaded {len(reviews)} reviews."
            )
        return self.last_load

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def pick(self) -> Optional[str]:
        return pick_random(self.context.reviews, rng=self.rng)

    def _run(
        self,
        review: Optional[str],
        call: Callable[[str], AnalysisOutcome],
    ) -> AnalysisOutcome:
        if not review:
            return AnalysisOutcome(
                review=None, status=STATUS_NO_REVIEWS, error=STATUS_NO_REVIEWS
            )
        if not self._in_flight.acquire(blocking=False):
            return AnalysisOutcome(review=review, status=STATUS_BUSY, error=STATUS_BUSY)
        try:
            return call(review)
        except ReviewProbeError as exc:
            logger.warning("Analysis failed: %s", exc)
            return AnalysisOutcome(
                review=review,
                status=STATUS_FAILED,
                error=str(exc),
                error_code=getattr(exc, "status_code", None),
            )
        finally:
            self._in_flight.release()

    def analyze(self, text: Optional[str]) -> AnalysisOutcome:
        """Classify the given review text."""

        def call(review: str) -> AnalysisOutcome:
            client: InferenceClient = self.context.sentiment_client()
            data = client.query(review, prompt=self.context.settings.sentiment_prompt)
            return AnalysisOutcome(
                review=review, status=STATUS_DONE, sentiment=interpret_sentiment(data)
            )

        return self._run(text, call)

    def analyze_random(self) -> AnalysisOutcome:
        """Pick a random loaded review and classify it."""
        return self.analyze(self.pick())

    def count_nouns(self, text: Optional[str] = None) -> AnalysisOutcome:
        """Grade noun density of the given review, or of a random one."""

        def call(review: str) -> AnalysisOutcome:
            client = self.context.noun_client()
            data = client.query(review, prompt=self.context.settings.noun_prompt)
            return AnalysisOutcome(
                review=review, status=STATUS_DONE, noun_level=interpret_noun_level(data)
            )

        return self._run(text if text is not None else self.pick(), call)
