"""Exceptions raised by the dataset loader and the inference client."""


class ReviewProbeError(Exception):
    """Base class for failures that are rendered as a short status message."""


class DatasetError(ReviewProbeError):
    """The review dataset could not be fetched or held no reviews."""


class InferenceError(ReviewProbeError):
    """The inference endpoint was unreachable or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(InferenceError):
    """The endpoint refused the call for quota or token reasons (402/429)."""
