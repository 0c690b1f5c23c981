"""Configuration helpers for the review probes and the event logger."""

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )

    hf_token: str | None = Field(None, alias="HF_TOKEN")
    sentiment_model_url: str = Field(
        "https://api-inference.huggingface.co/models/siebert/sentiment-roberta-large-english",
        alias="SENTIMENT_MODEL_URL",
        description="Text-classification endpoint used by the sentiment reviewer.",
    )
    sentiment_prompt: str = Field(
        "",
        alias="SENTIMENT_PROMPT",
        description="Optional instruction prepended to the review before classification.",
    )
    noun_model_url: str = Field(
        "https://api-inference.huggingface.co/models/bert-base-uncased",
        alias="NOUN_MODEL_URL",
        description="Endpoint asked to grade how noun-heavy a review is.",
    )
    noun_prompt: str = Field(
        "Count the nouns in this review and return only High (>15), Medium (6-15), or Low (<6): ",
        alias="NOUN_PROMPT",
    )
    reviews_source: str = Field(
        "reviews_test.tsv",
        alias="REVIEWS_SOURCE",
        description="Local path or http(s) URL of the TSV review dataset.",
    )
    state_path: Path = Field(
        Path("~/.review_probe/state.json"),
        alias="STATE_PATH",
        description="JSON file holding the visitor id and the saved webhook URL.",
    )
    http_timeout: float = Field(
        30.0,
        alias="HTTP_TIMEOUT",
        description="Seconds before an outgoing request is abandoned.",
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")


def get_settings() -> Settings:
    """Return a settings instance built from the current environment."""
    return Settings()


def configure_logging(level: str | int = "INFO") -> None:
    """Route package logs to stderr with a compact format."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
