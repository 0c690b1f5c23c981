"""Load the TSV review dataset and pick reviews from it."""

from __future__ import annotations

import csv
import io
import logging
import random
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from .errors import DatasetError

logger = logging.getLogger(__name__)

TEXT_COLUMN = "text"


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _row_text(row: dict, fieldnames: Sequence[str]) -> str:
    """Return the review text for a parsed row, or an empty string."""
    if TEXT_COLUMN in fieldnames:
        value = row.get(TEXT_COLUMN)
    elif len(fieldnames) == 1:
        value = row.get(fieldnames[0])
    else:
        return ""
    return str(value or "").strip()


def parse_reviews(text: str) -> List[str]:
    """
    Parse tab-separated text with a header row into review strings.

    The column named ``text`` wins when present; a file with a single unnamed
    (or differently named) column is read from that column instead. Blank
    rows and blank values are dropped, order is kept.
    """
    text = text.removeprefix("\ufeff")
    reader = csv.DictReader(io.StringIO(text), delimiter="\t", quoting=csv.QUOTE_NONE)
    fieldnames = [name.strip() for name in (reader.fieldnames or [])]
    if not fieldnames:
        return []
    reader.fieldnames = fieldnames

    reviews: List[str] = []
    for row in reader:
        value = _row_text(row, fieldnames)
        if value:
            reviews.append(value)
    return reviews


def _read_source(source: str, client: Optional[httpx.Client]) -> str:
    if _is_url(source):
        http = client or httpx.Client()
        try:
            resp = http.get(source)
        except httpx.HTTPError as exc:
            raise DatasetError(f"Failed to fetch {source}: {exc}") from exc
        finally:
            if client is None:
                http.close()
        if resp.is_error:
            raise DatasetError(f"Failed to fetch {source} ({resp.status_code})")
        return resp.text

    path = Path(source).expanduser()
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise DatasetError(f"Failed to read {source}: {exc.strerror or exc}") from exc


def load_reviews(source: str | Path, client: Optional[httpx.Client] = None) -> List[str]:
    """Fetch a TSV dataset from a path or URL and return its reviews."""
    source = str(source)
    logger.info("Fetching reviews from %s", source)
    reviews = parse_reviews(_read_source(source, client))
    if not reviews:
        name = source.rstrip("/").rsplit("/", 1)[-1]
        raise DatasetError(
            f'No reviews found in {name} (ensure a "text" column exists).'
        )
    logger.info("Loaded %d reviews", len(reviews))
    return reviews


def pick_random(
    reviews: Sequence[str], rng: Optional[random.Random] = None
) -> Optional[str]:
    """Pick one review uniformly at random; None when there is nothing to pick."""
    if not reviews:
        return None
    chooser = rng or random
    return reviews[chooser.randrange(len(reviews))]
