from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

FALLBACK_CATEGORIES: dict[str, list[str]] = {
    "General": ["Apple", "River", "Guitar", "Castle", "Umbrella"],
}


def pick(items: Sequence[T], rng: random.Random | None = None) -> T:
    """Uniform random choice from a non-empty sequence."""
    if not items:
        raise ValueError("cannot pick from an empty collection")
    return (rng or random).choice(list(items))


def _clean(raw: object) -> dict[str, list[str]]:
    if not isinstance(raw, dict):
        return {}

    categories: dict[str, list[str]] = {}
    for name, words in raw.items():
        if not isinstance(name, str) or not name.strip():
            continue
        if not isinstance(words, list):
            continue
        cleaned = [w.strip() for w in words if isinstance(w, str) and w.strip()]
        if cleaned:
            categories[name.strip()] = cleaned
    return categories


def load_categories(path: str | Path) -> dict[str, list[str]]:
    """Load the category -> words mapping.

    A missing, unreadable or empty dataset never stops the server; the
    fallback category is used instead.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load word dataset from %s, using fallback", path)
        return {k: list(v) for k, v in FALLBACK_CATEGORIES.items()}

    categories = _clean(raw)
    if not categories:
        logger.error("Word dataset %s has no usable categories, using fallback", path)
        return {k: list(v) for k, v in FALLBACK_CATEGORIES.items()}

    logger.info("Loaded %d word categories from %s", len(categories), path)
    return categories
