"""Plain-text export of a category's sentences."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from sentence_quiz.collection import OrderedCollection
from sentence_quiz.models import Category, Sentence, order_key

logger = logging.getLogger(__name__)


def format_category(category: Category, sentences: Iterable[Sentence]) -> str:
    """Render a header line, then one numbered block per sentence by rank.

    Each block is the 1-based number, the source text and the target
    text on their own lines, followed by a blank line.
    """
    parts = [f"[{category.name}]\n\n"]
    for number, sentence in enumerate(sorted(sentences, key=order_key), start=1):
        parts.append(f"#{number}\n{sentence.source}\n{sentence.target}\n\n")
    return "".join(parts)


def export_category(model: OrderedCollection, category_id: int) -> str:
    """Format a category as currently held in memory."""
    category = model.get_category(category_id)
    return format_category(category, model.sentences(category_id))


def write_export(text: str, destination: str | Path) -> Path:
    """Write exported text to ``destination`` as UTF-8."""
    path = Path(destination)
    path.write_text(text, encoding="utf-8")
    logger.debug("Exported %d characters to %s", len(text), path)
    return path
