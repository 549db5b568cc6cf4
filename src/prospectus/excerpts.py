"""Verbatim excerpt extraction from a section span.

Picks the first substantive paragraph of a section and cuts it at a
sentence boundary near a target length.  Output is always a verbatim
substring of the (whitespace-collapsed) source, plus a trailing ellipsis
only when a hard cut was unavoidable.  Nothing is paraphrased.
"""
from __future__ import annotations

import re

from prospectus.boilerplate import is_boilerplate

ELLIPSIS = "…"

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")
_MIN_PARAGRAPH_CHARS = 60
_MIN_FALLBACK_CHARS = 80
# Fallback: first sentence end at or after this offset of the flattened text,
# accepted only if it lands before 2 * max_len.
_FALLBACK_SENTENCE_FROM = 200


def _cut_at_sentence(text: str, max_len: int) -> str:
    """Cut *text* at the last period in [max_len / 2, max_len]."""
    idx = text.rfind(".", max_len // 2, max_len + 1)
    if idx >= 0:
        return text[:idx + 1].strip()
    return text[:max_len].strip() + ELLIPSIS


def extract_substantive_excerpt(content: str, max_len: int = 280) -> str:
    """Extract the first substantive paragraph of *content*.

    Paragraphs are separated by blank lines.  A paragraph qualifies when,
    after whitespace collapse, it is at least 60 chars and does not look
    like cover-page boilerplate.

    Args:
        content: Section text.
        max_len: Target excerpt length.

    Returns:
        The excerpt, or ``""`` when the section has under 80 chars of text.
    """
    for para in _PARAGRAPH_SPLIT_RE.split(content):
        clean = re.sub(r"\s+", " ", para).strip()
        if len(clean) < _MIN_PARAGRAPH_CHARS:
            continue
        if is_boilerplate(clean):
            continue
        if len(clean) <= max_len:
            return clean
        return _cut_at_sentence(clean, max_len)

    # No paragraph qualified (short lines, tables): flatten and cut.
    flat = re.sub(r"\n+", " ", content).strip()
    if len(flat) <= _MIN_FALLBACK_CHARS:
        return ""
    idx = flat.find(".", _FALLBACK_SENTENCE_FROM)
    if 0 <= idx < 2 * max_len:
        return flat[:idx + 1]
    if len(flat) <= max_len:
        return flat
    return flat[:max_len] + ELLIPSIS
