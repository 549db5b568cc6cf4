"""HTML text extraction and encoding-safe file reading.

Converts prospectus HTML into the plain-text projection the analysis
pipeline works on: tags removed, paragraph breaks kept at block-level
element boundaries, whitespace canonicalized (CRLF -> LF, runs of spaces
collapsed, 3+ newlines collapsed to a blank line).

Encoding-safe file reading handles EDGAR documents with mixed encodings
(UTF-8 -> CP1252 -> replace fallback).
"""
from __future__ import annotations

import re
from pathlib import Path

from bs4 import BeautifulSoup

# ---------------------------------------------------------------------------
# Block-level tags that generate paragraph breaks
# ---------------------------------------------------------------------------

_BLOCK_TAGS: list[str] = [
    "p", "div", "br", "tr", "li",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "table",
]

# Tags whose text never belongs in the body projection.
_DROP_TAGS: list[str] = ["script", "style", "head", "title", "noscript"]


# ---------------------------------------------------------------------------
# HTML text extraction
# ---------------------------------------------------------------------------


def strip_html(raw_html: str) -> str:
    """Extract the body text of an HTML document.

    Args:
        raw_html: Raw HTML string.

    Returns:
        Normalized text. Empty string if *raw_html* is empty.
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    for tag in soup.find_all(_DROP_TAGS):
        tag.decompose()

    _insert_block_newlines(soup)
    root = soup.body if soup.body is not None else soup
    text = root.get_text(separator="")
    text = normalize_whitespace(text)
    return strip_zero_width(text).strip()


def normalize_whitespace(text: str) -> str:
    """Canonicalize line endings and collapse whitespace runs."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\xa0", " ")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


# ---------------------------------------------------------------------------
# Encoding-safe file reading
# ---------------------------------------------------------------------------


def read_file(fpath: Path, *, min_size: int = 0) -> str:
    """Read a text file with encoding fallback: UTF-8 -> CP1252 -> replace.

    Args:
        fpath: Path to the file.
        min_size: Minimum file size in bytes. Returns empty string if smaller.

    Returns:
        File contents as a string. Empty string on failure or below min_size.
    """
    try:
        if min_size > 0 and fpath.stat().st_size < min_size:
            return ""
        try:
            return fpath.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            try:
                return fpath.read_text(encoding="cp1252")
            except UnicodeDecodeError:
                with open(fpath, errors="replace") as f:
                    return f.read()
    except OSError:
        return ""


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _insert_block_newlines(soup: BeautifulSoup) -> None:
    """Insert newline characters around block-level HTML elements."""
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_before("\n")
        if tag.name != "br":
            tag.insert_after("\n")
    # Keep adjacent table cells from fusing into one word.
    for cell in soup.find_all(["td", "th"]):
        cell.insert_before(" ")


# U+200B (ZWSP), U+200C (ZWNJ), U+FEFF (BOM): invisible characters from
# HTML/Word conversions that silently break regex matching.
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\ufeff]")


def strip_zero_width(text: str) -> str:
    """Remove zero-width Unicode characters that break regex matching."""
    return _ZERO_WIDTH_RE.sub("", text)
