"""EDGAR cover-page boilerplate removal.

Filer-generated prospectus HTML opens with a run of noise lines before the
first real sentence: the document-index filename, "PROSPECTUS PROSPECTUS"
duplication artifacts, "Filed Pursuant to Rule 424(b)(4)", the
registration number, bare offering amounts, table-of-contents markers and
page numbers.  :func:`strip_boilerplate` skips that run.

This is a best-effort heuristic: a few false positives and negatives are
expected.  The goal is mostly-clean input for the section segmenter.
"""
from __future__ import annotations

import re

# Lines scanned before giving up on finding the start of the body.
_MAX_SCAN_LINES = 50
# Only the first few lines get the loose metadata check.
_METADATA_LINES = 5
_METADATA_MAX_LEN = 60
_SUBSTANTIVE_MIN_LEN = 80

BOILERPLATE_PATTERNS: list[re.Pattern[str]] = [
    # Document index artifact: "1 d123456d424b4.htm PROSPECTUS"
    re.compile(r"^\s*\d+\s+[a-f0-9-]+\.htm\s+", re.IGNORECASE),
    re.compile(r"^\s*PROSPECTUS\s+PROSPECTUS\s*", re.IGNORECASE),
    re.compile(r"^\s*Filed\s+Pursuant\s+to\s+Rule\s+424", re.IGNORECASE),
    re.compile(r"^\s*Registration\s+No\.\s+\d+", re.IGNORECASE),
    # Bare offering amount: "$125,000,000" / "$ 1.2 billion"
    re.compile(r"^\s*\$\s*[\d,]+(?:\.\d+)?\s*(?:million|billion)?", re.IGNORECASE),
    re.compile(r"^\s*Table\s+of\s+Contents\s*$", re.IGNORECASE),
    # Roman-numeral list markers: "ii." / "IV ."
    re.compile(r"^\s*[ivxlcdm]+\s*\.", re.IGNORECASE),
    # Bracketed page numbers: "(12)"
    re.compile(r"^\s*\(\d+\)\s*$"),
    re.compile(r"^\s*page\s+\d+", re.IGNORECASE),
]

# Short cover-page metadata: dates / file numbers, ".htm", "333-", "Rule 424".
_METADATA_RE = re.compile(r"[\d-]{10}|\.htm|333-|Rule\s+424", re.IGNORECASE)
_LOWERCASE_RE = re.compile(r"[a-z]")
_NUMERIC_ONLY_RE = re.compile(r"^[\d\s$.,]+$")


def is_boilerplate(line: str) -> bool:
    """True if *line* matches any cover-page boilerplate pattern."""
    return any(p.search(line) for p in BOILERPLATE_PATTERNS)


def _is_substantive(line: str) -> bool:
    return (
        len(line) >= _SUBSTANTIVE_MIN_LEN
        and _LOWERCASE_RE.search(line) is not None
        and _NUMERIC_ONLY_RE.match(line) is None
    )


def strip_boilerplate(text: str) -> str:
    """Skip leading boilerplate lines up to the first substantive line.

    The cut falls just after the last boilerplate line seen before the
    first substantive line, so short non-boilerplate lines caught between
    two boilerplate lines go with the run.  If no substantive line appears
    within the first 50 lines, nothing is skipped.

    Args:
        text: Normalized plain text.

    Returns:
        The text with the leading boilerplate run removed, trimmed.
    """
    lines = text.split("\n")
    started = False
    skip_chars = 0
    pos = 0
    for i, raw_line in enumerate(lines[:_MAX_SCAN_LINES]):
        line_end = pos + len(raw_line) + 1
        line = raw_line.strip()
        if line:
            short_metadata = (
                len(line) < _METADATA_MAX_LEN
                and _METADATA_RE.search(line) is not None
            )
            if is_boilerplate(line) or (i < _METADATA_LINES and short_metadata):
                # Cut after this line, taking any blank lines before it too.
                skip_chars = line_end
            elif _is_substantive(line):
                started = True
                break
        pos = line_end

    if not started:
        skip_chars = 0
    return text[skip_chars:].strip()
