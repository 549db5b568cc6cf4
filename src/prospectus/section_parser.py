"""Section segmenter for prospectus text.

Slices a normalized prospectus into labeled section spans by scanning for
the headings every S-1 / F-1 / 424B4 carries (Prospectus Summary, Risk
Factors, Use of Proceeds, Business, ...).

Approach:
    1. Strip cover-page boilerplate.
    2. Run each heading pattern over the full text, in list order.  A match
       within ``dedup_window`` chars of one already recorded is dropped, so
       the earlier pattern in the list wins on overlapping detections.
    3. Sort surviving matches by offset; each span runs to the next match.
    4. Trim the heading line, drop near-empty spans, and fall back to a
       single "Summary" span when nothing survives.

Never raises on malformed input; the worst case is the fallback span or an
empty list.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from prospectus.boilerplate import strip_boilerplate
from prospectus.thresholds import DEFAULT_THRESHOLDS, AnalysisThresholds


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SectionSpan:
    """A labeled region of the cleaned prospectus text."""

    name: str       # "Risk Factors"
    content: str    # Text after the heading line, up to the next heading
    start: int      # Offset of the heading line in the cleaned text

    @property
    def word_count(self) -> int:
        return len(self.content.split())


FALLBACK_SECTION_NAME = "Summary"


# ---------------------------------------------------------------------------
# Heading patterns -- order matters for the proximity tie-break
# ---------------------------------------------------------------------------

_LINE_START = r"(?:^|\n)\s*"
_ITEM_PREFIX = r"(?:Item\s+\d+[A-Z]?\.\s*)?"
_HEADING_END = r"\s*[\n:.]"


def _heading(body: str, *, item_prefix: bool = True) -> re.Pattern[str]:
    prefix = _ITEM_PREFIX if item_prefix else ""
    return re.compile(
        _LINE_START + prefix + "(" + body + ")" + _HEADING_END,
        re.IGNORECASE,
    )


HEADING_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (_heading(r"Prospectus\s+Summary"), "Prospectus Summary"),
    (_heading(r"Risk\s+Factors"), "Risk Factors"),
    (_heading(r"Use\s+of\s+Proceeds"), "Use of Proceeds"),
    (_heading(r"Our\s+Business|Business"), "Our Business"),
    (
        _heading(r"Management['’]?s\s+Discussion|Selected\s+Financial"),
        "Management's Discussion",
    ),
    (_heading(r"Capitalization|Dilution"), "Capitalization"),
    (_heading(r"Description\s+of\s+Securities"), "Description of Securities"),
    (_heading(r"Underwriting"), "Underwriting"),
    (_heading(r"Legal\s+Matters|Experts"), "Legal Matters"),
    (_heading(r"Where\s+You\s+Can\s+Find"), "Where You Can Find"),
    (_heading(r"Offering", item_prefix=False), "Offering"),
    # All-caps variants, case-sensitive and newline-terminated.
    (re.compile(_LINE_START + r"(RISK\s+FACTORS)\s*\n"), "Risk Factors"),
    (re.compile(_LINE_START + r"(USE\s+OF\s+PROCEEDS)\s*\n"), "Use of Proceeds"),
]


# ---------------------------------------------------------------------------
# Name normalization
# ---------------------------------------------------------------------------


def normalize_section_name(name: str) -> str:
    """Map a matched heading to its display label.

    "RISK FACTORS" -> "Risk Factors", "USE OF PROCEEDS" -> "Use of Proceeds",
    anything mentioning BUSINESS -> "Our Business"; otherwise the heading
    text with whitespace collapsed.
    """
    collapsed = re.sub(r"\s+", " ", name).strip()
    upper = collapsed.upper()
    if upper == "RISK FACTORS":
        return "Risk Factors"
    if upper == "USE OF PROCEEDS":
        return "Use of Proceeds"
    if "BUSINESS" in upper:
        return "Our Business"
    return collapsed


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def find_headings(
    text: str,
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
) -> list[tuple[int, str]]:
    """Locate known section headings in already-cleaned text.

    Returns:
        (offset, normalized name) pairs sorted by offset.
    """
    window = thresholds.dedup_window
    found: list[tuple[int, str]] = []
    for pattern, default_name in HEADING_PATTERNS:
        for m in pattern.finditer(text):
            # Anchor on the heading line itself, not the preceding newline.
            offset = m.start() + (len(m.group(0)) - len(m.group(0).lstrip()))
            if any(abs(prev - offset) < window for prev, _ in found):
                continue
            matched = (m.group(1) or "").strip() or default_name
            found.append((offset, normalize_section_name(matched)))
    found.sort(key=lambda pair: pair[0])
    return found


def extract_sections(
    text: str,
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
) -> list[SectionSpan]:
    """Segment prospectus text into labeled section spans.

    Args:
        text: Normalized text (output of ``strip_html``).  Boilerplate is
            stripped here, so callers pass the unstripped projection.
        thresholds: Cutoffs for span length, dedup window, and fallback.

    Returns:
        Spans in document order, each with content longer than
        ``min_section_chars``; or a single "Summary" fallback span; or an
        empty list for short, heading-less input.
    """
    cleaned = strip_boilerplate(text)
    headings = find_headings(cleaned, thresholds=thresholds)

    sections: list[SectionSpan] = []
    for i, (start, name) in enumerate(headings):
        end = headings[i + 1][0] if i + 1 < len(headings) else len(cleaned)
        content = _trim_heading_line(
            cleaned[start:end], thresholds.heading_line_max,
        )
        if len(content) > thresholds.min_section_chars:
            sections.append(SectionSpan(name=name, content=content, start=start))

    if not sections and len(cleaned) > thresholds.fallback_min_chars:
        sections.append(SectionSpan(
            name=FALLBACK_SECTION_NAME,
            content=cleaned[:thresholds.fallback_span_chars],
            start=0,
        ))

    return sections


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _trim_heading_line(span_text: str, max_heading: int) -> str:
    """Drop the heading's own line when it ends within *max_heading* chars."""
    nl_pos = span_text.find("\n")
    if 0 < nl_pos < max_heading:
        return span_text[nl_pos:].strip()
    return span_text.strip()
