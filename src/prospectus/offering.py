"""Offering terms from the prospectus cover page.

Pulls the approximate offering size, shares offered, and price terms from
the opening text of a prospectus.  Every value is kept as the verbatim
phrase from the filing; ``offering_size_mm`` is the only derived number.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

# Cover page + summary: where offering terms are stated.
_COVER_CHARS = 20_000

_OFFERING_SIZE_RE: re.Pattern[str] = re.compile(
    r"\$\s*[\d,]+(?:\.\d+)?(?:\s*(?:million|billion))?",
    re.IGNORECASE,
)

_SHARES_RE: re.Pattern[str] = re.compile(
    r"\b([\d,]{3,}\s+(?:shares\s+of\s+(?:our\s+)?(?:Class\s+[A-Z]\s+)?"
    r"(?:common\s+stock|ordinary\s+shares)"
    r"|American\s+Depositary\s+Shares|ordinary\s+shares))",
    re.IGNORECASE,
)

_PRICE_PER_SHARE_RE: re.Pattern[str] = re.compile(
    r"\$\s*\d+(?:\.\d+)?\s+per\s+(?:share|ADS)",
    re.IGNORECASE,
)

_PRICE_RANGE_RE: re.Pattern[str] = re.compile(
    r"between\s+\$\s*\d+(?:\.\d+)?\s+and\s+\$\s*\d+(?:\.\d+)?",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class OfferingDetails:
    """Offering terms as quoted in the filing (empty string if absent)."""

    offering_size: str = ""
    offering_size_mm: float | None = None
    shares_offered: str = ""
    price_per_share: str = ""
    price_range: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "offering_size": self.offering_size,
            "offering_size_mm": self.offering_size_mm,
            "shares_offered": self.shares_offered,
            "price_per_share": self.price_per_share,
            "price_range": self.price_range,
        }


def parse_dollar_amount(raw: str) -> float | None:
    """Parse a dollar phrase to millions ("$1.2 billion" -> 1200.0)."""
    lowered = raw.lower()
    num_match = re.search(r"([0-9][0-9,]*\.?[0-9]*)", raw)
    if not num_match:
        return None
    digits = num_match.group(1).replace(",", "").rstrip(".")
    if not digits:
        return None
    value = float(digits)

    if "billion" in lowered:
        return value * 1000.0
    if "million" in lowered:
        return value
    return value / 1_000_000


def _first(pattern: re.Pattern[str], text: str) -> str:
    m = pattern.search(text)
    return re.sub(r"\s+", " ", m.group(0)).strip() if m else ""


def extract_offering_size(text: str) -> str:
    """First dollar amount (with optional million/billion suffix), or ``""``."""
    return _first(_OFFERING_SIZE_RE, text)


def extract_offering_details(text: str) -> OfferingDetails:
    """Extract offering terms from the opening of the prospectus text."""
    cover = text[:_COVER_CHARS]
    size = extract_offering_size(text)
    shares = _SHARES_RE.search(cover)
    return OfferingDetails(
        offering_size=size,
        offering_size_mm=parse_dollar_amount(size) if size else None,
        shares_offered=re.sub(r"\s+", " ", shares.group(1)).strip() if shares else "",
        price_per_share=_first(_PRICE_PER_SHARE_RE, cover),
        price_range=_first(_PRICE_RANGE_RE, cover),
    )
