"""Prospectus briefing assembler.

Runs the full single-pass pipeline over one prospectus:

    HTML -> normalized text -> boilerplate-stripped text -> section spans
         -> (excerpts + observations, metrics) -> ProspectusBriefing

Every quote in the briefing is verbatim from the filing; observations are
rule-based and derived mechanically from counts and lengths.  The result is
a frozen value with no references back into the source HTML.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from prospectus.boilerplate import strip_boilerplate
from prospectus.excerpts import extract_substantive_excerpt
from prospectus.html_utils import strip_html
from prospectus.metrics import (
    CONDITIONAL_RE,
    BriefingMetrics,
    build_metrics,
    count_matches,
)
from prospectus.offering import (
    OfferingDetails,
    extract_offering_details,
    extract_offering_size,
)
from prospectus.section_parser import SectionSpan, extract_sections
from prospectus.thresholds import DEFAULT_THRESHOLDS, AnalysisThresholds

# Display order for briefing sections; unlisted sections follow in
# document order.
SECTION_PRIORITY: tuple[str, ...] = (
    "Use of Proceeds",
    "Risk Factors",
    "Prospectus Summary",
    "Offering",
    "Our Business",
    "Underwriting",
    "Capitalization",
    "Dilution",
)

NEUTRAL_OBSERVATION = (
    "Verbatim from the Prospectus. Length and structure mechanically "
    "reported below."
)
HEAVY_CONDITIONAL_OBSERVATION = (
    "Heavy use of conditional phrasing (may, could, might) throughout."
)
MODERATE_CONDITIONAL_OBSERVATION = "Moderate conditional phrasing."
VAGUE_PROCEEDS_OBSERVATION = (
    "No specific allocation percentages quoted; unusually vague relative "
    "to typical disclosures."
)
SPECIFIC_PROCEEDS_OBSERVATION = (
    "Specific dollar amounts or allocation described in the filing."
)
BRIEF_OBSERVATION = "Unusually brief relative to other sections."
EXTENSIVE_OBSERVATION = "Extensive disclosure in this section."

_PERCENTAGE_RE = re.compile(r"\d+\s*%|percent|allocation", re.IGNORECASE)
_SPECIFICS_RE = re.compile(r"\$\s*[\d,]+|million|proceeds", re.IGNORECASE)
_OVERVIEW_SECTION_RE = re.compile(r"summary|offering", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FilingMetadata:
    """Identifying metadata supplied alongside the filing HTML."""

    company_name: str = ""
    cik: str = ""
    accession_number: str = ""
    filing_date: str = ""
    form_type: str = "424B4"
    prospectus_url: str = ""

    def __post_init__(self) -> None:
        # None from upstream JSON collapses to "" so renderers never see it.
        for name in ("company_name", "cik", "accession_number",
                     "filing_date", "prospectus_url"):
            if getattr(self, name) is None:
                object.__setattr__(self, name, "")
        if not self.form_type:
            object.__setattr__(self, "form_type", "424B4")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilingMetadata:
        """Build from a mapping; unknown keys are ignored."""
        return cls(
            company_name=str(data.get("company_name") or ""),
            cik=str(data.get("cik") or ""),
            accession_number=str(data.get("accession_number") or ""),
            filing_date=str(data.get("filing_date") or ""),
            form_type=str(data.get("form_type") or "424B4"),
            prospectus_url=str(data.get("prospectus_url") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_name": self.company_name,
            "cik": self.cik,
            "accession_number": self.accession_number,
            "filing_date": self.filing_date,
            "form_type": self.form_type,
            "prospectus_url": self.prospectus_url,
        }


@dataclass(frozen=True, slots=True)
class Excerpt:
    quote: str
    observation: str


@dataclass(frozen=True, slots=True)
class BriefingSection:
    heading: str
    excerpts: tuple[Excerpt, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "heading": self.heading,
            "excerpts": [
                {"quote": e.quote, "observation": e.observation}
                for e in self.excerpts
            ],
        }


@dataclass(frozen=True, slots=True)
class ProspectusBriefing:
    """The assembled briefing for one prospectus."""

    meta: FilingMetadata
    overview: str
    summary: str
    offering_details: OfferingDetails
    sections: tuple[BriefingSection, ...]
    metrics: BriefingMetrics
    generated_at: str = field(default="")

    @property
    def company_name(self) -> str:
        return self.meta.company_name

    @property
    def accession_number(self) -> str:
        return self.meta.accession_number

    @property
    def prospectus_url(self) -> str:
        return self.meta.prospectus_url

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form: metadata fields flattened at the top level."""
        return {
            **self.meta.to_dict(),
            "generated_at": self.generated_at,
            "overview": self.overview,
            "summary": self.summary,
            "offering_details": self.offering_details.to_dict(),
            "sections": [s.to_dict() for s in self.sections],
            "metrics": self.metrics.to_dict(),
        }


# ---------------------------------------------------------------------------
# Observation rules
# ---------------------------------------------------------------------------


def derive_observation(
    section_name: str,
    content: str,
    all_sections: list[SectionSpan],
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
) -> str:
    """Rule-based observation for one section.

    Rules fire independently and are joined with a space; with none firing
    the neutral sentence is used.
    """
    words = len(content.split())
    total_words = sum(s.word_count for s in all_sections)
    avg_words = total_words / len(all_sections) if all_sections else 0.0
    lowered = section_name.lower()

    observations: list[str] = []

    if "risk" in lowered:
        conditional = count_matches(content, CONDITIONAL_RE)
        if conditional > thresholds.heavy_conditional:
            observations.append(HEAVY_CONDITIONAL_OBSERVATION)
        elif conditional > thresholds.moderate_conditional:
            observations.append(MODERATE_CONDITIONAL_OBSERVATION)

    if "use of proceeds" in lowered:
        if not _PERCENTAGE_RE.search(content):
            observations.append(VAGUE_PROCEEDS_OBSERVATION)
        elif _SPECIFICS_RE.search(content):
            observations.append(SPECIFIC_PROCEEDS_OBSERVATION)

    if (
        words < thresholds.brief_section_words
        and avg_words > thresholds.brief_average_words
    ):
        observations.append(BRIEF_OBSERVATION)
    if words > thresholds.extensive_section_words:
        observations.append(EXTENSIVE_OBSERVATION)

    return " ".join(observations) if observations else NEUTRAL_OBSERVATION


# ---------------------------------------------------------------------------
# Assembly helpers
# ---------------------------------------------------------------------------


def prioritize_sections(sections: list[SectionSpan]) -> list[SectionSpan]:
    """Order sections by relevance; unlisted ones keep document order."""
    rank = {name.lower(): i for i, name in enumerate(SECTION_PRIORITY)}
    fallback = len(SECTION_PRIORITY)
    return sorted(sections, key=lambda s: rank.get(s.name.lower(), fallback))


def build_briefing_sections(
    sections: list[SectionSpan],
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
) -> list[BriefingSection]:
    """One excerpt + observation for each of the top-priority sections."""
    selected = prioritize_sections(sections)[:thresholds.max_briefing_sections]
    results: list[BriefingSection] = []
    for sec in selected:
        quote = extract_substantive_excerpt(sec.content, thresholds.excerpt_max_len)
        if not quote:
            continue
        observation = derive_observation(
            sec.name, sec.content, sections, thresholds=thresholds,
        )
        results.append(BriefingSection(
            heading=sec.name,
            excerpts=(Excerpt(quote=quote, observation=observation),),
        ))
    return results


def build_overview(
    raw_text: str,
    briefing_sections: list[BriefingSection],
    meta: FilingMetadata,
) -> str:
    """Offering size plus the opening summary/offering passage."""
    parts: list[str] = []
    size = extract_offering_size(raw_text)
    if size:
        filer = meta.company_name or "The issuer"
        parts.append(
            f"{filer} ({meta.form_type}) references an offering of "
            f"approximately {size}."
        )
    for sec in briefing_sections:
        if _OVERVIEW_SECTION_RE.search(sec.heading) and sec.excerpts:
            parts.append(sec.excerpts[0].quote)
            break
    if not parts:
        return (
            "No offering size or summary passage could be located in the "
            "filing text."
        )
    return " ".join(parts)


def build_summary(meta: FilingMetadata, metrics: BriefingMetrics) -> str:
    return (
        "This briefing extracts verbatim passages from the Prospectus filed by "
        f"{meta.company_name} (CIK {meta.cik}, Accession {meta.accession_number}). "
        "Conditional phrasing (may, expect, intend) appears "
        f"{metrics.conditional_total} times; definitive phrasing (have, do, "
        f"generate) appears {metrics.definitive_total} times, a ratio of "
        f"{metrics.conditional_ratio:.2f}. Each section below pairs a direct "
        "quote with mechanically derived observations."
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_prospectus(
    html: str,
    meta: FilingMetadata,
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
) -> ProspectusBriefing:
    """Build a verifiable briefing from prospectus HTML.

    Args:
        html: Raw filing HTML.
        meta: Filing metadata (company, CIK, accession, date, form, URL).
        thresholds: Cutoffs for segmentation, metrics, and observations.
        now: Timestamp for ``generated_at``; defaults to the current UTC time.

    Returns:
        A ProspectusBriefing.  Identical inputs give identical output apart
        from ``generated_at``.
    """
    raw_text = strip_html(html)
    text = strip_boilerplate(raw_text)
    sections = extract_sections(raw_text, thresholds=thresholds)

    metrics = build_metrics(text, sections, thresholds=thresholds)
    briefing_sections = build_briefing_sections(sections, thresholds=thresholds)

    stamp = (now or datetime.now(UTC)).isoformat(timespec="seconds")
    return ProspectusBriefing(
        meta=meta,
        overview=build_overview(raw_text, briefing_sections, meta),
        summary=build_summary(meta, metrics),
        offering_details=extract_offering_details(raw_text),
        sections=tuple(briefing_sections),
        metrics=metrics,
        generated_at=stamp,
    )
