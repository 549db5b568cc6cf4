"""Linguistic metrics over prospectus text.

Two fixed lexical classes serve as crude proxies:

- CONDITIONAL -- hedging / forward-looking verbs (may, could, intend, ...)
- DEFINITIVE  -- stated-as-fact verbs (have, do, generate, ...)

Counts are plain regex tallies; there is no NLP model behind them.  Section
word counts and the "notably underdeveloped" checks compare discovered
sections against fixed expectations.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from prospectus.section_parser import SectionSpan
from prospectus.thresholds import DEFAULT_THRESHOLDS, AnalysisThresholds

CONDITIONAL_RE: re.Pattern[str] = re.compile(
    r"\b(we\s+)?(may|might|could|would|should|intend|expect|believe|"
    r"anticipate|seek|plan|aim)\b",
    re.IGNORECASE,
)

DEFINITIVE_RE: re.Pattern[str] = re.compile(
    r"\b(we\s+)?(have|has|had|do|does|did|generate|generated|operate|"
    r"operates|provide|provides)\b",
    re.IGNORECASE,
)

EXPECTED_SECTIONS: tuple[str, ...] = (
    "Risk Factors",
    "Use of Proceeds",
    "Business",
    "Capitalization",
    "Dilution",
    "Underwriting",
)

NOT_LOCATED_NOTE = "Not located as a distinct section in the filing."
RISK_SECTION = "Risk Factors"


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PhraseCount:
    phrase: str
    count: int


@dataclass(frozen=True, slots=True)
class SectionWordCount:
    name: str
    words: int
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "words": self.words}
        if self.note is not None:
            out["note"] = self.note
        return out


@dataclass(frozen=True, slots=True)
class UnderdevelopedSection:
    section: str
    note: str


@dataclass(frozen=True, slots=True)
class PhraseMetrics:
    """Document-wide phrase tallies.

    ``conditional_counts`` preserves first-encounter order, which is the
    tie-break for :meth:`top_phrases`.
    """

    conditional_counts: dict[str, int]
    conditional_total: int
    definitive_total: int

    @property
    def ratio(self) -> float:
        """Conditional / definitive, floored to 0.0 when nothing definitive.

        A 0.0 here means "no definitive language to compare against" as
        much as "no hedging"; check the totals to tell them apart.
        """
        if self.definitive_total <= 0:
            return 0.0
        return self.conditional_total / self.definitive_total

    def top_phrases(self, limit: int = 10) -> list[PhraseCount]:
        ranked = sorted(
            self.conditional_counts.items(), key=lambda kv: kv[1], reverse=True,
        )
        return [PhraseCount(phrase, count) for phrase, count in ranked[:limit]]


@dataclass(frozen=True, slots=True)
class BriefingMetrics:
    conditional_phrases: tuple[PhraseCount, ...]
    conditional_total: int
    definitive_total: int
    conditional_ratio: float
    section_word_counts: tuple[SectionWordCount, ...]
    notably_underdeveloped: tuple[UnderdevelopedSection, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "conditional_phrases": [
                {"phrase": p.phrase, "count": p.count}
                for p in self.conditional_phrases
            ],
            "conditional_total": self.conditional_total,
            "definitive_total": self.definitive_total,
            "conditional_ratio": self.conditional_ratio,
            "section_word_counts": [s.to_dict() for s in self.section_word_counts],
            "notably_underdeveloped": [
                {"section": u.section, "note": u.note}
                for u in self.notably_underdeveloped
            ],
        }


# ---------------------------------------------------------------------------
# Counting
# ---------------------------------------------------------------------------


def count_phrases(text: str, pattern: re.Pattern[str]) -> dict[str, int]:
    """Tally matches of a phrase-class pattern, keyed by lower-cased verb.

    "We may" and "may" both count toward "may".  Keys appear in order of
    first occurrence.
    """
    counts: dict[str, int] = {}
    for m in pattern.finditer(text):
        phrase = (m.group(2) or m.group(0)).lower()
        counts[phrase] = counts.get(phrase, 0) + 1
    return counts


def count_matches(text: str, pattern: re.Pattern[str]) -> int:
    return sum(1 for _ in pattern.finditer(text))


def word_count(text: str) -> int:
    return len(text.split())


def compute_metrics(text: str) -> PhraseMetrics:
    """Count conditional and definitive phrasing across *text*."""
    conditional_counts = count_phrases(text, CONDITIONAL_RE)
    return PhraseMetrics(
        conditional_counts=conditional_counts,
        conditional_total=sum(conditional_counts.values()),
        definitive_total=count_matches(text, DEFINITIVE_RE),
    )


# ---------------------------------------------------------------------------
# Section-level checks
# ---------------------------------------------------------------------------


def section_word_counts(
    sections: list[SectionSpan],
    total_words: int,
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
) -> list[SectionWordCount]:
    """Word count per section, noting unusually brief or extensive risk disclosure."""
    results: list[SectionWordCount] = []
    for section in sections:
        words = section.word_count
        pct = (words / total_words) * 100 if total_words > 0 else 0.0
        note: str | None = None
        if RISK_SECTION in section.name:
            if pct < thresholds.risk_brief_pct:
                note = "Unusually brief"
            elif pct > thresholds.risk_extensive_pct:
                note = "Extensive"
        results.append(SectionWordCount(name=section.name, words=words, note=note))
    return results


def find_underdeveloped(
    sections: list[SectionSpan],
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
) -> list[UnderdevelopedSection]:
    """Report expected sections that are absent or thin."""
    results: list[UnderdevelopedSection] = []
    for expected in EXPECTED_SECTIONS:
        needle = expected.upper()
        found = next((s for s in sections if needle in s.name.upper()), None)
        if found is None:
            results.append(UnderdevelopedSection(expected, NOT_LOCATED_NOTE))
            continue
        words = found.word_count
        if words < thresholds.underdeveloped_words:
            results.append(UnderdevelopedSection(
                expected, f"Present but brief ({words} words).",
            ))
    return results


def build_metrics(
    text: str,
    sections: list[SectionSpan],
    *,
    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS,
) -> BriefingMetrics:
    """Assemble document-wide and per-section metrics."""
    phrase_metrics = compute_metrics(text)
    return BriefingMetrics(
        conditional_phrases=tuple(
            phrase_metrics.top_phrases(thresholds.top_phrase_limit)
        ),
        conditional_total=phrase_metrics.conditional_total,
        definitive_total=phrase_metrics.definitive_total,
        conditional_ratio=phrase_metrics.ratio,
        section_word_counts=tuple(section_word_counts(
            sections, word_count(text), thresholds=thresholds,
        )),
        notably_underdeveloped=tuple(
            find_underdeveloped(sections, thresholds=thresholds)
        ),
    )
