"""Tests for prospectus.metrics module."""
import math

from prospectus.metrics import (
    CONDITIONAL_RE,
    DEFINITIVE_RE,
    NOT_LOCATED_NOTE,
    PhraseMetrics,
    build_metrics,
    compute_metrics,
    count_matches,
    count_phrases,
    find_underdeveloped,
    section_word_counts,
)
from prospectus.section_parser import SectionSpan
from prospectus.thresholds import AnalysisThresholds


def _span(name: str, words: int) -> SectionSpan:
    return SectionSpan(name=name, content=" ".join(["word"] * words), start=0)


class TestCountPhrases:
    def test_keyed_by_lowercased_verb(self) -> None:
        text = "We may grow. It MAY shrink. we could pivot."
        counts = count_phrases(text, CONDITIONAL_RE)
        assert counts == {"may": 2, "could": 1}

    def test_first_encounter_order(self) -> None:
        text = "expect intend may intend"
        assert list(count_phrases(text, CONDITIONAL_RE)) == ["expect", "intend", "may"]

    def test_word_boundaries(self) -> None:
        assert count_phrases("mayor planet aimless", CONDITIONAL_RE) == {}

    def test_definitive_matches(self) -> None:
        text = "We have customers. It has revenue. We generated cash."
        assert count_matches(text, DEFINITIVE_RE) == 3


class TestComputeMetrics:
    def test_totals_and_ratio(self) -> None:
        text = "We may grow. We could fail. We have revenue. We do business."
        m = compute_metrics(text)
        assert m.conditional_total == 2
        assert m.definitive_total == 2
        assert m.ratio == 1.0

    def test_ratio_zero_without_definitive(self) -> None:
        m = compute_metrics("We may expand. We might grow. We could pivot.")
        assert m.conditional_total == 3
        assert m.definitive_total == 0
        assert m.ratio == 0.0

    def test_ratio_finite_and_non_negative(self) -> None:
        for text in ["", "may", "have", "may may have", "do did does"]:
            r = compute_metrics(text).ratio
            assert math.isfinite(r)
            assert r >= 0.0

    def test_top_phrases_ties_keep_first_encounter(self) -> None:
        m = PhraseMetrics(
            conditional_counts={"intend": 2, "may": 5, "expect": 2, "could": 1},
            conditional_total=10,
            definitive_total=1,
        )
        top = m.top_phrases(3)
        assert [(p.phrase, p.count) for p in top] == [
            ("may", 5), ("intend", 2), ("expect", 2),
        ]

    def test_top_phrases_limit(self) -> None:
        text = " ".join([
            "may", "might", "could", "would", "should", "intend",
            "expect", "believe", "anticipate", "seek", "plan", "aim",
        ])
        assert len(compute_metrics(text).top_phrases()) == 10


class TestSectionWordCounts:
    def test_risk_factors_unusually_brief(self) -> None:
        sections = [_span("Risk Factors", 10), _span("Our Business", 990)]
        counts = section_word_counts(sections, 1000)
        assert counts[0].note == "Unusually brief"
        assert counts[1].note is None

    def test_risk_factors_extensive(self) -> None:
        sections = [_span("Risk Factors", 400)]
        (count,) = section_word_counts(sections, 1000)
        assert count.note == "Extensive"
        assert count.to_dict() == {"name": "Risk Factors", "words": 400, "note": "Extensive"}

    def test_no_note_in_normal_range(self) -> None:
        (count,) = section_word_counts([_span("Risk Factors", 100)], 1000)
        assert count.note is None
        assert "note" not in count.to_dict()

    def test_zero_total_words(self) -> None:
        (count,) = section_word_counts([_span("Underwriting", 0)], 0)
        assert count.words == 0


class TestFindUnderdeveloped:
    def test_missing_sections_reported(self) -> None:
        result = find_underdeveloped([_span("Risk Factors", 500)])
        missing = {u.section for u in result if u.note == NOT_LOCATED_NOTE}
        assert missing == {
            "Use of Proceeds", "Business", "Capitalization", "Dilution", "Underwriting",
        }

    def test_brief_section_reported(self) -> None:
        result = find_underdeveloped([_span("Use of Proceeds", 40)])
        notes = {u.section: u.note for u in result}
        assert notes["Use of Proceeds"] == "Present but brief (40 words)."

    def test_case_insensitive_substring(self) -> None:
        result = find_underdeveloped([_span("Our Business", 500)])
        assert "Business" not in {u.section for u in result}

    def test_threshold_configurable(self) -> None:
        t = AnalysisThresholds(underdeveloped_words=10)
        result = find_underdeveloped([_span("Dilution", 40)], thresholds=t)
        assert "Dilution" not in {u.section for u in result}


class TestBuildMetrics:
    def test_assembles_all_parts(self) -> None:
        text = "We may grow. We have revenue. " * 5
        sections = [_span("Risk Factors", 200)]
        m = build_metrics(text, sections)
        assert m.conditional_total == 5
        assert m.definitive_total == 5
        assert m.conditional_ratio == 1.0
        assert [p.phrase for p in m.conditional_phrases] == ["may"]
        assert m.section_word_counts[0].name == "Risk Factors"
        data = m.to_dict()
        assert data["conditional_phrases"] == [{"phrase": "may", "count": 5}]
        assert len(data["notably_underdeveloped"]) == 5
