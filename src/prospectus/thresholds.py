"""Tunable constants for the prospectus analysis pipeline.

Every cutoff the segmenter, excerpt extractor, metrics engine, and
observation rules use lives on :class:`AnalysisThresholds`.  The defaults
are hand-tuned against EDGAR 424B4 / S-1 filings; override them per call
or load a JSON file with :func:`load_thresholds`.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from prospectus.io_utils import load_json


@dataclass(frozen=True, slots=True)
class AnalysisThresholds:
    """Fixed cutoffs used across the pipeline."""

    # Segmenter
    min_section_chars: int = 150
    fallback_min_chars: int = 500
    fallback_span_chars: int = 20_000
    dedup_window: int = 30
    heading_line_max: int = 120

    # Excerpts / assembler
    excerpt_max_len: int = 280
    max_briefing_sections: int = 8

    # Section word-count notes (percent of total document words)
    risk_brief_pct: float = 3.0
    risk_extensive_pct: float = 25.0
    underdeveloped_words: int = 150

    # Observation rules
    heavy_conditional: int = 50
    moderate_conditional: int = 20
    brief_section_words: int = 200
    brief_average_words: int = 500
    extensive_section_words: int = 3000

    # Metrics
    top_phrase_limit: int = 10

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise ValueError(f"{f.name} must be non-negative, got {value}")
        if self.moderate_conditional > self.heavy_conditional:
            raise ValueError(
                "moderate_conditional must not exceed heavy_conditional"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisThresholds:
        """Build thresholds from a mapping, overriding only the given keys."""
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"Unknown threshold keys: {', '.join(unknown)}")
        coerced: dict[str, Any] = {}
        for key, value in data.items():
            default = getattr(DEFAULT_THRESHOLDS, key)
            try:
                coerced[key] = _coerce(value, float if isinstance(default, float) else int)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid value for {key}: {value!r}") from exc
        return replace(DEFAULT_THRESHOLDS, **coerced)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce(value: Any, kind: type) -> Any:
    if isinstance(value, bool) or value is None:
        raise TypeError(f"expected a number, got {value!r}")
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected a whole number, got {value!r}")
    return kind(value)


DEFAULT_THRESHOLDS = AnalysisThresholds()


def load_thresholds(path: Path) -> AnalysisThresholds:
    """Load threshold overrides from a JSON object file."""
    raw = load_json(path)
    if not isinstance(raw, dict):
        raise ValueError(f"Thresholds file must hold a JSON object: {path}")
    return AnalysisThresholds.from_dict(raw)
