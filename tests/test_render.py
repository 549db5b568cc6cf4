"""Tests for prospectus.render module."""
from dataclasses import replace
from datetime import UTC, datetime

import pytest

from prospectus.briefing import FilingMetadata, analyze_prospectus
from prospectus.render import (
    briefing_filename,
    format_filing_date,
    render_briefing_html,
)

NOW = datetime(2026, 1, 20, 9, 30, tzinfo=UTC)


class TestFormatFilingDate:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2026-01-15", "Jan 15, 2026"),
            ("2025-12-01T10:00:00", "Dec 1, 2025"),
            ("", "—"),
            ("2026-01", "—"),
            ("2026-13-01", "2026-13-01"),
        ],
    )
    def test_formats(self, raw: str, expected: str) -> None:
        assert format_filing_date(raw) == expected


class TestBriefingFilename:
    def test_company_and_accession(self, prospectus_html: str, filing_meta: FilingMetadata) -> None:
        briefing = analyze_prospectus(prospectus_html, filing_meta, now=NOW)
        assert briefing_filename(briefing) == (
            "Prospectus-Briefing-Acme-Cloud-Inc.-0001234567-26-000012.html"
        )

    def test_missing_values(self) -> None:
        briefing = analyze_prospectus("", FilingMetadata(), now=NOW)
        assert briefing_filename(briefing) == "Prospectus-Briefing-Filing-unknown.html"


class TestRenderBriefingHtml:
    def test_standalone_document(self, prospectus_html: str, filing_meta: FilingMetadata) -> None:
        briefing = analyze_prospectus(prospectus_html, filing_meta, now=NOW)
        doc = render_briefing_html(briefing)
        assert doc.startswith("<!DOCTYPE html>")
        assert "<style>" in doc
        assert "Acme Cloud, Inc." in doc
        assert "Filed Jan 15, 2026" in doc
        assert "Generated 2026-01-20 09:30 UTC" in doc
        for sec in briefing.sections:
            assert f"<h3>{sec.heading}</h3>" in doc
        assert "Price per share: $18.00 per share" in doc
        assert "Minimally addressed or absent" in doc
        assert "introduces no analysis beyond the filing" in doc

    def test_no_source_link_without_url(self, prospectus_html: str, filing_meta: FilingMetadata) -> None:
        doc = render_briefing_html(analyze_prospectus(prospectus_html, filing_meta, now=NOW))
        assert "Source document" not in doc

    def test_source_link_with_url(self, prospectus_html: str, filing_meta: FilingMetadata) -> None:
        meta = replace(
            filing_meta,
            prospectus_url="https://www.sec.gov/Archives/edgar/data/1234567/x.htm?a=1&b=2",
        )
        doc = render_briefing_html(analyze_prospectus(prospectus_html, meta, now=NOW))
        assert 'href="https://www.sec.gov/Archives/edgar/data/1234567/x.htm?a=1&amp;b=2"' in doc

    def test_escapes_interpolated_text(self, prospectus_html: str) -> None:
        meta = FilingMetadata(company_name="A&B <Holdings>", cik="1", accession_number="1")
        doc = render_briefing_html(analyze_prospectus(prospectus_html, meta, now=NOW))
        assert "A&amp;B &lt;Holdings&gt;" in doc
        assert "<Holdings>" not in doc

    def test_empty_briefing_renders(self) -> None:
        doc = render_briefing_html(analyze_prospectus("", FilingMetadata(), now=NOW))
        assert "No substantive sections could be located" in doc
        assert "Offering terms" not in doc
