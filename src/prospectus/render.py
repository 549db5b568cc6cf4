"""Standalone HTML export of a ProspectusBriefing.

Presentation only: the document carries its own stylesheet so the file
can be opened offline.  Every interpolated value is HTML-escaped.
"""
from __future__ import annotations

import re
from datetime import datetime
from html import escape

from prospectus.briefing import ProspectusBriefing

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; max-width: 720px; margin: 2rem auto; padding: 0 1.5rem; color: #1a1a1a; line-height: 1.6; }
    h1 { font-size: 1.5rem; margin-bottom: 0.25rem; }
    h2 { font-size: 0.75rem; text-transform: uppercase; letter-spacing: 0.05em; color: #666; margin-top: 2rem; margin-bottom: 0.5rem; }
    h3 { font-size: 1rem; margin-top: 1.5rem; margin-bottom: 0.5rem; }
    blockquote { margin: 0.5rem 0; padding-left: 1rem; border-left: 3px solid #ccc; color: #444; font-style: italic; }
    .observation { font-size: 0.9rem; color: #555; margin-top: 0.25rem; }
    ul { margin: 0.5rem 0; padding-left: 1.5rem; }
    .meta { font-size: 0.8rem; color: #666; margin-bottom: 2rem; }
    .disclaimer { margin-top: 3rem; padding-top: 1rem; border-top: 1px solid #ddd; font-size: 0.75rem; color: #888; }
"""

_DISCLAIMER = (
    "This document introduces no analysis beyond the filing itself. All "
    "quoted material is extracted verbatim. No external facts or inferred "
    "intent have been added."
)


def format_filing_date(date_str: str) -> str:
    """Format an ISO date as "Jan 15, 2026"; "—" when missing."""
    if not date_str or len(date_str) < 10:
        return "—"
    day_part = date_str[:10]
    year, month, day = (day_part.split("-") + ["", "", ""])[:3]
    if not (month.isdigit() and day.isdigit()):
        return day_part
    mi = int(month) - 1
    if not 0 <= mi < 12:
        return day_part
    return f"{_MONTHS[mi]} {int(day)}, {year}"


def _format_generated_at(stamp: str) -> str:
    try:
        return datetime.fromisoformat(stamp).strftime("%Y-%m-%d %H:%M UTC")
    except ValueError:
        return stamp


def briefing_filename(briefing: ProspectusBriefing) -> str:
    """Download filename: ``Prospectus-Briefing-<Company>-<accession>.html``."""
    company = re.sub(r"\s+", "-", briefing.company_name.strip()) or "Filing"
    company = re.sub(r"[^\w.-]", "", company)
    accession = re.sub(r"[^\w-]", "", briefing.accession_number) or "unknown"
    return f"Prospectus-Briefing-{company}-{accession}.html"


def _render_sections(briefing: ProspectusBriefing) -> str:
    blocks: list[str] = []
    for sec in briefing.sections:
        excerpts = "\n  ".join(
            f"<blockquote>&ldquo;{escape(ex.quote)}&rdquo;</blockquote>\n"
            f"  <p class=\"observation\">{escape(ex.observation)}</p>"
            for ex in sec.excerpts
        )
        blocks.append(
            f"<section>\n  <h3>{escape(sec.heading)}</h3>\n  {excerpts}\n</section>"
        )
    if not blocks:
        return "<p>No substantive sections could be located in the filing.</p>"
    return "\n".join(blocks)


def _render_offering(briefing: ProspectusBriefing) -> str:
    details = briefing.offering_details
    rows = [
        ("Offering size", details.offering_size),
        ("Shares offered", details.shares_offered),
        ("Price per share", details.price_per_share),
        ("Price range", details.price_range),
    ]
    items = [
        f"<li>{label}: {escape(value)}</li>" for label, value in rows if value
    ]
    if not items:
        return ""
    return "<h2>Offering terms</h2>\n  <ul>\n    " + "\n    ".join(items) + "\n  </ul>"


def _render_metrics(briefing: ProspectusBriefing) -> str:
    m = briefing.metrics
    phrases = ", ".join(
        f"{escape(p.phrase)} ({p.count})" for p in m.conditional_phrases
    ) or "none"
    word_counts = "\n    ".join(
        f"<li>{escape(s.name)}: {s.words}"
        + (f" ({escape(s.note)})" if s.note else "")
        + "</li>"
        for s in m.section_word_counts
    )
    underdeveloped = ""
    if m.notably_underdeveloped:
        underdeveloped = (
            "<h3>Minimally addressed or absent</h3>\n  <ul>\n    "
            + "\n    ".join(
                f"<li>{escape(u.section)}: {escape(u.note)}</li>"
                for u in m.notably_underdeveloped
            )
            + "\n  </ul>"
        )
    return f"""
  <h3>Linguistic metrics</h3>
  <ul>
    <li>Conditional phrases (may, intend, expect): {m.conditional_total}</li>
    <li>Definitive phrases (have, do, generate): {m.definitive_total}</li>
    <li>Ratio: {m.conditional_ratio:.2f}</li>
    <li>Most frequent conditional phrases: {phrases}</li>
  </ul>
  <h3>Section length (words)</h3>
  <ul>
    {word_counts}
  </ul>
  {underdeveloped}
"""


def render_briefing_html(briefing: ProspectusBriefing) -> str:
    """Render a briefing as a standalone HTML5 document."""
    meta = briefing.meta
    source = ""
    if meta.prospectus_url:
        url = escape(meta.prospectus_url, quote=True)
        source = f' · <a href="{url}">Source document</a>'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Prospectus Briefing: {escape(meta.company_name)}</title>
  <style>{_STYLE}  </style>
</head>
<body>
  <h1>Prospectus Briefing</h1>
  <p class="meta">{escape(meta.company_name)} · CIK {escape(meta.cik)} · {escape(meta.form_type)} · Accession {escape(meta.accession_number)} · Filed {escape(format_filing_date(meta.filing_date))}{source}</p>
  <p class="meta">Generated {escape(_format_generated_at(briefing.generated_at))} · All excerpts verbatim from the filing.</p>

  <h2>Overview</h2>
  <p>{escape(briefing.overview)}</p>
  <p>{escape(briefing.summary)}</p>
  {_render_offering(briefing)}

  <h2>Excerpts by section</h2>
  {_render_sections(briefing)}

  <h2>Metrics</h2>
  {_render_metrics(briefing)}

  <p class="disclaimer">{_DISCLAIMER}</p>
</body>
</html>
"""
