"""IPO filing lists from EDGAR.

Two layers of IPO activity:

- pipeline: S-1 / F-1 registration statements and amendments (an IPO may
  happen)
- completed: 424B4 final prospectuses (the IPO priced)

:func:`fetch_ipo_filings` queries full-text search for each layer and falls
back to the "current filings" Atom feeds when search returns nothing or
fails, then merges the two layers into one list with an ``ipo_status``.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any

from bs4 import BeautifulSoup

from prospectus.briefing import FilingMetadata
from prospectus.edgar import (
    EdgarClient,
    EdgarError,
    company_search_url,
    normalize_accession,
    normalize_cik,
)

log = logging.getLogger(__name__)

PIPELINE_FORMS: tuple[str, ...] = ("S-1", "S-1/A", "F-1", "F-1/A")
CONFIRMATION_FORMS: tuple[str, ...] = ("424B4",)

# Forms with their own Atom feed; amendments are included in the base feed.
_PIPELINE_FEEDS: tuple[str, ...] = ("S-1", "F-1")

SOFTWARE_SIC_CODES: frozenset[str] = frozenset(str(c) for c in range(7370, 7380))

_ATOM_TITLE_RE = re.compile(
    r"^(?P<form>[\w/-]+)\s*[-–]\s*(?P<name>.+?)\s*\((?P<cik>\d+)\)\s*"
    r"(?:\([^)]*\))?$"
)
_ATOM_ACCESSION_RE = re.compile(r"accession-number=([\w-]+)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class RecentFiling:
    cik: str
    company_name: str
    filing_date: str
    form_type: str
    accession_number: str
    ipo_status: str = ""  # "pipeline" | "completed" | ""

    @property
    def id(self) -> str:
        return f"{self.cik}-{self.accession_number or self.filing_date}"

    @property
    def index_url(self) -> str:
        return company_search_url(self.cik, self.form_type or "S-1")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "cik": self.cik,
            "company_name": self.company_name,
            "filing_date": self.filing_date,
            "form_type": self.form_type,
            "accession_number": self.accession_number,
            "ipo_status": self.ipo_status,
            "index_url": self.index_url,
        }


@dataclass(frozen=True, slots=True)
class CompanyProfile:
    name: str
    sic_code: str | None
    sic_description: str | None
    tickers: tuple[str, ...] = ()

    @property
    def is_software(self) -> bool:
        return is_software_company(self.sic_code or "")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_search_hits(payload: dict[str, Any], default_form: str) -> list[RecentFiling]:
    """Full-text search JSON (``hits.hits[]._source``) to filings."""
    hits = (payload.get("hits") or {}).get("hits") or []
    filings: list[RecentFiling] = []
    for hit in hits:
        src = (hit or {}).get("_source")
        if not src:
            continue
        ciks = src.get("ciks") or []
        if not ciks:
            continue
        names = src.get("display_names") or []
        accession = src.get("accession_number") or src.get("adsh") or ""
        filings.append(RecentFiling(
            cik=str(ciks[0]).zfill(10),
            company_name=names[0] if names else "Unknown",
            filing_date=src.get("file_date") or "",
            form_type=src.get("form") or default_form,
            accession_number=accession,
        ))
    return filings


def parse_atom_feed(xml: str, form_label: str) -> list[RecentFiling]:
    """browse-edgar Atom entries to filings.

    Entry titles look like ``"S-1 - Acme Corp (0001234567) (Filer)"``; the
    accession number is carried in the entry id.
    """
    soup = BeautifulSoup(xml, "html.parser")
    filings: list[RecentFiling] = []
    for entry in soup.find_all("entry"):
        title_tag = entry.find("title")
        id_tag = entry.find("id")
        if title_tag is None or id_tag is None:
            continue
        title = title_tag.get_text(strip=True)
        entry_id = id_tag.get_text(strip=True)
        updated_tag = entry.find("updated")
        updated = updated_tag.get_text(strip=True) if updated_tag else ""
        category = entry.find("category")
        form = (category.get("term") if category else None) or form_label

        acc_match = _ATOM_ACCESSION_RE.search(entry_id)
        accession = acc_match.group(1) if acc_match else entry_id.rsplit(",", 1)[-1]

        m = _ATOM_TITLE_RE.match(title)
        if m:
            cik = m.group("cik").zfill(10)
            name = m.group("name").strip()
        else:
            cik = ""
            name = re.sub(r"^[\w/-]+\s*[-–]\s*", "", title).strip()

        filings.append(RecentFiling(
            cik=cik,
            company_name=name or "Unknown",
            filing_date=updated[:10],
            form_type=str(form),
            accession_number=accession,
        ))
    return filings


def company_from_submissions(payload: dict[str, Any]) -> CompanyProfile:
    sic = payload.get("sic")
    sic_description = payload.get("sicDescription")
    tickers = payload.get("tickers")
    return CompanyProfile(
        name=payload.get("name") or "",
        sic_code=str(sic) if sic not in (None, "") else None,
        sic_description=str(sic_description) if sic_description is not None else None,
        tickers=tuple(tickers) if isinstance(tickers, list) else (),
    )


def find_filing(payload: dict[str, Any], accession: str) -> RecentFiling | None:
    """Look up an accession in ``filings.recent`` of a submissions payload.

    Matches dashed or undashed accession numbers.  Returns None when the
    filing is not among the recent filings.
    """
    recent = (payload.get("filings") or {}).get("recent") or {}
    accessions: list[str] = recent.get("accessionNumber") or []
    forms: list[str] = recent.get("form") or []
    dates: list[str] = recent.get("filingDate") or []

    wanted = accession.replace("-", "")
    idx = next(
        (i for i, a in enumerate(accessions) if (a or "").replace("-", "") == wanted),
        None,
    )
    if idx is None:
        return None
    return RecentFiling(
        cik=str(payload.get("cik") or "").zfill(10),
        company_name=payload.get("name") or "Unknown",
        filing_date=dates[idx] if idx < len(dates) else "",
        form_type=forms[idx] if idx < len(forms) else "",
        accession_number=accessions[idx],
    )


def is_software_company(sic_code: str) -> bool:
    return sic_code.strip() in SOFTWARE_SIC_CODES


# ---------------------------------------------------------------------------
# Dates and merging
# ---------------------------------------------------------------------------


def date_range(days_back: int, today: date | None = None) -> tuple[str, str]:
    """ISO ``(date_from, date_to)`` covering at least one day back."""
    end = today or date.today()
    start = end - timedelta(days=max(1, days_back))
    return start.isoformat(), end.isoformat()


def filter_by_date(
    filings: Iterable[RecentFiling], date_from: str, date_to: str,
) -> list[RecentFiling]:
    """Keep filings dated within ``[date_from, date_to]`` (inclusive)."""
    return [
        f for f in filings
        if len(f.filing_date) >= 10 and date_from <= f.filing_date[:10] <= date_to
    ]


def merge_ipo_filings(
    completed: Iterable[RecentFiling],
    pipeline: Iterable[RecentFiling],
) -> list[RecentFiling]:
    """Dedupe by (cik, accession), completed first; newest filing first."""
    merged: list[RecentFiling] = []
    seen: set[tuple[str, str]] = set()
    for status, filings in (("completed", completed), ("pipeline", pipeline)):
        for f in filings:
            key = (f.cik, f.accession_number)
            if key in seen:
                continue
            seen.add(key)
            merged.append(replace(f, ipo_status=status))
    merged.sort(key=lambda f: f.filing_date, reverse=True)
    return merged


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


def _search_layer(
    client: EdgarClient,
    date_from: str,
    date_to: str,
    forms: tuple[str, ...],
) -> list[RecentFiling]:
    try:
        payload = client.search_filings(date_from, date_to, forms)
    except EdgarError as exc:
        log.warning("Full-text search for %s failed (%s); using feeds", forms, exc)
        return []
    return parse_search_hits(payload, forms[0])


def _feed_layer(
    client: EdgarClient,
    feeds: tuple[str, ...],
    date_from: str,
    date_to: str,
) -> list[RecentFiling]:
    filings: list[RecentFiling] = []
    for form in feeds:
        filings.extend(parse_atom_feed(client.fetch_recent_feed(form), form))
    return filter_by_date(filings, date_from, date_to)


def fetch_ipo_filings(
    client: EdgarClient,
    days_back: int,
    today: date | None = None,
) -> list[RecentFiling]:
    """Pipeline and completed IPO filings from the last *days_back* days."""
    date_from, date_to = date_range(days_back, today)
    log.info("Fetching IPO filings %s .. %s", date_from, date_to)

    pipeline = _search_layer(client, date_from, date_to, PIPELINE_FORMS)
    if not pipeline:
        pipeline = _feed_layer(client, _PIPELINE_FEEDS, date_from, date_to)

    completed = _search_layer(client, date_from, date_to, CONFIRMATION_FORMS)
    if not completed:
        completed = _feed_layer(client, CONFIRMATION_FORMS, date_from, date_to)

    merged = merge_ipo_filings(completed, pipeline)
    log.info(
        "Merged %d filings (%d completed, %d pipeline)",
        len(merged), len(completed), len(pipeline),
    )
    return merged


def filing_metadata(
    client: EdgarClient,
    cik: str,
    accession: str,
    *,
    prospectus_url: str = "",
    company_name: str = "",
    filing_date: str = "",
    form_type: str = "",
) -> FilingMetadata:
    """Metadata for a filing, filling gaps from the submissions API.

    Values passed in win; the submissions request is skipped when nothing
    is missing.
    """
    if not (company_name and filing_date and form_type):
        payload = client.fetch_submissions(cik)
        company_name = company_name or company_from_submissions(payload).name
        filing = find_filing(payload, accession)
        if filing is not None:
            filing_date = filing_date or filing.filing_date
            form_type = form_type or filing.form_type
        else:
            log.info("Accession %s not among recent filings of CIK %s", accession, cik)
    return FilingMetadata(
        company_name=company_name,
        cik=normalize_cik(cik),
        accession_number=normalize_accession(accession),
        filing_date=filing_date,
        form_type=form_type,
        prospectus_url=prospectus_url,
    )
