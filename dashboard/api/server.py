"""FastAPI server for the IPO briefing dashboard.

Proxies SEC EDGAR (submissions, prospectus resolution, IPO filing lists)
and builds prospectus briefings on demand.  All EDGAR traffic goes through
one shared EdgarClient so the process keeps a single rate limiter.

Usage:
    cd dashboard
    SEC_USER_AGENT="Your Name you@example.com" \
      uvicorn api.server:app --reload --port 8000
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, ORJSONResponse, Response

from prospectus.briefing import ProspectusBriefing, analyze_prospectus
from prospectus.edgar import EdgarClient, EdgarError
from prospectus.filings import fetch_ipo_filings, filing_metadata
from prospectus.render import briefing_filename, render_briefing_html

log = logging.getLogger("dashboard")

# ---------------------------------------------------------------------------
# Globals
#
# One client per process: it owns the rate limiter that keeps us under
# SEC's request-rate ceiling.
# ---------------------------------------------------------------------------
_client: EdgarClient | None = None


def _get_client() -> EdgarClient:
    """Shared EDGAR client, created on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = EdgarClient.from_env()
    return _client


def _edgar_http_error(exc: EdgarError) -> HTTPException:
    return HTTPException(status_code=exc.status, detail=exc.message)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    client = _get_client()
    log.info("EDGAR client ready (User-Agent: %s)", client.user_agent)
    yield


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="IPO Briefing API",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Prospectus-Url", "Content-Disposition"],
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _build_briefing(
    cik: str,
    accession: str,
    company_name: str,
    filing_date: str,
    form_type: str,
) -> ProspectusBriefing:
    client = _get_client()
    try:
        doc = client.fetch_prospectus(cik, accession)
        meta = filing_metadata(
            client,
            cik,
            accession,
            prospectus_url=doc.url,
            company_name=company_name,
            filing_date=filing_date,
            form_type=form_type,
        )
    except EdgarError as exc:
        raise _edgar_http_error(exc) from exc
    return analyze_prospectus(doc.html, meta)


# ---------------------------------------------------------------------------
# Routes: Health
# ---------------------------------------------------------------------------
@app.get("/api/health")
async def health():
    return {"status": "alive"}


# ---------------------------------------------------------------------------
# Routes: SEC proxy
#
# Sync handlers: EDGAR fetches block, so FastAPI runs them in its
# threadpool. The shared rate limiter is thread-safe.
# ---------------------------------------------------------------------------
@app.get("/api/sec/submissions/{cik}")
def sec_submissions(cik: str) -> dict[str, Any]:
    """Company submissions JSON as returned by data.sec.gov."""
    try:
        return _get_client().fetch_submissions(cik.removeprefix("CIK"))
    except EdgarError as exc:
        raise _edgar_http_error(exc) from exc


@app.get("/api/sec/prospectus-url")
def sec_prospectus_url(
    cik: str = Query(..., min_length=1),
    accession: str = Query(..., min_length=1),
):
    try:
        url = _get_client().resolve_prospectus_url(cik, accession)
    except EdgarError as exc:
        raise _edgar_http_error(exc) from exc
    return {"url": url}


@app.get("/api/sec/prospectus", response_class=HTMLResponse)
def sec_prospectus(
    cik: str = Query(..., min_length=1),
    accession: str = Query(..., min_length=1),
):
    """Raw prospectus HTML; the resolved document URL is in X-Prospectus-Url."""
    try:
        doc = _get_client().fetch_prospectus(cik, accession)
    except EdgarError as exc:
        raise _edgar_http_error(exc) from exc
    return HTMLResponse(content=doc.html, headers={"X-Prospectus-Url": doc.url})


@app.get("/api/sec/ipo-filings")
def sec_ipo_filings(days: int = Query(30, ge=1, le=365)):
    """Pipeline (S-1/F-1) and completed (424B4) IPO filings, newest first."""
    try:
        filings = fetch_ipo_filings(_get_client(), days)
    except EdgarError as exc:
        raise _edgar_http_error(exc) from exc
    return {
        "days": days,
        "count": len(filings),
        "filings": [f.to_dict() for f in filings],
    }


# ---------------------------------------------------------------------------
# Routes: Briefing
# ---------------------------------------------------------------------------
@app.get("/api/briefing")
def briefing(
    cik: str = Query(..., min_length=1),
    accession: str = Query(..., min_length=1),
    company_name: str = Query(""),
    filing_date: str = Query(""),
    form_type: str = Query(""),
):
    result = _build_briefing(cik, accession, company_name, filing_date, form_type)
    return result.to_dict()


@app.get("/api/briefing/download")
def briefing_download(
    cik: str = Query(..., min_length=1),
    accession: str = Query(..., min_length=1),
    company_name: str = Query(""),
    filing_date: str = Query(""),
    form_type: str = Query(""),
):
    """Standalone HTML briefing as a file download."""
    result = _build_briefing(cik, accession, company_name, filing_date, form_type)
    return Response(
        content=render_briefing_html(result),
        media_type="text/html; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{briefing_filename(result)}"',
        },
    )
