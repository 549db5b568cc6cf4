"""SEC EDGAR fetch layer.

Fetches filing indexes, prospectus documents, submissions JSON, full-text
search results and the "current filings" Atom feeds.  SEC requires a
descriptive User-Agent and asks clients to stay well under 10 requests per
second, so every outbound request passes through one shared
:class:`RateLimiter`.

Failures surface as :class:`EdgarError` carrying an HTTP-style status.
There are no retries here; callers decide.

Index parsing (which document in a filing is the prospectus) sits behind
the :class:`ProspectusLocator` protocol so the strategy can be swapped
without touching the client.
"""
from __future__ import annotations

import logging
import os
import re
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import orjson
from bs4 import BeautifulSoup

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "ipo-briefing/0.1 (research@example.com)"
DEFAULT_MIN_INTERVAL = 0.15

ARCHIVES_BASE = "https://www.sec.gov/Archives/edgar/data"
SUBMISSIONS_BASE = "https://data.sec.gov/submissions"
SEARCH_URL = "https://efts.sec.gov/LATEST/search-index"
BROWSE_URL = "https://www.sec.gov/cgi-bin/browse-edgar"

MAX_FEED_COUNT = 80

ACCESSION_RE: re.Pattern[str] = re.compile(r"^\d{10}-\d{2}-\d{6}$")
_ACCESSION_UNDASHED_RE: re.Pattern[str] = re.compile(r"^\d{18}$")
_PROSPECTUS_LINK_RE: re.Pattern[str] = re.compile(r"424b4|424b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class EdgarError(Exception):
    """An EDGAR request failed; ``status`` mirrors the HTTP status to report."""

    def __init__(self, message: str, status: int = 502) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class FilingNotFoundError(EdgarError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status=404)


class InvalidIdentifierError(EdgarError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status=400)


# ---------------------------------------------------------------------------
# Identifiers and URLs
# ---------------------------------------------------------------------------


def normalize_cik(raw: str | int) -> str:
    """Digits only, zero-padded to 10 ("1318605" -> "0001318605")."""
    digits = re.sub(r"\D", "", str(raw))
    if not digits or len(digits) > 10:
        raise InvalidIdentifierError(f"Invalid CIK: {raw!r}")
    return digits.zfill(10)


def normalize_accession(raw: str) -> str:
    """Dashed canonical accession from dashed or 18-digit input."""
    value = (raw or "").strip()
    if ACCESSION_RE.match(value):
        return value
    if _ACCESSION_UNDASHED_RE.match(value):
        return f"{value[:10]}-{value[10:12]}-{value[12:]}"
    raise InvalidIdentifierError(f"Invalid accession number: {raw!r}")


def archive_base_url(cik: str, accession: str) -> str:
    """Folder URL for a filing: ``.../data/<cik>/<accession-no-dashes>/``."""
    short_cik = normalize_cik(cik).lstrip("0") or "0"
    acc = normalize_accession(accession).replace("-", "")
    return f"{ARCHIVES_BASE}/{short_cik}/{acc}/"


def filing_index_url(cik: str, accession: str) -> str:
    acc = normalize_accession(accession)
    return f"{archive_base_url(cik, acc)}{acc}-index.htm"


def submissions_url(cik: str) -> str:
    return f"{SUBMISSIONS_BASE}/CIK{normalize_cik(cik)}.json"


def company_search_url(cik: str, form_type: str = "S-1") -> str:
    query = urllib.parse.urlencode({
        "action": "getcompany",
        "CIK": normalize_cik(cik),
        "type": form_type,
        "dateb": "",
        "owner": "exclude",
        "count": 40,
    })
    return f"{BROWSE_URL}?{query}"


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


class RateLimiter:
    """Minimum spacing between outbound requests.

    Holds the last request time behind a lock; concurrent callers
    serialize through :meth:`wait`.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError(f"min_interval must be non-negative, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """Block until the next request may go out; returns the delay slept."""
        with self._lock:
            delay = 0.0
            if self._last is not None:
                elapsed = self._clock() - self._last
                if elapsed < self.min_interval:
                    delay = self.min_interval - elapsed
            if delay > 0:
                self._sleep(delay)
            self._last = self._clock()
            return delay


# ---------------------------------------------------------------------------
# Prospectus location in a filing index
# ---------------------------------------------------------------------------


class ProspectusLocator(Protocol):
    def locate(self, index_html: str, base_url: str) -> str | None:
        """Return the absolute URL of the prospectus document, if any."""
        ...


class IndexLinkLocator:
    """Pick the prospectus from the document links of a filing index page.

    Considers links to ``.htm``/``.html`` documents that are not index
    pages; prefers one that names a 424B form, else the first.
    """

    def locate(self, index_html: str, base_url: str) -> str | None:
        soup = BeautifulSoup(index_html, "html.parser")
        candidates: list[str] = []
        for a in soup.find_all("a", href=True):
            href = str(a["href"]).strip()
            label = a.get_text(strip=True)
            href_l = href.lower()
            label_l = label.lower()
            is_doc = href_l.endswith((".htm", ".html")) or label_l.endswith(
                (".htm", ".html")
            )
            if not is_doc or "index" in href_l or "index" in label_l:
                continue
            if _PROSPECTUS_LINK_RE.search(href) or _PROSPECTUS_LINK_RE.search(label):
                return urllib.parse.urljoin(base_url, href)
            candidates.append(href)
        if not candidates:
            return None
        return urllib.parse.urljoin(base_url, candidates[0])


@dataclass(frozen=True, slots=True)
class ProspectusDocument:
    """Prospectus HTML and the document URL it was resolved to."""

    html: str
    url: str


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("cp1252", errors="replace")


class EdgarClient:
    """Thin EDGAR HTTP client with a shared rate limiter.

    Parameters
    ----------
    user_agent:
        Sent on every request.  Falls back to ``SEC_USER_AGENT`` env var.
    rate_limiter:
        Shared limiter; pass the same instance to every client that talks
        to SEC from one process.
    locator:
        Strategy for finding the prospectus in a filing index.
    urlopen:
        ``urllib.request.urlopen``-compatible callable.
    """

    def __init__(
        self,
        *,
        user_agent: str = "",
        rate_limiter: RateLimiter | None = None,
        locator: ProspectusLocator | None = None,
        timeout: float = 30.0,
        urlopen: Callable[..., Any] = urllib.request.urlopen,
    ) -> None:
        self._user_agent = (
            user_agent or os.environ.get("SEC_USER_AGENT", "") or DEFAULT_USER_AGENT
        )
        self._limiter = rate_limiter or RateLimiter()
        self._locator: ProspectusLocator = locator or IndexLinkLocator()
        self._timeout = timeout
        self._urlopen = urlopen

    @classmethod
    def from_env(cls) -> EdgarClient:
        """Client configured from ``SEC_USER_AGENT`` and
        ``PROSPECTUS_MIN_REQUEST_INTERVAL`` (seconds)."""
        raw_interval = os.environ.get("PROSPECTUS_MIN_REQUEST_INTERVAL", "")
        interval = float(raw_interval) if raw_interval else DEFAULT_MIN_INTERVAL
        return cls(rate_limiter=RateLimiter(interval))

    @property
    def user_agent(self) -> str:
        return self._user_agent

    # -- raw requests -------------------------------------------------------

    def fetch_bytes(self, url: str, *, accept: str = "*/*") -> bytes:
        self._limiter.wait()
        req = urllib.request.Request(
            url,
            headers={"User-Agent": self._user_agent, "Accept": accept},
        )
        log.debug("GET %s", url)
        try:
            with self._urlopen(req, timeout=self._timeout) as resp:
                return resp.read()
        except urllib.error.HTTPError as exc:
            log.warning("SEC returned %s for %s", exc.code, url)
            if exc.code == 404:
                raise FilingNotFoundError(f"Not found on EDGAR: {url}") from exc
            raise EdgarError(
                f"SEC returned HTTP {exc.code} for {url}", status=exc.code,
            ) from exc
        except (urllib.error.URLError, TimeoutError) as exc:
            reason = getattr(exc, "reason", exc)
            log.warning("SEC request failed for %s: %s", url, reason)
            raise EdgarError(f"SEC request failed: {reason}") from exc

    def fetch_text(self, url: str, *, accept: str = "text/html,application/xhtml+xml") -> str:
        return _decode(self.fetch_bytes(url, accept=accept))

    def fetch_json(self, url: str) -> Any:
        raw = self.fetch_bytes(url, accept="application/json")
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise EdgarError(f"Malformed JSON from {url}") from exc

    # -- EDGAR endpoints ----------------------------------------------------

    def fetch_submissions(self, cik: str) -> dict[str, Any]:
        """Company submissions JSON (name, SIC, tickers, recent filings)."""
        payload = self.fetch_json(submissions_url(cik))
        if not isinstance(payload, dict):
            raise EdgarError(f"Unexpected submissions payload for CIK {cik}")
        return payload

    def search_filings(
        self,
        date_from: str,
        date_to: str,
        forms: tuple[str, ...],
        *,
        size: int = 100,
    ) -> dict[str, Any]:
        """EDGAR full-text search for the given forms in a date range."""
        terms = " OR ".join(f'"{f}"' if "/" in f else f for f in forms)
        query = urllib.parse.urlencode({
            "q": f"forms:({terms})",
            "dateRange": "custom",
            "startdt": date_from,
            "enddt": date_to,
            "from": 0,
            "size": size,
        })
        payload = self.fetch_json(f"{SEARCH_URL}?{query}")
        if not isinstance(payload, dict):
            raise EdgarError("Unexpected full-text search payload")
        return payload

    def fetch_recent_feed(self, form_type: str, count: int = MAX_FEED_COUNT) -> str:
        """Atom feed of the most recent filings of one form type."""
        query = urllib.parse.urlencode({
            "action": "getcurrent",
            "CIK": "",
            "type": form_type,
            "company": "",
            "dateb": "",
            "owner": "exclude",
            "start": 0,
            "count": max(1, min(count, MAX_FEED_COUNT)),
            "output": "atom",
        })
        return self.fetch_text(
            f"{BROWSE_URL}?{query}",
            accept="application/atom+xml, application/xml, text/xml",
        )

    def resolve_prospectus_url(self, cik: str, accession: str) -> str:
        """URL of the prospectus document inside a filing."""
        index_html = self.fetch_text(filing_index_url(cik, accession))
        url = self._locator.locate(index_html, archive_base_url(cik, accession))
        if not url:
            raise FilingNotFoundError(
                f"Prospectus document not found in filing {accession}"
            )
        log.info("Resolved prospectus for %s: %s", accession, url)
        return url

    def fetch_prospectus(self, cik: str, accession: str) -> ProspectusDocument:
        """Resolve and download the prospectus HTML for a filing."""
        url = self.resolve_prospectus_url(cik, accession)
        return ProspectusDocument(html=self.fetch_text(url), url=url)
