"""Tests for prospectus.edgar module."""
from __future__ import annotations

import urllib.error
import urllib.request
from typing import Any

import orjson
import pytest

from prospectus.edgar import (
    EdgarClient,
    EdgarError,
    FilingNotFoundError,
    IndexLinkLocator,
    InvalidIdentifierError,
    RateLimiter,
    archive_base_url,
    company_search_url,
    filing_index_url,
    normalize_accession,
    normalize_cik,
    submissions_url,
)

CIK = "1234567"
ACCESSION = "0001234567-26-000012"
BASE = "https://www.sec.gov/Archives/edgar/data/1234567/000123456726000012/"

INDEX_HTML = f"""<html><body>
<table class="tableFile">
<tr><th>Seq</th><th>Document</th><th>Type</th></tr>
<tr><td>1</td><td><a href="/Archives/edgar/data/1234567/000123456726000012/d123456d424b4.htm">d123456d424b4.htm</a></td><td>424B4</td></tr>
<tr><td>2</td><td><a href="ex-99.htm">ex-99.htm</a></td><td>EX-99</td></tr>
</table>
<a href="{BASE}{ACCESSION}-index.htm">Filing index</a>
</body></html>"""


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class _FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        return None


class _FakeOpener:
    """urlopen stand-in serving canned bodies or raising canned errors."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[urllib.request.Request] = []

    def __call__(self, req: urllib.request.Request, timeout: float = 0) -> _FakeResponse:
        self.requests.append(req)
        result = self.routes.get(req.full_url)
        if result is None:
            raise urllib.error.HTTPError(req.full_url, 404, "Not Found", None, None)  # type: ignore[arg-type]
        if isinstance(result, Exception):
            raise result
        return _FakeResponse(result)


def _client(routes: dict[str, Any], **kwargs: Any) -> tuple[EdgarClient, _FakeOpener]:
    opener = _FakeOpener(routes)
    client = EdgarClient(
        user_agent="Test Suite test@example.com",
        rate_limiter=RateLimiter(0),
        urlopen=opener,
        **kwargs,
    )
    return client, opener


class TestIdentifiers:
    def test_normalize_cik(self) -> None:
        assert normalize_cik("1234567") == "0001234567"
        assert normalize_cik(1234567) == "0001234567"
        assert normalize_cik("CIK0001234567") == "0001234567"

    def test_normalize_cik_invalid(self) -> None:
        with pytest.raises(InvalidIdentifierError) as exc_info:
            normalize_cik("abc")
        assert exc_info.value.status == 400

    def test_normalize_accession(self) -> None:
        assert normalize_accession(ACCESSION) == ACCESSION
        assert normalize_accession("000123456726000012") == ACCESSION

    def test_normalize_accession_invalid(self) -> None:
        with pytest.raises(InvalidIdentifierError):
            normalize_accession("12-34")

    def test_urls(self) -> None:
        assert archive_base_url(CIK, ACCESSION) == BASE
        assert filing_index_url(CIK, ACCESSION) == f"{BASE}{ACCESSION}-index.htm"
        assert submissions_url(CIK) == "https://data.sec.gov/submissions/CIK0001234567.json"
        assert "CIK=0001234567" in company_search_url(CIK, "424B4")
        assert "type=424B4" in company_search_url(CIK, "424B4")


class TestRateLimiter:
    def test_spacing(self) -> None:
        clock = _FakeClock()
        limiter = RateLimiter(0.15, clock=clock, sleep=clock.sleep)
        assert limiter.wait() == 0.0
        clock.now += 0.05
        assert limiter.wait() == pytest.approx(0.10)
        clock.now += 1.0
        assert limiter.wait() == 0.0
        assert clock.sleeps == [pytest.approx(0.10)]

    def test_back_to_back_calls(self) -> None:
        clock = _FakeClock()
        limiter = RateLimiter(0.2, clock=clock, sleep=clock.sleep)
        for _ in range(4):
            limiter.wait()
        assert clock.sleeps == [pytest.approx(0.2)] * 3

    def test_negative_interval(self) -> None:
        with pytest.raises(ValueError):
            RateLimiter(-1)


class TestIndexLinkLocator:
    def test_prefers_424b_document(self) -> None:
        url = IndexLinkLocator().locate(INDEX_HTML, BASE)
        assert url == f"{BASE}d123456d424b4.htm"

    def test_first_document_when_no_424b(self) -> None:
        html = '<a href="s1.htm">s1.htm</a><a href="ex-1.htm">ex-1.htm</a>'
        assert IndexLinkLocator().locate(html, BASE) == f"{BASE}s1.htm"

    def test_skips_index_pages_and_non_documents(self) -> None:
        html = f'<a href="{ACCESSION}-index.htm">index</a><a href="full.txt">full.txt</a>'
        assert IndexLinkLocator().locate(html, BASE) is None


class TestEdgarClient:
    def test_sends_user_agent(self) -> None:
        url = submissions_url(CIK)
        client, opener = _client({url: b'{"name": "Acme Cloud, Inc."}'})
        assert client.fetch_submissions(CIK) == {"name": "Acme Cloud, Inc."}
        assert opener.requests[0].get_header("User-agent") == "Test Suite test@example.com"
        assert opener.requests[0].get_header("Accept") == "application/json"

    def test_env_user_agent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SEC_USER_AGENT", "Env Agent env@example.com")
        assert EdgarClient().user_agent == "Env Agent env@example.com"

    def test_from_env_interval(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROSPECTUS_MIN_REQUEST_INTERVAL", "0.5")
        client = EdgarClient.from_env()
        assert client._limiter.min_interval == 0.5

    def test_resolve_and_fetch_prospectus(self) -> None:
        doc_url = f"{BASE}d123456d424b4.htm"
        client, opener = _client({
            filing_index_url(CIK, ACCESSION): INDEX_HTML.encode(),
            doc_url: "<p>Prospectus “body”</p>".encode("cp1252"),
        })
        doc = client.fetch_prospectus(CIK, ACCESSION)
        assert doc.url == doc_url
        assert doc.html == "<p>Prospectus “body”</p>"
        assert [r.full_url for r in opener.requests] == [
            filing_index_url(CIK, ACCESSION), doc_url,
        ]

    def test_prospectus_not_in_index(self) -> None:
        client, _ = _client({filing_index_url(CIK, ACCESSION): b"<p>empty</p>"})
        with pytest.raises(FilingNotFoundError) as exc_info:
            client.resolve_prospectus_url(CIK, ACCESSION)
        assert exc_info.value.status == 404

    def test_http_404(self) -> None:
        client, _ = _client({})
        with pytest.raises(FilingNotFoundError):
            client.fetch_submissions(CIK)

    def test_http_error_keeps_upstream_status(self) -> None:
        url = submissions_url(CIK)
        err = urllib.error.HTTPError(url, 503, "Unavailable", None, None)  # type: ignore[arg-type]
        client, _ = _client({url: err})
        with pytest.raises(EdgarError) as exc_info:
            client.fetch_submissions(CIK)
        assert exc_info.value.status == 503

    def test_network_error_is_502(self) -> None:
        url = submissions_url(CIK)
        client, _ = _client({url: urllib.error.URLError("connection refused")})
        with pytest.raises(EdgarError) as exc_info:
            client.fetch_submissions(CIK)
        assert exc_info.value.status == 502
        assert "connection refused" in exc_info.value.message

    def test_malformed_json(self) -> None:
        url = submissions_url(CIK)
        client, _ = _client({url: b"<html>not json</html>"})
        with pytest.raises(EdgarError):
            client.fetch_json(url)

    def test_search_filings_query(self) -> None:
        opener = _FakeOpener({})
        client = EdgarClient(rate_limiter=RateLimiter(0), urlopen=opener)
        opener.routes = _AnyUrl(orjson.dumps({"hits": {"hits": []}}))
        assert client.search_filings("2026-01-01", "2026-01-31", ("S-1", "S-1/A")) == {
            "hits": {"hits": []},
        }
        url = opener.requests[0].full_url
        assert url.startswith("https://efts.sec.gov/LATEST/search-index?")
        assert "startdt=2026-01-01" in url
        assert "enddt=2026-01-31" in url
        assert "forms%3A%28S-1+OR+%22S-1%2FA%22%29" in url

    def test_recent_feed_caps_count(self) -> None:
        opener = _FakeOpener({})
        client = EdgarClient(rate_limiter=RateLimiter(0), urlopen=opener)
        opener.routes = _AnyUrl(b"<feed></feed>")
        assert client.fetch_recent_feed("424B4", count=500) == "<feed></feed>"
        url = opener.requests[0].full_url
        assert "count=80" in url
        assert "type=424B4" in url
        assert "output=atom" in url

    def test_every_request_passes_rate_limiter(self) -> None:
        calls: list[int] = []

        class _CountingLimiter(RateLimiter):
            def wait(self) -> float:
                calls.append(1)
                return 0.0

        url = submissions_url(CIK)
        opener = _FakeOpener({url: b"{}"})
        client = EdgarClient(rate_limiter=_CountingLimiter(0), urlopen=opener)
        client.fetch_submissions(CIK)
        client.fetch_submissions(CIK)
        assert len(calls) == 2


class _AnyUrl(dict):
    """Route table answering every URL with the same body."""

    def __init__(self, body: bytes) -> None:
        super().__init__()
        self._body = body

    def get(self, key: str, default: Any = None) -> Any:
        return self._body
