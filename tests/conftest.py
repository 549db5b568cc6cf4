"""Shared prospectus fixtures."""
from __future__ import annotations

import pytest

from prospectus.briefing import FilingMetadata

COVER = (
    "Acme Cloud, Inc. is offering 10,000,000 shares of our Class A common "
    "stock. The initial public offering price is $18.00 per share."
)
SUMMARY = (
    "We have built a platform that provides contract management to more "
    "than 1,000 enterprise customers. We generate revenue from "
    "subscriptions to our platform and related services."
)
RISK_SENTENCE = (
    "We may not achieve profitability and our results could fluctuate "
    "significantly in future periods."
)
PROCEEDS = (
    "We intend to use the net proceeds from this offering for general "
    "corporate purposes, including working capital, operating expenses and "
    "capital expenditures. We may also use a portion of the net proceeds to "
    "acquire complementary businesses, although we have no current "
    "commitments to do so."
)
UNDERWRITING = (
    "Goldman Sachs and Morgan Stanley are acting as representatives of the "
    "underwriters. Subject to the terms of the underwriting agreement, each "
    "underwriter has severally agreed to purchase the shares offered."
)


def build_prospectus_html(*, risk_sentences: int = 40) -> str:
    risks = "\n".join(f"<p>{RISK_SENTENCE}</p>" for _ in range(risk_sentences))
    return f"""<html>
<head><title>d123456d424b4.htm</title></head>
<body>
<p>1 d123456d424b4.htm PROSPECTUS</p>
<p>Filed Pursuant to Rule 424(b)(4)</p>
<p>Registration No. 333-275123</p>
<p>$180,000,000</p>
<p>{COVER}</p>
<h2>Prospectus Summary</h2>
<p>{SUMMARY}</p>
<h2>Risk Factors</h2>
{risks}
<h2>Use of Proceeds</h2>
<p>{PROCEEDS}</p>
<h2>Underwriting</h2>
<p>{UNDERWRITING}</p>
</body>
</html>
"""


@pytest.fixture()
def prospectus_html() -> str:
    return build_prospectus_html()


@pytest.fixture()
def filing_meta() -> FilingMetadata:
    return FilingMetadata(
        company_name="Acme Cloud, Inc.",
        cik="0001234567",
        accession_number="0001234567-26-000012",
        filing_date="2026-01-15",
        form_type="424B4",
    )
