#!/usr/bin/env python3
"""Build a verifiable briefing from an IPO prospectus.

Analyzes a local filing HTML file, or fetches the prospectus for a filing
from EDGAR, and writes the briefing as JSON and/or standalone HTML.

Usage:
    # Local file, JSON to stdout
    python3 scripts/prospectus_briefing.py --html filing.htm --company "Acme Corp"

    # Fetch from EDGAR and write both outputs
    python3 scripts/prospectus_briefing.py --cik 1234567 \
      --accession 0001234567-26-000012 \
      --out-html briefing.html --out-json briefing.json

Set SEC_USER_AGENT to a descriptive "name contact@example.com" string
before fetching from EDGAR.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from prospectus.briefing import FilingMetadata, ProspectusBriefing, analyze_prospectus
from prospectus.edgar import EdgarClient, EdgarError
from prospectus.filings import filing_metadata
from prospectus.html_utils import read_file
from prospectus.io_utils import save_json
from prospectus.render import briefing_filename, render_briefing_html
from prospectus.thresholds import DEFAULT_THRESHOLDS, AnalysisThresholds, load_thresholds

log = logging.getLogger("prospectus_briefing")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a verifiable briefing from an IPO prospectus."
    )
    source = parser.add_argument_group("source")
    source.add_argument("--html", type=Path, default=None,
                        help="Local prospectus HTML file")
    source.add_argument("--cik", default=None, help="Filer CIK (fetch from EDGAR)")
    source.add_argument("--accession", default=None,
                        help="Accession number, dashed or 18 digits")

    meta = parser.add_argument_group("metadata")
    meta.add_argument("--company", default="", help="Company name")
    meta.add_argument("--filing-date", default="", help="Filing date (YYYY-MM-DD)")
    meta.add_argument("--form-type", default="", help="Form type (default: 424B4)")

    parser.add_argument(
        "--thresholds", type=Path, default=None,
        help="JSON file overriding analysis thresholds",
    )
    parser.add_argument("--out-html", type=Path, default=None,
                        help="Write standalone HTML briefing here (file or directory)")
    parser.add_argument("--out-json", type=Path, default=None,
                        help="Write briefing JSON here")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    return parser


def _write_outputs(briefing: ProspectusBriefing, args: argparse.Namespace) -> None:
    if args.out_html is not None:
        out_html: Path = args.out_html
        if out_html.is_dir():
            out_html = out_html / briefing_filename(briefing)
        out_html.parent.mkdir(parents=True, exist_ok=True)
        out_html.write_text(render_briefing_html(briefing), encoding="utf-8")
        log.info("Wrote %s", out_html)
    if args.out_json is not None:
        save_json(briefing.to_dict(), args.out_json)
        log.info("Wrote %s", args.out_json)
    if args.out_html is None and args.out_json is None:
        dump_json(briefing.to_dict())


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    thresholds: AnalysisThresholds = DEFAULT_THRESHOLDS
    if args.thresholds is not None:
        try:
            thresholds = load_thresholds(args.thresholds)
        except (OSError, ValueError) as exc:
            print(f"Error: invalid thresholds file {args.thresholds}: {exc}",
                  file=sys.stderr)
            return 1

    if args.html is not None:
        html = read_file(args.html)
        if not html:
            print(f"Error: could not read {args.html}", file=sys.stderr)
            return 1
        meta = FilingMetadata.from_dict({
            "company_name": args.company,
            "cik": args.cik,
            "accession_number": args.accession,
            "filing_date": args.filing_date,
            "form_type": args.form_type,
        })
    elif args.cik and args.accession:
        client = EdgarClient.from_env()
        try:
            doc = client.fetch_prospectus(args.cik, args.accession)
            meta = filing_metadata(
                client,
                args.cik,
                args.accession,
                prospectus_url=doc.url,
                company_name=args.company,
                filing_date=args.filing_date,
                form_type=args.form_type,
            )
        except EdgarError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return 1
        html = doc.html
    else:
        print("Error: specify --html, or both --cik and --accession",
              file=sys.stderr)
        return 1

    briefing = analyze_prospectus(html, meta, thresholds=thresholds)
    log.info(
        "%s: %d sections, %d conditional / %d definitive",
        meta.company_name or "filing",
        len(briefing.sections),
        briefing.metrics.conditional_total,
        briefing.metrics.definitive_total,
    )
    _write_outputs(briefing, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
