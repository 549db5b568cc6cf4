#!/usr/bin/env python3
"""List recent IPO filings from EDGAR as JSON.

Pipeline filings (S-1, S-1/A, F-1, F-1/A) and completed IPOs (424B4) are
merged into one list, newest first, each tagged with ``ipo_status``.

Usage:
    python3 scripts/ipo_filings.py --days 14
    python3 scripts/ipo_filings.py --days 30 --software-only
"""
from __future__ import annotations

import argparse
import logging
import sys

import orjson

from prospectus.edgar import EdgarClient, EdgarError
from prospectus.filings import company_from_submissions, fetch_ipo_filings

log = logging.getLogger("ipo_filings")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="List recent IPO filings from EDGAR.")
    parser.add_argument("--days", type=int, default=30,
                        help="Days back from today (default: 30)")
    parser.add_argument(
        "--software-only", action="store_true",
        help="Keep only filers with a software SIC code (7370-7379); "
             "one submissions request per distinct CIK",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if args.days < 1:
        print("Error: --days must be at least 1", file=sys.stderr)
        return 1

    client = EdgarClient.from_env()
    try:
        filings = fetch_ipo_filings(client, args.days)
        if args.software_only:
            software: dict[str, bool] = {}
            for cik in {f.cik for f in filings if f.cik}:
                profile = company_from_submissions(client.fetch_submissions(cik))
                software[cik] = profile.is_software
            filings = [f for f in filings if software.get(f.cik, False)]
    except EdgarError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(f"{len(filings)} IPO filings in the last {args.days} days", file=sys.stderr)
    dump_json([f.to_dict() for f in filings])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
