"""Import an analytics export archive and write it out as a JSON report.

Usage:
    python scripts/export_archive.py export.zip --platform instagram
    python scripts/export_archive.py export.zip --platform youtube --range 30d -o yt.json

Prints the import diagnostics as JSON. Exits with status 1 if the archive
cannot be imported.
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

# Ensure the package is importable when running from the project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from social_analytics.aggregates import Platform
from social_analytics.config import settings
from social_analytics.date_filter import ALL, filter_aggregate, parse_range
from social_analytics.ingest import IngestError, import_archive
from social_analytics.report import dumps_report, report_filename

logger = logging.getLogger("export_archive")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("archive", type=Path, help="ZIP archive exported by the platform")
    parser.add_argument(
        "--platform",
        required=True,
        choices=[p.value for p in Platform],
        help="Platform that produced the archive",
    )
    parser.add_argument(
        "--range",
        dest="date_range",
        default=ALL,
        help='Date range: "all", "<N>d" (e.g. 30d) or START..END in ISO format',
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file (default: <platform>-analytics-<date>.json)",
    )
    return parser


def _range_argument(value: str):
    if ".." in value:
        start, end = value.split("..", 1)
        return parse_range({"start": start, "end": end})
    return parse_range(value)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    try:
        date_range = _range_argument(args.date_range)
    except ValueError as exc:
        print(f"Invalid --range: {exc}", file=sys.stderr)
        return 2

    try:
        result = import_archive(args.archive.read_bytes(), args.platform)
    except OSError as exc:
        print(f"Cannot read {args.archive}: {exc}", file=sys.stderr)
        return 1
    except IngestError as exc:
        print(f"Import failed: {exc}", file=sys.stderr)
        return 1

    data = filter_aggregate(args.platform, result.data, date_range)
    output = args.output or Path(report_filename(args.platform))
    output.write_text(dumps_report(args.platform, data), encoding="utf-8")

    print(json.dumps(dataclasses.asdict(result.diagnostics), indent=2, ensure_ascii=False))
    logger.info("Wrote %s report to %s", args.platform, output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
