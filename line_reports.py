#!/usr/bin/env python3
"""Load venue line reports from a JSON export into estimator inputs."""

from __future__ import annotations

import argparse
import datetime as dt
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Union

import requests
from loguru import logger

from log_config import configure_logging
from wait_estimator import Report

DEFAULT_OUTPUT = Path("reports.json")


@dataclass(frozen=True)
class LineReport:
    """A single report together with the venue and reporter it belongs to."""

    report_id: str
    venue_id: str
    venue_name: str
    reporter_name: str
    reporter_status: str
    report: Report

    @property
    def minutes(self) -> int:
        return self.report.reported_minutes

    @property
    def created_at(self) -> dt.datetime:
        return self.report.timestamp


def fetch_json(url: str) -> Any:
    """Retrieve a report export from the reporting service."""
    response = requests.get(
        url,
        headers={"Accept": "application/json"},
        timeout=int(os.getenv("LINE_REPORTS_TIMEOUT", "30")),
    )
    response.raise_for_status()
    return response.json()


def parse_timestamp(value: Any) -> dt.datetime:
    """Parse an ISO-8601 timestamp; naive values are taken to be UTC."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = dt.datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unusable timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def parse_report_row(row: Dict[str, Any]) -> LineReport:
    """Convert one exported row into a ``LineReport``.

    Raises ``ValueError`` when a required field is missing or malformed.
    """
    try:
        report_id = str(row["report_id"])
        venue_id = str(row["bar_id"])
        minutes = int(row["wait_minutes"])
        created_at = parse_timestamp(row["created_at"])
        reliability = float(row.get("report_reliability_score") or 0.0)
        upvotes = int(row.get("upvotes") or 0)
        downvotes = int(row.get("downvotes") or 0)
        venue_name = str(row.get("bar_name") or "Unknown Venue")
        reporter_name = str(row.get("reporter_name") or "Anonymous")
        reporter_status = str(row.get("reporter_status") or "regular").lower()
    except KeyError as exc:
        raise ValueError(f"Report row is missing {exc.args[0]!r}") from None
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Report row has a malformed field: {exc}") from exc

    return LineReport(
        report_id=report_id,
        venue_id=venue_id,
        venue_name=venue_name,
        reporter_name=reporter_name,
        reporter_status=reporter_status,
        report=Report(
            reported_minutes=minutes,
            timestamp=created_at,
            base_weight=reliability,
            upvotes=upvotes,
            downvotes=downvotes,
        ),
    )


def parse_payload(payload: Any) -> List[LineReport]:
    """Parse a full export, skipping rows that cannot be used."""
    rows: List[Any]
    if isinstance(payload, dict):
        rows = list(payload.get("reports") or [])
    elif isinstance(payload, list):
        rows = payload
    else:
        raise ValueError("Report export must be a list or an object with a 'reports' list.")

    reports: List[LineReport] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning("Skipping report #{}: expected an object, got {}", index, type(row).__name__)
            continue
        try:
            reports.append(parse_report_row(row))
        except ValueError as exc:
            logger.warning("Skipping report #{}: {}", index, exc)
    logger.info("Parsed {} of {} line reports", len(reports), len(rows))
    return reports


def is_remote(source: Union[str, Path]) -> bool:
    return str(source).startswith(("http://", "https://"))


def load_reports(source: Union[str, Path]) -> List[LineReport]:
    """Load reports from an http(s) export URL or a local JSON file."""
    if is_remote(source):
        logger.info("Fetching line reports from {}", source)
        return parse_payload(fetch_json(str(source)))

    path = Path(source)
    logger.info("Reading line reports from {}", path)
    return parse_payload(json.loads(path.read_text()))


def run_snapshot(url: str, output_path: Path) -> List[LineReport]:
    """Fetch the export once, persist it and return the parsed reports."""
    payload = fetch_json(url)
    output_path.write_text(json.dumps(payload, indent=2))
    return parse_payload(payload)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Snapshot the venue line report export into a JSON file."
    )
    parser.add_argument("--url", required=True, help="Report export URL.")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"Where to write the JSON snapshot (default: {DEFAULT_OUTPUT}).",
    )
    args = parser.parse_args()

    configure_logging()
    reports = run_snapshot(args.url, args.output)
    venues = {report.venue_id for report in reports}
    print(f"Saved {len(reports)} reports for {len(venues)} venues to {args.output}")


if __name__ == "__main__":
    main()
