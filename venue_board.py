"""Per-venue wait estimates built from a snapshot of line reports."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
from loguru import logger

from line_reports import LineReport, load_reports
from report_format import format_estimate, format_report_line
from wait_estimator import EstimationResult, estimate_wait_time

REPORT_COOLDOWN = dt.timedelta(minutes=5)


@dataclass(frozen=True)
class VenueSummary:
    venue_id: str
    venue_name: str
    estimate: EstimationResult
    report_count: int
    latest: Optional[LineReport]

    def as_dict(self, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
        latest_line = None
        if self.latest is not None:
            latest_line = format_report_line(
                self.latest.reporter_name,
                self.latest.reporter_status,
                self.latest.minutes,
                self.latest.created_at,
                now,
            )
        return {
            "venue_id": self.venue_id,
            "venue_name": self.venue_name,
            "report_count": self.report_count,
            "display": format_estimate(self.estimate),
            "latest_report": latest_line,
            **self.estimate.as_dict(),
        }


def can_submit_report(last_report_at: Optional[dt.datetime], now: Optional[dt.datetime] = None) -> bool:
    """Whether a reporter may post again for a venue they last reported at ``last_report_at``."""
    if last_report_at is None:
        return True
    now = now or dt.datetime.now(dt.timezone.utc)
    if last_report_at.tzinfo is None:
        last_report_at = last_report_at.replace(tzinfo=dt.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)
    return now - last_report_at > REPORT_COOLDOWN


class VenueBoard:
    """Groups line reports by venue and estimates each venue's wait."""

    def __init__(self, reports: Iterable[LineReport]) -> None:
        self.reports_by_venue: Dict[str, List[LineReport]] = {}
        self.venue_names: Dict[str, str] = {}
        for report in reports:
            self.reports_by_venue.setdefault(report.venue_id, []).append(report)
            self.venue_names.setdefault(report.venue_id, report.venue_name)

    def __len__(self) -> int:
        return len(self.reports_by_venue)

    def venue_ids(self) -> List[str]:
        return sorted(self.reports_by_venue)

    def recent_reports(self, venue_id: str) -> List[LineReport]:
        """Reports for ``venue_id``, newest first. Raises ``KeyError`` for unknown venues."""
        reports = self.reports_by_venue[venue_id]
        return sorted(reports, key=lambda report: report.created_at, reverse=True)

    def summary(self, venue_id: str, now: Optional[dt.datetime] = None) -> VenueSummary:
        now = now or dt.datetime.now(dt.timezone.utc)
        reports = self.recent_reports(venue_id)
        estimate = estimate_wait_time([report.report for report in reports], now)
        return VenueSummary(
            venue_id=venue_id,
            venue_name=self.venue_names[venue_id],
            estimate=estimate,
            report_count=len(reports),
            latest=reports[0] if reports else None,
        )

    def ranked(self, now: Optional[dt.datetime] = None, top_k: Optional[int] = None) -> List[VenueSummary]:
        """Venues ordered by shortest estimated wait.

        Venues without any usable signal sort last; ties go to the more
        confident estimate, then to the venue name.
        """
        now = now or dt.datetime.now(dt.timezone.utc)
        summaries = [self.summary(venue_id, now) for venue_id in self.venue_ids()]
        if not summaries:
            return []

        names = np.array([summary.venue_name.lower() for summary in summaries])
        name_rank = np.argsort(np.argsort(names, kind="stable"), kind="stable")
        confidence = np.array([summary.estimate.confidence for summary in summaries])
        minutes = np.array([summary.estimate.minutes for summary in summaries])
        no_signal = confidence <= 0
        # lexsort treats the last key as primary.
        order = np.lexsort((name_rank, -confidence, minutes, no_signal))
        ranked = [summaries[idx] for idx in order]
        if top_k is not None:
            ranked = ranked[:top_k]
        return ranked


def build_board(source: Union[str, Path]) -> VenueBoard:
    board = VenueBoard(load_reports(source))
    logger.info("Built wait board for {} venues from {}", len(board), source)
    return board


def main() -> None:
    import argparse

    from log_config import configure_logging

    parser = argparse.ArgumentParser(description="Show estimated line waits per venue.")
    parser.add_argument(
        "source",
        help="Path or http(s) URL of the line report export.",
    )
    parser.add_argument(
        "-k",
        "--top-k",
        type=int,
        default=None,
        help="Only show the first K venues.",
    )
    parser.add_argument(
        "--venue",
        help="Show the estimate and recent reports for a single venue id.",
    )
    args = parser.parse_args()

    configure_logging()
    board = build_board(args.source)
    now = dt.datetime.now(dt.timezone.utc)

    if args.venue:
        summary = board.summary(args.venue, now)
        print(f"{summary.venue_name}: {format_estimate(summary.estimate)} "
              f"(confidence {summary.estimate.confidence:.2f})")
        for report in board.recent_reports(args.venue):
            print("  " + format_report_line(
                report.reporter_name,
                report.reporter_status,
                report.minutes,
                report.created_at,
                now,
            ))
        return

    for idx, summary in enumerate(board.ranked(now, top_k=args.top_k), start=1):
        print(f"{idx}. {summary.venue_name}: {format_estimate(summary.estimate)} "
              f"(confidence {summary.estimate.confidence:.2f}, {summary.report_count} reports)")


if __name__ == "__main__":
    main()
