"""FastAPI service exposing venue wait time estimates."""

from __future__ import annotations

import datetime as dt
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

from line_reports import is_remote
from log_config import configure_logging
from report_format import format_estimate, format_report_line
from venue_board import VenueBoard, VenueSummary, build_board
from wait_estimator import Report, estimate_wait_time

app = FastAPI(title="Venue Line Times")

BOARD: Optional[VenueBoard] = None


class ReportIn(BaseModel):
    reported_minutes: int = Field(..., ge=0, description="Observed wait in minutes.")
    timestamp: dt.datetime = Field(..., description="When the observation was made (UTC).")
    base_weight: float = Field(1.0, ge=0, description="Reporter reliability score.")
    upvotes: int = Field(0, ge=0)
    downvotes: int = Field(0, ge=0)


class EstimateRequest(BaseModel):
    reports: List[ReportIn] = Field(default_factory=list)
    now: Optional[dt.datetime] = Field(None, description="Evaluation instant; defaults to the server clock.")


class EstimateResponse(BaseModel):
    minutes: int
    category: str
    confidence: float
    display: str


class VenueOut(BaseModel):
    venue_id: str
    venue_name: str
    minutes: int
    category: str
    confidence: float
    display: str
    report_count: int
    latest_report: Optional[str] = None


class VenueDetail(VenueOut):
    recent_reports: List[str]


@app.on_event("startup")
def startup() -> None:
    """Load the report snapshot once when the API starts."""
    global BOARD
    configure_logging()
    source = os.getenv("LINE_REPORTS_SOURCE")
    if not source:
        logger.info("LINE_REPORTS_SOURCE not set; venue endpoints disabled.")
        return
    if not is_remote(source) and not Path(source).exists():
        raise RuntimeError(f"Line report export not found at {source}.")
    BOARD = build_board(source)


@app.get("/health", tags=["meta"])
def health() -> Dict[str, Any]:
    """Simple health check."""
    return {
        "status": "ok",
        "source": os.getenv("LINE_REPORTS_SOURCE"),
        "board_loaded": BOARD is not None,
        "venues": len(BOARD) if BOARD is not None else 0,
    }


@app.post("/estimate", response_model=EstimateResponse, tags=["estimate"])
def estimate(request: EstimateRequest) -> EstimateResponse:
    """Estimate the current wait from an ad-hoc list of reports."""
    reports = [
        Report(
            reported_minutes=item.reported_minutes,
            timestamp=item.timestamp,
            base_weight=item.base_weight,
            upvotes=item.upvotes,
            downvotes=item.downvotes,
        )
        for item in request.reports
    ]
    result = estimate_wait_time(reports, request.now)
    return EstimateResponse(display=format_estimate(result), **result.as_dict())


@app.get("/venues", response_model=List[VenueOut], tags=["venues"])
def venues(top_k: Optional[int] = Query(None, ge=1, le=500)) -> List[VenueOut]:
    """Venues ranked by shortest estimated wait."""
    board = _require_board()
    now = dt.datetime.now(dt.timezone.utc)
    return [_venue_out(summary, now) for summary in board.ranked(now, top_k=top_k)]


@app.get("/venues/{venue_id}", response_model=VenueDetail, tags=["venues"])
def venue_detail(venue_id: str) -> VenueDetail:
    """Estimate plus the formatted report feed for one venue."""
    board = _require_board()
    now = dt.datetime.now(dt.timezone.utc)
    try:
        summary = board.summary(venue_id, now)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown venue '{venue_id}'.") from None

    lines = [
        format_report_line(
            report.reporter_name,
            report.reporter_status,
            report.minutes,
            report.created_at,
            now,
        )
        for report in board.recent_reports(venue_id)
    ]
    return VenueDetail(recent_reports=lines, **summary.as_dict(now))


def _require_board() -> VenueBoard:
    if BOARD is None:
        raise HTTPException(status_code=503, detail="No line report snapshot is loaded.")
    return BOARD


def _venue_out(summary: VenueSummary, now: dt.datetime) -> VenueOut:
    return VenueOut(**summary.as_dict(now))
