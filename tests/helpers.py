import datetime as dt

from wait_estimator import Report

NOW = dt.datetime(2026, 10, 16, 22, 0, tzinfo=dt.timezone.utc)


def make_report(minutes, hours_old=0.0, weight=1.0, upvotes=0, downvotes=0, now=NOW):
    return Report(
        reported_minutes=minutes,
        timestamp=now - dt.timedelta(hours=hours_old),
        base_weight=weight,
        upvotes=upvotes,
        downvotes=downvotes,
    )


def make_row(report_id, bar_id, minutes, hours_old=0.0, **overrides):
    row = {
        "report_id": report_id,
        "bar_id": bar_id,
        "bar_name": f"Bar {bar_id}",
        "wait_minutes": minutes,
        "created_at": (NOW - dt.timedelta(hours=hours_old)).isoformat().replace("+00:00", "Z"),
        "upvotes": 0,
        "downvotes": 0,
        "report_reliability_score": 1.0,
        "reporter_name": f"reporter-{report_id}",
        "reporter_status": "regular",
    }
    row.update(overrides)
    return row
