import datetime as dt

import pytest

from tests.helpers import make_report
from wait_estimator import (
    LINE_CATEGORIES,
    MAX_AGE_HOURS,
    NO_SIGNAL,
    EstimationResult,
    Report,
    categorize_minutes,
    estimate_wait_time,
    _round_half_up,
    report_weight,
)


def test_empty_input_is_no_signal(now):
    result = estimate_wait_time([], now)
    assert result == EstimationResult(minutes=0, category="No Line", confidence=0.0)


def test_all_expired_reports_are_no_signal(now):
    reports = [make_report(90, hours_old=2.5), make_report(5, hours_old=3, weight=10.0)]
    assert estimate_wait_time(reports, now) == NO_SIGNAL


def test_zero_weights_are_no_signal(now):
    reports = [make_report(20, weight=0.0), make_report(40, hours_old=1, weight=0.0)]
    assert estimate_wait_time(reports, now) == NO_SIGNAL


def test_report_exactly_at_max_age_still_counts(now):
    result = estimate_wait_time([make_report(12, hours_old=MAX_AGE_HOURS)], now)
    assert result.minutes == 12
    assert result.confidence == pytest.approx(0.8 ** 2)


def test_three_report_venue_scenario(now):
    reports = [
        make_report(10, hours_old=0),
        make_report(20, hours_old=1),
        make_report(90, hours_old=3, weight=5.0),
    ]
    result = estimate_wait_time(reports, now)
    assert result.minutes == 14
    assert result.category == "Medium Line"
    assert result.confidence == pytest.approx(0.6)


@pytest.mark.parametrize(
    "minutes, label",
    [
        (0, "No Line"),
        (1, "Short Line"),
        (4, "Short Line"),
        (5, "Medium Line"),
        (15, "Medium Line"),
        (16, "Long Line"),
        (30, "Long Line"),
        (31, "Very Long Line"),
        (240, "Very Long Line"),
    ],
)
def test_category_breakpoints(minutes, label):
    assert categorize_minutes(minutes) == label


def test_category_table_is_highest_threshold_first():
    thresholds = [category.min_minutes for category in LINE_CATEGORIES]
    assert thresholds == sorted(thresholds, reverse=True)


def test_estimate_lies_within_reported_range(now):
    reports = [
        make_report(7, hours_old=0.1, weight=0.4),
        make_report(22, hours_old=1.9, weight=2.5, upvotes=3),
        make_report(13, hours_old=0.75, weight=1.1, downvotes=2),
    ]
    result = estimate_wait_time(reports, now)
    assert 7 <= result.minutes <= 22


def test_older_report_weighs_less(now):
    fresher = report_weight(make_report(10, hours_old=1.0), now)
    older = report_weight(make_report(10, hours_old=1.5), now)
    assert older < fresher
    assert fresher == pytest.approx(0.8)
    assert older == pytest.approx(0.8 ** 1.5)


def test_votes_shift_weight_symmetrically(now):
    upvoted = report_weight(make_report(10, upvotes=10), now)
    downvoted = report_weight(make_report(10, downvotes=10), now)
    unvoted = report_weight(make_report(10), now)
    assert upvoted > downvoted
    assert upvoted == pytest.approx(1.1)
    assert downvoted == pytest.approx(0.9)
    assert unvoted == 1.0


def test_expired_report_has_zero_weight(now):
    assert report_weight(make_report(10, hours_old=2.01), now) == 0.0


def test_confidence_is_capped_at_one(now):
    result = estimate_wait_time([make_report(8, weight=4.0), make_report(12, weight=3.0)], now)
    assert result.minutes == 10
    assert result.confidence == 1.0


def test_stale_reports_depress_confidence_only(now):
    fresh = [make_report(20, weight=1.0)]
    padded = fresh + [make_report(200, hours_old=5) for _ in range(3)]
    assert estimate_wait_time(padded, now).minutes == 20
    assert estimate_wait_time(padded, now).confidence == pytest.approx(0.25)


def test_rounds_half_up(now):
    result = estimate_wait_time([make_report(2), make_report(3)], now)
    assert result.minutes == 3
    assert result.category == "Short Line"


def test_negative_minutes_are_clamped(now):
    result = estimate_wait_time([make_report(-10), make_report(10)], now)
    assert result.minutes == 5


def test_future_timestamp_does_not_boost_weight(now):
    ahead = make_report(10, hours_old=-1.0, weight=1.0)
    assert report_weight(ahead, now) == 1.0


def test_naive_timestamps_are_treated_as_utc(now):
    naive = Report(
        reported_minutes=18,
        timestamp=(now - dt.timedelta(hours=1)).replace(tzinfo=None),
        base_weight=1.0,
    )
    assert report_weight(naive, now) == pytest.approx(0.8)


def test_order_does_not_matter(now):
    reports = [make_report(5, 0.2), make_report(35, 1.2, weight=2.0), make_report(18, 0.6, upvotes=4)]
    forward = estimate_wait_time(reports, now)
    backward = estimate_wait_time(list(reversed(reports)), now)
    assert forward.minutes == backward.minutes
    assert forward.category == backward.category
    assert forward.confidence == pytest.approx(backward.confidence)


def test_repeated_calls_are_identical(now):
    reports = [make_report(9, 0.3, weight=1.7, upvotes=2, downvotes=1), make_report(26, 1.4)]
    assert estimate_wait_time(reports, now) == estimate_wait_time(reports, now)


def test_default_now_uses_current_clock():
    report = Report(
        reported_minutes=25,
        timestamp=dt.datetime.now(dt.timezone.utc),
        base_weight=1.0,
    )
    result = estimate_wait_time([report])
    assert result.minutes == 25
    assert result.category == "Long Line"


def test_result_as_dict():
    result = EstimationResult(minutes=14, category="Medium Line", confidence=0.6)
    assert result.as_dict() == {"minutes": 14, "category": "Medium Line", "confidence": 0.6}

def test_negative_vote_counts_are_clamped(now):
    assert report_weight(make_report(10, upvotes=-5), now) == 1.0
    assert report_weight(make_report(10, upvotes=-5, downvotes=4), now) == pytest.approx(0.9)


def test_negative_base_weight_contributes_nothing(now):
    reports = [make_report(10, weight=-1.0), make_report(20)]
    assert report_weight(reports[0], now) == 0.0
    result = estimate_wait_time(reports, now)
    assert result.minutes == 20
    assert result.confidence == pytest.approx(0.5)


def test_zero_weight_reports_count_in_confidence_denominator(now):
    reports = [
        make_report(6, weight=0.0),
        make_report(30, weight=0.0, upvotes=9),
        make_report(12, weight=0.8),
        make_report(18, weight=0.4),
    ]
    result = estimate_wait_time(reports, now)
    assert result.minutes == 14
    assert result.confidence == pytest.approx(1.2 / 4)


@pytest.mark.parametrize(
    "value, expected",
    [(0.49999999999999994, 0), (0.5, 1), (14.444, 14), (2.5, 3), (30.5, 31)],
)
def test_round_half_up_edges(value, expected):
    assert _round_half_up(value) == expected
