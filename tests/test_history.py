"""Tests for history filtering and per-category aggregation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from letbabytalk import config
from letbabytalk.history import ALL_BABIES, TimeRange, summarize, window_bounds
from letbabytalk.models import Recording

# Wednesday
NOW = datetime(2025, 3, 12, 15, 30, tzinfo=timezone.utc)


def _rec(rec_id, when, label="hunger_milk", baby=1, cry_type=None):
    payload = {
        "id": rec_id,
        "babyProfileId": baby,
        "predictClass": label,
        "analysisResult": {"cryType": cry_type or label or "unknown", "confidence": 0.5},
        "recordedAt": when.isoformat(),
    }
    return Recording.model_validate(payload)


def _counts(summary):
    return {c.label: c.count for c in summary.categories if c.count}


class TestWindows:
    def test_day_starts_at_midnight(self):
        start, end = window_bounds(TimeRange.DAY, NOW)
        assert start == datetime(2025, 3, 12, tzinfo=timezone.utc)
        assert end == NOW

    def test_week_starts_on_sunday(self):
        start, _ = window_bounds(TimeRange.WEEK, NOW)
        assert start == datetime(2025, 3, 9, tzinfo=timezone.utc)

    def test_week_on_sunday_is_today(self):
        sunday = datetime(2025, 3, 9, 8, 0, tzinfo=timezone.utc)
        start, _ = window_bounds(TimeRange.WEEK, sunday)
        assert start == datetime(2025, 3, 9, tzinfo=timezone.utc)

    def test_month(self):
        start, _ = window_bounds(TimeRange.MONTH, NOW)
        assert start == datetime(2025, 3, 1, tzinfo=timezone.utc)

    def test_custom_without_start(self):
        with pytest.raises(ValueError):
            window_bounds(TimeRange.CUSTOM, NOW)

    def test_custom_reversed(self):
        with pytest.raises(ValueError):
            window_bounds(TimeRange.CUSTOM, NOW, date(2025, 3, 5), date(2025, 3, 1))

    def test_naive_now_is_local_time(self):
        start, end = window_bounds(TimeRange.DAY, datetime(2025, 3, 12, 15, 30))
        assert start.tzinfo is not None
        assert end == datetime(2025, 3, 12, 15, 30).astimezone()
        assert start == end.replace(hour=0, minute=0)


class TestFiltering:
    def test_today_vs_yesterday(self):
        recs = [
            _rec(1, NOW - timedelta(hours=1)),
            _rec(2, NOW - timedelta(days=1)),
        ]
        assert summarize(recs, TimeRange.DAY, now=NOW).total == 1
        assert summarize(recs, TimeRange.WEEK, now=NOW).total == 2

    def test_future_excluded(self):
        recs = [_rec(1, NOW + timedelta(minutes=5))]
        assert summarize(recs, TimeRange.DAY, now=NOW).total == 0

    def test_custom_range_inclusive_at_both_ends(self):
        recs = [
            _rec(1, datetime(2025, 3, 1, 0, 0, 0, tzinfo=timezone.utc)),
            _rec(2, datetime(2025, 3, 5, 23, 59, 59, 999000, tzinfo=timezone.utc)),
            _rec(3, datetime(2025, 2, 28, 23, 59, 59, tzinfo=timezone.utc)),
            _rec(4, datetime(2025, 3, 6, 0, 0, 0, tzinfo=timezone.utc)),
        ]
        summary = summarize(
            recs, TimeRange.CUSTOM, now=NOW, custom_from=date(2025, 3, 1), custom_to=date(2025, 3, 5),
        )
        assert sorted(r.id for r in summary.recordings) == [1, 2]

    def test_custom_single_day(self):
        recs = [
            _rec(1, datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)),
            _rec(2, datetime(2025, 3, 2, 0, 0, tzinfo=timezone.utc)),
        ]
        summary = summarize(recs, TimeRange.CUSTOM, now=NOW, custom_from=date(2025, 3, 1))
        assert [r.id for r in summary.recordings] == [1]

    def test_naive_timestamps_are_utc(self):
        recs = [_rec(1, datetime(2025, 3, 12, 0, 30))]
        assert summarize(recs, TimeRange.DAY, now=NOW).total == 1

    def test_naive_now_compares_with_stored_timestamps(self):
        now = datetime.now()
        recs = [
            _rec(1, datetime.now(timezone.utc) - timedelta(hours=1)),
            _rec(2, datetime(2025, 3, 12, 0, 30)),
        ]
        summary = summarize(
            recs, TimeRange.CUSTOM, now=now,
            custom_from=now.date() - timedelta(days=2), custom_to=now.date() + timedelta(days=1),
        )
        assert [r.id for r in summary.recordings] == [1]

    def test_baby_filter(self):
        recs = [
            _rec(1, NOW - timedelta(hours=1), baby=1),
            _rec(2, NOW - timedelta(hours=2), baby=2),
            _rec(3, NOW - timedelta(hours=3), baby=None),
        ]
        assert summarize(recs, TimeRange.DAY, now=NOW, baby=2).total == 1
        assert summarize(recs, TimeRange.DAY, now=NOW, baby=ALL_BABIES).total == 3


class TestAggregation:
    def _mixed(self):
        hour = timedelta(hours=1)
        return [
            _rec(1, NOW - hour, "hunger_milk"),
            _rec(2, NOW - 2 * hour, "hunger_milk"),
            _rec(3, NOW - 3 * hour, "sleepiness"),
            _rec(4, NOW - 4 * hour, "diaper_urine"),
            _rec(5, NOW - 5 * hour, "giggling"),
        ]

    def test_counts_sum_to_filtered_size(self):
        summary = summarize(self._mixed(), TimeRange.DAY, now=NOW)
        assert sum(c.count for c in summary.categories) == summary.total == 5

    def test_percentages_sum_to_100(self):
        summary = summarize(self._mixed(), TimeRange.DAY, now=NOW)
        assert sum(c.percentage for c in summary.categories) == pytest.approx(100)
        top = summary.top_category
        assert top.label == "hunger_milk"
        assert top.percentage == pytest.approx(40)

    def test_all_canonical_categories_present(self):
        summary = summarize(self._mixed(), TimeRange.DAY, now=NOW)
        labels = [c.label for c in summary.categories]
        assert set(config.CANONICAL_CATEGORIES) <= set(labels)
        assert "giggling" in labels
        assert len(labels) == len(config.CANONICAL_CATEGORIES) + 1

    def test_ties_sorted_by_title(self):
        summary = summarize(self._mixed(), TimeRange.DAY, now=NOW)
        singles = [c.title for c in summary.categories if c.count == 1]
        assert singles == sorted(singles)
        assert singles == ["Giggling", "Sleepiness", "Wet Diaper"]

    def test_metrics(self):
        summary = summarize(self._mixed(), TimeRange.DAY, now=NOW)
        assert summary.categories_used == 4
        assert summary.average_per_category == pytest.approx(5 / 4)

    def test_label_falls_back_to_cry_type(self):
        recs = [_rec(1, NOW - timedelta(hours=1), label=None, cry_type="sleepiness")]
        assert _counts(summarize(recs, TimeRange.DAY, now=NOW)) == {"sleepiness": 1}

    def test_missing_analysis_counts_as_unknown(self):
        rec = Recording.model_validate({
            "id": 9, "analysisResult": None, "recordedAt": (NOW - timedelta(hours=1)).isoformat(),
        })
        assert _counts(summarize([rec], TimeRange.DAY, now=NOW)) == {"unknown": 1}

    def test_empty(self):
        summary = summarize([], TimeRange.DAY, now=NOW)
        assert summary.total == 0
        assert summary.top_category is None
        assert summary.categories_used == 0
        assert summary.average_per_category == 0
        assert all(c.percentage == 0 for c in summary.categories)
