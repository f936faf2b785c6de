"""Tests for stock classification, aggregate reports and alert derivation."""

import itertools
from datetime import date, datetime

import pytest
from pharmahealth.classifier import (
    aggregate,
    aggregate_by_facility,
    classify,
    days_until_expiry,
    derive_alerts,
)
from pharmahealth.errors import InvalidExpiryDate
from pharmahealth.schemas import AlertRule, Severity, StockStatus

from conftest import NOW, make_item


class TestClassify:
    @pytest.mark.parametrize("threshold", [0, 1, 10, 500])
    def test_empty_stock_is_critical_regardless_of_threshold(self, threshold):
        assert classify(make_item(quantity=0, min_threshold=threshold)) is StockStatus.CRITICAL

    @pytest.mark.parametrize("quantity", [1, 5, 9])
    def test_below_threshold_is_low_stock(self, quantity):
        assert classify(make_item(quantity=quantity, min_threshold=10)) is StockStatus.LOW_STOCK

    @pytest.mark.parametrize("quantity", [10, 11, 1000])
    def test_at_or_above_threshold_is_adequate(self, quantity):
        assert classify(make_item(quantity=quantity, min_threshold=10)) is StockStatus.ADEQUATE

    def test_zero_threshold_with_stock_is_adequate(self):
        assert classify(make_item(quantity=1, min_threshold=0)) is StockStatus.ADEQUATE

    def test_negative_quantity_is_critical(self):
        assert classify(make_item(quantity=-3, min_threshold=10)) is StockStatus.CRITICAL


class TestAggregate:
    def test_empty_collection(self):
        report = aggregate([])
        zeros = {StockStatus.ADEQUATE: 0, StockStatus.LOW_STOCK: 0, StockStatus.CRITICAL: 0}
        assert report.total == 0
        assert report.counts == zeros
        assert report.percentages == zeros

    def test_one_per_bucket_rounds_independently(self):
        items = [
            make_item("a", quantity=0, min_threshold=10),
            make_item("b", quantity=5, min_threshold=10),
            make_item("c", quantity=20, min_threshold=10),
        ]
        report = aggregate(items)
        assert report.counts == {
            StockStatus.ADEQUATE: 1,
            StockStatus.LOW_STOCK: 1,
            StockStatus.CRITICAL: 1,
        }
        assert list(report.percentages.values()) == [33, 33, 33]
        # Rounding drift is accepted, not redistributed
        assert sum(report.percentages.values()) == 99

    def test_half_rounds_away_from_zero(self):
        # 1 of 8 = 12.5% and 7 of 8 = 87.5%
        items = [make_item("c", quantity=0)] + [
            make_item(f"a{i}", quantity=50) for i in range(7)
        ]
        report = aggregate(items)
        assert report.percentages[StockStatus.CRITICAL] == 13
        assert report.percentages[StockStatus.ADEQUATE] == 88
        assert report.percentages[StockStatus.LOW_STOCK] == 0

    def test_all_buckets_present_when_some_are_empty(self):
        report = aggregate([make_item(quantity=50)])
        assert set(report.counts) == set(StockStatus)
        assert report.counts[StockStatus.CRITICAL] == 0
        assert report.percentages[StockStatus.ADEQUATE] == 100

    def test_bucket_order_is_fixed(self, mixed_items):
        report = aggregate(mixed_items)
        assert list(report.counts) == [
            StockStatus.ADEQUATE,
            StockStatus.LOW_STOCK,
            StockStatus.CRITICAL,
        ]

    def test_counts_sum_to_item_count(self, mixed_items):
        report = aggregate(mixed_items)
        assert sum(report.counts.values()) == len(mixed_items) == report.total

    def test_order_independent(self, mixed_items):
        expected = aggregate(mixed_items)
        for permutation in itertools.permutations(mixed_items):
            assert aggregate(list(permutation)) == expected

    def test_idempotent(self, mixed_items):
        first = aggregate(mixed_items)
        second = aggregate(mixed_items)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_accepts_a_generator(self, mixed_items):
        assert aggregate(item for item in mixed_items).total == 4


class TestAggregateByFacility:
    def test_groups_and_sorts_facilities(self, mixed_items):
        reports = aggregate_by_facility(mixed_items)
        assert list(reports) == [
            "City General Hospital",
            "HealthPlus Pharmacy",
            "Regional Hospital",
        ]
        pharmacy = reports["HealthPlus Pharmacy"]
        assert pharmacy.total == 2
        assert pharmacy.counts[StockStatus.LOW_STOCK] == 1
        assert pharmacy.percentages[StockStatus.ADEQUATE] == 50

    def test_empty(self):
        assert aggregate_by_facility([]) == {}


class TestDaysUntilExpiry:
    def test_counts_whole_days(self):
        assert days_until_expiry(make_item(expiry_date="2026-01-15"), NOW) == 14

    def test_expired_is_negative(self):
        assert days_until_expiry(make_item(expiry_date="2025-12-30"), NOW) == -2

    def test_accepts_datetime_reference_and_timestamp_strings(self):
        item = make_item(expiry_date="2026-01-15T23:59:00")
        assert days_until_expiry(item, datetime(2026, 1, 1, 18, 30)) == 14

    def test_date_objects_are_normalized(self):
        item = make_item(expiry_date=date(2026, 2, 1))
        assert item.expiry_date == "2026-02-01"
        assert days_until_expiry(item, NOW) == 31

    def test_missing_date(self):
        with pytest.raises(InvalidExpiryDate) as exc_info:
            days_until_expiry(make_item(item_id="x1", expiry_date=None), NOW)
        assert exc_info.value.item_id == "x1"
        assert exc_info.value.tag == "InvalidExpiryDate"

    @pytest.mark.parametrize("value", ["15/01/2026", "2026-01-15oops", "2026-01-1599", "2026-13-01"])
    def test_malformed_date(self, value):
        with pytest.raises(InvalidExpiryDate, match="Malformed"):
            days_until_expiry(make_item(expiry_date=value), NOW)


class TestDeriveAlerts:
    def test_adequate_item_expiring_within_horizon(self):
        item = make_item(quantity=50, min_threshold=10, expiry_date="2026-01-15")
        run = derive_alerts([item], NOW, 30)
        assert len(run.alerts) == 1
        alert = run.alerts[0]
        assert alert.severity is Severity.EXPIRING
        assert alert.rule is AlertRule.EXPIRING
        assert alert.days_to_expiry == 14
        assert alert.message == "Batch expires in 14 days"
        assert alert.id == f"expiring-{item.id}"

    def test_critical_and_expiring_item_yields_two_alerts(self):
        item = make_item(quantity=0, expiry_date="2026-01-10")
        run = derive_alerts([item], NOW, 30)
        assert [a.severity for a in run.alerts] == [Severity.CRITICAL, Severity.EXPIRING]
        assert run.alerts[0].message == "Stock depleted - 0 units remaining"
        assert [a.id for a in run.alerts] == [f"critical-{item.id}", f"expiring-{item.id}"]

    def test_low_stock_is_a_warning(self):
        item = make_item(quantity=4, min_threshold=10)
        run = derive_alerts([item], NOW, 30)
        assert len(run.alerts) == 1
        assert run.alerts[0].severity is Severity.WARNING
        assert run.alerts[0].rule is AlertRule.LOW_STOCK
        assert run.alerts[0].message == "Below threshold - 4 units remaining"
        assert run.alerts[0].id == f"low-{item.id}"

    def test_healthy_item_yields_nothing(self):
        run = derive_alerts([make_item(quantity=50, expiry_date="2026-06-01")], NOW, 30)
        assert run.alerts == []
        assert run.faults == []

    @pytest.mark.parametrize(
        "expiry, expected",
        [
            ("2026-01-01", True),   # today
            ("2026-01-31", True),   # horizon edge
            ("2026-02-01", False),  # one day past the horizon
            ("2025-12-31", False),  # already expired
        ],
    )
    def test_expiry_window_bounds(self, expiry, expected):
        run = derive_alerts([make_item(expiry_date=expiry)], NOW, 30)
        assert bool(run.alerts) is expected

    def test_expiring_today_message(self):
        run = derive_alerts([make_item(expiry_date="2026-01-01")], NOW, 30)
        assert run.alerts[0].message == "Batch expires today"

    def test_zero_horizon_only_flags_today(self):
        items = [make_item("a", expiry_date="2026-01-01"), make_item("b", expiry_date="2026-01-02")]
        run = derive_alerts(items, NOW, 0)
        assert [a.item_id for a in run.alerts] == ["a"]

    def test_preserves_input_order(self, mixed_items):
        run = derive_alerts(mixed_items, NOW, 30)
        assert [(a.item_id, a.rule) for a in run.alerts] == [
            ("med-001", AlertRule.CRITICAL),
            ("med-002", AlertRule.LOW_STOCK),
            ("med-003", AlertRule.EXPIRING),
        ]

    def test_bad_dates_are_reported_without_stopping(self):
        items = [
            make_item("bad", quantity=0, expiry_date="not-a-date"),
            make_item("missing", expiry_date=None),
            make_item("junk", expiry_date="2026-01-15oops"),
            make_item("good", expiry_date="2026-01-05"),
        ]
        run = derive_alerts(items, NOW, 30)
        # The stock alert for the bad item still goes out
        assert [(a.item_id, a.rule) for a in run.alerts] == [
            ("bad", AlertRule.CRITICAL),
            ("good", AlertRule.EXPIRING),
        ]
        assert [(f.item_id, f.tag) for f in run.faults] == [
            ("bad", "InvalidExpiryDate"),
            ("missing", "InvalidExpiryDate"),
            ("junk", "InvalidExpiryDate"),
        ]

    def test_timestamp_comes_from_injected_now(self):
        now = datetime(2026, 1, 1, 9, 30)
        run = derive_alerts([make_item(quantity=0)], now, 30)
        assert run.alerts[0].generated_at == now

    def test_date_now_becomes_midnight_timestamp(self):
        run = derive_alerts([make_item(quantity=0)], NOW, 30)
        assert run.alerts[0].generated_at == datetime(2026, 1, 1)

    def test_default_horizon_comes_from_settings(self, monkeypatch):
        from pharmahealth import settings

        monkeypatch.setattr(settings, "EXPIRY_HORIZON_DAYS", 5)
        run = derive_alerts([make_item(expiry_date="2026-01-10")], NOW)
        assert run.alerts == []

    def test_negative_horizon_is_rejected(self):
        with pytest.raises(ValueError):
            derive_alerts([make_item()], NOW, -1)

    def test_at_most_two_alerts_per_item(self, mixed_items):
        run = derive_alerts(mixed_items, NOW, 3650)
        assert len(run.alerts) <= 2 * len(mixed_items)
