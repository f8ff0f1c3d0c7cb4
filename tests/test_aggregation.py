"""
Unit tests for dashboard metric aggregation
"""

from datetime import datetime, timedelta, timezone

import pytest

from logistics.aggregation import (
    calculate_age_days,
    compute_stats,
    device_chart_data,
    process_stock_levels,
    status_chart_data,
    stock_alerts,
)
from logistics.models import (
    AgingAlerts,
    Assignment,
    AssignmentRow,
    DeviceType,
    OrderStatus,
    StockItem,
    TrendPoint,
)


class TestComputeStats:
    """Counts, trend, assignment and aging metrics"""

    def test_unassigned_and_aging_scenario(self, make_order, now):
        orders = [
            make_order(status=OrderStatus.DELIVERED, assignment=Assignment.UNASSIGNED,
                       device_type=DeviceType.GLUCOMETER),
            make_order(status=OrderStatus.PENDING, device_type=DeviceType.BP_CUFF, days_ago=10),
        ]

        stats = compute_stats(orders, now)

        assert stats.unassigned_delivered_count == 1
        assert stats.aging_alerts.pending_over_7_days == 1
        assert AssignmentRow(name='Glucometer', unassigned=1, total=1) in stats.assignment_data

    def test_empty_input_gives_zeroed_stats(self, now):
        stats = compute_stats([], now)

        assert stats.total_orders == 0
        assert stats.orders_by_status == {status: 0 for status in OrderStatus}
        assert stats.orders_by_device == {}
        assert stats.trend_data == []
        assert stats.assignment_data == []
        assert stats.unassigned_delivered_count == 0
        assert stats.aging_alerts == AgingAlerts(0, 0)
        assert stats.return_percentage == 0

    def test_status_buckets_sum_to_total(self, mixed_orders, now):
        stats = compute_stats(mixed_orders, now)
        assert sum(stats.orders_by_status.values()) == len(mixed_orders)
        assert stats.total_orders == len(mixed_orders)

    def test_all_statuses_seeded_devices_lazy(self, make_order, now):
        stats = compute_stats([make_order(device_type=DeviceType.SMART_SCALE)], now)

        assert list(stats.orders_by_status) == list(OrderStatus)
        assert stats.orders_by_status[OrderStatus.CREATED] == 1
        assert stats.orders_by_device == {DeviceType.SMART_SCALE: 1}

    def test_headline_counts(self, make_order, now):
        orders = [
            make_order(status=OrderStatus.PENDING),
            make_order(status=OrderStatus.PENDING),
            make_order(status=OrderStatus.IN_TRANSIT),
            make_order(status=OrderStatus.DELIVERED, assignment=Assignment.ASSIGNED),
        ]

        stats = compute_stats(orders, now)

        assert stats.pending_orders == 2
        assert stats.pending_deliveries == 1
        assert stats.returned_devices_count == 1
        assert stats.return_labels_issued == 4
        assert stats.return_percentage == pytest.approx(25.0)

    def test_unassigned_requires_delivered_status(self, make_order, now):
        # Unassigned flag on an undelivered order is not an alert
        orders = [
            make_order(status=OrderStatus.IN_TRANSIT, assignment=Assignment.UNASSIGNED),
            make_order(status=OrderStatus.DELIVERED, assignment=Assignment.NOT_APPLICABLE),
            make_order(status=OrderStatus.DELIVERED, assignment=Assignment.ASSIGNED),
        ]

        stats = compute_stats(orders, now)

        assert stats.unassigned_delivered_count == 0
        assert stats.assignment_data == []

    def test_assignment_total_counts_all_orders_of_device(self, make_order, now):
        orders = [
            make_order(status=OrderStatus.DELIVERED, assignment=Assignment.UNASSIGNED, device_type=DeviceType.BP_CUFF),
            make_order(status=OrderStatus.PENDING, device_type=DeviceType.BP_CUFF),
            make_order(status=OrderStatus.CREATED, device_type=DeviceType.BP_CUFF),
            make_order(status=OrderStatus.DELIVERED, assignment=Assignment.UNASSIGNED, device_type=DeviceType.PULSE_OX),
        ]

        stats = compute_stats(orders, now)

        assert stats.assignment_data == [
            AssignmentRow(name='BP Cuff', unassigned=1, total=3),
            AssignmentRow(name='Pulse Oximeter', unassigned=1, total=1),
        ]

    def test_trend_sorted_by_day(self, make_order, now):
        orders = [
            make_order(days_ago=0),
            make_order(days_ago=3),
            make_order(days_ago=0),
            make_order(days_ago=12),
        ]

        stats = compute_stats(orders, now)

        assert stats.trend_data == [
            TrendPoint(date='2024-06-03', count=1),
            TrendPoint(date='2024-06-12', count=1),
            TrendPoint(date='2024-06-15', count=2),
        ]

    def test_aging_thresholds_are_strict(self, make_order, now):
        orders = [
            make_order(status=OrderStatus.PENDING, days_ago=1),   # neither
            make_order(status=OrderStatus.PENDING, days_ago=2),   # > 1 day
            make_order(status=OrderStatus.PENDING, days_ago=7),   # > 1 day
            make_order(status=OrderStatus.PENDING, days_ago=8),   # both
            make_order(status=OrderStatus.CREATED, days_ago=30),  # not pending
        ]

        stats = compute_stats(orders, now)

        assert stats.aging_alerts.pending_over_7_days == 1
        assert stats.aging_alerts.not_created_over_1_day == 3

    def test_age_is_floored(self, make_order, now):
        just_short = make_order(status=OrderStatus.PENDING, created_date=now - timedelta(days=7, hours=23))
        stats = compute_stats([just_short], now)
        assert stats.aging_alerts.pending_over_7_days == 0

    def test_return_percentage_bounds(self, make_order, now):
        all_delivered = [make_order(status=OrderStatus.DELIVERED) for _ in range(3)]
        none_delivered = [make_order(status=OrderStatus.PENDING) for _ in range(3)]

        assert compute_stats(all_delivered, now).return_percentage == pytest.approx(100.0)
        assert compute_stats(none_delivered, now).return_percentage == 0

    def test_deterministic_and_input_untouched(self, mixed_orders, now):
        before = list(mixed_orders)
        assert compute_stats(mixed_orders, now) == compute_stats(mixed_orders, now)
        assert mixed_orders == before

    def test_to_dict_is_plain(self, make_order, now):
        stats = compute_stats([make_order(status=OrderStatus.IN_TRANSIT, device_type=DeviceType.BP_CUFF)], now)
        data = stats.to_dict()

        assert data['orders_by_status']['In Transit'] == 1
        assert data['orders_by_device'] == {'BP Cuff': 1}
        assert data['aging_alerts'] == {'pending_over_7_days': 0, 'not_created_over_1_day': 0}
        assert data['trend_data'] == [{'date': '2024-06-15', 'count': 1}]


class TestChartSeries:
    """Name/value pairs for charts"""

    def test_status_and_device_series(self, make_order, now):
        stats = compute_stats([
            make_order(status=OrderStatus.PENDING, device_type=DeviceType.HEART_MONITOR),
            make_order(status=OrderStatus.PENDING, device_type=DeviceType.GLUCOMETER),
        ], now)

        assert status_chart_data(stats) == [
            {'name': 'Pending', 'value': 2},
            {'name': 'Created', 'value': 0},
            {'name': 'In Transit', 'value': 0},
            {'name': 'Delivered', 'value': 0},
        ]
        assert device_chart_data(stats) == [
            {'name': 'Heart Monitor', 'value': 1},
            {'name': 'Glucometer', 'value': 1},
        ]


class TestAgeDays:

    def test_whole_days(self):
        now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert calculate_age_days(now - timedelta(days=3, hours=5), now) == 3
        assert calculate_age_days(now, now) == 0


class TestStockLevels:
    """Restock flags and fulfillment ratio"""

    def test_levels(self):
        items = [
            StockItem(DeviceType.GLUCOMETER, quantity=10, min_level=15, max_level=100),
            StockItem(DeviceType.BP_CUFF, quantity=150, min_level=15, max_level=100),
            StockItem(DeviceType.SMART_SCALE, quantity=15, min_level=15, max_level=0),
        ]

        levels = process_stock_levels(items)

        assert [level.is_critical for level in levels] == [True, False, False]
        assert levels[0].fulfillment_pct == pytest.approx(10.0)
        assert levels[1].fulfillment_pct == 100.0
        assert levels[2].fulfillment_pct == 0.0

    def test_alerts_only_below_minimum(self):
        low = StockItem(DeviceType.GLUCOMETER, quantity=14, min_level=15, max_level=100)
        at_min = StockItem(DeviceType.BP_CUFF, quantity=15, min_level=15, max_level=100)
        assert stock_alerts([low, at_min]) == [low]


class TestNaiveTimestamps:
    """Naive timestamps are UTC and mix with the default aware clock"""

    def test_naive_created_date_without_now(self, make_order):
        naive_created = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=10)
        order = make_order(status=OrderStatus.PENDING, created_date=naive_created)

        stats = compute_stats([order])

        assert stats.aging_alerts.pending_over_7_days == 1
        assert stats.aging_alerts.not_created_over_1_day == 1

    def test_mixed_naive_and_aware(self):
        aware_now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert calculate_age_days(datetime(2024, 6, 12, 12, 0), aware_now) == 3
        assert calculate_age_days(aware_now - timedelta(days=2), datetime(2024, 6, 15, 12, 0)) == 2
