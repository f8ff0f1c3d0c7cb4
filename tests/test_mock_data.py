"""
Unit tests for the mock data source
"""

from datetime import datetime, timedelta, timezone

from logistics.mock_data import CLINICS, PRACTICES, generate_mock_orders, generate_mock_stock
from logistics.models import Assignment, DeviceType, OrderStatus

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class TestGenerateMockOrders:

    def test_seeded_generation_is_reproducible(self):
        assert generate_mock_orders(50, NOW, seed=42) == generate_mock_orders(50, NOW, seed=42)

    def test_record_invariants(self):
        orders = generate_mock_orders(200, NOW, seed=7)

        assert [o.id for o in orders[:3]] == ['ORD-1000', 'ORD-1001', 'ORD-1002']
        for order in orders:
            assert order.practice_name in PRACTICES
            assert order.clinic_name in CLINICS
            assert NOW - timedelta(days=30) < order.created_date <= NOW
            if order.status == OrderStatus.DELIVERED:
                assert order.delivery_date == NOW
                assert order.assignment in (Assignment.ASSIGNED, Assignment.UNASSIGNED)
            else:
                assert order.delivery_date is None
                assert order.assignment == Assignment.NOT_APPLICABLE
            if order.status == OrderStatus.PENDING:
                assert order.tracking_number is None
            else:
                assert order.tracking_number.startswith('TRK')


class TestGenerateMockStock:

    def test_one_item_per_device(self):
        stock = generate_mock_stock(seed=1)

        assert [item.device_type for item in stock] == list(DeviceType)
        assert all(5 <= item.quantity <= 54 for item in stock)
        assert all(item.min_level == 15 and item.max_level == 100 for item in stock)
