"""
Shared fixtures for all tests.
"""
import pytest
from datetime import datetime, timedelta, timezone
from itertools import count

from logistics.models import Assignment, DeviceType, Order, OrderStatus, OrderType

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

_ids = count(1)


def build_order(
    type=OrderType.NEW,
    status=OrderStatus.CREATED,
    device_type=DeviceType.GLUCOMETER,
    practice_name='Green Valley Health',
    clinic_name='North Wing',
    created_date=None,
    days_ago=None,
    assignment=Assignment.NOT_APPLICABLE,
    **kwargs
):
    if created_date is None:
        created_date = NOW - timedelta(days=days_ago or 0)
    return Order(
        id=kwargs.pop('id', f"ORD-{next(_ids)}"),
        type=type,
        status=status,
        device_type=device_type,
        practice_name=practice_name,
        clinic_name=clinic_name,
        created_date=created_date,
        assignment=assignment,
        **kwargs
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_order():
    return build_order


@pytest.fixture
def mixed_orders():
    """A small spread of views, devices, statuses and days"""
    return [
        build_order(id='A', type=OrderType.NEW, device_type=DeviceType.GLUCOMETER, days_ago=1),
        build_order(id='B', type=OrderType.REPLACEMENT, device_type=DeviceType.BP_CUFF, days_ago=3),
        build_order(id='C', type=OrderType.RETURN, device_type=DeviceType.GLUCOMETER, days_ago=2),
        build_order(id='D', type=OrderType.ADDITIONAL, device_type=DeviceType.SMART_SCALE, days_ago=40),
        build_order(id='E', type=OrderType.RETURN, device_type=DeviceType.PULSE_OX, days_ago=5,
                    status=OrderStatus.DELIVERED, assignment=Assignment.ASSIGNED),
        build_order(id='F', type=OrderType.NEW, device_type=DeviceType.GLUCOMETER, days_ago=0),
    ]
