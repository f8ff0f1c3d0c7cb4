"""
Mock Data Source

Random order and stock records for running the dashboard without a backing
order system. Pass a seed for reproducible data.
"""

import random
import string
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from logistics.models import (
    Assignment,
    DeviceType,
    Order,
    OrderStatus,
    OrderType,
    StockItem,
)

PRACTICES = ['Green Valley Health', 'Oak Ridge Medical', 'Lakeside Cardiology', 'Mountain View Wellness']
CLINICS = ['North Wing', 'South Campus', 'East Annex', 'West Plaza']
DEVICES = list(DeviceType)
STATUSES = list(OrderStatus)

DEFAULT_ORDER_COUNT = 350
HISTORY_DAYS = 30


def _pick_type(rng: random.Random) -> OrderType:
    if rng.random() > 0.7:
        return OrderType.RETURN
    if rng.random() > 0.6:
        return OrderType.NEW
    return OrderType.REPLACEMENT if rng.random() > 0.5 else OrderType.ADDITIONAL


def _tracking_number(rng: random.Random) -> str:
    return 'TRK' + ''.join(rng.choices(string.ascii_uppercase + string.digits, k=6))


def generate_mock_orders(
    count: int = DEFAULT_ORDER_COUNT,
    now: Optional[datetime] = None,
    seed: Optional[int] = None
) -> List[Order]:
    """
    Generate random orders created over the last 30 days.

    Roughly 30% are returns. Delivered orders are assigned to a patient 70% of
    the time; orders past Pending carry a tracking number.

    Args:
        count: Number of orders
        now: Reference time (defaults to current UTC time)
        seed: Random seed for reproducible output

    Returns:
        List of Order records with ids ORD-1000, ORD-1001, ...
    """
    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)

    orders = []
    for i in range(count):
        order_type = _pick_type(rng)
        status = rng.choice(STATUSES)
        created = now - timedelta(days=rng.randrange(HISTORY_DAYS))
        delivered = status == OrderStatus.DELIVERED

        orders.append(Order(
            id=f"ORD-{1000 + i}",
            type=order_type,
            status=status,
            device_type=rng.choice(DEVICES),
            practice_name=rng.choice(PRACTICES),
            clinic_name=rng.choice(CLINICS),
            created_date=created,
            delivery_date=now if delivered else None,
            tracking_number=_tracking_number(rng) if status != OrderStatus.PENDING else None,
            assignment=Assignment.from_flag(rng.random() > 0.3) if delivered else Assignment.NOT_APPLICABLE
        ))

    return orders


def generate_mock_stock(seed: Optional[int] = None) -> List[StockItem]:
    """One stock snapshot per device type (min 15, max 100)"""
    rng = random.Random(seed)
    return [
        StockItem(device_type=device, quantity=rng.randint(5, 54), min_level=15, max_level=100)
        for device in DEVICES
    ]
