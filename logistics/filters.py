"""
Order Filter Helpers

Narrow the full order collection to what the dashboard's filter bar selects:
an inclusive calendar-day range, the outbound/return view and a device type.
"""

from datetime import date, datetime, timezone
from typing import List, Optional, Tuple, Union

from logistics.models import ALL_DEVICES, OUTBOUND_TYPES, DeviceType, Order, OrderType, ViewMode

DEFAULT_START_DATE = '2024-01-01'

DateLike = Union[str, date]


def iso_day(timestamp: datetime) -> str:
    """
    Get the UTC calendar day of a timestamp as YYYY-MM-DD.

    Naive timestamps are taken to already be in UTC.

    Example:
        >>> iso_day(datetime(2024, 3, 5, 23, 59))
        '2024-03-05'
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.strftime('%Y-%m-%d')


def as_iso_date(value: DateLike) -> str:
    if isinstance(value, datetime):
        return iso_day(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def default_date_range(today: Optional[date] = None) -> Tuple[str, str]:
    """Dashboard default range: fixed start through today"""
    today = today or datetime.now(timezone.utc).date()
    return DEFAULT_START_DATE, today.isoformat()


def matches_view(order: Order, view_mode: ViewMode) -> bool:
    if view_mode == ViewMode.OUTBOUND:
        return order.type in OUTBOUND_TYPES
    return order.type == OrderType.RETURN


def filter_orders(
    orders: List[Order],
    start_date: DateLike,
    end_date: DateLike,
    view_mode: ViewMode,
    device_filter: Union[DeviceType, str] = ALL_DEVICES
) -> List[Order]:
    """
    Filter orders by creation day, view and device (client-side filtering).

    Bounds are inclusive and compared as YYYY-MM-DD strings against each
    order's creation day, so an order created at any time on end_date is kept.
    Callers must pass well-formed ISO dates; anything else falls back to plain
    string ordering.

    Args:
        orders: Full order collection
        start_date: First day to include (ISO string or date)
        end_date: Last day to include (ISO string or date)
        view_mode: ViewMode.OUTBOUND or ViewMode.RETURN
        device_filter: A DeviceType, or ALL_DEVICES to skip device filtering

    Returns:
        Matching orders in their original relative order
    """
    start = as_iso_date(start_date)
    end = as_iso_date(end_date)

    filtered = []
    for order in orders:
        order_day = iso_day(order.created_date)
        if not (start <= order_day <= end):
            continue
        if not matches_view(order, view_mode):
            continue
        if device_filter != ALL_DEVICES and order.device_type != device_filter:
            continue
        filtered.append(order)

    return filtered
