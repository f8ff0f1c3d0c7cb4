"""
Aggregation Module

Turns a filtered order collection into the dashboard's derived metrics:
status and device counts, the daily trend, unassigned deliveries, aging
alerts and the return success rate. Also derives stock levels.
"""

import math
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional
import logging

from logistics.filters import iso_day
from logistics.models import (
    AgingAlerts,
    AssignmentRow,
    DashboardStats,
    DeviceType,
    Order,
    OrderStatus,
    StockItem,
    StockLevel,
    TrendPoint,
)

logger = logging.getLogger(__name__)

PENDING_CRITICAL_DAYS = 7
PENDING_WARNING_DAYS = 1

SECONDS_PER_DAY = 24 * 3600


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def _as_utc(timestamp: datetime) -> datetime:
    # Naive timestamps are taken to already be in UTC, as in iso_day
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def calculate_age_days(created: datetime, now: datetime) -> int:
    """
    Whole days elapsed between creation and now (floored).

    Naive timestamps are treated as UTC, so naive and aware values can be mixed.
    """
    return math.floor((_as_utc(now) - _as_utc(created)).total_seconds() / SECONDS_PER_DAY)


def _percentage(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


# =============================================================================
# ORDER METRICS
# =============================================================================

def compute_stats(filtered_orders: List[Order], now: Optional[datetime] = None) -> DashboardStats:
    """
    Compute all dashboard metrics in a single pass over the filtered orders.

    Status buckets are seeded at zero so every status appears; device buckets
    only appear once a device has been seen.

    Args:
        filtered_orders: Output of filter_orders
        now: Reference time for aging (defaults to current UTC time)

    Returns:
        DashboardStats for the filtered set
    """
    if now is None:
        now = datetime.now(timezone.utc)

    by_status: Dict[OrderStatus, int] = {status: 0 for status in OrderStatus}
    by_device: Dict[DeviceType, int] = {}
    trend: Dict[str, int] = {}
    unassigned_by_device: Dict[DeviceType, int] = {}

    pending_over_7 = 0
    not_created_over_1 = 0
    unassigned_delivered = 0

    for order in filtered_orders:
        by_status[order.status] += 1
        by_device[order.device_type] = by_device.get(order.device_type, 0) + 1

        if order.is_unassigned_delivery:
            unassigned_delivered += 1
            unassigned_by_device[order.device_type] = unassigned_by_device.get(order.device_type, 0) + 1

        day = iso_day(order.created_date)
        trend[day] = trend.get(day, 0) + 1

        if order.status == OrderStatus.PENDING:
            age_days = calculate_age_days(order.created_date, now)
            if age_days > PENDING_CRITICAL_DAYS:
                pending_over_7 += 1
            # Overlaps the 7-day alert; kept as the dashboard has always counted it
            if age_days > PENDING_WARNING_DAYS:
                not_created_over_1 += 1

    total = len(filtered_orders)

    # ISO day strings sort chronologically
    trend_data = [TrendPoint(date=day, count=count) for day, count in sorted(trend.items())]

    # total is every filtered order of that device, not just delivered ones
    assignment_data = [
        AssignmentRow(name=device.value, unassigned=count, total=by_device.get(device, 0))
        for device, count in unassigned_by_device.items()
    ]

    delivered = by_status[OrderStatus.DELIVERED]

    logger.info(
        f"Computed stats for {total} orders "
        f"({unassigned_delivered} unassigned, {pending_over_7} pending > {PENDING_CRITICAL_DAYS}d)"
    )

    return DashboardStats(
        total_orders=total,
        pending_orders=by_status[OrderStatus.PENDING],
        pending_deliveries=by_status[OrderStatus.IN_TRANSIT],
        orders_by_status=by_status,
        orders_by_device=by_device,
        trend_data=trend_data,
        assignment_data=assignment_data,
        unassigned_delivered_count=unassigned_delivered,
        aging_alerts=AgingAlerts(
            pending_over_7_days=pending_over_7,
            not_created_over_1_day=not_created_over_1
        ),
        returned_devices_count=delivered,
        return_labels_issued=total,
        return_percentage=_percentage(delivered, total)
    )


def status_chart_data(stats: DashboardStats) -> List[Dict[str, Any]]:
    """Status breakdown as name/value pairs for charting"""
    return [{'name': status.value, 'value': count} for status, count in stats.orders_by_status.items()]


def device_chart_data(stats: DashboardStats) -> List[Dict[str, Any]]:
    """Device distribution as name/value pairs for charting"""
    return [{'name': device.value, 'value': count} for device, count in stats.orders_by_device.items()]


# =============================================================================
# STOCK LEVELS
# =============================================================================

def process_stock_levels(stock_items: List[StockItem]) -> List[StockLevel]:
    """
    Derive restock flags and fulfillment ratios for each stock snapshot.

    Args:
        stock_items: Stock snapshot per device type

    Returns:
        List of StockLevel rows in input order
    """
    levels = []
    for item in stock_items:
        if item.max_level > 0:
            fulfillment = min(item.quantity / item.max_level * 100, 100.0)
        else:
            fulfillment = 0.0

        levels.append(StockLevel(
            device_type=item.device_type,
            quantity=item.quantity,
            min_level=item.min_level,
            max_level=item.max_level,
            is_critical=item.quantity < item.min_level,
            fulfillment_pct=fulfillment
        ))

    return levels


def stock_alerts(stock_items: List[StockItem]) -> List[StockItem]:
    """Stock items below their minimum level"""
    return [item for item in stock_items if item.quantity < item.min_level]
