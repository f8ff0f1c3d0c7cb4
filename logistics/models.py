"""
Domain Model Module

Enumerations and immutable record shapes for device orders, stock and the
derived dashboard views. No logic beyond conversion to plain dictionaries.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, List, Any, Optional


class OrderType(str, Enum):
    NEW = 'New'
    REPLACEMENT = 'Replacement'
    ADDITIONAL = 'Additional'
    RETURN = 'Return'


class OrderStatus(str, Enum):
    PENDING = 'Pending'
    CREATED = 'Created'
    IN_TRANSIT = 'In Transit'
    DELIVERED = 'Delivered'


class DeviceType(str, Enum):
    HEART_MONITOR = 'Heart Monitor'
    GLUCOMETER = 'Glucometer'
    BP_CUFF = 'BP Cuff'
    PULSE_OX = 'Pulse Oximeter'
    SMART_SCALE = 'Smart Scale'


class ViewMode(str, Enum):
    OUTBOUND = 'New'
    RETURN = 'Return'


class Assignment(str, Enum):
    """Patient-assignment state of an order (only meaningful once delivered)."""

    NOT_APPLICABLE = 'not_applicable'
    ASSIGNED = 'assigned'
    UNASSIGNED = 'unassigned'

    @classmethod
    def from_flag(cls, flag: Optional[bool]) -> 'Assignment':
        """Convert the legacy optional boolean (None means not yet evaluated)."""
        if flag is None:
            return cls.NOT_APPLICABLE
        return cls.ASSIGNED if flag else cls.UNASSIGNED


OUTBOUND_TYPES = (OrderType.NEW, OrderType.REPLACEMENT, OrderType.ADDITIONAL)

# Device filter sentinel
ALL_DEVICES = 'All'


def _plain(value: Any) -> Any:
    """Recursively replace enum members with their values"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {_plain(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class Order:
    id: str
    type: OrderType
    status: OrderStatus
    device_type: DeviceType
    practice_name: str
    clinic_name: str
    created_date: datetime
    delivery_date: Optional[datetime] = None
    tracking_number: Optional[str] = None
    assignment: Assignment = Assignment.NOT_APPLICABLE

    @property
    def is_unassigned_delivery(self) -> bool:
        # Unassigned only counts once the device has actually arrived
        return self.status == OrderStatus.DELIVERED and self.assignment == Assignment.UNASSIGNED

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass(frozen=True)
class StockItem:
    device_type: DeviceType
    quantity: int
    min_level: int
    max_level: int

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass(frozen=True)
class StockLevel:
    device_type: DeviceType
    quantity: int
    min_level: int
    max_level: int
    is_critical: bool
    fulfillment_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass(frozen=True)
class PracticeStats:
    practice_name: str
    clinic_name: str
    order_count: int
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AgingAlerts:
    pending_over_7_days: int = 0
    not_created_over_1_day: int = 0


@dataclass(frozen=True)
class TrendPoint:
    date: str
    count: int


@dataclass(frozen=True)
class AssignmentRow:
    name: str
    unassigned: int
    total: int


@dataclass(frozen=True)
class DashboardStats:
    """
    Aggregate view over one filtered order set.

    The return-view fields (returned_devices_count, return_labels_issued,
    return_percentage) are always populated; they only carry meaning when
    the filter is in Return view.
    """

    total_orders: int = 0
    pending_orders: int = 0
    pending_deliveries: int = 0
    orders_by_status: Dict[OrderStatus, int] = field(default_factory=dict)
    orders_by_device: Dict[DeviceType, int] = field(default_factory=dict)
    trend_data: List[TrendPoint] = field(default_factory=list)
    assignment_data: List[AssignmentRow] = field(default_factory=list)
    unassigned_delivered_count: int = 0
    aging_alerts: AgingAlerts = field(default_factory=AgingAlerts)
    returned_devices_count: int = 0
    return_labels_issued: int = 0
    return_percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


def orders_to_records(orders: List[Order]) -> List[Dict[str, Any]]:
    """
    Flatten orders into row dictionaries for tabular export.

    Args:
        orders: Orders to flatten

    Returns:
        List of dictionaries with display-friendly column names
    """
    return [
        {
            'Order ID': o.id,
            'Type': o.type.value,
            'Status': o.status.value,
            'Device': o.device_type.value,
            'Practice': o.practice_name,
            'Clinic': o.clinic_name,
            'Created': o.created_date.strftime('%Y-%m-%d'),
            'Delivered': o.delivery_date.strftime('%Y-%m-%d') if o.delivery_date else '',
            'Tracking Number': o.tracking_number or '',
            'Assignment': o.assignment.value,
        }
        for o in orders
    ]
