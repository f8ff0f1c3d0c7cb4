"""
Dashboard State

Holds the current filter selection and recomputes the filtered orders,
stats and rankings in full whenever an input changes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import logging

from logistics.aggregation import compute_stats, stock_alerts
from logistics.filters import DateLike, as_iso_date, default_date_range, filter_orders
from logistics.models import (
    ALL_DEVICES,
    DashboardStats,
    DeviceType,
    Order,
    PracticeStats,
    StockItem,
    ViewMode,
)
from logistics.ranking import rank_practices

logger = logging.getLogger(__name__)

INITIAL_INSIGHT = "Analyzing current data..."
PENDING_INSIGHT = "Synthesizing data..."

FilterSnapshot = Tuple[str, str, str, str]


@dataclass(frozen=True)
class InsightTicket:
    generation: int
    snapshot: FilterSnapshot


class DashboardState:
    """
    Filter state plus the derived views it produces.

    Every setter bumps ``generation`` so insight responses computed for an
    older selection can be recognised and dropped.
    """

    def __init__(
        self,
        orders: List[Order],
        stock: Optional[List[StockItem]] = None,
        view: ViewMode = ViewMode.OUTBOUND,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        device_filter: Union[DeviceType, str] = ALL_DEVICES,
        clock: Optional[Callable[[], datetime]] = None
    ):
        default_start, default_end = default_date_range()
        self.orders = list(orders)
        self.stock = list(stock or [])
        self.view = ViewMode(view)
        self.start_date = as_iso_date(start_date) if start_date else default_start
        self.end_date = as_iso_date(end_date) if end_date else default_end
        self.device_filter = device_filter if device_filter == ALL_DEVICES else DeviceType(device_filter)
        self.clock = clock
        self.generation = 0
        self.insight_text = INITIAL_INSIGHT

        self.filtered_orders: List[Order] = []
        self.stats = DashboardStats()
        self.rankings: List[PracticeStats] = []
        self._recompute()

    # -------------------------------------------------------------------------
    # Filter boundary
    # -------------------------------------------------------------------------

    def set_view(self, mode: ViewMode):
        self.view = ViewMode(mode)
        self._changed()

    def set_date_range(self, start: DateLike, end: DateLike):
        self.start_date = as_iso_date(start)
        self.end_date = as_iso_date(end)
        self._changed()

    def set_device_filter(self, device: Union[DeviceType, str]):
        self.device_filter = device if device == ALL_DEVICES else DeviceType(device)
        self._changed()

    def set_orders(self, orders: List[Order]):
        self.orders = list(orders)
        self._changed()

    def snapshot(self) -> FilterSnapshot:
        device = self.device_filter.value if isinstance(self.device_filter, DeviceType) else self.device_filter
        return (self.view.value, self.start_date, self.end_date, device)

    def _changed(self):
        self.generation += 1
        self._recompute()

    def _recompute(self):
        now = self.clock() if self.clock else None
        self.filtered_orders = filter_orders(
            self.orders, self.start_date, self.end_date, self.view, self.device_filter
        )
        self.stats = compute_stats(self.filtered_orders, now)
        self.rankings = rank_practices(self.filtered_orders)

    # -------------------------------------------------------------------------
    # Insights
    # -------------------------------------------------------------------------

    def insight_summary(self) -> Dict[str, Any]:
        """JSON-serializable payload sent to the insight service"""
        aging = self.stats.aging_alerts
        summary = {
            'view': self.view.value,
            'total': self.stats.total_orders,
            'unassignedDelivered': self.stats.unassigned_delivered_count,
            'agingAlerts': {
                'pendingOver7Days': aging.pending_over_7_days,
                'notCreatedOver1Day': aging.not_created_over_1_day,
            },
            'stockAlerts': [
                {
                    'deviceType': item.device_type.value,
                    'quantity': item.quantity,
                    'minLevel': item.min_level,
                    'maxLevel': item.max_level,
                }
                for item in stock_alerts(self.stock)
            ],
        }
        # Key is absent, not null, when nothing ranks
        if self.rankings:
            summary['topPractice'] = self.rankings[0].practice_name
        return summary

    def begin_insight_request(self) -> InsightTicket:
        self.insight_text = PENDING_INSIGHT
        return InsightTicket(generation=self.generation, snapshot=self.snapshot())

    def is_current(self, ticket: InsightTicket) -> bool:
        return ticket.generation == self.generation

    def apply_insight(self, ticket: InsightTicket, text: str) -> bool:
        """
        Store an insight response if it was requested for the current selection.

        Returns:
            True if stored, False if the response was stale and dropped
        """
        if not self.is_current(ticket):
            logger.warning(
                f"Dropping stale insight for generation {ticket.generation} "
                f"(current {self.generation})"
            )
            return False

        self.insight_text = text
        return True

