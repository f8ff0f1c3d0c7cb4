"""
Practice Ranking Module

Leaderboard of practice/clinic pairs by order volume.
"""

from typing import Dict, List, Tuple

from logistics.models import Order, PracticeStats

DEFAULT_TOP_N = 10


def rank_practices(filtered_orders: List[Order], top_n: int = DEFAULT_TOP_N) -> List[PracticeStats]:
    """
    Rank (practice, clinic) pairs by number of orders.

    Pairs with equal counts keep the order in which they were first seen
    (sorted() is stable), and ranks are assigned by position: 1..N with no
    gaps, even across ties.

    Args:
        filtered_orders: Output of filter_orders
        top_n: Maximum number of rows to return

    Returns:
        PracticeStats rows in rank order
    """
    if top_n <= 0:
        return []

    counts: Dict[Tuple[str, str], int] = {}
    for order in filtered_orders:
        key = (order.practice_name, order.clinic_name)
        counts[key] = counts.get(key, 0) + 1

    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:top_n]

    return [
        PracticeStats(practice_name=practice, clinic_name=clinic, order_count=count, rank=position)
        for position, ((practice, clinic), count) in enumerate(ordered, start=1)
    ]
