"""
Order Book Core

- merger: 두 거래소 호가 → 통합 ladder
- valuator: ladder 소비 → 체결 비용
"""

from aggregator.orderbook.merger import merge, merge_sorted_asks, merge_sorted_bids
from aggregator.orderbook.valuator import DUST_THRESHOLD, evaluate, validate_quantity, value

__all__ = [
    "merge",
    "merge_sorted_asks",
    "merge_sorted_bids",
    "DUST_THRESHOLD",
    "evaluate",
    "validate_quantity",
    "value",
]
