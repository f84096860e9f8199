"""
Coinbase L2 Order Book Parser

응답 포맷 (GET /products/BTC-USD/book?level=2):
    {
        "bids": [["price", "size", num_orders], ...],
        "asks": [["price", "size", num_orders], ...],
        "sequence": 123,
        "auction_mode": false,
        "auction": null,
        "time": "2024-01-01T00:00:00.000Z"
    }

price/size는 문자열 → Decimal (정확 변환). bids/asks만 필수.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List

from aggregator.exceptions import OrderBookParseError
from aggregator.types import CoinbaseBook, CoinbaseLevel

logger = logging.getLogger(__name__)


def _parse_decimal(raw: Any, field_name: str, index: int) -> Decimal:
    if not isinstance(raw, str):
        raise OrderBookParseError(f"Coinbase level {index}: {field_name} must be a string, got {raw!r}")
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise OrderBookParseError(f"Coinbase level {index}: invalid {field_name} {raw!r}") from e
    if not value.is_finite() or value < 0:
        raise OrderBookParseError(f"Coinbase level {index}: {field_name} out of range {raw!r}")
    return value


def parse_level(entry: Any, index: int = 0) -> CoinbaseLevel:
    """[price_str, size_str, order_count] 트리플 → CoinbaseLevel"""
    if not isinstance(entry, (list, tuple)) or len(entry) < 3:
        raise OrderBookParseError(
            f"Coinbase level {index}: expected an array like [\"price\",\"size\",num_orders], got {entry!r}"
        )

    price = _parse_decimal(entry[0], "price", index)
    size = _parse_decimal(entry[1], "size", index)

    order_count = entry[2]
    if isinstance(order_count, bool) or not isinstance(order_count, int) or order_count < 0:
        raise OrderBookParseError(f"Coinbase level {index}: invalid num_orders {order_count!r}")

    return CoinbaseLevel(price=price, size=size, order_count=order_count)


def _parse_side(payload: dict, side: str) -> List[CoinbaseLevel]:
    entries = payload.get(side)
    if not isinstance(entries, list):
        raise OrderBookParseError(f"Coinbase payload missing '{side}' array")
    return [parse_level(entry, i) for i, entry in enumerate(entries)]


def parse_coinbase_book(payload: Any) -> CoinbaseBook:
    """
    Coinbase JSON → CoinbaseBook

    Raises:
        OrderBookParseError: 구조/필드 오류
    """
    if not isinstance(payload, dict):
        raise OrderBookParseError(f"Coinbase payload must be an object, got {type(payload).__name__}")

    book = CoinbaseBook(
        bids=_parse_side(payload, "bids"),
        asks=_parse_side(payload, "asks"),
        sequence=payload.get("sequence"),
        auction_mode=bool(payload.get("auction_mode", False)),
        time=payload.get("time"),
    )
    logger.debug(f"[COINBASE] Parsed book: bids={len(book.bids)}, asks={len(book.asks)}, sequence={book.sequence}")
    return book
