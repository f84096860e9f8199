"""
Gemini Order Book Parser

응답 포맷 (GET /v1/book/BTCUSD):
    {
        "bids": [{"price": "...", "amount": "...", "timestamp": "..."}, ...],
        "asks": [{"price": "...", "amount": "...", "timestamp": "..."}, ...]
    }

모든 숫자 필드가 문자열. price/amount → Decimal, timestamp → int.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List

from aggregator.exceptions import OrderBookParseError
from aggregator.types import GeminiBook, GeminiLevel

logger = logging.getLogger(__name__)


def _parse_decimal(raw: Any, field_name: str, index: int) -> Decimal:
    if not isinstance(raw, str):
        raise OrderBookParseError(f"Gemini level {index}: {field_name} must be a string, got {raw!r}")
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise OrderBookParseError(f"Gemini level {index}: invalid {field_name} {raw!r}") from e
    if not value.is_finite() or value < 0:
        raise OrderBookParseError(f"Gemini level {index}: {field_name} out of range {raw!r}")
    return value


def _parse_timestamp(raw: Any, index: int) -> int:
    # ASCII 숫자만 ("²" 같은 유니코드 숫자 제외)
    if not isinstance(raw, str) or not (raw.isascii() and raw.isdigit()):
        raise OrderBookParseError(f"Gemini level {index}: invalid timestamp {raw!r}")
    return int(raw)


def parse_level(entry: Any, index: int = 0) -> GeminiLevel:
    """{price, amount, timestamp} 객체 → GeminiLevel"""
    if not isinstance(entry, dict):
        raise OrderBookParseError(f"Gemini level {index}: expected an object, got {entry!r}")

    missing = [key for key in ("price", "amount", "timestamp") if key not in entry]
    if missing:
        raise OrderBookParseError(f"Gemini level {index}: missing fields {missing}")

    return GeminiLevel(
        price=_parse_decimal(entry["price"], "price", index),
        amount=_parse_decimal(entry["amount"], "amount", index),
        timestamp=_parse_timestamp(entry["timestamp"], index),
    )


def _parse_side(payload: dict, side: str) -> List[GeminiLevel]:
    entries = payload.get(side)
    if not isinstance(entries, list):
        raise OrderBookParseError(f"Gemini payload missing '{side}' array")
    return [parse_level(entry, i) for i, entry in enumerate(entries)]


def parse_gemini_book(payload: Any) -> GeminiBook:
    """
    Gemini JSON → GeminiBook

    Raises:
        OrderBookParseError: 구조/필드 오류
    """
    if not isinstance(payload, dict):
        raise OrderBookParseError(f"Gemini payload must be an object, got {type(payload).__name__}")

    book = GeminiBook(
        bids=_parse_side(payload, "bids"),
        asks=_parse_side(payload, "asks"),
    )
    logger.debug(f"[GEMINI] Parsed book: bids={len(book.bids)}, asks={len(book.asks)}")
    return book
