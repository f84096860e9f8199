"""
Ladder Merger

두 거래소 호가(이미 정렬된 시퀀스)를 하나의 통합 ladder로 병합.

정책:
- 병합 전 양쪽 입력을 방향에 맞게 stable sort (업스트림 순서 오류 허용)
- Asks: 오름차순, 같은 가격이면 exchange A(Coinbase) 먼저
- Bids: 내림차순, 같은 가격이면 exchange A(Coinbase) 먼저
- 중복 가격 합산/제거 없음. len(out) == len(a) + len(b)
"""

import logging
from typing import Iterable, List, Sequence

from aggregator.types import BookSide, CoinbaseLevel, GeminiLevel, Ladder, PriceLevel

logger = logging.getLogger(__name__)


def _sorted_levels(levels: Iterable, side: BookSide) -> List[PriceLevel]:
    """원본 레벨 → PriceLevel 변환 후 side 방향으로 stable sort"""
    converted = [level.to_price_level() for level in levels]
    # reverse=True도 stable (동일 가격의 상대 순서 유지)
    converted.sort(key=lambda level: level.price, reverse=not side.is_ascending)
    return converted


def merge(
    a_levels: Sequence[CoinbaseLevel],
    b_levels: Sequence[GeminiLevel],
    side: BookSide,
) -> Ladder:
    """
    Two-way merge (exchange A 우선 tie-break)

    Args:
        a_levels: exchange A 레벨 (CoinbaseLevel 또는 to_price_level() 지원 객체)
        b_levels: exchange B 레벨 (GeminiLevel 또는 to_price_level() 지원 객체)
        side: BookSide.ASK (오름차순) / BookSide.BID (내림차순)

    Returns:
        통합 ladder (입력은 변경하지 않음)
    """
    left = _sorted_levels(a_levels, side)
    right = _sorted_levels(b_levels, side)

    merged: Ladder = []
    i, j = 0, 0
    while i < len(left) and j < len(right):
        if side.is_ascending:
            take_left = left[i].price <= right[j].price
        else:
            take_left = left[i].price >= right[j].price

        if take_left:
            merged.append(left[i])
            i += 1
        else:
            merged.append(right[j])
            j += 1

    # 한쪽 소진 시 나머지는 순서 그대로
    merged.extend(left[i:])
    merged.extend(right[j:])

    logger.debug(
        f"[MERGER] {side.label} merged: a={len(left)}, b={len(right)}, total={len(merged)}"
    )
    return merged


def merge_sorted_asks(a_asks: Sequence[CoinbaseLevel], b_asks: Sequence[GeminiLevel]) -> Ladder:
    """매도 호가 병합 (오름차순)"""
    return merge(a_asks, b_asks, BookSide.ASK)


def merge_sorted_bids(a_bids: Sequence[CoinbaseLevel], b_bids: Sequence[GeminiLevel]) -> Ladder:
    """매수 호가 병합 (내림차순)"""
    return merge(a_bids, b_bids, BookSide.BID)
