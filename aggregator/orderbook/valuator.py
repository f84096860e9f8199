"""
Depth Valuator

통합 ladder를 순서대로 소비하여 요청 수량의 총 체결 비용 계산.

Purpose:
- 진단 pass: 총 가용 수량, dust 레벨(< 0.0001), 정렬 위반 검출 (advisory only)
- 체결 pass: 잔량이 레벨 size 이하이면 부분 소비 후 종료, 아니면 전량 소비
- 유동성 부족(shortfall)은 에러가 아님. 채워진 수량과 비용을 그대로 반환

모든 연산은 Decimal. ladder는 변경하지 않음 (동일 입력 → 동일 결과).
"""

import logging
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence, Tuple

from aggregator.exceptions import InvalidQuantityError
from aggregator.types import BookSide, LadderDiagnostics, Number, PriceLevel, ValuationResult

logger = logging.getLogger(__name__)

# BTC 기준 dust 레벨 임계값
DUST_THRESHOLD = Decimal("0.0001")


def validate_quantity(quantity: Number) -> Decimal:
    """
    요청 수량 검증

    Raises:
        InvalidQuantityError: 숫자가 아니거나, NaN/Infinity, 0 이하
    """
    try:
        value = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidQuantityError(f"Not a valid quantity: {quantity!r}") from e

    if not value.is_finite():
        raise InvalidQuantityError(f"Quantity must be finite (got {value})")
    if value <= 0:
        raise InvalidQuantityError(f"Quantity must be greater than 0 (got {value})")
    return value


def _find_order_violation(ladder: Sequence[PriceLevel], side: BookSide) -> Optional[int]:
    """첫 정렬 위반 인덱스 (i-1, i 중 i). 정렬되어 있으면 None"""
    for i in range(1, len(ladder)):
        prev_price = ladder[i - 1].price
        price = ladder[i].price
        wrong_order = prev_price > price if side.is_ascending else prev_price < price
        if wrong_order:
            return i
    return None


def diagnose(ladder: Sequence[PriceLevel], side: BookSide) -> LadderDiagnostics:
    """진단 pass (체결 계산에는 영향 없음)"""
    label = side.label
    total_available = sum((level.size for level in ladder), Decimal(0))
    dust_levels = sum(1 for level in ladder if level.size < DUST_THRESHOLD)
    zero_size_levels = sum(1 for level in ladder if level.size == 0)

    logger.info(f"[VALUATOR] [{label}] Total quantity available: {total_available}")
    logger.info(f"[VALUATOR] [{label}] Dust levels (< {DUST_THRESHOLD}): {dust_levels}")

    violation = _find_order_violation(ladder, side)
    if violation is not None:
        logger.warning(
            f"[VALUATOR] [{label}] Ladder not sorted: level {violation - 1} "
            f"(price {ladder[violation - 1].price}) vs level {violation} "
            f"(price {ladder[violation].price})"
        )

    return LadderDiagnostics(
        level_count=len(ladder),
        total_available=total_available,
        dust_levels=dust_levels,
        zero_size_levels=zero_size_levels,
        is_sorted=violation is None,
        first_violation_index=violation,
    )


def evaluate(ladder: Sequence[PriceLevel], quantity: Number, side: BookSide) -> ValuationResult:
    """
    요청 수량 체결 비용 계산 (진단 포함)

    Args:
        ladder: 통합 ladder (asks 오름차순 / bids 내림차순 기대)
        quantity: 요청 수량 (> 0)
        side: 호가 방향 (정렬 검증 방향 결정)

    Returns:
        ValuationResult (부분 체결이면 is_partial=True)

    Raises:
        InvalidQuantityError: 수량이 0 이하이거나 유한하지 않을 때
    """
    requested = validate_quantity(quantity)
    label = side.label
    diagnostics = diagnose(ladder, side)

    remaining = requested
    cost = Decimal(0)
    consumed = 0

    for level in ladder:
        if level.size == 0:
            logger.warning(f"[VALUATOR] [{label}] Level at price {level.price} has ZERO size, skipped")
            continue

        if remaining <= level.size:
            cost += level.price * remaining
            consumed += 1
            remaining = Decimal(0)
            break

        cost += level.notional
        remaining -= level.size
        consumed += 1

        if remaining <= 0:
            logger.warning(f"[VALUATOR] [{label}] Remaining quantity overshot: {remaining}, clamped to 0")
            remaining = Decimal(0)
            break

    filled = requested - remaining
    logger.info(f"[VALUATOR] [{label}] Levels processed: {consumed}")
    logger.info(f"[VALUATOR] [{label}] Remaining quantity after processing: {remaining}")

    if remaining > 0:
        logger.warning(
            f"[VALUATOR] [{label}] Insufficient liquidity: requested {requested}, only {filled} available"
        )

    return ValuationResult(
        side=side,
        requested_quantity=requested,
        filled_quantity=filled,
        cost=cost,
        diagnostics=replace(diagnostics, levels_consumed=consumed),
    )


def value(ladder: Sequence[PriceLevel], quantity: Number, side: BookSide) -> Tuple[Decimal, Decimal]:
    """(cost, filled_quantity) 반환. 진단 정보는 로그로만 남김"""
    result = evaluate(ladder, quantity, side)
    return result.cost, result.filled_quantity
