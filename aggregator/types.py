#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Order Book Aggregator - Common Type Definitions
================================================

호가 병합/평가 모듈에서 사용하는 공통 타입 및 데이터 클래스.

- PriceLevel: 통합 호가 레벨 (price, size)
- CoinbaseLevel / GeminiLevel: 거래소별 원본 호가 레벨
- CoinbaseBook / GeminiBook: 거래소별 스냅샷
- ValuationResult / LadderDiagnostics: depth 평가 결과

모든 가격/수량은 Decimal. float 변환 없음.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """str() 경유로 정확하게 Decimal 변환"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class BookSide(str, Enum):
    """호가 방향"""
    ASK = "ask"  # 매도 호가 (오름차순)
    BID = "bid"  # 매수 호가 (내림차순)

    @property
    def is_ascending(self) -> bool:
        return self is BookSide.ASK

    @property
    def label(self) -> str:
        return "ASKS" if self is BookSide.ASK else "BIDS"


@dataclass(frozen=True)
class PriceLevel:
    """
    통합 호가 레벨

    Invariants:
        - price >= 0
        - size >= 0 (size == 0 레벨은 평가 시 로그 후 skip)
    """
    price: Decimal
    size: Decimal

    def __post_init__(self):
        # frozen dataclass이므로 object.__setattr__ 사용
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "size", to_decimal(self.size))

        if not self.price.is_finite() or not self.size.is_finite():
            raise ValueError(f"PriceLevel must be finite (price={self.price}, size={self.size})")
        if self.price < 0:
            raise ValueError(f"PriceLevel price must be >= 0 (price={self.price})")
        if self.size < 0:
            raise ValueError(f"PriceLevel size must be >= 0 (size={self.size})")

    @property
    def notional(self) -> Decimal:
        return self.price * self.size


Ladder = List[PriceLevel]


@dataclass(frozen=True)
class CoinbaseLevel:
    """Coinbase 호가 레벨 ([price, size, num_orders] 트리플)"""
    price: Decimal
    size: Decimal
    order_count: int = 0

    def to_price_level(self) -> PriceLevel:
        return PriceLevel(price=self.price, size=self.size)


@dataclass(frozen=True)
class GeminiLevel:
    """Gemini 호가 레벨 ({price, amount, timestamp} 객체)"""
    price: Decimal
    amount: Decimal
    timestamp: int = 0

    def to_price_level(self) -> PriceLevel:
        return PriceLevel(price=self.price, size=self.amount)


@dataclass
class CoinbaseBook:
    """Coinbase L2 스냅샷"""
    bids: List[CoinbaseLevel] = field(default_factory=list)
    asks: List[CoinbaseLevel] = field(default_factory=list)
    sequence: Optional[int] = None
    auction_mode: bool = False
    time: Optional[str] = None

    @classmethod
    def empty(cls) -> "CoinbaseBook":
        return cls()


@dataclass
class GeminiBook:
    """Gemini L2 스냅샷"""
    bids: List[GeminiLevel] = field(default_factory=list)
    asks: List[GeminiLevel] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "GeminiBook":
        return cls()


@dataclass(frozen=True)
class LadderDiagnostics:
    """Depth 평가 진단 정보 (advisory only)"""
    level_count: int
    total_available: Decimal
    dust_levels: int
    zero_size_levels: int
    is_sorted: bool
    first_violation_index: Optional[int] = None
    levels_consumed: int = 0


@dataclass(frozen=True)
class ValuationResult:
    """
    Depth 평가 결과

    부분 체결(shortfall)도 정상 결과. 호출자가 허용 여부를 결정.
    """
    side: BookSide
    requested_quantity: Decimal
    filled_quantity: Decimal
    cost: Decimal
    diagnostics: LadderDiagnostics

    @property
    def remaining_quantity(self) -> Decimal:
        return self.requested_quantity - self.filled_quantity

    @property
    def is_partial(self) -> bool:
        """Shortfall 여부"""
        return self.remaining_quantity > 0

    @property
    def average_price(self) -> Optional[Decimal]:
        if self.filled_quantity <= 0:
            return None
        return self.cost / self.filled_quantity
