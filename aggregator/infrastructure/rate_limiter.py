"""
Token Bucket Rate Limiter

업스트림 거래소 호출 admission control:
- TokenBucket: capacity = burst 상한, refill_rate = 지속 처리량 상한
- try_acquire(): non-blocking (절대 sleep 하지 않음)
- acquire(): asyncio 협조적 대기 (호출한 task만 suspend)
- 백그라운드 타이머 없음. 매 호출 시점에 경과 시간으로 refill 재계산
"""

import asyncio
import logging
import time
from datetime import timedelta
from decimal import Decimal
from threading import Lock
from typing import Callable, Dict, Optional, Union

from aggregator.exceptions import RateLimiterConfigError, RateLimitExceeded
from aggregator.types import Number, to_decimal

logger = logging.getLogger(__name__)

# refill 계산 해상도 (마이크로초)
ELAPSED_RESOLUTION = Decimal("0.000001")

Interval = Union[Number, timedelta]


class TokenBucketRateLimiter:
    """
    Token Bucket 알고리즘 기반 rate limiter (Decimal).

    특징:
    - 생성 시 bucket full
    - tokens ∈ [0, capacity], 성공 시 정확히 1 소비
    - 인스턴스당 Lock 하나로 상태 변경 직렬화
    - 대기자 간 공정성 보장 없음 (먼저 깨어나서 재확인한 쪽이 획득)

    Example:
        >>> limiter = TokenBucketRateLimiter.per_interval(2)
        >>> limiter.try_acquire()  # True
        >>> limiter.try_acquire()  # False
    """

    def __init__(
        self,
        capacity: Number,
        refill_rate: Number,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            capacity: 최대 토큰 수 (보통 1 = "interval당 1회")
            refill_rate: 초당 refill 토큰 수
            clock: 단조 시계 (테스트 주입용)

        Raises:
            RateLimiterConfigError: capacity 또는 refill_rate <= 0
        """
        capacity = to_decimal(capacity)
        refill_rate = to_decimal(refill_rate)

        if not capacity.is_finite() or capacity <= 0:
            raise RateLimiterConfigError(f"Capacity must be greater than 0 (got {capacity})")
        if not refill_rate.is_finite() or refill_rate <= 0:
            raise RateLimiterConfigError(f"Refill rate must be greater than 0 (got {refill_rate})")

        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = capacity
        self._clock = clock
        self.last_refill = clock()
        self._lock = Lock()
        self._consume_count = 0
        self._reject_count = 0

    @classmethod
    def per_interval(cls, interval: Interval, clock: Callable[[], float] = time.monotonic) -> "TokenBucketRateLimiter":
        """
        "최대 interval초에 1회" rate limiter 생성

        Args:
            interval: 초 단위 숫자 또는 timedelta
        """
        if isinstance(interval, timedelta):
            seconds = Decimal(f"{interval.total_seconds():.6f}")
        else:
            seconds = to_decimal(interval)
        if not seconds.is_finite() or seconds <= 0:
            raise RateLimiterConfigError(f"Interval must be greater than 0 (got {interval})")
        return cls(capacity=Decimal(1), refill_rate=Decimal(1) / seconds, clock=clock)

    # alias
    new_per_interval = per_interval

    def _refill(self) -> None:
        """Token refill (시간 경과에 따라). Lock 보유 상태에서만 호출"""
        now = self._clock()
        elapsed = now - self.last_refill
        if elapsed <= 0:
            return
        elapsed_decimal = Decimal(repr(elapsed)).quantize(ELAPSED_RESOLUTION)
        self.tokens = min(self.capacity, self.tokens + elapsed_decimal * self.refill_rate)
        self.last_refill = now

    def try_acquire(self) -> bool:
        """
        토큰 획득 시도 (non-blocking)

        Returns:
            True: 토큰 1개 소비, False: 토큰 부족 (refill만 반영)
        """
        with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                self._consume_count += 1
                return True
            self._reject_count += 1
            return False

    def wait_time(self) -> Decimal:
        """다음 토큰까지 대기 시간 (초). 0이면 즉시 가능"""
        with self._lock:
            self._refill()
            if self.tokens >= 1:
                return Decimal(0)
            return (1 - self.tokens) / self.refill_rate

    async def acquire(self, timeout: Optional[float] = None) -> None:
        """
        토큰 획득 (필요시 asyncio 대기)

        깨어난 뒤 반드시 재확인한다 (다른 task가 먼저 가져갔을 수 있음).
        대기 중 cancel 되면 상태 변경 없이 CancelledError 전파.

        Args:
            timeout: 최대 대기 시간 (초). None이면 무제한

        Raises:
            RateLimitExceeded: timeout 내에 토큰을 얻을 수 없을 때
        """
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            if self.try_acquire():
                return

            wait_seconds = float(self.wait_time())
            if deadline is not None and self._clock() + wait_seconds > deadline:
                raise RateLimitExceeded(
                    f"Rate limit exceeded: next token in {wait_seconds:.3f}s, timeout={timeout}s"
                )
            if wait_seconds > 0:
                logger.debug(f"[RATE_LIMITER] Waiting {wait_seconds:.3f}s for next token")
                await asyncio.sleep(wait_seconds)

    def available_tokens(self) -> Decimal:
        """현재 사용 가능한 토큰 수 (refill 반영, last_refill 갱신)"""
        with self._lock:
            self._refill()
            return self.tokens

    def reset(self) -> None:
        with self._lock:
            self.tokens = self.capacity
            self.last_refill = self._clock()
            self._consume_count = 0
            self._reject_count = 0

    def get_stats(self) -> Dict:
        with self._lock:
            self._refill()
            total = self._consume_count + self._reject_count
            return {
                "tokens": self.tokens,
                "capacity": self.capacity,
                "refill_rate": self.refill_rate,
                "consume_count": self._consume_count,
                "reject_count": self._reject_count,
                "reject_ratio": self._reject_count / total if total > 0 else 0.0,
            }
