"""
Aggregator Engine (Orchestrator)

책임:
- 두 거래소 스냅샷 동시 조회 (rate limit 적용)
- 한쪽 실패 → 빈 스냅샷으로 대체 (degraded), 양쪽 실패 → UpstreamUnavailableError
- 병합/평가는 executor에서 실행 (이벤트 루프 blocking 방지)

금지:
- 병합/평가 로직 구현 (orderbook 모듈에 위임)
- 출력 포맷 (cli 영역)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from aggregator.exceptions import UpstreamUnavailableError
from aggregator.exchanges.coinbase import parse_coinbase_book
from aggregator.exchanges.fetcher import fetch_snapshot
from aggregator.exchanges.gemini import parse_gemini_book
from aggregator.exchanges.http_client import AsyncHttpClient, RetryConfig
from aggregator.infrastructure.rate_limiter import TokenBucketRateLimiter
from aggregator.orderbook.merger import merge_sorted_asks, merge_sorted_bids
from aggregator.orderbook.valuator import evaluate, validate_quantity
from aggregator.types import BookSide, CoinbaseBook, GeminiBook, Ladder, Number, ValuationResult, to_decimal
from config.base import AggregatorConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregationReport:
    """1회 실행 결과"""
    buy: ValuationResult  # asks 소비 (매수 비용)
    sell: ValuationResult  # bids 소비 (매도 수익)
    ask_levels: int
    bid_levels: int
    coinbase_ok: bool
    gemini_ok: bool

    @property
    def degraded(self) -> bool:
        """한쪽 거래소만 사용했는지"""
        return not (self.coinbase_ok and self.gemini_ok)


def build_rate_limiters(config: AggregatorConfig) -> Tuple[TokenBucketRateLimiter, TokenBucketRateLimiter]:
    """
    (coinbase_limiter, gemini_limiter) 생성

    shared=True면 같은 인스턴스를 두 번 반환.
    """
    rate = config.rate_limit
    refill_rate = to_decimal(rate.capacity) / to_decimal(rate.interval_seconds)

    def _new() -> TokenBucketRateLimiter:
        if rate.capacity == 1:
            return TokenBucketRateLimiter.per_interval(rate.interval_seconds)
        return TokenBucketRateLimiter(capacity=rate.capacity, refill_rate=refill_rate)

    if rate.shared:
        limiter = _new()
        return limiter, limiter
    return _new(), _new()


def build_http_client(config: AggregatorConfig) -> AsyncHttpClient:
    return AsyncHttpClient(
        RetryConfig(
            timeout_seconds=config.http.timeout_seconds,
            max_retry=config.http.max_retry,
            base_backoff_seconds=config.http.base_backoff_seconds,
        )
    )


class AggregatorEngine:
    """
    Order Book Aggregator 엔진

    client/limiter/config는 모두 외부에서 주입 (전역 상태 없음).
    """

    def __init__(
        self,
        client: AsyncHttpClient,
        coinbase_limiter: TokenBucketRateLimiter,
        gemini_limiter: TokenBucketRateLimiter,
        config: AggregatorConfig,
    ):
        self.client = client
        self.coinbase_limiter = coinbase_limiter
        self.gemini_limiter = gemini_limiter
        self.config = config

    async def fetch_books(self) -> Tuple[Optional[CoinbaseBook], Optional[GeminiBook]]:
        """
        두 거래소 동시 조회

        Raises:
            UpstreamUnavailableError: 두 거래소 모두 실패
        """
        logger.info("[ENGINE] Fetching the data from Coinbase and Gemini")

        coinbase_book, gemini_book = await asyncio.gather(
            fetch_snapshot(
                self.client,
                self.coinbase_limiter,
                self.config.coinbase.url,
                parse_coinbase_book,
                "Coinbase",
            ),
            fetch_snapshot(
                self.client,
                self.gemini_limiter,
                self.config.gemini.url,
                parse_gemini_book,
                "Gemini",
            ),
        )

        if coinbase_book is None and gemini_book is None:
            raise UpstreamUnavailableError("Failed to fetch data from Coinbase and Gemini. Quitting..!")

        if coinbase_book is None:
            logger.warning("[ENGINE] Coinbase unavailable, continuing with Gemini only")
        if gemini_book is None:
            logger.warning("[ENGINE] Gemini unavailable, continuing with Coinbase only")

        return coinbase_book, gemini_book

    @staticmethod
    def build_ladders(coinbase_book: CoinbaseBook, gemini_book: GeminiBook) -> Tuple[Ladder, Ladder]:
        """(asks, bids) 통합 ladder 생성 (동기)"""
        asks = merge_sorted_asks(coinbase_book.asks, gemini_book.asks)
        bids = merge_sorted_bids(coinbase_book.bids, gemini_book.bids)
        return asks, bids

    @staticmethod
    def value_ladders(asks: Ladder, bids: Ladder, quantity: Number) -> Tuple[ValuationResult, ValuationResult]:
        """(buy, sell) 평가 (동기)"""
        buy = evaluate(asks, quantity, BookSide.ASK)
        sell = evaluate(bids, quantity, BookSide.BID)
        return buy, sell

    async def run(self, quantity: Number) -> AggregationReport:
        """
        조회 → 병합 → 평가

        Args:
            quantity: 매수/매도 수량 (> 0)

        Raises:
            InvalidQuantityError: 수량 오류 (조회 전에 검증)
            UpstreamUnavailableError: 두 거래소 모두 실패
        """
        quantity = validate_quantity(quantity)

        coinbase_book, gemini_book = await self.fetch_books()
        coinbase_ok = coinbase_book is not None
        gemini_ok = gemini_book is not None
        coinbase_book = coinbase_book or CoinbaseBook.empty()
        gemini_book = gemini_book or GeminiBook.empty()

        logger.info("[ENGINE] Loaded the data successfully")
        logger.info(f"[ENGINE] Coinbase bids: {len(coinbase_book.bids)}, asks: {len(coinbase_book.asks)}")
        logger.info(f"[ENGINE] Gemini bids: {len(gemini_book.bids)}, asks: {len(gemini_book.asks)}")

        loop = asyncio.get_running_loop()
        asks, bids = await loop.run_in_executor(None, self.build_ladders, coinbase_book, gemini_book)
        logger.info(f"[ENGINE] Asks merged successfully! Total: {len(asks)}")
        logger.info(f"[ENGINE] Bids merged successfully! Total: {len(bids)}")

        buy, sell = await loop.run_in_executor(None, self.value_ladders, asks, bids, quantity)
        logger.info(f"[ENGINE] Buy cost: {buy.cost} (filled {buy.filled_quantity})")
        logger.info(f"[ENGINE] Sell proceeds: {sell.cost} (filled {sell.filled_quantity})")

        return AggregationReport(
            buy=buy,
            sell=sell,
            ask_levels=len(asks),
            bid_levels=len(bids),
            coinbase_ok=coinbase_ok,
            gemini_ok=gemini_ok,
        )
