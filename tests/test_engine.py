"""
AggregatorEngine 테스트

가짜 HTTP 클라이언트로 검증:
- 정상: 두 거래소 병합 후 매수/매도 평가
- degraded: 한쪽 실패 → 빈 스냅샷으로 계속
- 양쪽 실패 → UpstreamUnavailableError
- rate limiter 구성 (shared / 거래소별)
"""

from dataclasses import replace
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from aggregator.engine import AggregatorEngine, build_http_client, build_rate_limiters
from aggregator.exceptions import InvalidQuantityError, NetworkError, UpstreamUnavailableError
from aggregator.exchanges.coinbase import parse_coinbase_book
from aggregator.exchanges.fetcher import fetch_snapshot
from aggregator.exchanges.gemini import parse_gemini_book
from aggregator.infrastructure.rate_limiter import TokenBucketRateLimiter
from config.base import RateLimitConfig
from config.environments.development import get_development_config


class FakeClient:
    """URL별 payload 또는 예외 반환"""

    def __init__(self, responses):
        self.responses = responses
        self.requested = []

    async def get_json(self, url, params=None):
        self.requested.append(url)
        outcome = self.responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def config():
    return get_development_config()


@pytest.fixture
def limiter(fake_clock):
    return TokenBucketRateLimiter(capacity=10, refill_rate=10, clock=fake_clock)


def make_engine(config, limiter, coinbase, gemini):
    client = FakeClient({config.coinbase.url: coinbase, config.gemini.url: gemini})
    return AggregatorEngine(client, limiter, limiter, config), client


class TestRun:
    """조회 → 병합 → 평가"""

    @pytest.mark.asyncio
    async def test_both_sources(self, config, limiter, coinbase_payload, gemini_payload):
        engine, client = make_engine(config, limiter, coinbase_payload, gemini_payload)

        report = await engine.run("2.5")

        # asks: 100x2 (CB), 100.5x1 (GM), 101x3 (CB)
        assert report.buy.cost == Decimal("250.25")
        assert report.buy.filled_quantity == Decimal("2.5")
        # bids: 99.75x0.5 (GM), 99.5x1 (CB), 99x2.5 (CB)
        assert report.sell.cost == Decimal("49.875") + Decimal("99.5") + Decimal("99")
        assert report.ask_levels == 3
        assert report.bid_levels == 4
        assert report.degraded is False
        assert sorted(client.requested) == sorted([config.coinbase.url, config.gemini.url])

    @pytest.mark.asyncio
    async def test_partial_fill_reported(self, config, limiter, coinbase_payload, gemini_payload):
        engine, _ = make_engine(config, limiter, coinbase_payload, gemini_payload)

        report = await engine.run("10")

        assert report.buy.is_partial is True
        assert report.buy.filled_quantity == Decimal("6")
        assert report.sell.filled_quantity == Decimal("8.0")

    @pytest.mark.asyncio
    async def test_invalid_quantity_before_fetch(self, config, limiter, coinbase_payload, gemini_payload):
        engine, client = make_engine(config, limiter, coinbase_payload, gemini_payload)

        with pytest.raises(InvalidQuantityError):
            await engine.run("0")
        assert client.requested == []


class TestDegradedMode:
    """한쪽 / 양쪽 실패"""

    @pytest.mark.asyncio
    async def test_coinbase_down(self, config, limiter, gemini_payload, caplog):
        engine, _ = make_engine(config, limiter, NetworkError("connection refused"), gemini_payload)

        report = await engine.run("1")

        assert report.coinbase_ok is False
        assert report.gemini_ok is True
        assert report.degraded is True
        assert report.ask_levels == 1
        assert report.buy.cost == Decimal("100.5")
        assert "Error fetching Coinbase data" in caplog.text

    @pytest.mark.asyncio
    async def test_gemini_unparseable(self, config, limiter, coinbase_payload):
        engine, _ = make_engine(config, limiter, coinbase_payload, {"bids": "garbage"})

        report = await engine.run("1")

        assert report.gemini_ok is False
        assert report.bid_levels == 2
        assert report.sell.cost == Decimal("99.5")

    @pytest.mark.asyncio
    async def test_gemini_bad_timestamp_degrades(self, config, limiter, coinbase_payload, gemini_payload):
        gemini_payload["bids"][0]["timestamp"] = "²"
        engine, _ = make_engine(config, limiter, coinbase_payload, gemini_payload)

        report = await engine.run("1")

        assert report.gemini_ok is False
        assert report.coinbase_ok is True
        assert report.buy.cost == Decimal("100")

    @pytest.mark.asyncio
    async def test_both_down(self, config, limiter):
        engine, _ = make_engine(config, limiter, NetworkError("down"), NetworkError("down"))

        with pytest.raises(UpstreamUnavailableError, match="Failed to fetch data from Coinbase and Gemini"):
            await engine.run("1")


class TestFetchSnapshot:
    """fetch_snapshot: limiter 획득 후 조회"""

    @pytest.mark.asyncio
    async def test_consumes_token(self, limiter, gemini_payload):
        client = FakeClient({"https://gemini.test": gemini_payload})

        book = await fetch_snapshot(client, limiter, "https://gemini.test", parse_gemini_book, "Gemini")

        assert book is not None
        assert limiter.get_stats()["consume_count"] == 1

    @pytest.mark.asyncio
    async def test_fetch_books_passes_injected_limiters(self, config, fake_clock, coinbase_payload):
        """거래소별 limiter가 각자의 fetch에 전달되는지"""
        coinbase_limiter = TokenBucketRateLimiter(capacity=1, refill_rate=1, clock=fake_clock)
        gemini_limiter = TokenBucketRateLimiter(capacity=1, refill_rate=1, clock=fake_clock)
        engine = AggregatorEngine(AsyncMock(), coinbase_limiter, gemini_limiter, config)
        coinbase_book = parse_coinbase_book(coinbase_payload)

        with patch("aggregator.engine.fetch_snapshot", new=AsyncMock(side_effect=[coinbase_book, None])) as mock_fetch:
            books = await engine.fetch_books()

        assert books == (coinbase_book, None)
        assert mock_fetch.await_count == 2
        coinbase_call, gemini_call = mock_fetch.await_args_list
        assert coinbase_call.args[1] is coinbase_limiter
        assert coinbase_call.args[2] == config.coinbase.url
        assert gemini_call.args[1] is gemini_limiter
        assert gemini_call.args[4] == "Gemini"

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self, limiter):
        client = AsyncMock()
        client.get_json.side_effect = NetworkError("timeout")

        book = await fetch_snapshot(client, limiter, "https://cb.test", parse_coinbase_book, "Coinbase")

        assert book is None
        client.get_json.assert_awaited_once_with("https://cb.test")


class TestBuilders:
    """limiter / client 구성"""

    def test_shared_limiter(self, config):
        coinbase_limiter, gemini_limiter = build_rate_limiters(config)

        assert coinbase_limiter is gemini_limiter
        assert coinbase_limiter.capacity == Decimal(1)
        assert coinbase_limiter.refill_rate == Decimal("0.5")

    def test_per_exchange_limiters(self, config):
        config = replace(config, rate_limit=RateLimitConfig(interval_seconds=1.0, capacity=5, shared=False))
        coinbase_limiter, gemini_limiter = build_rate_limiters(config)

        assert coinbase_limiter is not gemini_limiter
        assert coinbase_limiter.capacity == Decimal(5)
        assert gemini_limiter.refill_rate == Decimal(5)

    def test_http_client_from_config(self, config):
        client = build_http_client(config)

        assert client.config.timeout_seconds == config.http.timeout_seconds
        assert client.config.max_retry == config.http.max_retry

    def test_refill_rate_is_decimal_exact(self, config):
        config = replace(config, rate_limit=RateLimitConfig(interval_seconds=0.7, capacity=3, shared=True))
        limiter, _ = build_rate_limiters(config)

        assert limiter.refill_rate == Decimal(3) / Decimal("0.7")
