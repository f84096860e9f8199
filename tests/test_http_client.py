"""
AsyncHttpClient 재시도 테스트

실제 네트워크 없이 가짜 세션으로 검증:
- 2xx → JSON 반환
- 5xx/timeout → 재시도 후 성공 또는 NetworkError
- 429 지속 → RateLimitExceeded
- 4xx → 즉시 NetworkError (재시도 없음)
- JSON 디코딩 실패 → OrderBookParseError
"""

import asyncio

import aiohttp
import pytest

from aggregator.exceptions import NetworkError, OrderBookParseError, RateLimitExceeded
from aggregator.exchanges.http_client import AsyncHttpClient, RetryConfig

URL = "https://api.example.test/book"


class FakeResponse:
    def __init__(self, status=200, payload=None, invalid_json=False):
        self.status = status
        self._payload = payload
        self._invalid_json = invalid_json

    async def json(self, content_type="application/json"):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """응답(또는 예외)을 순서대로 반환"""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.closed = False

    def get(self, url, params=None):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


def make_client(outcomes, max_retry=3):
    session = FakeSession(outcomes)
    client = AsyncHttpClient(
        config=RetryConfig(timeout_seconds=1.0, max_retry=max_retry, base_backoff_seconds=0.0),
        session=session,
    )
    return client, session


class TestGetJson:
    """get_json 기본 동작"""

    @pytest.mark.asyncio
    async def test_success(self):
        client, session = make_client([FakeResponse(200, {"bids": [], "asks": []})])

        data = await client.get_json(URL)

        assert data == {"bids": [], "asks": []}
        assert session.calls == 1

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client, _ = make_client([FakeResponse(200, invalid_json=True)])

        with pytest.raises(OrderBookParseError):
            await client.get_json(URL)

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        client, session = make_client([FakeResponse(404), FakeResponse(200, {})])

        with pytest.raises(NetworkError, match="HTTP 404"):
            await client.get_json(URL)
        assert session.calls == 1


class TestRetry:
    """재시도 정책"""

    @pytest.mark.asyncio
    async def test_server_error_then_success(self):
        client, session = make_client([FakeResponse(503), FakeResponse(200, {"ok": True})])

        assert await client.get_json(URL) == {"ok": True}
        assert session.calls == 2

    @pytest.mark.asyncio
    async def test_server_error_exhausted(self):
        client, session = make_client([FakeResponse(500)] * 3)

        with pytest.raises(NetworkError, match="Server error"):
            await client.get_json(URL)
        assert session.calls == 3

    @pytest.mark.asyncio
    async def test_timeout_then_success(self):
        client, session = make_client([asyncio.TimeoutError(), FakeResponse(200, [1, 2])])

        assert await client.get_json(URL) == [1, 2]
        assert session.calls == 2

    @pytest.mark.asyncio
    async def test_connection_error_exhausted(self):
        client, session = make_client([aiohttp.ClientConnectionError("refused")] * 2, max_retry=2)

        with pytest.raises(NetworkError, match="ClientConnectionError"):
            await client.get_json(URL)
        assert session.calls == 2

    @pytest.mark.asyncio
    async def test_rate_limited_exhausted(self):
        client, session = make_client([FakeResponse(429)] * 3)

        with pytest.raises(RateLimitExceeded):
            await client.get_json(URL)
        assert session.calls == 3

    def test_backoff_is_exponential(self):
        client = AsyncHttpClient(config=RetryConfig(base_backoff_seconds=0.5), session=FakeSession([]))

        assert [client._backoff(i) for i in range(3)] == [0.5, 1.0, 2.0]


class TestSessionLifecycle:
    """세션 수명"""

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self):
        client, session = make_client([])

        async with client:
            pass

        assert session.closed is False
