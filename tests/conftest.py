#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pytest configuration and fixtures

Path bootstrap: ensures imports work from any CWD

- 환경변수 격리: 설정 override 환경변수는 테스트마다 제거
- 로깅 격리: setup_logging()이 붙인 핸들러는 테스트마다 제거
"""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from aggregator.logging_utils import reset_logging  # noqa: E402

CONFIG_ENV_VARS = [
    "AGGREGATOR_ENV",
    "ENV",
    "AGGREGATOR_CONFIG_FILE",
    "COINBASE_API",
    "GEMINI_API",
    "RATE_LIMIT_INTERVAL_SECONDS",
    "RATE_LIMIT_SHARED",
    "HTTP_TIMEOUT_SECONDS",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def isolate_test_environment(monkeypatch):
    """설정 관련 환경변수 제거 + 로깅 핸들러 정리"""
    for key in CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    # .env 파일이 테스트를 오염시키지 않도록
    monkeypatch.setattr("config.loader.load_dotenv", lambda *args, **kwargs: False)
    yield
    reset_logging()


class FakeClock:
    """수동으로 진행시키는 단조 시계"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def coinbase_payload():
    return {
        "bids": [["99.5", "1.0", 3], ["99", "2.5", 1]],
        "asks": [["100", "2", 4], ["101", "3", 2]],
        "sequence": 12345,
        "auction_mode": False,
        "auction": None,
        "time": "2024-05-01T12:00:00.000000Z",
    }


@pytest.fixture
def gemini_payload():
    return {
        "bids": [
            {"price": "99.75", "amount": "0.5", "timestamp": "1714564800"},
            {"price": "98", "amount": "4", "timestamp": "1714564800"},
        ],
        "asks": [
            {"price": "100.5", "amount": "1", "timestamp": "1714564800"},
        ],
    }
