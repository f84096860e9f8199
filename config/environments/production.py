"""Production Environment Configuration"""

from pathlib import Path

from config.base import (
    COINBASE_BOOK_URL,
    GEMINI_BOOK_URL,
    AggregatorConfig,
    ExchangeEndpointConfig,
    HttpConfig,
    MonitoringConfig,
    RateLimitConfig,
)


def get_production_config() -> AggregatorConfig:
    """
    Production 환경 설정

    특징:
    - INFO 로깅 + 파일 로테이션 (logs/)
    - 거래소별 독립 limiter
    - 30초 타임아웃, 3회 재시도
    """

    return AggregatorConfig(
        env='production',

        coinbase=ExchangeEndpointConfig(name='coinbase', url=COINBASE_BOOK_URL),
        gemini=ExchangeEndpointConfig(name='gemini', url=GEMINI_BOOK_URL),

        rate_limit=RateLimitConfig(
            interval_seconds=2.0,
            capacity=1,
            shared=False,
        ),

        http=HttpConfig(
            timeout_seconds=30.0,
            max_retry=3,
            base_backoff_seconds=0.5,
        ),

        monitoring=MonitoringConfig(
            log_level='INFO',
            log_dir=Path('logs'),
        ),
    )
