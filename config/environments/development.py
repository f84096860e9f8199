"""Development Environment Configuration"""

from config.base import (
    COINBASE_BOOK_URL,
    GEMINI_BOOK_URL,
    AggregatorConfig,
    ExchangeEndpointConfig,
    HttpConfig,
    MonitoringConfig,
    RateLimitConfig,
)


def get_development_config() -> AggregatorConfig:
    """
    Development 환경 설정

    특징:
    - Debug 로깅 (콘솔만)
    - 공개 endpoint, 2초당 1회 공유 limiter
    - 짧은 타임아웃 (빠른 실패)
    """

    return AggregatorConfig(
        env='development',

        coinbase=ExchangeEndpointConfig(name='coinbase', url=COINBASE_BOOK_URL),
        gemini=ExchangeEndpointConfig(name='gemini', url=GEMINI_BOOK_URL),

        rate_limit=RateLimitConfig(
            interval_seconds=2.0,
            capacity=1,
            shared=True,
        ),

        http=HttpConfig(
            timeout_seconds=10.0,  # 빠른 테스트를 위해 낮춤
            max_retry=2,
            base_backoff_seconds=0.5,
        ),

        monitoring=MonitoringConfig(
            log_level='DEBUG',
            log_dir=None,
        ),
    )
