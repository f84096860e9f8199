#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging Utilities
=================

중앙 로깅 설정. 각 모듈은 logging.getLogger(__name__)만 사용하고,
핸들러 구성은 진입점(CLI)에서 setup_logging()으로 한 번만 한다.

특징:
- 콘솔 + 선택적 파일 로그
- 일 단위 로그 로테이션 (자정, 7일 보관)
"""

import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional, Tuple, Union

# 로그 포맷
LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(name)s] %(message)s"
LOG_FORMAT_DETAILED = "%(asctime)s [%(levelname)-8s] [%(name)s] [%(funcName)s:%(lineno)d] %(message)s"

ROOT_LOGGER_NAME = "aggregator"

# setup_logging()이 붙인 (로거 이름, 핸들러) 목록 (reset 용)
_installed: List[Tuple[str, logging.Handler]] = []


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    log_file: str = "aggregator.log",
    detailed: bool = False,
    logger_names: Optional[List[str]] = None,
) -> logging.Logger:
    """
    집계기 로거 구성

    Args:
        level: 로깅 레벨 (int 또는 'DEBUG' 같은 이름)
        log_dir: 로그 디렉토리 (None이면 콘솔만)
        log_file: 로그 파일명
        detailed: 상세 포맷 사용 여부 (함수명, 라인 번호 포함)
        logger_names: 구성할 로거 이름 목록 (기본: aggregator, config)

    Returns:
        'aggregator' 로거
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    reset_logging()

    formatter = logging.Formatter(LOG_FORMAT_DETAILED if detailed else LOG_FORMAT)

    # 콘솔 핸들러
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: List[logging.Handler] = [console_handler]

    # 파일 핸들러 (선택)
    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(log_path / log_file),
            when="midnight",
            interval=1,
            backupCount=7,  # 7일치 보관
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in logger_names or [ROOT_LOGGER_NAME, "config"]:
        target = logging.getLogger(name)
        target.setLevel(level)
        target.propagate = False
        for handler in handlers:
            target.addHandler(handler)
            _installed.append((name, handler))
    return logging.getLogger(ROOT_LOGGER_NAME)


def reset_logging() -> None:
    """setup_logging()이 붙인 핸들러 제거 (테스트용)"""
    for name, handler in _installed:
        target = logging.getLogger(name)
        target.removeHandler(handler)
        target.setLevel(logging.NOTSET)
        target.propagate = True
        handler.close()
    _installed.clear()
