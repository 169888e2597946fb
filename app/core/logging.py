"""
Structured Logging & Monitoring Stubs
레이아웃 변경/저장소 호출에 대한 공통 로깅 헬퍼를 제공한다.
"""

import logging
import sys
import time
import inspect
from functools import wraps
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from app.core.config import settings


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add application context to log entries

    Args:
        logger: Logger instance
        method_name: Logging method name
        event_dict: Event dictionary

    Returns:
        Modified event dictionary
    """
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


def configure_logging() -> None:
    """
    Configure structured logging

    Sets up structlog with JSON output if enabled in settings,
    otherwise uses console output for development.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    if settings.log_json:
        # Production: JSON logging
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Development: Console logging with colors
        processors = [
            *shared_processors,
            structlog.processors.ExceptionPrettyPrinter(),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.getLevelName(settings.log_level),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance

    Usage:
        logger = get_logger(__name__)
        logger.info("department_moved", department_id="sales", section_id="operations")
    """
    return structlog.get_logger(name)


# --- Monitoring Stubs (Prometheus/OTEL 대체용) ---
_METRICS_COUNTER: dict[str, int] = {}


def metrics_counter(name: str, **labels: Any) -> None:
    """카운터 증가 Stub. 실제 메트릭 시스템 연동 시 교체.

    Args:
        name: metric name
        labels: arbitrary label key/values
    """

    key = name + str(sorted(labels.items()))
    _METRICS_COUNTER[key] = _METRICS_COUNTER.get(key, 0) + 1


def get_metric(name: str, **labels: Any) -> int:
    """Stub 카운터 현재 값 조회 (테스트/디버깅용)."""

    key = name + str(sorted(labels.items()))
    return _METRICS_COUNTER.get(key, 0)


def measure_latency(operation: str):
    """비동기/동기 함수에 대한 지연시간 측정 데코레이터."""

    def decorator(func):
        is_coro = inspect.iscoroutinefunction(func)

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger = get_logger(func.__module__)
                logger.debug("latency", operation=operation, latency_ms=elapsed_ms)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger = get_logger(func.__module__)
                logger.debug("latency", operation=operation, latency_ms=elapsed_ms)

        return async_wrapper if is_coro else sync_wrapper

    return decorator


def log_layout_mutation(
    *,
    operation: str,
    organization_id: str,
    vertical_id: str,
    outcome: str,
    department_id: str | None = None,
    affected_rows: int = 0,
    actor: str | None = None,
    error_code: str | None = None,
    error: str | None = None,
) -> None:
    """레이아웃 변경 결과를 카운터와 구조화 로그로 함께 기록한다."""

    metrics_counter("department_layout_mutation", operation=operation, outcome=outcome)

    logger = get_logger("layout")
    context = {
        "operation": operation,
        "organization_id": organization_id,
        "vertical_id": vertical_id,
        "department_id": department_id,
        "affected_rows": affected_rows,
        "actor": actor,
    }
    if outcome == "success":
        logger.info("department_layout_mutated", **context)
    else:
        logger.warning(
            "department_layout_operation_failed",
            **context,
            error_code=error_code,
            error=error,
        )
