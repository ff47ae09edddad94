"""
비동기 재시도 유틸리티

상태 없는 범용 재시도 함수. 설정 파일 읽기처럼 일시적으로 실패할 수 있는
작업을 감싸는 용도로 사용합니다.

사용법:
    ```python
    text = await retry(lambda: fs.read_file(path), retries=3, delay=1.0)

    # 지수 백오프
    await retry(op, retries=5, delay=exponential_backoff(5, base=0.1))
    ```
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar, Union

from .errors import ErrorClassifier, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 고정 지연(초) 또는 (남은 횟수, 마지막 에러) -> 지연(초)
DelayPolicy = Union[float, Callable[[int, Exception], float]]


def _resolve_delay(delay: DelayPolicy, retries: int, error: Exception) -> float:
    if callable(delay):
        return float(delay(retries, error))
    return float(delay)


async def retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = 3,
    delay: DelayPolicy = 0,
    error_message: str | None = None,
    is_retryable: Callable[[Exception], bool] | None = None,
) -> T:
    """작업을 실패 시 재시도

    최초 1회 + 최대 retries회 실행합니다. retries=0이면 한 번만 시도합니다.

    Args:
        operation: 인자 없는 코루틴 함수
        retries: 추가 재시도 횟수
        delay: 재시도 전 대기 시간(초) 또는 지연 함수
        error_message: 재시도 소진 시 RetryExhaustedError 메시지
        is_retryable: False를 반환하면 재시도 없이 원래 에러를 그대로 전파

    Returns:
        operation의 결과

    Raises:
        RetryExhaustedError: 모든 시도 실패 (마지막 에러가 __cause__)
    """
    while True:
        try:
            return await operation()
        except Exception as e:
            if is_retryable is not None and not is_retryable(e):
                raise

            if retries <= 0:
                raise RetryExhaustedError(error_message or "Failed retrying") from e

            wait = _resolve_delay(delay, retries, e)
            logger.warning(
                f"[Retry] {ErrorClassifier.format_message(e)} - "
                f"{retries} tr{'y' if retries == 1 else 'ies'} left."
                + (f" Next in {wait}s" if wait else "")
            )
            if wait > 0:
                await asyncio.sleep(wait)
            retries -= 1


def exponential_backoff(
    retries: int, base: float = 0.5, cap: float = 30.0
) -> Callable[[int, Exception], float]:
    """지수 백오프 지연 함수 생성

    retry()에 넘긴 retries와 같은 값을 넘겨야 첫 대기가 base가 됩니다.
    """

    def policy(retries_left: int, error: Exception) -> float:
        return min(cap, base * (2 ** max(0, retries - retries_left)))

    return policy
