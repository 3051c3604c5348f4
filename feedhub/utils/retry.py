"""Повтор асинхронных операций при временных сбоях.

Пример использования:
    @async_retry(max_retries=3, delay=2.0, exceptions=(FeedFetchError,))
    async def load(url: str) -> FeedResult:
        ...
"""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from feedhub.config import get_logger

logger = get_logger("retry")

F = TypeVar("F", bound=Callable[..., Any])


def async_retry(
    max_retries: int = 3,
    delay: float = 2.0,
    backoff_factor: float = 2.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    should_retry: Callable[[BaseException], bool] | None = None,
) -> Callable[[F], F]:
    """Декоратор повтора для корутин с экспоненциальной задержкой.

    Args:
        max_retries: Общее число попыток, включая первую.
        delay: Задержка перед второй попыткой в секундах.
        backoff_factor: Множитель задержки после каждой неудачи.
        exceptions: Типы исключений, после которых имеет смысл повтор.
        should_retry: Дополнительный фильтр; если вернул False,
            исключение пробрасывается сразу.

    Returns:
        Декоратор.

    Raises:
        Последнее исключение, если попытки исчерпаны или повтор
        запрещён фильтром.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = delay

            for attempt in range(1, max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if should_retry is not None and not should_retry(e):
                        logger.warning(
                            "retry_skipped",
                            function=func.__name__,
                            attempt=attempt,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        raise

                    if attempt >= max_retries:
                        logger.error(
                            "retry_exhausted",
                            function=func.__name__,
                            attempt=attempt,
                            max_retries=max_retries,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        raise

                    logger.warning(
                        "retry_attempt",
                        function=func.__name__,
                        attempt=attempt,
                        max_retries=max_retries,
                        next_delay=current_delay,
                        error=str(e),
                        error_type=type(e).__name__,
                    )

                    await asyncio.sleep(current_delay)
                    current_delay *= backoff_factor

            raise RuntimeError(f"{func.__name__}: max_retries должен быть >= 1")

        return wrapper  # type: ignore[return-value]

    return decorator
