"""Пакет вспомогательных инструментов.

    from feedhub.utils import async_retry
"""

from feedhub.utils.retry import async_retry

__all__ = [
    "async_retry",
]
