"""Загрузка и разбор фида товаров по URL.

Выполняет один GET-запрос к адресу фида и передаёт тело ответа
парсеру нужного формата. Повторных попыток и собственного таймаута
импортёр не делает: политику повторов выбирает вызывающая сторона.
"""

import asyncio

import aiohttp

from feedhub.config import get_logger
from feedhub.models.feed import FeedResult, FeedType
from feedhub.parsers import parse_feed

logger = get_logger("feed_importer")


class FeedFetchError(Exception):
    """Фид не удалось загрузить.

    Выбрасывается при ответе с кодом вне диапазона 2xx и при сетевых
    ошибках (тогда status равен None).

    Attributes:
        url: Адрес фида.
        status: HTTP-статус ответа или None.
    """

    def __init__(self, message: str, url: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class FeedImporter:
    """Загружает фид и превращает его в FeedResult.

    Может работать с внешней aiohttp-сессией (её закрывает владелец)
    или создать собственную при первом запросе.

    Attributes:
        _session: Текущая aiohttp-сессия.
        _owns_session: Создана ли сессия самим импортёром.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def fetch_text(self, url: str) -> str:
        """Загружает тело фида как текст.

        Args:
            url: Адрес фида.

        Returns:
            Тело ответа; недекодируемые байты заменяются.

        Raises:
            FeedFetchError: При статусе вне 2xx, сетевой ошибке или таймауте.
        """
        session = await self._get_session()

        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise FeedFetchError(
                        f"Feed HTTP error: {response.status}",
                        url=url,
                        status=response.status,
                    )
                text = await response.text(errors="replace")
        except aiohttp.ClientError as e:
            raise FeedFetchError(
                f"Feed request failed: {e}", url=url
            ) from e
        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Feed request timed out: {url}", url=url
            ) from e

        logger.info(
            "feed_fetched",
            url=url,
            status=response.status,
            size=len(text),
        )
        return text

    async def import_feed(
        self, url: str, feed_type: "FeedType | str" = FeedType.JSON
    ) -> FeedResult:
        """Загружает фид и разбирает его.

        Args:
            url: Адрес фида.
            feed_type: Формат фида; неизвестный формат читается как JSON.

        Returns:
            FeedResult с плоскими записями, колонками и путём к записям.

        Raises:
            FeedFetchError: Если фид не загружен.
            FeedParseError: Если JSON-фид не удалось разобрать.
        """
        text = await self.fetch_text(url)
        result = parse_feed(text, feed_type)

        logger.info(
            "feed_imported",
            url=url,
            feed_type=str(getattr(feed_type, "value", feed_type)),
            records=len(result.records),
            columns=len(result.columns),
            path=result.path,
        )
        return result

    async def close(self) -> None:
        """Закрывает собственную aiohttp-сессию."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None
            logger.info("feed_importer_session_closed")
