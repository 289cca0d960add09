# core/forwarder.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from aiohttp import web, ClientSession, TCPConnector, ClientTimeout, ClientError
from yarl import URL

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'application/x-www-form-urlencoded'


@dataclass(frozen=True)
class UpstreamReply:
    status: int
    body: bytes
    content_type: Optional[str] = None


@dataclass(frozen=True)
class UpstreamFailure:
    error: BaseException


UpstreamResult = Union[UpstreamReply, UpstreamFailure]


class ProxyForwarder:
    def __init__(self, target_url, content_type=DEFAULT_CONTENT_TYPE, timeout=None):
        """
        Args:
            target_url: фиксированный URL внешнего API
            content_type: Content-Type исходящего запроса (всегда перезаписывается)
            timeout: общий таймаут в секундах; None - умолчания транспорта
        """
        self.target_url = target_url
        self.content_type = content_type
        self.timeout = timeout

        self.connector = None
        self.session = None

        self.stats = {
            'total_requests': 0,
            'total_responses': 0,
            'errors': 0
        }

    async def initialize(self):
        """Создаёт ClientSession для исходящих запросов"""
        if self.connector is None:
            # limit=0 - без ограничения одновременных соединений и без очереди
            self.connector = TCPConnector(limit=0)

        if self.session is None:
            kwargs = {'connector': self.connector}
            if self.timeout is not None:
                kwargs['timeout'] = ClientTimeout(total=self.timeout)
            self.session = ClientSession(**kwargs)

    async def cleanup(self):
        """Очистка ресурсов"""
        if self.session:
            await self.session.close()
            self.session = None
        if self.connector:
            await self.connector.close()
            self.connector = None

    async def on_startup(self, app):
        await self.initialize()

    async def on_cleanup(self, app):
        await self.cleanup()

    def build_url(self, raw_query_string: str) -> URL:
        """URL внешнего API с исходной строкой запроса без перекодирования"""
        if not raw_query_string:
            return URL(self.target_url, encoded=True)
        return URL(f"{self.target_url}?{raw_query_string}", encoded=True)

    async def forward(self, body: bytes, raw_query_string: str = '') -> UpstreamResult:
        """Одна попытка POST во внешнее API, без повторов"""
        await self.initialize()
        url = self.build_url(raw_query_string)

        try:
            async with self.session.post(
                url,
                data=body,
                headers={'Content-Type': self.content_type},
            ) as upstream_response:
                content = await upstream_response.read()
                return UpstreamReply(
                    status=upstream_response.status,
                    body=content,
                    content_type=upstream_response.headers.get('Content-Type'),
                )
        except (ClientError, asyncio.TimeoutError) as e:
            return UpstreamFailure(e)

    async def handle(self, request):
        """POST /proxy: тело и query string уходят во внешнее API как есть.

        Клиенту всегда 200 с Content-Type внешнего API (а не text/html),
        чтобы браузер разбирал JSON ответа как есть.
        """
        self.stats['total_requests'] += 1

        # Сырое тело при любом Content-Type
        body = await request.read()
        result = await self.forward(body, request.rel_url.raw_query_string)

        if isinstance(result, UpstreamFailure):
            self.stats['errors'] += 1
            logger.warning(f"❌ Upstream request failed: {type(result.error).__name__}: {result.error}")
            return web.Response(status=500)

        self.stats['total_responses'] += 1
        logger.debug(f"Upstream response: {result.status}, {len(result.body)} bytes")

        # Статус внешнего API не пробрасывается, клиенту всегда 200
        headers = {'Content-Type': result.content_type} if result.content_type else None
        return web.Response(body=result.body, headers=headers)

    def get_stats(self):
        return dict(self.stats)
