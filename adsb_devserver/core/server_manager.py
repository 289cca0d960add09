# core/server_manager.py
import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse

import requests
from aiohttp import web

from adsb_devserver.core.asset_builder import AssetBuilder
from adsb_devserver.core.forwarder import ProxyForwarder
from adsb_devserver.core.static_responder import StaticResponder
from adsb_devserver.utils.port_utils import check_port_availability

logger = logging.getLogger(__name__)


class DevServer:
    def __init__(self, config):
        self.config = config
        server_config = config.get_server_config()
        proxy_config = config.get_proxy_config()

        self.host = server_config.get('host', '0.0.0.0')
        self.port = server_config.get('port', 3000)
        self.proxy_path = proxy_config.get('path', '/proxy')

        self.static = StaticResponder(config.get('build.output'))
        self.forwarder = ProxyForwarder(
            target_url=proxy_config['target_url'],
            content_type=proxy_config['content_type'],
            timeout=proxy_config.get('timeout'),
        )

        self.runner = None
        self.site = None
        self.bound_port = None
        self.is_running = False

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/', self.static.handle)
        app.router.add_post(self.proxy_path, self.forwarder.handle)

        app.on_startup.append(self.forwarder.on_startup)
        app.on_cleanup.append(self.forwarder.on_cleanup)
        return app

    async def start(self) -> bool:
        """
        Запуск HTTP сервера

        Returns:
            bool: True если порт занят нами и сервер принимает запросы
        """
        if self.is_running:
            logger.warning("⚠️ Сервер уже запущен")
            return False

        # Порт 0 - выбирает ОС, проверять нечего
        if self.port:
            check_host = '127.0.0.1' if self.host in ('0.0.0.0', '') else self.host
            port_available, port_message = check_port_availability(self.port, check_host)
            if not port_available:
                logger.error(f"❌ {port_message}")
                return False

        try:
            self.runner = web.AppRunner(self.create_app())
            await self.runner.setup()

            self.site = web.TCPSite(self.runner, host=self.host, port=self.port)
            await self.site.start()
        except OSError as e:
            logger.error(f"❌ Ошибка запуска сервера на {self.host}:{self.port}: {e}")
            await self._cleanup_runner()
            return False

        self.bound_port = self.runner.addresses[0][1]
        self.is_running = True
        logger.info(f"Your app is listening on port {self.bound_port}")

        if self.config.get('proxy.check_on_start', False):
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.check_upstream_status)

        return True

    def check_upstream_status(self) -> bool:
        """
        Проверяет доступность хоста внешнего API (только логирование)

        Returns:
            bool: True если хост ответил
        """
        parsed = urlparse(self.forwarder.target_url)
        origin_url = f"{parsed.scheme}://{parsed.netloc}/"
        logger.info(f"🔎 Checking upstream: {origin_url}")

        try:
            response = requests.get(origin_url, timeout=10)
        except requests.ConnectionError as e:
            logger.warning(
                f"⚠️ Cannot connect to upstream!\n"
                f"   URL: {origin_url}\n"
                f"   Error: {e}"
            )
            return False
        except requests.Timeout:
            logger.warning("⚠️ Upstream check timed out (>10s)")
            return False
        except requests.RequestException as e:
            logger.warning(f"⚠️ Upstream check error: {e}")
            return False

        logger.info(f"✅ Upstream reachable (HTTP {response.status_code})")
        return True

    async def stop(self):
        """Остановка сервера"""
        if not self.is_running:
            logger.warning("⚠️ Сервер не запущен")
            return

        logger.info("🛑 Stopping server...")
        self.is_running = False

        if self.site:
            await self.site.stop()
            self.site = None
        await self._cleanup_runner()

        stats = self.forwarder.get_stats()
        logger.info(
            f"📊 Proxy statistics:\n"
            f"   Total requests: {stats['total_requests']}\n"
            f"   Total responses: {stats['total_responses']}\n"
            f"   Errors: {stats['errors']}"
        )
        logger.info("✅ Server stopped")

    async def _cleanup_runner(self):
        if self.runner:
            await self.runner.cleanup()
            self.runner = None


async def launch(config, builder: Optional[AssetBuilder] = None) -> Optional[DevServer]:
    """Сборка ассета, затем запуск сервера. None - если сборка или bind не удались"""
    if builder is None:
        builder = AssetBuilder.from_config(config)

    result = await builder.build()
    if not result.ok:
        logger.error(f"Elm compiler returned error {result.exit_code}")
        return None

    server = DevServer(config)
    if not await server.start():
        return None
    return server
