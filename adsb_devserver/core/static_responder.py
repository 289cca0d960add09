# core/static_responder.py
import logging
from pathlib import Path

from aiohttp import web

logger = logging.getLogger(__name__)


class StaticResponder:
    """Отдаёт собранный ассет на GET /, каждый раз читая файл с диска"""

    def __init__(self, asset_path):
        self.asset_path = Path(asset_path)

    async def handle(self, request):
        if not self.asset_path.is_file():
            logger.warning(f"⚠️ Asset not found: {self.asset_path}")
            raise web.HTTPNotFound()

        # Content-Type определяется FileResponse по расширению
        return web.FileResponse(self.asset_path)
