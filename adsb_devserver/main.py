# main.py
import argparse
import asyncio
import logging
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from adsb_devserver.core.config_manager import ConfigManager
from adsb_devserver.core.server_manager import launch

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level='INFO', log_file=None):
    """Настраивает логирование (консоль + ротируемый файл)"""
    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Ротирующий обработчик: макс 5MB, 5 резервных копий
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)


def setup_exception_handler():
    """Настраивает глобальный обработчик исключений"""

    def exception_handler(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical("Необработанное исключение:",
                        exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = exception_handler


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Local dev server: builds the Elm app and proxies ADS-B Exchange requests"
    )
    parser.add_argument("--config", type=Path, default=None,
                        help="Path to JSON config (default: ./devserver.json)")
    parser.add_argument("--host", default=None, help="Interface to bind")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    parser.add_argument("--log-level", default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser.parse_args(argv)


def load_config(args) -> ConfigManager:
    config = ConfigManager(args.config)
    if args.host is not None:
        config.set('server.host', args.host)
    if args.port is not None:
        config.set('server.port', args.port)
    if args.log_level is not None:
        config.set('logging.level', args.log_level)
    return config


async def run(config) -> int:
    server = await launch(config)
    if server is None:
        return 1

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows: остаётся KeyboardInterrupt
            pass

    try:
        await stop_event.wait()
    finally:
        await server.stop()
    return 0


def main(argv=None):
    args = parse_args(argv)
    config = load_config(args)

    logging_config = config.get_logging_config()
    setup_logging(logging_config.get('level', 'INFO'), logging_config.get('file'))
    setup_exception_handler()

    logger.info("🚀 Starting ADS-B dev server")

    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("🛑 Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
