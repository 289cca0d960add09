# core/config_manager.py
import copy
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = 'devserver.json'


class ConfigManager:
    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else Path.cwd() / DEFAULT_CONFIG_NAME
        self.config = self._load_config()

    def _get_default_config(self) -> dict:
        """Возвращает конфигурацию по умолчанию"""
        return {
            'server': {
                'host': '0.0.0.0',
                'port': 3000,
            },

            'build': {
                'compiler': ['elm-make'],
                'source': 'ADSBApp.elm',
                'output': 'index.html',
                'yes': True,  # Неинтерактивный режим компилятора
            },

            'proxy': {
                'path': '/proxy',
                'target_url': 'https://public-api.adsbexchange.com/VirtualRadar/AircraftList.json',
                'content_type': 'application/x-www-form-urlencoded',
                'timeout': None,  # None = таймауты транспорта по умолчанию
                'check_on_start': False,
            },

            'logging': {
                'level': 'INFO',
                'file': 'logs/devserver.log',  # None = только консоль
            }
        }

    def _load_config(self) -> Dict[str, Any]:
        """Загружает конфигурацию из файла"""
        default_config = self._get_default_config()

        if not self.config_path.exists():
            logger.debug(f"Config file {self.config_path} not found, using defaults")
            return default_config

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded_config = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Ошибка загрузки конфига {self.config_path}: {e}")
            return default_config

        if not isinstance(loaded_config, dict):
            logger.error(f"❌ Конфиг {self.config_path} должен быть JSON объектом")
            return default_config

        logger.info(f"📄 Loaded config from {self.config_path}")
        # Объединяем с дефолтными значениями
        return self._deep_merge(default_config, loaded_config)

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Файл поверх умолчаний: секции сливаются, остальное заменяется"""
        merged = copy.deepcopy(base)
        for section, override in update.items():
            current = merged.get(section)
            if isinstance(current, dict) and isinstance(override, dict):
                merged[section] = self._deep_merge(current, override)
            else:
                merged[section] = copy.deepcopy(override)
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """Получает значение по ключу (dot notation)"""
        node = self.config
        try:
            for part in key.split('.'):
                node = node[part]
        except (KeyError, TypeError):
            return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Устанавливает значение по ключу (dot notation), создавая секции"""
        *parents, leaf = key.split('.')
        node = self.config
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def get_server_config(self) -> Dict[str, Any]:
        return self.get('server', {})

    def get_build_config(self) -> Dict[str, Any]:
        return self.get('build', {})

    def get_proxy_config(self) -> Dict[str, Any]:
        """Возвращает настройки прокси"""
        return self.get('proxy', {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self.get('logging', {})
