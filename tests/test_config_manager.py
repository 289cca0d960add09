from __future__ import annotations

import json
from pathlib import Path

from adsb_devserver.core.config_manager import ConfigManager


def test_defaults_when_file_is_missing(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path / "devserver.json")

    assert config.get("server.port") == 3000
    assert config.get("build.source") == "ADSBApp.elm"
    assert config.get("build.output") == "index.html"
    assert config.get("build.yes") is True
    assert config.get("proxy.path") == "/proxy"
    assert (
        config.get("proxy.target_url")
        == "https://public-api.adsbexchange.com/VirtualRadar/AircraftList.json"
    )
    assert config.get("proxy.content_type") == "application/x-www-form-urlencoded"
    assert config.get("proxy.timeout") is None


def test_file_values_are_deep_merged_over_defaults(tmp_path: Path) -> None:
    path = tmp_path / "devserver.json"
    path.write_text(json.dumps({"server": {"port": 8080}, "build": {"compiler": ["elm", "make"]}}))

    config = ConfigManager(path)

    assert config.get("server.port") == 8080
    assert config.get("server.host") == "0.0.0.0"
    assert config.get("build.compiler") == ["elm", "make"]
    assert config.get("build.output") == "index.html"


def test_invalid_json_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "devserver.json"
    path.write_text("{not json")

    config = ConfigManager(path)

    assert config.get("server.port") == 3000


def test_non_object_json_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "devserver.json"
    path.write_text("[1, 2]")

    assert ConfigManager(path).get_server_config()["port"] == 3000


def test_get_and_set_with_dot_notation(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path / "devserver.json")

    config.set("proxy.timeout", 15)
    config.set("extra.nested.value", "x")

    assert config.get_proxy_config()["timeout"] == 15
    assert config.get("extra.nested.value") == "x"
    assert config.get("server.missing", "fallback") == "fallback"
    assert config.get("server.port.deeper") is None


def test_merge_replaces_leaves_and_keeps_sections_independent(tmp_path: Path) -> None:
    path = tmp_path / "devserver.json"
    path.write_text(json.dumps({"proxy": {"timeout": 5}, "server": "not-a-section"}))

    first = ConfigManager(path)
    first.set("proxy.content_type", "text/plain")
    second = ConfigManager(path)

    assert first.get("proxy.timeout") == 5
    assert first.get("server") == "not-a-section"
    assert first.get("server.port", 3000) == 3000
    assert second.get("proxy.content_type") == "application/x-www-form-urlencoded"


def test_set_replaces_scalar_with_section(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path / "devserver.json")

    config.set("build.output.path", "dist/index.html")

    assert config.get("build.output") == {"path": "dist/index.html"}
    assert config.get("build.source") == "ADSBApp.elm"
