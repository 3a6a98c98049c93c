from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

import mcp_probe.config as config_mod
from mcp_probe.config import (
    ConfigNotFoundError,
    InvalidConfigError,
    make_endpoint,
    parse_header,
)


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: Any) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.delenv(config_mod.TIMEOUT_ENV, raising=False)
    monkeypatch.delenv(config_mod.SSE_READ_TIMEOUT_ENV, raising=False)
    return home


def _write(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_load_endpoints_with_sample_mcp_json(tmp_path: Path, isolated_home: Path) -> None:
    """The example mcp.json at the repository root yields its URL servers."""

    repo_root = Path(__file__).resolve().parent.parent
    source_config = repo_root / "mcp.json"
    assert source_config.is_file(), "Expected mcp.json to exist at repository root"

    project = tmp_path / "project"
    project.mkdir()
    (project / "mcp.json").write_text(source_config.read_text(encoding="utf-8"), encoding="utf-8")

    endpoints = config_mod.load_endpoints(cwd=project)

    # The stdio "fetch" server has no URL and is skipped.
    assert set(endpoints) == {"deepwiki", "exa"}

    deepwiki = endpoints["deepwiki"]
    assert deepwiki.transport == "sse"
    assert deepwiki.url == "https://mcp.deepwiki.com/sse"
    assert deepwiki.timeout == config_mod.DEFAULT_TIMEOUT

    exa = endpoints["exa"]
    assert exa.transport == "http"
    assert exa.timeout == 60.0
    assert exa.label == "exa"


def test_later_files_win_and_headers_merge(tmp_path: Path, isolated_home: Path) -> None:
    _write(
        isolated_home / ".mcp.json",
        {
            "mcpServers": {
                "docs": {
                    "type": "SSE",
                    "url": "https://old.example.com/sse",
                    "headers": {"Authorization": "Bearer home", "X-Team": "core"},
                }
            }
        },
    )
    _write(
        tmp_path / ".claude" / "mcp.json",
        {
            "mcpServers": {
                "docs": {
                    "url": "https://docs.example.com/sse",
                    "headers": {"Authorization": "Bearer project"},
                    "sseReadTimeout": 10,
                }
            }
        },
    )

    endpoint = config_mod.resolve_named_endpoint("docs", cwd=tmp_path)

    assert endpoint.url == "https://docs.example.com/sse"
    assert endpoint.transport == "sse"
    assert endpoint.headers == {"Authorization": "Bearer project", "X-Team": "core"}
    assert endpoint.sse_read_timeout == 10.0


def test_missing_config_files(tmp_path: Path, isolated_home: Path) -> None:
    with pytest.raises(ConfigNotFoundError, match="No MCP configuration files found"):
        config_mod.load_endpoints(cwd=tmp_path)


def test_unknown_endpoint_name(tmp_path: Path, isolated_home: Path) -> None:
    _write(tmp_path / "mcp.json", {"mcpServers": {"a": {"type": "http", "url": "https://a.example.com/mcp"}}})

    with pytest.raises(ConfigNotFoundError, match=r"Endpoint 'b' is not defined.*known: a"):
        config_mod.resolve_named_endpoint("b", cwd=tmp_path)


@pytest.mark.parametrize(
    "server, message",
    [
        ({"type": "websocket", "url": "wss://x"}, "unsupported 'type'"),
        ({"type": "sse"}, "non-empty 'url'"),
        ({"type": "http", "url": "https://x", "headers": {"A": 1}}, "non-string HTTP header"),
        ({"type": "http", "url": "https://x", "timeout": "fast"}, "invalid 'timeout'"),
    ],
)
def test_invalid_server_entries(tmp_path: Path, isolated_home: Path, server: Any, message: str) -> None:
    _write(tmp_path / "mcp.json", {"mcpServers": {"bad": server}})

    with pytest.raises(InvalidConfigError, match=message):
        config_mod.load_endpoints(cwd=tmp_path)


def test_invalid_json(tmp_path: Path, isolated_home: Path) -> None:
    (tmp_path / "mcp.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(InvalidConfigError, match="Invalid JSON"):
        config_mod.load_endpoints(cwd=tmp_path)


def test_environment_defaults(monkeypatch: Any) -> None:
    monkeypatch.setenv(config_mod.TIMEOUT_ENV, "12.5")
    monkeypatch.setenv(config_mod.SSE_READ_TIMEOUT_ENV, "40")

    endpoint = make_endpoint("https://mcp.example.com/mcp", "HTTP")

    assert endpoint.transport == "http"
    assert endpoint.timeout == 12.5
    assert endpoint.sse_read_timeout == 40.0

    monkeypatch.setenv(config_mod.TIMEOUT_ENV, "-1")
    with pytest.raises(InvalidConfigError, match="must be positive"):
        make_endpoint("https://mcp.example.com/mcp", "http")


def test_parse_header() -> None:
    assert parse_header("Authorization: Bearer a:b") == ("Authorization", "Bearer a:b")
    with pytest.raises(InvalidConfigError):
        parse_header("no-colon")
