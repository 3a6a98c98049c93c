"""Endpoint configuration for mcp-probe.

Endpoints are usually given directly on the command line, but named
endpoints can also be read from the ``mcp.json`` files shared with other MCP
clients. Only URL-based servers (``"sse"`` and ``"http"``) are usable here.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

MCP_SERVERS_KEY = "mcpServers"

TRANSPORT_SSE = "sse"
TRANSPORT_HTTP = "http"
TRANSPORTS = (TRANSPORT_SSE, TRANSPORT_HTTP)

DEFAULT_TIMEOUT = 30.0
DEFAULT_SSE_READ_TIMEOUT = 60.0 * 5

TIMEOUT_ENV = "MCP_PROBE_TIMEOUT"
SSE_READ_TIMEOUT_ENV = "MCP_PROBE_SSE_READ_TIMEOUT"


class ConfigError(Exception):
    """Base exception for configuration-related errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when no usable MCP configuration can be found."""


class InvalidConfigError(ConfigError):
    """Raised when an MCP configuration file or value is malformed."""


@dataclass
class EndpointConfig:
    """Connection settings for a single remote MCP endpoint.

    Attributes:
        url: Endpoint URL (the SSE stream URL or the StreamableHTTP URL).
        transport: Either ``"sse"`` or ``"http"``.
        headers: HTTP headers sent with every request.
        timeout: HTTP timeout in seconds.
        sse_read_timeout: How long to wait for an event on the stream, in
            seconds. Also bounds a whole probe operation.
        name: Logical name when loaded from configuration, else the URL.
    """

    url: str
    transport: str = TRANSPORT_SSE
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    sse_read_timeout: float = DEFAULT_SSE_READ_TIMEOUT
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.url


def _env_float(var: str, default: float) -> float:
    raw = os.environ.get(var)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise InvalidConfigError(f"{var} must be a number, got '{raw}'.") from exc
    if value <= 0:
        raise InvalidConfigError(f"{var} must be positive, got '{raw}'.")
    return value


def check_seconds(name: str, value: Any) -> float:
    """Return ``value`` as a positive number of seconds."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigError(f"{name} must be a number, got {value!r}.")
    if value <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {value!r}.")
    return float(value)


def default_timeout() -> float:
    """Return the HTTP timeout, honouring ``MCP_PROBE_TIMEOUT``."""

    return _env_float(TIMEOUT_ENV, DEFAULT_TIMEOUT)


def default_sse_read_timeout() -> float:
    """Return the SSE read timeout, honouring ``MCP_PROBE_SSE_READ_TIMEOUT``."""

    return _env_float(SSE_READ_TIMEOUT_ENV, DEFAULT_SSE_READ_TIMEOUT)


def make_endpoint(
    url: str,
    transport: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    sse_read_timeout: Optional[float] = None,
) -> EndpointConfig:
    """Build an :class:`EndpointConfig`, filling unset values from defaults."""

    transport = transport.lower()
    if transport not in TRANSPORTS:
        raise InvalidConfigError(f"Unsupported transport '{transport}'.")

    return EndpointConfig(
        url=url,
        transport=transport,
        headers=dict(headers or {}),
        timeout=(
            check_seconds("timeout", timeout) if timeout is not None else default_timeout()
        ),
        sse_read_timeout=(
            check_seconds("sse_read_timeout", sse_read_timeout)
            if sse_read_timeout is not None
            else default_sse_read_timeout()
        ),
    )


def parse_header(raw: str) -> Tuple[str, str]:
    """Parse a ``"Name: value"`` header string."""

    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise InvalidConfigError(f"Invalid header '{raw}'; expected 'Name: value'.")
    return name.strip(), value.strip()


def get_default_config_paths(cwd: Optional[Path] = None) -> List[Path]:
    """Return existing configuration file paths in priority order.

    The search order (from lowest to highest priority) is:
      1. ~/.mcp.json
      2. ./ .claude/mcp.json
      3. ./ mcp.json
    """

    base_dir = cwd or Path.cwd()

    candidates = (
        Path.home() / ".mcp.json",
        base_dir / ".claude" / "mcp.json",
        base_dir / "mcp.json",
    )
    return [path for path in candidates if path.is_file()]


def _load_raw_configs(paths: List[Path]) -> List[Tuple[Path, Dict[str, Any]]]:
    """Load raw JSON configuration objects from the given file paths.

    Raises:
        InvalidConfigError: If any configuration file contains invalid JSON
            or is not a JSON object.
    """

    raw_configs: List[Tuple[Path, Dict[str, Any]]] = []
    for path in paths:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:  # pragma: no cover - unexpected I/O failure
            raise InvalidConfigError(f"Failed to read config file: {path}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidConfigError(f"Invalid JSON in config file: {path}") from exc

        if not isinstance(data, dict):
            raise InvalidConfigError(f"Config file must contain a JSON object: {path}")

        raw_configs.append((path, data))

    return raw_configs


def _merge_server_maps(
    configs: List[Tuple[Path, Dict[str, Any]]],
) -> Dict[str, Dict[str, Any]]:
    """Merge ``mcpServers`` maps from multiple configuration objects.

    Later files win at the key level; the ``headers`` mapping is
    shallow-merged so a project file can add a header to a server defined in
    the home file.
    """

    merged: Dict[str, Dict[str, Any]] = {}

    for _path, data in configs:
        servers_obj = data.get(MCP_SERVERS_KEY)
        if servers_obj is None:
            continue
        if not isinstance(servers_obj, dict):
            raise InvalidConfigError("'mcpServers' must be a JSON object when present.")

        for server_name, server_value in servers_obj.items():
            if not isinstance(server_value, dict):
                message = f"Server '{server_name}' configuration must be a JSON object."
                raise InvalidConfigError(message)

            existing = merged.get(server_name)
            if existing is None:
                merged[server_name] = dict(server_value)
                continue

            combined: Dict[str, Any] = dict(existing)

            existing_headers = existing.get("headers")
            new_headers = server_value.get("headers")
            if isinstance(existing_headers, dict) or isinstance(new_headers, dict):
                headers_merged: Dict[str, Any] = {}
                if isinstance(existing_headers, dict):
                    headers_merged.update(existing_headers)
                if isinstance(new_headers, dict):
                    headers_merged.update(new_headers)
                combined["headers"] = headers_merged

            for key, value in server_value.items():
                if key == "headers":
                    continue
                combined[key] = value

            merged[server_name] = combined

    return merged


def _optional_seconds(name: str, data: Dict[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            message = f"Server '{name}' has an invalid '{keys[0]}' field; expected a number."
            raise InvalidConfigError(message)
        return float(value)
    return None


def _endpoint_from_mapping(name: str, data: Dict[str, Any]) -> Optional[EndpointConfig]:
    """Create an :class:`EndpointConfig` from a raw server mapping.

    Returns ``None`` for stdio servers, which have no URL to probe.

    Raises:
        InvalidConfigError: If required fields are missing or of the wrong type.
    """

    raw_type = data.get("type", "stdio")
    if not isinstance(raw_type, str):
        message = f"Server '{name}' has an invalid 'type' field; expected a string."
        raise InvalidConfigError(message)

    transport = raw_type.lower()
    if transport == "stdio":
        logger.debug("Skipping stdio server '%s'", name)
        return None
    if transport not in TRANSPORTS:
        message = f"Server '{name}' has unsupported 'type' value '{raw_type}'."
        raise InvalidConfigError(message)

    url_value = data.get("url")
    if not isinstance(url_value, str) or not url_value:
        message = f"Server '{name}' is missing a non-empty 'url' field."
        raise InvalidConfigError(message)

    headers_value = data.get("headers", {})
    headers: Dict[str, str] = {}
    if isinstance(headers_value, dict):
        for key, value in headers_value.items():
            if not isinstance(key, str) or not isinstance(value, str):
                message = f"Server '{name}' has non-string HTTP header name or value."
                raise InvalidConfigError(message)
            headers[key] = value
    elif headers_value is not None:
        message = f"Server '{name}' has an invalid 'headers' field; expected an object or null."
        raise InvalidConfigError(message)

    endpoint = make_endpoint(
        url_value,
        transport,
        headers=headers,
        timeout=_optional_seconds(name, data, "timeout"),
        sse_read_timeout=_optional_seconds(name, data, "sseReadTimeout", "sse_read_timeout"),
    )
    endpoint.name = name
    return endpoint


def load_endpoints(cwd: Optional[Path] = None) -> Dict[str, EndpointConfig]:
    """Load and merge named URL endpoints from the standard config locations.

    Raises:
        ConfigNotFoundError: If no configuration files are found.
        InvalidConfigError: If any configuration file is malformed.
    """

    base_dir = cwd or Path.cwd()

    existing_paths = get_default_config_paths(base_dir)
    if not existing_paths:
        candidate_paths = [
            Path.home() / ".mcp.json",
            base_dir / ".claude" / "mcp.json",
            base_dir / "mcp.json",
        ]
        locations = ", ".join(str(path) for path in candidate_paths)
        message = (
            "No MCP configuration files found. Looked for the following paths: "
            f"{locations}."
        )
        raise ConfigNotFoundError(message)

    server_maps = _merge_server_maps(_load_raw_configs(existing_paths))

    endpoints: Dict[str, EndpointConfig] = {}
    for server_name, server_data in server_maps.items():
        endpoint = _endpoint_from_mapping(server_name, server_data)
        if endpoint is not None:
            endpoints[server_name] = endpoint

    return endpoints


def resolve_named_endpoint(name: str, cwd: Optional[Path] = None) -> EndpointConfig:
    """Return the configured endpoint called ``name``."""

    endpoints = load_endpoints(cwd)
    endpoint = endpoints.get(name)
    if endpoint is None:
        known = ", ".join(sorted(endpoints)) or "none"
        message = f"Endpoint '{name}' is not defined as an sse or http server (known: {known})."
        raise ConfigNotFoundError(message)
    return endpoint
