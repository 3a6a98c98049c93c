"""Result envelope shared by every probe.

A probe never raises for network, protocol or timeout failures. It resolves
to a :class:`ProbeResult` whose ``success`` flag says what happened and whose
``error`` carries a readable message when it did not work out.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlparse

from .client import McpEndpointClient
from .config import ConfigError, EndpointConfig, make_endpoint

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"

Action = Callable[[McpEndpointClient], Awaitable[str]]


class ToolCallError(Exception):
    """Raised when an endpoint reports that a tool call failed."""


@dataclass
class ProbeResult:
    """Outcome of a single probe.

    Attributes:
        success: Whether the call completed without error.
        result: Rendered output of a successful call.
        error: Human-readable failure message; always set when
            ``success`` is false.
    """

    success: bool
    result: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            self.error = UNKNOWN_ERROR

    @classmethod
    def ok(cls, result: str) -> ProbeResult:
        return cls(success=True, result=result)

    @classmethod
    def failed(cls, error: str) -> ProbeResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Return the ``{success, result?, error?}`` mapping."""

        data: dict[str, Any] = {"success": self.success}
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        return data


def _leaf_exceptions(exc: BaseException) -> list[BaseException]:
    children = getattr(exc, "exceptions", None)
    if not children:
        return [exc]
    leaves: list[BaseException] = []
    for child in children:
        leaves.extend(_leaf_exceptions(child))
    return leaves


def describe_error(exc: BaseException) -> str:
    """Turn an exception into a one-line message.

    Exception groups from the transports' task groups are flattened so the
    message names the real cause rather than "unhandled errors in a
    TaskGroup".
    """

    messages: list[str] = []
    for leaf in _leaf_exceptions(exc):
        lines = str(leaf).strip().splitlines()
        text = lines[0].strip() if lines else type(leaf).__name__
        if text not in messages:
            messages.append(text)
    return "; ".join(messages) or UNKNOWN_ERROR


def check_endpoint(endpoint: str) -> Optional[str]:
    """Return a message when ``endpoint`` is not an http(s) URL."""

    if not endpoint or not endpoint.strip():
        return "endpoint is required"
    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return f"endpoint must be an http(s) URL, got '{endpoint}'"
    return None


async def _run(config: EndpointConfig, action: Action) -> str:
    client = McpEndpointClient(config)
    try:
        await client.initialize()
        return await action(client)
    finally:
        await client.cleanup()


async def probe(config: EndpointConfig, action: Action) -> ProbeResult:
    """Connect to ``config``, run ``action`` and wrap the outcome.

    The action receives an initialized client and returns the rendered
    output. It may raise; any exception becomes a failed result. The whole
    operation is bounded by ``config.sse_read_timeout``.
    """

    problem = check_endpoint(config.url)
    if problem is not None:
        return ProbeResult.failed(problem)

    try:
        output = await asyncio.wait_for(_run(config, action), timeout=config.sse_read_timeout)
    except asyncio.TimeoutError:
        message = f"Timed out after {config.sse_read_timeout:g}s waiting for {config.label}"
        logger.debug(message)
        return ProbeResult.failed(message)
    except Exception as exc:
        logger.debug("Probe of %s failed", config.label, exc_info=True)
        return ProbeResult.failed(describe_error(exc))

    return ProbeResult.ok(output)


async def probe_url(
    url: str,
    transport: str,
    action: Action,
    headers: Optional[dict[str, str]] = None,
    timeout: Optional[float] = None,
    sse_read_timeout: Optional[float] = None,
) -> ProbeResult:
    """Like :func:`probe`, but builds the endpoint configuration first.

    Configuration problems, such as a malformed timeout environment
    variable, also come back as a failed result.
    """

    try:
        config = make_endpoint(
            url,
            transport,
            headers=headers,
            timeout=timeout,
            sse_read_timeout=sse_read_timeout,
        )
    except ConfigError as exc:
        return ProbeResult.failed(str(exc))
    return await probe(config, action)
