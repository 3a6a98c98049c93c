"""MCP endpoint client wrapper used by mcp-probe.

This module provides a thin abstraction over the MCP Python SDK in order to:

* Connect to a remote endpoint over SSE or StreamableHTTP.
* List the tools the endpoint exposes.
* Call a tool, read a resource or fetch a prompt.
"""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.client.streamable_http import streamablehttp_client
from pydantic import AnyUrl

from .config import TRANSPORT_HTTP, TRANSPORT_SSE, EndpointConfig

logger = logging.getLogger(__name__)


@dataclass
class ToolDescriptor:
    """Description of a tool exposed by an MCP endpoint.

    Attributes:
        tool_name: Name of the tool as reported by the endpoint.
        description: Human-readable description of the tool.
        input_schema: JSON Schema describing the tool input.
        title: Optional user-facing title if provided by the endpoint.
    """

    tool_name: str
    description: str
    input_schema: Dict[str, Any]
    title: Optional[str] = None


class McpEndpointClient:
    """Client wrapper around a single remote MCP endpoint.

    The client owns the transport and the session for one probe. Call
    :meth:`initialize` first and :meth:`cleanup` when done.
    """

    def __init__(self, config: EndpointConfig) -> None:
        self._config: EndpointConfig = config
        self._exit_stack: AsyncExitStack = AsyncExitStack()
        self._session: Optional[ClientSession] = None

    @property
    def label(self) -> str:
        """Return the endpoint name, or its URL when unnamed."""

        return self._config.label

    async def initialize(self) -> None:
        """Open the transport and establish an initialized client session."""

        transport = self._config.transport.lower()
        logger.debug("Connecting to %s over %s", self._config.url, transport)

        if transport == TRANSPORT_HTTP:
            http_client_cm = streamablehttp_client(
                url=self._config.url,
                headers=self._config.headers or {},
                timeout=self._config.timeout,
                sse_read_timeout=self._config.sse_read_timeout,
                terminate_on_close=True,
            )
            read, write, _get_session_id = await self._exit_stack.enter_async_context(
                http_client_cm
            )
        elif transport == TRANSPORT_SSE:
            sse_client_cm = sse_client(
                url=self._config.url,
                headers=self._config.headers or {},
                timeout=self._config.timeout,
                sse_read_timeout=self._config.sse_read_timeout,
            )
            read, write = await self._exit_stack.enter_async_context(sse_client_cm)
        else:
            raise RuntimeError(
                f"Endpoint '{self.label}' has unsupported transport '{self._config.transport}'."
            )

        session = await self._exit_stack.enter_async_context(ClientSession(read, write))
        await session.initialize()
        self._session = session

    def _require_session(self) -> ClientSession:
        if self._session is None:
            message = f"Endpoint '{self.label}' not initialized. Call initialize() first."
            raise RuntimeError(message)
        return self._session

    async def list_tools(self) -> List[ToolDescriptor]:
        """Return all tools exposed by this endpoint.

        Raises:
            RuntimeError: If the client has not been initialized.
        """

        session = self._require_session()
        tools_response = await session.list_tools()

        descriptors: List[ToolDescriptor] = []
        for tool in tools_response.tools:
            descriptors.append(
                ToolDescriptor(
                    tool_name=tool.name,
                    description=tool.description or "",
                    input_schema=tool.inputSchema or {},
                    title=getattr(tool, "title", None),
                )
            )
        return descriptors

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        """Execute a tool on this endpoint and return the raw result."""

        session = self._require_session()
        logger.debug("Calling tool %s on %s", tool_name, self.label)
        return await session.call_tool(tool_name, arguments)

    async def read_resource(self, uri: str) -> types.ReadResourceResult:
        """Read the resource identified by ``uri``."""

        session = self._require_session()
        logger.debug("Reading resource %s from %s", uri, self.label)
        return await session.read_resource(AnyUrl(uri))

    async def get_prompt(
        self, prompt_name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> types.GetPromptResult:
        """Fetch a prompt, filled in with ``arguments``.

        Prompt arguments are strings in MCP; other values are sent
        JSON-encoded.
        """

        session = self._require_session()
        prompt_args = {
            key: value if isinstance(value, str) else json.dumps(value)
            for key, value in (arguments or {}).items()
        }
        logger.debug("Getting prompt %s from %s", prompt_name, self.label)
        return await session.get_prompt(prompt_name, prompt_args or None)

    async def cleanup(self) -> None:
        """Close the session and the underlying transport."""

        try:
            await self._exit_stack.aclose()
        finally:
            self._session = None
            logger.debug("Closed connection to %s", self.label)
