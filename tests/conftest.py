from __future__ import annotations

import asyncio
from typing import Any

import mcp.types as types
import pytest

import mcp_probe.result as result_mod
from mcp_probe.client import ToolDescriptor
from mcp_probe.config import EndpointConfig


class FakeEndpoint:
    """In-memory stand-in for a remote MCP endpoint.

    Tests tweak the attributes, then inspect ``configs`` and ``calls`` to see
    what the probe asked for.
    """

    def __init__(self) -> None:
        self.connect_error: Exception | None = None
        self.delay = 0.0
        self.tool_result = types.CallToolResult(
            content=[types.TextContent(type="text", text="hello from tool")]
        )
        self.resource_result = types.ReadResourceResult(
            contents=[
                types.TextResourceContents(
                    uri="resource://test", mimeType="text/plain", text="resource body"
                )
            ]
        )
        self.prompt_result = types.GetPromptResult(
            description="A test prompt",
            messages=[
                types.PromptMessage(
                    role="user", content=types.TextContent(type="text", text="Say hi")
                )
            ],
        )
        self.tools = [
            ToolDescriptor(
                tool_name="search",
                description="Search the web.\nMore details here.",
                input_schema={"type": "object", "properties": {"query": {"type": "string"}}},
            ),
            ToolDescriptor(tool_name="ask", description="Ask a question.", input_schema={}),
        ]
        self.configs: list[EndpointConfig] = []
        self.calls: list[tuple[str, Any, Any]] = []
        self.cleanups = 0


@pytest.fixture
def fake_endpoint(monkeypatch: Any) -> FakeEndpoint:
    endpoint = FakeEndpoint()

    class FakeClient:
        def __init__(self, config: EndpointConfig) -> None:
            endpoint.configs.append(config)

        async def initialize(self) -> None:
            if endpoint.connect_error is not None:
                raise endpoint.connect_error

        async def _pause(self) -> None:
            if endpoint.delay:
                await asyncio.sleep(endpoint.delay)

        async def list_tools(self) -> list[ToolDescriptor]:
            endpoint.calls.append(("list_tools", None, None))
            return endpoint.tools

        async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> types.CallToolResult:
            endpoint.calls.append(("call_tool", tool_name, arguments))
            await self._pause()
            return endpoint.tool_result

        async def read_resource(self, uri: str) -> types.ReadResourceResult:
            endpoint.calls.append(("read_resource", uri, None))
            await self._pause()
            return endpoint.resource_result

        async def get_prompt(self, prompt_name: str, arguments: dict[str, Any] | None = None) -> types.GetPromptResult:
            endpoint.calls.append(("get_prompt", prompt_name, arguments))
            await self._pause()
            return endpoint.prompt_result

        async def cleanup(self) -> None:
            endpoint.cleanups += 1

    monkeypatch.setattr(result_mod, "McpEndpointClient", FakeClient)
    return endpoint
