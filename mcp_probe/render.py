"""Rendering of MCP result models into printable text.

Every probe returns its payload as a single string. In ``text`` mode the
content is flattened the way a person would want to read it; in ``json`` mode
the full model is dumped.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Iterable

import mcp.types as types
from pydantic import BaseModel

from .client import ToolDescriptor

OUTPUT_TEXT = "text"
OUTPUT_JSON = "json"
OUTPUT_FORMATS = (OUTPUT_TEXT, OUTPUT_JSON)


def _dump_model(model: BaseModel) -> str:
    return json.dumps(
        model.model_dump(mode="json", exclude_none=True, by_alias=True),
        ensure_ascii=False,
        indent=2,
    )


def _render_resource_contents(contents: Any) -> str:
    if isinstance(contents, types.TextResourceContents):
        return contents.text
    if isinstance(contents, types.BlobResourceContents):
        mime = contents.mimeType or "application/octet-stream"
        return f"[blob {contents.uri} ({mime}, {len(contents.blob)} base64 chars)]"
    return json.dumps(contents, ensure_ascii=False, default=str)


def _render_content_block(block: Any) -> str:
    if isinstance(block, types.TextContent):
        return block.text
    if isinstance(block, types.ImageContent):
        return f"[image {block.mimeType}]"
    if isinstance(block, types.EmbeddedResource):
        return _render_resource_contents(block.resource)
    mime = getattr(block, "mimeType", None)
    kind = getattr(block, "type", type(block).__name__)
    return f"[{kind} {mime}]" if mime else f"[{kind}]"


def _join(parts: Iterable[str]) -> str:
    return "\n".join(part for part in parts if part)


def render_tool_result(result: types.CallToolResult, output: str = OUTPUT_TEXT) -> str:
    """Render the result of a tool call."""

    if output.lower() == OUTPUT_JSON:
        return _dump_model(result)

    if result.content:
        return _join(_render_content_block(block) for block in result.content)

    structured = getattr(result, "structuredContent", None)
    if structured:
        return json.dumps(structured, ensure_ascii=False, indent=2)
    return ""


def render_resource_result(result: types.ReadResourceResult, output: str = OUTPUT_TEXT) -> str:
    """Render the contents of a resource read."""

    if output.lower() == OUTPUT_JSON:
        return _dump_model(result)

    return _join(_render_resource_contents(contents) for contents in result.contents)


def render_prompt_result(result: types.GetPromptResult, output: str = OUTPUT_TEXT) -> str:
    """Render a prompt as its description followed by ``role: text`` lines."""

    if output.lower() == OUTPUT_JSON:
        return _dump_model(result)

    lines = []
    if result.description:
        lines.append(result.description)
    for message in result.messages:
        lines.append(f"{message.role}: {_render_content_block(message.content)}")
    return _join(lines)


def render_tool_list(tools: list[ToolDescriptor], output: str = OUTPUT_TEXT) -> str:
    """Render a listing of the tools an endpoint exposes."""

    if output.lower() == OUTPUT_JSON:
        return json.dumps([asdict(tool) for tool in tools], ensure_ascii=False, indent=2)

    lines = []
    for tool in sorted(tools, key=lambda item: item.tool_name):
        summary = (tool.description or "").strip().splitlines()
        lines.append(f"{tool.tool_name} - {summary[0]}" if summary else tool.tool_name)
    return _join(lines)
