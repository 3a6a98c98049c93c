"""Entry point and CLI wiring for the mcp-probe command."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax

from . import tools
from .client import McpEndpointClient
from .config import (
    TRANSPORT_HTTP,
    TRANSPORT_SSE,
    ConfigError,
    EndpointConfig,
    check_seconds,
    make_endpoint,
    parse_header,
    resolve_named_endpoint,
)
from .render import OUTPUT_FORMATS, OUTPUT_JSON, OUTPUT_TEXT, render_tool_list
from .result import ProbeResult, probe

logger = logging.getLogger(__name__)


@dataclass
class ProbeSettings:
    """Endpoint selection and output options collected by the root group."""

    sse: str | None
    url: str | None
    server: str | None
    headers: dict[str, str]
    timeout: float | None
    output: str

    def endpoint(self) -> EndpointConfig:
        """Resolve the selected endpoint, raising ClickException on errors."""

        chosen = [value for value in (self.sse, self.url, self.server) if value]
        if not chosen:
            raise click.UsageError("One of --sse, --url or --server is required.")
        if len(chosen) > 1:
            raise click.UsageError("Only one of --sse, --url or --server may be used at a time.")

        try:
            if self.server:
                config = resolve_named_endpoint(self.server)
                config.headers.update(self.headers)
                if self.timeout is not None:
                    config.timeout = check_seconds("timeout", self.timeout)
            else:
                config = make_endpoint(
                    self.sse or self.url or "",
                    TRANSPORT_SSE if self.sse else TRANSPORT_HTTP,
                    headers=self.headers,
                    timeout=self.timeout,
                )
        except ConfigError as exc:
            raise click.ClickException(f"Configuration error: {exc}") from exc

        logger.debug("Using %s endpoint %s", config.transport, config.url)
        return config


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _highlight_json(text: str) -> str:
    """Colour JSON with rich when stdout is a terminal.

    When stdout is not a TTY the text is returned unchanged so redirected or
    captured output carries no ANSI codes.
    """

    try:
        if not sys.stdout.isatty():
            return text
    except Exception:
        return text

    buffer = StringIO()
    console = Console(file=buffer, force_terminal=True, color_system="auto")
    console.print(Syntax(text, "json", word_wrap=False, theme="ansi_light"))
    return buffer.getvalue().rstrip("\n")


def _emit(result: ProbeResult, output: str) -> None:
    """Print a successful result or fail the command with its error."""

    if not result.success:
        raise click.ClickException(click.style(result.error or "Unknown error", fg="red"))
    text = result.result or ""
    if not text:
        return
    if output == OUTPUT_JSON:
        text = _highlight_json(text)
    click.echo(text)


def _parse_json_arguments(
    json_arg: str | None,
    json_file: Path | None,
    json_stdin: bool,
) -> dict[str, Any]:
    """Parse JSON arguments from CLI options.

    At most one of ``json_arg``, ``json_file`` or ``json_stdin`` may be
    provided. When none are provided, an empty argument object is used.
    """

    sources_provided = sum(bool(value) for value in (json_arg, json_file, json_stdin))
    if sources_provided > 1:
        raise ValueError("Only one of --args, --args-file or --args-stdin may be used at a time.")

    raw: str | None = None
    if json_stdin:
        raw = sys.stdin.read()
    elif json_file is not None:
        raw = json_file.read_text(encoding="utf-8")
    elif json_arg is not None:
        raw = json_arg

    if raw is None or not raw.strip():
        return {}

    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse JSON arguments: {exc.msg}.") from exc

    if not isinstance(value, dict):
        raise ValueError("Arguments must be a JSON object.")

    return value


def _json_argument_options(func: Any) -> Any:
    func = click.option(
        "--args-stdin",
        "args_stdin",
        is_flag=True,
        default=False,
        help="Read JSON arguments from standard input.",
    )(func)
    func = click.option(
        "--args-file",
        "args_file",
        type=click.Path(path_type=Path, exists=True, dir_okay=False, readable=True),
        required=False,
        help="Path to a JSON file containing arguments.",
    )(func)
    func = click.option(
        "--args",
        "args_json",
        type=str,
        required=False,
        help="Inline JSON object of arguments.",
    )(func)
    return func


def _arguments_or_fail(args_json: str | None, args_file: Path | None, args_stdin: bool) -> dict[str, Any]:
    try:
        return _parse_json_arguments(args_json, args_file, args_stdin)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def _header_callback(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in values:
        try:
            name, value = parse_header(raw)
        except ConfigError as exc:
            raise click.BadParameter(str(exc), ctx=ctx, param=param) from exc
        headers[name] = value
    return headers


@click.group(
    help=(
        "Investigate remote MCP servers: call tools, read resources and get "
        "prompts over SSE or StreamableHTTP."
    )
)
@click.option("--sse", "sse", metavar="URL", help="SSE endpoint URL.")
@click.option("--url", "url", metavar="URL", help="StreamableHTTP endpoint URL.")
@click.option(
    "--server",
    "server",
    metavar="NAME",
    help="Named sse/http server from mcp.json, .claude/mcp.json or ~/.mcp.json.",
)
@click.option(
    "--header",
    "headers",
    multiple=True,
    callback=_header_callback,
    metavar="'NAME: VALUE'",
    help="Extra HTTP header; may be repeated.",
)
@click.option("--timeout", "timeout", type=float, default=None, help="HTTP timeout in seconds.")
@click.option(
    "--output",
    "output",
    type=click.Choice(list(OUTPUT_FORMATS), case_sensitive=False),
    default=OUTPUT_TEXT,
    show_default=True,
    help="Output format for results.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log protocol activity to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    sse: str | None,
    url: str | None,
    server: str | None,
    headers: dict[str, str],
    timeout: float | None,
    output: str,
    verbose: bool,
) -> None:
    _configure_logging(verbose)
    ctx.obj = ProbeSettings(
        sse=sse,
        url=url,
        server=server,
        headers=headers,
        timeout=timeout,
        output=output.lower(),
    )


@cli.command("call-tool")
@click.argument("tool_name")
@_json_argument_options
@click.pass_obj
def call_tool_command(
    settings: ProbeSettings,
    tool_name: str,
    args_json: str | None,
    args_file: Path | None,
    args_stdin: bool,
) -> None:
    """Call TOOL_NAME with JSON arguments."""

    arguments = _arguments_or_fail(args_json, args_file, args_stdin)
    endpoint = settings.endpoint()
    call = tools.call_tool_sse if endpoint.transport == TRANSPORT_SSE else tools.call_tool_http
    result = asyncio.run(
        call(
            endpoint=endpoint.url,
            tool_name=tool_name,
            tool_args=arguments,
            headers=endpoint.headers,
            timeout=endpoint.timeout,
            sse_read_timeout=endpoint.sse_read_timeout,
            output=settings.output,
        )
    )
    _emit(result, settings.output)


@cli.command("read-resource")
@click.argument("resource_uri")
@click.pass_obj
def read_resource_command(settings: ProbeSettings, resource_uri: str) -> None:
    """Read the resource at RESOURCE_URI."""

    endpoint = settings.endpoint()
    if endpoint.transport == TRANSPORT_SSE:
        result = asyncio.run(
            tools.read_resource_sse(
                endpoint=endpoint.url,
                resource_uri=resource_uri,
                headers=endpoint.headers,
                timeout=endpoint.timeout,
                sse_read_timeout=endpoint.sse_read_timeout,
                output=settings.output,
            )
        )
    else:
        result = asyncio.run(
            tools._read_resource(
                endpoint.transport,
                endpoint.url,
                resource_uri,
                endpoint.headers,
                endpoint.timeout,
                endpoint.sse_read_timeout,
                settings.output,
            )
        )
    _emit(result, settings.output)


@cli.command("get-prompt")
@click.argument("prompt_name")
@_json_argument_options
@click.pass_obj
def get_prompt_command(
    settings: ProbeSettings,
    prompt_name: str,
    args_json: str | None,
    args_file: Path | None,
    args_stdin: bool,
) -> None:
    """Get PROMPT_NAME filled in with JSON arguments."""

    arguments = _arguments_or_fail(args_json, args_file, args_stdin)
    endpoint = settings.endpoint()
    if endpoint.transport == TRANSPORT_SSE:
        result = asyncio.run(
            tools.get_prompt_sse(
                endpoint=endpoint.url,
                prompt_name=prompt_name,
                prompt_args=arguments,
                headers=endpoint.headers,
                timeout=endpoint.timeout,
                sse_read_timeout=endpoint.sse_read_timeout,
                output=settings.output,
            )
        )
    else:
        result = asyncio.run(
            tools._get_prompt(
                endpoint.transport,
                endpoint.url,
                prompt_name,
                arguments,
                endpoint.headers,
                endpoint.timeout,
                endpoint.sse_read_timeout,
                settings.output,
            )
        )
    _emit(result, settings.output)


@cli.command("list-tools")
@click.pass_obj
def list_tools_command(settings: ProbeSettings) -> None:
    """List the tools the endpoint exposes."""

    endpoint = settings.endpoint()

    async def action(client: McpEndpointClient) -> str:
        descriptors = await client.list_tools()
        return render_tool_list(descriptors, settings.output)

    _emit(asyncio.run(probe(endpoint, action)), settings.output)


def _rewrite_args_for_help(argv: list[str]) -> list[str]:
    """Rewrite arguments to support ``help`` as a subcommand or suffix.

    Supported patterns:

    * ``mcp-probe help`` → ``mcp-probe --help``
    * ``mcp-probe help <command>`` → ``mcp-probe <command> --help``
    * ``mcp-probe <command> help`` → ``mcp-probe <command> --help``
    """

    if not argv:
        return argv

    if argv[0] == "help":
        if len(argv) == 1:
            return ["--help"]
        return [argv[1]] + ["--help"] + argv[2:]

    if len(argv) >= 2 and argv[-1] == "help":
        return argv[:-1] + ["--help"]

    return argv


def main() -> None:
    """Execute the mcp-probe CLI."""

    args = _rewrite_args_for_help(sys.argv[1:])
    cli.main(args=args, prog_name="mcp-probe", standalone_mode=True)


if __name__ == "__main__":  # pragma: no cover
    main()
