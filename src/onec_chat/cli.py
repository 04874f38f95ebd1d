"""Command line front end: stream a chat answer, list models, check a profile."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from onec_chat import __version__
from onec_chat.codeblocks import extract_code_blocks
from onec_chat.config import ChatConfig, Profile, StaticProfileResolver, load_config
from onec_chat.errors import ChatClientError, ConfigError, StreamError
from onec_chat.events.bus import EventBus
from onec_chat.llm.client import ChatClient
from onec_chat.types import ChatEvent, ChatMessage, EventType

console = Console()
err_console = Console(stderr=True)


class StreamingDisplay:
    """Renders chat events to the terminal as they arrive."""

    def __init__(self, con: Console):
        self.con = con
        self._streaming = False

    def handle(self, event: ChatEvent) -> None:
        if event.type == EventType.CHAT_CHUNK:
            self._streaming = True
            self.con.print(event.data, end="", highlight=False, markup=False)

        elif event.type == EventType.CHAT_DONE:
            self._flush()

        elif event.type == EventType.CHAT_ERROR:
            self._flush()
            self.con.print(f"[red]{escape(str(event.data))}[/red]", highlight=False)

    def _flush(self) -> None:
        if self._streaming:
            self.con.print()
            self._streaming = False


def _select_profile(config: ChatConfig, name: str | None) -> Profile | None:
    if name is None:
        return config.active_profile()
    profile = config.profile(name)
    if profile is None:
        raise ConfigError(f"Unknown profile '{name}'")
    return profile


def _fail(message: str) -> None:
    err_console.print(f"[red]{escape(message)}[/red]", highlight=False)
    sys.exit(1)


def _client_for(ctx: click.Context, profile_name: str | None) -> ChatClient:
    config: ChatConfig = ctx.obj["config"]
    profile = _select_profile(config, profile_name)
    return ChatClient(
        StaticProfileResolver(profile),
        sink_timeout=config.sink_timeout,
    )


@click.group()
@click.option("--config", "-c", "config_path", default=None,
              help="Path to onec_chat.yaml (auto-detected from CWD or ~/.config/onec-chat/)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.version_option(__version__, prog_name="onec-chat")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Streaming 1C:Enterprise coding assistant for OpenAI-compatible APIs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config, config_file = load_config(config_path)
    except (ConfigError, FileNotFoundError) as e:
        _fail(str(e))
        return
    if verbose:
        where = config_file or "defaults (no onec_chat.yaml found)"
        err_console.print(f"[dim]Config: {where}[/dim]")
    ctx.obj = {"config": config}


@main.command()
@click.argument("prompt")
@click.option("--profile", "-p", "profile_name", default=None, help="Profile to use")
@click.option("--extract", "-x", is_flag=True, help="Print extracted BSL code blocks afterwards")
@click.pass_context
def chat(ctx: click.Context, prompt: str, profile_name: str | None, extract: bool) -> None:
    """Send PROMPT and stream the answer."""
    bus = EventBus()
    display = StreamingDisplay(console)
    bus.subscribe("*", display.handle)

    async def run() -> str:
        try:
            async with _client_for(ctx, profile_name) as client:
                text = await client.stream_chat_completion(
                    [ChatMessage.user(prompt)], bus.fragment_sink(),
                )
        except ChatClientError as e:
            await bus.emit(ChatEvent(type=EventType.CHAT_ERROR, data=str(e)))
            raise
        await bus.emit(ChatEvent(type=EventType.CHAT_DONE, data=text))
        return text

    try:
        text = asyncio.run(run())
    except StreamError as e:
        if e.partial_text:
            err_console.print("[yellow]Answer is incomplete.[/yellow]")
        sys.exit(1)
    except ChatClientError:
        sys.exit(1)

    if extract:
        for i, block in enumerate(extract_code_blocks(text), 1):
            console.print(Panel(
                Syntax(block, "text", word_wrap=True),
                title=f"BSL block {i}",
                border_style="cyan",
                expand=False,
            ))


@main.command()
@click.option("--profile", "-p", "profile_name", default=None, help="Profile to use")
@click.pass_context
def models(ctx: click.Context, profile_name: str | None) -> None:
    """List the models offered by the provider."""

    async def run() -> list[str]:
        async with _client_for(ctx, profile_name) as client:
            return await client.fetch_models()

    try:
        ids = asyncio.run(run())
    except ChatClientError as e:
        _fail(str(e))
        return

    table = Table(title=f"Models ({len(ids)})")
    table.add_column("id", style="cyan")
    for model_id in ids:
        table.add_row(model_id)
    console.print(table)


@main.command()
@click.option("--profile", "-p", "profile_name", default=None, help="Profile to use")
@click.pass_context
def check(ctx: click.Context, profile_name: str | None) -> None:
    """Check that the provider answers with the configured credentials."""

    async def run() -> str:
        async with _client_for(ctx, profile_name) as client:
            return await client.test_connection()

    try:
        message = asyncio.run(run())
    except ChatClientError as e:
        _fail(str(e))
        return
    console.print(f"[green]{message}[/green]")


if __name__ == "__main__":
    main()
