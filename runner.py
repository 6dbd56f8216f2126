"""
CLI entrypoint for the chat session client.
"""
import asyncio
import sys
from typing import List, Optional

import typer
from loguru import logger

from chat_client.store import SessionStore
from chat_client.visualizer import Visualizer
from chat_shared.config import settings
from chat_shared.models import (
    Connect,
    JoinChannel,
    LeaveChannel,
    RequestChannelDirectory,
    SendChatMessage,
    SetFocus,
)
from chat_shared.protocol import encode_command

app = typer.Typer(help="Channel chat client")


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


async def run_session(url: str, token: str, join: List[str], focus: Optional[str], say: Optional[str], duration: float):
    store = SessionStore()
    visualizer = Visualizer(store)
    loop_task = asyncio.create_task(store.run(stop_on_disconnect=True))

    await store.dispatch(Connect(endpoint=url, auth_token=token))
    await store.dispatch(RequestChannelDirectory())
    for name in join:
        await store.dispatch(JoinChannel(channel=name))

    target = focus or (join[0] if join else None)
    if target:
        await store.dispatch(SetFocus(channel=target))
        if say:
            await store.dispatch(SendChatMessage(channel=target, text=say))

    try:
        await visualizer.run(loop_task, duration)
    finally:
        await store.transport.close()
        loop_task.cancel()
        await asyncio.gather(loop_task, return_exceptions=True)


@app.command()
def chat(
    url: str = typer.Option(settings.URL, help="WebSocket endpoint of the chat server"),
    token: str = typer.Option(settings.TOKEN, help="Auth token offered as the WebSocket subprotocol"),
    join: List[str] = typer.Option([], "--join", help="Channel to join; repeat for several"),
    focus: Optional[str] = typer.Option(None, help="Channel to show; defaults to the first joined"),
    say: Optional[str] = typer.Option(None, help="Message to send to the focused channel once"),
    duration: float = typer.Option(60.0, help="Seconds to stay connected"),
    log_level: str = typer.Option(settings.LOG_LEVEL, help="loguru level for stderr"),
):
    """Connect, join channels and watch the session live."""
    configure_logging(log_level)
    try:
        asyncio.run(run_session(url, token, join, focus, say, duration))
    except KeyboardInterrupt:
        pass


@app.command()
def frame(
    kind: str = typer.Argument(..., help="list, join, leave or say"),
    channel: str = typer.Option("", help="Target channel"),
    text: str = typer.Option("", help="Message text for 'say'"),
):
    """Print the wire frame a command produces."""
    if kind == "list":
        command = RequestChannelDirectory()
    elif kind == "join":
        command = JoinChannel(channel=channel)
    elif kind == "leave":
        command = LeaveChannel(channel=channel)
    elif kind == "say":
        command = SendChatMessage(channel=channel, text=text)
    else:
        typer.echo("Invalid command kind.")
        raise typer.Exit(1)
    typer.echo(encode_command(command))


if __name__ == "__main__":
    app()
