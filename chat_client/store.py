"""
MODULE OVERVIEW:
The session store: the one place where events meet the reducer.

WHAT IS HAPPENING HERE:
The store owns the current `Session` snapshot and the inbox queue its transport
writes into. A single loop (`run`) pulls events off that queue one at a time and
folds them through `reduce`, so no two transitions ever overlap. Local intents
such as changing focus go through the same inbox, which keeps them ordered with
whatever the server sent before them.

Presentation code calls `subscribe` and receives every new snapshot. Snapshots
are immutable, so a subscriber may hold on to an old one as long as it likes.
"""
import asyncio
from typing import Awaitable, Callable
from loguru import logger

from chat_client.reducer import find_inconsistency, reduce
from chat_client.state import Session
from chat_client.transport import TransportAdapter
from chat_shared.config import Settings, settings
from chat_shared.models import (
    Closed,
    Command,
    Connect,
    DecodeFailed,
    Error,
    FocusChanged,
    SendChatMessage,
    SessionEvent,
    SetFocus,
)

Subscriber = Callable[[Session], Awaitable[None]]


class SessionStore:
    def __init__(self, transport: TransportAdapter | None = None, config: Settings = settings):
        if transport is None:
            transport = TransportAdapter(asyncio.Queue(), config)
        self.transport = transport
        self.inbox: asyncio.Queue[SessionEvent] = transport.sink

        self._snapshot = Session()
        self._subscribers: list[Subscriber] = []

    @property
    def snapshot(self) -> Session:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def _publish(self, snapshot: Session) -> None:
        for sub in list(self._subscribers):
            try:
                await sub(snapshot)
            except Exception as e:
                logger.error(f"Error in subscriber during publish: {e}")

    async def dispatch(self, command: Command) -> None:
        """Route a user intent to the transport or straight into the inbox."""
        if isinstance(command, Connect):
            await self.transport.connect(command.endpoint, command.auth_token)
        elif isinstance(command, SetFocus):
            self.inbox.put_nowait(FocusChanged(channel=command.channel))
        elif isinstance(command, SendChatMessage) and not command.text:
            logger.debug(f"channel={command.channel} event=send reason=empty_text")
        else:
            self.transport.send(command)

    async def apply(self, event: SessionEvent) -> Session:
        if isinstance(event, DecodeFailed):
            logger.warning(f"event=decode_failed detail='{event.detail}' frame={event.frame!r}")
        elif isinstance(event, Error):
            logger.warning(f"event=transport_error detail='{event.detail}'")

        problem = find_inconsistency(self._snapshot, event)
        if problem:
            logger.warning(f"event=desync {problem}")

        previous = self._snapshot
        self._snapshot = reduce(previous, event)
        if self._snapshot is not previous:
            await self._publish(self._snapshot)
        return self._snapshot

    async def drain(self) -> Session:
        """Apply everything already waiting in the inbox without blocking."""
        while not self.inbox.empty():
            await self.apply(self.inbox.get_nowait())
        return self._snapshot

    async def run(self, stop_on_disconnect: bool = False) -> Session:
        """The dispatch loop. Runs until cancelled, or until the connection ends."""
        while True:
            event = await self.inbox.get()
            await self.apply(event)
            if stop_on_disconnect and isinstance(event, (Closed, Error)):
                return self._snapshot
