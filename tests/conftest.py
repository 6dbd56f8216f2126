import asyncio
import json

import pytest
import pytest_asyncio
import websockets
from loguru import logger


class FakeChatServer:
    """A tiny two-line-frame chat server for exercising the real transport."""

    def __init__(self):
        self.received: list[str] = []
        self.tokens: list[str | None] = []
        self.connections = []
        self.greeting: list[str] = []
        self.crash_after_greeting = False
        self.got_frame = asyncio.Event()
        self.server = None

    @property
    def url(self) -> str:
        port = self.server.sockets[0].getsockname()[1]
        return f"ws://127.0.0.1:{port}/ws"

    @staticmethod
    def frame(message_type: str, **payload) -> str:
        return f"{message_type}\n{json.dumps(payload)}"

    async def handler(self, ws):
        self.tokens.append(ws.request.headers.get("Sec-WebSocket-Protocol"))
        self.connections.append(ws)
        for line in self.greeting:
            await ws.send(line)
        if self.crash_after_greeting:
            raise RuntimeError("handler crashed")
        async for message in ws:
            self.received.append(message)
            self.got_frame.set()
            message_type, _, body = message.partition("\n")
            payload = json.loads(body)
            if message_type == "channel.join":
                channel = payload["channel"]
                await ws.send(self.frame("user.join", username="tom1", channel=channel))
                await ws.send(self.frame("channel.joined", channel=channel, username="tom1"))
                await ws.send(self.frame("channel.info", name=channel, username="tom1", users=["amy", "tom1"]))
            elif message_type == "channel.chat":
                await ws.send(self.frame("channel.chat", channel=payload["channel"], sender="tom1", message=payload["message"]))

    async def wait_for_frames(self, count: int, timeout: float = 2.0):
        async def _wait():
            while len(self.received) < count:
                self.got_frame.clear()
                await self.got_frame.wait()
        await asyncio.wait_for(_wait(), timeout)


@pytest_asyncio.fixture
async def chat_server():
    fake = FakeChatServer()
    fake.greeting = [FakeChatServer.frame("user.connected", username="tom1")]
    fake.server = await websockets.serve(fake.handler, "127.0.0.1", 0)
    try:
        yield fake
    finally:
        fake.server.close()
        await fake.server.wait_closed()


@pytest.fixture
def log_messages():
    """Capture loguru output, which does not go through the stdlib logging caplog sees."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG")
    yield messages
    logger.remove(handler_id)


async def next_event(queue: asyncio.Queue, timeout: float = 2.0):
    return await asyncio.wait_for(queue.get(), timeout)
