"""
MODULE OVERVIEW:
The WebSocket transport adapter.

WHAT IS HAPPENING HERE:
We use the `websockets` library. One connection needs two async loops over the
same socket: one reads and decodes frames, one drains the outbound queue. Both
loops live only as long as the connection does.

Everything the adapter observes is pushed onto a single `asyncio.Queue` owned by
its consumer, in arrival order. Nothing raises past this class: failures turn into
an `Error` event, a clean shutdown into `Closed`, and exactly one of the two ends
every connection.
"""
import asyncio
import websockets
from loguru import logger
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException

from chat_shared.client_utils import log_connection, make_client_stats, utc_now
from chat_shared.config import Settings, settings
from chat_shared.models import Closed, Command, DecodeFailed, Error, SessionEvent
from chat_shared.protocol import WIRE_FORMAT, decode_frame, encode_command


class TransportAdapter:
    def __init__(self, sink: asyncio.Queue, config: Settings = settings):
        self.sink = sink
        self.config = config
        self.endpoint: str | None = None
        self.stats = make_client_stats()

        self._ws = None
        self._outbox: asyncio.Queue[str] | None = None
        self._reader_task: asyncio.Task | None = None
        self._writer_task: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    def _emit(self, event: SessionEvent) -> None:
        self.sink.put_nowait(event)

    async def connect(self, endpoint: str, auth_token: str) -> None:
        """Open the connection. Callers must not call this while one is open."""
        self.endpoint = endpoint
        log_connection(endpoint, "connect", reason="opening", wire=WIRE_FORMAT)

        try:
            ws = await websockets.connect(
                endpoint,
                # The token rides in the subprotocol header; the server maps it to a username.
                subprotocols=[auth_token] if auth_token else None,
                open_timeout=self.config.OPEN_TIMEOUT_S,
                close_timeout=self.config.CLOSE_TIMEOUT_S,
                max_size=self.config.MAX_FRAME_BYTES,
                ping_interval=self.config.PING_INTERVAL_S,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            log_connection(endpoint, "error", reason=f"'{e}'")
            self._emit(Error(detail=f"connect failed: {e}"))
            return

        self._ws = ws
        self._outbox = asyncio.Queue()
        self.stats["connected_at"] = utc_now()
        self._writer_task = asyncio.create_task(self._write_loop(ws, self._outbox))
        self._reader_task = asyncio.create_task(self._read_loop(ws))
        log_connection(endpoint, "connect", reason="opened")

    def send(self, command: Command) -> None:
        """Queue a command for the wire, or drop it if nothing is connected."""
        if self._outbox is None:
            self.stats["dropped_sends"] += 1
            logger.debug(
                f"endpoint={self.endpoint} event=send reason=not_connected command={type(command).__name__}"
            )
            return
        self._outbox.put_nowait(encode_command(command))

    async def close(self) -> None:
        ws = self._ws
        if ws is None:
            return
        reader = self._reader_task
        log_connection(self.endpoint, "disconnect", reason="client_close")
        await ws.close()

        # Let the reader observe the close and emit the terminal event.
        if reader is not None:
            await reader

    async def _read_loop(self, ws) -> None:
        terminal: SessionEvent = Closed()
        try:
            async for frame in ws:
                self.stats["frames_received"] += 1
                self.stats["last_frame_at"] = utc_now()
                event = decode_frame(frame)
                if isinstance(event, DecodeFailed):
                    self.stats["decode_errors"] += 1
                logger.debug(f"endpoint={self.endpoint} event=frame type={type(event).__name__}")
                self._emit(event)
        except ConnectionClosedError as e:
            terminal = Error(detail=f"connection lost: {e}")
        except (OSError, WebSocketException) as e:
            terminal = Error(detail=str(e))
        finally:
            self._release(ws)

        log_connection(self.endpoint, "disconnect", reason=type(terminal).__name__.lower())
        self._emit(terminal)

    async def _write_loop(self, ws, outbox: asyncio.Queue) -> None:
        while True:
            frame = await outbox.get()
            try:
                await ws.send(frame)
            except ConnectionClosed:
                # The reader reports the close; whatever is still queued is dropped.
                return
            except (OSError, WebSocketException) as e:
                logger.warning(f"endpoint={self.endpoint} event=error reason='{e}' stage=send")
                # Stop accepting frames and let the reader emit the terminal event.
                self._outbox = None
                await ws.close(code=1011, reason="send failed")
                return
            self.stats["frames_sent"] += 1
            message_type = frame.partition("\n")[0]
            logger.debug(f"endpoint={self.endpoint} event=sent type={message_type}")

    def _release(self, ws) -> None:
        if self._ws is not ws:
            return
        self._ws = None
        self._outbox = None
        if self._writer_task is not None:
            self._writer_task.cancel()
            self._writer_task = None
        self._reader_task = None
