"""
MODULE OVERVIEW:
The Rich terminal view of a chat session.

WHAT IS HAPPENING HERE:
The visualizer subscribes to the session store and keeps the newest snapshot.
`generate_layout` is a pure rendering of that snapshot: channel directory on the
left, the focused channel's history in the middle, its members and connection
stats on the right. `run` redraws it with `rich.live.Live` until the store's
dispatch loop finishes or the duration runs out.
"""
import asyncio
from collections import deque
from datetime import datetime

from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chat_client.state import Chat, ChannelEvent, Joined, Session
from chat_client.store import SessionStore


def describe_event(event: ChannelEvent, channel: str) -> Text:
    if isinstance(event, Chat):
        line = Text()
        line.append(f"{event.sender:>12} ", style="bold cyan")
        line.append(event.text)
        return line
    verb = "joined" if isinstance(event, Joined) else "left"
    return Text(f"{event.username} has {verb} channel {channel}", style="italic dim")


class Visualizer:
    def __init__(self, store: SessionStore, history: int = 200):
        self.store = store
        self.history = history
        self.snapshot = store.snapshot
        self.timeline = deque(maxlen=5)
        self._unsubscribe = None

    async def on_snapshot(self, snapshot: Session):
        if snapshot.connected != self.snapshot.connected:
            ts = datetime.now().strftime("%H:%M:%S")
            state = "CONNECTED" if snapshot.connected else "DISCONNECTED"
            self.timeline.appendleft(f"[{ts}] {state}")
        self.snapshot = snapshot

    def attach(self):
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.on_snapshot)

    def detach(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _channel_list(self, session: Session) -> Table:
        table = Table(show_header=False, expand=True, box=None)
        table.add_column("Channel")
        for name in sorted(session.channels):
            channel = session.channels[name]
            style = "bold" if channel.has_activity else ""
            if name == session.focused_channel:
                style += " reverse"
            marker = "*" if name in session.joined else " "
            table.add_row(Text(f"{marker} {name}", style=style.strip()))
        return table

    def _history(self, session: Session) -> Table:
        table = Table(show_header=False, expand=True, box=None)
        table.add_column("Event")
        channel = session.focused
        if channel is not None:
            for event in channel.events[-self.history:]:
                table.add_row(describe_event(event, channel.name))
        return table

    def _members(self, session: Session) -> Text:
        channel = session.focused
        if channel is None:
            return Text("")
        lines = Text()
        for name in sorted(channel.members):
            lines.append(name + "\n", style="underline" if name == session.identity else "")
        return lines

    def generate_layout(self) -> Layout:
        session = self.snapshot
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main")
        )
        layout["main"].split_row(
            Layout(name="channels", size=24),
            Layout(name="events", ratio=3),
            Layout(name="right", ratio=1)
        )
        layout["right"].split_column(
            Layout(name="members"),
            Layout(name="stats"),
            Layout(name="timeline")
        )

        color = "green" if session.connected else "red"
        status = "CONNECTED" if session.connected else "DISCONNECTED"
        user = session.identity or "-"
        layout["header"].update(Panel(f"[{color} bold]User: {user} | Status: {status}[/]", style=color))

        layout["channels"].update(Panel(self._channel_list(session), title="Channels"))
        title = session.focused_channel or "No channel"
        layout["events"].update(Panel(self._history(session), title=title))
        layout["members"].update(Panel(self._members(session), title="Members"))

        stats = self.store.transport.stats
        stats_text = (
            f"Frames In: {stats['frames_received']}\n"
            f"Frames Out: {stats['frames_sent']}\n"
            f"Decode Errors: {stats['decode_errors']}\n"
            f"Dropped Sends: {stats['dropped_sends']}"
        )
        layout["stats"].update(Panel(stats_text, title="Connection Stats"))
        layout["timeline"].update(Panel("\n".join(self.timeline), title="Timeline"))

        return layout

    async def run(self, loop_task: asyncio.Task, duration_s: float):
        self.attach()
        deadline = asyncio.get_running_loop().time() + duration_s
        try:
            with Live(self.generate_layout(), refresh_per_second=4) as live:
                while not loop_task.done() and asyncio.get_running_loop().time() < deadline:
                    live.update(self.generate_layout())
                    await asyncio.sleep(0.25)
                live.update(self.generate_layout())
        finally:
            self.detach()
