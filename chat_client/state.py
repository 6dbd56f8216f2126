"""
MODULE OVERVIEW:
The immutable snapshot types the session reducer produces.

WHAT IS HAPPENING HERE:
Every dataclass is frozen and every collection is an immutable type
(frozenset, tuple, read-only mapping). A reader holding an old snapshot can
never see it change underneath them; the reducer only ever builds new values.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union


@dataclass(frozen=True)
class Chat:
    sender: str
    text: str


@dataclass(frozen=True)
class Joined:
    username: str


@dataclass(frozen=True)
class Left:
    username: str


ChannelEvent = Union[Chat, Joined, Left]


@dataclass(frozen=True)
class Channel:
    name: str
    members: frozenset[str] = frozenset()
    # Oldest first. Only ever extended.
    events: tuple[ChannelEvent, ...] = ()
    has_activity: bool = False
    # True once the server has sent an authoritative member list.
    synced: bool = False


def _no_channels() -> Mapping[str, Channel]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Session:
    connected: bool = False
    identity: str | None = None
    channels: Mapping[str, Channel] = field(default_factory=_no_channels)
    joined: frozenset[str] = frozenset()
    focused_channel: str | None = None

    @property
    def focused(self) -> Channel | None:
        if self.focused_channel is None:
            return None
        return self.channels.get(self.focused_channel)
