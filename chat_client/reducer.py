"""
MODULE OVERVIEW:
The session reducer: `reduce(session, event) -> session`.

WHAT IS HAPPENING HERE:
Each event type maps to one small pure function. Handlers copy only what they
touch: the channels mapping is re-wrapped, the one affected Channel is rebuilt
with `dataclasses.replace`, and every other Channel object is carried over by
reference. Events nobody handles return the input snapshot untouched.

Events that name a channel the client has never heard of are resolved with the
same create-if-missing rule everywhere. `find_inconsistency` reports those cases
so the caller can log them; the reducer itself stays side-effect free.
"""
from dataclasses import replace
from types import MappingProxyType
from typing import Callable

from chat_client.state import Channel, Chat, Joined, Left, Session
from chat_shared.models import (
    ChannelChat,
    ChannelJoinedByUser,
    ChannelLeftByUser,
    ChannelMembersSnapshot,
    ChannelsListed,
    Closed,
    Connected,
    Error,
    FocusChanged,
    SelfJoinedChannel,
    SelfLeftChannel,
    SessionEvent,
)


def _get_or_create(session: Session, name: str) -> Channel:
    channel = session.channels.get(name)
    if channel is None:
        channel = Channel(name=name)
    return channel


def _store(session: Session, channel: Channel, **changes) -> Session:
    channels = dict(session.channels)
    channels[channel.name] = channel
    return replace(session, channels=MappingProxyType(channels), **changes)


def _activity(session: Session, channel: Channel, noteworthy: bool = True) -> bool:
    return channel.has_activity or (noteworthy and channel.name != session.focused_channel)


def _disconnected(session: Session, event) -> Session:
    # Identity, channels and history survive so a reconnect can pick up where we left off.
    if not session.connected:
        return session
    return replace(session, connected=False)


def _connected(session: Session, event: Connected) -> Session:
    return replace(session, connected=True, identity=event.identity)


def _channels_listed(session: Session, event: ChannelsListed) -> Session:
    missing = [name for name in dict.fromkeys(event.names) if name not in session.channels]
    if not missing:
        return session

    channels = dict(session.channels)
    for name in missing:
        channels[name] = Channel(name=name)
    return replace(session, channels=MappingProxyType(channels))


def _user_joined(session: Session, event: ChannelJoinedByUser) -> Session:
    channel = _get_or_create(session, event.channel)
    return _store(session, replace(
        channel,
        members=channel.members | {event.username},
        events=channel.events + (Joined(event.username),),
        has_activity=_activity(session, channel),
    ))


def _user_left(session: Session, event: ChannelLeftByUser) -> Session:
    channel = _get_or_create(session, event.channel)
    return _store(session, replace(
        channel,
        members=channel.members - {event.username},
        events=channel.events + (Left(event.username),),
        # Our own departure is not news.
        has_activity=_activity(session, channel, event.username != session.identity),
    ))


def _members_snapshot(session: Session, event: ChannelMembersSnapshot) -> Session:
    channel = _get_or_create(session, event.channel)
    return _store(session, replace(channel, members=frozenset(event.members), synced=True))


def _chat(session: Session, event: ChannelChat) -> Session:
    channel = _get_or_create(session, event.channel)
    return _store(session, replace(
        channel,
        events=channel.events + (Chat(event.sender, event.text),),
        has_activity=_activity(session, channel),
    ))


def _self_joined(session: Session, event: SelfJoinedChannel) -> Session:
    channel = _get_or_create(session, event.channel)
    if event.username:
        channel = replace(channel, members=channel.members | {event.username})
    return _store(session, channel, joined=session.joined | {channel.name})


def _self_left(session: Session, event: SelfLeftChannel) -> Session:
    channel = _get_or_create(session, event.channel)
    focused = session.focused_channel
    if focused == channel.name:
        focused = None
    return _store(
        session,
        replace(channel, has_activity=False),
        joined=session.joined - {channel.name},
        focused_channel=focused,
    )


def _focus_changed(session: Session, event: FocusChanged) -> Session:
    # Local intent: allowed while disconnected so history stays browsable.
    channel = _get_or_create(session, event.channel)
    return _store(session, replace(channel, has_activity=False), focused_channel=channel.name)


_HANDLERS: dict[type, Callable[[Session, SessionEvent], Session]] = {
    Closed: _disconnected,
    Error: _disconnected,
    Connected: _connected,
    ChannelsListed: _channels_listed,
    ChannelJoinedByUser: _user_joined,
    ChannelLeftByUser: _user_left,
    ChannelMembersSnapshot: _members_snapshot,
    ChannelChat: _chat,
    SelfJoinedChannel: _self_joined,
    SelfLeftChannel: _self_left,
    FocusChanged: _focus_changed,
}


def reduce(session: Session, event: SessionEvent) -> Session:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        return session
    return handler(session, event)


# Server events that are only legal for a channel we already know about.
# FocusChanged is local and may run ahead of the directory listing.
_REQUIRES_KNOWN_CHANNEL = (ChannelLeftByUser, ChannelMembersSnapshot, SelfLeftChannel)


def find_inconsistency(session: Session, event: SessionEvent) -> str | None:
    """Describe why `event` does not fit `session`, or return None if it does.

    A non-None result means the client and server have drifted apart. The
    reducer will still apply the event (creating the channel if needed); the
    caller decides how loudly to report it.
    """
    if not isinstance(event, _REQUIRES_KNOWN_CHANNEL):
        return None

    channel = session.channels.get(event.channel)
    if channel is None:
        return f"channel={event.channel} reason=unknown_channel event={type(event).__name__}"

    if isinstance(event, ChannelLeftByUser) and channel.synced and event.username not in channel.members:
        return f"channel={event.channel} reason=unknown_member username={event.username}"

    return None
