"""
MODULE OVERVIEW:
The wire codec between typed models and raw WebSocket text frames.

WHAT IS HAPPENING HERE:
Every frame is two lines: the message type, a newline, then a JSON object.

    channel.chat
    {"channel": "general", "sender": "amy", "message": "hi"}

Decoding never raises. Anything we cannot turn into a typed event (bad UTF-8,
no type line, unknown type, payload that does not match the schema) comes back
as a `DecodeFailed` event so the caller can log it and move on.
"""
from pydantic import ValidationError

from chat_shared.models import (
    ChannelChat,
    ChannelJoinedByUser,
    ChannelLeftByUser,
    ChannelMembersSnapshot,
    ChannelsListed,
    Command,
    Connected,
    DecodeFailed,
    SelfJoinedChannel,
    SelfLeftChannel,
    SessionEvent,
)

WIRE_FORMAT = "chat.typed-lines.v1"

INBOUND_TYPES: dict[str, type[SessionEvent]] = {
    "user.connected": Connected,
    "channels.list": ChannelsListed,
    "channel.joined": ChannelJoinedByUser,
    "channel.left": ChannelLeftByUser,
    "channel.info": ChannelMembersSnapshot,
    "channel.chat": ChannelChat,
    "user.join": SelfJoinedChannel,
    "user.leave": SelfLeftChannel,
}


def decode_frame(raw: str | bytes) -> SessionEvent:
    """Turn one inbound frame into exactly one event."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            return DecodeFailed(detail=f"invalid utf-8: {e}", frame=raw.decode("utf-8", errors="replace"))

    text = raw.strip()
    message_type, separator, body = text.partition("\n")
    message_type = message_type.strip()

    if not separator:
        return DecodeFailed(detail="frame has no type line", frame=text)

    event_cls = INBOUND_TYPES.get(message_type)
    if event_cls is None:
        return DecodeFailed(detail=f"unhandled message type {message_type!r}", frame=text)

    try:
        return event_cls.model_validate_json(body)
    except ValidationError as e:
        return DecodeFailed(
            detail=f"{message_type} payload rejected: {e.error_count()} error(s)",
            frame=text,
        )


def encode_command(command: Command) -> str:
    if command.wire_type is None:
        raise ValueError(f"{type(command).__name__} is handled locally and has no wire form")
    return f"{command.wire_type}\n{command.model_dump_json(by_alias=True)}"
