"""
MODULE OVERVIEW:
This module defines the strictly typed vocabulary shared by the transport and the
session reducer, powered by Pydantic v2.

WHAT IS HAPPENING HERE:
Two families of frozen models live here. `SessionEvent` subclasses describe things
that happened (a frame arrived, the socket closed, the user changed focus).
`Command` subclasses describe things the user asked for. Field aliases carry the
key names the chat server puts on the wire, so the same model validates an inbound
payload and can still be built by field name in code.
"""
from typing import ClassVar
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SessionEvent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ==========================
# TRANSPORT LIFECYCLE
# ==========================
class Connected(SessionEvent):
    # The server picks the identity; it arrives in the first frame.
    identity: str = Field(alias="username")


class Closed(SessionEvent):
    pass


class Error(SessionEvent):
    detail: str = ""


class DecodeFailed(SessionEvent):
    """Diagnostic for a frame that could not be decoded. Never changes state."""
    detail: str
    frame: str = ""


# ==========================
# SERVER EVENTS
# ==========================
class ChannelsListed(SessionEvent):
    names: tuple[str, ...] = Field(default=(), alias="channels")

    @field_validator("names", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return () if value is None else value

    @field_validator("names")
    @classmethod
    def _drop_blank_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        # The server pads its directory listing with empty strings.
        return tuple(name for name in value if name)


class ChannelJoinedByUser(SessionEvent):
    channel: str
    username: str


class ChannelLeftByUser(SessionEvent):
    channel: str
    username: str


class ChannelMembersSnapshot(SessionEvent):
    channel: str = Field(alias="name")
    members: frozenset[str] = Field(default=frozenset(), alias="users")

    @field_validator("members", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return frozenset() if value is None else value


class ChannelChat(SessionEvent):
    channel: str
    sender: str
    text: str = Field(alias="message")


class SelfJoinedChannel(SessionEvent):
    channel: str
    username: str | None = None


class SelfLeftChannel(SessionEvent):
    channel: str
    username: str | None = None


# ==========================
# LOCAL EVENTS
# ==========================
class FocusChanged(SessionEvent):
    channel: str


# WHAT IS HAPPENING HERE:
# Commands are user intents. The ones that travel to the server name their wire
# message type; `Connect` and `SetFocus` are handled on this side of the socket.
class Command(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    wire_type: ClassVar[str | None] = None


class Connect(Command):
    endpoint: str
    auth_token: str = ""


class RequestChannelDirectory(Command):
    wire_type: ClassVar[str | None] = "channels.list"


class JoinChannel(Command):
    wire_type: ClassVar[str | None] = "channel.join"

    channel: str


class LeaveChannel(Command):
    wire_type: ClassVar[str | None] = "channel.leave"

    channel: str


class SendChatMessage(Command):
    wire_type: ClassVar[str | None] = "channel.chat"

    channel: str
    text: str = Field(alias="message")


class SetFocus(Command):
    channel: str
