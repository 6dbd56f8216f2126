import json

import pytest

from chat_shared.models import (
    ChannelChat,
    ChannelJoinedByUser,
    ChannelLeftByUser,
    ChannelMembersSnapshot,
    ChannelsListed,
    Connect,
    Connected,
    DecodeFailed,
    JoinChannel,
    LeaveChannel,
    RequestChannelDirectory,
    SelfJoinedChannel,
    SelfLeftChannel,
    SendChatMessage,
    SetFocus,
)
from chat_shared.protocol import decode_frame, encode_command


def frame(message_type: str, payload: dict) -> str:
    return f"{message_type}\n{json.dumps(payload)}"


@pytest.mark.parametrize("raw, expected", [
    (frame("user.connected", {"username": "tom1"}), Connected(identity="tom1")),
    (frame("channel.joined", {"type": "channel.joined", "channel": "general", "username": "amy"}),
     ChannelJoinedByUser(channel="general", username="amy")),
    (frame("channel.left", {"channel": "general", "username": "amy"}),
     ChannelLeftByUser(channel="general", username="amy")),
    (frame("channel.chat", {"sender": "amy", "channel": "general", "message": "hi"}),
     ChannelChat(channel="general", sender="amy", text="hi")),
    (frame("user.join", {"username": "tom1", "channel": "general"}),
     SelfJoinedChannel(channel="general", username="tom1")),
    (frame("user.leave", {"username": "tom1", "channel": "general"}),
     SelfLeftChannel(channel="general", username="tom1")),
])
def test_decode_server_messages(raw, expected):
    assert decode_frame(raw) == expected


def test_decode_channel_info_as_member_snapshot():
    event = decode_frame(frame("channel.info", {"name": "general", "username": "tom1", "users": ["tom1", "amy"]}))
    assert event == ChannelMembersSnapshot(channel="general", members=frozenset({"tom1", "amy"}))


def test_decode_channel_info_with_null_users():
    event = decode_frame(frame("channel.info", {"name": "general", "users": None}))
    assert event.members == frozenset()


def test_decode_channel_list_drops_blank_names():
    event = decode_frame(frame("channels.list", {"channels": ["", "", "General", "Random"]}))
    assert event == ChannelsListed(names=("General", "Random"))


def test_decode_accepts_bytes_and_surrounding_whitespace():
    raw = ("  " + frame("user.connected", {"username": "tom1"}) + "\n").encode()
    assert decode_frame(raw) == Connected(identity="tom1")


@pytest.mark.parametrize("raw, reason", [
    ('{"type": "channel.chat", "channel": "general"}', "no type line"),
    (frame("server.shutdown", {}), "unhandled message type"),
    ("channel.chat\nnot json", "payload rejected"),
    ("channel.chat\n[1, 2]", "payload rejected"),
    (frame("channel.chat", {"channel": "general"}), "payload rejected"),
    (b"user.connected\n\xff\xfe", "invalid utf-8"),
])
def test_decode_failures_are_events(raw, reason):
    event = decode_frame(raw)
    assert isinstance(event, DecodeFailed)
    assert reason in event.detail


def test_encode_commands():
    assert encode_command(RequestChannelDirectory()) == "channels.list\n{}"

    message_type, _, body = encode_command(JoinChannel(channel="general")).partition("\n")
    assert message_type == "channel.join"
    assert json.loads(body) == {"channel": "general"}

    message_type, _, body = encode_command(LeaveChannel(channel="general")).partition("\n")
    assert message_type == "channel.leave"
    assert json.loads(body) == {"channel": "general"}

    message_type, _, body = encode_command(SendChatMessage(channel="general", text="hi")).partition("\n")
    assert message_type == "channel.chat"
    assert json.loads(body) == {"channel": "general", "message": "hi"}


@pytest.mark.parametrize("command", [Connect(endpoint="ws://x"), SetFocus(channel="general")])
def test_local_commands_have_no_wire_form(command):
    with pytest.raises(ValueError):
        encode_command(command)
