from __future__ import annotations

import asyncio

import pytest

from core.config import TimingConfig
from core.errors import ChannelNotFound
from core.events import BotMessage, NewMessage
from core.supervisor import BridgeSupervisor
from fakes import FakeBackend, identity, make_connection

TIMING = TimingConfig()


def test_missing_channel_is_fatal() -> None:
    local = make_connection("local", FakeBackend(channels={"general": "CL"}))
    remote = make_connection("remote", FakeBackend(channels={}))
    supervisor = BridgeSupervisor(local, remote, "general", "partners", TIMING)

    with pytest.raises(ChannelNotFound) as excinfo:
        asyncio.run(supervisor.start())

    assert excinfo.value.channel_name == "partners"


def test_both_directions_are_mirrored_without_echo() -> None:
    local_backend = FakeBackend(users={"U1": identity("U1", "Alice")}, channels={"general": "CL"})
    remote_backend = FakeBackend(users={"W1": identity("W1", "Walter")}, channels={"partners": "CR"})
    local = make_connection(
        "local",
        local_backend,
        [
            NewMessage(channel_id="CL", ts="1000.000000", user_id="U1", text="hi from local"),
            # Mirror of the remote message arriving back on the local side.
            BotMessage(channel_id="CL", ts="1002.000000", text="hi from remote"),
        ],
    )
    remote = make_connection(
        "remote",
        remote_backend,
        [
            NewMessage(channel_id="CR", ts="1001.000000", user_id="W1", text="hi from remote"),
            BotMessage(channel_id="CR", ts="1003.000000", text="hi from local"),
        ],
    )
    supervisor = BridgeSupervisor(local, remote, "general", "partners", TIMING)

    asyncio.run(supervisor.run())

    assert [(post["channel_id"], post["text"], post["username"]) for post in remote_backend.posted] == [
        ("CR", "hi from local", "Alice")
    ]
    assert [(post["channel_id"], post["text"], post["username"]) for post in local_backend.posted] == [
        ("CL", "hi from remote", "Walter")
    ]


def test_start_is_idempotent() -> None:
    local_backend = FakeBackend(channels={"general": "CL"})
    remote_backend = FakeBackend(channels={"partners": "CR"})
    supervisor = BridgeSupervisor(
        make_connection("local", local_backend),
        make_connection("remote", remote_backend),
        "general",
        "partners",
        TIMING,
    )

    first = asyncio.run(supervisor.start())
    second = asyncio.run(supervisor.start())

    assert first is second
    assert "general" in first[0].label and "partners" in first[0].label
