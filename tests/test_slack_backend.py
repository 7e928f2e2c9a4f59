from __future__ import annotations

import asyncio

import pytest
from slack_sdk.errors import SlackApiError

from adapters.slack_backend import SlackBackend, format_ts
from core.errors import ChannelNotFound, UserNotFound
from core.models import EDITED_FALLBACK_TAG, Attachment


class FakeWebClient:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.history_pages: list[dict] = []
        self.channel_pages: list[dict] = []
        self.users: dict[str, dict] = {}

    async def conversations_history(self, **kwargs) -> dict:
        self.calls.append(("conversations_history", kwargs))
        return self.history_pages.pop(0)

    async def conversations_list(self, **kwargs) -> dict:
        self.calls.append(("conversations_list", kwargs))
        return self.channel_pages.pop(0)

    async def chat_postMessage(self, **kwargs) -> dict:
        self.calls.append(("chat_postMessage", kwargs))
        return {"ok": True}

    async def chat_update(self, **kwargs) -> dict:
        self.calls.append(("chat_update", kwargs))
        return {"ok": True}

    async def chat_delete(self, **kwargs) -> dict:
        self.calls.append(("chat_delete", kwargs))
        return {"ok": True}

    async def reactions_get(self, **kwargs) -> dict:
        self.calls.append(("reactions_get", kwargs))
        return {"message": {"reactions": [{"name": "eyes", "count": 2, "users": ["U1", "U2"]}]}}

    async def users_info(self, **kwargs) -> dict:
        self.calls.append(("users_info", kwargs))
        user = self.users.get(kwargs["user"])
        if user is None:
            raise SlackApiError("user_not_found", {"ok": False, "error": "user_not_found"})
        return {"user": user}


def test_format_ts_uses_microseconds() -> None:
    assert format_ts(997.0) == "997.000000"
    assert format_ts(1000.0001) == "1000.000100"


def test_history_is_paged_and_sorted_oldest_first() -> None:
    client = FakeWebClient()
    client.history_pages = [
        {
            "messages": [{"ts": "1003.000000", "text": "c"}, {"ts": "1002.000000", "text": "b"}],
            "has_more": True,
            "response_metadata": {"next_cursor": "page2"},
        },
        {"messages": [{"ts": "1001.000000", "text": "a"}], "has_more": False},
    ]

    messages = asyncio.run(SlackBackend(client).fetch_history("C1", 997.0, 1003.0))

    assert [message.text for message in messages] == ["a", "b", "c"]
    first_call, second_call = (kwargs for name, kwargs in client.calls)
    assert first_call["oldest"] == "997.000000"
    assert first_call["latest"] == "1003.000000"
    assert first_call["inclusive"] is True
    assert first_call["cursor"] is None
    assert second_call["cursor"] == "page2"


def test_post_message_impersonates_sender() -> None:
    client = FakeWebClient()

    asyncio.run(SlackBackend(client).post_message("C1", "hi", "Alice", "https://img", thread_ts="1000.0"))

    name, kwargs = client.calls[0]
    assert name == "chat_postMessage"
    assert kwargs["username"] == "Alice"
    assert kwargs["icon_url"] == "https://img"
    assert kwargs["as_user"] is False
    assert kwargs["link_names"] is True
    assert kwargs["thread_ts"] == "1000.0"


def test_update_message_serializes_attachments() -> None:
    client = FakeWebClient()
    marker = Attachment(fallback_tag=EDITED_FALLBACK_TAG, text="", footer="(edited)", ts="1010.0")

    asyncio.run(SlackBackend(client).update_message("C1", "1000.0", "new", [marker]))

    _, kwargs = client.calls[0]
    assert kwargs["attachments"] == [
        {"fallback": EDITED_FALLBACK_TAG, "text": "", "footer": "(edited)", "ts": "1010.0"}
    ]


def test_fetch_reactions() -> None:
    reactions = asyncio.run(SlackBackend(FakeWebClient()).fetch_reactions("C1", "1000.0"))

    assert reactions[0].emoji_name == "eyes"
    assert reactions[0].count == 2
    assert reactions[0].reactor_ids == ("U1", "U2")


def test_lookup_user_maps_not_found() -> None:
    client = FakeWebClient()
    client.users["U1"] = {"id": "U1", "name": "alice", "profile": {"real_name": "Alice"}}
    backend = SlackBackend(client)

    assert asyncio.run(backend.lookup_user("U1")).display_name == "Alice"
    with pytest.raises(UserNotFound):
        asyncio.run(backend.lookup_user("U404"))


def test_resolve_channel_id_walks_pages() -> None:
    client = FakeWebClient()
    client.channel_pages = [
        {"channels": [{"id": "C1", "name": "random"}], "response_metadata": {"next_cursor": "next"}},
        {"channels": [{"id": "C2", "name": "general"}], "response_metadata": {"next_cursor": ""}},
    ]

    assert asyncio.run(SlackBackend(client).resolve_channel_id("general")) == "C2"


def test_resolve_channel_id_raises_when_missing() -> None:
    client = FakeWebClient()
    client.channel_pages = [{"channels": [{"id": "C1", "name": "random"}]}]

    with pytest.raises(ChannelNotFound):
        asyncio.run(SlackBackend(client).resolve_channel_id("general"))
