from __future__ import annotations

from typing import AsyncIterator, Iterable, Optional, Sequence

from core.connection import Connection
from core.errors import ChannelNotFound, UserNotFound
from core.events import BridgeEvent
from core.models import Attachment, Identity, Message, Reaction


class FakeBackend:
    def __init__(
        self,
        users: Optional[dict[str, Identity]] = None,
        messages: Iterable[Message] = (),
        channels: Optional[dict[str, str]] = None,
    ) -> None:
        self.users = dict(users or {})
        self.messages = list(messages)
        self.channels = dict(channels or {})
        self.reactions: dict[str, list[Reaction]] = {}
        self.lookups: list[str] = []
        self.history_calls: list[tuple[str, float, float]] = []
        self.posted: list[dict] = []
        self.updated: list[dict] = []
        self.deleted: list[tuple[str, str]] = []

    async def fetch_history(
        self, channel_id: str, oldest: float, latest: float, inclusive: bool = True
    ) -> list[Message]:
        self.history_calls.append((channel_id, oldest, latest))
        # Newest first, like Slack.
        return sorted(
            (
                message
                for message in self.messages
                if message.channel_id == channel_id and oldest <= message.ts_value <= latest
            ),
            key=lambda message: message.ts_value,
            reverse=True,
        )

    async def post_message(
        self,
        channel_id: str,
        text: str,
        username: str,
        icon_url: Optional[str],
        thread_ts: Optional[str] = None,
    ) -> None:
        self.posted.append(
            {
                "channel_id": channel_id,
                "text": text,
                "username": username,
                "icon_url": icon_url,
                "thread_ts": thread_ts,
            }
        )

    async def update_message(
        self, channel_id: str, ts: str, text: str, attachments: Sequence[Attachment]
    ) -> None:
        self.updated.append({"channel_id": channel_id, "ts": ts, "text": text, "attachments": list(attachments)})

    async def delete_message(self, channel_id: str, ts: str) -> None:
        self.deleted.append((channel_id, ts))

    async def fetch_reactions(self, channel_id: str, ts: str) -> list[Reaction]:
        return list(self.reactions.get(ts, []))

    async def lookup_user(self, user_id: str) -> Identity:
        self.lookups.append(user_id)
        if user_id not in self.users:
            raise UserNotFound(user_id)
        return self.users[user_id]

    async def resolve_channel_id(self, name: str) -> str:
        if name not in self.channels:
            raise ChannelNotFound(name)
        return self.channels[name]


class FakeEventSource:
    def __init__(self, events: Iterable[BridgeEvent] = ()) -> None:
        self._events = list(events)

    async def events(self) -> AsyncIterator[BridgeEvent]:
        for event in self._events:
            yield event


def make_connection(name: str, backend: FakeBackend, events: Iterable[BridgeEvent] = ()) -> Connection:
    return Connection(name, backend, FakeEventSource(events))


def identity(user_id: str, name: str) -> Identity:
    return Identity(id=user_id, display_name=name, avatar_url=f"https://avatars.example/{user_id}.png")
