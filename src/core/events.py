"""Realtime events as seen by the core.

Adapters translate workspace payloads into exactly one of these variants, so
the dispatcher can branch on type instead of raw subtype strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from core.models import Message


@dataclass(frozen=True)
class NewMessage:
    """A human-authored message, either top level or a thread reply."""

    channel_id: str
    ts: str
    user_id: str
    text: str
    thread_ts: Optional[str] = None

    @property
    def is_thread_reply(self) -> bool:
        return self.thread_ts is not None and self.thread_ts != self.ts


@dataclass(frozen=True)
class MessageChanged:
    channel_id: str
    ts: str
    previous: Message
    current: Message


@dataclass(frozen=True)
class MessageDeleted:
    channel_id: str
    ts: str
    previous: Message


@dataclass(frozen=True)
class MessageReplied:
    """Thread bookkeeping notification sent alongside every reply."""

    channel_id: str
    ts: str


@dataclass(frozen=True)
class ReactionChanged:
    channel_id: str
    item_ts: str
    user_id: str
    emoji_name: str
    added: bool


@dataclass(frozen=True)
class BotMessage:
    """A message posted by an integration, including the bridge's own mirrors."""

    channel_id: str
    ts: str
    text: str


@dataclass(frozen=True)
class UnknownEvent:
    kind: str
    channel_id: Optional[str] = None


BridgeEvent = Union[
    NewMessage,
    MessageChanged,
    MessageDeleted,
    MessageReplied,
    ReactionChanged,
    BotMessage,
    UnknownEvent,
]
