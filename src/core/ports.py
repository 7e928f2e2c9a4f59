"""Ports (interfaces) used by the core bridge.

Ports define the minimal contracts for workspace adapters so that the core can
be reused with different chat backends.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional, Protocol, Sequence

from core.events import BridgeEvent
from core.models import Attachment, Identity, Message, Reaction


class BackendPort(Protocol):
    """Request/response operations required from one workspace."""

    async def fetch_history(
        self,
        channel_id: str,
        oldest: float,
        latest: float,
        inclusive: bool = True,
    ) -> list[Message]:
        """Return channel messages in the range, oldest first."""
        ...

    async def post_message(
        self,
        channel_id: str,
        text: str,
        username: str,
        icon_url: Optional[str],
        thread_ts: Optional[str] = None,
    ) -> None:
        ...

    async def update_message(
        self,
        channel_id: str,
        ts: str,
        text: str,
        attachments: Sequence[Attachment],
    ) -> None:
        ...

    async def delete_message(self, channel_id: str, ts: str) -> None:
        ...

    async def fetch_reactions(self, channel_id: str, ts: str) -> list[Reaction]:
        ...

    async def lookup_user(self, user_id: str) -> Identity:
        """Raise UserNotFound for an unknown id."""
        ...

    async def resolve_channel_id(self, name: str) -> str:
        """Raise ChannelNotFound when no channel has this name."""
        ...


class EventSourcePort(Protocol):
    """Realtime event stream of one workspace."""

    def events(self) -> AsyncIterator[BridgeEvent]:
        ...
