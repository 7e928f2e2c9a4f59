"""Slack Web API adapter implementing the core BackendPort."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from adapters.slack_mapper import (
    attachment_to_payload,
    identity_from_user,
    message_from_payload,
    reaction_from_payload,
)
from core.errors import ChannelNotFound, UserNotFound
from core.models import Attachment, Channel, Identity, Message, Reaction

LOGGER = logging.getLogger(__name__)

HISTORY_PAGE_SIZE = 200
CHANNEL_TYPES = "public_channel,private_channel"


def format_ts(value: float) -> str:
    """Render a float timestamp the way Slack writes them."""

    return f"{value:.6f}"


def _next_cursor(response) -> Optional[str]:
    metadata = response.get("response_metadata") or {}
    return metadata.get("next_cursor") or None


class SlackBackend:
    """Workspace operations backed by an AsyncWebClient.

    The client should carry a user token: posting under another person's name
    and icon, and editing mirrored messages, need user scopes.
    """

    def __init__(self, client: AsyncWebClient) -> None:
        self._client = client

    async def fetch_history(
        self,
        channel_id: str,
        oldest: float,
        latest: float,
        inclusive: bool = True,
    ) -> list[Message]:
        messages: list[Message] = []
        cursor: Optional[str] = None
        while True:
            response = await self._client.conversations_history(
                channel=channel_id,
                oldest=format_ts(oldest),
                latest=format_ts(latest),
                inclusive=inclusive,
                limit=HISTORY_PAGE_SIZE,
                cursor=cursor,
            )
            messages.extend(message_from_payload(item, channel_id) for item in response.get("messages", []))
            cursor = _next_cursor(response)
            if not response.get("has_more") or not cursor:
                break
        # Slack returns newest first.
        messages.sort(key=lambda message: message.ts_value)
        return messages

    async def post_message(
        self,
        channel_id: str,
        text: str,
        username: str,
        icon_url: Optional[str],
        thread_ts: Optional[str] = None,
    ) -> None:
        await self._client.chat_postMessage(
            channel=channel_id,
            text=text,
            as_user=False,
            icon_url=icon_url,
            link_names=True,
            username=username,
            thread_ts=thread_ts,
        )

    async def update_message(
        self,
        channel_id: str,
        ts: str,
        text: str,
        attachments: Sequence[Attachment],
    ) -> None:
        await self._client.chat_update(
            channel=channel_id,
            ts=ts,
            text=text,
            attachments=[attachment_to_payload(attachment) for attachment in attachments],
        )

    async def delete_message(self, channel_id: str, ts: str) -> None:
        await self._client.chat_delete(channel=channel_id, ts=ts)

    async def fetch_reactions(self, channel_id: str, ts: str) -> list[Reaction]:
        response = await self._client.reactions_get(channel=channel_id, timestamp=ts, full=True)
        message = response.get("message") or {}
        return [reaction_from_payload(item) for item in message.get("reactions") or ()]

    async def lookup_user(self, user_id: str) -> Identity:
        try:
            response = await self._client.users_info(user=user_id)
        except SlackApiError as exc:
            if exc.response.get("error") == "user_not_found":
                raise UserNotFound(user_id) from exc
            raise
        return identity_from_user(response["user"])

    async def list_channels(self) -> list[Channel]:
        channels: list[Channel] = []
        cursor: Optional[str] = None
        while True:
            response = await self._client.conversations_list(
                types=CHANNEL_TYPES,
                exclude_archived=True,
                limit=HISTORY_PAGE_SIZE,
                cursor=cursor,
            )
            channels.extend(Channel(id=item["id"], name=item["name"]) for item in response.get("channels", []))
            cursor = _next_cursor(response)
            if not cursor:
                return channels

    async def resolve_channel_id(self, name: str) -> str:
        for channel in await self.list_channels():
            if channel.name == name:
                return channel.id
        raise ChannelNotFound(name)
