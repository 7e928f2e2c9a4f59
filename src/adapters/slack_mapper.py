"""Slack-to-core mapping adapter.

This keeps Slack payload details out of the core bridge. All functions are
pure and operate on the plain dicts Slack returns.
"""

from __future__ import annotations

from typing import Any, Optional

from core.events import (
    BotMessage,
    BridgeEvent,
    MessageChanged,
    MessageDeleted,
    MessageReplied,
    NewMessage,
    ReactionChanged,
    UnknownEvent,
)
from core.models import Attachment, Identity, Message, Reaction

# Subtypes that still represent a person writing into the channel.
USER_MESSAGE_SUBTYPES = {None, "file_share", "thread_broadcast", "me_message"}

_ATTACHMENT_FIELDS = {"fallback", "text", "footer", "ts"}


def display_name_from_user(user: dict[str, Any]) -> str:
    """Nickname, then real name, then account handle."""

    profile = user.get("profile") or {}
    return profile.get("display_name") or profile.get("real_name") or user.get("name") or user.get("id", "")


def identity_from_user(user: dict[str, Any]) -> Identity:
    profile = user.get("profile") or {}
    return Identity(
        id=user["id"],
        display_name=display_name_from_user(user),
        avatar_url=profile.get("image_48"),
    )


def attachment_from_payload(payload: dict[str, Any]) -> Attachment:
    ts = payload.get("ts")
    return Attachment(
        fallback_tag=payload.get("fallback"),
        text=payload.get("text", ""),
        footer=payload.get("footer", ""),
        ts=str(ts) if ts is not None else None,
        extra={key: value for key, value in payload.items() if key not in _ATTACHMENT_FIELDS},
    )


def attachment_to_payload(attachment: Attachment) -> dict[str, Any]:
    payload = dict(attachment.extra)
    if attachment.fallback_tag is not None:
        payload["fallback"] = attachment.fallback_tag
    payload["text"] = attachment.text
    payload["footer"] = attachment.footer
    if attachment.ts is not None:
        payload["ts"] = attachment.ts
    return payload


def reaction_from_payload(payload: dict[str, Any]) -> Reaction:
    users = tuple(payload.get("users") or ())
    return Reaction(
        emoji_name=payload["name"],
        count=int(payload.get("count", len(users))),
        reactor_ids=users,
    )


def message_from_payload(payload: dict[str, Any], channel_id: str) -> Message:
    return Message(
        channel_id=payload.get("channel") or channel_id,
        ts=str(payload["ts"]),
        text=payload.get("text") or "",
        attachments=tuple(attachment_from_payload(item) for item in payload.get("attachments") or ()),
        reactions=tuple(reaction_from_payload(item) for item in payload.get("reactions") or ()),
        thread_ts=payload.get("thread_ts"),
        user_id=payload.get("user"),
        subtype=payload.get("subtype"),
        bot_id=payload.get("bot_id"),
    )


def _map_message_event(event: dict[str, Any]) -> BridgeEvent:
    channel_id = event.get("channel", "")
    subtype: Optional[str] = event.get("subtype")

    if subtype == "message_changed":
        return MessageChanged(
            channel_id=channel_id,
            ts=str(event["ts"]),
            previous=message_from_payload(event["previous_message"], channel_id),
            current=message_from_payload(event["message"], channel_id),
        )
    if subtype == "message_deleted":
        return MessageDeleted(
            channel_id=channel_id,
            ts=str(event["ts"]),
            previous=message_from_payload(event["previous_message"], channel_id),
        )
    if subtype == "message_replied":
        return MessageReplied(channel_id=channel_id, ts=str(event["ts"]))
    if subtype == "bot_message" or (subtype is None and event.get("bot_id")):
        return BotMessage(channel_id=channel_id, ts=str(event["ts"]), text=event.get("text") or "")
    if subtype in USER_MESSAGE_SUBTYPES:
        return NewMessage(
            channel_id=channel_id,
            ts=str(event["ts"]),
            user_id=event.get("user", ""),
            text=event.get("text") or "",
            thread_ts=event.get("thread_ts"),
        )
    return UnknownEvent(kind=f"message/{subtype}", channel_id=channel_id)


def event_from_payload(event: dict[str, Any]) -> BridgeEvent:
    """Map one Events API ``event`` object to a core event."""

    event_type = event.get("type", "")
    if event_type == "message":
        return _map_message_event(event)
    if event_type in ("reaction_added", "reaction_removed"):
        item = event.get("item") or {}
        if item.get("type", "message") != "message":
            return UnknownEvent(kind=f"{event_type}/{item.get('type')}", channel_id=item.get("channel"))
        return ReactionChanged(
            channel_id=item.get("channel", ""),
            item_ts=str(item.get("ts", "")),
            user_id=event.get("user", ""),
            emoji_name=event.get("reaction", ""),
            added=event_type == "reaction_added",
        )
    channel = event.get("channel")
    return UnknownEvent(kind=event_type or "unknown", channel_id=channel if isinstance(channel, str) else None)
