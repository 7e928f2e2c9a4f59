"""Event-to-action dispatch for one bridge direction.

Every event is handled on its own: there is no per-message state machine and
no stored mapping between the two workspaces. ``plan`` decides what a single
event implies for the mirror channel and ``handle`` carries it out:

- new top-level message -> post it, impersonating the author
- thread reply -> find the mirrored thread root, post the reply under it
- edit -> find the mirror by previous text, replace text, mark as edited
- delete -> find the mirror by previous text, delete it
- reaction added/removed -> rebuild the reaction summary on the mirror
- bot messages (our own mirrors included) -> ignored, prevents echo loops
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import AsyncIterator, Optional, Union

from core.attachments import edit_marker, upsert_attachment
from core.config import TimingConfig
from core.connection import Connection
from core.errors import CorrelationFailed, UserNotFound
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
from core.models import Attachment, Channel, CorrelationWindow, Message

LOGGER = logging.getLogger(__name__)

BOT_MESSAGE_SUBTYPE = "bot_message"


@dataclass(frozen=True)
class PostMessage:
    channel_id: str
    text: str
    username: str
    icon_url: Optional[str]
    thread_ts: Optional[str] = None


@dataclass(frozen=True)
class UpdateMessage:
    channel_id: str
    ts: str
    text: str
    attachments: tuple[Attachment, ...]


@dataclass(frozen=True)
class DeleteMessage:
    channel_id: str
    ts: str


Action = Union[PostMessage, UpdateMessage, DeleteMessage]


class EventDispatcher:
    """Mirror events observed on ``origin`` into the channel on ``mirror``."""

    def __init__(
        self,
        origin: Connection,
        mirror: Connection,
        origin_channel: Channel,
        mirror_channel: Channel,
        timing: TimingConfig,
    ) -> None:
        self._origin = origin
        self._mirror = mirror
        self._origin_channel = origin_channel
        self._mirror_channel = mirror_channel
        self._timing = timing
        self._tasks: set[asyncio.Task] = set()

    @property
    def label(self) -> str:
        return f"{self._origin.name} #{self._origin_channel.name} -> {self._mirror.name} #{self._mirror_channel.name}"

    # Windows

    def _exact_window(self, ts: str) -> CorrelationWindow:
        return CorrelationWindow.exact(float(ts), self._timing.ts_diff_tolerance)

    def _update_window(self, ts: str) -> CorrelationWindow:
        return CorrelationWindow.for_update(
            float(ts), self._timing.start_ts_diff, self._timing.end_ts_diff, self._timing.ts_diff_tolerance
        )

    # Planning

    async def plan(self, event: BridgeEvent) -> Optional[Action]:
        """Return the single action ``event`` implies, or None to ignore it.

        Raises UserNotFound or CorrelationFailed when a lookup the action
        depends on does not succeed.
        """

        channel_id = getattr(event, "channel_id", None)
        if channel_id is not None and channel_id != self._origin_channel.id:
            LOGGER.debug("Ignored event from channel %s", channel_id)
            return None

        if isinstance(event, BotMessage):
            # Includes our own mirrors; forwarding them would loop forever.
            LOGGER.info("Ignored bot message to prevent messages sent back and forth")
            return None
        if isinstance(event, NewMessage):
            if event.is_thread_reply:
                return await self._plan_thread_reply(event)
            return await self._plan_new_message(event)
        if isinstance(event, MessageChanged):
            return await self._plan_edit(event)
        if isinstance(event, MessageDeleted):
            return await self._plan_delete(event)
        if isinstance(event, ReactionChanged):
            return await self._plan_reaction(event)
        if isinstance(event, MessageReplied):
            LOGGER.info("Ignored message replied event")
            return None

        kind = event.kind if isinstance(event, UnknownEvent) else type(event).__name__
        LOGGER.warning("Unknown event kind %s, ignored", kind)
        return None

    async def _plan_new_message(self, event: NewMessage) -> Action:
        LOGGER.info("Forwarding normal message %r", event.text)
        identity, text = await asyncio.gather(
            self._origin.identities.resolve(event.user_id),
            self._origin.normalizer.normalize(event.text),
        )
        return PostMessage(
            channel_id=self._mirror_channel.id,
            text=text,
            username=identity.display_name,
            icon_url=identity.avatar_url,
        )

    async def _plan_thread_reply(self, event: NewMessage) -> Action:
        LOGGER.info("Forwarding thread reply %r", event.text)
        identity, root = await asyncio.gather(
            self._origin.identities.resolve(event.user_id),
            self._origin.correlator.search(self._origin_channel.id, None, self._exact_window(event.thread_ts)),
        )
        root_text, text = await asyncio.gather(
            self._origin.normalizer.normalize(root.text),
            self._origin.normalizer.normalize(event.text),
        )
        LOGGER.info("Retrieved local thread root text %r", root_text)

        window = CorrelationWindow.for_thread_root(
            root.ts_value, self._timing.start_ts_diff, self._timing.end_ts_diff, self._timing.ts_diff_tolerance
        )
        mirror_root = await self._mirror.correlator.search(self._mirror_channel.id, root_text, window)
        return PostMessage(
            channel_id=self._mirror_channel.id,
            text=text,
            username=identity.display_name,
            icon_url=identity.avatar_url,
            thread_ts=mirror_root.ts,
        )

    @staticmethod
    def _is_forwardable_update(previous: Message, current: Optional[Message]) -> bool:
        if previous.subtype == BOT_MESSAGE_SUBTYPE or previous.bot_id:
            LOGGER.info("Ignored update of a bot message")
            return False
        # Attaching a reaction summary or edit marker also fires an edit;
        # only genuine text changes are mirrored.
        if current is not None and previous.text == current.text:
            LOGGER.info("Ignored attachment-only update of a user message")
            return False
        return True

    async def _locate_mirror(self, previous: Message) -> Message:
        expected_text = await self._origin.normalizer.normalize(previous.text)
        return await self._mirror.correlator.search(
            self._mirror_channel.id, expected_text, self._update_window(previous.ts)
        )

    async def _plan_edit(self, event: MessageChanged) -> Optional[Action]:
        if not self._is_forwardable_update(event.previous, event.current):
            return None
        LOGGER.info("Message update event: %r => %r", event.previous.text, event.current.text)

        mirror_message, text = await asyncio.gather(
            self._locate_mirror(event.previous),
            self._origin.normalizer.normalize(event.current.text),
        )
        attachments = upsert_attachment(mirror_message.attachments, edit_marker(event.ts), prepend=True)
        return UpdateMessage(
            channel_id=self._mirror_channel.id,
            ts=mirror_message.ts,
            text=text,
            attachments=tuple(attachments),
        )

    async def _plan_delete(self, event: MessageDeleted) -> Optional[Action]:
        if not self._is_forwardable_update(event.previous, None):
            return None
        LOGGER.info("Message delete event: %r", event.previous.text)

        mirror_message = await self._locate_mirror(event.previous)
        return DeleteMessage(channel_id=self._mirror_channel.id, ts=mirror_message.ts)

    async def _plan_reaction(self, event: ReactionChanged) -> Action:
        LOGGER.info("Forwarding reaction %s on %s", event.emoji_name, event.item_ts)
        origin_message = await self._origin.correlator.search(
            self._origin_channel.id, None, self._exact_window(event.item_ts)
        )
        reactions = await self._origin.backend.fetch_reactions(self._origin_channel.id, origin_message.ts)
        summary, expected_text = await asyncio.gather(
            self._origin.aggregator.summarize(replace(origin_message, reactions=tuple(reactions))),
            self._origin.normalizer.normalize(origin_message.text),
        )

        window = CorrelationWindow.for_reaction(
            float(event.item_ts), self._timing.start_ts_diff, self._timing.end_ts_diff, self._timing.ts_diff_tolerance
        )
        mirror_message = await self._mirror.correlator.search(self._mirror_channel.id, expected_text, window)
        attachments = upsert_attachment(mirror_message.attachments, summary)
        return UpdateMessage(
            channel_id=self._mirror_channel.id,
            ts=mirror_message.ts,
            text=mirror_message.text,
            attachments=tuple(attachments),
        )

    # Execution

    async def apply(self, action: Action) -> None:
        backend = self._mirror.backend
        if isinstance(action, PostMessage):
            await backend.post_message(
                action.channel_id,
                action.text,
                username=action.username,
                icon_url=action.icon_url,
                thread_ts=action.thread_ts,
            )
        elif isinstance(action, UpdateMessage):
            await backend.update_message(action.channel_id, action.ts, action.text, action.attachments)
        elif isinstance(action, DeleteMessage):
            await backend.delete_message(action.channel_id, action.ts)
        else:
            raise TypeError(f"Unsupported action: {action!r}")
        LOGGER.info("Forwarded %s to %s", type(action).__name__, self._mirror.name)

    async def handle(self, event: BridgeEvent) -> Optional[Action]:
        """Plan and apply one event. Lookup failures drop the event."""

        try:
            action = await self.plan(event)
        except UserNotFound as exc:
            LOGGER.warning("Dropped %s: user %s could not be resolved", type(event).__name__, exc.user_id)
            return None
        except CorrelationFailed as exc:
            self._log_correlation_failure(event, exc)
            return None

        if action is None:
            return None
        await self.apply(action)
        return action

    @staticmethod
    def _log_correlation_failure(event: BridgeEvent, exc: CorrelationFailed) -> None:
        LOGGER.error("Cannot find the message for %s in channel %s", type(event).__name__, exc.channel_id)
        LOGGER.error(
            "start_ts = %s, end_ts = %s, text = %r",
            exc.window.start_ts,
            exc.window.end_ts,
            exc.expected_text,
        )
        LOGGER.error("It is possible the other side updated the message")
        LOGGER.error("If not, please consider modifying START_TS_DIFF and END_TS_DIFF")

    async def _handle_safely(self, event: BridgeEvent) -> None:
        try:
            await self.handle(event)
        except Exception:
            LOGGER.exception("Error while mirroring %s (%s)", type(event).__name__, self.label)

    async def run(self, events: AsyncIterator[BridgeEvent]) -> None:
        """Consume an event stream, handling each event in its own task.

        Events are not serialized: two events for the same message may be
        processed concurrently and land out of order.
        """

        LOGGER.info("Listening for events: %s", self.label)
        async for event in events:
            task = asyncio.create_task(self._handle_safely(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        if self._tasks:
            await asyncio.gather(*self._tasks)
