"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

# Synthetic attachments are recognised by their fallback text. The values are
# part of the wire format: mirrors created by earlier runs carry them too.
EDITED_FALLBACK_TAG = "slackportal_edited"
EMOJI_FALLBACK_TAG = "slackportal_emoji"

EDITED_FOOTER = "(edited)"


@dataclass(frozen=True)
class Channel:
    """A resolved channel. The name is only used at setup and in logs."""

    id: str
    name: str


@dataclass(frozen=True)
class Identity:
    """Resolved display identity of a workspace user."""

    id: str
    display_name: str
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    """A message attachment.

    Only the fields the bridge reads or writes are modelled; anything else a
    workspace returns is kept in ``extra`` so that updating a message does not
    strip user content.
    """

    fallback_tag: Optional[str]
    text: str = ""
    footer: str = ""
    ts: Optional[str] = None
    # Excluded from hashing so attachments stay usable in sets and as keys.
    extra: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class Reaction:
    emoji_name: str
    count: int
    reactor_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Message:
    """A channel message as returned by a history or reactions lookup."""

    channel_id: str
    ts: str
    text: str
    attachments: tuple[Attachment, ...] = ()
    reactions: tuple[Reaction, ...] = ()
    thread_ts: Optional[str] = None
    user_id: Optional[str] = None
    subtype: Optional[str] = None
    bot_id: Optional[str] = None

    @property
    def ts_value(self) -> float:
        return float(self.ts)


@dataclass(frozen=True)
class CorrelationWindow:
    """Inclusive timestamp range searched for a mirrored message."""

    start_ts: float
    end_ts: float
    tolerance: float

    @classmethod
    def exact(cls, ts: float, tolerance: float) -> "CorrelationWindow":
        """Window that only admits the message at ``ts`` itself."""

        return cls(start_ts=ts, end_ts=ts, tolerance=tolerance)

    @classmethod
    def for_update(cls, ts: float, start_diff: float, end_diff: float, tolerance: float) -> "CorrelationWindow":
        """Window used to find the mirror of an edited or deleted message."""

        start_ts = ts - start_diff
        return cls(start_ts=start_ts, end_ts=start_ts + end_diff, tolerance=tolerance)

    @classmethod
    def for_thread_root(
        cls, ts: float, start_diff: float, end_diff: float, tolerance: float
    ) -> "CorrelationWindow":
        return cls(start_ts=ts - start_diff, end_ts=ts + start_diff + end_diff, tolerance=tolerance)

    @classmethod
    def for_reaction(cls, ts: float, start_diff: float, end_diff: float, tolerance: float) -> "CorrelationWindow":
        return cls(start_ts=ts - start_diff, end_ts=ts + end_diff, tolerance=tolerance)

    @property
    def is_exact(self) -> bool:
        return self.start_ts == self.end_ts
