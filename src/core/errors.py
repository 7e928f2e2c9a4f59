"""Error taxonomy for the bridge core."""

from __future__ import annotations

from typing import Optional

from core.models import CorrelationWindow


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ChannelNotFound(BridgeError):
    """A configured channel does not exist on its workspace. Fatal at startup."""

    def __init__(self, channel_name: str) -> None:
        super().__init__(f"Channel not found: {channel_name}")
        self.channel_name = channel_name


class UserNotFound(BridgeError, LookupError):
    """The backend does not know the requested user id."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class CorrelationFailed(BridgeError):
    """No message in the search window satisfied the match predicate."""

    def __init__(
        self,
        channel_id: str,
        window: CorrelationWindow,
        expected_text: Optional[str],
    ) -> None:
        super().__init__(
            f"No message in channel {channel_id} between {window.start_ts} and "
            f"{window.end_ts} matching {expected_text!r}"
        )
        self.channel_id = channel_id
        self.window = window
        self.expected_text = expected_text
