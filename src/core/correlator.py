"""Locate a mirrored message without a shared identifier.

The two workspaces never exchange message ids, so the mirror of a message is
found again on every mutation by searching a timestamp window of channel
history for normalized text equal to the expected text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.errors import CorrelationFailed
from core.mentions import MentionNormalizer
from core.models import CorrelationWindow, Message
from core.ports import BackendPort

LOGGER = logging.getLogger(__name__)


class MessageCorrelator:
    """Timestamp-window search over one workspace's channel history."""

    def __init__(self, backend: BackendPort, normalizer: MentionNormalizer) -> None:
        self._backend = backend
        self._normalizer = normalizer

    async def search(
        self,
        channel_id: str,
        expected_text: Optional[str],
        window: CorrelationWindow,
    ) -> Message:
        """Return the earliest message in ``window`` whose text matches.

        With ``expected_text=None`` the first message in range is returned,
        which is how a message is looked up by its own timestamp. Matching uses
        normalized text but the message is returned as stored, markup intact.
        Raises CorrelationFailed on a miss.
        """

        history = await self._backend.fetch_history(
            channel_id, window.start_ts, window.end_ts, inclusive=True
        )
        LOGGER.debug("Search in %s returned %s messages", channel_id, len(history))

        texts = await asyncio.gather(*(self._normalizer.normalize(message.text) for message in history))
        candidates = sorted(zip(history, texts), key=lambda pair: pair[0].ts_value)
        # Backends may page newest first; the earliest candidate must win.
        for message, text in candidates:
            if expected_text is not None and text != expected_text:
                continue
            LOGGER.info("Message found in %s at ts=%s", channel_id, message.ts)
            self._check_tolerance(message, window)
            return message

        raise CorrelationFailed(channel_id, window, expected_text)

    @staticmethod
    def _check_tolerance(message: Message, window: CorrelationWindow) -> None:
        if window.is_exact:
            return
        ts = message.ts_value
        start_diff = abs(ts - window.start_ts)
        end_diff = abs(ts - window.end_ts)
        LOGGER.info("start_ts_diff=%.6f, end_ts_diff=%.6f", start_diff, end_diff)
        if start_diff < window.tolerance:
            LOGGER.warning(
                "The time difference to start_ts is too small (%.3f secs). Consider increasing START_TS_DIFF",
                start_diff,
            )
        if end_diff < window.tolerance:
            LOGGER.warning(
                "The time difference to end_ts is too small (%.3f secs). Consider increasing END_TS_DIFF",
                end_diff,
            )
