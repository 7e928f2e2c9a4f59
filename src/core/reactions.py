"""Reaction summary aggregation."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from core.errors import UserNotFound
from core.identity import IdentityCache
from core.models import EMOJI_FALLBACK_TAG, Attachment, Identity, Message, Reaction

LOGGER = logging.getLogger(__name__)


class ReactionAggregator:
    """Build the synthetic attachment that mirrors a message's reactions."""

    def __init__(self, identities: IdentityCache) -> None:
        self._identities = identities

    async def _resolve_reactors(self, reactions: Iterable[Reaction]) -> dict[str, Identity]:
        # Ordered dedup across all emoji on the message.
        user_ids = list(dict.fromkeys(
            user_id for reaction in reactions for user_id in reaction.reactor_ids
        ))

        results = await asyncio.gather(
            *(self._identities.resolve(user_id) for user_id in user_ids),
            return_exceptions=True,
        )
        resolved: dict[str, Identity] = {}
        for user_id, result in zip(user_ids, results):
            if isinstance(result, UserNotFound):
                LOGGER.warning("Reactor %s could not be resolved, omitted from summary", user_id)
                continue
            if isinstance(result, BaseException):
                raise result
            resolved[user_id] = result
        return resolved

    async def summarize(self, message: Message) -> Attachment:
        """Return the emoji summary attachment for a message's reactions.

        ``text`` holds one ``:name: count`` entry per emoji and ``footer`` lists
        who reacted with each emoji.
        """

        reactions = list(message.reactions)
        identities = await self._resolve_reactors(reactions)

        summary: list[str] = []
        detail: list[str] = []
        for reaction in reactions:
            summary.append(f":{reaction.emoji_name}: {reaction.count}")
            names = [
                identities[user_id].display_name
                for user_id in reaction.reactor_ids
                if user_id in identities
            ]
            detail.append(f"{reaction.emoji_name}: {', '.join(names)}")

        return Attachment(
            fallback_tag=EMOJI_FALLBACK_TAG,
            text=" ".join(summary),
            footer=" | ".join(detail),
        )
