"""Mention normalization for mirrored text.

Workspace ids mean nothing on the other side of the bridge, so user mentions
are rewritten to display names and any other inline markup is flattened to
plain text before a message is posted or compared.
"""

from __future__ import annotations

import asyncio
import logging
import re

from core.errors import UserNotFound
from core.identity import IdentityCache

LOGGER = logging.getLogger(__name__)

# <@U123> or <@U123|label>
MENTION_REGEX = re.compile(r"<@([A-Z0-9]+)(?:\|[^<>]*)?>")
# Any remaining <...> token: channels, special mentions, user groups, links.
MARKUP_REGEX = re.compile(r"<([^<>]*)>")


def _flatten_token(body: str) -> str:
    target, _, label = body.partition("|")
    if target.startswith("#"):
        # <#C123|general> keeps only the readable channel name.
        return f"#{label.lstrip('#')}" if label else target
    if target.startswith("@"):
        return label or target
    if target.startswith("!"):
        if label:
            return label
        # <!here>, <!channel>, <!everyone>; <!subteam^S1> without a label.
        return "@" + target[1:].split("^", 1)[0]
    return label or target


def strip_mention_markup(text: str) -> str:
    """Replace every remaining ``<...>`` token with its readable form."""

    return MARKUP_REGEX.sub(lambda match: _flatten_token(match.group(1)), text)


class MentionNormalizer:
    """Rewrite user mentions to display names using an identity cache."""

    def __init__(self, identities: IdentityCache) -> None:
        self._identities = identities

    async def normalize(self, text: str) -> str:
        if not text:
            return text

        user_ids = sorted(set(MENTION_REGEX.findall(text)))
        if not user_ids:
            return strip_mention_markup(text)

        results = await asyncio.gather(
            *(self._identities.resolve(user_id) for user_id in user_ids),
            return_exceptions=True,
        )
        names: dict[str, str] = {}
        for user_id, result in zip(user_ids, results):
            if isinstance(result, UserNotFound):
                LOGGER.warning("Mention of unknown user %s left unresolved", user_id)
                continue
            if isinstance(result, BaseException):
                raise result
            names[user_id] = result.display_name

        def _replace(match: re.Match) -> str:
            name = names.get(match.group(1))
            # Unresolved tokens are flattened by the markup pass below.
            return name if name is not None else match.group(0)

        normalized = strip_mention_markup(MENTION_REGEX.sub(_replace, text))
        LOGGER.debug("Normalized mentions: %r -> %r", text, normalized)
        return normalized
