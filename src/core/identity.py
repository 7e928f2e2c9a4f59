"""Per-workspace user identity cache."""

from __future__ import annotations

import logging

from core.models import Identity
from core.ports import BackendPort

LOGGER = logging.getLogger(__name__)


class IdentityCache:
    """Lazily resolve user ids to display identities and keep them forever.

    There is no expiry or invalidation: a renamed user keeps the old name
    until restart. Two concurrent misses for the same id both hit the backend
    and the later write wins, which is harmless since the value is the same.
    """

    def __init__(self, backend: BackendPort) -> None:
        self._backend = backend
        self._cache: dict[str, Identity] = {}

    async def resolve(self, user_id: str) -> Identity:
        cached = self._cache.get(user_id)
        if cached is not None:
            LOGGER.debug("User id %s is in the cache, resolved to %s", user_id, cached.display_name)
            return cached

        LOGGER.info("User id %s cache missed, resolving", user_id)
        # UserNotFound propagates; failed lookups are never cached.
        identity = await self._backend.lookup_user(user_id)
        self._cache[user_id] = identity
        LOGGER.info("User id %s resolved to %s", user_id, identity.display_name)
        return identity
