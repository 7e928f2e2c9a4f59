"""Wire two workspaces into a bidirectional bridge."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.config import TimingConfig
from core.connection import Connection
from core.dispatcher import EventDispatcher
from core.models import Channel

LOGGER = logging.getLogger(__name__)


class BridgeSupervisor:
    """Run one dispatcher per direction over a shared pair of connections."""

    def __init__(
        self,
        local: Connection,
        remote: Connection,
        local_channel_name: str,
        remote_channel_name: str,
        timing: TimingConfig,
    ) -> None:
        self._local = local
        self._remote = remote
        self._local_channel_name = local_channel_name
        self._remote_channel_name = remote_channel_name
        self._timing = timing
        self._dispatchers: Optional[tuple[EventDispatcher, EventDispatcher]] = None

    async def start(self) -> tuple[EventDispatcher, EventDispatcher]:
        """Resolve both channels and build the two directional dispatchers.

        ChannelNotFound propagates: the bridge cannot run without both ends.
        """

        if self._dispatchers is not None:
            return self._dispatchers

        LOGGER.info("Retrieving local/remote channel ids")
        local_id, remote_id = await asyncio.gather(
            self._local.backend.resolve_channel_id(self._local_channel_name),
            self._remote.backend.resolve_channel_id(self._remote_channel_name),
        )
        local_channel = Channel(id=local_id, name=self._local_channel_name)
        remote_channel = Channel(id=remote_id, name=self._remote_channel_name)
        LOGGER.info("%s channel #%s ID: %s", self._local.name, local_channel.name, local_channel.id)
        LOGGER.info("%s channel #%s ID: %s", self._remote.name, remote_channel.name, remote_channel.id)

        self._dispatchers = (
            EventDispatcher(self._local, self._remote, local_channel, remote_channel, self._timing),
            EventDispatcher(self._remote, self._local, remote_channel, local_channel, self._timing),
        )
        return self._dispatchers

    async def run(self) -> None:
        """Mirror both directions until both event streams end."""

        outbound, inbound = await self.start()
        await asyncio.gather(
            outbound.run(self._local.event_source.events()),
            inbound.run(self._remote.event_source.events()),
        )
