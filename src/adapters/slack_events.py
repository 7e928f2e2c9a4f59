"""Socket Mode adapter implementing the core EventSourcePort."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional

from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from adapters.slack_mapper import event_from_payload
from core.events import BridgeEvent

LOGGER = logging.getLogger(__name__)


class SlackEventStream:
    """Turn Socket Mode envelopes into a stream of core events.

    Envelopes are acknowledged before mapping so Slack never redelivers an
    event the bridge has already seen, even if mirroring it fails later.
    """

    def __init__(self, client: SocketModeClient) -> None:
        self._client = client
        self._queue: "asyncio.Queue[Optional[BridgeEvent]]" = asyncio.Queue()
        self._client.socket_mode_request_listeners.append(self._on_request)

    async def _on_request(self, client: SocketModeClient, request: SocketModeRequest) -> None:
        await client.send_socket_mode_response(SocketModeResponse(envelope_id=request.envelope_id))
        if request.type != "events_api":
            LOGGER.debug("Ignored socket mode request of type %s", request.type)
            return
        payload = (request.payload or {}).get("event") or {}
        try:
            event = event_from_payload(payload)
        except (KeyError, TypeError, ValueError):
            LOGGER.exception(
                "Dropped malformed %s envelope (event type %s)", request.type, payload.get("type")
            )
            return
        await self._queue.put(event)

    async def events(self) -> AsyncIterator[BridgeEvent]:
        LOGGER.info("Socket mode client connecting")
        await self._client.connect()
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    async def close(self) -> None:
        await self._client.close()
        await self._queue.put(None)
