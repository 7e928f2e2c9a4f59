"""Slack client factory for slackportal.

Each workspace needs two credentials: a Socket Mode app token for the event
stream and a user OAuth token for the Web API actions.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.web.async_client import AsyncWebClient

from adapters.slack_backend import SlackBackend
from adapters.slack_events import SlackEventStream
from core.connection import Connection

TOKEN_VARIABLES = (
    "LOCAL_APP_TOKEN",
    "LOCAL_USER_TOKEN",
    "REMOTE_APP_TOKEN",
    "REMOTE_USER_TOKEN",
)


def _require_env(name: str) -> str:
    value = os.getenv(name)
    # Fail fast on missing credentials to avoid a half-connected bridge.
    if not value:
        raise RuntimeError(f"Missing {name} in environment")
    return value


def build_web_client(prefix: str) -> AsyncWebClient:
    """Create the Web API client for one workspace ("LOCAL" or "REMOTE")."""

    load_dotenv()
    return AsyncWebClient(token=_require_env(f"{prefix}_USER_TOKEN"))


def build_connection(prefix: str, name: str) -> Connection:
    """Create a Connection from environment variables.

    We read tokens via python-dotenv to keep secrets out of the repo.
    """

    load_dotenv()
    app_token = _require_env(f"{prefix}_APP_TOKEN")
    web_client = build_web_client(prefix)

    logging.getLogger(__name__).info("Initializing %s Slack clients", name)

    socket_client = SocketModeClient(app_token=app_token, web_client=web_client)
    return Connection(name, SlackBackend(web_client), SlackEventStream(socket_client))
