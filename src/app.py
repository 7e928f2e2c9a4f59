"""Application entry point for the slackportal bridge."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from client import TOKEN_VARIABLES, build_connection, build_web_client
from adapters.slack_backend import SlackBackend
from core.errors import ChannelNotFound
from core.supervisor import BridgeSupervisor

NAME = "SLACKPORTAL"
FONT = "tarty-1"

SIDES = (("LOCAL", "local"), ("REMOTE", "remote"))


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = []
    for name in redact_cfg.get("patterns", list(TOKEN_VARIABLES)):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/slackportal.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # Per-request debug output from the SDK drowns the bridge's own logs.
    logging.getLogger("slack_sdk").setLevel(max(level, logging.INFO))


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting slackportal")
    logger.info(
        "Timing: start_ts_diff=%s end_ts_diff=%s ts_diff_tolerance=%s",
        settings.TIMING.start_ts_diff,
        settings.TIMING.end_ts_diff,
        settings.TIMING.ts_diff_tolerance,
    )

    async def _run_bridge() -> None:
        # Clients are built inside the running loop; aiohttp sessions bind to it.
        local = build_connection("LOCAL", "local")
        remote = build_connection("REMOTE", "remote")
        supervisor = BridgeSupervisor(
            local=local,
            remote=remote,
            local_channel_name=settings.LOCAL_CHANNEL_NAME,
            remote_channel_name=settings.REMOTE_CHANNEL_NAME,
            timing=settings.TIMING,
        )
        try:
            await supervisor.run()
        finally:
            await asyncio.gather(local.event_source.close(), remote.event_source.close())

    try:
        asyncio.run(_run_bridge())
    except ChannelNotFound as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


async def _list_channels() -> None:
    for prefix, name in SIDES:
        backend = SlackBackend(build_web_client(prefix))
        channels = await backend.list_channels()
        print(f"{name} workspace:")
        if not channels:
            print("  No channels visible to this token.")
            continue
        for index, channel in enumerate(sorted(channels, key=lambda item: item.name), start=1):
            print(f"  {index}. #{channel.name} | {channel.id}")


def _channels() -> None:
    _print_banner()
    asyncio.run(_list_channels())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="slackportal")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bridge")
    subparsers.add_parser(
        "channels",
        help="List the channels visible on both workspaces, to fill in config.json.",
    )

    args = parser.parse_args(argv)
    if args.command == "channels":
        _channels()
        return
    _run()


if __name__ == "__main__":
    main()
