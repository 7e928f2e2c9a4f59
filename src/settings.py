"""Static configuration for slackportal.

Non-secret settings (channels, correlation timing, logging) live in a single
JSON file for quick edits without touching Python. Tokens come from the
environment, see client.py.
"""

import json
import os

from core.config import TimingConfig, normalize_channel_name

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits next to the project root unless overridden.
CONFIG_PATH = os.getenv("SLACKPORTAL_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _channel_name(side: str) -> str:
    name = (_CONFIG.get(side) or {}).get("channel")
    if not name:
        raise ValueError(f"{side}.channel is required in {CONFIG_PATH}")
    return normalize_channel_name(str(name))


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Channel pair mirrored into each other. A leading '#' is accepted.
LOCAL_CHANNEL_NAME = _channel_name("local")
REMOTE_CHANNEL_NAME = _channel_name("remote")

# Correlation windows:
# - start_ts_diff: workspaces may disagree on time, so a mirror can carry an
#   earlier timestamp than its origin. Usually less than 1-2 seconds.
# - end_ts_diff: forwarding delay. Usually less than 3-4 seconds.
# - ts_diff_tolerance: warn when a match lands closer than this to a bound.
TIMING = TimingConfig.from_dict(_CONFIG.get("timing", {}))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
