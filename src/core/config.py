"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_START_TS_DIFF = 3.0
DEFAULT_END_TS_DIFF = 6.0
DEFAULT_TS_DIFF_TOLERANCE = 2.0


def normalize_channel_name(name: str) -> str:
    """Strip whitespace and the optional leading '#' from a channel name."""

    return name.strip().lstrip("#")


@dataclass(frozen=True)
class TimingConfig:
    """Correlation window tunables, all in seconds.

    - start_ts_diff: assumed max clock skew between the two workspaces, i.e.
      how far before the origin timestamp a mirror may appear.
    - end_ts_diff: assumed max forwarding latency.
    - ts_diff_tolerance: a match closer than this to a window bound triggers a
      tuning warning.
    """

    start_ts_diff: float = DEFAULT_START_TS_DIFF
    end_ts_diff: float = DEFAULT_END_TS_DIFF
    ts_diff_tolerance: float = DEFAULT_TS_DIFF_TOLERANCE

    @classmethod
    def from_dict(cls, raw: dict) -> "TimingConfig":
        values = {
            "start_ts_diff": raw.get("start_ts_diff", DEFAULT_START_TS_DIFF),
            "end_ts_diff": raw.get("end_ts_diff", DEFAULT_END_TS_DIFF),
            "ts_diff_tolerance": raw.get("ts_diff_tolerance", DEFAULT_TS_DIFF_TOLERANCE),
        }
        parsed: dict[str, float] = {}
        for key, value in values.items():
            try:
                number = float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"timing.{key} must be a number, got {value!r}") from exc
            if number < 0:
                raise ValueError(f"timing.{key} must not be negative, got {number}")
            parsed[key] = number
        return cls(**parsed)
