from __future__ import annotations

import pytest

from core.config import TimingConfig, normalize_channel_name


def test_timing_defaults() -> None:
    timing = TimingConfig.from_dict({})

    assert timing.start_ts_diff == 3.0
    assert timing.end_ts_diff == 6.0
    assert timing.ts_diff_tolerance == 2.0


def test_timing_accepts_numeric_strings() -> None:
    timing = TimingConfig.from_dict({"start_ts_diff": "1.5", "end_ts_diff": 4, "ts_diff_tolerance": 0})

    assert timing == TimingConfig(start_ts_diff=1.5, end_ts_diff=4.0, ts_diff_tolerance=0.0)


@pytest.mark.parametrize("raw", [{"start_ts_diff": "soon"}, {"end_ts_diff": None}, {"ts_diff_tolerance": -1}])
def test_timing_rejects_invalid_values(raw: dict) -> None:
    with pytest.raises(ValueError):
        TimingConfig.from_dict(raw)


def test_channel_name_strips_hash() -> None:
    assert normalize_channel_name("#general") == "general"
    assert normalize_channel_name(" random ") == "random"
