"""Unit tests for fixed-window arithmetic."""

import pytest

from edge_gateway.adapters.rate_limit.base import RateWindowState
from edge_gateway.adapters.rate_limit.windows import (
    counter_key,
    previous_window_weight,
    window_index,
    window_reset_at,
    window_start,
)


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (0.0, 0),
        (59.999, 0),
        (60.0, 1),
        (1_700_000_040.0, 28_333_334),
    ],
)
def test_window_index(now: float, expected: int) -> None:
    assert window_index(now, 60) == expected


def test_window_bounds() -> None:
    assert window_start(3, 60) == 180
    assert window_reset_at(3, 60) == 240


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (60.0, 0.0),
        (75.0, 0.25),
        (90.0, 0.5),
        (119.0, 119 / 60 - 1),
    ],
)
def test_previous_window_weight_is_elapsed_fraction(now: float, expected: float) -> None:
    assert previous_window_weight(now, window_index(now, 60), 60) == pytest.approx(expected)


def test_counter_key_format() -> None:
    assert counter_key("abc", 28_333_334) == "abc:28333334"


def test_window_state_decode() -> None:
    assert RateWindowState.decode("42", 7) == RateWindowState(count=42, window_index=7)
    assert RateWindowState.decode(None, 7).count == 0
    assert RateWindowState.decode("garbage", 7).count == 0
    assert RateWindowState(count=5, window_index=7).encode() == "5"
