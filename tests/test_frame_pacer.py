import pandas as pd
import pytest

from chart_interpolation import DisplayPoint
from frame_pacer import frame_counts, growth_indices, pace_frames
from investment_growth import simulate_investment
from price_series import InvalidInputError


@pytest.mark.parametrize("n", [600, 1000, 1250, 1800, 5000])
def test_frame_budget_for_long_series(display_points, n):
    frames = pace_frames(display_points(n), 20, 3, 30)

    assert len(frames) == 690
    assert sum(f.is_final for f in frames) == 90
    assert all(not f.is_final for f in frames[:600])


def test_short_series_gets_fewer_growth_frames(display_points):
    frames = pace_frames(display_points(50), 20, 3, 30)

    growth = [f for f in frames if not f.is_final]
    assert [f.index for f in growth] == list(range(50))
    assert len(frames) == 50 + 90


def test_step_follows_floor_formula():
    assert growth_indices(1800, 600) == list(range(0, 1800, 3))
    assert growth_indices(1250, 600)[:3] == [0, 2, 4]
    assert len(growth_indices(1250, 600)) == 600
    assert growth_indices(10, 0) == []


def test_capped_growth_skips_tail_then_freezes_on_last_point(display_points):
    frames = pace_frames(display_points(1000), 20, 3, 30)

    assert growth_indices(1000, 600)[-1] == 599
    assert frames[599].index == 599
    assert not frames[599].is_final
    assert frames[600].index == 999
    assert frames[600].is_final
    assert len(frames[600].history) == 1000


def test_growth_frames_carry_cumulative_prefix(display_points):
    series = display_points(120)
    frames = pace_frames(series, 2, 1, 30)

    # 60 chart frames, step 2
    assert frames[3].index == 6
    assert frames[3].history == series[:7]
    assert frames[3].label == "Day 6"
    assert frames[3].price == series[6].price
    assert frames[3].portfolio_value == series[6].portfolio_value
    assert frames[3].total_contributed == series[6].total_contributed


def test_freeze_frames_show_entire_series(display_points):
    series = display_points(40)
    frames = pace_frames(series, 1, 0.5, 30)

    freeze = frames[-15:]
    assert len(freeze) == 15
    for f in freeze:
        assert f.is_final
        assert f.history == series
        assert f.point is series[-1]


def test_zero_chart_duration_only_freezes(display_points):
    frames = pace_frames(display_points(10), 0, 1, 24)

    assert len(frames) == 24
    assert all(f.is_final for f in frames)


def test_holdings_carried_forward_from_points():
    series = (
        DisplayPoint("Jan 2020", "January 2020", 10.0, 100.0, 100.0, pd.Timestamp("2020-01-01"), 10, 0.0),
        DisplayPoint("Jan 15, 2020", "January 15, 2020", 12.0, 120.0, 100.0, pd.Timestamp("2020-01-15")),
        DisplayPoint("Feb 2020", "February 2020", 20.0, 300.0, 200.0, pd.Timestamp("2020-02-01"), 15, 2.5),
    )
    frames = pace_frames(series, 1, 1, 3)

    assert [(f.shares_held, f.total_dividends_received) for f in frames] == [
        (10, 0.0), (10, 0.0), (15, 2.5), (15, 2.5), (15, 2.5), (15, 2.5),
    ]


def test_holdings_from_monthly_states(monthly_series, display_points):
    states = simulate_investment(monthly_series([10, 20]), 100)
    series = display_points(45)  # Jan 1 .. Feb 14
    frames = pace_frames(series, 45, 0, 1, states=states)

    assert frames[0].shares_held == 10
    assert frames[30].shares_held == 10
    assert frames[31].shares_held == 15


def test_frame_counts_floor():
    assert frame_counts(20, 3, 30) == (600, 90)
    assert frame_counts(2.5, 0.25, 24) == (60, 6)


@pytest.mark.parametrize(
    "n, chart, ending, rate",
    [
        (0, 20, 3, 30),
        (10, 20, 3, 0),
        (10, 20, 3, -30),
        (10, -1, 3, 30),
        (10, 20, -0.5, 30),
        (5, float("inf"), 3, 30),
        (5, 20, float("inf"), 30),
        (5, 20, 3, float("inf")),
    ],
)
def test_invalid_pacing(display_points, n, chart, ending, rate):
    with pytest.raises(InvalidInputError):
        pace_frames(display_points(n) if n else (), chart, ending, rate)
