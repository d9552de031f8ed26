import pandas as pd
import pytest

import price_series
from price_series import InvalidInputError
from tiktok_dca_animator import (
    build_video_data,
    format_money,
    format_return,
    get_lang,
    load_series,
)
from video_config import VideoConfig


def test_config_defaults():
    config = VideoConfig(contribution_amount=100).validate()

    assert config.chart_duration == 20
    assert config.ending_duration == 3
    assert config.frame_rate == 30
    assert config.display_granularity == "monthly"
    assert config.total_frames == 690


@pytest.mark.parametrize(
    "overrides",
    [
        {"contribution_amount": -1},
        {"initial_balance": -5},
        {"chart_duration": 0},
        {"ending_duration": -3},
        {"frame_rate": 0},
        {"frame_rate": 29.97},
        {"display_granularity": "hourly"},
    ],
)
def test_config_rejects(overrides):
    values = {"contribution_amount": 100}
    values.update(overrides)
    with pytest.raises(InvalidInputError):
        VideoConfig(**values).validate()


def test_monthly_pipeline(monthly_series):
    config = VideoConfig(contribution_amount=100, chart_duration=1, ending_duration=1, frame_rate=10)
    data = build_video_data(config, monthly_series([10, 10, 20]))

    assert len(data.states) == 3
    assert [p.shares_held for p in data.points] == [10, 20, 25]
    assert len(data.frames) == 3 + 10
    last = data.frames[-1]
    assert last.is_final
    assert last.portfolio_value == 500
    assert last.shares_held == 25
    assert last.label == "March 2020"


def test_daily_pipeline_from_csv(tmp_path):
    rows = ["Date,Close,Dividends"]
    rows += [f"2020-01-{d:02d},10.0,0" for d in (2, 3, 6, 7)]
    rows += [f"2020-02-{d:02d},20.0,{0.5 if d == 10 else 0}" for d in (3, 4, 10)]
    path = tmp_path / "DAILY.csv"
    path.write_text("\n".join(rows) + "\n")

    config = VideoConfig(
        contribution_amount=100, chart_duration=1, ending_duration=0.5, frame_rate=10,
        display_granularity="daily",
    )
    monthly, daily = load_series("daily", csv_path=path)
    data = build_video_data(config, monthly, daily)

    assert [s.period_key for s in data.states] == ["Jan 2020", "Feb 2020"]
    # Jan: 10 shares; Feb: 100 + 0.5 * 10 dividend buys 5 shares at 20
    assert data.states[-1].shares_held == 15
    assert data.states[-1].total_dividends_received == pytest.approx(5.0)
    assert len(data.points) == 7
    assert data.points[3].total_contributed == 100
    assert data.points[4].total_contributed == 200
    assert [f.shares_held for f in data.frames[:7]] == [10, 10, 10, 10, 15, 15, 15]
    assert len(data.frames) == 7 + 5


def test_monthly_csv_has_no_display_series(tmp_path):
    path = tmp_path / "M.csv"
    path.write_text("Date,Close\n2020-01-02,10\n2020-02-03,11\n")

    monthly, display = load_series("monthly", csv_path=path)
    assert len(monthly) == 2
    assert display is None


class IntervalTicker:
    """Yahoo stand-in returning a different frame per bar interval."""

    tz = "America/New_York"
    bars = {
        "1mo": pd.DataFrame(
            {"Close": [10.0, 20.0]},
            index=pd.date_range("2020-01-01", periods=2, freq="MS", tz=tz),
        ),
        # Monday-dated weeks; the first one starts in December
        "1wk": pd.DataFrame(
            {"Close": [9.0, 10.0, 11.0, 12.0, 13.0, 20.0]},
            index=pd.date_range("2019-12-30", periods=6, freq="W-MON", tz=tz),
        ),
    }
    dividends = pd.Series(dtype=float)

    def __init__(self, symbol):
        self.symbol = symbol

    def history(self, interval, **kwargs):
        return self.bars[interval]


def test_weekly_yahoo_series_is_trimmed_to_first_month(monkeypatch):
    monkeypatch.setattr(price_series.yf, "Ticker", IntervalTicker)
    config = VideoConfig(
        contribution_amount=100, chart_duration=1, ending_duration=0.5, frame_rate=10,
        display_granularity="weekly",
    )

    monthly, weekly = load_series("weekly", "TEST", start="2020-01-01", end="2020-02-10")
    data = build_video_data(config, monthly, weekly)

    assert monthly[0].timestamp == pd.Timestamp("2020-01-01")
    assert weekly[0].timestamp == pd.Timestamp("2020-01-06")
    assert len(weekly) == 5
    assert data.points[0].display_label == "January 6, 2020"
    assert data.points[-1].total_contributed == 200


def test_money_and_return_formatting():
    assert format_money(1234.6) == "$1,235"
    assert format_money(12.346, get_lang("en"), 2) == "$12.35"
    assert format_money(1000, get_lang("fr")) == "€1,000"
    assert format_return(150, 100) == ("+50.0%", "#00FF00")
    assert format_return(90, 100) == ("-10.0%", "#FF0000")
    assert format_return(10, 0)[0] == ""
