import pandas as pd
import pytest

from chart_interpolation import DisplayPoint
from price_series import to_observations


def _monthly(prices, dividends=None, start="2020-01-01"):
    dates = pd.date_range(start, periods=len(prices), freq="MS")
    df = pd.DataFrame(
        {
            "date": dates,
            "close": [float(p) for p in prices],
            "dividend": dividends if dividends is not None else [0.0] * len(prices),
        }
    )
    return to_observations(df, "monthly")


def _points(n, start="2020-01-01"):
    dates = pd.date_range(start, periods=n, freq="D")
    return tuple(
        DisplayPoint(
            period_key=f"p{i}",
            display_label=f"Day {i}",
            price=10.0 + i,
            portfolio_value=100.0 * (i + 1),
            total_contributed=50.0 * (i + 1),
            timestamp=ts,
        )
        for i, ts in enumerate(dates)
    )


@pytest.fixture()
def monthly_series():
    """Factory for validated monthly observations starting in Jan 2020."""
    return _monthly


@pytest.fixture()
def display_points():
    """Factory for ``n`` daily display points without holdings data."""
    return _points
