#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import pandas as pd

from investment_growth import PortfolioState
from price_series import InvalidInputError, PriceObservation, validate_series

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayPoint:
    period_key: str
    display_label: str
    price: float
    portfolio_value: float
    total_contributed: float
    timestamp: pd.Timestamp
    # Only known when the point sits on a monthly boundary
    shares_held: Optional[int] = None
    total_dividends_received: Optional[float] = None


def state_index(states: Sequence[PortfolioState]) -> pd.DatetimeIndex:
    if not states:
        raise InvalidInputError("monthly portfolio series is empty")
    idx = pd.DatetimeIndex([s.timestamp for s in states])
    if not idx.is_monotonic_increasing or not idx.is_unique:
        raise InvalidInputError("monthly portfolio series must be strictly ordered by date")
    return idx

def latest_state_index(index: pd.DatetimeIndex, ts) -> int:
    """Position of the last monthly state starting on or before ``ts``.

    Never looks ahead: a point before the first month is an error.
    """
    pos = int(index.searchsorted(pd.Timestamp(ts), side="right")) - 1
    if pos < 0:
        raise InvalidInputError(
            f"{pd.Timestamp(ts).date()} precedes the first simulated month ({index[0].date()})"
        )
    return pos

def _from_state(state: PortfolioState, price: float, period_key: str, display_label: str, ts) -> DisplayPoint:
    return DisplayPoint(
        period_key=period_key,
        display_label=display_label,
        price=price,
        portfolio_value=state.portfolio_value,
        total_contributed=state.total_contributed,
        timestamp=ts,
        shares_held=state.shares_held,
        total_dividends_received=state.total_dividends_received,
    )

def display_from_states(states: Sequence[PortfolioState]) -> Tuple[DisplayPoint, ...]:
    state_index(states)
    return tuple(
        _from_state(s, s.price, s.period_key, s.display_label, s.timestamp) for s in states
    )

def interpolate_chart_data(
    observations: Iterable[PriceObservation],
    states: Sequence[PortfolioState],
) -> Tuple[DisplayPoint, ...]:
    """Project monthly holdings onto a denser daily or weekly price series.

    Points that coincide with a monthly period reuse that month's figures.
    Any other point marks the last known holdings to its own price; shares
    and dividends are left unset because no transaction happens between
    monthly boundaries.
    """
    series = validate_series(observations)
    index = state_index(states)
    log.info("Interpolating %d chart points from %d monthly states", len(series), len(states))

    points = []
    for obs in series:
        month = states[latest_state_index(index, obs.timestamp)]
        if obs.period_key == month.period_key:
            points.append(_from_state(month, obs.price, obs.period_key, obs.display_label, obs.timestamp))
            continue
        points.append(
            DisplayPoint(
                period_key=obs.period_key,
                display_label=obs.display_label,
                price=obs.price,
                portfolio_value=month.shares_held * obs.price + month.cash_balance,
                total_contributed=month.total_contributed,
                timestamp=obs.timestamp,
            )
        )
    return tuple(points)
