#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from chart_interpolation import DisplayPoint, latest_state_index, state_index
from investment_growth import PortfolioState
from price_series import InvalidInputError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """One animation frame: the chart history up to ``index``.

    Freeze frames (``is_final``) always point at the last entry so the
    whole series is on screen.
    """
    index: int
    is_final: bool
    series: Tuple[DisplayPoint, ...] = field(repr=False)
    shares_held: int = 0
    total_dividends_received: float = 0.0

    @property
    def point(self) -> DisplayPoint:
        return self.series[self.index]

    @property
    def history(self) -> Tuple[DisplayPoint, ...]:
        return self.series[: self.index + 1]

    @property
    def price(self) -> float:
        return self.point.price

    @property
    def portfolio_value(self) -> float:
        return self.point.portfolio_value

    @property
    def total_contributed(self) -> float:
        return self.point.total_contributed

    @property
    def label(self) -> str:
        return self.point.display_label


def frame_counts(chart_duration: float, ending_duration: float, frame_rate: float) -> Tuple[int, int]:
    if not frame_rate > 0 or not math.isfinite(frame_rate):
        raise InvalidInputError(f"frame rate must be positive (got {frame_rate!r})")
    if not chart_duration >= 0 or not ending_duration >= 0:
        raise InvalidInputError(
            f"durations must not be negative (chart={chart_duration!r}, ending={ending_duration!r})"
        )
    if not math.isfinite(chart_duration) or not math.isfinite(ending_duration):
        raise InvalidInputError(
            f"durations must be finite (chart={chart_duration!r}, ending={ending_duration!r})"
        )
    return math.floor(chart_duration * frame_rate), math.floor(ending_duration * frame_rate)

def growth_indices(n: int, chart_frames: int) -> List[int]:
    """Series positions shown while the chart grows.

    Every ``step``-th point with ``step = max(1, n // chart_frames)``,
    capped at ``chart_frames`` entries. Short series give fewer frames;
    nothing is padded.

    When ``n`` is not a multiple of ``chart_frames`` the cap cuts the tail:
    for ``n=1000`` at 600 frames growth stops at position 599 and the
    freeze frames jump straight to the full series.
    """
    if chart_frames <= 0:
        return []
    step = max(1, n // chart_frames)
    return list(range(0, n, step))[:chart_frames]

def _holdings(points: Sequence[DisplayPoint], states: Optional[Sequence[PortfolioState]]):
    if states:
        index = state_index(states)
        for p in points:
            s = states[latest_state_index(index, p.timestamp)]
            yield s.shares_held, s.total_dividends_received
        return
    shares, dividends = 0, 0.0
    for p in points:
        if p.shares_held is not None:
            shares = p.shares_held
        if p.total_dividends_received is not None:
            dividends = p.total_dividends_received
        yield shares, dividends

def pace_frames(
    points: Sequence[DisplayPoint],
    chart_duration: float = 20.0,
    ending_duration: float = 3.0,
    frame_rate: float = 30,
    states: Optional[Sequence[PortfolioState]] = None,
) -> List[Frame]:
    series = tuple(points)
    if not series:
        raise InvalidInputError("cannot pace an empty display series")
    chart_frames, end_frames = frame_counts(chart_duration, ending_duration, frame_rate)

    holdings = list(_holdings(series, states))
    frames = []
    for i in growth_indices(len(series), chart_frames):
        shares, dividends = holdings[i]
        frames.append(Frame(i, False, series, shares, dividends))

    last = len(series) - 1
    shares, dividends = holdings[last]
    frames.extend(Frame(last, True, series, shares, dividends) for _ in range(end_frames))

    log.info(
        "Paced %d points into %d growth frames + %d freeze frames (budget %d)",
        len(series), len(frames) - end_frames, end_frames, chart_frames,
    )
    return frames
