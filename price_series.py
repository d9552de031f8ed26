#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

import pandas as pd
import yfinance as yf

log = logging.getLogger(__name__)

GRANULARITIES = ("daily", "weekly", "monthly")

YF_INTERVALS = {
    "daily": "1d",
    "weekly": "1wk",
    "monthly": "1mo",
}

# ---------------------------
# Errors
# ---------------------------

class InvalidInputError(ValueError):
    """Malformed, empty or non-monotonic series, or negative money settings."""


class UpstreamDataError(RuntimeError):
    """The market-data provider returned no usable price."""

# ---------------------------
# Observations
# ---------------------------

@dataclass(frozen=True)
class PriceObservation:
    period_key: str
    display_label: str
    price: float
    dividend_per_share: float
    timestamp: pd.Timestamp


def check_granularity(granularity: str) -> str:
    if granularity not in GRANULARITIES:
        raise InvalidInputError(
            f"granularity must be one of: {', '.join(GRANULARITIES)} (got {granularity!r})"
        )
    return granularity

def month_key(ts) -> str:
    return pd.Timestamp(ts).strftime("%b %Y")

def format_period_labels(ts, granularity: str = "monthly") -> Tuple[str, str]:
    """Return ``(period_key, display_label)`` for a timestamp.

    Monthly points are labelled by month ("Jan 2020" / "January 2020"),
    daily and weekly points by day ("Jan 6, 2020" / "January 6, 2020").
    """
    ts = pd.Timestamp(ts)
    if check_granularity(granularity) == "monthly":
        return ts.strftime("%b %Y"), ts.strftime("%B %Y")
    return f"{ts:%b} {ts.day}, {ts.year}", f"{ts:%B} {ts.day}, {ts.year}"

def validate_series(observations: Iterable[PriceObservation]) -> Tuple[PriceObservation, ...]:
    series = tuple(observations)
    if not series:
        raise InvalidInputError("price series is empty")
    prev = None
    for obs in series:
        if not math.isfinite(obs.price) or obs.price <= 0:
            raise InvalidInputError(f"non-positive price {obs.price!r} at {obs.display_label}")
        if not math.isfinite(obs.dividend_per_share) or obs.dividend_per_share < 0:
            raise InvalidInputError(
                f"negative dividend {obs.dividend_per_share!r} at {obs.display_label}"
            )
        if prev is not None and obs.timestamp <= prev.timestamp:
            raise InvalidInputError(
                f"timestamps must be strictly increasing: {prev.display_label} -> {obs.display_label}"
            )
        prev = obs
    return series

# ---------------------------
# Data loading / utils
# ---------------------------

def load_prices(csv_path, date_col="Date", price_col="Close", dividend_col="Dividends", tz_aware=False):
    df = pd.read_csv(csv_path)
    if date_col not in df.columns or price_col not in df.columns:
        raise InvalidInputError(
            f"CSV must have columns '{date_col}' and '{price_col}'. Found: {df.columns.tolist()}"
        )
    return _normalize_history(df, date_col, price_col, dividend_col, tz_aware=tz_aware)

def _normalize_history(df, date_col, price_col, dividend_col, tz_aware=False):
    has_dividend = dividend_col in df.columns
    cols = [date_col, price_col] + ([dividend_col] if has_dividend else [])
    df = df[cols].copy()

    df[date_col] = pd.to_datetime(df[date_col], utc=tz_aware, errors="coerce")
    df[price_col] = pd.to_numeric(df[price_col], errors="coerce")
    if has_dividend:
        df[dividend_col] = pd.to_numeric(df[dividend_col], errors="coerce").fillna(0.0)

    df = df.dropna(subset=[date_col, price_col])
    df = df.sort_values(date_col).reset_index(drop=True)
    # Deduplicate dates (keep last for price, sum dividends)
    agg_map = {price_col: "last"}
    if has_dividend:
        agg_map[dividend_col] = "sum"
    df = df.groupby(date_col, as_index=False).agg(agg_map)

    rename_map = {date_col: "date", price_col: "close"}
    if has_dividend:
        rename_map[dividend_col] = "dividend"
    df = df.rename(columns=rename_map)
    if "dividend" not in df.columns:
        df["dividend"] = 0.0

    df["close"] = df["close"].astype(float)
    df["dividend"] = df["dividend"].astype(float)
    return df[["date", "close", "dividend"]]

def resample_prices(df: pd.DataFrame, granularity: str) -> pd.DataFrame:
    """Reduce a daily history to one row per period.

    Each row is the first trading day of its calendar month (or week) with
    that day's close. Monthly rows carry every dividend paid during the
    month; daily and weekly rows carry none.
    """
    check_granularity(granularity)
    if df.empty:
        return df.copy()
    if granularity == "daily":
        out = df.copy()
        out["dividend"] = 0.0
        return out.reset_index(drop=True)

    freq = "M" if granularity == "monthly" else "W"
    buckets = df["date"].dt.to_period(freq).rename("period")
    out = df.groupby(buckets, sort=True).agg(
        date=("date", "first"),
        close=("close", "first"),
        dividend=("dividend", "sum"),
    )
    if granularity == "weekly":
        out["dividend"] = 0.0
    return out.reset_index(drop=True)

def to_observations(df: pd.DataFrame, granularity: str) -> Tuple[PriceObservation, ...]:
    check_granularity(granularity)
    observations = []
    for row in df.itertuples(index=False):
        period_key, display_label = format_period_labels(row.date, granularity)
        dividend = float(row.dividend) if granularity == "monthly" else 0.0
        observations.append(
            PriceObservation(period_key, display_label, float(row.close), dividend, pd.Timestamp(row.date))
        )
    return validate_series(observations)

def series_from_csv(csv_path, granularity: str = "monthly", start=None, end=None, **columns):
    df = load_prices(csv_path, **columns)
    if start is not None:
        df = df[df["date"] >= pd.Timestamp(start)]
    if end is not None:
        df = df[df["date"] <= pd.Timestamp(end)]
    return to_observations(resample_prices(df, granularity), granularity)

# ---------------------------
# yfinance provider
# ---------------------------

def _naive_index(index) -> pd.DatetimeIndex:
    idx = pd.DatetimeIndex(index)
    if idx.tz is not None:
        idx = idx.tz_localize(None)
    return idx

def dividends_by_month(dividends: pd.Series) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    if dividends is None or dividends.empty:
        return totals
    for ts, amount in zip(_naive_index(dividends.index), dividends.to_numpy(dtype=float)):
        key = month_key(ts)
        # Several payouts in one month are added together
        totals[key] = totals.get(key, 0.0) + float(amount)
        log.info("Found dividend: %.4f on %s (%s)", amount, ts.date(), key)
    return totals

def download_history(symbol: str, start=None, end=None, granularity: str = "daily", period=None) -> pd.DataFrame:
    """Fetch ``date, close, dividend`` rows for ``symbol`` from Yahoo Finance."""
    interval = YF_INTERVALS[check_granularity(granularity)]
    log.info("Fetching %s stock data for %s from %s to %s", granularity, symbol, start, end)

    ticker = yf.Ticker(symbol)
    if period is not None:
        hist = ticker.history(period=period, interval=interval, auto_adjust=False, actions=False)
    else:
        hist = ticker.history(start=start, end=end, interval=interval, auto_adjust=False, actions=False)
    if hist is None or hist.empty or "Close" not in hist.columns:
        raise UpstreamDataError(f"No {granularity} price data found for ticker {symbol}")
    if hist["Close"].isna().any():
        missing = _naive_index(hist.index[hist["Close"].isna()])
        raise UpstreamDataError(f"Missing stock price data for {symbol} on {missing[0].date()}")

    dates = _naive_index(hist.index)
    df = pd.DataFrame({"date": dates, "close": hist["Close"].to_numpy(dtype=float)})
    df["dividend"] = 0.0
    if granularity == "monthly":
        per_month = dividends_by_month(ticker.dividends)
        df["dividend"] = [per_month.get(month_key(d), 0.0) for d in df["date"]]
    elif granularity == "daily":
        per_day = ticker.dividends
        if per_day is not None and not per_day.empty:
            paid = pd.Series(per_day.to_numpy(dtype=float), index=_naive_index(per_day.index).normalize())
            paid = paid.groupby(level=0).sum()
            df["dividend"] = df["date"].dt.normalize().map(paid).fillna(0.0).to_numpy()
    return df

def fetch_prices(symbol: str, start, end, granularity: str = "monthly") -> Tuple[PriceObservation, ...]:
    df = download_history(symbol, start, end, granularity)
    observations = to_observations(df, granularity)
    log.info("Fetched %d %s data points for %s", len(observations), granularity, symbol)
    return observations

def trim_to_start(observations: Iterable[PriceObservation], start) -> Tuple[PriceObservation, ...]:
    """Drop observations dated before ``start``.

    Yahoo dates weekly bars on Mondays, so the first bar of a weekly
    series can fall in the month before the first monthly bar.
    """
    start = pd.Timestamp(start)
    series = tuple(observations)
    kept = tuple(o for o in series if o.timestamp >= start)
    if len(kept) < len(series):
        log.debug("Dropped %d observations before %s", len(series) - len(kept), start.date())
    return validate_series(kept)
