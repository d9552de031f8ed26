#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, Tuple

import pandas as pd

from price_series import InvalidInputError, PriceObservation, validate_series

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioState:
    period_key: str
    display_label: str
    price: float
    shares_held: int
    cash_balance: float
    total_contributed: float
    total_dividends_received: float
    portfolio_value: float
    timestamp: pd.Timestamp


@dataclass(frozen=True)
class _Ledger:
    shares: int = 0
    cash: float = 0.0
    contributed: float = 0.0
    dividends: float = 0.0


@dataclass(frozen=True)
class InvestmentSummary:
    first_label: str
    last_label: str
    price: float
    shares_held: int
    total_contributed: float
    total_dividends_received: float
    cash_balance: float
    portfolio_value: float
    return_pct: float


def _check_amount(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"{name} must be a non-negative amount (got {value!r})")
    return value

def _check_months(series: Tuple[PriceObservation, ...]) -> None:
    seen = set()
    for obs in series:
        if obs.period_key in seen:
            raise InvalidInputError(f"duplicate month {obs.period_key!r} in monthly series")
        seen.add(obs.period_key)

def whole_shares(cash: float, price: float) -> int:
    """Largest share count whose cost fits in ``cash``.

    The floor division is corrected in both directions so that the
    leftover ``cash - n * price`` always lands in ``[0, price)``.
    """
    if cash <= 0:
        return 0
    n = math.floor(cash / price)
    while n > 0 and cash - n * price < 0:
        n -= 1
    while cash - n * price >= price and cash - (n + 1) * price >= 0:
        n += 1
    return n

def _buy(ledger: _Ledger, price: float) -> Tuple[_Ledger, int]:
    n = whole_shares(ledger.cash, price)
    if n == 0:
        return ledger, 0
    return replace(ledger, shares=ledger.shares + n, cash=ledger.cash - n * price), n

def _seed(initial_balance: float, first: PriceObservation) -> _Ledger:
    ledger = _Ledger(cash=initial_balance, contributed=initial_balance)
    if initial_balance > 0:
        ledger, bought = _buy(ledger, first.price)
        if bought:
            log.debug(
                "Initial purchase: %d shares at %.2f for %.2f, remaining cash %.2f",
                bought, first.price, bought * first.price, ledger.cash,
            )
    return ledger

def _step(ledger: _Ledger, obs: PriceObservation, contribution: float) -> _Ledger:
    log.debug("--- %s --- start: %d shares, %.2f cash", obs.display_label, ledger.shares, ledger.cash)

    ledger = replace(ledger, cash=ledger.cash + contribution, contributed=ledger.contributed + contribution)

    if obs.dividend_per_share > 0 and ledger.shares > 0:
        payout = obs.dividend_per_share * ledger.shares
        ledger = replace(ledger, cash=ledger.cash + payout, dividends=ledger.dividends + payout)
        log.debug(
            "  received %.2f in dividends (%.4f x %d shares)",
            payout, obs.dividend_per_share, ledger.shares,
        )

    ledger, bought = _buy(ledger, obs.price)
    if bought:
        log.debug("  bought %d shares at %.2f, remaining cash %.2f", bought, obs.price, ledger.cash)
    else:
        log.debug("  no shares bought at %.2f", obs.price)
    return ledger

def _state(ledger: _Ledger, obs: PriceObservation) -> PortfolioState:
    return PortfolioState(
        period_key=obs.period_key,
        display_label=obs.display_label,
        price=obs.price,
        shares_held=ledger.shares,
        cash_balance=ledger.cash,
        total_contributed=ledger.contributed,
        total_dividends_received=ledger.dividends,
        portfolio_value=ledger.shares * obs.price + ledger.cash,
        timestamp=obs.timestamp,
    )

# ---------------------------
# Simulation
# ---------------------------

def simulate_investment(
    observations: Iterable[PriceObservation],
    contribution: float,
    initial_balance: float = 0.0,
) -> Tuple[PortfolioState, ...]:
    """Monthly whole-share investing with dividend reinvestment.

    Every period adds the contribution, then pays dividends on the shares
    already held, then makes a single purchase of as many whole shares as
    the cash allows. An initial balance buys shares at the first price
    before the first period is processed.
    """
    series = validate_series(observations)
    _check_months(series)
    contribution = _check_amount("contribution", contribution)
    initial_balance = _check_amount("initial balance", initial_balance)

    ledger = _seed(initial_balance, series[0])
    states = []
    for obs in series:
        ledger = _step(ledger, obs, contribution)
        states.append(_state(ledger, obs))

    last = states[-1]
    log.info(
        "Simulated %d months (%s - %s): %d shares, value %.2f, contributed %.2f",
        len(states), states[0].display_label, last.display_label,
        last.shares_held, last.portfolio_value, last.total_contributed,
    )
    return tuple(states)

def summarize(states: Tuple[PortfolioState, ...]) -> InvestmentSummary:
    if not states:
        raise InvalidInputError("no portfolio states to summarize")
    last = states[-1]
    ret = 0.0
    if last.total_contributed > 0:
        ret = (last.portfolio_value / last.total_contributed - 1.0) * 100
    return InvestmentSummary(
        first_label=states[0].display_label,
        last_label=last.display_label,
        price=last.price,
        shares_held=last.shares_held,
        total_contributed=last.total_contributed,
        total_dividends_received=last.total_dividends_received,
        cash_balance=last.cash_balance,
        portfolio_value=last.portfolio_value,
        return_pct=ret,
    )
