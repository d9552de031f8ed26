import os
import argparse
import logging

from price_series import UpstreamDataError, download_history


def download_stock_data(ticker: str, start=None, end=None, period: str = "max", data_dir: str = "data"):
    """
    Download daily prices and dividends for a ticker and save Date, Close, and Dividends to a CSV.

    The file can be fed back with ``tiktok_dca_animator.py --csv``; monthly
    and weekly series are derived from it there.

    Args:
        ticker (str): Stock ticker (e.g. 'AAPL' for Apple, 'BN.PA' for Danone in Paris).
        start, end: Optional date range (YYYY-MM-DD). When omitted ``period`` is used.
        period (str): Time period for data (default max).
    """
    os.makedirs(data_dir, exist_ok=True)

    if start or end:
        df = download_history(ticker, start, end, "daily")
    else:
        df = download_history(ticker, granularity="daily", period=period)

    df = df.rename(columns={"date": "Date", "close": "Close", "dividend": "Dividends"})
    # Ensure date format YYYY-MM-DD
    df["Date"] = df["Date"].dt.strftime("%Y-%m-%d")

    file_path = os.path.join(data_dir, f"{ticker}.csv")
    df.to_csv(file_path, index=False, float_format="%.6f")
    return file_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Download stock data and save as CSV.")
    parser.add_argument("ticker", type=str, help="Stock ticker (e.g. AAPL, BN.PA)")
    parser.add_argument("--start", help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="End date (YYYY-MM-DD)")
    parser.add_argument("--period", type=str, default="max",
                        help="Data period when no dates are given (default: max). Options: 1y,2y,5y,10y,ytd,max")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        path = download_stock_data(args.ticker, args.start, args.end, args.period)
    except UpstreamDataError as exc:
        print(f"❌ {exc}")
        raise SystemExit(1)
    print(f"✅ Data for {args.ticker} saved to {path}")
