#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import logging
import shutil
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import matplotlib.animation as animation
import matplotlib.dates as mdates
from matplotlib.animation import FFMpegWriter
from matplotlib.patches import Rectangle
from matplotlib.ticker import NullLocator
from PIL import Image

from chart_interpolation import DisplayPoint, display_from_states, interpolate_chart_data
from frame_pacer import Frame, pace_frames
from investment_growth import PortfolioState, simulate_investment, summarize
from price_series import PriceObservation, fetch_prices, series_from_csv, trim_to_start
from video_config import VideoConfig

log = logging.getLogger(__name__)

# ---------------------------
# i18n
# ---------------------------

LANGS = {
    "en": {
        "currency": "$",
        "label_value": "Portfolio Value",
        "label_invested": "Total Invested",
        "label_price": "Stock Price",
        "label_input": "Total Input",
        "label_shares": "Shares",
        "label_dividend": "Dividends",
        "info_fetch": "[INFO] Fetching {period} data for {symbol} ({start} .. {end})",
        "info_points": "[INFO] {n} monthly points, {m} chart points",
        "info_render": "[INFO] Rendering {n} frames ({growth} chart + {freeze} final)",
        "err_writer": "ffmpeg not found on PATH. Install it (e.g. `brew install ffmpeg`) to export MP4 videos.",
        "final_results": "Final Results",
        "word_period": "Time period",
        "word_cash": "Cash Balance",
        "word_return": "Return",
    },
    "fr": {
        "currency": "€",
        "label_value": "Valeur du portefeuille",
        "label_invested": "Total investi",
        "label_price": "Prix de l'action",
        "label_input": "Apport total",
        "label_shares": "Parts",
        "label_dividend": "Dividendes",
        "info_fetch": "[INFO] Téléchargement des données {period} pour {symbol} ({start} .. {end})",
        "info_points": "[INFO] {n} points mensuels, {m} points de graphique",
        "info_render": "[INFO] Rendu de {n} images ({growth} graphique + {freeze} finales)",
        "err_writer": "ffmpeg introuvable dans PATH. Installez-le (`brew install ffmpeg`) pour exporter en MP4.",
        "final_results": "Résultats",
        "word_period": "Période",
        "word_cash": "Liquidités",
        "word_return": "Performance",
    },
}

def get_lang(lang_code: str):
    return LANGS.get(lang_code, LANGS["en"])

def format_money(x: float, lang: Optional[dict] = None, decimals: int = 0) -> str:
    symbol = (lang or LANGS["en"])["currency"]
    if decimals:
        return f"{symbol}{x:,.{decimals}f}"
    return f"{symbol}{int(round(x)):,}"

def format_return(value: float, invested: float) -> Tuple[str, str]:
    """Return text and color for the gain/loss row."""
    if invested <= 0:
        return "", "#9FB3C8"
    pct = (value / invested - 1.0) * 100
    if pct >= 0:
        return f"+{pct:.1f}%", "#00FF00"
    return f"{pct:.1f}%", "#FF0000"

# ---------------------------
# Pipeline
# ---------------------------

@dataclass
class VideoData:
    states: Tuple[PortfolioState, ...]
    points: Tuple[DisplayPoint, ...]
    frames: List[Frame]


def build_video_data(
    config: VideoConfig,
    monthly: Sequence[PriceObservation],
    display: Optional[Sequence[PriceObservation]] = None,
) -> VideoData:
    """Simulate, project onto the display granularity and pace the frames."""
    config.validate()
    states = simulate_investment(monthly, config.contribution_amount, config.initial_balance)
    if config.display_granularity == "monthly" or display is None:
        points = display_from_states(states)
    else:
        points = interpolate_chart_data(display, states)
    frames = pace_frames(
        points, config.chart_duration, config.ending_duration, config.frame_rate, states=states
    )
    return VideoData(states, points, frames)

def load_series(period: str, symbol=None, csv_path=None, start=None, end=None):
    """Monthly series plus, when needed, the denser display series.

    The display series is trimmed so it never starts before the first month.
    """
    if csv_path:
        monthly = series_from_csv(csv_path, "monthly", start, end)
        if period == "monthly":
            return monthly, None
        display = series_from_csv(csv_path, period, start, end)
    else:
        monthly = fetch_prices(symbol, start, end, "monthly")
        if period == "monthly":
            return monthly, None
        display = fetch_prices(symbol, start, end, period)
    return monthly, trim_to_start(display, monthly[0].timestamp)

def log_summary(states: Sequence[PortfolioState], lang: Optional[dict] = None):
    lang = lang or get_lang("en")
    s = summarize(states)
    log.info("%s:", lang["final_results"])
    log.info("%s: %s - %s", lang["word_period"], s.first_label, s.last_label)
    log.info("%s: %s", lang["label_price"], format_money(s.price, lang, 2))
    log.info("%s: %s", lang["label_shares"], f"{s.shares_held:,}")
    log.info("%s: %s", lang["label_invested"], format_money(s.total_contributed, lang))
    log.info("%s: %s", lang["label_dividend"], format_money(s.total_dividends_received, lang))
    log.info("%s: %s", lang["word_cash"], format_money(s.cash_balance, lang, 2))
    log.info("%s: %s", lang["label_value"], format_money(s.portfolio_value, lang))
    log.info("%s: %.2f%%", lang["word_return"], s.return_pct)

# ---------------------------
# Rendering helpers
# ---------------------------

BG = "#000000"
FG = "#FFFFFF"
LINE = "#00FF00"

def style_axes(ax):
    ax.set_facecolor(BG)
    ax.tick_params(colors="#D8E1E8", labelsize=14)
    for spine in ax.spines.values():
        spine.set_color("#22303C")
        spine.set_linewidth(1.2)

def date_locators(dates: pd.DatetimeIndex, target_ticks: int = 7):
    span_years = dates[-1].year - dates[0].year + 1
    if span_years <= 1:
        span_months = max(int(dates[-1].to_period("M") - dates[0].to_period("M")) + 1, 1)
        interval = max(1, int(np.ceil(span_months / target_ticks)))
        return mdates.MonthLocator(interval=interval), mdates.DateFormatter("%b"), mdates.DayLocator(interval=7)
    interval = max(1, int(np.ceil(span_years / target_ticks)))
    return mdates.YearLocator(base=interval), mdates.DateFormatter("%Y"), NullLocator()

def load_logo(path: Optional[str]):
    if not path:
        return None
    return np.asarray(Image.open(path).convert("RGBA"))

# ---------------------------
# Animation
# ---------------------------

def make_animation(data: VideoData, config: VideoConfig, outfile):
    """Render every frame descriptor to an MP4 through ffmpeg."""
    lang = get_lang(config.lang)
    if shutil.which("ffmpeg") is None:
        raise RuntimeError(lang["err_writer"])

    # -------- Layout knobs --------
    LOGO_RECT  = [0.30, 0.82, 0.40, 0.15]
    PLOT_RECT  = [0.06, 0.30, 0.88, 0.44]
    TITLE_Y    = 0.80
    INFO_Y     = 0.255
    ROW_GAP    = 0.034
    # --------------------------------

    points = data.points
    dates = pd.DatetimeIndex([p.timestamp for p in points])
    value_series = np.array([p.portfolio_value for p in points], dtype=float)
    invested_series = np.array([p.total_contributed for p in points], dtype=float)

    fig = plt.figure(figsize=(config.width / config.dpi, config.height / config.dpi), dpi=config.dpi)
    fig.patch.set_facecolor(BG)

    logo = load_logo(config.logo_path)
    if logo is not None:
        logo_ax = plt.axes(LOGO_RECT)
        logo_ax.axis("off")
        logo_ax.imshow(logo)

    fig.text(0.50, TITLE_Y, config.title, ha="center", va="top", color=FG, fontsize=30,
             weight="bold", wrap=True)

    ax = plt.axes(PLOT_RECT)
    style_axes(ax)
    ax.yaxis.set_visible(False)
    major, fmt, minor = date_locators(dates)
    ax.xaxis.set_major_locator(major)
    ax.xaxis.set_major_formatter(fmt)
    ax.xaxis.set_minor_locator(minor)
    ax.grid(which="major", axis="y", color=FG, alpha=0.1)

    (value_line,) = ax.plot([], [], lw=4, color=LINE)
    (invest_line,) = ax.plot([], [], lw=2.5, linestyle="--", color=FG)

    overlay = Rectangle((0, 0), 1, 1, transform=ax.transAxes, color=BG, alpha=0.0, zorder=5)
    ax.add_patch(overlay)
    final_text = ax.text(0.5, 0.5, "", transform=ax.transAxes, ha="center", va="center",
                         color=FG, fontsize=54, weight="bold", zorder=6)

    def row(i): return INFO_Y - i * ROW_GAP
    date_text = fig.text(0.50, row(0), "", ha="center", va="center", color=FG, fontsize=18)
    value_text = fig.text(0.50, row(1), "", ha="center", va="center", color=FG, fontsize=24, weight="bold")
    return_text = fig.text(0.50, row(2), "", ha="center", va="center", fontsize=18)
    price_text = fig.text(0.06, row(3), "", ha="left", va="center", color=FG, fontsize=18)
    input_text = fig.text(0.94, row(3), "", ha="right", va="center", color=FG, fontsize=18)
    shares_text = fig.text(0.06, row(4), "", ha="left", va="center", color=FG, fontsize=18)
    dividend_text = fig.text(0.94, row(4), "", ha="right", va="center", color=FG, fontsize=18)

    def update(frame: Frame):
        k = frame.index + 1
        x = dates[:k]
        yv = value_series[:k]
        yi = invested_series[:k]
        value_line.set_data(x, yv)
        invest_line.set_data(x, yi)

        # Chart grows from the left; keep a small pad so a single point still shows
        right = dates[k - 1] if k > 1 else dates[0] + pd.Timedelta(days=1)
        ax.set_xlim(dates[0], right)
        lo = float(min(yv.min(), yi.min()))
        hi = float(max(yv.max(), yi.max()))
        pad = (hi - lo) * 0.10 if hi > lo else max(hi * 0.10, 1.0)
        ax.set_ylim(lo - pad, hi + pad)

        value = frame.portfolio_value
        invested = frame.total_contributed
        overlay.set_alpha(0.7 if frame.is_final else 0.0)
        final_text.set_text(format_money(value, lang) if frame.is_final else "")

        date_text.set_text(frame.label)
        value_text.set_text(f"{lang['label_value']}: {format_money(value, lang)}")
        ret, color = format_return(value, invested)
        return_text.set_text(ret)
        return_text.set_color(color)
        price_text.set_text(f"{lang['label_price']}: {format_money(frame.price, lang, 2)}")
        input_text.set_text(
            f"{lang['label_input']}: {format_money(invested + frame.total_dividends_received, lang)}"
        )
        shares_text.set_text(f"{lang['label_shares']}: {frame.shares_held:,}")
        dividend_text.set_text(f"{lang['label_dividend']}: {format_money(frame.total_dividends_received, lang)}")
        return (value_line, invest_line, overlay, final_text)

    ani = animation.FuncAnimation(
        fig, update, frames=data.frames, blit=False, interval=1000 / config.frame_rate,
        save_count=len(data.frames),
    )

    if not str(outfile).lower().endswith(".mp4"):
        outfile = str(outfile) + ".mp4"
    writer = FFMpegWriter(
        fps=config.frame_rate, codec="libx264", bitrate=8000, extra_args=["-pix_fmt", "yuv420p"]
    )
    try:
        ani.save(outfile, writer=writer, dpi=config.dpi)
    finally:
        plt.close(fig)
    return outfile

def generate_video(config: VideoConfig, outfile, symbol=None, csv_path=None, start=None, end=None):
    lang = get_lang(config.lang)
    print(lang["info_fetch"].format(period=config.display_granularity, symbol=symbol or csv_path,
                                    start=start, end=end))
    monthly, display = load_series(config.display_granularity, symbol, csv_path, start, end)
    data = build_video_data(config, monthly, display)
    print(lang["info_points"].format(n=len(data.states), m=len(data.points)))
    log_summary(data.states, lang)

    freeze = sum(1 for f in data.frames if f.is_final)
    print(lang["info_render"].format(n=len(data.frames), growth=len(data.frames) - freeze, freeze=freeze))
    return make_animation(data, config, outfile)

# ---------------------------
# Main
# ---------------------------

def main(argv=None):
    parser = argparse.ArgumentParser(description="Create TikTok-style videos of a monthly stock investment.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-t", "--ticker", help="Stock ticker symbol (downloaded from Yahoo Finance)")
    source.add_argument("--csv", help="CSV with Date/Close/Dividends columns instead of downloading")
    parser.add_argument("-s", "--start", help="Start date (YYYY-MM-DD)")
    parser.add_argument("-e", "--end", help="End date (YYYY-MM-DD)")
    parser.add_argument("-m", "--monthly", type=float, required=True, help="Monthly investment amount")
    parser.add_argument("-b", "--balance", type=float, default=0.0, help="Initial investment balance")
    parser.add_argument("--title", required=True, help="Video title")
    parser.add_argument("-i", "--image", help="Path to company logo image")
    parser.add_argument("-p", "--period", choices=["daily", "weekly", "monthly"], default="monthly",
                        help="Chart display period (default: monthly)")
    parser.add_argument("--fps", type=int, default=30, help="Frames per second (default 30)")
    parser.add_argument("--chart-sec", type=float, default=20.0, help="Chart animation length in seconds")
    parser.add_argument("--end-sec", type=float, default=3.0, help="Final hold length in seconds")
    parser.add_argument("--lang", choices=["en", "fr"], default="en", help="UI language for overlays (en|fr)")
    parser.add_argument("-o", "--output", default="output.mp4", help="Output video file path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every simulated month")
    args = parser.parse_args(argv)
    if args.ticker and not args.start:
        parser.error("--start is required when downloading with --ticker")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = VideoConfig(
        contribution_amount=args.monthly,
        initial_balance=args.balance,
        chart_duration=args.chart_sec,
        ending_duration=args.end_sec,
        frame_rate=args.fps,
        display_granularity=args.period,
        title=args.title,
        lang=args.lang,
        logo_path=args.image,
    ).validate()

    outfile = generate_video(config, args.output, args.ticker, args.csv, args.start, args.end)
    print(f"[OK] Saved: {outfile}")

if __name__ == "__main__":
    main()
