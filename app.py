"""Streamlit application for generating TikTok-style monthly investment videos.

This interface wraps the pipeline from ``tiktok_dca_animator`` and lets users
choose the price source, monthly contribution, and rendering options before
rendering the MP4 animation. A chart preview of the simulated portfolio is
shown before rendering, and the finished video is displayed inline.
"""
from __future__ import annotations

import re
import tempfile
from datetime import date
from pathlib import Path
from typing import Optional, Sequence, Tuple

import pandas as pd
import streamlit as st

from chart_interpolation import DisplayPoint
from investment_growth import summarize
from price_series import InvalidInputError, UpstreamDataError
from tiktok_dca_animator import (
    build_video_data,
    format_money,
    get_lang,
    load_series,
    make_animation,
)
from video_config import VideoConfig

DATA_DIR = Path("data")


def _resolve_csv_path(option: str, uploaded_file) -> Optional[str]:
    """Return the path to the CSV chosen by the user."""
    if option == "Sample dataset":
        sample_files = sorted(DATA_DIR.glob("*.csv"))
        if sample_files:
            return str(sample_files[0])
        st.warning("No sample CSV file was found in the data/ folder.")
        return None

    if uploaded_file is None:
        st.info("Upload a CSV file with Date, Close and Dividends columns to get started.")
        return None

    return _save_upload(uploaded_file, ".csv")


@st.cache_data(show_spinner=False)
def _save_bytes(name: str, data: bytes, default_suffix: str) -> str:
    suffix = Path(name).suffix or default_suffix
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        tmp.write(data)
        return tmp.name


def _save_upload(uploaded_file, default_suffix: str) -> str:
    """Write an upload to disk once; reruns with the same file reuse the path."""
    return _save_bytes(uploaded_file.name, uploaded_file.getvalue(), default_suffix)


def _slugify_name(name: str) -> str:
    """Return a filesystem-safe slug for ``name`` suitable for downloads."""
    if not name:
        return "video"
    slug = re.sub(r"\s+", "_", name.strip())
    slug = re.sub(r"[^A-Za-z0-9_\-]", "_", slug)
    slug = re.sub(r"_+", "_", slug).strip("_-")
    return slug or "video"


def _points_frame(points: Sequence[DisplayPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "date": [p.timestamp for p in points],
            "Portfolio value": [p.portfolio_value for p in points],
            "Total invested": [p.total_contributed for p in points],
        }
    ).set_index("date")


@st.cache_data(show_spinner=False)
def _load_series(
    period: str, ticker: Optional[str], csv_path: Optional[str], start: date, end: date
) -> Tuple[tuple, Optional[tuple]]:
    """Wrapper around :func:`load_series` with Streamlit caching."""
    return load_series(period, ticker, csv_path, str(start), str(end))


def main() -> None:
    st.set_page_config(page_title="TikTok Stock Video Maker", layout="wide")
    st.title("🎬 TikTok Stock Video Maker")
    st.write(
        "Show what a monthly investment in one stock would have grown into, "
        "buying whole shares and reinvesting dividends."
    )

    st.sidebar.header("Data source")
    source = st.sidebar.radio(
        "Select data source",
        options=["Yahoo Finance", "Sample dataset", "Upload CSV"],
    )
    ticker: Optional[str] = None
    csv_path: Optional[str] = None
    if source == "Yahoo Finance":
        ticker = st.sidebar.text_input("Ticker", value="AAPL").strip() or None
    else:
        uploaded_csv = None
        if source == "Upload CSV":
            uploaded_csv = st.sidebar.file_uploader("Upload CSV", type=["csv"], accept_multiple_files=False)
        csv_path = _resolve_csv_path(source, uploaded_csv)

    st.sidebar.header("Investment")
    today = date.today()
    start_date = st.sidebar.date_input("Start date", value=date(today.year - 10, 1, 1))
    end_date = st.sidebar.date_input("End date", value=today)
    monthly = st.sidebar.number_input("Monthly investment", min_value=0.0, value=500.0, step=50.0)
    balance = st.sidebar.number_input("Initial balance", min_value=0.0, value=0.0, step=100.0)

    st.sidebar.header("Video settings")
    title = st.sidebar.text_input("Video title", value="What if you invested every month?")
    period = st.sidebar.selectbox(
        "Chart period", options=["monthly", "weekly", "daily"], format_func=lambda x: x.capitalize()
    )
    fps = st.sidebar.slider("FPS", min_value=15, max_value=60, value=30)
    chart_sec = st.sidebar.slider("Chart animation (s)", min_value=5.0, max_value=60.0, value=20.0, step=1.0)
    end_sec = st.sidebar.slider("Hold final value (s)", min_value=0.5, max_value=10.0, value=3.0, step=0.5)
    lang_code = st.sidebar.selectbox("Language", options=["en", "fr"], index=0)
    logo_file = st.sidebar.file_uploader("Company logo (optional)", type=["png", "jpg", "jpeg"])

    generate_btn = st.sidebar.button("Generate video", type="primary")

    if start_date >= end_date:
        st.error("Start date must be before end date.")
        return
    if ticker is None and csv_path is None:
        return

    config = VideoConfig(
        contribution_amount=monthly,
        initial_balance=balance,
        chart_duration=chart_sec,
        ending_duration=end_sec,
        frame_rate=fps,
        display_granularity=period,
        title=title,
        lang=lang_code,
        logo_path=_save_upload(logo_file, ".png") if logo_file is not None else None,
    )

    try:
        monthly_series, display_series = _load_series(period, ticker, csv_path, start_date, end_date)
        data = build_video_data(config, monthly_series, display_series)
    except (InvalidInputError, UpstreamDataError) as exc:
        st.error(f"Failed to prepare data: {exc}")
        return

    lang = get_lang(lang_code)
    summary = summarize(data.states)
    cols = st.columns(4)
    cols[0].metric(lang["label_value"], format_money(summary.portfolio_value, lang))
    cols[1].metric(lang["label_invested"], format_money(summary.total_contributed, lang))
    cols[2].metric(lang["label_dividend"], format_money(summary.total_dividends_received, lang))
    cols[3].metric(lang["label_shares"], f"{summary.shares_held:,}", f"{summary.return_pct:+.1f}%")

    st.subheader(f"Portfolio preview — {summary.first_label} to {summary.last_label}")
    st.line_chart(_points_frame(data.points), height=320, use_container_width=True)
    st.caption(f"{len(data.points):,} chart points paced into {len(data.frames):,} frames.")

    if not generate_btn:
        return

    with tempfile.NamedTemporaryFile(delete=False, suffix=".mp4") as tmpfile:
        output_path = Path(tmpfile.name)
    try:
        with st.spinner("Rendering video..."):
            make_animation(data, config, output_path)
    except RuntimeError as exc:
        st.error(f"Failed to render video: {exc}")
        return

    name = ticker or Path(csv_path).stem
    download_filename = f"{_slugify_name(name)}_monthly_{start_date.isoformat()}.mp4"
    st.success(f"Video created: {download_filename}")
    st.video(str(output_path))
    st.download_button(
        "Download video",
        data=output_path.read_bytes(),
        file_name=download_filename,
        mime="video/mp4",
    )


if __name__ == "__main__":
    main()
