"""
XP Activity Log Dashboard
Run with: streamlit run dashboard/app.py
"""

import sys
import logging
import requests
from pathlib import Path
from typing import Dict, List, Tuple

import streamlit as st
import yaml

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from xp_analytics.cache import cache
from xp_analytics.calculator import StatisticsCalculator
from xp_analytics.log_parser import DEFAULT_COURSE_PATTERN, LogGrammar, LogParser
from xp_analytics.models import Activity
from xp_analytics.samples import generate_sample_activities
from xp_analytics.series import SeriesBuilder, downsample
from xp_analytics.text_client import DEFAULT_DOCUMENT, TextSourceClient, default_data_file
from dashboard.components import (
    CARD_COLORS,
    activities_table,
    bar_chart,
    heatmap_hour,
    inject_css,
    kpi_summary_bar,
    metric_card,
    section_header,
    series_chart,
    source_status_badge,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="XP Activity Dashboard",
    layout="wide",
    initial_sidebar_state="expanded",
)

inject_css()


@st.cache_resource
def load_config() -> Dict:
    config_path = ROOT / "config" / "dashboard.yaml"
    with open(config_path, "r") as f:
        return yaml.safe_load(f)


config = load_config()
cache.ttl = config.get("cache", {}).get("ttl_seconds", cache.ttl)
parser = LogParser(LogGrammar(config.get("parser", {}).get("course_pattern", DEFAULT_COURSE_PATTERN)))


def parse_text(text: str) -> List[Activity]:
    return cache.parsed(text, parser)


def load_activities(source: str, document: str, uploaded) -> Tuple[List[Activity], str]:
    """Parsed activities and a label for the source; empty when nothing parsed."""
    if source == "Upload text file" and uploaded is not None:
        text = uploaded.getvalue().decode("utf-8", errors="replace")
        return parse_text(text), uploaded.name

    if source == "Extraction service":
        client = TextSourceClient()
        try:
            text = client.fetch_text(document)
        except requests.exceptions.ReadTimeout as e:
            st.error("Extraction service timed out.")
            st.caption(f"Technical details: {e}")
            return [], ""
        except (requests.RequestException, ValueError) as e:
            st.error(f"Extraction service error: {e}")
            return [], ""
        return parse_text(text), f"{client.endpoint}/{document}"

    if source == "Local file":
        path = default_data_file()
        if path is None:
            st.warning("Set XP_DATA_FILE to an extracted .txt log to use a local file.")
            return [], ""
        return parse_text(TextSourceClient.load_file(path)), path.name

    return [], ""


# ─────────────────────────────────────────────────────────────────────────────
# SIDEBAR
# ─────────────────────────────────────────────────────────────────────────────

with st.sidebar:
    st.markdown("""
    <div style="margin-bottom:20px;padding-bottom:16px;border-bottom:1px solid #1E2235;">
        <div style="font-size:16px;font-weight:700;color:#E8EAF6;">XP Dashboard</div>
        <div style="font-size:11px;color:#4A5068;">Learning activity log analytics</div>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("#### Data source")
    source = st.radio(
        "Source",
        ["Sample data", "Upload text file", "Local file", "Extraction service"],
        index=2 if default_data_file() else 0,
        label_visibility="collapsed",
    )
    uploaded = None
    document = DEFAULT_DOCUMENT
    if source == "Upload text file":
        uploaded = st.file_uploader("Extracted log text", type=["txt"])
    elif source == "Extraction service":
        source_info = TextSourceClient().get_source_info()
        source_status_badge(source_info["endpoint"] or "no endpoint set", not source_info["connected"],
                            idle_text="Extraction service unreachable")
        st.caption(f"Auth: {source_info['auth']}")
        document = st.text_input("Document", value=DEFAULT_DOCUMENT)

    st.divider()

    st.markdown("#### Period")
    periods = config.get("periods", {"all": "All time"})
    period = st.selectbox(
        "Period",
        options=list(periods.keys()),
        format_func=lambda p: periods[p],
        label_visibility="collapsed",
    )

    st.divider()

    st.markdown("#### Cache")
    cache_stats = cache.stats()
    st.caption(f"{cache_stats['live_entries']} parsed logs cached · {cache_stats['hits']} hits · "
               f"TTL {cache_stats['ttl_seconds']}s")
    if st.button("Clear cache & refresh", use_container_width=True):
        cache.clear()
        st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# MAIN: LOAD DATA
# ─────────────────────────────────────────────────────────────────────────────

activities, source_label = load_activities(source, document, uploaded)
using_sample = not activities
if using_sample:
    activities = generate_sample_activities()
    source_label = "sample data"

calculator = StatisticsCalculator(activities).filter_by_period(period)
snapshot = calculator.calculate_stats()
stats = snapshot.to_dict()
builder = SeriesBuilder(snapshot)

# ─────────────────────────────────────────────────────────────────────────────
# HEADER
# ─────────────────────────────────────────────────────────────────────────────

col_title, col_status = st.columns([3, 1])
with col_title:
    st.markdown("""
    <div style="margin-bottom: 4px;">
        <span style="font-size: 28px; font-weight: 800; color: #E8EAF6;">Learning Progress</span>
        <span style="font-size: 14px; color: #4A5068; margin-left: 12px;">XP Activity Log</span>
    </div>
    """, unsafe_allow_html=True)
    st.caption(f"Period: {periods[period]} · {snapshot.total_activities:,} activities · "
               f"{len(snapshot.daily_stats)} active days")

with col_status:
    st.markdown("<div style='margin-top:14px;text-align:right;'>", unsafe_allow_html=True)
    source_status_badge(source_label, using_sample)
    st.markdown("</div>", unsafe_allow_html=True)

st.divider()

kpi_summary_bar(stats)

st.divider()

tab_dash, tab_raw = st.tabs(["Dashboard", "Activities"])

# ─────────────────────────────────────────────────────────────────────────────
# TAB 1: DASHBOARD
# ─────────────────────────────────────────────────────────────────────────────

with tab_dash:
    if snapshot.is_empty:
        st.info("No activities in this period. Pick a longer period in the sidebar.")

    section_header("Trends", color=CARD_COLORS["xp"])
    trend_meta = config.get("trends", {})
    max_points = config.get("charts", {}).get("max_points", 0)
    metrics = [m for m in SeriesBuilder.METRICS if m in trend_meta]
    for row_start in range(0, len(metrics), 2):
        cols = st.columns(2)
        for col, metric in zip(cols, metrics[row_start: row_start + 2]):
            meta = trend_meta[metric]
            series = downsample(builder.build(metric, period), max_points)
            with col:
                title = meta["week_label"] if period == "week" else meta["label"]
                series_chart(series, title=title, color=meta.get("color", CARD_COLORS[metric]),
                             smooth=period == "week")

    section_header("Activity types", color=CARD_COLORS["activities"])
    categories = config.get("categories", {})
    counts = stats["activity_counts"]
    cols = st.columns(len(counts))
    for col, (key, count) in zip(cols, counts.items()):
        with col:
            metric_card(categories.get(key, {}).get("label", key.title()), count, category="activities")

    success = stats["success_metrics"]
    col1, col2, col3 = st.columns(3)
    with col1:
        metric_card("Above target", success["perfect_count"], description="Earned more than base XP",
                    category="success_rate")
    with col2:
        metric_card("Passed", success["pass_count"], description="Earned up to base XP",
                    category="success_rate")
    with col3:
        metric_card("No XP", success["fail_count"], description="Nothing earned",
                    category="success_rate")

    section_header("Best performance", color=CARD_COLORS["performance"])
    best = stats["best_performance"]
    weekdays = stats["weekday_stats"]
    time_stats = stats["time_analysis"]
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Best day", best["best_day_xp"], unit="XP", description=best["best_day_date"],
                    category="performance")
    with col2:
        metric_card("Best accuracy", best["best_accuracy"], unit="%", description=best["best_accuracy_date"],
                    category="performance")
    with col3:
        metric_card("Best weekday", weekdays["best_weekday"],
                    description=f"{weekdays['best_weekday_avg']} XP per activity", category="time")
    with col4:
        metric_card("Most productive hour", time_stats["most_productive_hour"],
                    description=f"{time_stats['max_hourly_xp']} XP", category="time")

    col1, col2 = st.columns(2)
    with col1:
        last_14 = stats["last_14_days"]
        bar_chart([d["label"] for d in last_14], [d["xp"] for d in last_14],
                  title="XP, last 14 days", color=CARD_COLORS["xp"])
    with col2:
        heatmap_hour(list(time_stats["hourly_xp"]), title="XP by hour of day")

# ─────────────────────────────────────────────────────────────────────────────
# TAB 2: RAW ACTIVITIES
# ─────────────────────────────────────────────────────────────────────────────

with tab_raw:
    st.caption(f"Source: {source_label}")
    activities_table(list(snapshot.activities))
