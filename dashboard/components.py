"""
Reusable Streamlit UI components for the XP activity dashboard.
"""

import streamlit as st
import plotly.graph_objects as go
import pandas as pd
from typing import Any, Dict, List, Optional

from xp_analytics.models import Activity, TimeSeries

# ─────────────────────────────────────────────
# COLOR PALETTE
# ─────────────────────────────────────────────

CARD_COLORS = {
    "xp": "#4F8EF7",
    "activities": "#22C55E",
    "avg_xp": "#F59E0B",
    "success_rate": "#A855F7",
    "performance": "#EC4899",
    "time": "#14B8A6",
}

TRANSITION_COLOR = "#F97316"


def inject_css():
    """Card and section styles; one top stripe color per card category."""
    stripes = "\n".join(
        f".card-{name}::before {{ background: {color}; }}" for name, color in CARD_COLORS.items()
    )
    st.markdown(f"""
    <style>
        .xp-card {{
            background: #12172A;
            border: 1px solid #1E2640;
            border-radius: 10px;
            padding: 16px 18px;
            margin-bottom: 12px;
            position: relative;
        }}
        .xp-card::before {{
            content: '';
            position: absolute;
            top: 0; left: 0; right: 0;
            height: 3px;
        }}
        {stripes}
        .card-label {{ font-size: 11px; text-transform: uppercase; color: #6B7494; }}
        .card-value {{ font-size: 28px; font-weight: 700; color: #E8EAF6; }}
        .card-unit, .card-desc {{ font-size: 12px; color: #6B7494; }}
        .section-title {{
            display: block;
            margin: 24px 0 12px 0;
            font-size: 15px;
            font-weight: 700;
            text-transform: uppercase;
        }}
    </style>
    """, unsafe_allow_html=True)


# ─────────────────────────────────────────────
# CARDS AND BADGES
# ─────────────────────────────────────────────

def format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.1f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value) if value not in (None, "") else "-"


def metric_card(label: str, value: Any, unit: str = "", description: str = "", category: str = "xp"):
    st.markdown(
        f'<div class="xp-card card-{category}">'
        f'<div class="card-label">{label}</div>'
        f'<span class="card-value">{format_value(value)}</span> <span class="card-unit">{unit}</span>'
        f'<div class="card-desc">{description}</div>'
        f'</div>',
        unsafe_allow_html=True,
    )


def section_header(title: str, color: str = "#4F8EF7"):
    st.markdown(f'<span class="section-title" style="color: {color};">{title}</span>', unsafe_allow_html=True)


def source_status_badge(label: str, using_sample: bool, idle_text: str = "No log parsed · showing sample data"):
    """Green pill for a loaded source, red pill otherwise."""
    fg, bg = ("#FCA5A5", "#2D0A0A") if using_sample else ("#4ADE80", "#052E16")
    text = idle_text if using_sample else f"Loaded · {label[:40]}"
    st.markdown(
        f'<span style="background:{bg};color:{fg};border:1px solid {fg};border-radius:20px;'
        f'padding:3px 12px;font-size:12px;">{text}</span>',
        unsafe_allow_html=True,
    )


# ─────────────────────────────────────────────
# CHARTS
# ─────────────────────────────────────────────

_AXIS = dict(gridcolor="#1E2235", zeroline=False, tickfont=dict(size=10))

PLOTLY_LAYOUT = dict(
    paper_bgcolor="rgba(0,0,0,0)",
    plot_bgcolor="rgba(0,0,0,0)",
    font=dict(color="#8B92B0", size=11),
    margin=dict(l=10, r=10, t=30, b=30),
    xaxis=_AXIS,
    yaxis=_AXIS,
    showlegend=False,
)


def _fill(color: str) -> str:
    return f"rgba({int(color[1:3], 16)},{int(color[3:5], 16)},{int(color[5:7], 16)},0.1)"


def series_figure(series: TimeSeries, title: str = "", color: str = "#4F8EF7",
                  height: int = 220, smooth: bool = False) -> go.Figure:
    """Line chart of a TimeSeries with a dashed marker on each course transition."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=series.labels, y=series.values,
        mode="lines",
        line=dict(color=color, width=2, shape="spline" if smooth else "linear"),
        fill="tozeroy",
        fillcolor=_fill(color),
    ))
    for date_key, transition in series.transitions.items():
        fig.add_vline(x=date_key, line=dict(color=TRANSITION_COLOR, width=1, dash="dash"))
        fig.add_annotation(
            x=date_key, y=1, yref="paper", showarrow=False,
            text=f"{transition.from_course} → {transition.to_course}",
            font=dict(size=9, color=TRANSITION_COLOR), xanchor="left",
        )
    layout = {**PLOTLY_LAYOUT, "height": height, "title": dict(text=title, font=dict(size=12, color="#C0C8E8"))}
    fig.update_layout(**layout)
    return fig


def series_chart(series: TimeSeries, title: str = "", color: str = "#4F8EF7",
                 height: int = 220, smooth: bool = False):
    if not len(series):
        st.caption("No time series data")
        return
    fig = series_figure(series, title=title, color=color, height=height, smooth=smooth)
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def bar_chart(labels: List, values: List, title: str = "", color: str = "#4F8EF7", height: int = 200,
              colors: Optional[List[str]] = None):
    if not labels or not values:
        st.caption("No data")
        return
    fig = go.Figure(go.Bar(x=labels, y=values, marker_color=colors or color, marker_line_width=0))
    layout = {**PLOTLY_LAYOUT, "height": height, "title": dict(text=title, font=dict(size=12, color="#C0C8E8"))}
    fig.update_layout(**layout)
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def heatmap_hour(values: List, title: str = "", height: int = 220):
    """XP by hour of day."""
    if not values or not any(values):
        st.caption("No data")
        return
    fig = go.Figure(go.Bar(
        x=[f"{h:02d}:00" for h in range(len(values))],
        y=values,
        marker=dict(
            color=values,
            colorscale=[[0, "#12172A"], [0.3, "#1E3A5F"], [0.7, "#2563EB"], [1, "#60A5FA"]],
            line=dict(width=0),
        ),
    ))
    layout = {**PLOTLY_LAYOUT, "height": height, "title": dict(text=title, font=dict(size=12, color="#C0C8E8"))}
    fig.update_layout(**layout)
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


# ─────────────────────────────────────────────
# SUMMARY WIDGETS
# ─────────────────────────────────────────────

def kpi_summary_bar(stats: Dict):
    """Top-level KPI strip from StatisticsSnapshot.to_dict()."""
    items = [
        ("Total XP", stats["total_xp"], ""),
        ("Activities", stats["total_activities"], ""),
        ("XP attainment", stats["success_metrics"]["success_rate"], "%"),
        ("Avg XP / day", stats["avg_xp_per_day"], ""),
    ]
    cols = st.columns(len(items))
    for col, (label, value, unit) in zip(cols, items):
        with col:
            col.metric(label=label, value=f"{format_value(value)}{unit}")


def activities_table(activities: List[Activity]):
    if not activities:
        st.info("No activities in this period.")
        return
    df = pd.DataFrame([a.to_dict() for a in activities])
    st.dataframe(df, use_container_width=True, hide_index=True)
