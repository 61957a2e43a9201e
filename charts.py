"""
Plotly figure for the progress tab.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import plotly.graph_objects as go

from chart_data import METRIC_LABELS, METRICS, TREND_ARROWS, ChartPoint, trend_direction

SERIES_COLORS = {"weight": "#1f77b4", "fat": "#ff7f0e", "muscle": "#2ca02c"}


@dataclass
class VisibleMetrics:
    weight: bool = True
    fat: bool = True
    muscle: bool = True

    def enabled(self) -> List[str]:
        return [m for m in ("weight", "fat", "muscle") if getattr(self, m)]


def _arrow(slope) -> str:
    direction = trend_direction(slope)
    return TREND_ARROWS.get(direction, "") if direction else ""


def make_progress_chart(points: Sequence[ChartPoint], visible: Optional[VisibleMetrics] = None) -> go.Figure:
    visible = visible or VisibleMetrics()
    fig = go.Figure()
    if not points:
        fig.update_layout(title="Progress Overview", template="plotly_white")
        return fig

    x = [p.date_label for p in points]
    for metric in visible.enabled():
        axis = "y" if metric == "weight" else "y2"
        color = SERIES_COLORS[metric]
        label = METRIC_LABELS[metric]
        raw = [getattr(p, METRICS[metric]) for p in points]
        arrows = [_arrow(getattr(p, f"slope_{metric}")) for p in points]

        fig.add_trace(go.Scatter(
            x=x,
            y=raw,
            mode="lines+markers",
            name=label,
            uid=f"trace-{metric}",
            legendgroup=metric,
            yaxis=axis,
            line=dict(color=color, width=2),
            marker=dict(size=6),
            connectgaps=False,
            customdata=arrows,
            hovertemplate=f"{label}: %{{y:.1f}} %{{customdata}}<extra></extra>",
        ))

        trend = [getattr(p, f"trend_{metric}") for p in points]
        if any(v is not None for v in trend):
            fig.add_trace(go.Scatter(
                x=x,
                y=trend,
                mode="lines",
                name=f"{label} Trend",
                uid=f"trace-{metric}-trend",
                legendgroup=metric,
                yaxis=axis,
                line=dict(color=color, dash="dash", width=1.5),
                connectgaps=True,
                showlegend=False,
                hoverinfo="skip",
            ))

    show_right = visible.fat or visible.muscle
    fig.update_layout(
        title="Progress Overview",
        xaxis_title="Date",
        yaxis=dict(title="Weight"),
        yaxis2=dict(title="Percent", overlaying="y", side="right", visible=show_right, showgrid=False),
        hovermode="x unified",
        template="plotly_white",
        uirevision="progress_uirev",
    )
    return fig
