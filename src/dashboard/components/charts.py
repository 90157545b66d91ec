"""Reusable Plotly chart components."""

import plotly.graph_objects as go

from src.data.constants import BPS
from src.protocol.interest_rate import InterestRateModel
from src.protocol.reserve import ReserveListing


RATE_SERIES = (
    ("borrow_rate", "Borrow Rate", "#ef4444"),
    ("supply_rate", "Supply Rate", "#22c55e"),
)


def rate_curve_chart(
    model: InterestRateModel,
    title: str = "Interest Rate Curve",
    n_points: int = 200,
) -> go.Figure:
    """Borrow and supply rate against utilization, with the kink marked.

    Args:
        model: Rate model built from a listing's curve and reserve factor.
        title: Chart title.
        n_points: Number of utilization samples.
    """
    curve = model.rate_curve(n_points) * 100
    kink = model.optimal_utilization * 100

    fig = go.Figure()
    for column, name, color in RATE_SERIES:
        fig.add_trace(
            go.Scatter(
                x=curve["utilization"],
                y=curve[column],
                name=name,
                line=dict(color=color, width=2),
                hovertemplate=f"Utilization: %{{x:.1f}}%<br>{name}: %{{y:.2f}}%<extra></extra>",
            )
        )

    fig.add_vline(
        x=kink,
        line_dash="dash",
        line_color="#6b7280",
        annotation_text=f"Optimal: {kink:.1f}%",
    )
    fig.update_layout(
        title=title,
        xaxis_title="Utilization (%)",
        yaxis_title="Rate (%)",
        hovermode="x unified",
        template="plotly_dark",
        height=450,
    )
    return fig


def risk_parameters_chart(listings: list[ReserveListing]) -> go.Figure:
    """Grouped bars of LTV, liquidation threshold and bonus per asset."""
    symbols = [entry.asset_symbol for entry in listings]
    series = [
        ("LTV", [entry.ltv for entry in listings], "#3b82f6"),
        ("Liq. Threshold", [entry.liq_threshold for entry in listings], "#f59e0b"),
        ("Liq. Bonus", [entry.liq_bonus for entry in listings], "#a855f7"),
    ]

    fig = go.Figure()
    for name, values, color in series:
        fig.add_trace(
            go.Bar(
                x=symbols,
                y=[v / BPS * 100 for v in values],
                name=name,
                marker_color=color,
                hovertemplate=f"{name}: " + "%{y:.2f}%<extra></extra>",
            )
        )

    fig.update_layout(
        title="Risk Parameters",
        barmode="group",
        yaxis_title="Percent (%)",
        template="plotly_dark",
        height=400,
    )

    return fig
