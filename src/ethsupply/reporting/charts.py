"""Chart generation using Plotly."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

import plotly.graph_objects as go

from ..engine.equilibrium import EquilibriumResult
from ..engine.projection import ProjectedSeries
from ..engine.series import Series

THEME = {
    "text": "#e8eaed",
    "text_secondary": "#9aa0a6",
    "grid": "rgba(30, 33, 36, 0.8)",
    "supply": "#00d4ff",
    "staked": "#ffab00",
    "staked_fill": "rgba(255, 171, 0, 0.25)",
    "contract": "#ff5252",
    "contract_fill": "rgba(255, 82, 82, 0.25)",
    "addresses": "#00e676",
    "addresses_fill": "rgba(0, 230, 118, 0.25)",
}

# (date, title, subtitle)
Marker = Tuple[datetime, str, str]

DEFAULT_MARKERS: List[Marker] = [
    (datetime(2015, 7, 31, tzinfo=timezone.utc), "Genesis", "5 ETH/block"),
    (datetime(2017, 10, 16, tzinfo=timezone.utc), "Byzantium", "3 ETH/block"),
    (datetime(2019, 2, 27, tzinfo=timezone.utc), "Constantinople", "2 ETH/block"),
    (datetime(2020, 12, 1, tzinfo=timezone.utc), "Phase 0", "PoS issuance"),
    (datetime(2021, 8, 4, tzinfo=timezone.utc), "London", "EIP-1559"),
]


def apply_dark_layout(fig: go.Figure, title: str, x_title: str, y_title: str, showlegend: bool = True) -> None:
    """Apply dark theme layout for charts."""
    fig.update_layout(
        title={
            "text": title,
            "x": 0,
            "xanchor": "left",
            "font": {"size": 11, "color": THEME["text_secondary"]}
        },
        xaxis_title=x_title,
        yaxis_title=y_title,
        hovermode="x unified",
        template="plotly_dark",
        height=340,
        margin=dict(l=50, r=20, t=40, b=40),
        showlegend=showlegend,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0),
        plot_bgcolor="rgba(8, 9, 10, 1)",
        paper_bgcolor="rgba(8, 9, 10, 1)",
        font={"color": THEME["text"], "size": 11},
        xaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
        yaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
    )


def _xy(series: Series):
    return [p.timestamp for p in series], [p.value for p in series]


def _add_stack(fig: go.Figure, series: Series, name: str, color: str, fill: str,
               group: str, projected: bool) -> None:
    x, y = _xy(series)
    fig.add_trace(go.Scatter(
        x=x,
        y=y,
        name=name,
        mode='lines',
        stackgroup=group,
        line=dict(color=color, width=1.5, dash='dash' if projected else 'solid'),
        fillcolor=fill,
        showlegend=not projected,
    ))


def create_supply_projection_chart(
    projected: ProjectedSeries,
    markers: Optional[List[Marker]] = None,
    transition_date: Optional[datetime] = None
) -> go.Figure:
    """
    Create the supply breakdown chart: staked, in contracts and in addresses
    stacked, with the projection dashed after the history.

    Args:
        projected: Projector output
        markers: Event markers (defaults to DEFAULT_MARKERS)
        transition_date: Adds a "Merge" marker when given

    Returns:
        Plotly figure
    """
    fig = go.Figure()

    parts = [
        ("staked", "Staking", "staked", "staked_fill"),
        ("in_contract", "In contracts", "contract", "contract_fill"),
        ("in_addresses", "In addresses", "addresses", "addresses_fill"),
    ]
    for attr, name, color, fill in parts:
        _add_stack(fig, getattr(projected.historical, attr), name,
                   THEME[color], THEME[fill], "historical", projected=False)
    for attr, name, color, fill in parts:
        _add_stack(fig, getattr(projected, attr), f"{name} (projected)",
                   THEME[color], THEME[fill], "projected", projected=True)

    x, y = _xy(projected.historical.supply)
    fig.add_trace(go.Scatter(
        x=x, y=y, name='Total supply', mode='lines',
        line=dict(color=THEME["supply"], width=2)
    ))
    x, y = _xy(projected.supply)
    fig.add_trace(go.Scatter(
        x=x, y=y, name='Total supply (projected)', mode='lines', showlegend=False,
        line=dict(color=THEME["supply"], width=2, dash='dash')
    ))

    events = list(DEFAULT_MARKERS if markers is None else markers)
    if transition_date is not None:
        events.append((transition_date, "Merge", "PoW removal"))
    for date, title, subtitle in events:
        fig.add_vline(x=date, line=dict(color=THEME["grid"], width=1, dash='dot'))
        fig.add_annotation(
            x=date, y=1, yref='paper', showarrow=False,
            text=f"{title}<br>{subtitle}", font=dict(size=9, color=THEME["text_secondary"])
        )

    if projected.peak_supply is not None:
        fig.add_annotation(
            x=projected.peak_supply.timestamp,
            y=projected.peak_supply.value,
            text=f"Peak supply<br>{projected.peak_supply.value / 1e6:.1f}M ETH",
            showarrow=True,
            arrowhead=2,
        )

    apply_dark_layout(fig, "ETH Supply", "Date", "ETH")
    return fig


def create_equilibrium_chart(result: EquilibriumResult) -> go.Figure:
    """Create supply-to-equilibrium chart with the equilibrium level marked."""
    x, y = _xy(result.series)

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=x,
        y=y,
        name='Supply',
        mode='lines',
        line=dict(color=THEME["supply"], width=2),
        fill='tozeroy',
        fillcolor="rgba(0, 212, 255, 0.12)"
    ))
    fig.add_hline(
        y=result.supply_equilibrium,
        line=dict(color=THEME["staked"], width=1, dash='dash'),
        annotation_text=f"Equilibrium {result.supply_equilibrium / 1e6:.1f}M ETH",
    )
    apply_dark_layout(fig, "Supply Equilibrium", "Year", "ETH", showlegend=False)

    return fig
