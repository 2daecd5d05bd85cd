"""Plotly figures for the Hisebi dashboard.

Each function takes a chart series produced by :mod:`hisebi.aggregation`
and returns a `plotly.graph_objects.Figure` that Streamlit renders via
``st.plotly_chart``. The series are never empty, so neither are the
figures; placeholder points are drawn in a neutral colour without a
hover value.

The message boxes are HTML snippets for ``st.markdown`` with
``unsafe_allow_html``. Any text that came from the user or from the
model is escaped before it is placed in them.
"""

from __future__ import annotations

import html
from typing import Sequence

import plotly.graph_objects as go

from hisebi.models.categories import PLACEHOLDER_COLOR
from hisebi.models.forms import ValidationResult
from hisebi.models.ledger import TransactionType
from hisebi.models.views import CategorySlice, TrendPoint


INCOME_COLOR = "#10b981"
EXPENSE_COLOR = "#f43f5e"


def create_category_donut(
    slices: Sequence[CategorySlice],
    title: str | None = None,
    currency_symbol: str = "৳",
) -> go.Figure:
    """Donut chart of expenses per category.

    Parameters
    ----------
    slices : sequence of CategorySlice
        Output of :func:`hisebi.aggregation.group_expenses_by_category`.
    title : str, optional
        Chart title.
    currency_symbol : str
        Prefix for hover values.
    """
    placeholder = len(slices) == 1 and slices[0].is_placeholder

    fig = go.Figure(
        go.Pie(
            labels=[s.name for s in slices],
            values=[s.value for s in slices],
            hole=0.6,
            marker=dict(colors=[s.color or PLACEHOLDER_COLOR for s in slices]),
            textinfo="none" if placeholder else "percent",
            hoverinfo="skip" if placeholder else "label+value",
            hovertemplate=None if placeholder else (
                f"%{{label}}: {currency_symbol}%{{value:,.0f}}<extra></extra>"
            ),
            sort=False,
        )
    )
    fig.update_layout(
        title=title or "Expenses by Category",
        showlegend=not placeholder,
        margin=dict(t=50, b=10, l=10, r=10),
    )
    return fig


def create_trend_bar_chart(
    points: Sequence[TrendPoint],
    title: str | None = None,
    currency_symbol: str = "৳",
) -> go.Figure:
    """Bar chart of the most recent transactions, oldest on the left.

    Income bars are green and expense bars red. Bars are positioned by
    index because several transactions can share a date label.
    """
    positions = list(range(len(points)))
    colors = [
        INCOME_COLOR if p.kind == TransactionType.INCOME.value else EXPENSE_COLOR
        for p in points
    ]

    fig = go.Figure(
        go.Bar(
            x=positions,
            y=[p.amount for p in points],
            marker_color=colors,
            customdata=[p.kind for p in points],
            hovertemplate=f"%{{customdata}}: {currency_symbol}%{{y:,.0f}}<extra></extra>",
        )
    )
    fig.update_layout(
        title=title or "Recent Transactions",
        xaxis=dict(
            tickmode="array",
            tickvals=positions,
            ticktext=[p.date for p in points],
        ),
        yaxis_title=f"Amount ({currency_symbol})",
        bargap=0.4,
        margin=dict(t=50, b=10, l=10, r=10),
    )
    return fig


def rejection_box_html(result: ValidationResult) -> str:
    """Error box listing the error-level issues of a rejected entry."""
    items = []
    for issue in result.issues:
        if issue.severity != "error":
            continue
        item = html.escape(issue.message)
        if issue.suggested_fix:
            item += f" <em>({html.escape(issue.suggested_fix)})</em>"
        items.append(f"<li>{item}</li>")
    return f"""
    <div class="error-box">
        <h4>❌ Please fix the following</h4>
        <ul>{"".join(items)}</ul>
    </div>
    """


def insight_alert_html(alert: str, is_fallback: bool = False) -> str:
    # Fallback alerts are advisory, real ones are warnings
    css_class = "info-box" if is_fallback else "warning-box"
    return f"""
    <div class="{css_class}">
        <p>{html.escape(alert)}</p>
    </div>
    """
