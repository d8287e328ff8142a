import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from .config import AGE_BAND, AGE_BAND_ORDER, RACE_GROUP, RACE_ORDER, SEX, SEX_ORDER


# ============================================================
# Configuration / constants
# ============================================================

DEFAULT_RACE_COLORS: dict[str, str] = {
    "White": "#1f77b4",
    "Asian": "#ff7f0e",
    "Mixed_race": "#2ca02c",
    "Hispanic": "#d62728",
    "Black_hispanic": "#9467bd",
    "Black": "#8c564b",
    "Native_american": "#e377c2",
    "Other": "#7f7f7f",
    "Unclassified": "#c7c7c7",
}

HOVER_TEMPLATE = (
    "Sex: %{customdata[0]}<br>"
    "Age: %{x}<br>"
    "Race/ethnicity: %{customdata[1]}<br>"
    "Share of population: %{y:.2f}%<extra></extra>"
)


# ============================================================
# Main plotting function
# ============================================================


def create_matrix_plot(
    df: pd.DataFrame,
    *,
    value_col: str = "share_est",
    title: str = "Population share by sex, age and race/ethnicity",
    race_colors: dict[str, str] | None = None,
) -> go.Figure:
    """
    Stacked bar chart of a sex x age x race aggregate, one subplot per sex.

    Parameters
    ----------
    df : pd.DataFrame
        Long-format aggregate with columns 'sex', 'age_band', 'race_group'
        and value_col (output of ``aggregate_shares``).
    value_col : str, default "share_est"
        Column used for the bar heights.
    title : str
        Figure title.
    race_colors : dict[str, str] | None, default None
        Optional mapping of race group -> hex color. Overrides defaults.

    Returns
    -------
    go.Figure
        A Plotly Figure; empty when df has no plottable rows.
    """
    df_clean = df.dropna(subset=[SEX, AGE_BAND, RACE_GROUP, value_col])
    sexes = [sex for sex in SEX_ORDER if sex in set(df_clean[SEX])]

    if not sexes:
        return go.Figure()

    palette = {**DEFAULT_RACE_COLORS, **(race_colors or {})}
    races = [race for race in RACE_ORDER if race in set(df_clean[RACE_GROUP])]

    fig = make_subplots(
        rows=len(sexes),
        cols=1,
        shared_xaxes=True,
        subplot_titles=[f"<b>{sex}</b>" for sex in sexes],
        vertical_spacing=0.08,
    )

    in_legend: set[str] = set()
    for i, sex in enumerate(sexes, start=1):
        df_sex = df_clean[df_clean[SEX] == sex]

        for race in races:
            sub = (
                df_sex[df_sex[RACE_GROUP] == race]
                .set_index(AGE_BAND)[value_col]
                .reindex(AGE_BAND_ORDER)
                .dropna()
            )
            if sub.empty:
                continue

            fig.add_trace(
                go.Bar(
                    x=list(sub.index),
                    y=sub.to_list(),
                    name=race,
                    legendgroup=race,
                    marker=dict(color=palette.get(race)),
                    showlegend=race not in in_legend,
                    hovertemplate=HOVER_TEMPLATE,
                    customdata=[[sex, race]] * len(sub),
                ),
                row=i,
                col=1,
            )
            in_legend.add(race)

        fig.update_xaxes(
            title_text="Age band",
            categoryorder="array",
            categoryarray=AGE_BAND_ORDER,
            row=i,
            col=1,
        )
        fig.update_yaxes(title_text="Share of population (%)", row=i, col=1)

    fig.update_layout(
        title=title,
        barmode="stack",
        height=450 * len(sexes),
        width=1000,
        legend=dict(title="Race/ethnicity", bgcolor="#f9f9f9"),
        plot_bgcolor="#f5f7fb",
    )
    return fig
