# pyright: reportMissingImports=false, reportMissingModuleSource=false
from __future__ import annotations

import html
from pathlib import Path
from typing import Any, Dict, Optional

import altair as alt
import orjson
import polars as pl

from .state.models import Configuration, format_time_for_api


def _time_label(config: Configuration) -> str:
    value = format_time_for_api(config.start_time)
    if isinstance(value, str):
        return f"{value} left"
    return f"{value} min left"


def build_summary_chart(config: Configuration, frame: pl.DataFrame) -> alt.Chart:
    # Inline values keep the Vega-Lite dict free of a dataframe backend
    data = alt.InlineData(values=frame.to_dicts())
    return (
        alt.Chart(data, title=f"{config.plot_type.label} ({_time_label(config)})")
        .mark_bar()
        .encode(
            x=alt.X("filter:N", title="Game filter", sort=None),
            xOffset=alt.XOffset("year_group:N", sort=None),
            y=alt.Y("win_pct:Q", title="Win %", axis=alt.Axis(format="%"), scale=alt.Scale(domain=[0, 1])),
            color=alt.Color("year_group:N", title="Seasons", sort=None),
            tooltip=[
                alt.Tooltip("seasons:N"),
                alt.Tooltip("filter:N"),
                alt.Tooltip("games:Q"),
                alt.Tooltip("wins:Q"),
                alt.Tooltip("appearances:Q"),
                alt.Tooltip("win_pct:Q", format=".1%"),
            ],
        )
    )


def render_summary_chart(config: Configuration, frame: pl.DataFrame) -> Dict[str, Any]:
    """Vega-Lite spec for a summary frame."""
    return build_summary_chart(config, frame).to_dict()


_VEGA_SCRIPTS = (
    "https://cdn.jsdelivr.net/npm/vega@5",
    "https://cdn.jsdelivr.net/npm/vega-lite@5",
    "https://cdn.jsdelivr.net/npm/vega-embed@6",
)

_PAGE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{title}</title>
{scripts}
  <style>body{{margin:0;font-family:sans-serif}}header{{padding:8px 12px}}#vis{{width:100%;height:90vh}}</style>
</head>
<body>
  <header><strong>{title}</strong>{state_link}</header>
  <div id="vis"></div>
  <script>
    vegaEmbed('#vis', {spec}, {{renderer: 'svg', actions: {{export: true, source: false}}}});
  </script>
</body>
</html>
"""


def save_chart_html(
    chart_spec: Dict[str, Any],
    path: str | Path,
    title: str = "NBA Comeback Calculator",
    query: Optional[str] = None,
) -> Path:
    """Write a Vega-Lite spec as a standalone page; ``query`` adds a link that reopens the calculator state."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    # "</" inside the chart JSON would close the script block early
    spec_json = orjson.dumps(chart_spec).decode().replace("</", "<\\/")
    state_link = ""
    if query:
        state_link = f' <a href="?{html.escape(query)}">{html.escape(query)}</a>'
    page = _PAGE.format(
        title=html.escape(title),
        scripts="\n".join(f'  <script src="{src}"></script>' for src in _VEGA_SCRIPTS),
        state_link=state_link,
        spec=spec_json,
    )
    path.write_text(page, encoding="utf-8")
    return path
