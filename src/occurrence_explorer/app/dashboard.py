"""
Occurrence Explorer Dash app (config-driven).

Reads its inputs from config/settings.yaml:
- paths.occurrences_csv
- paths.species_csv
- paths.regions_gpkg

The enriched records are built once in `create_app` and held in a
`DashboardData` context shared by every callback. A single callback turns the
species / year-range controls into a filtered frame and re-renders the map,
table and bar chart from it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import dash
import dash_bootstrap_components as dbc
import geopandas as gpd
import plotly.graph_objects as go
from dash import Dash, Input, Output, State, dash_table, dcc, html

from occurrence_explorer.filtering import ALL_SPECIES, filter_records
from occurrence_explorer.paths import default_year_range
from occurrence_explorer.pipeline.enrich import build_enriched
from occurrence_explorer.pipeline.preflight import preflight
from occurrence_explorer.app.views import (
    filtered_export_frame,
    regions_center,
    regions_zoom,
    render_chart,
    render_map,
    render_table,
    table_columns,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "SPECIES OCCURRENCE EXPLORER"


@dataclass(frozen=True)
class DashboardData:
    """Read-only state shared by the callbacks for the app's lifetime."""

    records: gpd.GeoDataFrame
    regions: gpd.GeoDataFrame
    species_values: Tuple[str, ...]
    year_bounds: Tuple[int, int]
    center: Tuple[float, float]
    zoom: int

    @classmethod
    def from_frames(
        cls,
        records: gpd.GeoDataFrame,
        regions: gpd.GeoDataFrame,
        *,
        fallback_years: Tuple[int, int],
    ) -> "DashboardData":
        species_values = tuple(sorted(str(s) for s in records["species"].dropna().unique()))

        valid_years = records["year"].dropna().astype(int)
        if valid_years.empty:
            year_bounds = fallback_years
        else:
            year_bounds = (int(valid_years.min()), int(valid_years.max()))

        return cls(
            records=records,
            regions=regions,
            species_values=species_values,
            year_bounds=year_bounds,
            center=regions_center(regions),
            zoom=regions_zoom(regions),
        )

    def species_options(self, all_label: str = "All species") -> List[Dict[str, str]]:
        return [{"label": all_label, "value": ALL_SPECIES}] + [
            {"label": s, "value": s} for s in self.species_values
        ]


def selected_filters(data: DashboardData, species: Optional[str], year_range: Optional[Sequence[Any]]) -> Tuple[str, int, int]:
    """Normalize raw control values; unset controls mean all species / full data extent."""
    sel = species or ALL_SPECIES
    if year_range:
        y0, y1 = map(int, year_range)
    else:
        y0, y1 = data.year_bounds
    return sel, y0, y1


def render_views(
    data: DashboardData,
    species: Optional[str],
    year_range: Optional[Sequence[Any]],
) -> Tuple[go.Figure, List[Dict[str, str]], go.Figure, str, Optional[dbc.Alert]]:
    """One filter pass feeding all three renderers."""
    sel, y0, y1 = selected_filters(data, species, year_range)
    df = filter_records(data.records, sel, y0, y1)

    map_fig = render_map(df, data.regions, center=data.center, zoom=data.zoom)
    rows = render_table(df)
    chart_fig = render_chart(df)

    summary = f"{len(df):,} of {len(data.records):,} records shown"
    no_data_alert = dbc.Alert(
        "No data matches current filters. Adjust filters to see results.",
        color="warning", dismissable=True, fade=True
    ) if df.empty else None

    return map_fig, rows, chart_fig, summary, no_data_alert


# ------------------ UI ------------------
def render_filter_panel(data: DashboardData, ui_cfg: Dict[str, Any], initial_years: Tuple[int, int]) -> dbc.Card:
    min_year, max_year = data.year_bounds
    all_label = str(ui_cfg.get("all_species_label", "All species"))

    return dbc.Card(dbc.CardBody([
        html.P("Filters", className="h6"),
        html.Label("Species"),
        dcc.Dropdown(id="species-dropdown",
                     options=data.species_options(all_label),
                     value=ALL_SPECIES, clearable=False, searchable=True,
                     className="mb-3"),
        html.Label("Year Range"),
        dcc.RangeSlider(
            id="year-slider",
            min=min_year, max=max_year, step=1,
            value=list(initial_years),
            marks={min_year: str(min_year), max_year: str(max_year)},
            tooltip={"placement": "bottom", "always_visible": True},
            allowCross=False,
            className="mb-1"
        ),
        html.Div(id="year-range-display", className="mb-3"),
        html.Div(id="records-summary", className="text-muted mb-3"),
        html.Div(className="d-flex align-items-center gap-2", children=[
            html.Button("Download filtered data (.csv)", id="btn-download", className="btn btn-secondary"),
            dcc.Download(id="download-filtered-csv")
        ]),
    ]))


def build_layout(data: DashboardData, cfg: Dict[str, Any]) -> html.Div:
    ui_cfg = cfg.get("ui", {}) or {}
    title = str((cfg.get("app", {}) or {}).get("title", DEFAULT_TITLE))
    page_size = int(ui_cfg.get("table_page_size", 10))

    return html.Div([
        dbc.Navbar(
            dbc.Container([dbc.NavbarBrand(title)]),
            color="success", dark=True, className="mb-3"
        ),
        dbc.Container([
            html.Div(id="no-data-banner", className="mb-2"),
            dbc.Row([
                dbc.Col(render_filter_panel(data, ui_cfg, default_year_range(cfg)), md=3),
                dbc.Col(
                    dcc.Loading(
                        id="loading-map", type="default", color="#00bc8c",
                        children=[dcc.Graph(id="map", style={"height": "60vh"}, config={"scrollZoom": True})]
                    ),
                    md=9
                ),
            ], className="g-3"),
            dbc.Row([
                dbc.Col([
                    html.H5("Occurrences"),
                    dash_table.DataTable(
                        id="occurrence-table",
                        columns=table_columns(),
                        data=[],
                        page_size=page_size,
                        page_action="native",
                        sort_action="native",
                        style_table={"overflowX": "auto"},
                        style_cell={"textAlign": "left", "fontSize": "0.85rem"},
                    ),
                ], md=6),
                dbc.Col([
                    html.H5("Records per species"),
                    dcc.Graph(id="species-chart"),
                ], md=6),
            ], className="g-3 mt-2"),
        ], fluid=True),
    ])


# ------------------ App factory ------------------
def build_app(data: DashboardData, cfg: Dict[str, Any]) -> Dash:
    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
        suppress_callback_exceptions=True,
    )
    app.title = str((cfg.get("app", {}) or {}).get("title", DEFAULT_TITLE))
    app.layout = build_layout(data, cfg)

    @app.callback(Output("year-range-display", "children"), Input("year-slider", "value"))
    def show_years(val):  # noqa: ANN001
        if not val:
            return ""
        return f"{int(val[0])} – {int(val[1])}"

    @app.callback(
        Output("map", "figure"),
        Output("occurrence-table", "data"),
        Output("species-chart", "figure"),
        Output("records-summary", "children"),
        Output("no-data-banner", "children"),
        Input("species-dropdown", "value"),
        Input("year-slider", "value"),
    )
    def update_views(species, year_range):  # noqa: ANN001
        return render_views(data, species, year_range)

    @app.callback(
        Output("download-filtered-csv", "data"),
        Input("btn-download", "n_clicks"),
        State("species-dropdown", "value"),
        State("year-slider", "value"),
        prevent_initial_call=True
    )
    def download_filtered_csv(n_clicks, species, year_range):  # noqa: ANN001
        sel, y0, y1 = selected_filters(data, species, year_range)
        df = filter_records(data.records, sel, y0, y1)
        if df.empty:
            return dash.no_update

        out = filtered_export_frame(df)
        filename = f"occurrences_filtered_{time.strftime('%Y%m%d_%H%M%S')}.csv"
        return dcc.send_data_frame(out.to_csv, filename, index=False)

    return app


def create_app(cfg: Dict[str, Any]) -> Dash:
    """Load and join the inputs once, then build the app. Load errors propagate."""
    preflight(cfg, mode="app")

    records, regions = build_enriched(cfg)
    data = DashboardData.from_frames(records, regions, fallback_years=default_year_range(cfg))
    logger.info(
        "Dashboard data ready: %s records, %s species, years %s-%s",
        len(data.records), len(data.species_values), *data.year_bounds,
    )
    return build_app(data, cfg)
