"""
Renderers for the three linked views.

Each takes the currently filtered records and returns an artifact Dash can
display: a map figure, table rows, a bar chart figure. They never mutate
their inputs and all accept an empty frame.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import geopandas as gpd
import pandas as pd
import plotly.graph_objects as go

from occurrence_explorer.steps.load_data import REGION_FIELD

# Categorical palette for regions (cycled when there are more regions)
REGION_COLORS = [
    "#C44536", "#F4A261", "#3D5A80", "#6A4C93", "#E9C46A",
    "#2A9D8F", "#E07A5F", "#8AB17D", "#264653", "#B5838D",
]
MARKER_COLOR = "#212529"
POINT_SIZE = 8
NO_DATA_TEXT = "No data matches current filters"

TABLE_COLUMNS = ["species", "eventDate", "iucnRedListCategory", REGION_FIELD]
TABLE_HEADERS = {
    "species": "Species",
    "eventDate": "Event date",
    "iucnRedListCategory": "IUCN category",
    REGION_FIELD: "Region",
}


# ------------------ Helpers ------------------
def estimate_zoom_level(extent_width: float) -> int:
    if extent_width is None or extent_width <= 0:
        return 3
    if extent_width < 0.01: return 14
    if extent_width < 0.05: return 13
    if extent_width < 0.1:  return 12
    if extent_width < 0.2:  return 11
    if extent_width < 0.5:  return 10
    if extent_width < 1:    return 9
    if extent_width < 2:    return 8
    if extent_width < 5:    return 7
    if extent_width < 10:   return 6
    if extent_width < 20:   return 5
    if extent_width < 45:   return 4
    return 3


def regions_center(regions: gpd.GeoDataFrame) -> Tuple[float, float]:
    """
    Map center (lat, lon) of the region layer.
    Project first to avoid centroid-in-geographic-CRS issues, then transform back.
    """
    if regions.empty:
        return 0.0, 0.0
    g = regions.to_crs(epsg=3857)  # Web Mercator for centroid math
    c = g.geometry.union_all().centroid
    c_ll = gpd.GeoSeries([c], crs=g.crs).to_crs("EPSG:4326").iloc[0]
    return float(c_ll.y), float(c_ll.x)


def regions_zoom(regions: gpd.GeoDataFrame) -> int:
    if regions.empty:
        return estimate_zoom_level(0)
    bounds = regions.total_bounds
    return estimate_zoom_level(float(bounds[2] - bounds[0]))


def display_value(value: Any) -> str:
    """Text shown for a cell or hover field; nulls render empty."""
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def region_color_map(regions: gpd.GeoDataFrame) -> Dict[str, str]:
    names = sorted({display_value(v) for v in regions[REGION_FIELD]} - {""})
    return {name: REGION_COLORS[i % len(REGION_COLORS)] for i, name in enumerate(names)}


def _hex_to_rgba(color: str, alpha: float) -> str:
    c = color.lstrip("#")
    r, g, b = int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)
    return f"rgba({r}, {g}, {b}, {alpha})"


def occurrence_hover_text(row: pd.Series) -> str:
    year = row.get("year")
    year_label = "" if display_value(year) == "" else str(int(year))
    return (f"<b>{display_value(row.get('species'))}</b>"
            f"<br>IUCN: {display_value(row.get('iucnRedListCategory'))}"
            f"<br>Region: {display_value(row.get(REGION_FIELD))}"
            f"<br>Year: {year_label}")


# ------------------ Map ------------------
def render_map(
    records: gpd.GeoDataFrame,
    regions: gpd.GeoDataFrame,
    *,
    center: Tuple[float, float],
    zoom: int,
) -> go.Figure:
    """Region polygons coloured by name plus one marker per occurrence."""
    fig = go.Figure()
    colors = region_color_map(regions)

    for name, sub in regions.groupby(regions[REGION_FIELD].map(display_value), sort=True):
        color = colors.get(name, "#999999")
        first = True
        for geom in sub.geometry:
            if geom is None or geom.is_empty:
                continue
            polys = [geom] if geom.geom_type == "Polygon" else list(geom.geoms)
            for poly in polys:
                xs, ys = poly.exterior.xy
                fig.add_trace(go.Scattermap(
                    lon=list(xs), lat=list(ys), mode="lines",
                    fill="toself", fillcolor=_hex_to_rgba(color, 0.35),
                    line=dict(color=color, width=1),
                    name=name or "(unnamed)", legendgroup=f"region:{name}",
                    hoverinfo="text", hovertext=f"Region: {name}",
                    showlegend=first,
                    meta={"kind": "region"},
                ))
                first = False

    if records.empty:
        lon: List[float] = []
        lat: List[float] = []
        hover: List[str] = []
        fig.add_annotation(
            x=0.5, y=0.5, xref="paper", yref="paper",
            text=NO_DATA_TEXT,
            showarrow=False, font=dict(size=14, color="red"),
            bgcolor="rgba(255,255,255,0.7)"
        )
    else:
        lon = records.geometry.x.tolist()
        lat = records.geometry.y.tolist()
        hover = records.apply(occurrence_hover_text, axis=1).tolist()

    fig.add_trace(go.Scattermap(
        lon=lon, lat=lat, mode="markers",
        marker=dict(size=POINT_SIZE, color=MARKER_COLOR, opacity=0.85),
        name="Occurrences", hoverinfo="text", hovertext=hover,
        showlegend=True,
        meta={"kind": "occurrences"},
    ))

    center_lat, center_lon = center
    fig.update_layout(
        map={"style": "carto-positron", "zoom": zoom, "center": {"lat": center_lat, "lon": center_lon}},
        margin={"r": 0, "t": 0, "l": 0, "b": 0},
        legend=dict(title="", bgcolor="rgba(255,255,255,0.6)", bordercolor="gray", borderwidth=1, font=dict(size=10),
                    x=0.99, y=0.99, xanchor="right", yanchor="top"),
    )
    return fig


# ------------------ Table ------------------
def render_table(records: pd.DataFrame) -> List[Dict[str, str]]:
    out = records.reindex(columns=TABLE_COLUMNS)
    return [{col: display_value(val) for col, val in row.items()} for row in out.to_dict("records")]


def table_columns() -> List[Dict[str, str]]:
    return [{"name": TABLE_HEADERS[c], "id": c} for c in TABLE_COLUMNS]


# ------------------ Chart ------------------
def species_counts(records: pd.DataFrame) -> pd.Series:
    """Occurrences per species, descending; ties keep first-appearance order."""
    if records.empty:
        return pd.Series(dtype="int64", name="count")
    counts = records.groupby("species", sort=False, dropna=True).size()
    return counts.sort_values(ascending=False, kind="stable").rename("count")


def render_chart(records: pd.DataFrame) -> go.Figure:
    counts = species_counts(records)
    species = [str(s) for s in counts.index]

    fig = go.Figure(go.Bar(
        x=species, y=counts.astype(int).tolist(),
        marker_color="#2A9D8F",
        hovertemplate="%{x}: %{y}<extra></extra>",
    ))
    fig.update_layout(
        xaxis=dict(title="Species", categoryorder="array", categoryarray=species),
        yaxis=dict(title="Occurrences"),
        margin={"r": 10, "t": 30, "l": 50, "b": 120},
        template="plotly_white",
    )
    if counts.empty:
        fig.add_annotation(
            x=0.5, y=0.5, xref="paper", yref="paper",
            text=NO_DATA_TEXT, showarrow=False,
            font=dict(size=14, color="red"),
        )
    return fig


# ------------------ CSV export ------------------
def filtered_export_frame(records: gpd.GeoDataFrame) -> pd.DataFrame:
    """Filtered records with lon/lat columns instead of geometry."""
    out = pd.DataFrame(records.drop(columns="geometry", errors="ignore"))
    if "geometry" in records.columns and not records.empty:
        out.insert(0, "lat", records.geometry.y.values)
        out.insert(0, "lon", records.geometry.x.values)
    else:
        out.insert(0, "lat", pd.Series(dtype="float64"))
        out.insert(0, "lon", pd.Series(dtype="float64"))
    return out
