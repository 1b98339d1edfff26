from __future__ import annotations

import pandas as pd
import pytest

from occurrence_explorer.app.views import (
    NO_DATA_TEXT,
    REGION_COLORS,
    TABLE_COLUMNS,
    estimate_zoom_level,
    filtered_export_frame,
    region_color_map,
    regions_center,
    render_chart,
    render_map,
    render_table,
    species_counts,
)
from occurrence_explorer.filtering import ALL_SPECIES, filter_records
from occurrence_explorer.steps.join_data import enrich_occurrences


def _marker_trace(fig):
    traces = [t for t in fig.data if (t.meta or {}).get("kind") == "occurrences"]
    assert len(traces) == 1
    return traces[0]


def _region_traces(fig):
    return [t for t in fig.data if (t.meta or {}).get("kind") == "region"]


def test_map_has_one_marker_per_record(occurrences, species_table, regions):
    enriched = enrich_occurrences(occurrences, species_table, regions)

    fig = render_map(enriched, regions, center=(10.0, 10.0), zoom=5)

    markers = _marker_trace(fig)
    assert len(markers.lon) == len(enriched)
    assert markers.type == "scattermap"
    assert fig.layout.map.style == "carto-positron"
    assert fig.layout.map.zoom == 5
    assert "Iguana iguana" in markers.hovertext[0]
    assert "IUCN: LC" in markers.hovertext[0]
    assert "Region: North" in markers.hovertext[0]
    assert "Year: 2001" in markers.hovertext[0]
    # outside every region: empty label, no error
    assert "Region: <br>" in markers.hovertext[3]


def test_map_colours_regions_by_name(occurrences, regions):
    colors = region_color_map(regions)
    assert colors == {"North": REGION_COLORS[0], "South": REGION_COLORS[1]}

    fig = render_map(occurrences.iloc[0:0], regions, center=(0.0, 0.0), zoom=3)
    region_traces = _region_traces(fig)
    assert {t.type for t in region_traces} == {"scattermap"}
    assert {t.name for t in region_traces} == {"North", "South"}
    assert {t.line.color for t in region_traces} == {REGION_COLORS[0], REGION_COLORS[1]}


def test_map_empty_selection_has_zero_markers(occurrences, species_table, regions):
    enriched = enrich_occurrences(occurrences, species_table, regions)
    empty = filter_records(enriched, ALL_SPECIES, 1800, 1801)

    fig = render_map(empty, regions, center=(0.0, 0.0), zoom=3)

    assert not _marker_trace(fig).lon
    assert any(a.text == NO_DATA_TEXT for a in fig.layout.annotations)


def test_table_rows_and_null_region(occurrences, species_table, regions):
    enriched = enrich_occurrences(occurrences, species_table, regions)

    rows = render_table(enriched)

    assert len(rows) == len(enriched)
    assert list(rows[0]) == TABLE_COLUMNS
    assert rows[0] == {
        "species": "Iguana iguana",
        "eventDate": "2001-05-01",
        "iucnRedListCategory": "LC",
        "region": "North",
    }
    assert rows[3]["region"] == ""
    assert rows[4]["eventDate"] == ""


def test_table_empty_selection(occurrences):
    assert render_table(occurrences.iloc[0:0]) == []


def test_species_counts_descending_with_stable_ties():
    df = pd.DataFrame({"species": ["B", "A", "C", "A", "C", "D"]})
    counts = species_counts(df)
    assert counts.index.tolist() == ["A", "C", "B", "D"]
    assert counts.tolist() == [2, 2, 1, 1]


def test_chart_bars_follow_counts(occurrences):
    fig = render_chart(occurrences)
    bar = fig.data[0]
    assert list(bar.x) == ["Iguana iguana", "Puma concolor", "Ara macao"]
    assert list(bar.y) == [2, 2, 1]
    assert list(fig.layout.xaxis.categoryarray) == list(bar.x)


def test_chart_empty_selection(occurrences):
    fig = render_chart(occurrences.iloc[0:0])
    assert not fig.data[0].x
    assert any(a.text == NO_DATA_TEXT for a in fig.layout.annotations)


def test_export_frame_replaces_geometry_with_lon_lat(occurrences):
    out = filtered_export_frame(occurrences)
    assert "geometry" not in out.columns
    assert out.columns[:2].tolist() == ["lon", "lat"]
    assert out["lon"].tolist() == occurrences["decimalLongitude"].tolist()


def test_zoom_and_center(regions):
    lat, lon = regions_center(regions)
    assert 0 < lat < 20
    assert lon == pytest.approx(10.0, abs=1e-6)
    assert estimate_zoom_level(20.0) == 4
    assert estimate_zoom_level(0) == 3