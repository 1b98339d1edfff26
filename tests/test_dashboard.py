from __future__ import annotations

import dash
import pytest

from occurrence_explorer.app.dashboard import (
    DashboardData,
    build_app,
    create_app,
    render_views,
    selected_filters,
)
from occurrence_explorer.filtering import ALL_SPECIES
from occurrence_explorer.steps.join_data import enrich_occurrences


@pytest.fixture
def data(occurrences, species_table, regions):
    enriched = enrich_occurrences(occurrences, species_table, regions)
    return DashboardData.from_frames(enriched, regions, fallback_years=(1801, 2024))


def _component_ids(component):
    found = set()
    stack = [component]
    while stack:
        node = stack.pop()
        if isinstance(node, (list, tuple)):
            stack.extend(node)
            continue
        cid = getattr(node, "id", None)
        if cid:
            found.add(cid)
        children = getattr(node, "children", None)
        if children is not None and not isinstance(children, str):
            stack.append(children)
    return found


def test_dashboard_data_controls(data):
    assert data.species_values == ("Ara macao", "Iguana iguana", "Puma concolor")
    assert data.year_bounds == (1995, 2015)

    options = data.species_options("All species")
    assert options[0] == {"label": "All species", "value": ALL_SPECIES}
    assert [o["value"] for o in options[1:]] == list(data.species_values)


def test_dashboard_data_falls_back_without_years(occurrences, regions):
    no_years = occurrences.assign(year=occurrences["year"].iloc[0:0].reindex(occurrences.index))
    data = DashboardData.from_frames(no_years, regions, fallback_years=(1801, 2024))
    assert data.year_bounds == (1801, 2024)


def test_selected_filters_defaults(data):
    assert selected_filters(data, None, None) == (ALL_SPECIES, 1995, 2015)
    assert selected_filters(data, "Ara macao", [2000.0, 2010.0]) == ("Ara macao", 2000, 2010)


def test_render_views_single_pass(data):
    map_fig, rows, chart_fig, summary, alert = render_views(data, "Iguana iguana", [2000, 2010])

    assert [r["species"] for r in rows] == ["Iguana iguana", "Iguana iguana"]
    assert list(chart_fig.data[0].x) == ["Iguana iguana"]
    markers = [t for t in map_fig.data if (t.meta or {}).get("kind") == "occurrences"][0]
    assert len(markers.lon) == 2
    assert summary == "2 of 5 records shown"
    assert alert is None


def test_render_views_empty_selection(data):
    map_fig, rows, chart_fig, summary, alert = render_views(data, ALL_SPECIES, [1801, 1850])

    assert rows == []
    assert not chart_fig.data[0].x
    assert summary == "0 of 5 records shown"
    assert alert is not None


def test_build_app_layout(data):
    cfg = {"app": {"title": "Test explorer"}, "ui": {"default_year_range": [1801, 2024], "table_page_size": 5}}

    app = build_app(data, cfg)

    assert isinstance(app, dash.Dash)
    assert app.title == "Test explorer"
    ids = _component_ids(app.layout)
    assert {"species-dropdown", "year-slider", "map", "occurrence-table", "species-chart"} <= ids


def test_year_slider_uses_literal_default(data):
    app = build_app(data, {})
    stack = [app.layout]
    slider = None
    while stack and slider is None:
        node = stack.pop()
        if isinstance(node, (list, tuple)):
            stack.extend(node)
            continue
        if getattr(node, "id", None) == "year-slider":
            slider = node
            break
        children = getattr(node, "children", None)
        if children is not None and not isinstance(children, str):
            stack.append(children)

    assert slider is not None
    assert (slider.min, slider.max) == (1995, 2015)
    assert slider.value == [1801, 2024]


def test_create_app_fails_on_missing_inputs(tmp_path):
    cfg = {
        "_repo_root": str(tmp_path),
        "paths": {
            "occurrences_csv": "data/occurrences.csv",
            "species_csv": "data/species.csv",
            "regions_gpkg": "data/regions.gpkg",
        },
    }
    with pytest.raises(FileNotFoundError, match="Preflight failed"):
        create_app(cfg)
