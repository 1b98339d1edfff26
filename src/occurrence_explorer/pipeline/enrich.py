"""
Load the three inputs and join them into the enriched occurrence set.

The dashboard calls `build_enriched` once at startup. Running this module
also writes the enriched set as a snapshot:
- derived.enriched_csv (attributes only)
- derived.enriched_geojson
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import geopandas as gpd

from occurrence_explorer.paths import load_config, resolve_path
from occurrence_explorer.pipeline.preflight import preflight
from occurrence_explorer.steps.join_data import enrich_occurrences
from occurrence_explorer.steps.load_data import CRS_EPSG, load_occurrences, load_regions, load_species

logger = logging.getLogger(__name__)


def build_enriched(cfg: Dict[str, Any]) -> Tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
    """Return (enriched occurrences, region polygons)."""
    inputs = cfg.get("inputs", {}) or {}

    occurrences = load_occurrences(
        resolve_path(cfg, "paths.occurrences_csv"),
        sep=str(inputs.get("occurrences_sep", ",")),
    )
    species = load_species(
        resolve_path(cfg, "paths.species_csv"),
        sep=str(inputs.get("species_sep", ",")),
    )
    regions = load_regions(
        resolve_path(cfg, "paths.regions_gpkg"),
        layer=inputs.get("regions_layer") or None,
    )

    return enrich_occurrences(occurrences, species, regions), regions


def write_outputs(gdf: gpd.GeoDataFrame, out_csv: Path, out_geojson: Path) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    out_geojson.parent.mkdir(parents=True, exist_ok=True)

    gdf_out = gdf.to_crs(CRS_EPSG)
    out_geojson.write_text(gdf_out.to_json(), encoding="utf-8")
    gdf_out.drop(columns=["geometry"], errors="ignore").to_csv(out_csv, index=False)


def run(cfg: Dict[str, Any]) -> Dict[str, Path]:
    preflight(cfg, mode="enrich")

    enriched, _ = build_enriched(cfg)

    out_csv = resolve_path(cfg, "derived.enriched_csv")
    out_geojson = resolve_path(cfg, "derived.enriched_geojson")
    write_outputs(enriched, out_csv, out_geojson)

    logger.info("Wrote %s enriched records: %s, %s", len(enriched), out_csv, out_geojson)
    return {"csv": out_csv, "geojson": out_geojson}


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    cfg = load_config()
    run(cfg)


if __name__ == "__main__":
    main()
