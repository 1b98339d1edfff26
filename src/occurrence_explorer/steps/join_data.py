"""
Attribute and spatial joins that turn raw occurrences into enriched records.

Both joins are left joins: an occurrence is never dropped or duplicated, so
the enriched frame has exactly one row per input occurrence, in input order.
"""

from __future__ import annotations

import logging

import geopandas as gpd
import pandas as pd

from occurrence_explorer.steps.load_data import REGION_FIELD, SPECIES_KEY

logger = logging.getLogger(__name__)


def join_species(occurrences: gpd.GeoDataFrame, species: pd.DataFrame) -> gpd.GeoDataFrame:
    """Left join species attributes onto occurrences by `species`."""
    lookup = species[species[SPECIES_KEY].notna()].drop_duplicates(subset=[SPECIES_KEY], keep="first")
    lookup = lookup.drop(columns=["geometry"], errors="ignore").copy()
    lookup[SPECIES_KEY] = lookup[SPECIES_KEY].astype(occurrences[SPECIES_KEY].dtype)

    joined = occurrences.merge(lookup, on=SPECIES_KEY, how="left", suffixes=("", "_species"), indicator=True)

    unmatched = int((joined["_merge"] == "left_only").sum())
    if unmatched:
        logger.info("Species join: %s of %s occurrences without species metadata", unmatched, len(joined))

    joined = joined.drop(columns="_merge")
    return gpd.GeoDataFrame(joined, geometry="geometry", crs=occurrences.crs)


def join_regions(
    occurrences: gpd.GeoDataFrame,
    regions: gpd.GeoDataFrame,
    *,
    field: str = REGION_FIELD,
) -> gpd.GeoDataFrame:
    """
    Tag each occurrence with the region polygon that strictly contains it.

    Uses predicate="within", so a point lying exactly on a polygon boundary is
    not contained. Points outside every polygon get <NA>. Should several
    polygons contain the same point, the first one in region order is kept.
    """
    left = occurrences.reset_index(drop=True)

    right = regions[[field, "geometry"]].reset_index(drop=True)
    if right.crs != left.crs:
        right = right.to_crs(left.crs)

    # Avoid conflicts with sjoin bookkeeping columns
    for col in ("index_right", "index_left"):
        if col in left.columns:
            left = left.drop(columns=col)
    if field in left.columns:
        logger.info("Region join: existing '%s' column kept as '%s_species'", field, field)
        left = left.rename(columns={field: f"{field}_species"})

    joined = gpd.sjoin(left, right, how="left", predicate="within")

    if joined.index.has_duplicates:
        logger.warning(
            "Region join: %s occurrence(s) fall inside overlapping regions; keeping first match",
            int(joined.index.duplicated().sum()),
        )
    joined = joined.sort_values("index_right", kind="stable", na_position="last")
    joined = joined[~joined.index.duplicated(keep="first")].sort_index(kind="stable")

    joined = joined.drop(columns="index_right")
    joined[field] = joined[field].astype("string")

    outside = int(joined[field].isna().sum())
    if outside:
        logger.info("Region join: %s of %s occurrences outside every region", outside, len(joined))

    return joined


def enrich_occurrences(
    occurrences: gpd.GeoDataFrame,
    species: pd.DataFrame,
    regions: gpd.GeoDataFrame,
) -> gpd.GeoDataFrame:
    """Species join, then region join; one output row per input occurrence."""
    enriched = join_regions(join_species(occurrences, species), regions)

    if len(enriched) != len(occurrences):
        raise RuntimeError(
            f"Join changed record count: {len(occurrences)} occurrences -> {len(enriched)} enriched rows"
        )

    logger.info("Enriched %s occurrences", len(enriched))
    return enriched
