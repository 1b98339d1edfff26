"""
Read the three dashboard inputs into typed in-memory frames.

- occurrences: delimited text -> GeoDataFrame of points in EPSG:4326,
  `year` coerced to nullable Int64
- species: delimited text keyed by `species`
- regions: any vector source geopandas can read, with a `region` column

Every failure here is fatal for the app; there is no partial-data fallback.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import geopandas as gpd
import pandas as pd

logger = logging.getLogger(__name__)

CRS_EPSG = "EPSG:4326"

OCCURRENCE_COLUMNS = [
    "species",
    "eventDate",
    "year",
    "iucnRedListCategory",
    "decimalLongitude",
    "decimalLatitude",
]
SPECIES_KEY = "species"
REGION_FIELD = "region"


def require_columns(df: pd.DataFrame, columns: Sequence[str], source: Path | str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required column(s) {missing} in {source}")


def _require_file(path: Path, label: str) -> None:
    if not path.exists():
        raise FileNotFoundError(f"{label} not found: {path}")


def coerce_year(values: pd.Series) -> pd.Series:
    """Whole-number years as Int64; anything else becomes <NA>."""
    num = pd.to_numeric(values, errors="coerce")
    num = num.where(num.isna() | (num % 1 == 0))
    return num.astype("Int64")


def points_from_coordinates(
    df: pd.DataFrame,
    *,
    lon_col: str = "decimalLongitude",
    lat_col: str = "decimalLatitude",
    source: Path | str = "<frame>",
) -> gpd.GeoDataFrame:
    """Attach WGS84 point geometry built from decimal-degree columns."""
    lon = pd.to_numeric(df[lon_col], errors="coerce")
    lat = pd.to_numeric(df[lat_col], errors="coerce")

    bad = lon.isna() | lat.isna()
    if bad.any():
        raise ValueError(
            f"Cannot build point geometry from {lon_col}/{lat_col} in {source}: "
            f"{int(bad.sum())} row(s) with missing or non-numeric coordinates"
        )

    out_of_range = ~lon.between(-180, 180) | ~lat.between(-90, 90)
    if out_of_range.any():
        raise ValueError(
            f"Cannot build point geometry from {lon_col}/{lat_col} in {source}: "
            f"{int(out_of_range.sum())} row(s) outside WGS84 bounds"
        )

    out = df.copy()
    out[lon_col] = lon
    out[lat_col] = lat
    return gpd.GeoDataFrame(out, geometry=gpd.points_from_xy(lon, lat), crs=CRS_EPSG)


def load_occurrences(path: Path, *, sep: str = ",") -> gpd.GeoDataFrame:
    _require_file(path, "Occurrence file")

    logger.info("Reading occurrences: %s", path)
    df = pd.read_csv(path, sep=sep, low_memory=False)
    require_columns(df, OCCURRENCE_COLUMNS, path)

    df["species"] = df["species"].astype("string").str.strip()
    df["year"] = coerce_year(df["year"])

    gdf = points_from_coordinates(df, source=path)
    logger.info(
        "Occurrences loaded: %s rows (%s without a usable year)",
        len(gdf), int(gdf["year"].isna().sum()),
    )
    return gdf


def load_species(path: Path, *, sep: str = ",") -> pd.DataFrame:
    _require_file(path, "Species file")

    logger.info("Reading species metadata: %s", path)
    df = pd.read_csv(path, sep=sep)
    require_columns(df, [SPECIES_KEY], path)

    df[SPECIES_KEY] = df[SPECIES_KEY].astype("string").str.strip()

    dupes = df[SPECIES_KEY].duplicated(keep="first")
    if dupes.any():
        logger.warning(
            "Dropping %s duplicate species row(s) in %s (first row wins): %s",
            int(dupes.sum()), path.name, sorted(df.loc[dupes, SPECIES_KEY].dropna().unique()),
        )
        df = df.loc[~dupes].reset_index(drop=True)

    return df


def load_regions(path: Path, *, layer: Optional[str] = None) -> gpd.GeoDataFrame:
    _require_file(path, "Region file")

    logger.info("Reading regions: %s", path)
    regions = gpd.read_file(path, layer=layer) if layer else gpd.read_file(path)
    require_columns(regions, [REGION_FIELD], path)

    if regions.crs is None:
        logger.warning("Region layer has no CRS; assuming %s: %s", CRS_EPSG, path)
        regions = regions.set_crs(CRS_EPSG)
    elif regions.crs != CRS_EPSG:
        regions = regions.to_crs(CRS_EPSG)

    geom_types = set(regions.geom_type.dropna().unique())
    if not geom_types <= {"Polygon", "MultiPolygon"}:
        raise ValueError(f"Region layer must contain polygons only, found {sorted(geom_types)} in {path}")

    regions = regions[[REGION_FIELD, "geometry"]].reset_index(drop=True)
    logger.info("Regions loaded: %s polygons", len(regions))
    return regions
