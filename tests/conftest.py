from __future__ import annotations

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from occurrence_explorer.steps.load_data import CRS_EPSG, coerce_year, points_from_coordinates


@pytest.fixture
def regions() -> gpd.GeoDataFrame:
    # Two side-by-side zones; everything east of lon 20 is outside both
    return gpd.GeoDataFrame(
        {"region": ["North", "South"]},
        geometry=[box(0, 10, 20, 20), box(0, 0, 20, 10)],
        crs=CRS_EPSG,
    )


@pytest.fixture
def species_table() -> pd.DataFrame:
    return pd.DataFrame({
        "species": ["Iguana iguana", "Puma concolor"],
        "category": ["Reptile", "Mammal"],
        "commonName": ["Green iguana", "Cougar"],
    })


@pytest.fixture
def occurrences() -> gpd.GeoDataFrame:
    df = pd.DataFrame({
        "species": pd.Series(["Iguana iguana", "Puma concolor", "Iguana iguana", "Ara macao", "Puma concolor"],
                             dtype="string"),
        "eventDate": ["2001-05-01", "1995-07-12", "2010-01-30", "2015-03-03", None],
        "year": coerce_year(pd.Series([2001, 1995, 2010, 2015, None])),
        "iucnRedListCategory": ["LC", "LC", "LC", "VU", "LC"],
        "decimalLongitude": [5.0, 12.0, 8.0, 30.0, 3.0],
        "decimalLatitude": [15.0, 4.0, 12.0, 5.0, 2.0],
    })
    return points_from_coordinates(df)
