from __future__ import annotations

import pandas as pd

ALL_SPECIES = "all"


def filter_records(
    records: pd.DataFrame,
    selected_species: str,
    year_min: int,
    year_max: int,
) -> pd.DataFrame:
    """
    Keep records matching the species selection and the closed year range.

    `selected_species == ALL_SPECIES` disables the species predicate. Records
    without a year never satisfy a bound and are dropped. Returns a new frame;
    `records` is left untouched.
    """
    keep = pd.Series(True, index=records.index)

    if selected_species != ALL_SPECIES:
        keep &= (records["species"] == selected_species).fillna(False).astype(bool)

    year = records["year"]
    keep &= (year >= int(year_min)).fillna(False).astype(bool)
    keep &= (year <= int(year_max)).fillna(False).astype(bool)

    return records.loc[keep].copy()
