"""
grid.py

Dense grids over the calendar so that days (and day/category pairs) with no
ledger activity become explicit zero rows instead of missing rows.
"""

from __future__ import annotations

from typing import Sequence, Union

import pandas as pd


def date_grid(dates: pd.DataFrame) -> pd.DataFrame:
    """The calendar itself: one row per unique date, in date order."""
    return (
        dates.drop_duplicates(subset=["date"])
             .sort_values("date", kind="mergesort")
             .reset_index(drop=True)
    )


def build(dates, categories) -> pd.DataFrame:
    """
    Cross product of dates with category ids.

    Accepts frames (using their date / category_id columns) or plain
    sequences. Returns exactly |dates| x |categories| unique rows ordered by
    (date, category_id).
    """
    date_values = dates["date"] if isinstance(dates, pd.DataFrame) else pd.Series(dates)
    category_values = (
        categories["category_id"] if isinstance(categories, pd.DataFrame) else pd.Series(categories)
    )

    left = pd.DataFrame({"date": date_values.drop_duplicates().to_numpy()})
    right = pd.DataFrame({"category_id": category_values.drop_duplicates().to_numpy()})
    grid = left.merge(right, how="cross")
    return grid.sort_values(["date", "category_id"], kind="mergesort").reset_index(drop=True)


def zero_fill(
    grid: pd.DataFrame,
    values: pd.DataFrame,
    keys: Union[str, Sequence[str]],
    value_column: str,
) -> pd.DataFrame:
    """
    Left-join aggregated values onto grid, coalescing missing rows to 0.

    values must already be unique on keys; grid row count is preserved.
    """
    keys = [keys] if isinstance(keys, str) else list(keys)
    if values[keys].duplicated().any():
        raise ValueError(f"zero_fill values are not unique on {keys}")

    values = values[keys + [value_column]].copy()
    for key in keys:
        if pd.api.types.is_datetime64_any_dtype(grid[key]) and values[key].dtype != grid[key].dtype:
            values[key] = values[key].astype(grid[key].dtype)

    filled = grid.merge(values, on=keys, how="left", validate="many_to_one")
    filled[value_column] = filled[value_column].fillna(0)
    return filled
