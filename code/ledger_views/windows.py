"""
windows.py

Partitioned, ordered window aggregates over pre-aggregated frames.

Every operation:
- takes the frame, the value column, a partition key (column, list of
  columns, or None) and an order key (column or list of columns)
- returns a NEW frame sorted by (partition, order) with the result column
  added; the input frame is never modified
- returns an empty frame (with the result column) for empty input

Partitions are independent; within a partition rows are scanned in order.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Union

import pandas as pd

Key = Optional[Union[str, Sequence[str]]]

_CENTS = Decimal("0.01")


def _keys(key: Key) -> List[str]:
    if key is None:
        return []
    if isinstance(key, str):
        return [key]
    return list(key)


def _ordered(df: pd.DataFrame, part: List[str], order: List[str]) -> pd.DataFrame:
    cols = part + [c for c in order if c not in part]
    if not cols:
        return df.reset_index(drop=True)
    return df.sort_values(cols, kind="mergesort").reset_index(drop=True)


def _column(df: pd.DataFrame, part: List[str], value: str):
    if part:
        return df.groupby(part, sort=False, dropna=False)[value]
    return df[value]


def _round2(values: pd.Series) -> pd.Series:
    # Half away from zero: 0.125 -> 0.13, -0.125 -> -0.13
    return values.map(
        lambda x: x if pd.isna(x) else float(Decimal(str(x)).quantize(_CENTS, rounding=ROUND_HALF_UP))
    ).astype("float64")


def _empty(df: pd.DataFrame, out: str, dtype: str) -> pd.DataFrame:
    result = df.reset_index(drop=True)
    result[out] = pd.Series(dtype=dtype)
    return result


def running_total(
    df: pd.DataFrame,
    value: str,
    partition_by: Key = None,
    order_by: Key = None,
    out: str = "running_total",
) -> pd.DataFrame:
    """
    Inclusive prefix sum of value within each partition.

    Rows tying on the order key are peers and share the total through the
    last of them, so each row sums every partition row with order key <= its own.
    """
    part, order = _keys(partition_by), _keys(order_by)
    if df.empty:
        return _empty(df, out, "float64")

    result = _ordered(df.copy(), part, order)
    totals = _column(result, part, value).cumsum()

    peers = part + [c for c in order if c not in part]
    if peers:
        totals = totals.groupby([result[c] for c in peers], sort=False, dropna=False).transform("last")
    else:
        totals = pd.Series(totals.iloc[-1], index=result.index)
    result[out] = totals
    return result


def lag_delta(
    df: pd.DataFrame,
    value: str,
    partition_by: Key = None,
    order_by: Key = None,
    out: str = "lag_delta",
) -> pd.DataFrame:
    """
    Relative change from the previous row in the partition, rounded to 2 dp.

    <NA> for the first row of a partition and wherever the previous value is 0.
    """
    part, order = _keys(partition_by), _keys(order_by)
    if df.empty:
        return _empty(df, out, "Float64")

    result = _ordered(df.copy(), part, order)
    previous = _column(result, part, value).shift(1).astype("float64")
    current = result[value].astype("float64")

    comparable = previous.notna() & (previous != 0)
    change = pd.Series(pd.NA, index=result.index, dtype="Float64")
    change.loc[comparable] = _round2(
        (current[comparable] - previous[comparable]) / previous[comparable]
    )
    result[out] = change
    return result


def moving_average(
    df: pd.DataFrame,
    value: str,
    window: int = 7,
    partition_by: Key = None,
    order_by: Key = None,
    out: str = "moving_average",
) -> pd.DataFrame:
    """
    Mean of the current row and up to window - 1 preceding rows, rounded to 2 dp.

    The first window - 1 rows average over however many rows exist so far.
    """
    if window < 1:
        raise ValueError(f"moving_average window must be >= 1, got {window}")
    part, order = _keys(partition_by), _keys(order_by)
    if df.empty:
        return _empty(df, out, "float64")

    result = _ordered(df.copy(), part, order)
    values = result[value].astype("float64")
    if part:
        means = values.groupby([result[c] for c in part], sort=False, dropna=False).transform(
            lambda s: s.rolling(window, min_periods=1).mean()
        )
    else:
        means = values.rolling(window, min_periods=1).mean()
    result[out] = _round2(means)
    return result


def dense_rank(
    df: pd.DataFrame,
    value: str,
    partition_by: Key = None,
    out: str = "rank",
) -> pd.DataFrame:
    """
    Rank rows by value, highest first, within each partition.

    Equal values share a rank and the next rank skips past the tie group,
    as SQL RANK() does: 10, 10, 5 rank 1, 1, 3.
    Output is ordered by partition, then value descending.
    """
    part = _keys(partition_by)
    if df.empty:
        return _empty(df, out, "Int64")

    result = df.sort_values(
        part + [value],
        ascending=[True] * len(part) + [False],
        kind="mergesort",
    ).reset_index(drop=True)
    ranks = _column(result, part, value).rank(method="min", ascending=False)
    result[out] = ranks.astype("Int64")
    return result
