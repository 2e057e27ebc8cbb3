"""
views.py

The five reporting views built from the ledger, the calendar, the dense
grids and the window aggregates.

Views
-----
monthly_spend_summary     spend per month, change vs prior month, year-to-date total
monthly_spend_category    spend per month and category, ranked within the month
daily_spend               spend per day, 7-day average, year-to-date total
daily_category_balance    spend per day and category, zero-filled
monthly_account_balances  signed running balance per account at each month end
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields
from typing import Dict, Optional

import pandas as pd

from . import dates, grid, ledger, windows
from .config import Settings

VIEW_NAMES = (
    "monthly_spend_summary",
    "monthly_spend_category",
    "daily_spend",
    "daily_category_balance",
    "monthly_account_balances",
)


@dataclass(frozen=True)
class ViewSet:
    monthly_spend_summary: pd.DataFrame
    monthly_spend_category: pd.DataFrame
    daily_spend: pd.DataFrame
    daily_category_balance: pd.DataFrame
    monthly_account_balances: pd.DataFrame

    def as_dict(self) -> Dict[str, pd.DataFrame]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def monthly_spend_summary(purchases: pd.DataFrame) -> pd.DataFrame:
    monthly = (
        purchases.groupby(["year", "month_number", "month_name"])["spend"]
                 .sum()
                 .reset_index(name="month_amount_spent")
                 .rename(columns={"month_name": "month"})
    )
    # Change vs prior month runs across year boundaries; the running total restarts each year.
    monthly = windows.lag_delta(
        monthly, "month_amount_spent",
        order_by=["year", "month_number"],
        out="prior_month_change",
    )
    monthly = windows.running_total(
        monthly, "month_amount_spent",
        partition_by="year",
        order_by=["year", "month_number"],
        out="yearly_running_total",
    )
    return monthly[[
        "year", "month_number", "month", "month_amount_spent",
        "prior_month_change", "yearly_running_total",
    ]]


def monthly_spend_category(purchases: pd.DataFrame) -> pd.DataFrame:
    keys = ["year", "month_number", "month_name", "category_id", "category_description"]
    by_category = (
        purchases.groupby(keys, dropna=False)["spend"]
                 .sum()
                 .reset_index(name="monthly_spend")
    )
    ranked = windows.dense_rank(
        by_category, "monthly_spend",
        partition_by=["year", "month_number"],
        out="month_ranking",
    )
    ranked = ranked.sort_values(
        ["year", "month_number", "month_ranking", "category_id"], kind="mergesort"
    ).reset_index(drop=True)
    return ranked[[
        "year", "month_number", "month_name", "category_id",
        "category_description", "monthly_spend", "month_ranking",
    ]]


def daily_spend(purchases: pd.DataFrame, calendar: pd.DataFrame, excluded_year, horizon_end) -> pd.DataFrame:
    days = grid.date_grid(dates.bounded(calendar, excluded_year, horizon_end))[["date", "year"]]
    spend = purchases.groupby("date")["spend"].sum().reset_index(name="date_spend")
    daily = grid.zero_fill(days, spend, "date", "date_spend")

    daily = windows.moving_average(
        daily, "date_spend", window=7, order_by="date", out="seven_day_avg_spend",
    )
    daily = windows.running_total(
        daily, "date_spend",
        partition_by="year",
        order_by="date",
        out="running_yearly_spend",
    )
    daily = daily.sort_values("date", kind="mergesort").reset_index(drop=True)
    return daily[["date", "year", "date_spend", "seven_day_avg_spend", "running_yearly_spend"]]


def daily_category_balance(
    purchases: pd.DataFrame,
    calendar: pd.DataFrame,
    categories: pd.DataFrame,
    excluded_year,
    horizon_end,
) -> pd.DataFrame:
    days = dates.bounded(calendar, excluded_year, horizon_end)
    pairs = grid.build(days, categories)
    spend = purchases.groupby(["date", "category_id"])["spend"].sum().reset_index(name="day_sum")
    return grid.zero_fill(pairs, spend, ["date", "category_id"], "day_sum")


def monthly_account_balances(transactions: pd.DataFrame) -> pd.DataFrame:
    periods = transactions.assign(
        end_date_period=[
            dates.period_label(y, m)
            for y, m in zip(transactions["year"], transactions["month_number"])
        ]
    )
    monthly = (
        periods.groupby(["end_date_period", "account_id", "account_type"], dropna=False)["amount"]
               .sum()
               .reset_index(name="net_change")
    )
    balances = windows.running_total(
        monthly, "net_change",
        partition_by="account_id",
        order_by="end_date_period",
        out="balance",
    )
    balances = balances.sort_values(["end_date_period", "account_id"], kind="mergesort").reset_index(drop=True)
    return balances[["end_date_period", "account_id", "account_type", "net_change", "balance"]]


def materialize(
    tables: ledger.LedgerTables,
    settings: Settings,
    calendar: Optional[pd.DataFrame] = None,
    max_workers: int = 1,
) -> ViewSet:
    """
    Compute all five views from the ledger.

    The calendar defaults to dates.horizon() over the ledger. Views only
    share read-only inputs, so with max_workers > 1 they run on a thread pool.
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    if calendar is None:
        start, end = dates.horizon(tables.facts, settings.report_horizon_end, settings.report_horizon_start)
        calendar = dates.generate(start, end)

    spend = ledger.purchases(tables, calendar, settings.excluded_year, settings.purchase_type_ids)
    transactions = ledger.all_transactions(tables, calendar)

    jobs = {
        "monthly_spend_summary": lambda: monthly_spend_summary(spend),
        "monthly_spend_category": lambda: monthly_spend_category(spend),
        "daily_spend": lambda: daily_spend(
            spend, calendar, settings.excluded_year, settings.report_horizon_end
        ),
        "daily_category_balance": lambda: daily_category_balance(
            spend, calendar, tables.categories, settings.excluded_year, settings.report_horizon_end
        ),
        "monthly_account_balances": lambda: monthly_account_balances(transactions),
    }

    if max_workers == 1:
        results = {name: job() for name, job in jobs.items()}
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {name: pool.submit(job) for name, job in jobs.items()}
            results = {name: fut.result() for name, fut in futures.items()}

    views = ViewSet(**results)
    print(
        "[INFO] Views materialized: "
        + ", ".join(f"{name}={len(df)}" for name, df in views.as_dict().items())
    )
    return views
