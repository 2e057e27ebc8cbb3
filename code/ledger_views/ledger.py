"""
ledger.py

Read-only view over the transaction ledger joined with its reference data.

Input Contract
--------------
facts:              transaction_id, date, account_id, category_id,
                    transaction_type_id, amount (signed, negative = outflow)
categories:         category_id, category_description
accounts:           account_id, account_type
transaction_types:  transaction_type_id

Facts referencing a category, account, transaction type or date that is not
present in the reference data are excluded from the joined output and
reported as [WARNING] lines. They never crash the computation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .config import DEFAULT_PURCHASE_TYPE_IDS


class MissingReferenceError(Exception):
    """A set of facts referencing keys absent from the reference data."""

    def __init__(self, kind: str, column: str, transaction_ids: Sequence):
        self.kind = kind
        self.column = column
        self.transaction_ids = list(transaction_ids)
        super().__init__(
            f"{len(self.transaction_ids)} transactions reference an unknown {kind} "
            f"({column}): {self.transaction_ids}"
        )


@dataclass(frozen=True)
class LedgerTables:
    facts: pd.DataFrame
    categories: pd.DataFrame
    accounts: pd.DataFrame
    transaction_types: pd.DataFrame


# kind -> (fact column, reference table attribute)
_REFERENCES = {
    "category": ("category_id", "categories"),
    "account": ("account_id", "accounts"),
    "transaction type": ("transaction_type_id", "transaction_types"),
}

_FACT_COLS = {
    "transaction_id", "date", "account_id",
    "category_id", "transaction_type_id", "amount",
}


def _as_day(values) -> pd.Series:
    return pd.to_datetime(values).dt.normalize().astype("datetime64[ns]")


def _facts(tables: LedgerTables) -> pd.DataFrame:
    facts = tables.facts.copy()
    facts["date"] = _as_day(facts["date"])
    return facts


def missing_references(
    tables: LedgerTables,
    calendar: Optional[pd.DataFrame] = None,
    facts: Optional[pd.DataFrame] = None,
    kinds: Iterable[str] = ("category", "account", "transaction type", "date"),
) -> List[MissingReferenceError]:
    """
    Find facts whose references are absent from the reference tables.

    Returns one MissingReferenceError per reference kind with offenders.
    """
    facts = _facts(tables) if facts is None else facts
    errors = []
    for kind in kinds:
        if kind == "date":
            if calendar is None:
                continue
            column, known = "date", _as_day(calendar["date"])
        else:
            column, attr = _REFERENCES[kind]
            known = getattr(tables, attr)[column]
        unknown = ~facts[column].isin(known)
        if unknown.any():
            errors.append(
                MissingReferenceError(kind, column, facts.loc[unknown, "transaction_id"].tolist())
            )
    return errors


def _exclude_missing(facts: pd.DataFrame, errors: List[MissingReferenceError]) -> pd.DataFrame:
    for err in errors:
        print(f"[WARNING] Excluding transactions: {err}")
    bad = set()
    for err in errors:
        bad.update(err.transaction_ids)
    if not bad:
        return facts
    return facts[~facts["transaction_id"].isin(bad)]


def _calendar_cols(calendar: pd.DataFrame) -> pd.DataFrame:
    cal = calendar[["date", "year", "month_number", "month_name"]].copy()
    cal["date"] = _as_day(cal["date"])
    return cal


def purchases(
    tables: LedgerTables,
    calendar: pd.DataFrame,
    excluded_year: Optional[int],
    purchase_type_ids: Sequence[int] = DEFAULT_PURCHASE_TYPE_IDS,
) -> pd.DataFrame:
    """
    Purchase transactions joined to calendar, category, account and type.

    Only transaction_type_id in purchase_type_ids, and never dated in
    excluded_year. amount keeps its sign; spend is |amount|.
    """
    facts = _facts(tables)
    facts = facts[facts["transaction_type_id"].isin(list(purchase_type_ids))]
    facts = _exclude_missing(facts, missing_references(tables, calendar, facts=facts))

    joined = (
        facts.merge(_calendar_cols(calendar), on="date", how="inner")
             .merge(tables.categories, on="category_id", how="inner")
             .merge(tables.accounts, on="account_id", how="inner")
             .merge(tables.transaction_types, on="transaction_type_id", how="inner")
    )
    if excluded_year is not None:
        joined = joined[joined["year"] != int(excluded_year)]

    joined = joined.copy()
    joined["spend"] = joined["amount"].abs()
    return joined.sort_values(["date", "transaction_id"], kind="mergesort").reset_index(drop=True)


def all_transactions(tables: LedgerTables, calendar: pd.DataFrame) -> pd.DataFrame:
    """Every fact joined to its account and calendar day, regardless of type or year."""
    facts = _facts(tables)
    facts = _exclude_missing(
        facts, missing_references(tables, calendar, facts=facts, kinds=("account", "date"))
    )
    joined = (
        facts.merge(_calendar_cols(calendar), on="date", how="inner")
             .merge(tables.accounts, on="account_id", how="inner")
    )
    return joined.sort_values(["date", "transaction_id"], kind="mergesort").reset_index(drop=True)


# ======================================================
# INPUT CONTRACT VALIDATION
# ======================================================

def validate_ledger(tables: LedgerTables, calendar: Optional[pd.DataFrame] = None) -> Tuple[bool, list[str]]:
    """
    Validate the ledger and reference tables.

    Returns:
        (is_valid, messages). Missing references are [WARNING] messages and
        do not make the ledger invalid.
    """
    errors = []

    missing_cols = _FACT_COLS - set(tables.facts.columns)
    if missing_cols:
        errors.append(f"Missing required fact columns: {sorted(missing_cols)}")
        return False, errors

    for kind, (column, attr) in _REFERENCES.items():
        ref = getattr(tables, attr)
        if column not in ref.columns:
            errors.append(f"Missing {column} column in {kind} reference table")
            continue
        dup = ref[column].duplicated(keep=False)
        if dup.any():
            errors.append(f"Duplicate {column} values in {kind} reference table: {sorted(ref.loc[dup, column].unique().tolist())}")
    if errors:
        return False, errors

    dup_ids = tables.facts["transaction_id"].duplicated(keep=False)
    if dup_ids.any():
        errors.append(
            f"Found {int(dup_ids.sum())} rows with duplicate transaction_id: "
            f"{tables.facts.loc[dup_ids, 'transaction_id'].unique().tolist()}"
        )

    amounts = pd.to_numeric(tables.facts["amount"], errors="coerce")
    bad_amounts = amounts.isna()
    if bad_amounts.any():
        errors.append(
            f"Found {int(bad_amounts.sum())} rows with non-numeric amount: "
            f"{tables.facts.loc[bad_amounts, 'transaction_id'].tolist()}"
        )

    for err in missing_references(tables, calendar):
        errors.append(f"[WARNING] {err}")

    is_valid = len([e for e in errors if not e.startswith("[WARNING]")]) == 0
    return is_valid, errors
