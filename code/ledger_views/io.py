import os
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from .config import (
    DEFAULT_EXCLUDED_YEAR,
    DEFAULT_PURCHASE_TYPE_IDS,
    Settings,
    build_settings,
)
from .ledger import LedgerTables

TABLE_FILES = {
    "facts": "transaction_facts.csv",
    "categories": "category.csv",
    "accounts": "account.csv",
    "transaction_types": "transaction_type.csv",
}

REQUIRED_COLS = {
    "facts": {
        "transaction_id", "date", "account_id",
        "category_id", "transaction_type_id", "amount",
    },
    "categories": {"category_id", "category_description"},
    "accounts": {"account_id", "account_type"},
    "transaction_types": {"transaction_type_id"},
}


def load_settings(input_dir=None, output_dir=None, excluded_year=None, horizon_end=None) -> Settings:
    load_dotenv()
    input_dir = input_dir or os.getenv("LEDGER_INPUT_DIR")
    output_dir = output_dir or os.getenv("LEDGER_OUTPUT_DIR")
    if excluded_year is None:
        excluded_year = _env_int("EXCLUDED_YEAR", DEFAULT_EXCLUDED_YEAR)
    horizon_end = horizon_end or os.getenv("REPORT_HORIZON_END")
    horizon_start = os.getenv("REPORT_HORIZON_START")

    raw_types = os.getenv("PURCHASE_TYPE_IDS")
    purchase_type_ids = DEFAULT_PURCHASE_TYPE_IDS
    if raw_types:
        try:
            purchase_type_ids = tuple(int(t) for t in raw_types.split(",") if t.strip())
        except ValueError:
            raise ValueError(f"PURCHASE_TYPE_IDS must be comma separated integers, got {raw_types!r}")
        if not purchase_type_ids:
            raise ValueError("PURCHASE_TYPE_IDS must name at least one transaction type")

    try:
        return build_settings(
            excluded_year=excluded_year,
            report_horizon_end=horizon_end,
            report_horizon_start=horizon_start,
            purchase_type_ids=purchase_type_ids,
            input_dir=input_dir,
            output_dir=output_dir,
        )
    except ValueError as e:
        raise ValueError(f"Invalid settings (REPORT_HORIZON_END / REPORT_HORIZON_START must be ISO dates): {e}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def ensure_dirs(s: Settings):
    if s.output_dir is None:
        raise ValueError("LEDGER_OUTPUT_DIR must be provided")
    s.output_dir.mkdir(parents=True, exist_ok=True)
    s.tables_dir.mkdir(parents=True, exist_ok=True)


def _read_table(path: Path, required) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Ledger table not found: {path}")
    df = pd.read_csv(path)
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns in {path.name}: {sorted(missing)}")
    return df


def load_tables(input_dir) -> LedgerTables:
    """
    Load the ledger facts and reference tables from a directory of CSVs.

    Facts with an unparseable date are dropped with a warning; amounts that
    are not numeric are kept as NaN so validate_ledger() can report them.
    """
    base = Path(input_dir)
    frames = {
        key: _read_table(base / filename, REQUIRED_COLS[key])
        for key, filename in TABLE_FILES.items()
    }

    facts = frames["facts"]
    facts["date"] = pd.to_datetime(facts["date"], errors="coerce")
    bad_dates = facts["date"].isna()
    if bad_dates.any():
        print(
            f"[WARNING] Dropping {int(bad_dates.sum())} transactions with unparseable dates: "
            f"{facts.loc[bad_dates, 'transaction_id'].tolist()}"
        )
        facts = facts[~bad_dates].reset_index(drop=True)
    facts["amount"] = pd.to_numeric(facts["amount"], errors="coerce")

    return LedgerTables(
        facts=facts,
        categories=frames["categories"],
        accounts=frames["accounts"],
        transaction_types=frames["transaction_types"],
    )
