#!/usr/bin/env python3
"""
run_views.py

Builds the ledger spend views and writes them as CSV tables plus one
Excel workbook.

Input (LEDGER_INPUT_DIR or --input-dir):
- transaction_facts.csv  transaction_id, date, account_id, category_id,
                         transaction_type_id, amount
- category.csv           category_id, category_description
- account.csv            account_id, account_type
- transaction_type.csv   transaction_type_id

Output (LEDGER_OUTPUT_DIR or --output-dir):
- tables/<view>.csv for each view
- ledger_views.xlsx

Environment Variables:
- EXCLUDED_YEAR: year left out of spend views (default: 2022)
- REPORT_HORIZON_END: last day of daily views, YYYY-MM-DD (default: today)
- REPORT_HORIZON_START: first calendar day, YYYY-MM-DD (default: Jan 1 of first ledger year)
- PURCHASE_TYPE_IDS: comma separated purchase transaction types (default: 1,2)
"""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from ledger_views.io import ensure_dirs, load_settings, load_tables
from ledger_views.ledger import validate_ledger
from ledger_views.report import save_csv, save_excel
from ledger_views.views import materialize


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build monthly, daily, category and account spend views from a ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_views.py --input-dir ledger/ --output-dir outputs/
  python run_views.py --input-dir ledger/ --output-dir outputs/ --excluded-year 2021 --horizon-end 2024-12-31
        """
    )
    parser.add_argument("--input-dir", type=str, default=None, help="Directory with the ledger CSVs")
    parser.add_argument("--output-dir", type=str, default=None, help="Directory to write the views")
    parser.add_argument("--excluded-year", type=int, default=None, help="Year left out of spend views")
    parser.add_argument("--horizon-end", type=str, default=None, help="Last day of daily views (YYYY-MM-DD)")
    parser.add_argument("--workers", type=int, default=1, help="Views computed in parallel (default: 1)")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    s = load_settings(
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        excluded_year=args.excluded_year,
        horizon_end=args.horizon_end,
    )
    if s.input_dir is None or s.output_dir is None:
        raise SystemExit("Missing input/output dir. Provide --input-dir/--output-dir or set LEDGER_INPUT_DIR/LEDGER_OUTPUT_DIR in .env.")
    ensure_dirs(s)

    print(f"[INFO] Loading ledger from: {s.input_dir}")
    tables = load_tables(s.input_dir)
    print(f"[INFO] Loaded {len(tables.facts)} transactions")

    is_valid, errors = validate_ledger(tables)
    if not is_valid:
        print("[ERROR] Ledger validation failed:")
        for err in errors:
            print(f"  - {err}")
        raise SystemExit(1)
    if errors:
        print("[WARNING] Ledger validation warnings:")
        for err in errors:
            print(f"  - {err}")

    views = materialize(tables, s, max_workers=args.workers).as_dict()

    for name, df in views.items():
        save_csv(df, s.tables_dir / f"{name}.csv")
    save_excel(views, s.output_dir / "ledger_views.xlsx")

    print(f"[OK] Wrote {len(views)} views to: {s.output_dir}")


if __name__ == "__main__":
    main()
