from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_EXCLUDED_YEAR = 2022
DEFAULT_PURCHASE_TYPE_IDS = (1, 2)

@dataclass(frozen=True)
class Settings:
    excluded_year: int
    report_horizon_end: date
    report_horizon_start: Optional[date] = None
    purchase_type_ids: Tuple[int, ...] = DEFAULT_PURCHASE_TYPE_IDS
    input_dir: Optional[Path] = None
    output_dir: Optional[Path] = None

    @property
    def tables_dir(self) -> Optional[Path]:
        return self.output_dir / "tables" if self.output_dir else None

def build_settings(
    excluded_year=DEFAULT_EXCLUDED_YEAR,
    report_horizon_end=None,
    report_horizon_start=None,
    purchase_type_ids=DEFAULT_PURCHASE_TYPE_IDS,
    input_dir=None,
    output_dir=None,
) -> Settings:
    return Settings(
        excluded_year=int(excluded_year),
        report_horizon_end=_as_date(report_horizon_end) or date.today(),
        report_horizon_start=_as_date(report_horizon_start),
        purchase_type_ids=tuple(int(t) for t in purchase_type_ids),
        input_dir=Path(input_dir) if input_dir else None,
        output_dir=Path(output_dir) if output_dir else None,
    )

def _as_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())
