"""
CSV Record Parser Service
Reads the flat monthly P&L export into MonthlyRecord objects.

Expected columns, after one header row:
    月度, 売上(千円), 原価(千円), 人件費(千円), 営業CF(千円),
    営業利益率(%), Fコスト(%), Lコスト(%), Rコスト(%)
"""
from io import StringIO
from typing import List

import pandas as pd

from app.shared.utils.logging_config import get_logger
from app.shared.utils.validators import number_or_zero
from ..models.report_models import MonthlyRecord
from .record_extractor import flr_total_of

logger = get_logger(__name__)

CSV_COLUMNS = 9


def parse_csv_rows(csv_text: str) -> List[List[str]]:
    """
    Split CSV text into trimmed string cells, header row included.

    Short rows are padded with "" and extra trailing fields are dropped.
    """
    if not csv_text or not csv_text.strip():
        return []

    try:
        df = pd.read_csv(
            StringIO(csv_text.strip()),
            header=None,
            index_col=False,
            names=list(range(CSV_COLUMNS)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=lambda fields: fields[:CSV_COLUMNS],
        )
    except pd.errors.EmptyDataError:
        return []

    df = df.fillna("")
    return [
        [str(cell).strip().strip('"') for cell in row]
        for row in df.itertuples(index=False, name=None)
    ]


def rows_to_monthly_records(rows: List[List[str]]) -> List[MonthlyRecord]:
    """
    Convert parsed rows to records, skipping the header row.

    Amounts stay in thousands as exported; unreadable numbers are 0.
    """
    records = []
    for row in rows[1:]:
        cells = list(row) + [""] * (CSV_COLUMNS - len(row))

        f_cost_rate = number_or_zero(cells[6])
        l_cost_rate = number_or_zero(cells[7])
        r_cost_rate = number_or_zero(cells[8])

        records.append(MonthlyRecord(
            month=cells[0],
            sales=number_or_zero(cells[1]),
            cost=number_or_zero(cells[2]),
            labor_cost=number_or_zero(cells[3]),
            operating_cf=number_or_zero(cells[4]),
            profit_rate=number_or_zero(cells[5]),
            f_cost_rate=f_cost_rate,
            l_cost_rate=l_cost_rate,
            r_cost_rate=r_cost_rate,
            flr_total=flr_total_of(f_cost_rate, l_cost_rate, r_cost_rate),
        ))

    logger.info(f"Parsed {len(records)} monthly records from CSV")
    return records
