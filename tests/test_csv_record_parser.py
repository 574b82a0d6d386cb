from app.domain.store_report.services.csv_record_parser import parse_csv_rows, rows_to_monthly_records

from .conftest import CSV_HEADER


def records_of(*lines):
    return rows_to_monthly_records(parse_csv_rows("\n".join((CSV_HEADER,) + lines)))


def test_row_becomes_record_with_flr_total():
    [record] = records_of("2026年1月,7645,2191,2678,1384,18.1,28.7,35.0,6.4")

    assert record.month == "2026年1月"
    assert record.sales == 7645
    assert record.cost == 2191
    assert record.labor_cost == 2678
    assert record.operating_cf == 1384
    assert record.profit_rate == 18.1
    assert record.flr_total == 70.1


def test_amounts_stay_in_thousands(three_month_csv):
    records = rows_to_monthly_records(parse_csv_rows(three_month_csv))

    assert [r.sales for r in records] == [7000, 8000, 9000]
    assert [r.month for r in records] == ["2025年11月", "2025年12月", "2026年1月"]


def test_quoted_cells_and_padding():
    [record] = records_of('"2026年1月","7,645", 2191 ,2678,1384,18.1,28.7,35.0,6.4')

    assert record.month == "2026年1月"
    assert record.sales == 7645
    assert record.cost == 2191


def test_short_rows_read_missing_fields_as_zero():
    [record] = records_of("2026年1月,7645")

    assert record.sales == 7645
    assert record.cost == 0
    assert record.f_cost_rate == 0
    assert record.flr_total == 0


def test_unreadable_numbers_are_zero():
    [record] = records_of("2026年1月,n/a,2191,2678,1384,18.1,-,35.0,6.4")

    assert record.sales == 0
    assert record.f_cost_rate == 0
    assert record.flr_total == 41.4


def test_blank_lines_are_skipped():
    records = records_of(
        "2025年12月,8000,2400,2000,1600,20.0,30.0,25.0,5.0",
        "",
        "2026年1月,9000,3150,2250,2250,25.0,35.0,25.0,5.0",
    )

    assert len(records) == 2


def test_header_only_and_empty_input():
    assert rows_to_monthly_records(parse_csv_rows(CSV_HEADER)) == []
    assert parse_csv_rows("") == []
    assert parse_csv_rows("  \n  ") == []
