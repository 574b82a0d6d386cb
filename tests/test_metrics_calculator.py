from dataclasses import replace
from decimal import Decimal

import pytest

from app.core.exceptions import InsufficientDataError
from app.domain.store_report.models import MomTrend, MonthlyRecord, ReportSource
from app.domain.store_report.services.csv_record_parser import parse_csv_rows, rows_to_monthly_records
from app.domain.store_report.services.metrics_calculator import (
    PRIOR_YEAR_AVERAGE_LABEL,
    TrailingAverageSummaryStrategy,
    YearAgoSummaryStrategy,
    apply_mom_trends,
    classify_trend,
    find_year_ago_record,
    format_rate,
    prior_year_average,
    summary_strategy_for,
    year_ago_by_offset,
)
from app.domain.store_report.services.record_extractor import extract_monthly_records


@pytest.fixture
def sheet_records(report_grid):
    return extract_monthly_records(report_grid, label_col=1, latest_col=15)


@pytest.fixture
def csv_records(three_month_csv):
    return rows_to_monthly_records(parse_csv_rows(three_month_csv))


def flr_record(month, flr_total):
    return MonthlyRecord(month=month, flr_total=flr_total)


class TestFormatRate:
    def test_one_decimal(self):
        assert format_rate(20.0) == "20.0"
        assert format_rate(28.571428) == "28.6"
        assert format_rate(0) == "0.0"

    def test_halves_round_away_from_zero(self):
        assert format_rate(-1.25) == "-1.3"
        assert format_rate(1.25) == "1.3"


class TestClassifyTrend:
    @pytest.mark.parametrize("diff, expected", [
        ("-5", MomTrend.IMPROVED),
        ("-2", MomTrend.IMPROVED),
        ("-1.9", MomTrend.IMPROVED),
        ("-0.5", MomTrend.IMPROVED),
        ("-0.4", MomTrend.STEADY),
        ("0", MomTrend.STEADY),
        ("0.5", MomTrend.STEADY),
        ("0.6", MomTrend.SLIGHTLY_WORSE),
        ("2", MomTrend.SLIGHTLY_WORSE),
        ("2.01", MomTrend.WORSE),
        ("2.1", MomTrend.WORSE),
    ])
    def test_bands(self, diff, expected):
        assert classify_trend(Decimal(diff)) is expected


class TestMomTrends:
    def test_first_month_has_no_trend(self, sheet_records):
        trended = apply_mom_trends(sheet_records)

        assert trended[0].mom_trend == "-"
        assert all(r.mom_trend == "維持" for r in trended[1:-1])
        assert trended[-1].mom_trend == "悪化"

    def test_exact_half_point_rise_is_steady(self):
        trended = apply_mom_trends([flr_record("25/12月", 60.2), flr_record("26/1月", 60.7)])

        assert trended[1].mom_trend == "維持"

    def test_improvement(self):
        trended = apply_mom_trends([flr_record("25/12月", 64.0), flr_record("26/1月", 61.0)])

        assert trended[1].mom_trend == "改善"

    def test_input_is_not_mutated(self, sheet_records):
        apply_mom_trends(sheet_records)

        assert sheet_records[-1].mom_trend == "-"


class TestPriorYearAverage:
    def test_averages_every_record_but_the_latest(self, sheet_records):
        average = prior_year_average(sheet_records)

        assert average.month == PRIOR_YEAR_AVERAGE_LABEL
        assert average.sales == 6550
        assert average.cost == 1965
        assert average.f_cost_rate == 30.0
        assert average.flr_total == 60.0
        assert average.profit_rate == 20.0

    def test_single_record_is_insufficient(self, sheet_records):
        with pytest.raises(InsufficientDataError) as exc_info:
            prior_year_average(sheet_records[-1:])

        assert exc_info.value.status_code == 422


class TestYearAgoLookup:
    def test_found_by_label(self, sheet_records):
        assert find_year_ago_record(sheet_records, "2026", "1").month == "25/1月"

    def test_same_year_label_is_ignored(self, sheet_records):
        assert find_year_ago_record(sheet_records[1:], "2026", "1") is None

    def test_unknown_year_never_matches(self, sheet_records):
        assert find_year_ago_record(sheet_records, "", "1") is None

    def test_offset_clamps_to_first_record(self, csv_records):
        assert year_ago_by_offset(csv_records, 2) is csv_records[0]


class TestYearAgoSummaryStrategy:
    def test_summary(self, sheet_records):
        summary = YearAgoSummaryStrategy("2026", "1").summarize(sheet_records)

        assert summary.sales == 7_200_000
        assert summary.sales_yoy_label == "(前年同月比 20.0%)"
        assert summary.operating_profit_rate == 25.0
        assert summary.profit_rate_yoy_change == 5.0
        assert summary.operating_cf == 1_800_000
        assert summary.f_cost_rate == 35.0
        assert summary.f_cost_rate_change == 5.0
        assert summary.flr_cost_rate == 65.0
        assert summary.flr_cost_rate_change == 5.0

    def test_yoy_comparison(self, sheet_records):
        yoy = YearAgoSummaryStrategy("2026", "1").compare(sheet_records)

        assert yoy.previous_year.sales == 6_000_000
        assert yoy.current_year.sales == 7_200_000
        assert yoy.change.sales_amount == 1_200_000
        assert yoy.change.sales_rate == 20.0
        assert yoy.change.cf_amount == 600_000
        assert yoy.change.cf_rate == 50.0
        assert yoy.change.profit_rate_change == 5.0

    def test_missing_year_ago_record_gives_zeros(self, sheet_records):
        strategy = YearAgoSummaryStrategy("2026", "1")

        summary = strategy.summarize(sheet_records[1:])
        yoy = strategy.compare(sheet_records[1:])

        assert summary.sales_yoy_label == ""
        assert summary.profit_rate_yoy_change == 0
        assert summary.f_cost_rate_change == 0
        assert summary.flr_cost_rate_change == 0
        assert yoy.previous_year.sales == 0
        assert yoy.change.sales_amount == 7_200_000
        assert yoy.change.sales_rate == 0
        assert yoy.change.profit_rate_change == 0

    def test_zero_year_ago_profit_rate_reports_no_change(self, sheet_records):
        records = [replace(sheet_records[0], profit_rate=0.0)] + sheet_records[1:]
        strategy = YearAgoSummaryStrategy("2026", "1")

        assert strategy.summarize(records).profit_rate_yoy_change == 0
        assert strategy.compare(records).change.profit_rate_change == 0

    def test_no_records(self):
        with pytest.raises(InsufficientDataError):
            YearAgoSummaryStrategy("2026", "1").summarize([])


class TestTrailingAverageSummaryStrategy:
    def test_summary(self, csv_records):
        summary = TrailingAverageSummaryStrategy().summarize(csv_records)

        assert summary.sales == 9_000_000
        assert summary.sales_yoy_label == "前年平均比 20.0%"
        assert summary.profit_rate_yoy_change == 5.0
        assert summary.operating_cf == 2_250_000
        assert summary.f_cost_rate_change == 5.0
        assert summary.flr_cost_rate == 65.0
        assert summary.flr_cost_rate_change == 5.0

    def test_yoy_falls_back_to_first_record(self, csv_records):
        yoy = TrailingAverageSummaryStrategy().compare(csv_records)

        assert yoy.previous_year.sales == 7_000_000
        assert yoy.change.sales_amount == 2_000_000
        assert yoy.change.sales_rate == 28.6
        assert yoy.change.cf_amount == 850_000
        assert yoy.change.cf_rate == 60.7
        assert yoy.change.profit_rate_change == 5.0

    def test_single_month(self, csv_records):
        strategy = TrailingAverageSummaryStrategy()

        summary = strategy.summarize(csv_records[:1])
        yoy = strategy.compare(csv_records[:1])

        assert summary.sales_yoy_label == "前年平均比 0.0%"
        assert summary.f_cost_rate_change == 0
        assert yoy.change.sales_amount == 0


def test_strategy_selection():
    assert isinstance(summary_strategy_for(ReportSource.SPREADSHEET, "2026", "1"), YearAgoSummaryStrategy)
    assert isinstance(summary_strategy_for(ReportSource.CSV), TrailingAverageSummaryStrategy)
