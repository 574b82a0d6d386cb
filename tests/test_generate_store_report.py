import asyncio

import pytest

from app.application.store_report.generate_store_report import GenerateStoreReportUseCase
from app.core.exceptions import CommentaryError, DriveFetchError, StoreNotFoundError
from app.domain.store_report.models import ReportSource

from .conftest import FakeCommentaryGenerator, FakeDriveClient, make_config


@pytest.fixture
def drive(report_workbook):
    return FakeDriveClient({"file-kaneko": report_workbook})


def make_use_case(drive, commentary=None, enable_ai_commentary=True):
    return GenerateStoreReportUseCase(
        config=make_config(enable_ai_commentary),
        drive_client=drive,
        commentary_generator=commentary or FakeCommentaryGenerator(),
    )


def test_list_stores(drive):
    stores = make_use_case(drive).list_stores()

    assert stores == [
        {"store_name": "かね子", "sheet_name": "かね子報告書"},
        {"store_name": "スロパチ", "sheet_name": "スロパチ　報告書"},
    ]


class TestGenerateForStore:
    def test_report_with_commentary(self, drive):
        report = asyncio.run(make_use_case(drive).generate_for_store("かね子"))

        assert drive.requested == ["file-kaneko"]
        assert report.report_month == "2026年1月"
        assert [c.id for c in report.comments] == ["ai-100"]

    def test_without_commentary_keeps_placeholder(self, drive):
        commentary = FakeCommentaryGenerator()
        report = asyncio.run(make_use_case(drive, commentary).generate_for_store("かね子", with_commentary=False))

        assert commentary.calls == 0
        assert [c.id for c in report.comments] == ["default-1"]

    def test_commentary_failure_keeps_placeholder(self, drive):
        commentary = FakeCommentaryGenerator(error=CommentaryError("OpenAI API call failed"))
        report = asyncio.run(make_use_case(drive, commentary).generate_for_store("かね子"))

        assert commentary.calls == 1
        assert [c.id for c in report.comments] == ["default-1"]

    def test_disabled_generator_is_not_called(self, drive):
        commentary = FakeCommentaryGenerator(enabled=False)
        report = asyncio.run(make_use_case(drive, commentary).generate_for_store("かね子"))

        assert commentary.calls == 0
        assert report.comments[0].id == "default-1"

    def test_commentary_switched_off_in_config(self, drive):
        commentary = FakeCommentaryGenerator()
        asyncio.run(make_use_case(drive, commentary, enable_ai_commentary=False).generate_for_store("かね子"))

        assert commentary.calls == 0

    def test_unknown_store(self, drive):
        with pytest.raises(StoreNotFoundError):
            asyncio.run(make_use_case(drive).generate_for_store("存在しない店舗"))

        assert drive.requested == []

    def test_drive_failure_propagates(self, drive):
        with pytest.raises(DriveFetchError):
            asyncio.run(make_use_case(drive).generate_for_store("スロパチ"))


def test_generate_from_workbook(drive, report_workbook):
    report = make_use_case(drive).generate_from_workbook(report_workbook, "かね子報告書", "かね子")

    assert report.source is ReportSource.SPREADSHEET
    assert report.comments[0].id == "default-1"


def test_generate_from_csv(drive, three_month_csv):
    report = make_use_case(drive).generate_from_csv(three_month_csv, "かね子", "2026年1月")

    assert report.source is ReportSource.CSV
    assert report.comments == []


def test_detect_sheets(drive, report_workbook):
    result = make_use_case(drive).detect_sheets(report_workbook)

    assert result == {"sheets": ["かね子報告書", "集計"], "report_sheets": ["かね子報告書"]}


def test_regenerate_commentary(drive, report_workbook):
    use_case = make_use_case(drive)
    report = use_case.generate_from_workbook(report_workbook, "かね子報告書", "かね子")

    updated = asyncio.run(use_case.regenerate_commentary(report))

    assert [c.id for c in updated.comments] == ["ai-100"]
    assert report.comments[0].id == "default-1"


def test_regenerate_commentary_surfaces_errors(drive, report_workbook):
    use_case = make_use_case(drive, FakeCommentaryGenerator(error=CommentaryError("bad reply")))
    report = use_case.generate_from_workbook(report_workbook, "かね子報告書", "かね子")

    with pytest.raises(CommentaryError):
        asyncio.run(use_case.regenerate_commentary(report))


def test_commentary_runs_off_the_event_loop(drive):
    class LoopRecordingGenerator(FakeCommentaryGenerator):
        on_loop = []

        def generate(self, report):
            try:
                asyncio.get_running_loop()
                self.on_loop.append(True)
            except RuntimeError:
                self.on_loop.append(False)
            return super().generate(report)

    commentary = LoopRecordingGenerator()
    use_case = make_use_case(drive, commentary)

    report = asyncio.run(use_case.generate_for_store("かね子"))
    asyncio.run(use_case.regenerate_commentary(report))

    assert commentary.on_loop == [False, False]


def test_inspect_layout(drive, report_workbook):
    [sheet] = make_use_case(drive).inspect_layout(report_workbook)

    assert sheet["sheet_name"] == "かね子報告書"
    assert sheet["label_col"] == 1
    assert (sheet["latest_col"], sheet["latest_year"], sheet["latest_month"]) == (15, "2026", "1")
    assert sheet["months"][0] == "25/1月"
    assert len(sheet["months"]) == 13
