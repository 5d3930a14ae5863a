"""Tests for the post-import history check."""

import pytest

from import_bot.core.enums import ImportType, VerificationStatus
from import_bot.services.csv_validator import CsvValidationResult
from import_bot.services.history_verifier import HistoryVerifier, evaluate_history
from import_bot.services.tasks import ImportTask


def row(import_type="schemes", status="Completed", total="2", file_name="schemes-template.csv"):
    return {
        "Type": import_type,
        "Status": status,
        "Total Rows processed": total,
        "File Name": file_name,
    }


class TestEvaluateHistory:
    """Tests for evaluate_history."""

    def test_pass(self):
        check = evaluate_history([row()], "schemes", 2, "schemes-template.csv")

        assert check.status is VerificationStatus.PASS
        assert check.accuracy == 100
        assert check.issues == []

    def test_missing(self):
        check = evaluate_history([row("projects")], "schemes", 2)

        assert check.status is VerificationStatus.MISSING
        assert check.found == 0

    def test_count_mismatch_fails(self):
        check = evaluate_history([row(total="1")], "schemes", 4)

        assert check.status is VerificationStatus.FAIL
        assert check.accuracy == 25
        assert "expected 4" in check.issues[0]

    def test_not_completed_fails(self):
        check = evaluate_history([row(status="Failed")], "schemes", 2)

        assert check.status is VerificationStatus.FAIL

    def test_file_name_mismatch_warns(self):
        check = evaluate_history([row(file_name="other.csv")], "schemes", 2, "schemes-template.csv")

        assert check.status is VerificationStatus.WARNING

    def test_fail_outranks_warning(self):
        check = evaluate_history(
            [row(total="1", file_name="other.csv")], "schemes", 2, "schemes-template.csv"
        )

        assert check.status is VerificationStatus.FAIL
        assert len(check.issues) == 2

    def test_first_matching_row_is_latest(self):
        rows = [row(total="2"), row(total="9", status="Failed")]

        assert evaluate_history(rows, "Schemes", 2).status is VerificationStatus.PASS

    def test_count_parsing_ignores_separators(self):
        check = evaluate_history([row(total="1,200 rows")], "schemes", 1200)

        assert check.found == 1200

    def test_zero_expected(self):
        assert evaluate_history([row(total="3")], "schemes", 0).accuracy == 0


class TestHistoryVerifier:
    """Tests for HistoryVerifier.verify."""

    @pytest.fixture
    def task(self, tmp_path):
        return ImportTask(
            1,
            ImportType.SCHEMES,
            str(tmp_path / "schemes-template.csv"),
            frozenset({"name"}),
            validation=CsvValidationResult("x", 10, 3, ("name",)),
        )

    @pytest.mark.asyncio
    async def test_reads_table_from_history_page(self, make_session, task):
        session = make_session()
        session.rows = [row()]

        check = await HistoryVerifier(session, "https://app.example.test").verify(task)

        assert session.navigated == ["https://app.example.test/dashboard/file-import"]
        assert check.status is VerificationStatus.PASS

    @pytest.mark.asyncio
    async def test_unreadable_table_is_skipped(self, make_session, task):
        session = make_session()

        async def broken():
            raise RuntimeError("table gone")

        session.table_rows = broken

        check = await HistoryVerifier(session, "https://app.example.test").verify(task)

        assert check.status is VerificationStatus.SKIPPED
        assert "table gone" in check.issues[0]
