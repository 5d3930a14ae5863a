"""Tests for import task records and preparation."""

import pytest

from import_bot.core.enums import ImportType, TaskStatus
from import_bot.core.exceptions import InvalidTransitionError, NoValidTasksError
from import_bot.services.tasks import ImportTask, prepare_tasks


def make_task(index=1, import_type=ImportType.SCHEMES):
    return ImportTask(index, import_type, f"/data/{import_type.value}.csv", frozenset({"name"}))


class TestImportTask:
    """Tests for ImportTask."""

    def test_label(self):
        assert make_task(2, ImportType.PROJECTS).label == "02-projects"

    def test_happy_transitions(self):
        task = make_task()
        task.transition(TaskStatus.RUNNING)
        task.transition(TaskStatus.COMPLETED)
        assert task.status is TaskStatus.COMPLETED

    @pytest.mark.parametrize(
        "path",
        [
            [TaskStatus.COMPLETED],
            [TaskStatus.RUNNING, TaskStatus.PENDING],
            [TaskStatus.RUNNING, TaskStatus.FAILED, TaskStatus.RUNNING],
            [TaskStatus.RUNNING, TaskStatus.COMPLETED, TaskStatus.FAILED],
        ],
    )
    def test_invalid_transitions_rejected(self, path):
        task = make_task()
        with pytest.raises(InvalidTransitionError):
            for status in path:
                task.transition(status)

    def test_to_dict(self):
        task = make_task()
        data = task.to_dict()
        assert data["type"] == "schemes"
        assert data["status"] == "pending"
        assert data["line_count"] is None


class TestPrepareTasks:
    """Tests for prepare_tasks."""

    def test_one_task_per_valid_type_in_order(self, csv_dir):
        tasks = prepare_tasks(csv_dir, list(ImportType))

        assert [t.label for t in tasks] == ["01-schemes", "02-projects", "03-inspectors"]
        assert tasks[2].validation.data_rows == 3
        assert all(t.status is TaskStatus.PENDING for t in tasks)

    def test_invalid_file_skipped_and_indexes_stay_sequential(self, csv_dir):
        (csv_dir / "projects-template.csv").write_text("title\nx\n", encoding="utf-8")

        tasks = prepare_tasks(csv_dir, list(ImportType))

        assert [t.label for t in tasks] == ["01-schemes", "02-inspectors"]

    def test_no_valid_files_raises(self, tmp_path):
        (tmp_path / "schemes.csv").write_text("", encoding="utf-8")

        with pytest.raises(NoValidTasksError) as exc_info:
            prepare_tasks(tmp_path / "schemes.csv", [ImportType.SCHEMES])

        assert "schemes" in exc_info.value.context["skipped"]

    def test_custom_contracts(self, csv_dir):
        tasks = prepare_tasks(
            csv_dir, [ImportType.SCHEMES], contracts={"schemes": frozenset({"scheme_code"})}
        )
        assert tasks[0].header_contract == frozenset({"scheme_code"})
