"""Tests for TaskOrchestrator and RunSummary."""

import asyncio

import pytest

from import_bot.core.enums import ErrorKind, ImportType, TaskStatus, VerificationStatus
from import_bot.core.exceptions import (
    AuthenticationError,
    OperationCancelledError,
    PreviewValidationError,
)
from import_bot.resilience import DiagnosticCapture
from import_bot.services import HistoryCheck, PipelineStage, RunSummary, TaskOrchestrator
from import_bot.services.tasks import ImportTask


class FakeAuthenticator:
    def __init__(self, error=None):
        self.error = error
        self.calls = 0

    async def authenticate(self):
        self.calls += 1
        if self.error is not None:
            raise self.error


class FakePipeline:
    """Records (label, stage) calls and raises where told to."""

    def __init__(self, failures=None, on_stage=None):
        self.failures = failures or {}
        self.on_stage = on_stage
        self.calls = []

    async def run_stage(self, stage, task):
        self.calls.append((task.label, stage))
        if self.on_stage is not None:
            self.on_stage(stage, task)
        error = self.failures.get((task.import_type, stage))
        if error is not None:
            raise error


class FakeVerifier:
    def __init__(self):
        self.verified = []

    async def verify(self, task):
        self.verified.append(task.label)
        return HistoryCheck(VerificationStatus.PASS, expected=2, found=2, accuracy=100)


def make_tasks():
    types = [ImportType.SCHEMES, ImportType.PROJECTS, ImportType.INSPECTORS]
    return [
        ImportTask(i, t, f"/data/{t.value}.csv", frozenset({"name"}))
        for i, t in enumerate(types, start=1)
    ]


@pytest.fixture
def diagnostics(fake_session, tmp_path):
    return DiagnosticCapture(fake_session, screenshots_dir=tmp_path / "screenshots")


class TestTaskOrchestrator:
    """Tests for TaskOrchestrator.run."""

    @pytest.mark.asyncio
    async def test_all_tasks_complete_in_order(self):
        pipeline = FakePipeline()
        tasks = make_tasks()
        orchestrator = TaskOrchestrator(FakeAuthenticator(), pipeline)

        summary = await orchestrator.run(tasks)

        assert summary.completed == 3
        assert summary.failed == 0
        assert summary.finished_at is not None
        assert [stage for label, stage in pipeline.calls[:5]] == list(PipelineStage)
        assert [label for label, _ in pipeline.calls[::5]] == [
            "01-schemes",
            "02-projects",
            "03-inspectors",
        ]

    @pytest.mark.asyncio
    async def test_failed_task_isolated_and_run_continues(self, diagnostics, fake_session):
        pipeline = FakePipeline(
            failures={
                (ImportType.PROJECTS, PipelineStage.VERIFY_READINESS): PreviewValidationError(
                    "projects"
                )
            }
        )
        tasks = make_tasks()
        orchestrator = TaskOrchestrator(FakeAuthenticator(), pipeline, diagnostics=diagnostics)

        summary = await orchestrator.run(tasks)

        assert [t.status for t in tasks] == [
            TaskStatus.COMPLETED,
            TaskStatus.FAILED,
            TaskStatus.COMPLETED,
        ]
        assert summary.completed == 2
        assert summary.failed == 1
        assert summary.fatal_error is None
        assert tasks[1].stage == "verify_readiness"
        assert tasks[1].error["kind"] == ErrorKind.IMPORT_STAGE.value
        assert "error-import-02-projects" in fake_session.images
        assert len(diagnostics.errors) == 1
        assert diagnostics.errors[0]["context"] == {"stage": "verify_readiness"}
        # The failed task stops at the failing stage; the next task starts fresh.
        project_stages = [s for label, s in pipeline.calls if label == "02-projects"]
        assert project_stages[-1] is PipelineStage.VERIFY_READINESS
        assert ("03-inspectors", PipelineStage.LOCATE_TARGET) in pipeline.calls

    @pytest.mark.asyncio
    async def test_unexpected_exception_recorded(self):
        pipeline = FakePipeline(
            failures={(ImportType.SCHEMES, PipelineStage.CONFIRM): KeyError("boom")}
        )
        tasks = make_tasks()

        await TaskOrchestrator(FakeAuthenticator(), pipeline).run(tasks)

        assert tasks[0].status is TaskStatus.FAILED
        assert tasks[0].error["error"] == "KeyError"
        assert tasks[0].duration is not None

    @pytest.mark.asyncio
    async def test_authentication_failure_is_fatal(self):
        pipeline = FakePipeline()
        tasks = make_tasks()
        authenticator = FakeAuthenticator(AuthenticationError("no login"))
        orchestrator = TaskOrchestrator(authenticator, pipeline)

        with pytest.raises(AuthenticationError):
            await orchestrator.run(tasks)

        assert pipeline.calls == []
        assert orchestrator.summary.fatal_error["kind"] == ErrorKind.AUTHENTICATION.value
        assert all(t.status is TaskStatus.PENDING for t in tasks)

    @pytest.mark.asyncio
    async def test_stop_event_cancels_between_stages(self):
        stop = asyncio.Event()

        def stop_after_upload(stage, task):
            if stage is PipelineStage.SUBMIT_INPUT:
                stop.set()

        pipeline = FakePipeline(on_stage=stop_after_upload)
        tasks = make_tasks()
        orchestrator = TaskOrchestrator(FakeAuthenticator(), pipeline, stop_event=stop)

        with pytest.raises(OperationCancelledError):
            await orchestrator.run(tasks)

        assert len(pipeline.calls) == 2
        assert tasks[0].status is TaskStatus.FAILED
        assert tasks[1].status is TaskStatus.PENDING
        assert orchestrator.summary.fatal_error["kind"] == ErrorKind.CANCELLED.value

    @pytest.mark.asyncio
    async def test_verifier_runs_for_completed_tasks_only(self):
        pipeline = FakePipeline(
            failures={(ImportType.INSPECTORS, PipelineStage.SUBMIT_INPUT): RuntimeError("x")}
        )
        verifier = FakeVerifier()
        tasks = make_tasks()

        await TaskOrchestrator(FakeAuthenticator(), pipeline, verifier=verifier).run(tasks)

        assert verifier.verified == ["01-schemes", "02-projects"]
        assert tasks[0].verification["status"] == "PASS"
        assert tasks[2].verification == {}


class TestRunSummary:
    """Tests for RunSummary."""

    def test_render_table_counts(self):
        tasks = make_tasks()
        for task in tasks:
            task.transition(TaskStatus.RUNNING)
        tasks[0].transition(TaskStatus.COMPLETED)
        tasks[1].transition(TaskStatus.FAILED)
        tasks[1].error = {"message": "Data validation failed for projects"}
        summary = RunSummary(tasks=tasks)

        table = summary.render_table()

        assert "IMPORT SUMMARY" in table
        assert "Completed: 1  Failed: 1  Total: 3" in table
        assert "Data validation failed" in table
