"""WorkflowManager: dispatch, validation, state tracking and the full pipeline."""

from __future__ import annotations

import pytest

from claypilot.core.errors import ErrorKind
from claypilot.selectors import catalog
from claypilot.workflows import manager as manager_module
from claypilot.workflows.manager import Workflow, WorkflowManager, WorkflowStatus
from claypilot.workflows.types import (
    CreateTableResult,
    EnrichmentState,
    EnrichmentType,
    LoginInput,
    RunEnrichmentInput,
    RunEnrichmentResult,
)
from fakes import FakeUI


def make_manager(config, ui: FakeUI | None = None) -> tuple[WorkflowManager, list]:
    manager = WorkflowManager(config)
    if ui is not None:
        manager.connect(ui)
    seen: list = []
    manager.events.subscribe(lambda e: seen.append((e.type, e.data)) if e.type.startswith("workflow-") else None)
    return manager, seen


class TestExecute:
    def setup_method(self):
        self.ui = FakeUI(
            visible={catalog.Home.NEW_BUTTON.selectors()[0]},
            url_after_click="https://app.clay.com/workspaces/ws1/tables/t_42",
        )

    async def test_unknown_workflow(self, config):
        manager, _ = make_manager(config, self.ui)

        with pytest.raises(ValueError, match="Unknown workflow"):
            await manager.execute("nope", {})

    async def test_invalid_payload_is_reported_not_raised(self, config):
        manager, seen = make_manager(config, self.ui)

        result = await manager.execute("create_table", {"table_name": ""})

        assert result.success is False
        assert result.error == "Invalid input for workflow: create_table"
        assert manager.get_state().status is WorkflowStatus.IDLE
        assert seen == []
        assert self.ui.calls == []

    async def test_success_updates_state_and_events(self, config):
        manager, seen = make_manager(config, self.ui)

        result = await manager.execute("create_table", {"tableName": "Leads"})

        assert result.success is True
        assert isinstance(result.data, CreateTableResult)
        assert result.data.table_id == "t_42"
        assert result.duration > 0
        state = manager.get_state()
        assert state.status is WorkflowStatus.COMPLETED
        assert state.current_workflow == "create_table"
        assert state.started_at is not None
        assert [t for t, _ in seen] == ["workflow-start", "workflow-complete"]

    async def test_automation_error_becomes_failed_result(self, config):
        manager, seen = make_manager(config, FakeUI())

        result = await manager.execute("create_table", {"tableName": "Leads"})

        assert result.success is False
        assert result.error_kind is ErrorKind.TABLE_NOT_FOUND
        assert result.screenshot_path is not None
        assert manager.get_state().status is WorkflowStatus.FAILED
        assert manager.get_state().error == result.error
        assert seen[-1][0] == "workflow-error"
        assert seen[-1][1]["kind"] == "TABLE_NOT_FOUND"

    async def test_timed_out_run_is_a_failure(self, config):
        config.timeouts.enrichment_run = 0.05
        progress = catalog.RunPanel.PROGRESS_INDICATOR.selectors()[0]
        manager, seen = make_manager(config, FakeUI(visible={progress}))

        result = await manager.execute("run_enrichment", {"table_id": "t_1"})

        assert result.success is False
        assert result.error_kind is ErrorKind.TIMEOUT
        assert result.data.status == "timed_out"
        assert manager.get_state().status is WorkflowStatus.FAILED
        assert [t for t, _ in seen] == ["workflow-start", "workflow-error"]

    async def test_unexpected_exception_is_wrapped(self, config, monkeypatch):
        async def boom(ctx):
            raise RuntimeError("kaboom")

        monkeypatch.setitem(manager_module.WORKFLOWS, "login", Workflow("login", "boom", boom, LoginInput))
        manager, _ = make_manager(config, self.ui)

        result = await manager.execute("login")

        assert result.success is False
        assert result.error == "kaboom"
        assert result.error_kind is ErrorKind.UNKNOWN

    async def test_missing_payload_uses_model_defaults(self, config, monkeypatch):
        received = []

        async def capture(ctx):
            received.append(ctx.payload)

        monkeypatch.setitem(manager_module.WORKFLOWS, "login", Workflow("login", "capture", capture, LoginInput))
        manager, _ = make_manager(config, self.ui)

        await manager.execute("login")

        assert received == [LoginInput()]

    def test_list_workflows(self):
        names = [w.name for w in WorkflowManager.list_workflows()]
        assert names == [
            "login",
            "create_table",
            "upload_csv",
            "add_enrichment",
            "write_prompt",
            "run_enrichment",
            "export_results",
        ]


class TestState:
    def test_progress_events_update_state(self, config):
        manager, _ = make_manager(config)

        manager.events.progress(40, "halfway-ish")
        manager.events.emit("enrichment-state", {"state": "running"})

        state = manager.get_state()
        assert state.progress == 40
        assert state.current_step == "running"

    def test_pause_and_resume(self, config):
        manager, _ = make_manager(config)
        manager.state.status = WorkflowStatus.RUNNING

        manager.pause()
        assert manager.get_state().status is WorkflowStatus.PAUSED
        manager.resume()
        assert manager.get_state().status is WorkflowStatus.RUNNING

    def test_resume_when_not_paused_keeps_status(self, config):
        manager, _ = make_manager(config)

        manager.resume()

        assert manager.get_state().status is WorkflowStatus.IDLE

    async def test_close_releases_backend(self, config):
        ui = FakeUI()
        manager, _ = make_manager(config, ui)

        await manager.close()

        assert len(ui.ops("close")) == 1
        assert manager.driver.is_connected is False


class TestPipeline:
    async def test_dry_run_runs_every_step(self, config, tmp_path):
        config.options.dry_run = True
        csv = tmp_path / "leads.csv"
        csv.write_text("email\na@example.com\n")
        manager, _ = make_manager(config)

        pipeline = await manager.run_full_pipeline(
            {
                "tableName": "Leads",
                "csvPath": str(csv),
                "enrichmentType": "email_finder",
                "outputPath": str(tmp_path / "out" / "leads.csv"),
            }
        )

        assert pipeline.success is True
        assert pipeline.failed_step is None
        assert list(pipeline.steps) == [
            "login",
            "create_table",
            "upload_csv",
            "add_enrichment",
            "run_enrichment",
            "export_results",
        ]
        assert pipeline.steps["create_table"].data.table_id == "dry-run-table"
        enrichment = pipeline.steps["add_enrichment"].data
        assert enrichment.column_name == "email_finder_result"
        assert enrichment.enrichment_type is EnrichmentType.EMAIL_FINDER

    async def test_export_is_skipped_without_output(self, config, tmp_path):
        config.options.dry_run = True
        csv = tmp_path / "leads.csv"
        csv.write_text("email\n")
        manager, _ = make_manager(config)

        pipeline = await manager.run_full_pipeline(
            {"tableName": "Leads", "csvPath": str(csv), "enrichmentType": "apollo_person"}
        )

        assert pipeline.success is True
        assert "export_results" not in pipeline.steps
        assert any(e.message == "Step 5/5: run_enrichment" for e in manager.events.entries())

    async def test_stops_at_first_failure(self, config, tmp_path):
        ui = FakeUI(
            redirects={config.urls.login: config.urls.dashboard},
            url_after_click="https://app.clay.com/workspaces/ws1/tables/t_7",
        )
        manager, _ = make_manager(config, ui)

        pipeline = await manager.run_full_pipeline(
            {
                "tableName": "Leads",
                "csvPath": str(tmp_path / "missing.csv"),
                "enrichmentType": "email_finder",
            }
        )

        assert pipeline.success is False
        assert pipeline.failed_step == "upload_csv"
        assert list(pipeline.steps) == ["login", "create_table", "upload_csv"]
        assert pipeline.steps["upload_csv"].error_kind is ErrorKind.UPLOAD_FAILED

    async def test_timed_out_run_skips_export(self, config, tmp_path, monkeypatch):
        async def never_finishes(ctx):
            return RunEnrichmentResult(
                success=False,
                rows_processed=0,
                duration=0.05,
                status="timed_out",
                state=EnrichmentState.TIMED_OUT,
            )

        monkeypatch.setitem(
            manager_module.WORKFLOWS,
            "run_enrichment",
            Workflow("run_enrichment", "stuck", never_finishes, RunEnrichmentInput),
        )
        config.options.dry_run = True
        csv = tmp_path / "leads.csv"
        csv.write_text("email\n")
        manager, _ = make_manager(config)

        pipeline = await manager.run_full_pipeline(
            {
                "tableName": "Leads",
                "csvPath": str(csv),
                "enrichmentType": "email_finder",
                "outputPath": str(tmp_path / "out.csv"),
            }
        )

        assert pipeline.success is False
        assert pipeline.failed_step == "run_enrichment"
        assert "export_results" not in pipeline.steps
        assert pipeline.steps["run_enrichment"].error_kind is ErrorKind.TIMEOUT
