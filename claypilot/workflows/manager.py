"""Workflow registry and the manager that wires collaborators together."""

from __future__ import annotations

import datetime
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from claypilot.config import ClayConfig
from claypilot.core.errors import AutomationError, ErrorKind
from claypilot.core.events import Event, EventLog, format_duration
from claypilot.driver.facade import DriverFacade, ToolCallHandler
from claypilot.session.store import SessionStore
from claypilot.workflows.add_enrichment import add_enrichment, validate_add_enrichment_input
from claypilot.workflows.context import ConfirmCallback, WorkflowContext
from claypilot.workflows.create_table import create_table, validate_create_table_input
from claypilot.workflows.export_results import export_results, validate_export_results_input
from claypilot.workflows.login import login, validate_login_input
from claypilot.workflows.run_enrichment import run_enrichment, validate_run_enrichment_input
from claypilot.workflows.types import (
    AddEnrichmentInput,
    CreateTableInput,
    ExportResultsInput,
    LoginInput,
    PipelineConfig,
    RunEnrichmentInput,
    UploadCsvInput,
    WritePromptInput,
)
from claypilot.workflows.upload_csv import upload_csv, validate_upload_csv_input
from claypilot.workflows.write_prompt import validate_write_prompt_input, write_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Workflow:
    name: str
    description: str
    execute: Callable[[WorkflowContext[Any]], Awaitable[Any]]
    input_model: type[BaseModel]
    validate: Callable[[Any], bool] | None = None


WORKFLOWS: dict[str, Workflow] = {
    w.name: w
    for w in (
        Workflow("login", "Authenticate with Clay (manual or session restore)", login, LoginInput, validate_login_input),
        Workflow(
            "create_table",
            "Create a new table",
            create_table,
            CreateTableInput,
            validate_create_table_input,
        ),
        Workflow("upload_csv", "Upload CSV data to a table", upload_csv, UploadCsvInput, validate_upload_csv_input),
        Workflow(
            "add_enrichment",
            "Add an enrichment column to a table",
            add_enrichment,
            AddEnrichmentInput,
            validate_add_enrichment_input,
        ),
        Workflow(
            "write_prompt",
            "Create an AI prompt column",
            write_prompt,
            WritePromptInput,
            validate_write_prompt_input,
        ),
        Workflow(
            "run_enrichment",
            "Execute enrichment on table rows",
            run_enrichment,
            RunEnrichmentInput,
            validate_run_enrichment_input,
        ),
        Workflow(
            "export_results",
            "Export enriched data to CSV or JSON",
            export_results,
            ExportResultsInput,
            validate_export_results_input,
        ),
    )
}


class WorkflowStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class WorkflowState:
    status: WorkflowStatus = WorkflowStatus.IDLE
    current_workflow: str | None = None
    current_step: str | None = None
    progress: int = 0
    started_at: datetime.datetime | None = None
    error: str | None = None


@dataclass
class WorkflowRunResult:
    success: bool
    data: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    screenshot_path: str | None = None
    duration: float = 0.0


@dataclass
class PipelineResult:
    steps: dict[str, WorkflowRunResult] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return bool(self.steps) and all(r.success for r in self.steps.values())

    @property
    def failed_step(self) -> str | None:
        for name, result in self.steps.items():
            if not result.success:
                return name
        return None


def _unsuccessful(name: str, data: Any) -> AutomationError:
    status = getattr(data, "status", None)
    if status == "timed_out":
        return AutomationError(f"Workflow {name} timed out before completing", ErrorKind.TIMEOUT)
    return AutomationError(f"Workflow {name} reported an unsuccessful result", ErrorKind.UNKNOWN)


class WorkflowManager:
    """
    Composition root: owns one config, event log, session store and driver.

    Nothing here is a module-level singleton; tests build a manager per case
    and inject fakes through the constructor.
    """

    def __init__(
        self,
        config: ClayConfig | None = None,
        *,
        events: EventLog | None = None,
        session: SessionStore | None = None,
        driver: DriverFacade | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.config = config or ClayConfig()
        self.events = events or EventLog()
        self.session = session or SessionStore(settings=self.config.session)
        self.driver = driver or DriverFacade(self.config, self.events)
        self.confirm = confirm
        self.state = WorkflowState()
        self.events.subscribe(self._track_progress)

    def _track_progress(self, event: Event) -> None:
        if event.type == "progress":
            self.state.progress = int(event.data["percent"])
        elif event.type == "enrichment-state":
            self.state.current_step = event.data["state"]

    def connect(self, handler: ToolCallHandler) -> None:
        self.driver.connect(handler)

    @staticmethod
    def list_workflows() -> list[Workflow]:
        return list(WORKFLOWS.values())

    def context(self, payload: Any) -> WorkflowContext[Any]:
        return WorkflowContext(
            driver=self.driver,
            events=self.events,
            session=self.session,
            payload=payload,
            confirm=self.confirm,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, name: str, payload: Any = None) -> WorkflowRunResult:
        """Validate ``payload``, run the named workflow and report the outcome."""
        workflow = WORKFLOWS.get(name)
        if workflow is None:
            raise ValueError(f"Unknown workflow: {name}")

        if workflow.validate is not None and not workflow.validate(payload):
            message = f"Invalid input for workflow: {name}"
            self.events.error(message)
            return WorkflowRunResult(success=False, error=message)

        if payload is None or isinstance(payload, workflow.input_model):
            parsed = payload if payload is not None else workflow.input_model()
        else:
            parsed = workflow.input_model.model_validate(payload)

        self.state = WorkflowState(
            status=WorkflowStatus.RUNNING,
            current_workflow=name,
            started_at=datetime.datetime.now(datetime.timezone.utc),
        )
        self.events.emit("workflow-start", {"workflow": name})
        started = time.monotonic()

        try:
            data = await workflow.execute(self.context(parsed))
        except AutomationError as exc:
            return self._failed(name, exc, time.monotonic() - started)
        except Exception as exc:
            logger.exception("Workflow %s crashed", name)
            return self._failed(name, AutomationError(str(exc), ErrorKind.UNKNOWN), time.monotonic() - started)

        duration = time.monotonic() - started
        if getattr(data, "success", True) is False:
            return self._failed(name, _unsuccessful(name, data), duration, data)

        self.state.status = WorkflowStatus.COMPLETED
        self.events.emit("workflow-complete", {"workflow": name, "duration": duration})
        return WorkflowRunResult(success=True, data=data, duration=duration)

    def _failed(
        self, name: str, exc: AutomationError, duration: float, data: Any = None
    ) -> WorkflowRunResult:
        self.state.status = WorkflowStatus.FAILED
        self.state.error = exc.message
        self.events.emit(
            "workflow-error",
            {"workflow": name, "error": exc.message, "kind": exc.kind.value},
        )
        return WorkflowRunResult(
            success=False,
            data=data,
            error=exc.message,
            error_kind=exc.kind,
            screenshot_path=exc.screenshot_path,
            duration=duration,
        )

    async def run_full_pipeline(self, config: PipelineConfig | dict) -> PipelineResult:
        """
        login -> create_table -> upload_csv -> add_enrichment -> run_enrichment,
        then export_results when an output path is given. Stops at the first
        failed step.
        """
        if not isinstance(config, PipelineConfig):
            config = PipelineConfig.model_validate(config)

        pipeline = PipelineResult()
        total = 6 if config.output_path else 5
        column_name = f"{config.enrichment_type.value}_result"

        async def step(index: int, name: str, payload: Any) -> WorkflowRunResult:
            self.events.status(f"Step {index}/{total}: {name}")
            result = await self.execute(name, payload)
            pipeline.steps[name] = result
            return result

        if not (await step(1, "login", None)).success:
            return self._finish(pipeline)

        created = await step(2, "create_table", {"table_name": config.table_name})
        if not created.success:
            return self._finish(pipeline)
        table_id = created.data.table_id

        if not (await step(3, "upload_csv", {"file_path": config.csv_path, "table_id": table_id})).success:
            return self._finish(pipeline)

        enrichment = {
            "table_id": table_id,
            "enrichment": {
                "type": config.enrichment_type,
                "column_name": column_name,
                "source_column": config.source_column,
            },
        }
        if not (await step(4, "add_enrichment", enrichment)).success:
            return self._finish(pipeline)

        run = await step(5, "run_enrichment", {"table_id": table_id, "wait_for_completion": True})
        if not run.success:
            return self._finish(pipeline)

        if config.output_path:
            await step(
                6,
                "export_results",
                {"table_id": table_id, "output_path": config.output_path, "format": "csv"},
            )
        return self._finish(pipeline)

    def _finish(self, pipeline: PipelineResult) -> PipelineResult:
        stats: dict[str, Any] = {
            name: ("ok" if r.success else f"failed ({r.error})") + f" in {format_duration(r.duration)}"
            for name, r in pipeline.steps.items()
        }
        self.events.summary(stats)
        return pipeline

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def pause(self) -> None:
        """Mark the manager paused. Running operations are not interrupted."""
        self.state.status = WorkflowStatus.PAUSED
        self.events.status("Workflow paused")

    def resume(self) -> None:
        if self.state.status is WorkflowStatus.PAUSED:
            self.state.status = WorkflowStatus.RUNNING
        self.events.status("Workflow resumed")

    def get_state(self) -> WorkflowState:
        return self.state

    async def close(self) -> None:
        await self.driver.close()
