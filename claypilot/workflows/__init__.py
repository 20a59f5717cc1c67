"""Workflow orchestrators and the manager that runs them."""

from claypilot.workflows.add_enrichment import add_enrichment, validate_add_enrichment_input
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.create_table import create_table, validate_create_table_input
from claypilot.workflows.export_results import export_results, validate_export_results_input
from claypilot.workflows.login import login, validate_login_input
from claypilot.workflows.manager import (
    WORKFLOWS,
    PipelineResult,
    Workflow,
    WorkflowManager,
    WorkflowRunResult,
    WorkflowState,
    WorkflowStatus,
)
from claypilot.workflows.run_enrichment import run_enrichment, validate_run_enrichment_input
from claypilot.workflows.types import (
    AddEnrichmentInput,
    AddEnrichmentResult,
    CreateTableInput,
    CreateTableResult,
    EnrichmentConfig,
    EnrichmentState,
    EnrichmentType,
    ExportResultsInput,
    ExportResultsResult,
    LoginInput,
    LoginResult,
    PipelineConfig,
    PromptConfig,
    RunEnrichmentInput,
    RunEnrichmentResult,
    UploadCsvInput,
    UploadCsvResult,
    WritePromptInput,
    WritePromptResult,
)
from claypilot.workflows.upload_csv import upload_csv, validate_upload_csv_input
from claypilot.workflows.write_prompt import validate_write_prompt_input, write_prompt

__all__ = [
    "WORKFLOWS",
    "AddEnrichmentInput",
    "AddEnrichmentResult",
    "CreateTableInput",
    "CreateTableResult",
    "EnrichmentConfig",
    "EnrichmentState",
    "EnrichmentType",
    "ExportResultsInput",
    "ExportResultsResult",
    "LoginInput",
    "LoginResult",
    "PipelineConfig",
    "PipelineResult",
    "PromptConfig",
    "RunEnrichmentInput",
    "RunEnrichmentResult",
    "UploadCsvInput",
    "UploadCsvResult",
    "Workflow",
    "WorkflowContext",
    "WorkflowManager",
    "WorkflowRunResult",
    "WorkflowState",
    "WorkflowStatus",
    "WritePromptInput",
    "WritePromptResult",
    "add_enrichment",
    "create_table",
    "export_results",
    "login",
    "run_enrichment",
    "upload_csv",
    "validate_add_enrichment_input",
    "validate_create_table_input",
    "validate_export_results_input",
    "validate_login_input",
    "validate_run_enrichment_input",
    "validate_upload_csv_input",
    "validate_write_prompt_input",
    "write_prompt",
]
