"""Workflow inputs (validated with pydantic) and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class EnrichmentType(str, Enum):
    APOLLO_PERSON = "apollo_person"
    APOLLO_COMPANY = "apollo_company"
    CLEARBIT_PERSON = "clearbit_person"
    CLEARBIT_COMPANY = "clearbit_company"
    EMAIL_FINDER = "email_finder"
    COMPANY_SEARCH = "company_search"
    LINKEDIN_PROFILE = "linkedin_profile"
    PHONE_FINDER = "phone_finder"
    CUSTOM_API = "custom_api"


ENRICHMENT_LABELS: dict[EnrichmentType, str] = {
    EnrichmentType.APOLLO_PERSON: "Find Person (Apollo)",
    EnrichmentType.APOLLO_COMPANY: "Find Company (Apollo)",
    EnrichmentType.CLEARBIT_PERSON: "Enrich Person (Clearbit)",
    EnrichmentType.CLEARBIT_COMPANY: "Enrich Company (Clearbit)",
    EnrichmentType.EMAIL_FINDER: "Find Email",
    EnrichmentType.COMPANY_SEARCH: "Company Search",
    EnrichmentType.LINKEDIN_PROFILE: "LinkedIn Profile",
    EnrichmentType.PHONE_FINDER: "Find Phone Number",
    EnrichmentType.CUSTOM_API: "Custom API",
}


class EnrichmentState(str, Enum):
    NOT_STARTED = "not_started"
    NAVIGATING = "navigating"
    LOCATING_RUN_CONTROL = "locating_run_control"
    CONFIRMING = "confirming"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class _Input(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LoginInput(_Input):
    identity: str | None = None


class CreateTableInput(_Input):
    table_name: str = Field(alias="tableName", min_length=1)
    description: str | None = None
    workspace_id: str | None = Field(default=None, alias="workspaceId")


class UploadCsvInput(_Input):
    file_path: str = Field(alias="filePath", min_length=1)
    table_id: str = Field(alias="tableId", min_length=1)
    mappings: dict[str, str] | None = None
    skip_duplicates: bool = Field(default=False, alias="skipDuplicates")


class EnrichmentConfig(_Input):
    type: EnrichmentType
    column_name: str = Field(alias="columnName", min_length=1)
    source_column: str = Field(alias="sourceColumn", min_length=1)
    settings: dict[str, Any] | None = None


class AddEnrichmentInput(_Input):
    table_id: str = Field(alias="tableId", min_length=1)
    enrichment: EnrichmentConfig = Field(alias="enrichmentConfig")


class PromptConfig(_Input):
    column_name: str = Field(alias="columnName", min_length=1)
    prompt: str = Field(min_length=1)
    source_columns: list[str] = Field(alias="sourceColumns", min_length=1)
    model: str | None = None
    max_tokens: int | None = Field(default=None, alias="maxTokens", gt=0)


class WritePromptInput(_Input):
    table_id: str = Field(alias="tableId", min_length=1)
    prompt: PromptConfig = Field(alias="promptConfig")


class RunEnrichmentInput(_Input):
    table_id: str = Field(alias="tableId", min_length=1)
    columns: list[str] | None = None
    wait_for_completion: bool = Field(default=True, alias="waitForCompletion")


class ExportResultsInput(_Input):
    table_id: str = Field(alias="tableId", min_length=1)
    output_path: str = Field(alias="outputPath", min_length=1)
    format: Literal["csv", "json"] = "csv"
    include_columns: list[str] | None = Field(default=None, alias="includeColumns")


class PipelineConfig(_Input):
    table_name: str = Field(alias="tableName", min_length=1)
    csv_path: str = Field(alias="csvPath", min_length=1)
    enrichment_type: EnrichmentType = Field(alias="enrichmentType")
    source_column: str = Field(default="email", alias="sourceColumn")
    output_path: str | None = Field(default=None, alias="outputPath")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class LoginResult:
    success: bool
    identity: str | None = None
    reused_session: bool = False


@dataclass
class CreateTableResult:
    table_id: str
    table_name: str
    table_url: str


@dataclass
class UploadCsvResult:
    success: bool
    rows_uploaded: int
    table_id: str


@dataclass
class AddEnrichmentResult:
    column_id: str
    column_name: str
    enrichment_type: EnrichmentType
    verified: bool = False


@dataclass
class WritePromptResult:
    column_id: str
    column_name: str
    prompt_length: int
    skipped_sources: list[str] = field(default_factory=list)


@dataclass
class RunEnrichmentResult:
    success: bool
    rows_processed: int
    duration: float
    status: Literal["completed", "timed_out", "failed", "running"]
    state: EnrichmentState = EnrichmentState.NOT_STARTED
    progress: int = 0


@dataclass
class ExportResultsResult:
    success: bool
    file_path: str
    row_count: int
    format: Literal["csv", "json"]
    download_link: str | None = None


def validates(model: type[BaseModel], payload: Any) -> bool:
    """True if ``payload`` (a mapping or model instance) satisfies ``model``."""
    if isinstance(payload, model):
        return True
    try:
        model.model_validate(payload)
    except ValidationError:
        return False
    return True
