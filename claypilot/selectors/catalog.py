"""Locator candidates for the target application's UI, most specific first."""

from __future__ import annotations

from claypilot.selectors.types import (
    CandidateList,
    by_attr,
    by_css,
    by_role,
    by_test_id,
    by_text,
    raw,
)

C = CandidateList.of


class Login:
    EMAIL_INPUT = C("email input", by_attr("type", "email", "input"), by_attr("name", "email", "input"))


class Home:
    WORKSPACE_LIST = C("workspace list", by_css('[class*="files"]'), by_css('[class*="workspace"]'))
    WORKSPACE_ITEM = C("workspace item", by_css('[class*="file-row"]'), by_css("tr:has(td)"))
    TABLES_CONTAINER = C(
        "tables container",
        by_role("grid"),
        by_css('[class*="table"]'),
        by_css('[class*="spreadsheet"]'),
    )
    NEW_BUTTON = C("new button", by_text("New"), by_text("+ New"), by_test_id("create-table"))
    NEW_TABLE_OPTION = C(
        "new table option",
        raw("text=Blank table"),
        raw("text=Table"),
        by_text("Create table"),
    )

    # Landing probes used to tell an authenticated page from the login form
    AUTHENTICATED_LANDING = WORKSPACE_LIST + TABLES_CONTAINER


class CreateTable:
    NAME_INPUT = C(
        "table name input",
        by_attr("name", "name", "input"),
        by_css('input[placeholder*="name" i]'),
        by_css('input[value*="Untitled"]'),
    )
    DESCRIPTION_INPUT = C(
        "table description input",
        by_css('textarea[placeholder*="describe" i]'),
        by_attr("name", "description", "textarea"),
    )
    CREATE_BUTTON = C(
        "create button",
        by_text("Create"),
        by_attr("type", "submit", "button"),
        by_text("Done"),
    )


class Table:
    ADD_COLUMN = C(
        "add column button",
        by_text("Add column"),
        by_test_id("add-column"),
        by_css('[class*="add-column"]'),
        by_text("+"),
    )
    IMPORT_BUTTON = C(
        "import button",
        by_text("Import"),
        by_text("Upload"),
        by_text("Add data"),
        by_test_id("import-button"),
    )
    RUN_BUTTON = C(
        "run button",
        by_text("Run all"),
        by_text("Run"),
        by_text("Enrich"),
        by_text("Start"),
        by_test_id("run-enrichment"),
    )
    EXPORT_BUTTON = C(
        "export button",
        by_text("Export"),
        by_text("Download"),
        by_test_id("export-button"),
        by_css('button[aria-label*="export" i]'),
    )
    MORE_OPTIONS = C(
        "more options menu",
        by_css('button[aria-label*="more" i]'),
        by_test_id("table-menu"),
        by_text("..."),
    )
    EXPORT_MENU_ITEM = C(
        "export menu item",
        by_text("Export"),
        by_text("Export", tag='[role="menuitem"]'),
    )


class ColumnPanel:
    PANEL = C(
        "column configuration panel",
        by_css('[class*="column-config"]'),
        by_css('[class*="enrichment"]'),
        by_role("dialog"),
        by_test_id("column-config"),
        by_css(".column-type-selector"),
    )
    ENRICHMENT_TAB = C(
        "enrichment tab",
        by_text("Enrichment"),
        by_css('[data-tab="enrichment"]'),
        raw("text=Enrichment"),
    )
    AI_TAB = C(
        "AI column type",
        by_text("AI"),
        by_text("GPT"),
        by_text("Claude"),
        by_text("Generate"),
        by_css('[data-tab="ai"]'),
        by_css('[data-type="ai-prompt"]'),
    )
    SEARCH_INPUT = C(
        "column search",
        by_css('input[placeholder*="Search" i]'),
        by_attr("type", "search", "input"),
    )
    SEARCH_RESULT = C(
        "first search result",
        by_css('[data-testid="search-result"]:first-child'),
        by_css(".search-result:first-child"),
        by_css('[role="option"]:first-child'),
    )
    NAME_INPUT = C(
        "column name input",
        by_attr("name", "columnName", "input"),
        by_attr("name", "name", "input"),
        by_css('input[placeholder*="name" i]'),
    )
    SOURCE_COLUMN = C(
        "source column select",
        by_css('[class*="source-column"]'),
        by_role("combobox"),
        by_css("select"),
    )
    SAVE = C(
        "save column button",
        by_text("Add"),
        by_text("Save"),
        by_text("Create"),
        by_attr("type", "submit", "button"),
    )


class AIPrompt:
    PROMPT_TEXTAREA = C(
        "prompt textarea",
        by_attr("name", "prompt", "textarea"),
        by_css('textarea[placeholder*="prompt" i]'),
        by_css("textarea"),
    )
    SOURCE_COLUMNS = C(
        "source columns select",
        by_css('[class*="source-columns"]'),
        by_css('[class*="variable"]'),
    )
    MODEL_SELECT = C(
        "model select",
        by_attr("name", "model", "select"),
        by_css('[class*="model-select"]'),
    )
    MAX_TOKENS_INPUT = C(
        "max tokens input",
        by_attr("name", "maxTokens", "input"),
        by_css('input[placeholder*="tokens" i]'),
    )
    PREVIEW_BUTTON = C("preview button", by_text("Preview"), by_text("Test"))
    PREVIEW_OUTPUT = C("preview output", by_css('[class*="preview-output"]'), by_css('[class*="result"]'))


class RunPanel:
    PANEL = C("run panel", by_css('[class*="run-panel"]'), by_role("dialog"))
    START = C("start run button", by_text("Start"), by_text("Run"), by_text("Confirm"))
    PROGRESS_INDICATOR = C(
        "running indicator",
        by_role("progressbar"),
        by_css('[class*="progress"]'),
    )
    STATUS_TEXT = C("run status text", by_css('[class*="status"]'), by_css('[class*="progress-text"]'))
    ROWS_PROCESSED = C("rows processed", by_css('[class*="row-count"]'), by_css('[class*="count"]'))
    COMPLETED = C(
        "completion marker",
        by_css(".enrichment-complete"),
        by_attr("data-status", "completed"),
        by_css('.success-message:has-text("complete")'),
    )
    ERROR = C("error marker", by_css(".error-message"), by_attr("data-status", "error"))


class UploadModal:
    MODAL = C("upload modal", by_role("dialog"), by_css('[class*="modal"]'))
    FILE_INPUT = C("file input", by_attr("type", "file", "input"))
    DROPZONE = C(
        "dropzone",
        by_css('[class*="dropzone"]'),
        by_css('[class*="upload-area"]'),
        by_css('[class*="drop"]'),
    )
    SKIP_DUPLICATES = C(
        "skip duplicates checkbox",
        by_attr("name", "skipDuplicates", "input"),
        by_css('label:has-text("duplicates") input'),
    )
    CONFIRM = C(
        "confirm upload button",
        by_text("Upload"),
        by_text("Import"),
        by_text("Confirm"),
        by_attr("type", "submit", "button"),
    )
    PROGRESS = C("upload progress", by_role("progressbar"), by_css('[class*="progress"]'))
    SUCCESS = C("upload success", by_css('[class*="success"]'), by_css('[role="status"]:has-text("import")'))
    ERROR = C("upload error", by_css('[class*="error"]'), by_role("alert"))


class ExportModal:
    MODAL = C(
        "export modal",
        by_css('[role="dialog"]:has-text("Export")'),
        by_test_id("export-modal"),
    )
    FORMAT_SELECT = C("export format select", by_attr("name", "format", "select"), by_css('[class*="format"]'))
    DOWNLOAD = C(
        "download button",
        by_text("Download"),
        by_text("Export"),
        by_attr("type", "submit", "button"),
    )
    DOWNLOAD_LINK = C("download link", by_css("a[download]"), by_css('a[href*="download"]'))


class Common:
    LOADING = C(
        "loading indicator",
        by_test_id("loading"),
        by_css(".loading"),
        by_css(".spinner"),
        by_css('[class*="loading"]'),
        by_css('[class*="spinner"]'),
    )


def option_for(value: str, label: str | None = None) -> CandidateList:
    """Candidates for a dropdown entry carrying ``value`` (shown as ``label``)."""
    label = label or value
    return C(
        f"option {value}",
        by_attr("data-value", value),
        by_text(label, tag="option"),
        by_text(label, tag='[role="option"]'),
    )


def column_checkbox(column: str) -> CandidateList:
    return C(f"column {column}", by_attr("data-column", column), by_attr("value", column, "input"))


def column_header(column: str) -> CandidateList:
    return C(
        f"column header {column}",
        by_attr("data-column-name", column),
        by_text(column, tag="th"),
        by_text(column, tag='[role="columnheader"]'),
    )


def setting_field(key: str) -> CandidateList:
    return C(
        f"setting {key}",
        by_attr("data-setting", key),
        by_attr("name", key),
        by_css(f'input[placeholder*="{key}" i]'),
    )


def mapping_select(column: str) -> CandidateList:
    return C(
        f"mapping for {column}",
        by_attr("data-source-column", column),
        by_css(f'[class*="mapping"] select[name="{column}"]'),
    )
