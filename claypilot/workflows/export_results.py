"""Export a table to CSV or JSON."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from claypilot.core.errors import AutomationError, ErrorKind
from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.helpers import wait_for_any, wait_for_page_ready
from claypilot.selectors.types import ProbeAction
from claypilot.workflows.common import choose_option, ensure_table_open
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.types import ExportResultsInput, ExportResultsResult, validates


def validate_export_results_input(payload: Any) -> bool:
    return validates(ExportResultsInput, payload)


async def _open_via_menu(ctx: WorkflowContext[ExportResultsInput]) -> bool:
    opened = await ctx.prober.probe(catalog.Table.MORE_OPTIONS, ProbeAction.CLICK)
    if not opened:
        return False
    await sleep(ctx.config.delays.between_actions)
    picked = await ctx.prober.probe(catalog.Table.EXPORT_MENU_ITEM, ProbeAction.CLICK)
    return picked.found


async def _download_link(ctx: WorkflowContext[ExportResultsInput]) -> str | None:
    link = await ctx.prober.first_visible(catalog.ExportModal.DOWNLOAD_LINK)
    if link is None:
        return None
    try:
        return await ctx.driver.get_attribute(link.selector(), "href") or None
    except AutomationError as exc:
        if exc.kind is ErrorKind.NETWORK_ERROR:
            raise
        ctx.events.warning(f"Could not read download link: {exc}")
        return None


async def export_results(ctx: WorkflowContext[ExportResultsInput]) -> ExportResultsResult:
    payload = ctx.payload
    modal = catalog.ExportModal
    output = Path(payload.output_path).expanduser()

    ctx.events.status(f"Exporting table to: {output}")
    await ensure_table_open(ctx, payload.table_id)

    ctx.events.status("Opening export options...")
    await ctx.require(
        catalog.Table.EXPORT_BUTTON,
        ProbeAction.WAIT_AND_CLICK,
        fallback=lambda: _open_via_menu(ctx),
        message="Could not find Export button",
    )
    await sleep(ctx.config.delays.between_actions)

    dialog = await wait_for_any(
        ctx.driver,
        modal.MODAL + modal.FORMAT_SELECT,
        timeout=ctx.config.timeouts.medium_wait,
    )
    if dialog is not None:
        ctx.events.status(f"Selecting format: {payload.format.upper()}")
        if not await choose_option(ctx, modal.FORMAT_SELECT, payload.format, payload.format.upper()):
            ctx.events.warning(f"Could not select format: {payload.format}")

        if payload.include_columns:
            ctx.events.status(f"Selecting columns: {', '.join(payload.include_columns)}")
            for column in payload.include_columns:
                if not await ctx.prober.probe(catalog.column_checkbox(column), ProbeAction.CLICK):
                    ctx.events.warning(f"Could not select column: {column}")

    ctx.events.status("Starting download...")
    if not await ctx.prober.probe(modal.DOWNLOAD, ProbeAction.CLICK):
        ctx.events.warning("Download button not found, export may have started automatically")
    await sleep(ctx.config.delays.settle)

    link = await _download_link(ctx)

    output.parent.mkdir(parents=True, exist_ok=True)
    await wait_for_page_ready(ctx.driver, timeout=ctx.config.timeouts.network_idle)

    ctx.events.success("Export initiated!")
    ctx.events.info(f"File should be downloaded to: {output}")

    return ExportResultsResult(
        success=True,
        file_path=str(output),
        row_count=-1,
        format=payload.format,
        download_link=link,
    )
