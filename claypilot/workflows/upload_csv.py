"""Import a CSV file into an existing table."""

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import Any

from claypilot.core.errors import ErrorKind
from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.helpers import wait_for_page_ready
from claypilot.selectors.types import ProbeAction
from claypilot.workflows.common import choose_option, ensure_table_open, read_text
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.types import UploadCsvInput, UploadCsvResult, validates

_ROWS = re.compile(r"(\d[\d,]*)\s*rows?", re.IGNORECASE)


def validate_upload_csv_input(payload: Any) -> bool:
    return validates(UploadCsvInput, payload)


async def _wait_for_import(ctx: WorkflowContext[UploadCsvInput]) -> int:
    """Poll the modal until it reports success or goes away. Returns rows imported, or -1."""
    modal = catalog.UploadModal
    prober = ctx.prober
    interval = ctx.config.delays.upload_poll_interval
    ceiling = ctx.config.timeouts.csv_upload
    deadline = time.monotonic() + ceiling

    while time.monotonic() < deadline:
        error = await prober.first_visible(modal.ERROR)
        if error is not None:
            text = await read_text(ctx, error.selector())
            raise await ctx.failure(
                f"Upload failed: {text or 'unknown error'}",
                ErrorKind.UPLOAD_FAILED,
                selector=error.selector(),
            )

        success = await prober.first_visible(modal.SUCCESS)
        if success is not None:
            match = _ROWS.search(await read_text(ctx, success.selector()))
            return int(match.group(1).replace(",", "")) if match else -1

        if await prober.first_visible(modal.PROGRESS) is None and await prober.first_visible(modal.MODAL) is None:
            return -1

        await sleep(interval)

    ctx.events.warning(f"Upload did not report completion within {ceiling:g}s")
    return -1


async def upload_csv(ctx: WorkflowContext[UploadCsvInput]) -> UploadCsvResult:
    payload = ctx.payload
    modal = catalog.UploadModal
    path = Path(payload.file_path).expanduser()

    ctx.events.status(f"Uploading CSV: {path.name}")
    if not path.is_file():
        raise await ctx.failure(f"CSV file not found: {path}", ErrorKind.UPLOAD_FAILED)

    await ensure_table_open(ctx, payload.table_id)

    ctx.events.status("Opening import dialog...")
    await ctx.require(
        catalog.Table.IMPORT_BUTTON,
        ProbeAction.CLICK,
        message="Could not find Import/Upload button",
    )
    await sleep(ctx.config.delays.between_actions)

    ctx.events.status("Selecting file...")
    await ctx.require(
        modal.FILE_INPUT + modal.DROPZONE,
        ProbeAction.UPLOAD,
        str(path.resolve()),
        timeout=ctx.config.timeouts.medium_wait,
        kind=ErrorKind.UPLOAD_FAILED,
        message="Could not find file input for upload",
    )
    await sleep(ctx.config.delays.settle)

    for source, target in (payload.mappings or {}).items():
        if not await choose_option(ctx, catalog.mapping_select(source), target):
            ctx.events.warning(f"Could not map column {source} -> {target}")

    if payload.skip_duplicates:
        if not await ctx.prober.probe(modal.SKIP_DUPLICATES, ProbeAction.CLICK):
            ctx.events.warning("Skip-duplicates option not found")

    ctx.events.status("Confirming upload...")
    await ctx.require(
        modal.CONFIRM,
        ProbeAction.CLICK,
        kind=ErrorKind.UPLOAD_FAILED,
        message="Could not confirm upload",
    )

    ctx.events.status("Waiting for upload to complete...")
    rows = await _wait_for_import(ctx)
    await wait_for_page_ready(ctx.driver, timeout=ctx.config.timeouts.network_idle)

    if rows >= 0:
        ctx.events.success(f"CSV uploaded successfully ({rows} rows)")
    else:
        ctx.events.success("CSV uploaded successfully")
    return UploadCsvResult(success=True, rows_uploaded=rows, table_id=payload.table_id)
