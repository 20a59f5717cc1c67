"""Steps shared by the column-building workflows."""

from __future__ import annotations

import logging
from typing import Any

from claypilot.core.errors import AutomationError, ErrorKind
from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.helpers import wait_for_page_ready
from claypilot.selectors.types import CandidateList, ProbeAction
from claypilot.workflows.context import WorkflowContext

logger = logging.getLogger(__name__)


async def ensure_table_open(ctx: WorkflowContext[Any], table_id: str) -> bool:
    """Navigate to the table unless the browser is already on it. Returns True if it navigated."""
    if table_id and table_id in ctx.driver.current_url:
        return False
    ctx.events.status("Navigating to table...")
    await ctx.driver.navigate(ctx.config.urls.table(table_id))
    await wait_for_page_ready(ctx.driver, timeout=ctx.config.timeouts.network_idle)
    await sleep(ctx.config.delays.settle)
    return True


async def refresh_location(ctx: WorkflowContext[Any]) -> str:
    """Ask the backend where the page ended up after a click-driven navigation."""
    try:
        await ctx.driver.wait_for_navigation(timeout=ctx.config.timeouts.short_wait)
    except AutomationError as exc:
        if exc.kind is ErrorKind.NETWORK_ERROR:
            raise
        logger.debug("No navigation observed: %s", exc)
    return ctx.driver.current_url


async def open_column_panel(ctx: WorkflowContext[Any]) -> None:
    ctx.events.status("Clicking Add Column button...")
    await ctx.require(catalog.Table.ADD_COLUMN, ProbeAction.CLICK)
    await sleep(ctx.config.delays.between_actions)

    ctx.events.status("Waiting for column configuration panel...")
    await ctx.require(
        catalog.ColumnPanel.PANEL,
        ProbeAction.WAIT,
        timeout=ctx.config.timeouts.medium_wait,
        message="Could not find column configuration panel",
    )


async def fill_optional(
    ctx: WorkflowContext[Any],
    candidates: CandidateList,
    value: str,
    *,
    timeout: float | None = None,
) -> bool:
    """Fill a field that is nice to have; a missing control is a warning."""
    result = await ctx.prober.probe(candidates, ProbeAction.FILL, value, timeout=timeout)
    if not result:
        ctx.events.warning(f"Could not find {candidates.target}, skipping")
    return result.found


async def choose_option(
    ctx: WorkflowContext[Any],
    trigger: CandidateList,
    value: str,
    label: str | None = None,
) -> bool:
    """Open a dropdown and pick ``value``. Native selects are tried last."""
    opened = await ctx.prober.probe(trigger, ProbeAction.CLICK)
    if opened:
        await sleep(ctx.config.delays.between_actions)
        picked = await ctx.prober.probe(catalog.option_for(value, label), ProbeAction.CLICK)
        if picked:
            return True
    selected = await ctx.prober.probe(trigger, ProbeAction.SELECT, value)
    return selected.found


async def name_column(ctx: WorkflowContext[Any], column_name: str) -> bool:
    ctx.events.status(f"Setting column name: {column_name}")
    return await fill_optional(
        ctx,
        catalog.ColumnPanel.NAME_INPUT,
        column_name,
        timeout=ctx.config.timeouts.medium_wait,
    )


async def save_column(ctx: WorkflowContext[Any]) -> None:
    ctx.events.status("Saving column...")
    await ctx.require(
        catalog.ColumnPanel.SAVE,
        ProbeAction.CLICK,
        timeout=ctx.config.timeouts.short_wait,
        kind=ErrorKind.UNKNOWN,
        message="Could not save column configuration",
    )
    await wait_for_page_ready(ctx.driver, timeout=ctx.config.timeouts.network_idle)
    await sleep(ctx.config.delays.settle)


async def verify_column(ctx: WorkflowContext[Any], column_name: str) -> bool:
    """Look for the new column header; unverifiable is only a warning."""
    ctx.events.status("Verifying column was created...")
    result = await ctx.prober.probe(
        catalog.column_header(column_name),
        ProbeAction.WAIT,
        timeout=ctx.config.timeouts.network_idle,
    )
    if result:
        ctx.events.success(f'Column "{column_name}" created successfully')
    else:
        ctx.events.warning("Could not verify column creation, but it may have succeeded")
    return result.found


def column_id_for(column_name: str) -> str:
    # The UI exposes no stable id; the column is addressed by its name
    return column_name


async def read_text(ctx: WorkflowContext[Any], selector: str) -> str:
    """Best-effort text read; a vanished element reads as empty."""
    try:
        return await ctx.driver.get_text(selector, timeout=ctx.config.timeouts.short_wait)
    except AutomationError as exc:
        if exc.kind is ErrorKind.NETWORK_ERROR:
            raise
        logger.debug("Could not read %s: %s", selector, exc)
        return ""
