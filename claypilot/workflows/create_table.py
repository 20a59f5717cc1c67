"""Create a new table and report its id."""

from __future__ import annotations

import re
from typing import Any

from claypilot.core.errors import ErrorKind
from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.helpers import click_with_retry, wait_for_page_ready
from claypilot.selectors.types import ProbeAction
from claypilot.workflows.common import fill_optional, refresh_location
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.types import CreateTableInput, CreateTableResult, validates

_TABLE_ID_PATTERNS = (
    re.compile(r"/tables?/([a-zA-Z0-9_-]+)"),
    re.compile(r"/t/([a-zA-Z0-9_-]+)"),
    re.compile(r"tableId=([a-zA-Z0-9_-]+)"),
)


def validate_create_table_input(payload: Any) -> bool:
    return validates(CreateTableInput, payload)


def extract_table_id(url: str) -> str | None:
    for pattern in _TABLE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


async def create_table(ctx: WorkflowContext[CreateTableInput]) -> CreateTableResult:
    payload = ctx.payload
    timeouts = ctx.config.timeouts
    ctx.events.status(f"Creating table: {payload.table_name}")

    ctx.events.status("Navigating to tables page...")
    await ctx.driver.navigate(ctx.config.urls.tables)
    await wait_for_page_ready(ctx.driver, timeout=timeouts.network_idle)
    await sleep(ctx.config.delays.settle)

    # Tables live inside a workspace; open one if the create control is not on screen
    if not await ctx.prober.first_visible(catalog.Home.NEW_BUTTON):
        ctx.events.status("Looking for workspace to select...")
        workspace = await ctx.prober.first_visible(catalog.Home.WORKSPACE_ITEM)
        if workspace is not None:
            await click_with_retry(ctx.driver, workspace)
            await wait_for_page_ready(ctx.driver, timeout=timeouts.network_idle)
            await sleep(ctx.config.delays.settle)

    ctx.events.status("Opening new table dialog...")
    await ctx.require(
        catalog.Home.NEW_BUTTON,
        ProbeAction.CLICK,
        timeout=timeouts.element_wait,
        message="Could not find Create Table button",
    )
    await sleep(ctx.config.delays.between_actions)

    # Some layouts open a type menu first, others go straight to the form
    if await ctx.prober.probe(catalog.Home.NEW_TABLE_OPTION, ProbeAction.CLICK, timeout=timeouts.short_wait):
        await sleep(ctx.config.delays.between_actions)

    ctx.events.status("Entering table name...")
    await ctx.require(
        catalog.CreateTable.NAME_INPUT,
        ProbeAction.FILL,
        payload.table_name,
        timeout=timeouts.element_wait,
        message="Could not find table name input",
    )

    if payload.description:
        await fill_optional(ctx, catalog.CreateTable.DESCRIPTION_INPUT, payload.description)

    ctx.events.status("Creating table...")
    await ctx.require(
        catalog.CreateTable.CREATE_BUTTON,
        ProbeAction.CLICK,
        message="Could not find create button",
    )

    await wait_for_page_ready(ctx.driver, timeout=timeouts.network_idle)
    await sleep(ctx.config.delays.settle)

    url = await refresh_location(ctx)
    table_id = extract_table_id(url)
    if table_id is None and ctx.dry_run:
        table_id = "dry-run-table"
    if table_id is None:
        raise await ctx.failure(
            f"Could not determine table ID from URL: {url or '<unknown>'}",
            ErrorKind.TABLE_NOT_FOUND,
        )

    ctx.events.success(f"Table created: {table_id}")
    return CreateTableResult(table_id=table_id, table_name=payload.table_name, table_url=url)
