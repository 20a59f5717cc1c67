"""Add an AI prompt column to a table."""

from __future__ import annotations

from typing import Any

from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.helpers import click_with_retry
from claypilot.selectors.types import ProbeAction
from claypilot.workflows.common import (
    choose_option,
    column_id_for,
    ensure_table_open,
    fill_optional,
    name_column,
    open_column_panel,
    read_text,
    save_column,
    verify_column,
)
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.types import WritePromptInput, WritePromptResult, validates


def validate_write_prompt_input(payload: Any) -> bool:
    return validates(WritePromptInput, payload)


async def _preview(ctx: WorkflowContext[WritePromptInput]) -> None:
    button = await ctx.prober.first_visible(catalog.AIPrompt.PREVIEW_BUTTON)
    if button is None:
        return
    ctx.events.status("Testing prompt with preview...")
    await click_with_retry(ctx.driver, button)
    await sleep(ctx.config.delays.settle)
    output = await ctx.prober.first_visible(catalog.AIPrompt.PREVIEW_OUTPUT)
    if output is not None:
        text = await read_text(ctx, output.selector())
        ctx.events.info(f"Preview result: {text[:100]}...")


async def write_prompt(ctx: WorkflowContext[WritePromptInput]) -> WritePromptResult:
    payload = ctx.payload
    prompt = payload.prompt

    ctx.events.status(f"Creating AI prompt column: {prompt.column_name}")
    ctx.events.status(f"Source columns: {', '.join(prompt.source_columns)}")

    await ensure_table_open(ctx, payload.table_id)
    await open_column_panel(ctx)

    ctx.events.status("Selecting AI column type...")
    await ctx.require(
        catalog.ColumnPanel.AI_TAB,
        ProbeAction.CLICK,
        fallback=lambda: ctx.prober.search_and_pick("AI"),
        message="Could not find AI column type option",
    )
    await sleep(ctx.config.delays.between_actions)

    await name_column(ctx, prompt.column_name)

    skipped: list[str] = []
    ctx.events.status("Configuring source columns...")
    for column in prompt.source_columns:
        if not await choose_option(ctx, catalog.AIPrompt.SOURCE_COLUMNS, column):
            ctx.events.warning(f"Could not select source column: {column}")
            skipped.append(column)

    ctx.events.status("Writing prompt...")
    await ctx.require(
        catalog.AIPrompt.PROMPT_TEXTAREA,
        ProbeAction.FILL,
        prompt.prompt,
        timeout=ctx.config.timeouts.medium_wait,
        message="Could not find prompt textarea",
    )
    ctx.events.status(f"Prompt entered ({len(prompt.prompt)} characters)")

    if prompt.model:
        ctx.events.status(f"Selecting model: {prompt.model}")
        if not await choose_option(ctx, catalog.AIPrompt.MODEL_SELECT, prompt.model):
            ctx.events.warning(f"Could not select model: {prompt.model}")

    if prompt.max_tokens:
        await fill_optional(ctx, catalog.AIPrompt.MAX_TOKENS_INPUT, str(prompt.max_tokens))

    await _preview(ctx)

    await save_column(ctx)
    await verify_column(ctx, prompt.column_name)

    return WritePromptResult(
        column_id=column_id_for(prompt.column_name),
        column_name=prompt.column_name,
        prompt_length=len(prompt.prompt),
        skipped_sources=skipped,
    )
