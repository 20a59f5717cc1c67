"""Add an enrichment column to a table."""

from __future__ import annotations

from typing import Any

from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.types import CandidateList, ProbeAction, by_attr, by_text
from claypilot.workflows.common import (
    choose_option,
    column_id_for,
    ensure_table_open,
    name_column,
    open_column_panel,
    save_column,
    verify_column,
)
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.types import (
    ENRICHMENT_LABELS,
    AddEnrichmentInput,
    AddEnrichmentResult,
    EnrichmentType,
    validates,
)

_EXTRA_LABELS: dict[EnrichmentType, tuple[str, ...]] = {
    EnrichmentType.APOLLO_PERSON: ("Apollo",),
    EnrichmentType.APOLLO_COMPANY: ("Apollo Company",),
    EnrichmentType.CLEARBIT_PERSON: ("Clearbit",),
    EnrichmentType.CLEARBIT_COMPANY: ("Clearbit Company",),
    EnrichmentType.EMAIL_FINDER: ("Email Finder",),
    EnrichmentType.COMPANY_SEARCH: ("Find Company",),
    EnrichmentType.LINKEDIN_PROFILE: ("LinkedIn",),
    EnrichmentType.PHONE_FINDER: ("Phone",),
    EnrichmentType.CUSTOM_API: ("HTTP API",),
}


def enrichment_candidates(enrichment_type: EnrichmentType) -> CandidateList:
    """Exact label first, then the provider's short name, then the data attribute."""
    label = ENRICHMENT_LABELS[enrichment_type]
    locators = [by_text(label, tag=None), by_text(label, tag="div")]
    locators += [by_text(extra, tag=None) for extra in _EXTRA_LABELS.get(enrichment_type, ())]
    locators.append(by_attr("data-enrichment", enrichment_type.value))
    return CandidateList(f"enrichment type {label}", tuple(locators))


def validate_add_enrichment_input(payload: Any) -> bool:
    return validates(AddEnrichmentInput, payload)


async def add_enrichment(ctx: WorkflowContext[AddEnrichmentInput]) -> AddEnrichmentResult:
    payload = ctx.payload
    enrichment = payload.enrichment
    label = ENRICHMENT_LABELS[enrichment.type]

    ctx.events.status(f"Adding enrichment column: {enrichment.column_name}")
    ctx.events.status(f"Enrichment type: {enrichment.type.value}")
    ctx.events.status(f"Source column: {enrichment.source_column}")

    await ensure_table_open(ctx, payload.table_id)
    await open_column_panel(ctx)

    if not await ctx.prober.probe(catalog.ColumnPanel.ENRICHMENT_TAB, ProbeAction.CLICK):
        ctx.events.status("Enrichment tab not found, may already be selected")
    await sleep(ctx.config.delays.between_actions)

    ctx.events.status(f"Selecting enrichment type: {label}")
    await ctx.require(
        enrichment_candidates(enrichment.type),
        ProbeAction.CLICK,
        fallback=lambda: ctx.prober.search_and_pick(label),
        message=f"Could not find enrichment type: {enrichment.type.value}",
    )
    await sleep(ctx.config.delays.between_actions)

    await name_column(ctx, enrichment.column_name)

    ctx.events.status(f"Selecting source column: {enrichment.source_column}")
    if not await choose_option(ctx, catalog.ColumnPanel.SOURCE_COLUMN, enrichment.source_column):
        ctx.events.warning("Source column selection may need manual configuration")

    for key, value in (enrichment.settings or {}).items():
        if await ctx.prober.probe(catalog.setting_field(key), ProbeAction.FILL, str(value)):
            ctx.events.status(f"Set {key}: {value}")
        else:
            ctx.events.warning(f"Could not set {key}")

    await save_column(ctx)
    verified = await verify_column(ctx, enrichment.column_name)

    return AddEnrichmentResult(
        column_id=column_id_for(enrichment.column_name),
        column_name=enrichment.column_name,
        enrichment_type=enrichment.type,
        verified=verified,
    )
