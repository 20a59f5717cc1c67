"""
Run enrichment columns and poll the table until the run finishes.

State progression::

    NOT_STARTED -> NAVIGATING -> LOCATING_RUN_CONTROL -> CONFIRMING -> RUNNING
        RUNNING -> COMPLETED | FAILED | TIMED_OUT

Each polling tick checks, in order: the error marker (terminal
ENRICHMENT_FAILED), the completion marker, a best-effort scrape of the
progress text, and finally whether the running indicator has gone away,
which counts as completion once the page has settled and no error shows.
Reaching the ceiling without any of these signals ends in TIMED_OUT.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any

from claypilot.core.errors import ErrorKind
from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.types import ProbeAction
from claypilot.workflows.common import ensure_table_open, read_text
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.types import (
    EnrichmentState,
    RunEnrichmentInput,
    RunEnrichmentResult,
    validates,
)

logger = logging.getLogger(__name__)

_PERCENT = re.compile(r"(\d+)%")
_ROWS = re.compile(r"(\d+)\s*(rows?|of)", re.IGNORECASE)
_COUNT = re.compile(r"\d[\d,]*")


def validate_run_enrichment_input(payload: Any) -> bool:
    return validates(RunEnrichmentInput, payload)


class EnrichmentRun:
    """Tracks one run through its states; every transition is logged and broadcast."""

    def __init__(self, ctx: WorkflowContext[RunEnrichmentInput], clock=time.monotonic) -> None:
        self.ctx = ctx
        self.state = EnrichmentState.NOT_STARTED
        self.progress = 0
        self.rows_processed = 0
        self._clock = clock
        self._started: float | None = None

    @property
    def duration(self) -> float:
        if self._started is None:
            return 0.0
        return self._clock() - self._started

    def transition(self, state: EnrichmentState) -> None:
        logger.debug("Enrichment run %s -> %s", self.state.value, state.value)
        self.state = state
        self.ctx.events.emit("enrichment-state", {"state": state.value})

    def result(self, success: bool, status: str) -> RunEnrichmentResult:
        return RunEnrichmentResult(
            success=success,
            rows_processed=self.rows_processed,
            duration=self.duration,
            status=status,
            state=self.state,
            progress=self.progress,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def start(self) -> None:
        ctx = self.ctx
        payload = ctx.payload

        self.transition(EnrichmentState.NAVIGATING)
        await ensure_table_open(ctx, payload.table_id)

        self.transition(EnrichmentState.LOCATING_RUN_CONTROL)
        ctx.events.status("Looking for Run button...")
        await ctx.require(
            catalog.Table.RUN_BUTTON,
            ProbeAction.WAIT_AND_CLICK,
            message="Could not find Run/Enrich button",
        )
        await sleep(ctx.config.delays.between_actions)

        self.transition(EnrichmentState.CONFIRMING)
        if await ctx.prober.first_visible(catalog.RunPanel.PANEL) is not None:
            for column in payload.columns or []:
                if not await ctx.prober.probe(catalog.column_checkbox(column), ProbeAction.CLICK):
                    ctx.events.warning(f"Could not select column for run: {column}")
            ctx.events.status("Confirming enrichment run...")
            await ctx.require(
                catalog.RunPanel.START,
                ProbeAction.CLICK,
                kind=ErrorKind.ENRICHMENT_FAILED,
                message="Could not confirm enrichment run",
            )

        self._started = self._clock()
        self.transition(EnrichmentState.RUNNING)
        ctx.events.success("Enrichment started!")

    async def _check_error(self) -> None:
        prober = self.ctx.prober
        marker = await prober.first_visible(catalog.RunPanel.ERROR)
        if marker is None:
            return
        text = await read_text(self.ctx, marker.selector())
        self.transition(EnrichmentState.FAILED)
        raise await self.ctx.failure(
            f"Enrichment failed: {text or 'unknown error'}",
            ErrorKind.ENRICHMENT_FAILED,
            selector=marker.selector(),
        )

    async def _scrape_progress(self) -> None:
        status = await self.ctx.prober.first_visible(catalog.RunPanel.STATUS_TEXT)
        if status is None:
            return
        text = await read_text(self.ctx, status.selector())
        percent = _PERCENT.search(text)
        if percent:
            value = min(int(percent.group(1)), 100)
            if value != self.progress:
                self.progress = value
                self.ctx.events.progress(value, "Enrichment progress")
        rows = _ROWS.search(text)
        if rows:
            self.rows_processed = int(rows.group(1))

    async def _tick(self) -> bool:
        """One polling pass. Returns True once the run has finished."""
        prober = self.ctx.prober
        await self._check_error()

        if await prober.first_visible(catalog.RunPanel.COMPLETED) is not None:
            self.ctx.events.success("Enrichment completed!")
            return True

        await self._scrape_progress()

        if await prober.first_visible(catalog.RunPanel.PROGRESS_INDICATOR) is None:
            await sleep(self.ctx.config.delays.settle)
            # A fresh error shows up on the next tick rather than as completion
            if await prober.first_visible(catalog.RunPanel.ERROR) is None:
                self.ctx.events.success("Enrichment appears complete")
                return True
        return False

    async def wait(self) -> bool:
        """Poll until completion. Returns False if the ceiling was reached first."""
        ctx = self.ctx
        interval = ctx.config.delays.poll_interval
        ceiling = ctx.config.timeouts.enrichment_run
        ctx.events.status(f"Waiting for enrichment to complete (max {ceiling:g}s)...")

        last_minute = 0
        while self.duration < ceiling:
            await sleep(interval)
            if await self._tick():
                return True
            minute = int(self.duration // 60)
            if minute > last_minute:
                last_minute = minute
                ctx.events.status(f"Still running... ({minute} min elapsed)")
        return False

    async def read_final_rows(self) -> None:
        counter = await self.ctx.prober.first_visible(catalog.RunPanel.ROWS_PROCESSED)
        if counter is None:
            return
        match = _COUNT.search(await read_text(self.ctx, counter.selector()))
        if match:
            self.rows_processed = int(match.group().replace(",", ""))


async def run_enrichment(ctx: WorkflowContext[RunEnrichmentInput]) -> RunEnrichmentResult:
    payload = ctx.payload
    ctx.events.status("Starting enrichment run...")
    if payload.columns:
        ctx.events.status(f"Columns: {', '.join(payload.columns)}")

    run = EnrichmentRun(ctx)
    await run.start()

    if not payload.wait_for_completion:
        return run.result(True, "running")

    finished = await run.wait()
    await run.read_final_rows()

    if not finished:
        run.transition(EnrichmentState.TIMED_OUT)
        ctx.events.warning(
            f"Enrichment did not report completion within "
            f"{ctx.config.timeouts.enrichment_run:g}s"
        )
        return run.result(False, "timed_out")

    run.transition(EnrichmentState.COMPLETED)
    if run.rows_processed:
        ctx.events.success(f"Processed {run.rows_processed} rows")
    return run.result(True, "completed")
