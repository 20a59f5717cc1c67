"""Per-invocation bundle of collaborators handed to every workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, TypeVar

from claypilot.config import ClayConfig
from claypilot.core.errors import AutomationError, ErrorKind, capture_error_screenshot
from claypilot.core.events import EventLog
from claypilot.driver.facade import DriverFacade
from claypilot.selectors.prober import SelectorProber
from claypilot.selectors.types import CandidateList, ProbeAction, ProbeResult
from claypilot.session.store import SessionStore

P = TypeVar("P")

# Blocks until the operator says the manual step is done
ConfirmCallback = Callable[[str], Awaitable[None]]


@dataclass
class WorkflowContext(Generic[P]):
    """Created at workflow entry and discarded at exit; never persisted."""

    driver: DriverFacade
    events: EventLog
    session: SessionStore
    payload: P
    confirm: ConfirmCallback | None = None
    prober: SelectorProber = field(init=False)

    def __post_init__(self) -> None:
        self.prober = SelectorProber(self.driver)

    @property
    def config(self) -> ClayConfig:
        return self.driver.config

    @property
    def dry_run(self) -> bool:
        return self.driver.dry_run

    async def failure(
        self,
        message: str,
        kind: ErrorKind,
        *,
        retryable: bool = False,
        selector: str | None = None,
    ) -> AutomationError:
        """
        Build the error a workflow is about to raise, screenshot attached.

        Usage: ``raise await ctx.failure("...", ErrorKind.ELEMENT_NOT_FOUND)``.
        """
        screenshot = None
        if self.config.options.screenshot_on_error:
            screenshot = await capture_error_screenshot(self.driver, kind)
        self.events.error(message)
        return AutomationError(
            message,
            kind,
            retryable=retryable,
            screenshot_path=screenshot,
            selector=selector,
        )

    async def require(
        self,
        candidates: CandidateList,
        action: ProbeAction,
        value: str | None = None,
        **kwargs: Any,
    ) -> ProbeResult:
        """:meth:`SelectorProber.require` with the error screenshot attached."""
        try:
            return await self.prober.require(candidates, action, value, **kwargs)
        except AutomationError as exc:
            if exc.kind is ErrorKind.NETWORK_ERROR:
                raise
            raise await self.failure(
                exc.message, exc.kind, retryable=exc.retryable, selector=exc.selector
            ) from exc
