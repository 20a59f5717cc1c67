"""Fallback selector probing: try candidates in order until one works."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from claypilot.core.errors import AutomationError, ErrorKind
from claypilot.core.wait import sleep
from claypilot.driver.facade import DriverFacade
from claypilot.selectors import catalog
from claypilot.selectors.types import CandidateList, Locator, ProbeAction, ProbeResult

logger = logging.getLogger(__name__)

Fallback = Callable[[], Awaitable[bool]]


def _is_fatal(exc: AutomationError) -> bool:
    # A missing tool-call channel is not a candidate failure
    return exc.kind is ErrorKind.NETWORK_ERROR and not exc.retryable


class SelectorProber:
    """
    Walks a :class:`CandidateList` left to right against the driver.

    Per-candidate failures are recorded on the :class:`ProbeResult`, never
    raised; only :meth:`require` turns an exhausted list into a terminal
    error.
    """

    def __init__(self, driver: DriverFacade, *, timeout: float | None = None) -> None:
        self._driver = driver
        self._timeout = timeout if timeout is not None else driver.config.timeouts.probe

    @property
    def driver(self) -> DriverFacade:
        return self._driver

    async def attempt(
        self,
        locator: Locator,
        action: ProbeAction,
        value: str | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Run ``action`` against one locator. Returns False instead of raising."""
        selector = locator.selector()
        timeout = timeout or self._timeout
        driver = self._driver
        try:
            if action is ProbeAction.VISIBLE:
                return await driver.is_visible(selector, timeout=timeout)
            if action is ProbeAction.WAIT:
                await driver.wait_for_selector(selector, timeout=timeout)
            elif action is ProbeAction.CLICK:
                await driver.click(selector, timeout=timeout)
            elif action is ProbeAction.WAIT_AND_CLICK:
                await driver.wait_for_selector(selector, timeout=timeout)
                await driver.click(selector, timeout=timeout)
            elif action is ProbeAction.FILL:
                await driver.type(selector, value or "", timeout=timeout)
            elif action is ProbeAction.SELECT:
                await driver.select_option(selector, value or "", timeout=timeout)
            elif action is ProbeAction.UPLOAD:
                await driver.upload_file(selector, value or "", timeout=timeout)
            else:
                raise ValueError(f"Unsupported probe action: {action!r}")
        except AutomationError as exc:
            if _is_fatal(exc):
                raise
            logger.debug("Candidate %s failed for %s: %s", selector, action.value, exc)
            return False
        return True

    async def probe(
        self,
        candidates: CandidateList,
        action: ProbeAction,
        value: str | None = None,
        *,
        timeout: float | None = None,
    ) -> ProbeResult:
        """Try every candidate in order; stop at the first success."""
        result = ProbeResult(target=candidates.target, found=False)
        for locator in candidates:
            result.attempts += 1
            if await self.attempt(locator, action, value, timeout):
                result.found = True
                result.locator = locator
                return result
            result.errors.append(locator.selector())
        return result

    async def require(
        self,
        candidates: CandidateList,
        action: ProbeAction,
        value: str | None = None,
        *,
        timeout: float | None = None,
        fallback: Fallback | None = None,
        kind: ErrorKind = ErrorKind.ELEMENT_NOT_FOUND,
        message: str | None = None,
    ) -> ProbeResult:
        """
        Like :meth:`probe`, but an exhausted list is terminal.

        ``fallback`` runs once the list is exhausted; if it reports success
        the returned result is marked found with no locator.
        """
        result = await self.probe(candidates, action, value, timeout=timeout)
        if result.found:
            return result
        if fallback is not None and await fallback():
            result.found = True
            return result
        raise AutomationError(
            message or f"Could not find {candidates.target}",
            kind,
            retryable=False,
            selector=candidates.locators[0].selector() if candidates.locators else None,
        )

    async def first_visible(self, candidates: CandidateList) -> Locator | None:
        """Single pass of visibility checks; no waiting between candidates."""
        for locator in candidates:
            if await self._driver.is_visible(locator.selector()):
                return locator
        return None

    async def search_and_pick(
        self,
        query: str,
        *,
        search: CandidateList = catalog.ColumnPanel.SEARCH_INPUT,
        results: CandidateList = catalog.ColumnPanel.SEARCH_RESULT,
    ) -> bool:
        """Secondary strategy: type ``query`` into a visible search box, click the first hit."""
        box = await self.first_visible(search)
        if box is None:
            return False
        if not await self.attempt(box, ProbeAction.FILL, query):
            return False
        await sleep(self._driver.config.delays.between_actions)
        picked = await self.probe(results, ProbeAction.CLICK)
        return picked.found
