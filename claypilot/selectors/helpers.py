"""Higher-level waiting and clicking helpers built on the driver."""

from __future__ import annotations

import logging

from claypilot.core.errors import AutomationError
from claypilot.core.retry import retry
from claypilot.core.wait import sleep, wait_for_value, wait_until
from claypilot.driver.facade import DriverFacade
from claypilot.selectors import catalog
from claypilot.selectors.types import CandidateList, LocatorLike, as_locator

logger = logging.getLogger(__name__)


async def _first_visible_selector(driver: DriverFacade, candidates: CandidateList) -> str | None:
    for selector in candidates.selectors():
        if await driver.is_visible(selector):
            return selector
    return None


async def wait_for_any(
    driver: DriverFacade,
    candidates: CandidateList,
    timeout: float | None = None,
    interval: float = 0.5,
) -> str | None:
    """Poll visibility of every candidate until one shows up. Returns its selector or None."""
    timeout = driver.config.timeouts.element_wait if timeout is None else timeout
    try:
        return await wait_for_value(
            lambda: _first_visible_selector(driver, candidates),
            lambda selector: selector is not None,
            timeout=timeout,
            interval=interval,
            message=f"none of {candidates.target} visible",
        )
    except TimeoutError:
        return None


async def wait_for_page_ready(
    driver: DriverFacade,
    timeout: float | None = None,
    interval: float = 0.5,
) -> bool:
    """
    Wait until no loading indicator is visible.

    Returns False (after logging a warning) if the page still looks busy at
    the deadline; this is never an error.
    """
    timeout = driver.config.timeouts.navigation if timeout is None else timeout

    # Give a spinner the chance to appear first
    await sleep(min(interval, timeout))

    async def idle() -> bool:
        return await _first_visible_selector(driver, catalog.Common.LOADING) is None

    try:
        await wait_until(idle, timeout=timeout, interval=interval, message="page still loading")
    except TimeoutError:
        logger.warning("Page may still be loading after %.1fs", timeout)
        return False
    return True


async def click_with_retry(driver: DriverFacade, target: LocatorLike) -> None:
    """Scroll into view (best effort) and click, retried with the click policy."""
    selector = as_locator(target).selector()

    async def _scroll_and_click() -> None:
        try:
            await driver.scroll_into_view(selector)
        except AutomationError as exc:
            logger.debug("Scroll before click failed for %s: %s", selector, exc)
        await driver.click(selector)

    await retry(_scroll_and_click, driver.config.retries.policy("click"))
