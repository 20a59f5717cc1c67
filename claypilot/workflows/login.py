"""Login workflow: reuse a stored session or wait for a manual login."""

from __future__ import annotations

import asyncio
from typing import Any

from claypilot.core.errors import ErrorKind
from claypilot.core.wait import sleep
from claypilot.selectors import catalog
from claypilot.selectors.helpers import wait_for_any, wait_for_page_ready
from claypilot.workflows.common import refresh_location
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.types import LoginInput, LoginResult, validates

# Placeholder snapshot; the browser profile itself carries the cookies
_PROFILE_CREDENTIALS = [{"note": "Session persisted via browser profile"}]


async def prompt_on_console(message: str) -> None:
    """Default confirmation: block a worker thread on ENTER."""
    await asyncio.to_thread(input, message)


def validate_login_input(payload: Any) -> bool:
    return payload is None or validates(LoginInput, payload)


async def _reuse_session(ctx: WorkflowContext[LoginInput]) -> bool:
    ctx.events.status("Checking existing session...")
    if ctx.session.load_session() is None:
        return False

    ctx.events.status("Found existing session, verifying...")
    await ctx.driver.navigate(ctx.config.urls.dashboard)
    await sleep(ctx.config.delays.settle)
    if ctx.session.is_authenticated(ctx.driver.current_url):
        ctx.events.success("Existing session is valid!")
        return True

    ctx.events.warning("Session expired, clearing...")
    ctx.session.clear_session()
    return False


async def _landed_authenticated(ctx: WorkflowContext[LoginInput]) -> bool:
    if ctx.session.is_authenticated(ctx.driver.current_url):
        return True
    landing = catalog.Login.EMAIL_INPUT + catalog.Home.AUTHENTICATED_LANDING
    found = await wait_for_any(ctx.driver, landing, timeout=ctx.config.timeouts.medium_wait)
    return found is not None and found not in catalog.Login.EMAIL_INPUT.selectors()


async def _wait_for_operator(ctx: WorkflowContext[LoginInput]) -> None:
    ctx.events.info("=" * 50)
    ctx.events.info("MANUAL LOGIN REQUIRED")
    ctx.events.info("=" * 50)
    ctx.events.info("Please log in to Clay in the browser window.")
    ctx.events.info("Supported methods: Google SSO, email/password")
    ctx.events.info("After logging in, press ENTER to continue...")
    confirm = ctx.confirm or prompt_on_console
    await confirm("Press ENTER after logging in: ")


async def login(ctx: WorkflowContext[LoginInput]) -> LoginResult:
    payload = ctx.payload or LoginInput()
    identity = payload.identity or ctx.config.session.identity

    if await _reuse_session(ctx):
        return LoginResult(success=True, identity=identity, reused_session=True)

    ctx.events.status("Navigating to Clay login page...")
    await ctx.driver.navigate(ctx.config.urls.login)
    await wait_for_page_ready(ctx.driver, timeout=ctx.config.timeouts.network_idle)

    if ctx.dry_run:
        ctx.events.info("[DRY RUN] Skipping manual login")
        return LoginResult(success=True, identity=identity)

    if await _landed_authenticated(ctx):
        ctx.events.success("Already logged in!")
    else:
        await _wait_for_operator(ctx)
        ctx.events.status("Verifying login...")
        await sleep(ctx.config.delays.settle)
        url = await refresh_location(ctx)

        if not ctx.session.is_authenticated(url):
            if any(marker in url for marker in ctx.config.session.login_markers):
                raise await ctx.failure(
                    "Login verification failed - still on login page",
                    ErrorKind.AUTH_FAILED,
                )
            await ctx.driver.navigate(ctx.config.urls.dashboard)
            await sleep(ctx.config.delays.settle)
            if not ctx.session.is_authenticated(ctx.driver.current_url):
                raise await ctx.failure(
                    "Login verification failed - could not access dashboard",
                    ErrorKind.AUTH_FAILED,
                )

    ctx.session.save_session(_PROFILE_CREDENTIALS, identity)
    ctx.events.success("Login successful! Session saved.")
    return LoginResult(success=True, identity=identity)
