"""Tool-call handler that executes driver operations on a live Playwright page."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from playwright.async_api import Page


class PlaywrightToolHandler:
    """
    Async callable ``(operation, args) -> dict`` backed by a Playwright ``Page``.

    Tool names carry the configured host prefix (``mcp_click`` with
    ``tool_prefix="mcp_"``); it is stripped before dispatch. Timeouts arrive in milliseconds, as Playwright expects.
    """

    def __init__(
        self,
        page: Page,
        screenshot_dir: str | Path = "/tmp/clay-screenshots",
        *,
        tool_prefix: str = "",
    ) -> None:
        self._page = page
        self._screenshot_dir = Path(screenshot_dir)
        self._prefix = tool_prefix

    async def __call__(self, operation: str, args: dict) -> dict[str, Any]:
        name = operation.removeprefix(self._prefix)
        method = getattr(self, f"_op_{name}", None)
        if method is None:
            raise ValueError(f"Unsupported operation: {operation!r}")
        return await method(**args)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def _op_navigate(self, url: str, waitUntil: str = "networkidle") -> dict:
        await self._page.goto(url, wait_until=waitUntil)
        return {"success": True, "url": self._page.url}

    async def _op_click(self, selector: str, timeout: int | None = None) -> dict:
        await self._page.locator(selector).first.click(timeout=timeout)
        return {"success": True}

    async def _op_fill(self, selector: str, value: str) -> dict:
        await self._page.locator(selector).first.fill(value)
        return {"success": True}

    async def _op_wait_for_selector(
        self, selector: str, timeout: int | None = None, state: str = "visible"
    ) -> dict:
        await self._page.wait_for_selector(selector, timeout=timeout, state=state)
        return {"success": True}

    async def _op_screenshot(self, name: str, fullPage: bool = True) -> dict:
        self._screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self._screenshot_dir / name
        await self._page.screenshot(path=str(path), full_page=fullPage)
        return {"success": True, "path": str(path)}

    async def _op_get_text(self, selector: str) -> dict:
        text = await self._page.locator(selector).first.text_content()
        return {"text": text or ""}

    async def _op_get_attribute(self, selector: str, attribute: str) -> dict:
        value = await self._page.locator(selector).first.get_attribute(attribute)
        return {"value": value or ""}

    async def _op_is_visible(self, selector: str) -> dict:
        visible = await self._page.locator(selector).first.is_visible()
        return {"visible": bool(visible)}

    async def _op_select_option(self, selector: str, value: str) -> dict:
        await self._page.locator(selector).first.select_option(value)
        return {"success": True}

    async def _op_upload_file(self, selector: str, path: str) -> dict:
        await self._page.locator(selector).first.set_input_files(path)
        return {"success": True}

    async def _op_press(self, key: str) -> dict:
        await self._page.keyboard.press(key)
        return {"success": True}

    async def _op_scroll_into_view(self, selector: str) -> dict:
        await self._page.locator(selector).first.scroll_into_view_if_needed()
        return {"success": True}

    async def _op_wait_for_navigation(self, timeout: int | None = None) -> dict:
        await self._page.wait_for_load_state("load", timeout=timeout)
        return {"success": True, "url": self._page.url}

    async def _op_close(self) -> dict:
        await self._page.context.close()
        return {"success": True}
