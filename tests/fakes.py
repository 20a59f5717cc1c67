"""Fakes shared by the test modules: a scripted tool-call handler and a fast config."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable


from claypilot.config import (
    ClayConfig,
    DelaySettings,
    OptionSettings,
    SessionSettings,
    TimeoutSettings,
)
from claypilot.core.events import EventLog
from claypilot.driver.facade import DriverFacade
from claypilot.session.store import SessionStore
from claypilot.workflows.context import WorkflowContext

_ELEMENT_OPS = {
    "click",
    "fill",
    "wait_for_selector",
    "select_option",
    "upload_file",
    "scroll_into_view",
    "get_text",
    "get_attribute",
}


def make_config(root: Path) -> ClayConfig:
    """Real settings with every wait shrunk so workflows finish in milliseconds."""
    return ClayConfig(
        timeouts=TimeoutSettings(
            navigation=0.2,
            element_wait=0.2,
            network_idle=0.02,
            short_wait=0.05,
            medium_wait=0.02,
            long_wait=0.1,
            enrichment_run=1.0,
            csv_upload=0.2,
            probe=0.05,
        ),
        delays=DelaySettings(
            between_actions=0,
            after_click=0,
            after_type=0,
            dry_run=0.01,
            poll_interval=0.01,
            settle=0,
            upload_poll_interval=0.01,
        ),
        session=SessionSettings(profile_path=root / "profile"),
        options=OptionSettings(screenshot_dir=root / "shots"),
    )


class FakeUI:
    """
    Tool-call handler that pretends to be a page.

    ``present`` whitelists the selectors that can be acted on (``None`` means
    all) and ``absent`` knocks single selectors out. ``visible`` is a set of
    selectors or a predicate called per visibility check.
    """

    def __init__(
        self,
        *,
        present: set[str] | None = None,
        absent: set[str] | frozenset[str] = frozenset(),
        visible: set[str] | Callable[[str], bool] = frozenset(),
        texts: dict[str, str] | None = None,
        attributes: dict[tuple[str, str], str] | None = None,
        url: str = "",
        url_after_click: str | None = None,
        redirects: dict[str, str] | None = None,
    ) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.present = present
        self.absent = set(absent)
        self.visible = visible
        self.texts = texts or {}
        self.attributes = attributes or {}
        self.url = url
        self.url_after_click = url_after_click
        self.redirects = redirects or {}

    async def __call__(self, operation: str, args: dict) -> dict[str, Any]:
        self.calls.append((operation, args))
        selector = args.get("selector")
        if operation in _ELEMENT_OPS and (
            selector in self.absent or (self.present is not None and selector not in self.present)
        ):
            raise RuntimeError(f"waiting for locator('{selector}') failed")

        if operation == "navigate":
            self.url = self.redirects.get(args["url"], args["url"])
            return {"success": True, "url": self.url}
        if operation == "click" and self.url_after_click:
            self.url = self.url_after_click
        if operation == "wait_for_navigation":
            return {"success": True, "url": self.url}
        if operation == "is_visible":
            if callable(self.visible):
                return {"visible": self.visible(selector)}
            return {"visible": selector in self.visible}
        if operation == "get_text":
            return {"text": self.texts.get(selector, "")}
        if operation == "get_attribute":
            return {"value": self.attributes.get((selector, args["attribute"]), "")}
        if operation == "screenshot":
            return {"success": True, "path": f"/tmp/shots/{args['name']}"}
        return {"success": True}

    def ops(self, operation: str) -> list[dict]:
        return [args for op, args in self.calls if op == operation]

    def selectors(self, operation: str) -> list[str]:
        return [args["selector"] for args in self.ops(operation)]


def make_context(ui: FakeUI, config: ClayConfig, payload: Any, **kwargs: Any) -> WorkflowContext[Any]:
    events = EventLog()
    driver = DriverFacade(config, events)
    driver.connect(ui)
    return WorkflowContext(
        driver=driver,
        events=events,
        session=SessionStore(settings=config.session),
        payload=payload,
        **kwargs,
    )
