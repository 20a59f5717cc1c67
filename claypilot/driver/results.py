"""Typed results returned through the tool-call channel, one model per operation."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _ToolResult(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    success: bool = True
    dry_run: bool = Field(default=False, alias="dryRun")


class AckResult(_ToolResult):
    """Operations whose only outcome is success or failure."""

    operation: Literal[
        "click",
        "fill",
        "wait_for_selector",
        "select_option",
        "upload_file",
        "press",
        "scroll_into_view",
        "close",
    ]


class NavigateResult(_ToolResult):
    operation: Literal["navigate", "wait_for_navigation"]
    url: str | None = None


class ScreenshotResult(_ToolResult):
    operation: Literal["screenshot"]
    path: str | None = None


class TextResult(_ToolResult):
    operation: Literal["get_text"]
    text: str | None = None


class AttributeResult(_ToolResult):
    operation: Literal["get_attribute"]
    value: str | None = None


class VisibilityResult(_ToolResult):
    operation: Literal["is_visible"]
    visible: bool = False


DriverResult = Annotated[
    Union[
        AckResult,
        NavigateResult,
        ScreenshotResult,
        TextResult,
        AttributeResult,
        VisibilityResult,
    ],
    Field(discriminator="operation"),
]

_ADAPTER: TypeAdapter[Any] = TypeAdapter(DriverResult)

OPERATIONS: tuple[str, ...] = (
    "navigate",
    "click",
    "fill",
    "wait_for_selector",
    "screenshot",
    "get_text",
    "get_attribute",
    "is_visible",
    "select_option",
    "upload_file",
    "press",
    "scroll_into_view",
    "wait_for_navigation",
    "close",
)


def parse_result(operation: str, raw: Any) -> DriverResult:
    """
    Validate a raw handler result for ``operation``.

    ``None`` is accepted as an empty acknowledgement. Any other non-mapping
    value is rejected. Raises ``pydantic.ValidationError`` on a malformed
    payload and ``ValueError`` for a non-mapping one.
    """
    if raw is None:
        payload: dict[str, Any] = {}
    elif isinstance(raw, Mapping):
        payload = dict(raw)
    else:
        raise ValueError(f"{operation} returned {type(raw).__name__}, expected a mapping")
    payload["operation"] = operation
    return _ADAPTER.validate_python(payload)
