"""Locator strategies, candidate lists and probe results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union


class LocatorStrategy(str, Enum):
    CSS = "css"
    TEXT = "text"
    ROLE = "role"
    TEST_ID = "test_id"
    ATTRIBUTE = "attribute"
    RAW = "raw"


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


@dataclass(frozen=True)
class Locator:
    """
    One way to find a UI element.

    ``tag`` scopes TEXT and ATTRIBUTE locators (``button:has-text("Run")``);
    ``name`` is the accessible name for ROLE and the attribute name for
    ATTRIBUTE.
    """

    strategy: LocatorStrategy
    value: str
    name: str | None = None
    tag: str | None = None

    def selector(self) -> str:
        """Render the locator in Playwright selector syntax."""
        if self.strategy is LocatorStrategy.TEXT:
            if self.tag:
                return f'{self.tag}:has-text("{_quote(self.value)}")'
            return f"text={self.value}"
        if self.strategy is LocatorStrategy.ROLE:
            if self.name:
                return f'role={self.value}[name="{_quote(self.name)}"]'
            return f"role={self.value}"
        if self.strategy is LocatorStrategy.TEST_ID:
            return f'[data-testid="{_quote(self.value)}"]'
        if self.strategy is LocatorStrategy.ATTRIBUTE:
            return f'{self.tag or ""}[{self.name}="{_quote(self.value)}"]'
        return self.value

    def __str__(self) -> str:
        return self.selector()


def by_css(selector: str) -> Locator:
    return Locator(LocatorStrategy.CSS, selector)


def by_text(value: str, tag: str | None = "button") -> Locator:
    return Locator(LocatorStrategy.TEXT, value, tag=tag)


def by_role(role_name: str, name: str | None = None) -> Locator:
    return Locator(LocatorStrategy.ROLE, role_name, name=name)


def by_test_id(value: str) -> Locator:
    return Locator(LocatorStrategy.TEST_ID, value)


def by_attr(name: str, value: str, tag: str | None = None) -> Locator:
    return Locator(LocatorStrategy.ATTRIBUTE, value, name=name, tag=tag)


def raw(selector: str) -> Locator:
    return Locator(LocatorStrategy.RAW, selector)


LocatorLike = Union[Locator, str]


def as_locator(item: LocatorLike) -> Locator:
    if isinstance(item, Locator):
        return item
    return raw(item)


@dataclass(frozen=True)
class CandidateList:
    """Ordered alternatives for one logical UI target, tried left to right."""

    target: str
    locators: tuple[Locator, ...] = ()

    @classmethod
    def of(cls, target: str, *items: LocatorLike) -> "CandidateList":
        return cls(target, tuple(as_locator(i) for i in items))

    def __iter__(self) -> Iterator[Locator]:
        return iter(self.locators)

    def __len__(self) -> int:
        return len(self.locators)

    def __add__(self, other: "CandidateList") -> "CandidateList":
        return CandidateList(self.target, self.locators + tuple(other.locators))

    def selectors(self) -> list[str]:
        return [loc.selector() for loc in self.locators]


class ProbeAction(str, Enum):
    WAIT = "wait"
    CLICK = "click"
    WAIT_AND_CLICK = "wait_and_click"
    FILL = "fill"
    SELECT = "select"
    UPLOAD = "upload"
    VISIBLE = "visible"


@dataclass
class ProbeResult:
    """Outcome of a prober pass; ``attempts`` counts candidates actually tried."""

    target: str
    found: bool
    locator: Locator | None = None
    attempts: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def selector(self) -> str | None:
        return self.locator.selector() if self.locator else None

    def __bool__(self) -> bool:
        return self.found
