"""Locator candidates and the fallback selector prober."""

from claypilot.selectors.prober import SelectorProber
from claypilot.selectors.types import (
    CandidateList,
    Locator,
    LocatorStrategy,
    ProbeAction,
    ProbeResult,
    as_locator,
    by_attr,
    by_css,
    by_role,
    by_test_id,
    by_text,
    raw,
)

__all__ = [
    "CandidateList",
    "Locator",
    "LocatorStrategy",
    "ProbeAction",
    "ProbeResult",
    "SelectorProber",
    "as_locator",
    "by_attr",
    "by_css",
    "by_role",
    "by_test_id",
    "by_text",
    "raw",
]
