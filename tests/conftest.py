from __future__ import annotations

from pathlib import Path

import pytest

from claypilot.config import ClayConfig
from fakes import make_config


@pytest.fixture
def config(tmp_path: Path) -> ClayConfig:
    return make_config(tmp_path)
