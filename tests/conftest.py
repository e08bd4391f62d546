from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import pytest
from fram_factory import LAST_READING, build_fram


@pytest.fixture
def make_fram() -> Callable[..., bytes]:
    return build_fram


@pytest.fixture
def last_reading() -> datetime:
    return LAST_READING
