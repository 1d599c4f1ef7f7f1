from __future__ import annotations

import pytest

from support import TimeController


@pytest.fixture()
def clock() -> TimeController:
    return TimeController()
