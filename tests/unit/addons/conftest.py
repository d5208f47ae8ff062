from __future__ import annotations

import pytest

from tests.unit.addons.fakes import FakeHandler


@pytest.fixture
def handler() -> FakeHandler:
    return FakeHandler()
