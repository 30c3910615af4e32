"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from healthagg.health.checker import CheckerFunc, CompositeChecker
from healthagg.health.status import Health, Status

_SETTERS = {
    Status.UP: Health.set_up,
    Status.DOWN: Health.set_down,
    Status.OUT_OF_SERVICE: Health.set_out_of_service,
    Status.UNKNOWN: Health.set_unknown,
}


@pytest.fixture
def make_probe() -> Callable[..., CheckerFunc]:
    """Factory for probes that always report the given status and info."""

    def _make(status: Status = Status.UP, **info: Any) -> CheckerFunc:
        def check() -> Health:
            health = _SETTERS[status](Health())
            for key, value in info.items():
                health.add_info(key, value)
            return health

        return CheckerFunc(check)

    return _make


@pytest.fixture
def composite() -> Iterator[CompositeChecker]:
    """A CompositeChecker whose background refresh is stopped after the test."""
    checker = CompositeChecker()
    yield checker
    checker.stop()
