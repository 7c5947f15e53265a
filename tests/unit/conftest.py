"""Unit-test fixtures: a fresh in-memory engine wiring per test."""

import pytest

from tests.unit.fakes import FakeEnv


@pytest.fixture
def env() -> FakeEnv:
    return FakeEnv()
