"""Pytest configuration and fixtures for budkubestate tests."""

import pytest


pytest.register_assert_rewrite("metric_helpers")

from budkubestate.generator.family_generator import FamilyRegistry  # noqa: E402
from budkubestate.store.node import new_node_registry  # noqa: E402


@pytest.fixture
def node_registry() -> FamilyRegistry:
    """Node registry without label or annotation passthrough."""
    return new_node_registry()
