"""Shared pytest fixtures for all tests."""

import pytest

from sysfs_lines.hardware import ExclusivityRegistry, get_attribute_io
from sysfs_lines.hardware.attribute_io import InMemoryAttributeIO


@pytest.fixture
def attribute_io() -> InMemoryAttributeIO:
    """Provide empty in-memory attribute files.

    Returns:
        InMemoryAttributeIO instance
    """
    io = get_attribute_io(mock=True)
    assert isinstance(io, InMemoryAttributeIO)
    return io


@pytest.fixture
def registry() -> ExclusivityRegistry:
    """Provide a registry that is not shared with other tests."""
    return ExclusivityRegistry()
