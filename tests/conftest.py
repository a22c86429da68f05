"""Shared fixtures for gymkit tests."""

import pytest
from pathlib import Path

from gymkit.src.registration import Registry
from gymkit.src.seeding import RNG


@pytest.fixture
def repo_root():
    """Return the repo root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def tmp_output(tmp_path):
    """Return a clean temporary output directory."""
    return tmp_path / "test_output"


@pytest.fixture
def registry():
    """Return an empty registry, isolated from the process-wide one."""
    return Registry()


@pytest.fixture
def rng():
    """Return an RNG with a fixed seed."""
    return RNG(1234)
