"""
Shared fixtures for the recovery test suite.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import prng_registry  # noqa: E402
from recovery.engine_config import EngineConfig  # noqa: E402


@pytest.fixture
def small_config():
    """Two threads, short depth, exact matches only."""
    return EngineConfig.build(depth=50, threads=2, min_confidence=100.0, batch_size=64)


@pytest.fixture
def mt_outputs_12345():
    return prng_registry.generate('mt19937', 12345, 1000)


@pytest.fixture
def write_outputs(tmp_path):
    """Write integers to a newline separated input file and return its path."""
    def _write(values, name="observed.txt"):
        path = tmp_path / name
        path.write_text("\n".join(str(v) for v in values) + "\n")
        return path
    return _write
