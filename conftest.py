"""
Common test fixtures and configuration for tensorview tests.
"""

import pytest
import sys
import numpy as np
from pathlib import Path

# Add the project root to Python path for imports
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Import modules for fixtures
from tensorview import RTensor, CTensor, get_config, set_config


@pytest.fixture
def rng():
    """Deterministic random generator for each test."""
    return np.random.default_rng(12345)


@pytest.fixture
def matrix_2x2():
    """The 2x2 matrix [[1, 2], [3, 4]] as an RTensor."""
    return RTensor([[1.0, 2.0], [3.0, 4.0]])


@pytest.fixture
def iota_2x3x4():
    """RTensor of shape (2, 3, 4) holding its own column-major offsets."""
    return RTensor(np.arange(24.0), (2, 3, 4))


@pytest.fixture
def complex_vector():
    """Small CTensor with nonzero imaginary parts."""
    return CTensor([1 + 1j, 2 - 1j, -3j])


@pytest.fixture
def sample_tensor_shapes():
    """Common tensor shapes for testing."""
    return {
        'vector_1d': [7],
        'small_2d': [3, 4],
        'tall_2d': [8, 2],
        'small_3d': [2, 3, 4],
        'small_4d': [2, 2, 3, 2],
        'with_unit_axis': [3, 1, 4],
    }


@pytest.fixture
def coordinate_test_cases():
    """Test cases for column-major coordinate transformations."""
    return [
        {
            'name': 'simple_2d',
            'shape': [4, 8],
            'coordinates': [(0, 0), (1, 2), (3, 7)],
            'offsets': [0, 9, 31],
        },
        {
            'name': 'medium_3d',
            'shape': [2, 3, 4],
            'coordinates': [(0, 0, 0), (1, 2, 0), (1, 2, 3)],
            'offsets': [0, 5, 23],
        },
        {
            'name': 'vector_1d',
            'shape': [5],
            'coordinates': [(0,), (4,)],
            'offsets': [0, 4],
        },
    ]


@pytest.fixture
def debug_checks_off():
    """Disable view bounds verification for the duration of a test."""
    previous = set_config(debug_checks=False)
    yield get_config()
    set_config(**previous.__dict__)


# Pytest configuration hooks
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names."""
    for item in items:
        # Mark integration tests
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)

        # Mark slow tests
        if any(keyword in item.nodeid for keyword in ["large", "performance", "benchmark"]):
            item.add_marker(pytest.mark.slow)
