"""
Shared fixtures for the tracker and planner tests.
"""

import numpy as np
import pytest

from mpc_tracker.config import TrackerConfig
from mpc_tracker.reference_path import ReferenceTrajectory


@pytest.fixture
def straight_waypoints():
    """Eleven waypoints along the x axis, 10 m apart."""
    x = np.linspace(10.0, 110.0, 11)
    return np.column_stack([x, np.full_like(x, 50.0), np.zeros_like(x)])


@pytest.fixture
def straight_reference(straight_waypoints):
    """Straight reference driven in 10 s (dt = 1 s)."""
    return ReferenceTrajectory(straight_waypoints, total_time=10.0)


@pytest.fixture
def default_config():
    return TrackerConfig()


@pytest.fixture
def path_file(tmp_path, straight_waypoints):
    path = tmp_path / "path.txt"
    path.write_text("\n".join(" ".join(f"{v:g}" for v in row) for row in straight_waypoints) + "\n")
    return path
