import numpy as np
import pytest

pytest.importorskip("ompl.geometric")

from mpc_tracker.config import TrackerConfig  # noqa: E402
from mpc_tracker.exceptions import PlanningError  # noqa: E402
from path_planning.planner import plan_reference_path, turning_radius  # noqa: E402
from path_planning.workspace import Obstacle, Workspace  # noqa: E402


def path_is_free(workspace, waypoints):
    return all(workspace.is_free(float(p[0]), float(p[1])) for p in waypoints)


def test_turning_radius_from_vehicle():
    config = TrackerConfig()
    assert turning_radius(config) == pytest.approx(10.0 / np.tan(np.pi / 3))
    config.planning.turning_radius = 4.0
    assert turning_radius(config) == 4.0


@pytest.mark.parametrize("state_space", ["se2", "dubins", "reeds_shepp"])
def test_plan_in_empty_workspace(state_space):
    config = TrackerConfig()
    config.planning.state_space = state_space
    config.planning.num_waypoints = 30
    waypoints = plan_reference_path(config)

    assert waypoints.shape[1] == 3
    assert waypoints.shape[0] >= 30
    assert np.allclose(waypoints[0, :2], config.planning.start[:2], atol=1e-6)
    assert np.allclose(waypoints[-1, :2], config.planning.goal[:2], atol=1e-6)
    assert np.all(waypoints[:, :2] >= 0.0) and np.all(waypoints[:, :2] <= 200.0)


def test_plan_avoids_obstacle():
    config = TrackerConfig()
    config.workspace.obstacles = [{"x": 100.0, "y": 100.0, "radius": 30.0}]
    config.planning.state_space = "se2"
    config.planning.num_waypoints = 200
    waypoints = plan_reference_path(config)
    # interpolated states may sit between checked motion samples
    workspace = Workspace(obstacles=[Obstacle(100.0, 100.0, 29.0)])
    assert path_is_free(workspace, waypoints)


def test_start_inside_obstacle_is_rejected():
    config = TrackerConfig()
    config.workspace.obstacles = [{"x": 20.0, "y": 20.0, "radius": 5.0}]
    with pytest.raises(PlanningError):
        plan_reference_path(config)
