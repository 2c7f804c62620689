"""
Geometric reference path planning for the simple car with OMPL.

The planned path is interpolated to a fixed number of states and
returned as ``[x, y, yaw]`` rows, the format the tracker loads.
"""

import numpy as np
from ompl import base as ob
from ompl import geometric as og

from mpc_tracker.config import TrackerConfig
from mpc_tracker.exceptions import PlanningError
from mpc_tracker.log import get_logger
from mpc_tracker.vehicle_model import VehicleModel

from .validity_checker import ValidityChecker
from .workspace import Workspace

logger = get_logger(__name__)

PLANNERS = {
    "RRTConnect": og.RRTConnect,
    "RRTstar": og.RRTstar,
    "PRM": og.PRM,
}


def turning_radius(config: TrackerConfig) -> float:
    """Configured turning radius, or the one implied by wheelbase and steering limit."""
    if config.planning.turning_radius is not None:
        return config.planning.turning_radius
    max_steering = min(abs(config.bounds.steering[0]), abs(config.bounds.steering[1]))
    return VehicleModel(config.vehicle.wheelbase).turning_radius(max_steering)


def create_state_space(config: TrackerConfig):
    """SE2, Dubins or Reeds-Shepp space bounded by the workspace."""
    kind = config.planning.state_space
    if kind == "dubins":
        space = ob.DubinsStateSpace(turning_radius(config))
    elif kind == "reeds_shepp":
        space = ob.ReedsSheppStateSpace(turning_radius(config))
    else:
        space = ob.SE2StateSpace()

    bounds = ob.RealVectorBounds(2)
    bounds.setLow(0, config.workspace.x_bounds[0])
    bounds.setHigh(0, config.workspace.x_bounds[1])
    bounds.setLow(1, config.workspace.y_bounds[0])
    bounds.setHigh(1, config.workspace.y_bounds[1])
    space.setBounds(bounds)
    return space


def _pose(space, pose):
    state = ob.State(space)
    state().setX(float(pose[0]))
    state().setY(float(pose[1]))
    state().setYaw(float(pose[2]))
    return state


def plan_reference_path(config: TrackerConfig) -> np.ndarray:
    """
    Plan a path from planning.start to planning.goal.

    Returns:
        Interpolated path [num_waypoints, 3] with rows [x, y, yaw]
    """
    planning = config.planning
    workspace = Workspace.from_config(config.workspace)
    for name, pose in (("start", planning.start), ("goal", planning.goal)):
        if not workspace.is_free(pose[0], pose[1]):
            raise PlanningError(f"{name} pose is not in free space", details={name: pose})

    space = create_state_space(config)
    ss = og.SimpleSetup(space)
    si = ss.getSpaceInformation()
    checker = ValidityChecker(si, workspace)
    ss.setStateValidityChecker(checker)
    si.setStateValidityCheckingResolution(0.002)

    ss.setStartAndGoalStates(_pose(space, planning.start), _pose(space, planning.goal))
    ss.setPlanner(PLANNERS[planning.planner](si))

    logger.info("planning with %s in %s space for up to %.2f s",
                planning.planner, planning.state_space, planning.solve_time)
    solved = ss.solve(planning.solve_time)
    if not solved or not ss.haveExactSolutionPath():
        raise PlanningError("no exact solution found",
                            details={"planner": planning.planner, "solve_time": planning.solve_time})

    ss.simplifySolution()
    path = ss.getSolutionPath()
    path.interpolate(planning.num_waypoints)

    waypoints = np.array([[s.getX(), s.getY(), s.getYaw()] for s in path.getStates()])
    logger.info("found path with %d states, length %.2f m", len(waypoints), path.length())
    return waypoints
