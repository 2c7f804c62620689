"""
Reference path input/output and the static reference trajectory.

Path files hold one waypoint per line, ``x y theta`` separated by
whitespace, as written by the geometric planner. The tracker writes its
closed-loop states and controls in the same plain format.
"""

import os
import numpy as np
from typing import Union

from .exceptions import ReferencePathError
from .log import get_logger
from .vehicle_model import wrap_angle

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


def load_reference_path(path: PathLike) -> np.ndarray:
    """
    Read waypoints from a reference path file.

    Missing trailing columns read as 0.0, extra columns are ignored and
    blank lines are skipped.

    Args:
        path: Text file with one ``x y theta`` waypoint per line

    Returns:
        Array of waypoints [N, 3]
    """
    try:
        with open(path, "r") as f:
            lines = f.readlines()
    except OSError as e:
        raise ReferencePathError("cannot open reference state file",
                                 details={"path": str(path), "error": e.strerror})

    waypoints = []
    for lineno, line in enumerate(lines, start=1):
        tokens = line.split()
        if not tokens:
            continue
        try:
            values = [float(tok) for tok in tokens[:3]]
        except ValueError:
            raise ReferencePathError("malformed waypoint",
                                     details={"path": str(path), "line": lineno})
        values.extend([0.0] * (3 - len(values)))
        waypoints.append(values)

    if not waypoints:
        raise ReferencePathError("reference path contains no waypoints",
                                 details={"path": str(path)})

    logger.debug("loaded %d waypoints from %s", len(waypoints), path)
    return np.array(waypoints, dtype=float)


def write_trajectory(path: PathLike, values: np.ndarray) -> None:
    """Write one row per line, columns separated by a single space."""
    values = np.atleast_2d(np.asarray(values, dtype=float))
    directory = os.path.dirname(os.fspath(path))
    if directory:
        os.makedirs(directory, exist_ok=True)
    np.savetxt(path, values, fmt="%g", delimiter=" ")
    logger.info("wrote %d rows to %s", values.shape[0], path)


class ReferenceTrajectory:
    """
    Static reference trajectory built from planner waypoints.

    Waypoint ``i`` is scheduled at ``t_start + i * dt`` so that the whole
    path is traversed in ``total_time``. Between waypoints the reference is
    interpolated linearly; the heading is interpolated on its unwrapped
    values so a crossing of +-pi does not sweep through zero. Outside the
    time span the first or last waypoint is held.
    """

    def __init__(self, waypoints: np.ndarray, total_time: float, t_start: float = 0.0):
        """
        Args:
            waypoints: Waypoints [N, 3] as returned by load_reference_path
            total_time: Time to traverse the whole path [s]
            t_start: Time of the first waypoint [s]
        """
        waypoints = np.asarray(waypoints, dtype=float)
        if waypoints.ndim != 2 or waypoints.shape[1] != 3:
            raise ReferencePathError("waypoints must have shape [N, 3]",
                                     details={"shape": waypoints.shape})
        if waypoints.shape[0] < 2:
            raise ReferencePathError("reference path needs at least two waypoints",
                                     details={"num_waypoints": waypoints.shape[0]})
        if total_time <= 0:
            raise ReferencePathError("total time must be positive",
                                     details={"total_time": total_time})

        self.waypoints = waypoints
        self.total_time = float(total_time)
        self.t_start = float(t_start)
        self._dt = self.total_time / (waypoints.shape[0] - 1)
        self._times = self.t_start + self._dt * np.arange(waypoints.shape[0])
        self._unwrapped_heading = np.unwrap(waypoints[:, 2])

    @property
    def dt(self) -> float:
        """Sampling time between consecutive waypoints."""
        return self._dt

    @property
    def times(self) -> np.ndarray:
        return self._times

    @property
    def t_end(self) -> float:
        return self.t_start + self.total_time

    @property
    def num_waypoints(self) -> int:
        return self.waypoints.shape[0]

    @property
    def initial_state(self) -> np.ndarray:
        return self.waypoints[0].copy()

    def evaluate(self, t) -> np.ndarray:
        """
        Reference state(s) at time(s) t.

        Returns:
            [x, y, theta] for scalar t, [len(t), 3] otherwise
        """
        t_arr = np.atleast_1d(np.asarray(t, dtype=float))
        x = np.interp(t_arr, self._times, self.waypoints[:, 0])
        y = np.interp(t_arr, self._times, self.waypoints[:, 1])
        theta = wrap_angle(np.interp(t_arr, self._times, self._unwrapped_heading))
        ref = np.column_stack([x, y, theta])
        if np.ndim(t) == 0:
            return ref[0]
        return ref

    def horizon(self, t: float, num_steps: int) -> np.ndarray:
        """
        Reference over a prediction horizon starting at t.

        Returns:
            Reference states at t, t + dt, ..., t + num_steps * dt, [num_steps + 1, 3]
        """
        return self.evaluate(t + self._dt * np.arange(num_steps + 1))
