"""
Closed-loop simulation of the tracker against the simple-car process.

The process is integrated with the vehicle model itself; the controller
is anything with a ``step(t, state) -> input`` method, normally an
MPCController holding the reference trajectory.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import TrackerConfig
from .log import get_logger
from .reference_path import ReferenceTrajectory, load_reference_path, write_trajectory
from .vehicle_model import VehicleModel

logger = get_logger(__name__)

_TIME_EPS = 1e-9


@dataclass
class SimulationResult:
    """Process states and feedback controls sampled once per interval."""

    times: np.ndarray     # [K + 1]
    states: np.ndarray    # [K + 1, 3]
    controls: np.ndarray  # [K, 2]

    @property
    def num_steps(self) -> int:
        return self.controls.shape[0]


class SimulationEnvironment:
    """
    Alternate controller feedback and process integration over [t_start, t_end].

    The controller sees the process state at the start of each sampling
    interval and its input is held constant over that interval.
    """

    def __init__(self, vehicle_model: VehicleModel, controller,
                 t_start: float, t_end: float, dt: float,
                 integrator: str = "euler", substeps: int = 1):
        if t_end <= t_start:
            raise ValueError(f"t_end ({t_end}) must be after t_start ({t_start})")
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.vehicle_model = vehicle_model
        self.controller = controller
        self.t_start = float(t_start)
        self.t_end = float(t_end)
        self.dt = float(dt)
        self.integrator = integrator
        self.substeps = substeps
        self._x0: Optional[np.ndarray] = None

    def init(self, x0: np.ndarray):
        """Reset the process to x0."""
        x0 = np.asarray(x0, dtype=float).flatten()
        if x0.shape != (self.vehicle_model.n_states,):
            raise ValueError(f"initial state must have {self.vehicle_model.n_states} entries, "
                             f"got {x0.shape[0]}")
        self._x0 = x0

    def run(self) -> SimulationResult:
        """Run the closed loop until t_end."""
        if self._x0 is None:
            raise RuntimeError("Simulation must be initialized with init(x0) before run()")

        t = self.t_start
        state = self._x0.copy()
        times = [t]
        states = [state.copy()]
        controls = []

        step = 0
        while t < self.t_end - _TIME_EPS:
            h = min(self.dt, self.t_end - t)
            u = np.asarray(self.controller.step(t, state), dtype=float).flatten()
            state = self.vehicle_model.simulate_step(state, u, h,
                                                     self.integrator, self.substeps)
            t += h

            times.append(t)
            states.append(state.copy())
            controls.append(u.copy())

            if step % 10 == 0:
                logger.info("t=%6.2f x=%.2f y=%.2f theta=%.3f v=%.2f delta=%.3f",
                            t, state[0], state[1], state[2], u[0], u[1])
            step += 1

        logger.info("simulation completed: %d steps", len(controls))
        return SimulationResult(
            times=np.array(times),
            states=np.array(states),
            controls=np.array(controls).reshape(-1, self.vehicle_model.n_inputs),
        )


def run_tracking(config: TrackerConfig, path_file: Optional[str] = None,
                 states_file: Optional[str] = None,
                 controls_file: Optional[str] = None):
    """
    Load the reference, track it in closed loop and write the outputs.

    Args:
        config: Tracker configuration
        path_file: Overrides config.reference.path_file
        states_file: Overrides config.output.states_file
        controls_file: Overrides config.output.controls_file

    Returns:
        (reference, result)
    """
    from .mpc_controller import MPCController

    waypoints = load_reference_path(path_file or config.reference.path_file)
    reference = ReferenceTrajectory(waypoints, config.reference.total_time)
    logger.info("reference: %d waypoints over %.1f s (dt=%.4f s)",
                reference.num_waypoints, reference.total_time, reference.dt)

    vehicle = VehicleModel(wheelbase=config.vehicle.wheelbase)
    controller = MPCController(vehicle, config)
    controller.set_reference(reference)

    sim = SimulationEnvironment(vehicle, controller,
                                t_start=reference.t_start, t_end=reference.t_end,
                                dt=reference.dt,
                                integrator=config.simulation.integrator,
                                substeps=config.simulation.substeps)
    sim.init(reference.initial_state)
    result = sim.run()

    write_trajectory(states_file or config.output.states_file, result.states)
    write_trajectory(controls_file or config.output.controls_file, result.controls)
    return reference, result
