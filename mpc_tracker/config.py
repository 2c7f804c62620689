"""
Configuration for the simple-car MPC tracker and reference planner.

This module provides:
- Typed configuration dataclasses, one per concern
- TrackerConfig: the complete configuration with validation
- load_config: Load configuration from YAML files

Defaults reproduce the tuned tracker: 25-step horizon over a 70 s
reference, LSQ weights diag(1, 1, 0.7, 1e-6, 1e-6) and a 200 m square
workspace.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .exceptions import ConfigNotFoundError, ConfigValidationError


def _check_interval(key: str, interval: Tuple[float, float]) -> None:
    if len(interval) != 2:
        raise ConfigValidationError(key, "must have exactly two entries [low, high]", interval)
    if not interval[0] < interval[1]:
        raise ConfigValidationError(key, "lower bound must be below upper bound", interval)


@dataclass
class VehicleConfig:
    """Simple-car geometry."""

    wheelbase: float = 10.0

    def validate(self) -> None:
        if self.wheelbase <= 0:
            raise ConfigValidationError("vehicle.wheelbase", "must be > 0", self.wheelbase)


@dataclass
class WorkspaceConfig:
    """Planar workspace shared by the tracker bounds and the planner."""

    x_bounds: Tuple[float, float] = (0.0, 200.0)
    y_bounds: Tuple[float, float] = (0.0, 200.0)
    # each obstacle is a circle {x, y, radius}
    obstacles: List[Dict[str, float]] = field(default_factory=list)

    def validate(self) -> None:
        _check_interval("workspace.x_bounds", self.x_bounds)
        _check_interval("workspace.y_bounds", self.y_bounds)
        for i, obstacle in enumerate(self.obstacles):
            missing = {"x", "y", "radius"} - set(obstacle)
            if missing:
                raise ConfigValidationError(
                    f"workspace.obstacles[{i}]", f"missing keys {sorted(missing)}"
                )
            if obstacle["radius"] <= 0:
                raise ConfigValidationError(
                    f"workspace.obstacles[{i}].radius", "must be > 0", obstacle["radius"]
                )


@dataclass
class ReferenceConfig:
    """Reference path file and the time it is stretched over."""

    path_file: str = "data/simple_car_path_geometric.txt"
    total_time: float = 70.0

    def validate(self) -> None:
        if self.total_time <= 0:
            raise ConfigValidationError("reference.total_time", "must be > 0", self.total_time)


@dataclass
class HorizonConfig:
    """Prediction horizon, counted in reference sampling intervals."""

    num_steps: int = 25

    def validate(self) -> None:
        if self.num_steps < 1:
            raise ConfigValidationError("horizon.num_steps", "must be >= 1", self.num_steps)


@dataclass
class CostConfig:
    """Least-squares weights on [x, y, theta, v, delta]."""

    weights: List[float] = field(default_factory=lambda: [1.0, 1.0, 0.7, 1e-6, 1e-6])
    # weights on [x, y, theta] at the last node; None disables the end term
    terminal_weights: Optional[List[float]] = None

    def validate(self) -> None:
        if len(self.weights) != 5:
            raise ConfigValidationError("cost.weights", "must have 5 entries", self.weights)
        if any(w < 0 for w in self.weights):
            raise ConfigValidationError("cost.weights", "must be >= 0", self.weights)
        if self.terminal_weights is not None:
            if len(self.terminal_weights) != 3:
                raise ConfigValidationError(
                    "cost.terminal_weights", "must have 3 entries", self.terminal_weights
                )
            if any(w < 0 for w in self.terminal_weights):
                raise ConfigValidationError(
                    "cost.terminal_weights", "must be >= 0", self.terminal_weights
                )


@dataclass
class BoundsConfig:
    """Box constraints on heading and controls."""

    heading: Tuple[float, float] = (-math.pi, math.pi)
    velocity: Tuple[float, float] = (-10.0, 10.0)
    steering: Tuple[float, float] = (-math.pi / 3, math.pi / 3)

    def validate(self) -> None:
        _check_interval("bounds.heading", self.heading)
        _check_interval("bounds.velocity", self.velocity)
        _check_interval("bounds.steering", self.steering)
        if max(abs(self.steering[0]), abs(self.steering[1])) >= math.pi / 2:
            raise ConfigValidationError(
                "bounds.steering", "must stay inside (-pi/2, pi/2)", self.steering
            )


@dataclass
class SolverConfig:
    """acados solver options."""

    nlp_solver_type: str = "SQP_RTI"
    hessian_approx: str = "GAUSS_NEWTON"
    integrator_type: str = "ERK"
    sim_method_num_stages: int = 4
    sim_method_num_steps: int = 1
    qp_solver: str = "PARTIAL_CONDENSING_HPIPM"
    levenberg_marquardt: float = 1e-4
    kkt_tolerance: float = 1e-8
    nlp_solver_max_iter: int = 50
    infeasible_qp_handling: str = "stop"
    print_level: int = 0
    json_file: str = "acados_ocp.json"
    code_export_directory: str = "c_generated_code"

    def validate(self) -> None:
        valid = {
            "nlp_solver_type": {"SQP_RTI", "SQP"},
            "hessian_approx": {"GAUSS_NEWTON", "EXACT"},
            "integrator_type": {"ERK", "IRK"},
            "infeasible_qp_handling": {"stop", "ignore"},
        }
        for key, options in valid.items():
            value = getattr(self, key)
            if value not in options:
                raise ConfigValidationError(f"solver.{key}", f"must be one of {sorted(options)}", value)
        if self.sim_method_num_stages < 1 or self.sim_method_num_steps < 1:
            raise ConfigValidationError("solver.sim_method_num_stages", "stages and steps must be >= 1")
        if self.levenberg_marquardt < 0:
            raise ConfigValidationError(
                "solver.levenberg_marquardt", "must be >= 0", self.levenberg_marquardt
            )
        if self.kkt_tolerance <= 0:
            raise ConfigValidationError("solver.kkt_tolerance", "must be > 0", self.kkt_tolerance)


@dataclass
class SimulationConfig:
    """Process (plant) integration used by the closed-loop simulation."""

    integrator: str = "euler"
    substeps: int = 1

    def validate(self) -> None:
        if self.integrator not in ("euler", "rk4"):
            raise ConfigValidationError(
                "simulation.integrator", "must be 'euler' or 'rk4'", self.integrator
            )
        if self.substeps < 1:
            raise ConfigValidationError("simulation.substeps", "must be >= 1", self.substeps)


@dataclass
class OutputConfig:
    """Where the simulated trajectory is written."""

    states_file: str = "data/output_states.txt"
    controls_file: str = "data/output_controls.txt"

    def validate(self) -> None:
        pass


@dataclass
class PlanningConfig:
    """Geometric planner producing the reference path file."""

    state_space: str = "reeds_shepp"
    # None derives the radius from wheelbase and steering limit
    turning_radius: Optional[float] = None
    start: Tuple[float, float, float] = (20.0, 20.0, 0.0)
    goal: Tuple[float, float, float] = (180.0, 180.0, math.pi / 2)
    planner: str = "RRTConnect"
    solve_time: float = 1.0
    num_waypoints: int = 71

    def validate(self) -> None:
        if self.state_space not in ("se2", "dubins", "reeds_shepp"):
            raise ConfigValidationError(
                "planning.state_space", "must be one of se2, dubins, reeds_shepp", self.state_space
            )
        if self.planner not in ("RRTConnect", "RRTstar", "PRM"):
            raise ConfigValidationError(
                "planning.planner", "must be one of RRTConnect, RRTstar, PRM", self.planner
            )
        if self.turning_radius is not None and self.turning_radius <= 0:
            raise ConfigValidationError(
                "planning.turning_radius", "must be > 0", self.turning_radius
            )
        if len(self.start) != 3 or len(self.goal) != 3:
            raise ConfigValidationError("planning.start", "start and goal must be [x, y, yaw]")
        if self.solve_time <= 0:
            raise ConfigValidationError("planning.solve_time", "must be > 0", self.solve_time)
        if self.num_waypoints < 2:
            raise ConfigValidationError("planning.num_waypoints", "must be >= 2", self.num_waypoints)


_TUPLE_FIELDS = {"x_bounds", "y_bounds", "heading", "velocity", "steering", "start", "goal"}
_LIST_FIELDS = {"weights", "terminal_weights"}
_NULLABLE_FIELDS = {"terminal_weights", "turning_radius"}


def _number(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    return float(value)


def _coerce(name: str, key: str, value: Any, default: Any) -> Any:
    """Convert a raw YAML value to the type of the field's default."""
    full_key = f"{name}.{key}"
    if value is None:
        if key in _NULLABLE_FIELDS:
            return None
        raise ConfigValidationError(full_key, "must not be null")

    if key in _TUPLE_FIELDS or key in _LIST_FIELDS:
        try:
            numbers = [_number(v) for v in value]
        except (TypeError, ValueError):
            raise ConfigValidationError(full_key, "must be a list of numbers", value)
        return tuple(numbers) if key in _TUPLE_FIELDS else numbers

    if key == "obstacles":
        try:
            return [{k: _number(v) for k, v in obstacle.items()} for obstacle in value]
        except (AttributeError, TypeError, ValueError):
            raise ConfigValidationError(full_key, "must be a list of {x, y, radius} mappings", value)

    if isinstance(default, str):
        if not isinstance(value, str):
            raise ConfigValidationError(full_key, "must be a string", value)
        return value

    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(full_key, "must be an integer", value)
        return value

    # float fields; YAML reads 1e-8 (no dot) as a string, so accept numeric strings
    try:
        return _number(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(full_key, "must be a number", value)


def _build_section(cls, name: str, data: Optional[Dict[str, Any]]):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigValidationError(name, "must be a mapping", data)
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigValidationError(name, f"unknown keys {sorted(unknown)}")
    defaults = cls()
    values = {}
    for key, value in data.items():
        values[key] = _coerce(name, key, value, getattr(defaults, key))
    return cls(**values)


@dataclass
class TrackerConfig:
    """Complete tracker and planner configuration."""

    vehicle: VehicleConfig = field(default_factory=VehicleConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    reference: ReferenceConfig = field(default_factory=ReferenceConfig)
    horizon: HorizonConfig = field(default_factory=HorizonConfig)
    cost: CostConfig = field(default_factory=CostConfig)
    bounds: BoundsConfig = field(default_factory=BoundsConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    planning: PlanningConfig = field(default_factory=PlanningConfig)

    def validate(self) -> None:
        """Validate all configuration sections."""
        for f in fields(self):
            getattr(self, f.name).validate()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TrackerConfig":
        """Create a TrackerConfig from a (possibly partial) nested dictionary."""
        data = data or {}
        sections = {f.name: f for f in fields(cls)}
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigValidationError("<root>", f"unknown sections {sorted(unknown)}")
        kwargs = {}
        for name, f in sections.items():
            section_cls = f.default_factory
            kwargs[name] = _build_section(section_cls, name, data.get(name))
        return cls(**kwargs)


def load_config(path: Optional[Union[str, Path]] = None) -> TrackerConfig:
    """Load configuration from a YAML file, falling back to defaults.

    Args:
        path: YAML file; sections and keys it omits keep their defaults.

    Returns:
        Validated TrackerConfig.
    """
    if path is None:
        config = TrackerConfig()
        config.validate()
        return config

    path = Path(path)
    if not path.is_file():
        raise ConfigNotFoundError(str(path))

    with open(path, "r") as file:
        try:
            data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ConfigValidationError(str(path), f"invalid YAML: {e}")

    config = TrackerConfig.from_dict(data)
    config.validate()
    return config
