import sys
import types

import numpy as np
import pytest

from mpc_tracker.reference_path import load_reference_path
from mpc_tracker.simulation import SimulationEnvironment, run_tracking
from mpc_tracker.vehicle_model import VehicleModel


class ConstantController:
    """Feedback stub returning a fixed input and recording its calls."""

    def __init__(self, u):
        self.u = np.asarray(u, dtype=float)
        self.calls = []

    def step(self, t, state):
        self.calls.append((t, np.array(state)))
        return self.u


class FailingController:
    def step(self, t, state):
        raise RuntimeError("solver exploded")


def test_closed_loop_straight_line():
    vehicle = VehicleModel(wheelbase=10.0)
    controller = ConstantController([2.0, 0.0])
    sim = SimulationEnvironment(vehicle, controller, t_start=0.0, t_end=10.0, dt=1.0)
    sim.init([10.0, 50.0, 0.0])
    result = sim.run()

    assert result.num_steps == 10
    assert result.times.shape == (11,)
    assert result.states.shape == (11, 3)
    assert result.controls.shape == (10, 2)
    assert np.allclose(result.states[:, 0], 10.0 + 2.0 * np.arange(11))
    assert np.allclose(result.states[:, 1], 50.0)
    assert np.allclose(result.controls, [[2.0, 0.0]] * 10)


def test_controller_sees_state_at_interval_start():
    vehicle = VehicleModel(wheelbase=10.0)
    controller = ConstantController([1.0, 0.0])
    sim = SimulationEnvironment(vehicle, controller, t_start=0.0, t_end=3.0, dt=1.0)
    sim.init([0.0, 0.0, 0.0])
    result = sim.run()

    times = [t for t, _ in controller.calls]
    assert np.allclose(times, [0.0, 1.0, 2.0])
    for (_, seen), state in zip(controller.calls, result.states[:-1]):
        assert np.allclose(seen, state)


def test_last_interval_is_clipped():
    vehicle = VehicleModel(wheelbase=10.0)
    sim = SimulationEnvironment(vehicle, ConstantController([1.0, 0.0]),
                                t_start=0.0, t_end=2.5, dt=1.0)
    sim.init([0.0, 0.0, 0.0])
    result = sim.run()
    assert np.allclose(result.times, [0.0, 1.0, 2.0, 2.5])
    assert np.isclose(result.states[-1, 0], 2.5)


def test_rk4_process_turns():
    vehicle = VehicleModel(wheelbase=10.0)
    sim = SimulationEnvironment(vehicle, ConstantController([1.0, 0.2]),
                                t_start=0.0, t_end=5.0, dt=0.5, integrator="rk4")
    sim.init([0.0, 0.0, 0.0])
    result = sim.run()
    assert result.states[-1, 1] > 0.0
    assert np.isclose(result.states[-1, 2], 5.0 * np.tan(0.2) / 10.0)


def test_run_requires_init():
    sim = SimulationEnvironment(VehicleModel(), ConstantController([0.0, 0.0]), 0.0, 1.0, 0.1)
    with pytest.raises(RuntimeError):
        sim.run()


def test_init_checks_state_size():
    sim = SimulationEnvironment(VehicleModel(), ConstantController([0.0, 0.0]), 0.0, 1.0, 0.1)
    with pytest.raises(ValueError):
        sim.init([0.0, 0.0])


def test_invalid_time_span():
    with pytest.raises(ValueError):
        SimulationEnvironment(VehicleModel(), ConstantController([0.0, 0.0]), 1.0, 1.0, 0.1)
    with pytest.raises(ValueError):
        SimulationEnvironment(VehicleModel(), ConstantController([0.0, 0.0]), 0.0, 1.0, 0.0)


def test_controller_errors_propagate():
    sim = SimulationEnvironment(VehicleModel(), FailingController(), 0.0, 1.0, 0.1)
    sim.init([0.0, 0.0, 0.0])
    with pytest.raises(RuntimeError, match="solver exploded"):
        sim.run()


class ReferenceSpeedController:
    """Stands in for MPCController: drives at the reference speed, straight ahead."""

    instances = []

    def __init__(self, vehicle_model, config):
        self.vehicle_model = vehicle_model
        self.config = config
        self.reference = None
        ReferenceSpeedController.instances.append(self)

    def set_reference(self, reference):
        self.reference = reference

    def step(self, t, state):
        step_length = np.linalg.norm(np.diff(self.reference.waypoints[:2, :2], axis=0))
        return np.array([step_length / self.reference.dt, 0.0])


@pytest.fixture
def stub_mpc_module(monkeypatch):
    module = types.ModuleType("mpc_tracker.mpc_controller")
    module.MPCController = ReferenceSpeedController
    ReferenceSpeedController.instances = []
    monkeypatch.setitem(sys.modules, "mpc_tracker.mpc_controller", module)
    return module


def test_run_tracking_writes_outputs(stub_mpc_module, default_config, path_file,
                                     straight_waypoints, tmp_path):
    default_config.reference.total_time = 10.0
    states_file = tmp_path / "out" / "states.txt"
    controls_file = tmp_path / "out" / "controls.txt"

    reference, result = run_tracking(default_config, path_file=str(path_file),
                                     states_file=str(states_file),
                                     controls_file=str(controls_file))

    controller = ReferenceSpeedController.instances[0]
    assert controller.reference is reference
    assert controller.vehicle_model.wheelbase == default_config.vehicle.wheelbase
    assert reference.dt == pytest.approx(1.0)

    states = load_reference_path(states_file)
    controls = np.loadtxt(controls_file, ndmin=2)
    assert states.shape == (11, 3)
    assert controls.shape == (10, 2)
    assert np.allclose(states[0], straight_waypoints[0])
    assert np.allclose(result.times, np.arange(11.0))
    assert np.allclose(states, straight_waypoints)
    assert np.allclose(controls, [[10.0, 0.0]] * 10)
