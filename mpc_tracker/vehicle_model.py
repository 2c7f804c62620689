import numpy as np
import casadi as ca
from typing import Dict, Tuple


def wrap_angle(angle):
    """Wrap an angle (or array of angles) to [-pi, pi)."""
    return (np.asarray(angle) + np.pi) % (2 * np.pi) - np.pi


class VehicleModel:
    """
    Kinematic simple-car model for MPC trajectory tracking.

    The car is steered at the front axle and driven with a commanded speed,
    so the state is the rear-axle pose and both inputs act directly on the
    kinematics:

        dx/dt     = v cos(theta)
        dy/dt     = v sin(theta)
        dtheta/dt = v tan(delta) / L
    """

    def __init__(self, wheelbase: float = 10.0):
        """
        Initialize vehicle model parameters.

        Args:
            wheelbase: Distance between front and rear axle [m]
        """
        if wheelbase <= 0:
            raise ValueError(f"wheelbase must be positive, got {wheelbase}")
        self.wheelbase = float(wheelbase)

        # State and input dimensions
        self.n_states = 3  # [x, y, theta]
        self.n_inputs = 2  # [v, delta]

        self._discrete_cache: Dict[Tuple[float, str, int], ca.Function] = {}

        self._create_symbolic_model()

    def _create_symbolic_model(self):
        """Create symbolic model using CasADi for optimization."""
        self.x = ca.SX.sym('x')          # x position
        self.y = ca.SX.sym('y')          # y position
        self.theta = ca.SX.sym('theta')  # heading angle

        self.state = ca.vertcat(self.x, self.y, self.theta)

        self.v = ca.SX.sym('v')          # speed
        self.delta = ca.SX.sym('delta')  # steering angle

        self.input = ca.vertcat(self.v, self.delta)

        self.dynamics = ca.vertcat(
            self.v * ca.cos(self.theta),
            self.v * ca.sin(self.theta),
            self.v * ca.tan(self.delta) / self.wheelbase,
        )

        self.dynamics_func = ca.Function('dynamics',
                                         [self.state, self.input],
                                         [self.dynamics])

    def get_continuous_dynamics(self) -> ca.Function:
        """Continuous-time right-hand side f(x, u)."""
        return self.dynamics_func

    def get_discrete_dynamics(self, dt: float, integrator: str = "rk4",
                              substeps: int = 1) -> ca.Function:
        """
        Get discrete-time dynamics over one sampling interval.

        Args:
            dt: Sampling interval
            integrator: 'rk4' or 'euler'
            substeps: Number of integrator steps per interval

        Returns:
            CasADi function (state, input) -> next state
        """
        key = (float(dt), integrator, int(substeps))
        if key in self._discrete_cache:
            return self._discrete_cache[key]

        if integrator not in ("rk4", "euler"):
            raise ValueError(f"unknown integrator '{integrator}'")
        if substeps < 1:
            raise ValueError("substeps must be >= 1")

        h = dt / substeps
        f = self.dynamics_func
        state_next = self.state
        for _ in range(substeps):
            if integrator == "euler":
                state_next = state_next + h * f(state_next, self.input)
            else:
                k1 = f(state_next, self.input)
                k2 = f(state_next + h/2 * k1, self.input)
                k3 = f(state_next + h/2 * k2, self.input)
                k4 = f(state_next + h * k3, self.input)
                state_next = state_next + h/6 * (k1 + 2*k2 + 2*k3 + k4)

        discrete = ca.Function('discrete_dynamics',
                               [self.state, self.input],
                               [state_next])
        self._discrete_cache[key] = discrete
        return discrete

    def simulate_step(self, state: np.ndarray, input: np.ndarray, dt: float,
                      integrator: str = "rk4", substeps: int = 1) -> np.ndarray:
        """
        Simulate one step of vehicle dynamics.

        Args:
            state: Current state [x, y, theta]
            input: Control input [v, delta]
            dt: Time step

        Returns:
            Next state, heading wrapped to [-pi, pi)
        """
        discrete_dynamics = self.get_discrete_dynamics(dt, integrator, substeps)
        next_state = np.array(discrete_dynamics(state, input)).flatten()
        next_state[2] = wrap_angle(next_state[2])
        return next_state

    def get_state_names(self) -> list:
        """Get names of state variables."""
        return ['x', 'y', 'theta']

    def get_input_names(self) -> list:
        """Get names of input variables."""
        return ['v', 'delta']

    def turning_radius(self, max_steering: float) -> float:
        """Minimum turning radius for a steering limit."""
        return self.wheelbase / np.tan(abs(max_steering))
