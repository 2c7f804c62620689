import numpy as np
import casadi as ca
from acados_template import AcadosModel, AcadosOcp, AcadosOcpSolver
from typing import Dict, Optional

from .config import TrackerConfig
from .exceptions import SolverError
from .log import get_logger
from .reference_path import ReferenceTrajectory
from .vehicle_model import VehicleModel

logger = get_logger(__name__)

# acados return codes that leave no usable iterate
ACADOS_NAN_DETECTED = 1
ACADOS_QP_FAILURE = 4
FAILURE_STATUSES = (ACADOS_NAN_DETECTED, ACADOS_QP_FAILURE)


class MPCController:
    """
    Model Predictive Controller for reference trajectory tracking using acados.

    Each call runs one real-time iteration (a single Gauss-Newton SQP step
    on the multiple-shooting problem) on a least-squares cost that pulls
    [x, y, theta] towards the reference and keeps a small penalty on the
    controls [v, delta].
    """

    def __init__(self, vehicle_model: VehicleModel,
                 config: Optional[TrackerConfig] = None):
        """
        Initialize MPC controller.

        Args:
            vehicle_model: Vehicle dynamics model
            config: Tracker configuration (defaults when omitted)
        """
        self.vehicle_model = vehicle_model
        self.config = config if config is not None else TrackerConfig()
        self.N = self.config.horizon.num_steps

        self.state_weights = np.array(self.config.cost.weights[:3], dtype=float)    # [x, y, theta]
        self.input_weights = np.array(self.config.cost.weights[3:], dtype=float)    # [v, delta]
        terminal = self.config.cost.terminal_weights
        self.terminal_state_weights = None if terminal is None else np.array(terminal, dtype=float)

        # Set together with the reference
        self.reference: Optional[ReferenceTrajectory] = None
        self.dt: Optional[float] = None
        self.solver = None

        self._x_guess: Optional[np.ndarray] = None
        self._u_guess: Optional[np.ndarray] = None

    def set_reference(self, reference: ReferenceTrajectory):
        """
        Attach the reference trajectory and build the solver.

        The reference sampling time becomes the controller sampling time,
        so the horizon spans N reference intervals.
        """
        self.reference = reference
        self.dt = reference.dt
        ocp = self.build_ocp()
        self.solver = AcadosOcpSolver(ocp, json_file=self.config.solver.json_file)
        self._x_guess = None
        self._u_guess = None
        logger.info("acados solver ready: N=%d, dt=%.4f s, horizon=%.3f s",
                    self.N, self.dt, self.get_prediction_horizon())

    def _build_model(self) -> AcadosModel:
        model = AcadosModel()
        x = self.vehicle_model.state
        u = self.vehicle_model.input
        xdot = ca.SX.sym('xdot', self.vehicle_model.n_states)
        f_expl = self.vehicle_model.dynamics

        model.x = x
        model.u = u
        model.xdot = xdot
        model.f_expl_expr = f_expl
        model.f_impl_expr = xdot - f_expl
        model.name = 'simple_car'
        return model

    def build_ocp(self) -> AcadosOcp:
        """Set up the optimal control problem. Requires the sampling time."""
        if self.dt is None:
            raise RuntimeError("Reference must be set before setting up OCP")

        nx = self.vehicle_model.n_states
        nu = self.vehicle_model.n_inputs
        ny = nx + nu

        ocp = AcadosOcp()
        ocp.model = self._build_model()
        ocp.code_export_directory = self.config.solver.code_export_directory

        ocp.solver_options.N_horizon = self.N
        ocp.solver_options.tf = self.N * self.dt

        # Cost: h = [x, y, theta, v, delta]
        ocp.cost.cost_type = 'LINEAR_LS'
        Vx = np.zeros((ny, nx))
        Vx[:nx, :nx] = np.eye(nx)
        Vu = np.zeros((ny, nu))
        Vu[nx:, :] = np.eye(nu)
        ocp.cost.Vx = Vx
        ocp.cost.Vu = Vu
        ocp.cost.W = np.diag(np.concatenate([self.state_weights, self.input_weights]))
        ocp.cost.yref = np.zeros(ny)

        if self.terminal_state_weights is not None:
            ocp.cost.cost_type_e = 'LINEAR_LS'
            ocp.cost.Vx_e = np.eye(nx)
            ocp.cost.W_e = np.diag(self.terminal_state_weights)
            ocp.cost.yref_e = np.zeros(nx)

        # Constraints
        workspace = self.config.workspace
        bounds = self.config.bounds
        lbx = np.array([workspace.x_bounds[0], workspace.y_bounds[0], bounds.heading[0]])
        ubx = np.array([workspace.x_bounds[1], workspace.y_bounds[1], bounds.heading[1]])

        ocp.constraints.x0 = np.zeros(nx)  # replaced at every solve
        ocp.constraints.lbx = lbx
        ocp.constraints.ubx = ubx
        ocp.constraints.idxbx = np.arange(nx)
        ocp.constraints.lbx_e = lbx
        ocp.constraints.ubx_e = ubx
        ocp.constraints.idxbx_e = np.arange(nx)

        ocp.constraints.lbu = np.array([bounds.velocity[0], bounds.steering[0]])
        ocp.constraints.ubu = np.array([bounds.velocity[1], bounds.steering[1]])
        ocp.constraints.idxbu = np.arange(nu)

        # Solver settings
        opts = self.config.solver
        ocp.solver_options.qp_solver = opts.qp_solver
        ocp.solver_options.hessian_approx = opts.hessian_approx
        ocp.solver_options.integrator_type = opts.integrator_type
        ocp.solver_options.sim_method_num_stages = opts.sim_method_num_stages
        ocp.solver_options.sim_method_num_steps = opts.sim_method_num_steps
        ocp.solver_options.nlp_solver_type = opts.nlp_solver_type
        ocp.solver_options.nlp_solver_max_iter = opts.nlp_solver_max_iter
        ocp.solver_options.levenberg_marquardt = opts.levenberg_marquardt
        ocp.solver_options.nlp_solver_tol_stat = opts.kkt_tolerance
        ocp.solver_options.nlp_solver_tol_eq = opts.kkt_tolerance
        ocp.solver_options.nlp_solver_tol_ineq = opts.kkt_tolerance
        ocp.solver_options.nlp_solver_tol_comp = opts.kkt_tolerance
        ocp.solver_options.print_level = opts.print_level

        return ocp

    def _initial_guess(self, current_state: np.ndarray):
        if self._x_guess is None:
            x_guess = np.tile(current_state, (self.N + 1, 1))
            u_guess = np.zeros((self.N, self.vehicle_model.n_inputs))
        else:
            # shift the previous solution by one interval
            x_guess = np.vstack([self._x_guess[1:], self._x_guess[-1:]])
            u_guess = np.vstack([self._u_guess[1:], self._u_guess[-1:]])
            x_guess[0] = current_state
        return x_guess, u_guess

    def solve(self, current_state: np.ndarray,
              reference_window: np.ndarray, t: Optional[float] = None) -> Dict:
        """
        Run one real-time iteration.

        Args:
            current_state: Current vehicle state [x, y, theta]
            reference_window: Reference states [N + 1, 3] over the horizon
            t: Current time, only used in error reports

        Returns:
            Dictionary containing optimal control sequence and predicted trajectory
        """
        if self.solver is None:
            raise RuntimeError("MPC solver not initialized")

        current_state = np.asarray(current_state, dtype=float)
        reference_window = np.asarray(reference_window, dtype=float)
        if reference_window.shape != (self.N + 1, self.vehicle_model.n_states):
            raise ValueError(f"reference window must have shape ({self.N + 1}, "
                             f"{self.vehicle_model.n_states}), got {reference_window.shape}")

        # Set initial condition
        self.solver.set(0, "lbx", current_state)
        self.solver.set(0, "ubx", current_state)

        x_guess, u_guess = self._initial_guess(current_state)
        for i in range(self.N + 1):
            self.solver.set(i, "x", x_guess[i])
        for i in range(self.N):
            self.solver.set(i, "u", u_guess[i])

        # Stage references: [x, y, theta, v, delta], controls pulled to zero
        u_ref = np.zeros(self.vehicle_model.n_inputs)
        for i in range(self.N):
            self.solver.set(i, "yref", np.concatenate([reference_window[i], u_ref]))
        if self.terminal_state_weights is not None:
            self.solver.set(self.N, "yref", reference_window[self.N])

        status = self.solver.solve()

        if status in FAILURE_STATUSES and self.config.solver.infeasible_qp_handling == "stop":
            raise SolverError(status, time=t)
        if status != 0:
            logger.warning("MPC solver returned status %d", status)

        optimal_inputs = np.array([self.solver.get(i, "u") for i in range(self.N)])
        predicted_states = np.array([self.solver.get(i, "x") for i in range(self.N + 1)])

        if status in FAILURE_STATUSES:
            # a failed iterate may hold NaN; restart the warm start from the measured state
            self._x_guess = None
            self._u_guess = None
        else:
            self._x_guess = predicted_states
            self._u_guess = optimal_inputs

        return {
            'optimal_input': optimal_inputs[0],  # First control input
            'optimal_sequence': optimal_inputs,
            'predicted_trajectory': predicted_states,
            'solver_status': status,
            'cost': self.solver.get_cost()
        }

    def step(self, t: float, current_state: np.ndarray) -> np.ndarray:
        """Feedback control at time t for the measured state."""
        if self.reference is None:
            raise RuntimeError("Reference must be set before calling step()")
        window = self.reference.horizon(t, self.N)
        result = self.solve(current_state, window, t=t)
        logger.debug("t=%.3f status=%d cost=%.4g u=%s",
                     t, result['solver_status'], result['cost'], result['optimal_input'])
        return result['optimal_input']

    def get_prediction_horizon(self) -> float:
        """Get prediction horizon in seconds."""
        return self.N * self.dt

    def get_time_step(self) -> float:
        """Get time step."""
        return self.dt
