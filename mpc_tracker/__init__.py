"""
MPC trajectory tracking for a simple car-like vehicle.

The optimal control problem is formulated and solved by acados; this
package supplies the vehicle model, the reference path handling, the
cost/constraint configuration and the closed-loop simulation.
"""

__version__ = "0.1.0"

from .config import TrackerConfig, load_config
from .reference_path import ReferenceTrajectory, load_reference_path, write_trajectory
from .simulation import SimulationEnvironment, SimulationResult, run_tracking
from .vehicle_model import VehicleModel, wrap_angle

__all__ = [
    'TrackerConfig',
    'load_config',
    'ReferenceTrajectory',
    'load_reference_path',
    'write_trajectory',
    'SimulationEnvironment',
    'SimulationResult',
    'run_tracking',
    'VehicleModel',
    'wrap_angle',
]
