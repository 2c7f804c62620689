import numpy as np
import matplotlib.pyplot as plt

from .reference_path import ReferenceTrajectory
from .simulation import SimulationResult
from .vehicle_model import wrap_angle


def plot_tracking(reference: ReferenceTrajectory, result: SimulationResult):
    """
    Plot the reference path against the closed-loop trajectory.

    Left column: XY path. Right column: states and controls over time.

    Returns:
        The matplotlib figure
    """
    fig = plt.figure(figsize=(15, 10))

    ax_path = fig.add_subplot(1, 2, 1)
    ax_path.plot(reference.waypoints[:, 0], reference.waypoints[:, 1],
                 'b-', linewidth=2, label='Reference')
    ax_path.plot(result.states[:, 0], result.states[:, 1],
                 'r--', linewidth=2, label='Vehicle Trajectory', alpha=0.8)
    ax_path.plot(result.states[0, 0], result.states[0, 1], 'go', markersize=10, label='Start')
    ax_path.plot(result.states[-1, 0], result.states[-1, 1], 'rs', markersize=10, label='End')
    ax_path.set_xlabel('X [m]')
    ax_path.set_ylabel('Y [m]')
    ax_path.set_title('Reference Path Tracking')
    ax_path.legend()
    ax_path.grid(True, alpha=0.3)
    ax_path.axis('equal')

    ref_states = reference.evaluate(result.times)
    series = [
        ('x [m]', result.times, result.states[:, 0], ref_states[:, 0]),
        ('y [m]', result.times, result.states[:, 1], ref_states[:, 1]),
        ('θ [rad]', result.times, result.states[:, 2], ref_states[:, 2]),
        ('v [m/s]', result.times[:-1], result.controls[:, 0], None),
        ('δ [rad]', result.times[:-1], result.controls[:, 1], None),
    ]
    for i, (label, t, values, ref) in enumerate(series):
        ax = fig.add_subplot(len(series), 2, 2 * i + 2)
        if ref is not None:
            ax.plot(t, ref, 'b-', linewidth=1, label='reference')
            ax.plot(t, values, 'r-', linewidth=1, label='actual')
        else:
            ax.step(t, values, 'm-', where='post')
        ax.set_ylabel(label)
        ax.grid(True, alpha=0.3)
        if i == 0:
            ax.legend(loc='upper right')
        if i == len(series) - 1:
            ax.set_xlabel('Time [s]')

    fig.tight_layout()
    return fig


def tracking_errors(reference: ReferenceTrajectory, result: SimulationResult) -> dict:
    """Position and heading tracking errors along the simulated trajectory."""
    ref_states = reference.evaluate(result.times)
    position_error = np.linalg.norm(result.states[:, :2] - ref_states[:, :2], axis=1)
    heading_error = np.abs(wrap_angle(result.states[:, 2] - ref_states[:, 2]))
    return {
        'max_position_error': float(np.max(position_error)),
        'mean_position_error': float(np.mean(position_error)),
        'max_heading_error': float(np.max(heading_error)),
    }
