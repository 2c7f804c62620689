#!/usr/bin/env python3
"""
Closed-loop MPC tracking of a planned reference path.

This example shows how to:
1. Load the reference path written by the planner
2. Configure the acados tracking MPC for the simple car
3. Simulate the closed loop and write states and controls
"""

import sys
import os

import matplotlib.pyplot as plt

# Add parent directory to path to import modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mpc_tracker import load_config, run_tracking
from mpc_tracker.log import setup_logging
from mpc_tracker.plotting import plot_tracking, tracking_errors


def main():
    setup_logging()
    root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    config = load_config(os.path.join(root, "config", "simple_car.yaml"))

    reference, result = run_tracking(
        config,
        path_file=os.path.join(root, config.reference.path_file),
        states_file=os.path.join(root, config.output.states_file),
        controls_file=os.path.join(root, config.output.controls_file),
    )

    errors = tracking_errors(reference, result)
    print(f"Max position error:  {errors['max_position_error']:.3f} m")
    print(f"Mean position error: {errors['mean_position_error']:.3f} m")
    print(f"Max heading error:   {errors['max_heading_error']:.3f} rad")

    plot_tracking(reference, result)
    plt.show()


if __name__ == "__main__":
    main()
