#!/usr/bin/env python3
"""
Plan a reference path around circular obstacles with OMPL and save it
in the format the tracker loads.
"""

import sys
import os

import numpy as np
import matplotlib.pyplot as plt

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mpc_tracker import load_config, write_trajectory
from mpc_tracker.log import setup_logging
from path_planning.planner import plan_reference_path


def main():
    setup_logging()
    config = load_config()
    config.workspace.obstacles = [
        {"x": 70.0, "y": 60.0, "radius": 20.0},
        {"x": 130.0, "y": 140.0, "radius": 25.0},
    ]
    waypoints = plan_reference_path(config)
    write_trajectory("planned_path.txt", waypoints)

    fig, ax = plt.subplots(figsize=(8, 8))
    for obstacle in config.workspace.obstacles:
        ax.add_patch(plt.Circle((obstacle["x"], obstacle["y"]), obstacle["radius"],
                                color='gray', alpha=0.5))
    ax.plot(waypoints[:, 0], waypoints[:, 1], 'b.-', label='Planned path')
    ax.quiver(waypoints[::5, 0], waypoints[::5, 1],
              np.cos(waypoints[::5, 2]), np.sin(waypoints[::5, 2]), width=0.003)
    ax.set_xlim(*config.workspace.x_bounds)
    ax.set_ylim(*config.workspace.y_bounds)
    ax.set_aspect('equal')
    ax.legend()
    ax.grid(True, alpha=0.3)
    plt.show()


if __name__ == "__main__":
    main()
