"""
Sampling-based reference path planning for the simple car.

- workspace: bounds and circular obstacles
- validity_checker: OMPL state validity checker over a workspace
- planner: OMPL geometric planning producing reference path files
"""

from .workspace import Obstacle, Workspace

__all__ = ['Obstacle', 'Workspace']
