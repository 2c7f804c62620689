"""
Planar workspace geometry used by the state validity checker.
"""

import math
from dataclasses import dataclass, field
from typing import List, Tuple

from mpc_tracker.config import WorkspaceConfig


@dataclass(frozen=True)
class Obstacle:
    """Circular obstacle."""

    x: float
    y: float
    radius: float

    def distance(self, x: float, y: float) -> float:
        """Signed distance from (x, y) to the obstacle boundary."""
        return math.hypot(x - self.x, y - self.y) - self.radius


@dataclass
class Workspace:
    """Axis-aligned rectangle with circular obstacles."""

    x_bounds: Tuple[float, float] = (0.0, 200.0)
    y_bounds: Tuple[float, float] = (0.0, 200.0)
    obstacles: List[Obstacle] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: WorkspaceConfig) -> "Workspace":
        return cls(
            x_bounds=tuple(config.x_bounds),
            y_bounds=tuple(config.y_bounds),
            obstacles=[Obstacle(float(o["x"]), float(o["y"]), float(o["radius"]))
                       for o in config.obstacles],
        )

    def contains(self, x: float, y: float) -> bool:
        return (self.x_bounds[0] <= x <= self.x_bounds[1]
                and self.y_bounds[0] <= y <= self.y_bounds[1])

    def clearance(self, x: float, y: float) -> float:
        """Distance to the closest obstacle, negative inside one, inf without obstacles."""
        if not self.obstacles:
            return math.inf
        return min(obstacle.distance(x, y) for obstacle in self.obstacles)

    def is_free(self, x: float, y: float) -> bool:
        return self.contains(x, y) and self.clearance(x, y) > 0.0
