from ompl import base as ob

from .workspace import Workspace


class ValidityChecker(ob.StateValidityChecker):
    """
    State validity checker for SE2-type state spaces.

    A state is valid when it lies inside the state space bounds and
    outside every workspace obstacle. With an obstacle-free workspace this
    reduces to the bounds check.
    """

    def __init__(self, si, workspace: Workspace = None):
        super(ValidityChecker, self).__init__(si)
        self.space_information = si
        self.workspace = workspace if workspace is not None else Workspace()

    def isValid(self, state):
        if not self.space_information.satisfiesBounds(state):
            return False
        return self.clearance(state) > 0.0

    def clearance(self, state):
        """Distance from the state's position to the nearest obstacle."""
        return self.workspace.clearance(state.getX(), state.getY())
