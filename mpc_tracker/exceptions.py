"""
Exception hierarchy for the simple-car MPC tracker.

Library code raises these; only the command line front end turns them
into exit codes.
"""

from typing import Any, Optional


class SimpleCarMPCError(Exception):
    """Base exception for all tracker and planner errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(SimpleCarMPCError):
    """Error in configuration loading or validation."""

    pass


class ConfigNotFoundError(ConfigurationError):
    """Configuration file not found."""

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found: {config_path}",
            details={"path": config_path},
        )


class ConfigValidationError(ConfigurationError):
    """Configuration validation failed."""

    def __init__(self, key: str, reason: str, value: Any = None):
        details = {"key": key, "reason": reason}
        if value is not None:
            details["value"] = str(value)
        super().__init__(
            f"Invalid configuration for '{key}': {reason}",
            details=details,
        )


class ReferencePathError(SimpleCarMPCError):
    """The reference path file is missing, empty or malformed."""

    pass


class SolverError(SimpleCarMPCError):
    """The optimal control solver reported a failure."""

    def __init__(self, status: int, time: Optional[float] = None):
        details = {"status": status}
        if time is not None:
            details["t"] = f"{time:.3f}"
        super().__init__("MPC solver failed", details=details)
        self.status = status


class PlanningError(SimpleCarMPCError):
    """The sampling-based planner found no path."""

    pass
