"""
Exception taxonomy for rate-model simulation.

Construction problems, configuration problems, numerical failures and
protocol misuse are reported with distinct types so callers can tell a
bad contract from a non-converged number.
"""


class ContractViolationError(ValueError):
    """Raised when an object is constructed from inconsistent inputs."""

    pass


class ConfigurationError(ValueError):
    """Raised when a requested scheme or option is not supported."""

    pass


class NumericalConvergenceError(ArithmeticError):
    """Raised when a numerical routine fails to meet its tolerance."""

    pass


class UsageProtocolError(RuntimeError):
    """Raised when a stateful object is driven out of its calling protocol."""

    pass
