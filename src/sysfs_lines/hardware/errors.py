"""Exceptions raised by the GPIO and PWM line handles."""


class LineError(Exception):
    """Base class for all line access errors."""


class AlreadyClaimedError(LineError):
    """Raised when a line id is already held by a live handle."""


class UnknownLineIdError(LineError):
    """Raised when a line id is not part of the configured board."""


class InvalidOperationError(LineError):
    """Raised when an operation does not fit the handle's direction or state."""


class InvalidArgumentError(LineError, ValueError):
    """Raised when an argument is outside of what the line accepts."""


class OutOfRangeError(InvalidArgumentError):
    """Raised when a duty cycle fraction is outside of [0, 1]."""


class IOFailureError(LineError):
    """Raised when reading or writing a sysfs attribute file fails.

    The underlying OSError is kept as ``__cause__``.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
