"""Exclusive, direction-checked access to sysfs GPIO and PWM lines."""

from sysfs_lines.hardware import (
    AlreadyClaimedError,
    DigitalPin,
    Direction,
    Edge,
    ExclusivityRegistry,
    InvalidArgumentError,
    InvalidOperationError,
    IOFailureError,
    LineError,
    OutOfRangeError,
    PwmChannel,
    UnknownLineIdError,
    Value,
    open_pin,
    open_pwm,
)

__all__ = [
    "AlreadyClaimedError",
    "DigitalPin",
    "Direction",
    "Edge",
    "ExclusivityRegistry",
    "InvalidArgumentError",
    "InvalidOperationError",
    "IOFailureError",
    "LineError",
    "OutOfRangeError",
    "PwmChannel",
    "UnknownLineIdError",
    "Value",
    "open_pin",
    "open_pwm",
]
