"""GPIO and PWM line handles backed by sysfs attribute files."""

from .attribute_io import AttributeIO, InMemoryAttributeIO, SysfsAttributeIO, get_attribute_io
from .errors import (
    AlreadyClaimedError,
    InvalidArgumentError,
    InvalidOperationError,
    IOFailureError,
    LineError,
    OutOfRangeError,
    UnknownLineIdError,
)
from .paths import GpioPaths, PwmChipTable, PwmPaths
from .pin import DigitalPin, Direction, Edge, PinInfo, Value, open_pin
from .pwm import PwmChannel, PwmInfo, open_pwm
from .registry import ExclusivityRegistry, LineLock, default_registry

__all__ = [
    "AttributeIO",
    "InMemoryAttributeIO",
    "SysfsAttributeIO",
    "get_attribute_io",
    "AlreadyClaimedError",
    "InvalidArgumentError",
    "InvalidOperationError",
    "IOFailureError",
    "LineError",
    "OutOfRangeError",
    "UnknownLineIdError",
    "GpioPaths",
    "PwmChipTable",
    "PwmPaths",
    "DigitalPin",
    "Direction",
    "Edge",
    "PinInfo",
    "Value",
    "open_pin",
    "PwmChannel",
    "PwmInfo",
    "open_pwm",
    "ExclusivityRegistry",
    "LineLock",
    "default_registry",
]
