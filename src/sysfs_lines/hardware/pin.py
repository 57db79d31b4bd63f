"""Digital GPIO lines controlled through sysfs.

A DigitalPin is obtained from DigitalPin.connect() and owns its line until
disposed. Use it as an async context manager so the line is released on
every exit path:

    async with await DigitalPin.connect(17, Direction.OUT) as pin:
        await pin.write(Value.HIGH)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Optional, Type, TypeVar

from sysfs_lines.hardware.attribute_io import AttributeIO, get_attribute_io
from sysfs_lines.hardware.errors import (
    InvalidArgumentError,
    InvalidOperationError,
    IOFailureError,
)
from sysfs_lines.hardware.paths import GpioPaths
from sysfs_lines.hardware.registry import ExclusivityRegistry, LineLock, default_registry

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="SysfsEnum")

# Only connect() holds this, so handles cannot be built directly
_CONNECT_KEY = object()


class SysfsEnum(Enum):
    """Enum whose values are the strings used in sysfs attribute files."""

    def to_sysfs(self) -> str:
        """Get the attribute file representation."""
        return str(self.value)

    @classmethod
    def from_sysfs(cls: Type[E], text: str) -> E:
        """Parse an attribute file representation.

        Args:
            text: File content, surrounding whitespace is ignored

        Raises:
            ValueError: If the text is not a known value
        """
        try:
            return cls(text.strip())
        except ValueError:
            raise ValueError(f"Unknown {cls.__name__.lower()}: {text!r}") from None


class Direction(SysfsEnum):
    """GPIO line directions."""

    IN = "in"
    OUT = "out"
    INOUT = "inout"


class Value(SysfsEnum):
    """GPIO line levels."""

    HIGH = "1"
    LOW = "0"


class Edge(SysfsEnum):
    """GPIO edges that could trigger an interrupt."""

    NONE = "none"
    RISING = "rising"
    FALLING = "falling"
    BOTH = "both"


@dataclass(frozen=True)
class PinInfo:
    """Snapshot of a pin's configuration."""

    id: int
    direction: Direction


class DigitalPin:
    """An exported GPIO line with a fixed direction.

    Reads are refused on OUT pins and writes on IN pins before any file is
    touched. INOUT pins allow both.
    """

    def __init__(
        self,
        line_id: int,
        direction: Direction,
        *,
        claim: LineLock,
        io: AttributeIO,
        registry: ExclusivityRegistry,
        paths: GpioPaths,
        _key: Any = None,
    ) -> None:
        """Initialize the handle (use DigitalPin.connect() instead).

        Raises:
            TypeError: If not called from connect()
        """
        if _key is not _CONNECT_KEY:
            raise TypeError("DigitalPin cannot be created directly, use DigitalPin.connect()")
        self._id = line_id
        self._direction = direction
        self._claim = claim
        self._io = io
        self._registry = registry
        self._paths = paths
        self._disposed = False
        self._op_lock = asyncio.Lock()

    @classmethod
    async def connect(
        cls,
        line_id: int,
        direction: Direction,
        *,
        io: Optional[AttributeIO] = None,
        registry: Optional[ExclusivityRegistry] = None,
        paths: Optional[GpioPaths] = None,
    ) -> "DigitalPin":
        """Claim, export and configure a GPIO line.

        Args:
            line_id: GPIO line number
            direction: Direction to configure
            io: Attribute file access (defaults to sysfs)
            registry: Registry to claim the line in (defaults to the process-wide one)
            paths: Path resolver (defaults to /sys/class/gpio and the Pi header lines)

        Returns:
            Handle owning the line

        Raises:
            UnknownLineIdError: If the line is not available on the board
            AlreadyClaimedError: If the line is held by another handle
            IOFailureError: If exporting or setting the direction failed
        """
        if not isinstance(direction, Direction):
            raise InvalidArgumentError(f"Invalid direction: {direction!r}")
        io = io if io is not None else get_attribute_io(mock=False)
        registry = registry if registry is not None else default_registry
        paths = paths if paths is not None else GpioPaths()

        pin_paths = paths.pin(line_id)
        claim = registry.acquire(line_id)
        exported = False
        try:
            await io.write_text(paths.export, str(line_id))
            exported = True
            await io.write_text(pin_paths.direction, direction.to_sysfs())
        except BaseException as e:
            registry.release(claim)
            if exported and isinstance(e, IOFailureError):
                await cls._unexport_after_failure(io, paths, line_id)
            raise

        logger.info("GPIO %d connected (direction=%s)", line_id, direction.value)
        return cls(
            line_id,
            direction,
            claim=claim,
            io=io,
            registry=registry,
            paths=paths,
            _key=_CONNECT_KEY,
        )

    @staticmethod
    async def _unexport_after_failure(io: AttributeIO, paths: GpioPaths, line_id: int) -> None:
        try:
            await io.write_text(paths.unexport, str(line_id))
        except IOFailureError as e:
            logger.warning("Could not unexport GPIO %d after failed setup: %s", line_id, e)

    @property
    def info(self) -> PinInfo:
        """Snapshot of the pin's id and direction."""
        return PinInfo(id=self._id, direction=self._direction)

    @property
    def disposed(self) -> bool:
        """Whether the pin has been released."""
        return self._disposed

    async def read(self) -> Value:
        """Read the level of the pin.

        Returns:
            Value.HIGH if the value file reads "1", Value.LOW otherwise

        Raises:
            InvalidOperationError: If the pin is an output or disposed
            IOFailureError: If the value file could not be read
        """
        self._check_usable()
        if self._direction is Direction.OUT:
            raise InvalidOperationError(f"GPIO {self._id} is configured as output and cannot be read")

        async with self._op_lock:
            self._check_usable()
            content = await self._io.read_text(self._paths.pin(self._id).value)

        return Value.HIGH if content.strip() == Value.HIGH.value else Value.LOW

    async def write(self, value: Value) -> None:
        """Set the level of the pin.

        Args:
            value: Value.HIGH or Value.LOW

        Raises:
            InvalidOperationError: If the pin is an input or disposed
            IOFailureError: If the value file could not be written
        """
        self._check_usable()
        if not isinstance(value, Value):
            raise InvalidArgumentError(f"Invalid value: {value!r}")
        if self._direction is Direction.IN:
            raise InvalidOperationError(f"GPIO {self._id} is configured as input and cannot be written")

        async with self._op_lock:
            self._check_usable()
            await self._io.write_text(self._paths.pin(self._id).value, value.to_sysfs())

        logger.debug("GPIO %d set to %s", self._id, value.name)

    async def watch(self, edge: Edge) -> None:
        """Wait for an edge on the pin.

        Raises:
            NotImplementedError: Always, edge waiting is not supported
        """
        raise NotImplementedError(f"Waiting for {edge.name} edges is not implemented")

    async def dispose(self) -> None:
        """Release the line and unexport it.

        The claim is released before the unexport is written, so the line
        can be connected again even if the unexport fails. Calling dispose
        again has no effect.

        Raises:
            IOFailureError: If the unexport write failed
        """
        async with self._op_lock:
            if self._disposed:
                logger.debug("GPIO %d already disposed", self._id)
                return
            self._disposed = True
            self._registry.release(self._claim)
            await self._io.write_text(self._paths.unexport, str(self._id))

        logger.info("GPIO %d released", self._id)

    def _check_usable(self) -> None:
        if self._disposed:
            raise InvalidOperationError(f"GPIO {self._id} has been disposed")

    async def __aenter__(self) -> "DigitalPin":
        return self

    async def __aexit__(self, *exc_details: Any) -> None:
        await self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "connected"
        return f"DigitalPin(id={self._id}, direction={self._direction.name}, {state})"


@asynccontextmanager
async def open_pin(
    line_id: int,
    direction: Direction,
    *,
    io: Optional[AttributeIO] = None,
    registry: Optional[ExclusivityRegistry] = None,
    paths: Optional[GpioPaths] = None,
) -> AsyncIterator[DigitalPin]:
    """Connect a pin for the duration of an ``async with`` block."""
    pin = await DigitalPin.connect(line_id, direction, io=io, registry=registry, paths=paths)
    try:
        yield pin
    finally:
        await pin.dispose()
