"""Hardware PWM channels controlled through sysfs.

The duty cycle is kept as a fraction of the period, so changing the period
rescales the active-high time written to the hardware.
"""

import asyncio
import logging
import numbers
from contextlib import asynccontextmanager
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, AsyncIterator, Optional

from sysfs_lines.hardware.attribute_io import AttributeIO, get_attribute_io
from sysfs_lines.hardware.errors import InvalidArgumentError, InvalidOperationError, OutOfRangeError
from sysfs_lines.hardware.paths import PwmChannelPaths, PwmPaths
from sysfs_lines.hardware.registry import ExclusivityRegistry, LineLock, default_registry

logger = logging.getLogger(__name__)

_CONNECT_KEY = object()


@dataclass(frozen=True)
class PwmInfo:
    """Snapshot of a PWM channel's state."""

    duty_cycle: float
    period: int
    enabled: bool
    id: int
    channel: int
    chip: int


class PwmChannel:  # pylint: disable=too-many-instance-attributes
    """An exported PWM channel.

    Starts with period 0, duty cycle 0 and the output disabled. The duty
    cycle written to the hardware never exceeds the period in effect.
    """

    def __init__(
        self,
        line_id: int,
        *,
        claim: LineLock,
        io: AttributeIO,
        registry: ExclusivityRegistry,
        paths: PwmPaths,
        _key: Any = None,
    ) -> None:
        """Initialize the handle (use PwmChannel.connect() instead).

        Raises:
            TypeError: If not called from connect()
        """
        if _key is not _CONNECT_KEY:
            raise TypeError("PwmChannel cannot be created directly, use PwmChannel.connect()")
        self._id = line_id
        self._claim = claim
        self._io = io
        self._registry = registry
        self._paths = paths
        self._period = 0
        self._duty_cycle = 0.0
        self._enabled = False
        self._disposed = False
        self._op_lock = asyncio.Lock()

    @classmethod
    async def connect(
        cls,
        line_id: int,
        *,
        io: Optional[AttributeIO] = None,
        registry: Optional[ExclusivityRegistry] = None,
        paths: Optional[PwmPaths] = None,
    ) -> "PwmChannel":
        """Claim and export the PWM channel driving a line.

        Args:
            line_id: Line id with a PWM channel (e.g. 12, 13, 18, 19 on a Pi)
            io: Attribute file access (defaults to sysfs)
            registry: Registry to claim the line in (defaults to the process-wide one)
            paths: Path resolver (defaults to /sys/class/pwm and the Pi chip table)

        Returns:
            Handle owning the channel

        Raises:
            UnknownLineIdError: If no PWM channel drives the line
            AlreadyClaimedError: If the line is held by another handle
            IOFailureError: If exporting the channel failed
        """
        io = io if io is not None else get_attribute_io(mock=False)
        registry = registry if registry is not None else default_registry
        paths = paths if paths is not None else PwmPaths()

        channel_paths = paths.channel(line_id)
        claim = registry.acquire(line_id)
        try:
            await io.write_text(channel_paths.export, str(channel_paths.channel))
        except BaseException:
            registry.release(claim)
            raise

        logger.info(
            "PWM line %d connected (chip=%d, channel=%d)",
            line_id,
            channel_paths.chip,
            channel_paths.channel,
        )
        return cls(line_id, claim=claim, io=io, registry=registry, paths=paths, _key=_CONNECT_KEY)

    @property
    def chip(self) -> int:
        """PWM chip driving the line."""
        return self._channel_paths().chip

    @property
    def channel(self) -> int:
        """Channel of the chip driving the line."""
        return self._channel_paths().channel

    @property
    def info(self) -> PwmInfo:
        """Snapshot of the channel's settings."""
        channel_paths = self._channel_paths()
        return PwmInfo(
            duty_cycle=self._duty_cycle,
            period=self._period,
            enabled=self._enabled,
            id=self._id,
            channel=channel_paths.channel,
            chip=channel_paths.chip,
        )

    @property
    def disposed(self) -> bool:
        """Whether the channel has been released."""
        return self._disposed

    async def set_period(self, duration_ns: int) -> None:
        """Set the period of the channel.

        The duty cycle fraction is kept and rewritten for the new period.
        When the period grows, the duty cycle is written for the old period
        before the period changes; when it shrinks, the period is written
        first.

        Args:
            duration_ns: Period in nanoseconds

        Raises:
            InvalidArgumentError: If the duration is negative or not an integer
            InvalidOperationError: If the channel is disposed
            IOFailureError: If a sysfs write failed
        """
        if isinstance(duration_ns, bool) or not isinstance(duration_ns, numbers.Integral):
            raise InvalidArgumentError(f"Period must be an integer number of ns, not {duration_ns!r}")
        if duration_ns < 0:
            raise InvalidArgumentError(f"Period must not be negative, not {duration_ns}")
        duration_ns = int(duration_ns)

        async with self._op_lock:
            self._check_usable()
            channel_paths = self._channel_paths()
            if duration_ns > self._period:
                await self._write_duty_cycle(channel_paths, self._duty_cycle, self._period)
            await self._io.write_text(channel_paths.period, str(duration_ns))
            self._period = duration_ns
            await self._write_duty_cycle(channel_paths, self._duty_cycle, self._period)

        logger.debug("PWM line %d period set to %d ns", self._id, duration_ns)

    async def set_duty_cycle(self, fraction: float) -> None:
        """Set the duty cycle as a fraction of the period.

        Args:
            fraction: Share of the period the output is high, 0 to 1 inclusive

        Raises:
            OutOfRangeError: If the fraction is outside of [0, 1]
            InvalidOperationError: If the channel is disposed
            IOFailureError: If the duty_cycle write failed
        """
        if isinstance(fraction, bool) or not isinstance(fraction, numbers.Real):
            raise OutOfRangeError(f"Duty cycle must be a number between 0 and 1, not {fraction!r}")
        if not 0 <= fraction <= 1:
            raise OutOfRangeError(f"Duty cycle must be between 0 and 1, not {fraction}")

        async with self._op_lock:
            self._check_usable()
            await self._write_duty_cycle(self._channel_paths(), fraction, self._period)
            self._duty_cycle = float(fraction)

    async def _write_duty_cycle(self, channel_paths: PwmChannelPaths, fraction: float, period: int) -> None:
        # Exact arithmetic, a float product can exceed large periods
        duty_ns = round(Fraction(fraction) * period)
        await self._io.write_text(channel_paths.duty_cycle, str(duty_ns))
        logger.debug("PWM line %d duty cycle %.3f of %d ns -> %d ns", self._id, fraction, period, duty_ns)

    async def enable(self) -> None:
        """Start driving the output.

        Raises:
            InvalidOperationError: If the channel is disposed
            IOFailureError: If the enable write failed
        """
        await self._set_enabled(True)

    async def disable(self) -> None:
        """Stop driving the output.

        Raises:
            InvalidOperationError: If the channel is disposed
            IOFailureError: If the enable write failed
        """
        await self._set_enabled(False)

    async def _set_enabled(self, enabled: bool) -> None:
        async with self._op_lock:
            self._check_usable()
            await self._io.write_text(self._channel_paths().enable, "1" if enabled else "0")
            self._enabled = enabled

        logger.debug("PWM line %d %s", self._id, "enabled" if enabled else "disabled")

    async def dispose(self) -> None:
        """Release the line and unexport the channel.

        The claim is released before the unexport is written, so the line
        can be connected again even if the unexport fails. Calling dispose
        again has no effect.

        Raises:
            IOFailureError: If the unexport write failed
        """
        async with self._op_lock:
            if self._disposed:
                logger.debug("PWM line %d already disposed", self._id)
                return
            self._disposed = True
            self._registry.release(self._claim)
            channel_paths = self._channel_paths()
            await self._io.write_text(channel_paths.unexport, str(channel_paths.channel))

        logger.info("PWM line %d released", self._id)

    def _channel_paths(self) -> PwmChannelPaths:
        return self._paths.channel(self._id)

    def _check_usable(self) -> None:
        if self._disposed:
            raise InvalidOperationError(f"PWM line {self._id} has been disposed")

    async def __aenter__(self) -> "PwmChannel":
        return self

    async def __aexit__(self, *exc_details: Any) -> None:
        await self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "connected"
        return f"PwmChannel(id={self._id}, period={self._period}, duty_cycle={self._duty_cycle}, {state})"


@asynccontextmanager
async def open_pwm(
    line_id: int,
    *,
    io: Optional[AttributeIO] = None,
    registry: Optional[ExclusivityRegistry] = None,
    paths: Optional[PwmPaths] = None,
) -> AsyncIterator[PwmChannel]:
    """Connect a PWM channel for the duration of an ``async with`` block."""
    channel = await PwmChannel.connect(line_id, io=io, registry=registry, paths=paths)
    try:
        yield channel
    finally:
        await channel.dispose()
