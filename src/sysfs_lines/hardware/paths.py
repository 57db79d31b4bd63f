"""Sysfs attribute paths for GPIO and PWM lines.

See https://www.kernel.org/doc/Documentation/gpio/sysfs.txt and
https://www.kernel.org/doc/Documentation/pwm.txt for the file layout.
Nothing in this module touches the filesystem.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple

from sysfs_lines.hardware.board import DEFAULT_GPIO_LINES, DEFAULT_PWM_CHIPS, GPIO_ROOT, PWM_ROOT
from sysfs_lines.hardware.errors import UnknownLineIdError


@dataclass(frozen=True)
class GpioPinPaths:
    """Attribute files of one exported GPIO line."""

    active_low: str
    device: str
    direction: str
    edge: str
    subsystem: str
    uevent: str
    value: str


class GpioPaths:
    """Resolves GPIO line ids to their sysfs paths."""

    def __init__(self, root: str = GPIO_ROOT, allowed_ids: Optional[Iterable[int]] = None) -> None:
        """Initialize the resolver.

        Args:
            root: Sysfs GPIO class directory
            allowed_ids: Line ids that may be used (defaults to the Pi header lines)
        """
        self.root = root.rstrip("/")
        self.allowed_ids = frozenset(DEFAULT_GPIO_LINES if allowed_ids is None else allowed_ids)

    @property
    def export(self) -> str:
        """Path of the export control file."""
        return f"{self.root}/export"

    @property
    def unexport(self) -> str:
        """Path of the unexport control file."""
        return f"{self.root}/unexport"

    def pin(self, line_id: int) -> GpioPinPaths:
        """Get the attribute paths of a GPIO line.

        Args:
            line_id: GPIO line number

        Returns:
            Paths of the line's attribute files

        Raises:
            UnknownLineIdError: If the line is not in the allow-list
        """
        if line_id not in self.allowed_ids:
            raise UnknownLineIdError(f"GPIO line {line_id} is not available on this board")

        base = f"{self.root}/gpio{line_id}"
        return GpioPinPaths(
            active_low=f"{base}/active_low",
            device=f"{base}/device",
            direction=f"{base}/direction",
            edge=f"{base}/edge",
            subsystem=f"{base}/subsystem",
            uevent=f"{base}/uevent",
            value=f"{base}/value",
        )


class PwmChipTable:
    """Static mapping of PWM capable line ids to chip and channel.

    Each chip lists its line ids ordered by channel, so the line at position
    0 is driven by channel 0 of that chip.
    """

    def __init__(self, chips: Mapping[int, Sequence[int]]) -> None:
        """Initialize the table.

        Args:
            chips: Chip number -> line ids, one per channel

        Raises:
            ValueError: If a line id is listed more than once
        """
        self._locations: Dict[int, Tuple[int, int]] = {}
        for chip, line_ids in chips.items():
            for channel, line_id in enumerate(line_ids):
                if line_id in self._locations:
                    raise ValueError(f"PWM line {line_id} is assigned to more than one channel")
                self._locations[line_id] = (chip, channel)

    @property
    def line_ids(self) -> FrozenSet[int]:
        """All line ids present in the table."""
        return frozenset(self._locations)

    def locate(self, line_id: int) -> Tuple[int, int]:
        """Find the chip and channel driving a line.

        Args:
            line_id: PWM line id

        Returns:
            Tuple of (chip, channel)

        Raises:
            UnknownLineIdError: If no chip drives the line
        """
        try:
            return self._locations[line_id]
        except KeyError:
            raise UnknownLineIdError(f"Line {line_id} has no PWM channel") from None


DEFAULT_PWM_TABLE = PwmChipTable(DEFAULT_PWM_CHIPS)


@dataclass(frozen=True)
class PwmChannelPaths:
    """Attribute files of one PWM channel and its chip."""

    chip: int
    channel: int
    export: str
    unexport: str
    period: str
    duty_cycle: str
    enable: str


class PwmPaths:
    """Resolves PWM line ids to their sysfs paths."""

    def __init__(self, root: str = PWM_ROOT, table: Optional[PwmChipTable] = None) -> None:
        """Initialize the resolver.

        Args:
            root: Sysfs PWM class directory
            table: Chip/channel table (defaults to the Pi's two chips)
        """
        self.root = root.rstrip("/")
        self.table = DEFAULT_PWM_TABLE if table is None else table

    def channel(self, line_id: int) -> PwmChannelPaths:
        """Get the attribute paths of a PWM line.

        Args:
            line_id: PWM line id

        Returns:
            Chip/channel numbers and attribute paths

        Raises:
            UnknownLineIdError: If the line has no PWM channel
        """
        chip, channel = self.table.locate(line_id)
        chip_dir = f"{self.root}/pwmchip{chip}"
        channel_dir = f"{chip_dir}/pwm{channel}"
        return PwmChannelPaths(
            chip=chip,
            channel=channel,
            export=f"{chip_dir}/export",
            unexport=f"{chip_dir}/unexport",
            period=f"{channel_dir}/period",
            duty_cycle=f"{channel_dir}/duty_cycle",
            enable=f"{channel_dir}/enable",
        )
