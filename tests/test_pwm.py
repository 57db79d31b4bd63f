"""Tests for PWM channels."""

from typing import List

import pytest

from sysfs_lines.hardware import (
    AlreadyClaimedError,
    ExclusivityRegistry,
    InvalidArgumentError,
    InvalidOperationError,
    IOFailureError,
    OutOfRangeError,
    PwmChannel,
    PwmChipTable,
    PwmInfo,
    PwmPaths,
    UnknownLineIdError,
    open_pwm,
)
from sysfs_lines.hardware.attribute_io import InMemoryAttributeIO
from sysfs_lines.hardware.registry import LineLock

CHIP0 = "/sys/class/pwm/pwmchip0"
PERIOD = f"{CHIP0}/pwm0/period"
DUTY_CYCLE = f"{CHIP0}/pwm0/duty_cycle"
ENABLE = f"{CHIP0}/pwm0/enable"


async def connect(
    io: InMemoryAttributeIO, registry: ExclusivityRegistry, line_id: int = 12
) -> PwmChannel:
    """Connect a channel against the test doubles."""
    return await PwmChannel.connect(line_id, io=io, registry=registry)


def duty_cycle_writes_before_period(writes: List[tuple], period_value: str) -> List[int]:
    """Duty cycle values written before the given period write landed."""
    values = []
    for path, content in writes:
        if path == PERIOD and content == period_value:
            break
        if path == DUTY_CYCLE:
            values.append(int(content))
    return values


# Tests - Connect


@pytest.mark.asyncio
async def test_connect_exports_channel(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that connect writes the channel number to the chip's export file."""
    channel = await connect(attribute_io, registry, 18)

    assert attribute_io.writes == [(f"{CHIP0}/export", "1")]
    assert channel.info == PwmInfo(duty_cycle=0.0, period=0, enabled=False, id=18, channel=1, chip=0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "line_id,chip,channel_number",
    [(12, 0, 0), (18, 0, 1), (13, 1, 0), (19, 1, 1)],
)
async def test_connect_resolves_chip_and_channel(
    attribute_io: InMemoryAttributeIO,
    registry: ExclusivityRegistry,
    line_id: int,
    chip: int,
    channel_number: int,
) -> None:
    """Test chip/channel lookup for the Pi's PWM lines."""
    channel = await connect(attribute_io, registry, line_id)

    assert (channel.chip, channel.channel) == (chip, channel_number)
    assert attribute_io.writes == [(f"/sys/class/pwm/pwmchip{chip}/export", str(channel_number))]


@pytest.mark.asyncio
async def test_connect_custom_table(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test a board with its own chip table."""
    paths = PwmPaths(root="/tmp/pwm", table=PwmChipTable({3: [7, 8]}))

    channel = await PwmChannel.connect(8, io=attribute_io, registry=registry, paths=paths)

    assert (channel.chip, channel.channel) == (3, 1)
    assert attribute_io.writes == [("/tmp/pwm/pwmchip3/export", "1")]


@pytest.mark.asyncio
async def test_connect_unknown_line(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that lines without PWM are rejected before claiming."""
    with pytest.raises(UnknownLineIdError):
        await connect(attribute_io, registry, 17)

    assert not registry.is_claimed(17)
    assert attribute_io.writes == []


@pytest.mark.asyncio
async def test_connect_twice_raises_until_disposed(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that a channel can only be held once at a time."""
    channel = await connect(attribute_io, registry)

    with pytest.raises(AlreadyClaimedError):
        await connect(attribute_io, registry)

    await channel.dispose()
    await connect(attribute_io, registry)


@pytest.mark.asyncio
async def test_connect_export_failure_releases_claim(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that a failed export leaves the line unclaimed."""
    attribute_io.fail_on(f"{CHIP0}/export")

    with pytest.raises(IOFailureError):
        await connect(attribute_io, registry)

    assert not registry.is_claimed(12)


def test_channel_cannot_be_created_directly(registry: ExclusivityRegistry) -> None:
    """Test that only connect() builds channels."""
    with pytest.raises(TypeError, match="connect"):
        PwmChannel(12, claim=LineLock(12), io=InMemoryAttributeIO(), registry=registry, paths=PwmPaths())


# Tests - Period and duty cycle


@pytest.mark.asyncio
async def test_period_then_duty_cycle(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that the duty cycle is written as a share of the period."""
    channel = await connect(attribute_io, registry)

    await channel.set_period(1000)
    await channel.set_duty_cycle(0.5)

    assert attribute_io.get_value(PERIOD) == "1000"
    assert attribute_io.writes_to(DUTY_CYCLE)[-1] == "500"
    assert channel.info.duty_cycle == 0.5
    assert channel.info.period == 1000


@pytest.mark.asyncio
@pytest.mark.parametrize("period,fraction", [(15, 0.5), (999, 1 / 3), (20_000_000, 0.075), (7, 1)])
async def test_duty_cycle_is_rounded(
    attribute_io: InMemoryAttributeIO,
    registry: ExclusivityRegistry,
    period: int,
    fraction: float,
) -> None:
    """Test that the written duty cycle is round(fraction * period)."""
    channel = await connect(attribute_io, registry)
    await channel.set_period(period)

    await channel.set_duty_cycle(fraction)

    assert attribute_io.writes_to(DUTY_CYCLE)[-1] == str(round(fraction * period))
    assert channel.info.duty_cycle == fraction


@pytest.mark.asyncio
async def test_full_duty_cycle_of_huge_period_stays_within_period(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that a full duty cycle is exact for periods beyond float precision."""
    period = 2**53 + 3
    channel = await connect(attribute_io, registry)
    await channel.set_period(period)

    await channel.set_duty_cycle(1.0)

    assert attribute_io.writes_to(DUTY_CYCLE)[-1] == str(period)

    await channel.set_duty_cycle(0.5)

    assert int(attribute_io.writes_to(DUTY_CYCLE)[-1]) == (period + 1) // 2


@pytest.mark.asyncio
@pytest.mark.parametrize("fraction", [-0.1, 1.0001, 2, float("nan"), float("inf")])
async def test_duty_cycle_out_of_range(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry, fraction: float
) -> None:
    """Test that fractions outside [0, 1] are rejected without writing."""
    channel = await connect(attribute_io, registry)
    await channel.set_period(1000)
    attribute_io.clear_writes()

    with pytest.raises(OutOfRangeError):
        await channel.set_duty_cycle(fraction)

    assert attribute_io.writes == []
    assert channel.info.duty_cycle == 0.0


@pytest.mark.asyncio
async def test_duty_cycle_must_be_number(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that non-numeric duty cycles are rejected."""
    channel = await connect(attribute_io, registry)

    with pytest.raises(InvalidArgumentError):
        await channel.set_duty_cycle("0.5")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_increasing_period_never_exceeds_old_period(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test the write order when the period grows."""
    channel = await connect(attribute_io, registry)
    await channel.set_period(1000)
    await channel.set_duty_cycle(0.5)
    attribute_io.clear_writes()

    await channel.set_period(2000)

    assert attribute_io.writes == [
        (DUTY_CYCLE, "500"),
        (PERIOD, "2000"),
        (DUTY_CYCLE, "1000"),
    ]
    assert all(value <= 1000 for value in duty_cycle_writes_before_period(attribute_io.writes, "2000"))
    assert channel.info.duty_cycle == 0.5


@pytest.mark.asyncio
async def test_decreasing_period_writes_period_first(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test the write order when the period shrinks."""
    channel = await connect(attribute_io, registry)
    await channel.set_period(2000)
    await channel.set_duty_cycle(0.25)
    attribute_io.clear_writes()

    await channel.set_period(1000)

    assert attribute_io.writes == [(PERIOD, "1000"), (DUTY_CYCLE, "250")]


@pytest.mark.asyncio
async def test_first_period_from_zero(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test setting the first period on a fresh channel."""
    channel = await connect(attribute_io, registry)
    attribute_io.clear_writes()

    await channel.set_period(1000)

    assert attribute_io.writes == [(DUTY_CYCLE, "0"), (PERIOD, "1000"), (DUTY_CYCLE, "0")]


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [-1, 1.5, "1000", True])
async def test_invalid_period(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry, duration: object
) -> None:
    """Test that negative and non-integer periods are rejected."""
    channel = await connect(attribute_io, registry)
    attribute_io.clear_writes()

    with pytest.raises(InvalidArgumentError):
        await channel.set_period(duration)  # type: ignore[arg-type]

    assert attribute_io.writes == []
    assert channel.info.period == 0


@pytest.mark.asyncio
async def test_failed_period_write_keeps_old_period(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that the recorded period only changes once the write landed."""
    channel = await connect(attribute_io, registry)
    await channel.set_period(1000)
    attribute_io.fail_on(PERIOD)

    with pytest.raises(IOFailureError):
        await channel.set_period(2000)

    assert channel.info.period == 1000


# Tests - Enable


@pytest.mark.asyncio
async def test_enable_and_disable(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test toggling the output."""
    channel = await connect(attribute_io, registry)

    await channel.enable()
    assert channel.info.enabled
    await channel.disable()
    assert not channel.info.enabled

    assert attribute_io.writes_to(ENABLE) == ["1", "0"]


@pytest.mark.asyncio
async def test_failed_enable_keeps_flag(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that the enabled flag follows the write result."""
    channel = await connect(attribute_io, registry)
    attribute_io.fail_on(ENABLE)

    with pytest.raises(IOFailureError):
        await channel.enable()

    assert not channel.info.enabled


# Tests - Dispose


@pytest.mark.asyncio
async def test_dispose_unexports_channel(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that dispose writes the channel to the chip's unexport file."""
    channel = await connect(attribute_io, registry, 19)

    await channel.dispose()

    assert attribute_io.writes[-1] == ("/sys/class/pwm/pwmchip1/unexport", "1")
    assert not registry.is_claimed(19)


@pytest.mark.asyncio
async def test_failed_unexport_still_releases(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that lock release does not depend on the unexport write."""
    channel = await connect(attribute_io, registry)
    attribute_io.fail_on(f"{CHIP0}/unexport")

    with pytest.raises(IOFailureError):
        await channel.dispose()

    assert not registry.is_claimed(12)
    attribute_io.clear_failures()
    await connect(attribute_io, registry)


@pytest.mark.asyncio
async def test_operations_after_dispose_raise(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that a disposed channel refuses I/O."""
    channel = await connect(attribute_io, registry)
    await channel.dispose()
    await channel.dispose()

    with pytest.raises(InvalidOperationError):
        await channel.set_period(1000)
    with pytest.raises(InvalidOperationError):
        await channel.set_duty_cycle(0.5)
    with pytest.raises(InvalidOperationError):
        await channel.enable()
    assert attribute_io.writes_to(f"{CHIP0}/unexport") == ["0"]


@pytest.mark.asyncio
async def test_async_with_disposes_on_error(
    attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry
) -> None:
    """Test that leaving the block through an error releases the channel."""
    with pytest.raises(OutOfRangeError):
        async with await connect(attribute_io, registry) as channel:
            await channel.set_period(1000)
            await channel.set_duty_cycle(1.5)

    assert channel.disposed
    assert not registry.is_claimed(12)


@pytest.mark.asyncio
async def test_open_pwm(attribute_io: InMemoryAttributeIO, registry: ExclusivityRegistry) -> None:
    """Test the open_pwm helper on a normal exit."""
    async with open_pwm(13, io=attribute_io, registry=registry) as channel:
        await channel.set_period(1000)
        await channel.enable()

    assert channel.disposed
    assert attribute_io.writes[-1] == ("/sys/class/pwm/pwmchip1/unexport", "0")
