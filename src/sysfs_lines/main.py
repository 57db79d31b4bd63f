"""Command line access to GPIO and PWM lines."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from sysfs_lines.config import ConfigManager
from sysfs_lines.config.config_manager import ConfigError
from sysfs_lines.hardware import (
    AttributeIO,
    DigitalPin,
    Direction,
    ExclusivityRegistry,
    LineError,
    PwmChannel,
    Value,
    get_attribute_io,
)

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure logging for the application.

    Args:
        debug: If True, set log level to DEBUG, otherwise INFO
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed command-line arguments
    """
    parser = argparse.ArgumentParser(description="Control GPIO and PWM lines through sysfs")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--mock-io",
        action="store_true",
        help="Use in-memory attribute files instead of sysfs (for testing)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML board description (default: built-in Raspberry Pi layout)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    gpio = commands.add_parser("gpio", help="Read or write a GPIO line")
    gpio_actions = gpio.add_subparsers(dest="action", required=True)
    gpio_read = gpio_actions.add_parser("read", help="Print the level of an input line")
    gpio_read.add_argument("line", type=int, help="GPIO line number")
    gpio_write = gpio_actions.add_parser("write", help="Drive an output line")
    gpio_write.add_argument("line", type=int, help="GPIO line number")
    gpio_write.add_argument("level", choices=["high", "low"], help="Level to drive")

    pwm = commands.add_parser("pwm", help="Configure a PWM channel")
    pwm.add_argument("line", type=int, help="Line id of the PWM channel")
    pwm.add_argument("--period", type=int, required=True, help="Period in nanoseconds")
    pwm.add_argument("--duty", type=float, default=None, help="Duty cycle between 0 and 1")
    state = pwm.add_mutually_exclusive_group()
    state.add_argument("--enable", action="store_true", help="Enable the output")
    state.add_argument("--disable", action="store_true", help="Disable the output")

    return parser.parse_args(argv)


async def run_command(
    args: argparse.Namespace,
    config: ConfigManager,
    io: AttributeIO,
    registry: Optional[ExclusivityRegistry] = None,
) -> str:
    """Execute a parsed command.

    Args:
        args: Parsed command-line arguments
        config: Board configuration
        io: Attribute file access
        registry: Registry to claim lines in (defaults to the process-wide one)

    Returns:
        Text to print for the user

    Raises:
        LineError: If a line operation failed
    """
    if args.command == "gpio":
        paths = config.get_gpio_paths()
        if args.action == "read":
            async with await DigitalPin.connect(
                args.line, Direction.IN, io=io, registry=registry, paths=paths
            ) as pin:
                value = await pin.read()
            return value.name.lower()

        async with await DigitalPin.connect(
            args.line, Direction.OUT, io=io, registry=registry, paths=paths
        ) as pin:
            await pin.write(Value.HIGH if args.level == "high" else Value.LOW)
        return args.level

    async with await PwmChannel.connect(
        args.line, io=io, registry=registry, paths=config.get_pwm_paths()
    ) as channel:
        await channel.set_period(args.period)
        if args.duty is not None:
            await channel.set_duty_cycle(args.duty)
        if args.enable:
            await channel.enable()
        elif args.disable:
            await channel.disable()
        info = channel.info

    return (
        f"pwmchip{info.chip}/pwm{info.channel}: period={info.period}ns "
        f"duty_cycle={info.duty_cycle:g} enabled={info.enabled}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Process exit status
    """
    args = parse_args(argv)
    setup_logging(args.debug)

    try:
        config = ConfigManager(user_config_path=args.config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    io = get_attribute_io(mock=args.mock_io)
    try:
        output = asyncio.run(run_command(args, config, io))
    except LineError as e:
        logger.error("%s", e)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
