"""Line assignments for the Raspberry Pi header.

All line numbers use BCM (Broadcom) numbering.
"""

from typing import Dict, FrozenSet, Tuple

GPIO_ROOT = "/sys/class/gpio"
PWM_ROOT = "/sys/class/pwm"

# BCM lines routed to the 40 pin header
DEFAULT_GPIO_LINES: FrozenSet[int] = frozenset(range(0, 28))

# pwmchip -> line ids, ordered by channel
DEFAULT_PWM_CHIPS: Dict[int, Tuple[int, ...]] = {
    0: (12, 18),
    1: (13, 19),
}
