"""Process-wide bookkeeping of claimed lines.

A line id can be held by at most one live handle per registry. The registry
only protects against double claims inside the running process; another
process exporting the same line through sysfs is not detected.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet

from sysfs_lines.hardware.errors import AlreadyClaimedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class LineLock:
    """Token proving ownership of a line id."""

    line_id: int


class ExclusivityRegistry:
    """Grants at most one outstanding LineLock per line id."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._claims: Dict[int, LineLock] = {}
        self._lock = threading.Lock()

    def acquire(self, line_id: int) -> LineLock:
        """Claim a line id.

        Args:
            line_id: Line to claim

        Returns:
            Lock token to hand back to release()

        Raises:
            AlreadyClaimedError: If the line is already claimed
        """
        with self._lock:
            if line_id in self._claims:
                raise AlreadyClaimedError(f"Line {line_id} is already in use")
            lock = LineLock(line_id)
            self._claims[line_id] = lock

        logger.debug("Line %d claimed", line_id)
        return lock

    def release(self, lock: LineLock) -> None:
        """Release a previously acquired lock.

        Releasing a lock that is not held is a caller bug; it is logged and
        otherwise ignored.

        Args:
            lock: Token returned by acquire()
        """
        with self._lock:
            if self._claims.get(lock.line_id) is not lock:
                logger.warning("Release of line %d which is not held by this lock", lock.line_id)
                return
            del self._claims[lock.line_id]

        logger.debug("Line %d released", lock.line_id)

    def is_claimed(self, line_id: int) -> bool:
        """Check whether a line id is currently claimed."""
        with self._lock:
            return line_id in self._claims

    def claimed(self) -> FrozenSet[int]:
        """Get the ids of all currently claimed lines."""
        with self._lock:
            return frozenset(self._claims)


# Shared by all handles that are not given a registry explicitly
default_registry = ExclusivityRegistry()
