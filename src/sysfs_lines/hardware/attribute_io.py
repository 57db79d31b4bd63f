"""Sysfs attribute file access supporting both real hardware and mocking."""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set, Tuple

from sysfs_lines.hardware.errors import IOFailureError

logger = logging.getLogger(__name__)


class AttributeIO(ABC):
    """Abstract base class for reading and writing attribute files."""

    @abstractmethod
    async def write_text(self, path: str, content: str) -> None:
        """Write text to an attribute file.

        Raises:
            IOFailureError: If the write did not land
        """

    @abstractmethod
    async def read_text(self, path: str) -> str:
        """Read the text content of an attribute file.

        Raises:
            IOFailureError: If the file could not be read
        """


class SysfsAttributeIO(AttributeIO):
    """Attribute file access through the real filesystem.

    The blocking file calls run in the event loop's default executor so the
    caller only suspends until the kernel accepted or rejected the access.
    """

    async def write_text(self, path: str, content: str) -> None:
        """Write text to an attribute file."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._write, path, content)
        except OSError as e:
            raise IOFailureError(path, f"write of {content!r} failed: {e.strerror or e}") from e
        logger.debug("Wrote %r to %s", content, path)

    async def read_text(self, path: str) -> str:
        """Read the text content of an attribute file."""
        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, self._read, path)
        except OSError as e:
            raise IOFailureError(path, f"read failed: {e.strerror or e}") from e
        except UnicodeError as e:
            raise IOFailureError(path, f"read failed: {e}") from e
        logger.debug("Read %r from %s", content, path)
        return content

    @staticmethod
    def _write(path: str, content: str) -> None:
        with open(path, "w", encoding="ascii") as f:
            f.write(content)

    @staticmethod
    def _read(path: str) -> str:
        with open(path, "r", encoding="ascii") as f:
            return f.read()


class InMemoryAttributeIO(AttributeIO):
    """In-memory attribute files for testing without hardware.

    Every write is recorded in order. Reads return the last written content
    or a value preset with set_value(). Failures can be injected per path.
    """

    def __init__(self) -> None:
        """Initialize empty in-memory attribute files."""
        self._files: Dict[str, str] = {}
        self._writes: List[Tuple[str, str]] = []
        self._failures: Set[Tuple[str, str]] = set()
        self._lock = threading.Lock()
        logger.info("InMemoryAttributeIO initialized - no hardware required")

    async def write_text(self, path: str, content: str) -> None:
        """Write text to an in-memory attribute file."""
        with self._lock:
            if (path, "write") in self._failures:
                raise IOFailureError(path, f"write of {content!r} failed: simulated failure")
            self._files[path] = content
            self._writes.append((path, content))
            self._seed_exported_line(path, content)
        logger.debug("Mock write: %s <- %r", path, content)

    def _seed_exported_line(self, path: str, content: str) -> None:
        # Exporting a GPIO line makes its value file appear, initially LOW
        parent, _, name = path.rpartition("/")
        if name != "export" or parent.rpartition("/")[2].startswith("pwmchip"):
            return
        self._files.setdefault(f"{parent}/gpio{content.strip()}/value", "0")

    async def read_text(self, path: str) -> str:
        """Read text from an in-memory attribute file."""
        with self._lock:
            if (path, "read") in self._failures:
                raise IOFailureError(path, "read failed: simulated failure")
            if path not in self._files:
                raise IOFailureError(path, "read failed: no such file")
            return self._files[path]

    # Mock-specific methods for testing

    @property
    def writes(self) -> List[Tuple[str, str]]:
        """All writes so far as (path, content) pairs, oldest first."""
        with self._lock:
            return list(self._writes)

    def writes_to(self, path: str) -> List[str]:
        """Contents written to one path, oldest first."""
        with self._lock:
            return [content for written, content in self._writes if written == path]

    def set_value(self, path: str, content: str) -> None:
        """Set the content of a file (simulates the kernel updating it)."""
        with self._lock:
            self._files[path] = content

    def get_value(self, path: str) -> Optional[str]:
        """Get the current content of a file, or None if never written."""
        with self._lock:
            return self._files.get(path)

    def fail_on(self, path: str, operation: str = "write") -> None:
        """Make every following read or write of a path fail.

        Args:
            path: Attribute file path
            operation: "write" or "read"
        """
        if operation not in ("write", "read"):
            raise ValueError(f"Invalid operation: {operation}")
        with self._lock:
            self._failures.add((path, operation))

    def clear_failures(self) -> None:
        """Remove all injected failures."""
        with self._lock:
            self._failures.clear()

    def clear_writes(self) -> None:
        """Forget the recorded writes, keeping the file contents."""
        with self._lock:
            self._writes.clear()


def get_attribute_io(mock: bool) -> AttributeIO:
    """Get the appropriate attribute file implementation.

    Args:
        mock: If True, use in-memory files. If False, use sysfs.

    Returns:
        AttributeIO implementation (InMemoryAttributeIO or SysfsAttributeIO)
    """
    if mock:
        return InMemoryAttributeIO()
    return SysfsAttributeIO()
