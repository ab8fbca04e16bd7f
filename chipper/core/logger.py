"""
Logging infrastructure for the Chipper core.

The core never imports a logging backend directly; it talks to an
:class:`ILogger` handed in by the host.  Levels are small integers:

* ``1`` -- halts and errors
* ``2`` -- program load and lifecycle events
* ``3`` -- per-instruction trace
"""

from abc import ABC, abstractmethod

LEVEL_ERROR: int = 1
LEVEL_INFO: int = 2
LEVEL_TRACE: int = 3


class ILogger(ABC):
    """Logging interface with level-based filtering."""

    @property
    @abstractmethod
    def level(self) -> int: ...

    @level.setter
    @abstractmethod
    def level(self, value: int): ...

    @abstractmethod
    def log(self, level: int, message: str): ...

    def enabled_for(self, level: int) -> bool:
        return level <= self.level


class NullLogger(ILogger):
    """No-op logger implementation."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._level = 0
        return cls._instance

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        pass


class ConsoleLogger(ILogger):
    """Logger that prints to console."""

    def __init__(self, level: int = LEVEL_ERROR):
        self._level = level

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        if level <= self._level:
            print(f"[CHIPPER:{level}] {message}")


class RecordingLogger(ILogger):
    """Logger that keeps ``(level, message)`` pairs in memory.

    Handy for hosts that show a scrolling log pane and for tests.
    """

    def __init__(self, level: int = LEVEL_TRACE):
        self._level = level
        self.records: list[tuple[int, str]] = []

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        if level <= self._level:
            self.records.append((level, message))


# Default logger instance
DEFAULT_LOGGER: ILogger = NullLogger()
