"""
In-memory log sink.

Used for dry runs and tests. All state is in-memory.
"""

from dataclasses import dataclass

from fail2ban_redux.events.model import LogSeverity
from fail2ban_redux.sink.base import DEFAULT_FACILITY, LogChannel


@dataclass(frozen=True, slots=True)
class SinkRecord:
    """One line handed to the sink."""

    channel: str
    facility: str
    severity: LogSeverity
    text: str


class MemoryChannel(LogChannel):
    """Channel that appends to its sink's record list."""

    def __init__(self, sink: "MemorySink", name: str, facility: str) -> None:
        super().__init__(name, facility)
        self._sink = sink

    def _acquire(self) -> None:
        if not self._sink.available:
            raise OSError("log daemon unavailable")
        self._sink.opened += 1

    def _emit(self, text: str, severity: LogSeverity) -> None:
        if self._sink.fail_writes:
            raise OSError("write failed")
        self._sink.records.append(SinkRecord(self.name, self.facility, severity, text))


class MemorySink:
    """
    Log sink that keeps every line in memory.

    Args:
        available: When False, channels fail to open (daemon down).
        fail_writes: When True, every write fails.
    """

    def __init__(self, available: bool = True, fail_writes: bool = False) -> None:
        self.available = available
        self.fail_writes = fail_writes
        self.records: list[SinkRecord] = []
        self.channels: list[MemoryChannel] = []
        self.opened = 0

    @property
    def lines(self) -> list[str]:
        """Text of every line written, in order."""
        return [record.text for record in self.records]

    def open(self, channel_name: str, facility: str = DEFAULT_FACILITY) -> MemoryChannel:
        channel = MemoryChannel(self, channel_name, facility)
        self.channels.append(channel)
        return channel.open()

