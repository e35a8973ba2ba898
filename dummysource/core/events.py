"""Event buffers shared with the host.

Production writes into host-supplied ``EventWriter`` slots; extraction and
rendering read a payload through ``read_payload``. Neither side keeps a
reference to the buffer once the call returns.
"""

import io
from typing import BinaryIO, Iterator, List, NamedTuple, Optional, Union

from .errors import MalformedPayload

# Timestamp value meaning "let the host fill it in"
UNSET_TIMESTAMP = 2**64 - 1

PayloadSource = Union[bytes, bytearray, memoryview, str, BinaryIO]


class Event(NamedTuple):
    payload: bytes
    timestamp: int

    @property
    def text(self) -> str:
        return self.payload.decode("ascii")


class EventWriter:
    """One writable event slot."""

    def __init__(self, writer: Optional[BinaryIO] = None):
        self.timestamp = UNSET_TIMESTAMP
        self.writer = writer if writer is not None else io.BytesIO()

    def set_timestamp(self, timestamp: int) -> None:
        self.timestamp = timestamp

    def payload(self) -> bytes:
        getvalue = getattr(self.writer, "getvalue", None)
        if getvalue is None:
            raise TypeError(f"{type(self.writer).__name__} does not expose its written bytes")
        return getvalue()

    def to_event(self) -> Event:
        return Event(payload=self.payload(), timestamp=self.timestamp)


class EventBatch:
    """Ordered group of writable slots handed to ``produce_batch``."""

    def __init__(self, writers: List[EventWriter]):
        self._writers = list(writers)

    @classmethod
    def allocate(cls, capacity: int) -> "EventBatch":
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        return cls([EventWriter() for _ in range(capacity)])

    @property
    def capacity(self) -> int:
        return len(self._writers)

    def __len__(self) -> int:
        return len(self._writers)

    def __getitem__(self, index: int) -> EventWriter:
        return self._writers[index]

    def __iter__(self) -> Iterator[EventWriter]:
        return iter(self._writers)

    def events(self, count: int) -> List[Event]:
        """Return the first ``count`` slots as read-only events."""
        return [w.to_event() for w in self._writers[:count]]


def read_payload(source: PayloadSource) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, (bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, str):
        if not source.isascii():
            raise MalformedPayload(f"event payload {source!r} is not ASCII")
        return source.encode("ascii")

    read = getattr(source, "read", None)
    if read is None:
        raise MalformedPayload(f"cannot read event payload from {type(source).__name__}")
    try:
        data = read()
    except (OSError, ValueError) as e:
        raise MalformedPayload(f"event payload could not be read: {e}") from e
    if not isinstance(data, (bytes, bytearray)):
        raise MalformedPayload("event payload stream did not return bytes")
    return bytes(data)
