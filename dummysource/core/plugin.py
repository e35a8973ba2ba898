"""Abstractions shared by every source plugin.

A ``SourcePlugin`` is created once per process and configured once. It hands
out ``SourceSession`` objects, each holding the production state of a single
capture. Sessions borrow the plugin's configuration and its ``RandomSource``;
they never copy them.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncGenerator, List, Optional, Sequence, Tuple
import asyncio
import threading
import time

import numpy as np
from pydantic import BaseModel

from .errors import UnknownField
from .events import Event, EventBatch, PayloadSource, read_payload
from .fields import ExtractRequest, FieldDescriptor


class BatchStatus(str, Enum):
    MORE = "more"
    EXHAUSTED = "exhausted"


class PluginInfo(BaseModel):
    id: int
    name: str
    description: str
    contact: str
    version: str
    required_api_version: str
    event_source: str


class RandomSource:
    """Process-wide random stream shared by all sessions of one plugin.

    Every draw takes the lock, so sessions driven from different threads
    serialize on it.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = time.time_ns() if seed is None else seed
        self._rng = np.random.default_rng(self.seed)
        self._lock = threading.Lock()

    def increment(self, jitter: int) -> int:
        """Return ``1 + U[0, jitter]`` with an inclusive upper bound."""
        if jitter == 0:
            return 1
        with self._lock:
            extra = int(self._rng.integers(0, jitter, endpoint=True, dtype=np.uint64))
        return 1 + extra


class SourceSession(ABC):
    @abstractmethod
    def produce_batch(self, batch: EventBatch) -> Tuple[int, BatchStatus]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    async def stream(self, batch_size: int = 64) -> AsyncGenerator[Event, None]:
        """Drive ``produce_batch`` until the session reports exhaustion."""
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        while True:
            batch = EventBatch.allocate(batch_size)
            count, status = self.produce_batch(batch)
            for event in batch.events(count):
                yield event

            if status == BatchStatus.EXHAUSTED:
                return

            # Give other tasks a turn between batches
            await asyncio.sleep(0)


class SourcePlugin(ABC):
    @property
    def name(self) -> str:
        return self.info().name

    @abstractmethod
    def info(self) -> PluginInfo:
        pass

    @abstractmethod
    def configure(self, raw_config: Any = None) -> None:
        pass

    def destroy(self) -> None:
        pass

    @abstractmethod
    def open(self, raw_params: Any) -> SourceSession:
        pass

    @abstractmethod
    def describe_fields(self) -> List[FieldDescriptor]:
        pass

    @abstractmethod
    def render_event(self, payload: PayloadSource) -> str:
        pass

    @abstractmethod
    def extract_field(self, field_id: int, argument: Optional[str], payload: PayloadSource) -> Any:
        pass

    def field_by_name(self, name: str) -> Optional[FieldDescriptor]:
        for descriptor in self.describe_fields():
            if descriptor.name == name:
                return descriptor
        return None

    def extract(self, requests: Sequence[ExtractRequest], payload: PayloadSource) -> None:
        """Fill every request from the same event payload.

        The payload is read once; a failure on any request stops the loop and
        leaves the remaining requests unset.
        """
        data = read_payload(payload)
        for request in requests:
            try:
                value = self.extract_field(request.field_id, request.arg, data)
            except UnknownField as e:
                raise UnknownField(request.field) from e
            request.set_value(value)
