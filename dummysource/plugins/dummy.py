"""Reference source plugin producing a jittered counter.

Each session starts at ``start`` and emits ``maxEvents`` events. Every event
adds ``1 + U[0, jitter]`` to the running sample and carries the sample's
decimal rendering as its payload.
"""

from enum import IntEnum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
import json
import logging
import re
import time

from pydantic import BaseModel, Field, ValidationError

from ..core.errors import (
    EventWriteError, InvalidArgument, InvalidConfig, InvalidParams,
    MalformedPayload, MissingParameter, UnknownField,
)
from ..core.events import EventBatch, PayloadSource, read_payload
from ..core.fields import FieldDescriptor, FieldType
from ..core.plugin import BatchStatus, PluginInfo, RandomSource, SourcePlugin, SourceSession
from ..core.registry import register_plugin

logger = logging.getLogger(__name__)

PLUGIN_NAME = "dummy"
UINT64_MAX = 2**64 - 1

RawInput = Union[None, str, bytes, bytearray, Mapping[str, Any]]


class DummyConfig(BaseModel):
    jitter: int = Field(default=10, ge=0, le=UINT64_MAX, strict=True,
                        description="Maximum extra amount added to each +1 step")

    model_config = {"extra": "ignore", "frozen": True}


class OpenParams(BaseModel):
    start: int = Field(..., ge=0, le=UINT64_MAX, strict=True, description="Initial sample value")
    max_events: int = Field(..., alias="maxEvents", ge=0, le=UINT64_MAX, strict=True,
                            description="Number of events to return before end of stream")

    model_config = {"extra": "ignore", "populate_by_name": True}


class FieldId(IntEnum):
    DIVISIBLE = 0
    VALUE = 1
    STRVALUE = 2


FIELDS: Tuple[FieldDescriptor, ...] = (
    FieldDescriptor(id=FieldId.DIVISIBLE, type=FieldType.UINT64, name="dummy.divisible", arg_required=True,
                    description="Return 1 if the value is divisible by the provided divisor, 0 otherwise"),
    FieldDescriptor(id=FieldId.VALUE, type=FieldType.UINT64, name="dummy.value",
                    description="The sample value in the event"),
    FieldDescriptor(id=FieldId.STRVALUE, type=FieldType.STRING, name="dummy.strvalue",
                    description="The sample value in the event, as a string"),
)

_PAYLOAD_DIGITS = re.compile(rb"[0-9]+")
_DIVISOR = re.compile(r"[+-]?[0-9]+")


def _divisible(value: int, text: str, arg: Optional[str]) -> int:
    if arg is None or not _DIVISOR.fullmatch(arg):
        raise InvalidArgument("dummy.divisible", arg)
    divisor = int(arg)
    if divisor == 0:
        raise InvalidArgument("dummy.divisible", arg, reason="must not be zero")
    return 1 if value % divisor == 0 else 0


def _value(value: int, text: str, arg: Optional[str]) -> int:
    return value


def _strvalue(value: int, text: str, arg: Optional[str]) -> str:
    return text


_HANDLERS: Dict[str, Callable[[int, str, Optional[str]], Any]] = {
    "dummy.divisible": _divisible,
    "dummy.value": _value,
    "dummy.strvalue": _strvalue,
}

# Dispatch table keyed by field id, derived from the schema once at import
_EXTRACTORS = {descriptor.id: _HANDLERS[descriptor.name] for descriptor in FIELDS}


def decode_sample(payload: bytes) -> Tuple[int, str]:
    """Parse a payload into its integer value and its verbatim text."""
    if not _PAYLOAD_DIGITS.fullmatch(payload):
        raise MalformedPayload(f"event payload {payload!r} is not a decimal number")
    value = int(payload)
    if value > UINT64_MAX:
        raise MalformedPayload(f"event payload {payload!r} does not fit in 64 bits")
    return value, payload.decode("ascii")


def _load_object(raw: RawInput, error_cls, what: str) -> Optional[Dict[str, Any]]:
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        obj = json.loads(text)
    except (TypeError, ValueError) as e:
        raise error_cls(f"{what} {raw!r} could not be parsed: {e}") from e
    if obj is not None and not isinstance(obj, dict):
        raise error_cls(f"{what} {raw!r} is not a JSON object")
    return obj


def _as_text(raw: RawInput) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return raw.decode("utf-8", errors="replace")
    if isinstance(raw, Mapping):
        return json.dumps(dict(raw), default=str)
    return "" if raw is None else str(raw)


class DummySession(SourceSession):
    def __init__(self, plugin: "DummyPlugin", params: OpenParams, open_params: str = ""):
        self._plugin = plugin
        self.open_params = open_params
        self.max_events = params.max_events
        self._emitted = 0
        self._sample = params.start
        self._closed = False

    @property
    def emitted(self) -> int:
        return self._emitted

    @property
    def sample(self) -> int:
        return self._sample

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def remaining(self) -> int:
        return self.max_events - self._emitted

    def produce_batch(self, batch: EventBatch) -> Tuple[int, BatchStatus]:
        logger.debug("[%s] produce_batch, capacity=%d", PLUGIN_NAME, batch.capacity)
        if self._closed:
            raise RuntimeError("session is closed")

        if self._emitted >= self.max_events:
            return 0, BatchStatus.EXHAUSTED

        jitter = self._plugin.config.jitter
        random_source = self._plugin.random
        produced = 0
        while self._emitted < self.max_events and produced < batch.capacity:
            event = batch[produced]
            sample = self._sample + random_source.increment(jitter)
            event.set_timestamp(time.time_ns())
            data = str(sample).encode("ascii")
            try:
                written = event.writer.write(data)
            except (OSError, ValueError) as e:
                raise EventWriteError(f"writing event {self._emitted + 1} failed: {e}", written=produced) from e
            # raw sinks may accept fewer bytes than offered
            if written is not None and written != len(data):
                raise EventWriteError(
                    f"writing event {self._emitted + 1} failed: short write of {written}/{len(data)} bytes",
                    written=produced,
                )

            # Commit only once the payload is fully written
            self._sample = sample
            self._emitted += 1
            produced += 1

        if self._emitted >= self.max_events:
            return produced, BatchStatus.EXHAUSTED
        return produced, BatchStatus.MORE

    def close(self) -> None:
        logger.info("[%s] Close, emitted=%d/%d", PLUGIN_NAME, self._emitted, self.max_events)
        self._closed = True


@register_plugin(PLUGIN_NAME)
class DummyPlugin(SourcePlugin):
    """Reference plugin for educational purposes."""

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._config: Optional[DummyConfig] = None
        self._random: Optional[RandomSource] = None

    @property
    def config(self) -> DummyConfig:
        if self._config is None:
            raise RuntimeError(f"plugin {PLUGIN_NAME} is not configured")
        return self._config

    @property
    def random(self) -> RandomSource:
        if self._random is None:
            raise RuntimeError(f"plugin {PLUGIN_NAME} is not configured")
        return self._random

    def info(self) -> PluginInfo:
        logger.debug("[%s] Info", PLUGIN_NAME)
        return PluginInfo(
            id=3,
            name=PLUGIN_NAME,
            description="Reference plugin for educational purposes",
            contact="github.com/falcosecurity/plugins",
            version="0.1.0",
            required_api_version="0.2.0",
            event_source="dummy",
        )

    def configure(self, raw_config: RawInput = None) -> None:
        logger.info("[%s] Init, config=%s", PLUGIN_NAME, _as_text(raw_config))

        if not isinstance(raw_config, Mapping) and _as_text(raw_config).strip() in ("", "{}"):
            obj = None
        else:
            obj = _load_object(raw_config, InvalidConfig, "config")

        try:
            config = DummyConfig.model_validate(obj or {})
        except ValidationError as e:
            raise InvalidConfig(f"config {_as_text(raw_config)} is invalid: {e}") from e

        self._config = config
        self._random = RandomSource(self._seed)

    def destroy(self) -> None:
        logger.info("[%s] Destroy", PLUGIN_NAME)

    def open(self, raw_params: RawInput) -> DummySession:
        text = _as_text(raw_params)
        logger.info("[%s] Open, params=%s", PLUGIN_NAME, text)
        if self._random is None:
            raise RuntimeError(f"plugin {PLUGIN_NAME} is not configured")

        obj = _load_object(raw_params, InvalidParams, "params")
        if obj is None:
            raise InvalidParams(f"params {text} is not a JSON object")

        try:
            params = OpenParams.model_validate(obj)
        except ValidationError as e:
            errors = e.errors()
            missing = [str(err["loc"][0]) for err in errors if err["type"] == "missing"]
            if missing and len(missing) == len(errors):
                raise MissingParameter(missing[0], text) from e
            raise InvalidParams(f"params {text} could not be parsed: {e}") from e

        return DummySession(self, params, open_params=text)

    def describe_fields(self) -> List[FieldDescriptor]:
        logger.debug("[%s] Fields", PLUGIN_NAME)
        return list(FIELDS)

    def render_event(self, payload: PayloadSource) -> str:
        logger.debug("[%s] String", PLUGIN_NAME)
        data = read_payload(payload)
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayload(f"event payload {data!r} is not valid text") from e
        return '{"sample": "%s"}' % text

    def extract_field(self, field_id: int, argument: Optional[str], payload: PayloadSource) -> Any:
        logger.debug("[%s] Extract, field=%s", PLUGIN_NAME, field_id)
        value, text = decode_sample(read_payload(payload))

        extractor = _EXTRACTORS.get(field_id)
        if extractor is None:
            raise UnknownField(field_id)
        return extractor(value, text, argument)
