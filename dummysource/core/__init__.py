"""Core components - stable plugin abstractions."""

from .errors import (
    PluginError, InvalidConfig, InvalidParams, MissingParameter,
    MalformedPayload, InvalidArgument, UnknownField, EventWriteError,
)
from .events import Event, EventBatch, EventWriter, UNSET_TIMESTAMP
from .fields import ExtractRequest, FieldDescriptor, FieldType
from .plugin import BatchStatus, PluginInfo, RandomSource, SourcePlugin, SourceSession
from .registry import PluginRegistry, register_plugin

__all__ = [
    "PluginError", "InvalidConfig", "InvalidParams", "MissingParameter",
    "MalformedPayload", "InvalidArgument", "UnknownField", "EventWriteError",
    "Event", "EventBatch", "EventWriter", "UNSET_TIMESTAMP",
    "ExtractRequest", "FieldDescriptor", "FieldType",
    "BatchStatus", "PluginInfo", "RandomSource", "SourcePlugin", "SourceSession",
    "PluginRegistry", "register_plugin",
]
