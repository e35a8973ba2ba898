"""Typed failures raised by source plugins.

End of stream is not represented here: a session that has nothing left to
produce reports ``BatchStatus.EXHAUSTED`` instead of raising.
"""

from typing import Optional


class PluginError(Exception):
    """Base class for every failure reported to the host."""


class InvalidConfig(PluginError):
    pass


class InvalidParams(PluginError):
    pass


class MissingParameter(InvalidParams):
    def __init__(self, key: str, params: str = ""):
        self.key = key
        self.params = params
        super().__init__(f"params {params} did not contain {key} property")


class MalformedPayload(PluginError):
    pass


class InvalidArgument(PluginError):
    def __init__(self, field: str, argument: Optional[str], reason: str = "could not be converted to number"):
        self.field = field
        self.argument = argument
        super().__init__(f"argument to {field} {argument!r} {reason}")


class UnknownField(PluginError):
    def __init__(self, field):
        self.field = field
        super().__init__(f"no known field: {field}")


class EventWriteError(PluginError, OSError):
    """Writing an event payload into a host buffer failed.

    ``written`` counts the events of the aborted batch that were completed
    before the failure; those stay valid and are reflected in session state.
    """

    def __init__(self, message: str, written: int = 0):
        super().__init__(message)
        self.written = written
