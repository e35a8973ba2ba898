"""dummysource - reference event source plugin with field extraction."""

__version__ = "0.1.0"
__description__ = "Reference event source plugin with field extraction"

from .core.plugin import SourcePlugin, SourceSession, BatchStatus
from .plugins.dummy import DummyPlugin, DummySession

__all__ = ["SourcePlugin", "SourceSession", "BatchStatus", "DummyPlugin", "DummySession"]
