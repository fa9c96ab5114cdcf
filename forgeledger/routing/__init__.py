"""Event routing: dispatcher and pluggable sinks."""

from forgeledger.routing.dispatcher import EventDispatcher
from forgeledger.routing.sinks import BaseSink
from forgeledger.routing.sinks.local_file import LocalFileSink
from forgeledger.routing.sinks.logging_sink import LoggingSink
from forgeledger.routing.sinks.memory import InMemorySink

__all__ = [
    "EventDispatcher",
    "BaseSink",
    "InMemorySink",
    "LocalFileSink",
    "LoggingSink",
]
