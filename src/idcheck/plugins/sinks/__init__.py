"""Built-in result sinks."""

from idcheck.plugins.sinks.base import ResultSink
from idcheck.plugins.sinks.line_sink import LineSink

__all__ = ["LineSink", "ResultSink"]
