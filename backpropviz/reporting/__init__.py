"""Reporting utilities for backpropviz."""

from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .summary import write_summary
from .trace import read_trace, write_trace

__all__ = ["CsvSink", "JsonlSink", "PlotAdapter", "read_trace", "write_summary", "write_trace"]
