"""Backend event-stream translation and OpenAI output sinks."""

from .formatter import OpenAIStreamingFormatter
from .sink import AggregatedSink, OutputSink, StreamingSink
from .translator import EventStreamTranslator, Segment, SegmentTracker


__all__ = [
    "AggregatedSink",
    "EventStreamTranslator",
    "OpenAIStreamingFormatter",
    "OutputSink",
    "Segment",
    "SegmentTracker",
    "StreamingSink",
]
