"""Processing layer: dissection, aggregation and batching."""

from .dissector import dissect
from .aggregator import StatsAggregator
from .dispatcher import BatchDispatcher

__all__ = ["dissect", "StatsAggregator", "BatchDispatcher"]
