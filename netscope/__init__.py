"""
Netscope - Live Capture and Dissection Pipeline

Captures traffic from a single network interface, decodes each frame into
an immutable record, aggregates traffic statistics and hands records to a
consumer in size/time bounded batches.
"""

__version__ = "1.0.0"
__author__ = "Network Team"
