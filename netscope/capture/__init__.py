"""Packet capture layer."""

from .handle import open_live, CaptureHandle, CapturedFrame
from .channel import EventChannel, CaptureListener, BatchEvent, StatusEvent
from .interface_manager import InterfaceManager, DeviceInfo
from .session import CaptureSession, SessionState

__all__ = [
    "open_live",
    "CaptureHandle",
    "CapturedFrame",
    "EventChannel",
    "CaptureListener",
    "BatchEvent",
    "StatusEvent",
    "InterfaceManager",
    "DeviceInfo",
    "CaptureSession",
    "SessionState",
]
