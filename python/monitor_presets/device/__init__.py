"""Device control interface for the video endpoint."""

from .xapi import Connector, DeviceControl, MatrixMode, WidgetEventType

__all__ = ["Connector", "DeviceControl", "MatrixMode", "WidgetEventType"]
