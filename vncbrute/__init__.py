"""Concurrent dictionary attack against VNC password authentication."""

__version__ = "0.1"
