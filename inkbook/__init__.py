"""Slot availability and booking reservation core for InkBook."""

__version__ = "0.1.0"
