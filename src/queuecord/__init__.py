"""Offline-first message queue that delivers to a webhook once online."""

__version__ = "0.1.0"
