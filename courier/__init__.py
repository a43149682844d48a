"""Courier booking service: orders, LR numbers and vehicle allocation."""

__version__ = "1.0.0"
