"""Tracker module."""

from .tracker import DeliveryTracker, DiagnosticsCallback, IDeliveryTracker

__all__ = ["DeliveryTracker", "DiagnosticsCallback", "IDeliveryTracker"]
