"""Delivery module."""

from .client import DeliveryClient, IDeliveryClient

__all__ = ["DeliveryClient", "IDeliveryClient"]
