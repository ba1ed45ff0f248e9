"""Scheduler module."""

from .buffer import EventBuffer
from .scheduler import BatchScheduler, CardFactory, SchedulerState

__all__ = ["BatchScheduler", "CardFactory", "EventBuffer", "SchedulerState"]
