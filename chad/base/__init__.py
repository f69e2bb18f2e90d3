# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the seams of the session builder.

Stores, the attribution resolver and the clock are injected through these
interfaces so the segmentation, writing and scheduling logic can be tested
without a database or real waits.
"""

from chad.base.clock import Clock
from chad.base.repositories import (
    AggregateStore,
    ContextResolver,
    RawEventSource,
    UnitOfWork,
)
from chad.base.runner import BaseRunner, setup_logging

__all__ = [
    "AggregateStore",
    "BaseRunner",
    "Clock",
    "ContextResolver",
    "RawEventSource",
    "UnitOfWork",
    "setup_logging",
]
