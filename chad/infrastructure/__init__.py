# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external services (ports-and-adapters architecture).

This module contains concrete implementations of the chad.base interfaces:
- repositories/ - PostgreSQL and in-memory stores plus their units of work
- clock.py - System wall clock for the tick scheduler
"""

from chad.infrastructure.clock import SystemClock
from chad.infrastructure.repositories import (
    InMemoryUnitOfWork,
    PostgreSQLUnitOfWork,
    check_postgresql_connection,
)

__all__ = [
    "InMemoryUnitOfWork",
    "PostgreSQLUnitOfWork",
    "SystemClock",
    "check_postgresql_connection",
]
