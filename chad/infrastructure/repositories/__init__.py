# ==============================================================================
# Repository Adapters
# ==============================================================================
"""Concrete repository implementations (PostgreSQL and in-memory)."""

from chad.infrastructure.repositories.memory import (
    InMemoryAggregateStore,
    InMemoryContextResolver,
    InMemoryRawEventSource,
    InMemoryUnitOfWork,
)
from chad.infrastructure.repositories.postgresql import (
    PostgreSQLAggregateStore,
    PostgreSQLContextResolver,
    PostgreSQLRawEventSource,
    PostgreSQLUnitOfWork,
    check_postgresql_connection,
)

__all__ = [
    "InMemoryAggregateStore",
    "InMemoryContextResolver",
    "InMemoryRawEventSource",
    "InMemoryUnitOfWork",
    "PostgreSQLAggregateStore",
    "PostgreSQLContextResolver",
    "PostgreSQLRawEventSource",
    "PostgreSQLUnitOfWork",
    "check_postgresql_connection",
]
