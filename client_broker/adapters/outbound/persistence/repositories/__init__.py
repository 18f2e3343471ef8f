# client_broker/adapters/outbound/persistence/repositories/__init__.py (async version)

"""
Repository module.

This module exports the repository classes and instances
used by the use cases, implementing the Repository pattern.
"""

from client_broker.adapters.outbound.persistence.repositories.secret_event_repository import (
    AsyncSecretLedger,
    secret_ledger,
)

__all__ = [
    # Classes
    "AsyncSecretLedger",

    # Instances
    "secret_ledger",
]
