# client_broker/application/use_cases/__init__.py (async version)

"""
Application service module.

This package contains the application services that implement the business logic
of the broker, organized according to functional domains.
"""

from client_broker.application.use_cases.client_use_cases import AsyncClientService
from client_broker.application.use_cases.ownership_use_cases import OwnershipResolver

__all__ = [
    "AsyncClientService",
    "OwnershipResolver",
]
