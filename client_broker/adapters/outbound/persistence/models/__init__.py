# client_broker/adapters/outbound/persistence/models/__init__.py

"""
Módulo de modelos de dados.

Este módulo exporta os modelos SQLAlchemy do sistema,
facilitando a importação e uso em outros módulos.
"""

from client_broker.adapters.outbound.persistence.database import Base
from client_broker.adapters.outbound.persistence.models.secret_event_model import SecretEvent

__all__ = [
    "Base",
    "SecretEvent",
]
