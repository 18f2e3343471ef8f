# client_broker/domain/__init__.py

"""
Domain layer.

Pure domain models and typed exceptions, free of transport and
persistence details.
"""

from client_broker.domain.models.admin_token_domain_model import AdminToken
from client_broker.domain.models.client_registration_domain_model import ClientRegistration
from client_broker.domain.models.secret_event_domain_model import SecretAction, SecretEvent

__all__ = [
    "AdminToken",
    "ClientRegistration",
    "SecretAction",
    "SecretEvent",
]
