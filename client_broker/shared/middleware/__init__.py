# client_broker/shared/middleware/__init__.py (async version)

from client_broker.shared.middleware.exception_middleware import AsyncExceptionMiddleware, broker_exception_handler
from client_broker.shared.middleware.logging_middleware import AsyncRequestLoggingMiddleware

# Export all for easy imports
__all__ = [
    "AsyncExceptionMiddleware",
    "AsyncRequestLoggingMiddleware",
    "broker_exception_handler",
]
