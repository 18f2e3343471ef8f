# client_broker/shared/middleware/logging_middleware.py (async version)

"""
Middleware de log das requisições HTTP.

Cada requisição recebe um identificador de correlação (X-Request-ID, aceito
do chamador quando informado) que aparece nas linhas de entrada e saída e é
devolvido na resposta. Respostas com o cabeçalho X-Audit-Warning são
registradas em nível WARNING: o IdP foi alterado sem o evento de auditoria.
"""

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from client_broker.adapters.configuration.config import settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = ("/api/v1/health",)


class AsyncRequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and timing of every request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        path = request.url.path
        # Health checks only at DEBUG
        level = logging.DEBUG if path in QUIET_PATHS else logging.INFO

        if settings.ENVIRONMENT == "production":
            logger.log(level, f"[{request_id}] Request: {request.method} {path}")
        else:
            query_params = dict(request.query_params)
            logger.log(
                level,
                f"[{request_id}] Request: {request.method} {path} | "
                f"Query: {query_params if query_params else 'N/A'} | "
                f"Client: {request.client.host if request.client else 'N/A'}"
            )

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400 or "X-Audit-Warning" in response.headers:
            level = logging.WARNING

        logger.log(
            level,
            f"[{request_id}] Response: {response.status_code} for {request.method} {path} | "
            f"Time: {process_time:.4f}s"
            + (" | audit entry lost" if "X-Audit-Warning" in response.headers else "")
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
