# client_broker/shared/middleware/exception_middleware.py (async version)

"""
Tratamento centralizado de erros.

As exceções tipadas do broker (BrokerException) são renderizadas pelo
handler registrado no app. O middleware cobre o que escapa disso: erros do
SQLAlchemy fora do ledger e qualquer exceção inesperada viram 500 em JSON,
sem detalhes quando ENVIRONMENT == "production".
"""

import logging
import traceback
from typing import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from client_broker.adapters.configuration.config import settings
from client_broker.domain.exceptions import AmbiguousMatchException, BrokerException

logger = logging.getLogger(__name__)


async def broker_exception_handler(request: Request, exc: BrokerException) -> JSONResponse:
    """
    Render a typed broker exception as {"detail", "code"}.

    Ambiguous claims also carry the candidate list so the caller can retry
    with a specific clientId.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"Broker exception: {exc.detail} | Code: {exc.internal_code} | Path: {request.url.path}")

    content = {"detail": exc.detail, "code": exc.internal_code}
    if isinstance(exc, AmbiguousMatchException):
        content["candidates"] = exc.candidates

    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


def _internal_error(request: Request, exc: Exception, code: str, public_message: str) -> JSONResponse:
    """500 em JSON; em produção o detalhe da exceção não sai do servidor."""
    if settings.ENVIRONMENT == "production":
        detail = public_message
        logger.error(f"{code}: Type={type(exc).__name__} | Path: {request.url.path}")
    else:
        detail = str(exc)
        logger.error(
            f"{code}: {detail} | Path: {request.url.path}\n"
            f"Traceback: {traceback.format_exc()}"
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail, "code": code},
    )


class AsyncExceptionMiddleware(BaseHTTPMiddleware):
    """Converte exceções não tratadas pelas rotas em respostas JSON."""

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            return await call_next(request)
        except SQLAlchemyError as exc:
            return _internal_error(request, exc, "DATABASE_ERROR", "Internal database error")
        except Exception as exc:
            return _internal_error(request, exc, "INTERNAL_SERVER_ERROR", "Internal server error")
