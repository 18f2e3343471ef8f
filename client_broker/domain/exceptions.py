# client_broker/domain/exceptions.py

"""
Exceções personalizadas para o broker.

Este módulo define as exceções específicas da aplicação. Cada uma carrega
um código interno estável e o código de status HTTP correspondente, para
que a camada de transporte consiga distinguir os tipos de falha.
"""

from fastapi import HTTPException, status
from typing import Any, Dict, List, Optional


class BrokerException(HTTPException):
    """
    Exceção base para todas as exceções do broker.
    Estende HTTPException do FastAPI para fornecer contexto adicional.
    """

    def __init__(
            self,
            status_code: int,
            detail: Any = None,
            headers: Optional[Dict[str, Any]] = None,
            internal_code: Optional[str] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.internal_code = internal_code

    def __str__(self) -> str:
        return str(self.detail)


class AuthFailureException(BrokerException):
    """Não foi possível obter o token administrativo ou o IdP rejeitou o token."""

    def __init__(self, detail: str = "Falha de autenticação com o IdP",
                 original_error: Optional[Exception] = None):
        error_info = f": {str(original_error)}" if original_error else ""
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{detail}{error_info}",
            internal_code="UPSTREAM_AUTH_FAILURE"
        )
        self.original_error = original_error


class ResourceNotFoundException(BrokerException):
    """Recurso não encontrado."""

    def __init__(self, detail: str = "Recurso não encontrado"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            internal_code="RESOURCE_NOT_FOUND"
        )


class ResourceAlreadyExistsException(BrokerException):
    """Recurso já existe."""

    def __init__(self, detail: str = "Recurso já existe"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            internal_code="RESOURCE_ALREADY_EXISTS"
        )


class AmbiguousMatchException(BrokerException):
    """
    Mais de um client corresponde ao seletor informado.

    Não é uma falha fatal: o chamador pode repetir a operação com um
    clientId específico escolhido entre os candidatos.
    """

    def __init__(self, detail: str = "Mais de um client corresponde ao seletor",
                 candidates: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            internal_code="AMBIGUOUS_MATCH"
        )
        self.candidates = candidates or []


class UpstreamUnavailableException(BrokerException):
    """Erro de rede ou resposta inesperada do IdP."""

    def __init__(self, detail: str = "IdP indisponível", status_code: Optional[int] = None,
                 original_error: Optional[Exception] = None):
        upstream_info = f" (status do IdP: {status_code})" if status_code is not None else ""
        error_info = f": {str(original_error)}" if original_error else ""
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{detail}{upstream_info}{error_info}",
            internal_code="UPSTREAM_UNAVAILABLE"
        )
        self.upstream_status = status_code
        self.original_error = original_error


class LedgerWriteFailureException(BrokerException):
    """O registro de auditoria não pôde ser persistido."""

    def __init__(self, detail: str = "Erro ao gravar evento de auditoria",
                 original_error: Optional[Exception] = None):
        error_info = f": {str(original_error)}" if original_error else ""
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{detail}{error_info}",
            internal_code="LEDGER_WRITE_FAILURE"
        )
        self.original_error = original_error


class UnauthenticatedException(BrokerException):
    """Não foi possível identificar o chamador."""

    def __init__(self, detail: str = "Identidade do chamador não reconhecida"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
            internal_code="UNAUTHENTICATED"
        )


class InvalidInputException(BrokerException):
    """Dados de entrada inválidos."""

    def __init__(self, detail: str = "Dados de entrada inválidos"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            internal_code="INVALID_INPUT"
        )


class DatabaseOperationException(BrokerException):
    """Erro na operação de banco de dados."""

    def __init__(self, detail: str = "Erro ao executar operação no banco de dados",
                 original_error: Optional[Exception] = None):
        error_info = f": {str(original_error)}" if original_error else ""
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{detail}{error_info}",
            internal_code="DATABASE_OPERATION_ERROR"
        )
        self.original_error = original_error
