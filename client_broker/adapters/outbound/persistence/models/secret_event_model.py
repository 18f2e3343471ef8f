# client_broker/adapters/outbound/persistence/models/secret_event_model.py

"""
Modelo do ledger de eventos de segredo.

Este módulo define o modelo SecretEvent, a trilha de auditoria
append-only das operações sobre segredos de clients do IdP.
"""

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String, func

from client_broker.adapters.outbound.persistence.database import Base


class SecretEvent(Base):
    """
    Modelo que representa um evento do ciclo de vida de um segredo.

    As linhas nunca são alteradas nem removidas, nem mesmo quando o client
    é excluído no IdP. O segredo em si nunca é armazenado: apenas os
    4 últimos caracteres.

    Attributes:
        id: Sequência monotônica do ledger, também usada para desempate na ordenação
        realm: Realm do IdP
        client_id: ID do client no IdP (não o clientId escolhido pelo usuário)
        created_by: Ator que realizou a operação
        action: created, regenerated ou deleted
        secret_last4: 4 últimos caracteres do segredo, se conhecidos
        created_at: Data e hora do evento
    """
    __tablename__ = "secret_events"

    # Integer variant keeps SQLite autoincrement working in tests
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    realm = Column(String(255), nullable=False)
    client_id = Column(String(255), nullable=False)
    created_by = Column(String(255), nullable=False)
    action = Column(String(20), nullable=False)
    secret_last4 = Column(String(4), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_secret_events_realm_client_actor", "realm", "client_id", "created_by"),
    )

    def __repr__(self) -> str:
        """Representação em string do objeto SecretEvent."""
        return f"<SecretEvent(id={self.id}, client_id={self.client_id}, action={self.action})>"
