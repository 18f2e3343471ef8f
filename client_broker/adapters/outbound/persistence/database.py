# client_broker/adapters/outbound/persistence/database.py (async version)

"""
Engine e sessões do ledger de segredos.

O ledger é a única tabela local do broker. O repositório faz commit de cada
evento; a sessão entregue às rotas apenas garante rollback e fechamento.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from client_broker.adapters.configuration.config import settings

logger = logging.getLogger(__name__)

# Classe base dos modelos ORM (metadados usados pelo create_all e pelo alembic)
Base = declarative_base()


def engine_options(database_url: str) -> Dict[str, Any]:
    """Opções de pool para Postgres; SQLite (testes, dev local) não aceita pool_size."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_size": 10,
        "max_overflow": 5,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


database_url = str(settings.DATABASE_URL)
# Nunca loga credenciais: apenas host/banco
logger.info(f"Secret ledger database: {make_url(database_url).render_as_string(hide_password=True)}")

engine = create_async_engine(database_url, **engine_options(database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection for use with FastAPI.

    Yields:
        AsyncSession: SQLAlchemy async session, rolled back if the request fails
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
