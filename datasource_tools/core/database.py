"""Database engine layer for the datasource tools.

Provides a single sync engine (mysql-connector) shared by the command-line
tools. Alembic migrations bring their own connection through ``op.get_bind()``
and never touch this module.
"""

from sqlalchemy import create_engine

from .config import settings

# ---------------------------------------------------------------------------
# Sync engine (for CLI maintenance runs -- mysql-connector)
# ---------------------------------------------------------------------------
sync_engine = create_engine(
    settings.sync_database_url,
    pool_size=5,
    pool_pre_ping=settings.db_pool_pre_ping,
    echo=settings.debug,
)
