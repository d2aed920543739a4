"""Infrastructure - database engine and structured logging."""

from app.infra.database import (
    DatabaseSession,
    close_db_engine,
    create_tables,
    get_db_session,
    verify_db_connection,
)
from app.infra.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)

__all__ = [
    "DatabaseSession",
    "bind_request_context",
    "clear_request_context",
    "close_db_engine",
    "create_tables",
    "get_db_session",
    "get_logger",
    "setup_logging",
    "verify_db_connection",
]
