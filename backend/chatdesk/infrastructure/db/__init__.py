"""
Database Infrastructure Package for ChatDesk

Exports connection lifecycle helpers and the storage gateway.
"""

from chatdesk.infrastructure.db.database import (
    get_session_context,
    init_db,
    close_db,
)
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.db.sql_gateway import SqlStorageGateway


__all__ = [
    "get_session_context",
    "init_db",
    "close_db",
    "StorageGateway",
    "SqlStorageGateway",
]
