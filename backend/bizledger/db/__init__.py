"""Database package"""

from bizledger.db.session import (
    AsyncSessionLocal,
    engine,
    get_db,
    get_session_factory,
    session_scope,
)
from bizledger.models.base import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db", "get_session_factory", "session_scope"]
