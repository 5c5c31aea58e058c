from .connection import Database, PostgresUnitOfWork, db
from .repositories import AccountRepository, RelationshipRepository, NotificationRepository


__all__ = [
    # connection.py
    "Database",
    "PostgresUnitOfWork",
    "db",
    # repositories.py
    "AccountRepository",
    "RelationshipRepository",
    "NotificationRepository",
]
