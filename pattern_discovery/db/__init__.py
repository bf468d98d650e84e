"""Database layer — SQLite with ACID transactions and repository pattern."""

from pattern_discovery.db.database import Database, get_db
from pattern_discovery.db.schema import MIGRATIONS, SCHEMA_DDL

__all__ = ["Database", "get_db", "SCHEMA_DDL", "MIGRATIONS"]
