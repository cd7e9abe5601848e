"""Database layer for walletledger application."""

from walletledger.database.base import Database
from walletledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
