"""
Database module - MongoDB and Redis connections, indexes and units of work.
"""
from studyws.database.connections import (
    get_mongo_client,
    get_redis_client,
    close_connections,
    get_database,
)
from studyws.database.databases import auth_db
from studyws.database.indexes import create_indexes
from studyws.database.transactions import MongoUnitOfWork, run_in_transaction

__all__ = [
    "get_mongo_client",
    "get_redis_client",
    "close_connections",
    "get_database",
    "auth_db",
    "create_indexes",
    "MongoUnitOfWork",
    "run_in_transaction",
]
