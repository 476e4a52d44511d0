# Persistables - metadata driven persistence for plain Python entities
from persistables.base import Persistable
from persistables.builder import MySqlGenerator, SqlGenerator, SqliteGenerator
from persistables.collection import Collection
from persistables.database import BindType, DatabaseEngine, QueryError, TypedValue
from persistables.exceptions import (
    ConfigurationError,
    DeleteError,
    InsertError,
    PersistablesError,
    PersistenceError,
    UpdateError,
)
from persistables.mapper import MetaFactory
from persistables.orm_types import Column, Join, PersistOrder, Relation
from persistables.session import Session
from persistables.transactions import CommandSequence, SqlCommand

__version__ = "0.1.0"
__all__ = [
    "Persistable",
    "Collection",
    "Column",
    "Relation",
    "Join",
    "PersistOrder",
    "MetaFactory",
    "SqlGenerator",
    "MySqlGenerator",
    "SqliteGenerator",
    "DatabaseEngine",
    "TypedValue",
    "BindType",
    "QueryError",
    "SqlCommand",
    "CommandSequence",
    "Session",
    "PersistablesError",
    "ConfigurationError",
    "PersistenceError",
    "InsertError",
    "UpdateError",
    "DeleteError",
]
