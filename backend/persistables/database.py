import hashlib
import logging
import sqlite3
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

FETCH_ALL = 1
FETCH_ONE = 2
FETCH_ROW = 3
FETCH_COL = 4


class BindType(Enum):
    NULL = "null"
    INT = "int"
    FLOAT = "float"
    STR = "str"
    BOOL = "bool"
    BYTES = "bytes"


class TypedValue(BaseModel):
    """A parameter with an explicit bind type."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    bind_type: BindType = BindType.STR

    def __init__(self, value=None, bind_type=BindType.STR, **data):
        super().__init__(value=value, bind_type=bind_type, **data)

    def bind(self):
        if self.bind_type is BindType.NULL or self.value is None:
            return None
        if self.bind_type is BindType.INT:
            return int(self.value)
        if self.bind_type is BindType.FLOAT:
            return float(self.value)
        if self.bind_type is BindType.BOOL:
            return 1 if self.value else 0
        if self.bind_type is BindType.BYTES:
            return self.value if isinstance(self.value, bytes) else str(self.value).encode()
        return str(self.value)


class QueryError(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    code: Optional[str] = None
    detail: Optional[str] = None


class Statement:
    """A cache entry: the normalized SQL text and its key. Every run gets its own cursor."""

    def __init__(self, key, sql):
        self.key = key
        self.sql = sql

    def run(self, connection, params):
        cursor = connection.cursor()
        cursor.execute(self.sql, params)
        return cursor


class DatabaseEngine:
    logger = logging.getLogger("Persistables")
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO)

    def __init__(self, db_path=":memory:", connection=None, check_same_thread=True):
        if connection is None:
            connection = sqlite3.connect(db_path, isolation_level=None, check_same_thread=check_same_thread)
            connection.row_factory = sqlite3.Row
        self.connection = connection
        self.errors = []
        self._statements = {}

    @staticmethod
    def normalize(sql):
        return " ".join(sql.split())

    def _log(self, sql, params=None):
        msg = f"[SQL EXECUTE]: {sql}"
        if params:
            msg += f" | [PARAMS]: {params}"
        self.logger.info(msg)

    def _record_error(self, exc, sql=None):
        code = getattr(exc, "sqlite_errorname", None) or type(exc).__name__
        self.errors.append(QueryError(message=str(exc), code=code, detail=sql))
        self.logger.error("[SQL FAILED]: %s | %s", sql, exc)

    def get_errors(self):
        return list(self.errors)

    def clear_errors(self):
        self.errors.clear()

    def clear_statements(self):
        self._statements.clear()

    def _statement(self, sql):
        normalized = self.normalize(sql)
        key = hashlib.md5(normalized.encode()).hexdigest()
        statement = self._statements.get(key)
        if statement is None:
            statement = Statement(key, normalized)
            self._statements[key] = statement
        return statement

    @staticmethod
    def _bind(params):
        return tuple(
            param.bind() if isinstance(param, TypedValue) else param
            for param in (params or ())
        )

    def _run(self, sql, params):
        statement = self._statement(sql)
        bound = self._bind(params)
        self._log(statement.sql, bound)
        return statement.run(self.connection, bound)

    @staticmethod
    def _row_dict(row, cursor):
        if isinstance(row, dict):
            return dict(row)
        if hasattr(row, "keys"):
            return {key: row[key] for key in row.keys()}
        names = [d[0] for d in cursor.description or ()]
        return dict(zip(names, row))

    @staticmethod
    def _default(kind):
        if kind == FETCH_ONE:
            return ""
        if kind == FETCH_ROW:
            return {}
        return []

    def _fetch(self, sql, params, kind):
        try:
            cursor = self._run(sql, params)
            if kind == FETCH_ALL:
                return [self._row_dict(row, cursor) for row in cursor.fetchall()]
            if kind == FETCH_ROW:
                row = cursor.fetchone()
                cursor.fetchall()
                return self._row_dict(row, cursor) if row is not None else {}
            if kind == FETCH_COL:
                return [row[0] for row in cursor.fetchall()]
            row = cursor.fetchone()
            cursor.fetchall()
            return self._coerce(row[0] if row is not None else None)
        except Exception as exc:
            self._record_error(exc, sql)
            return self._default(kind)

    @staticmethod
    def _coerce(value):
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return value
        text = str(value)
        try:
            return float(text) if "." in text else int(text)
        except ValueError:
            return value

    def fetch_all(self, sql, params=None):
        return self._fetch(sql, params, FETCH_ALL)

    def fetch_one(self, sql, params=None):
        """First column of the first row; numeric strings come back as numbers."""
        return self._fetch(sql, params, FETCH_ONE)

    def fetch_row(self, sql, params=None):
        return self._fetch(sql, params, FETCH_ROW)

    def fetch_column(self, sql, params=None):
        return self._fetch(sql, params, FETCH_COL)

    def iter_rows(self, sql, params=None):
        try:
            cursor = self._run(sql, params)
            row = cursor.fetchone()
            while row is not None:
                yield self._row_dict(row, cursor)
                row = cursor.fetchone()
        except Exception as exc:
            self._record_error(exc, sql)

    def insert_id(self, sql, params=None):
        if not sql.strip().upper().startswith("INSERT"):
            raise ValueError("SQL statement must begin with INSERT")
        try:
            cursor = self._run(sql, params)
            return int(cursor.lastrowid or 0)
        except Exception as exc:
            self._record_error(exc, sql)
            return 0

    def affected_rows(self, sql, params=None):
        if not sql.strip().upper().startswith(("UPDATE", "DELETE")):
            raise ValueError("SQL statement must begin with UPDATE or DELETE")
        try:
            cursor = self._run(sql, params)
            return max(cursor.rowcount, 0)
        except Exception as exc:
            self._record_error(exc, sql)
            return 0

    def execute(self, sql, params=None):
        try:
            self._run(sql, params)
            return True
        except Exception as exc:
            self._record_error(exc, sql)
            return False

    def execute_transaction(self, commands):
        """
        Run commands in order inside one transaction. Stops at the first
        failure and rolls everything back; a failed commit rolls back too.
        """
        try:
            self.begin()
        except Exception as exc:
            self._record_error(exc, "BEGIN")
            return False

        for command in commands:
            if not self.execute(command.query, command.params):
                self.rollback()
                return False

        try:
            self.commit()
        except Exception as exc:
            self._record_error(exc, "COMMIT")
            self.rollback()
            return False
        return True

    def begin(self):
        self._log("BEGIN")
        self.connection.cursor().execute("BEGIN")

    def commit(self):
        self._log("COMMIT")
        self.connection.commit()

    def rollback(self):
        self._log("ROLLBACK")
        try:
            self.connection.rollback()
        except Exception as exc:
            self._record_error(exc, "ROLLBACK")

    def close(self):
        self._statements.clear()
        self.connection.close()
