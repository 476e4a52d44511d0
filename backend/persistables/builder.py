import re
from abc import ABC, abstractmethod

from persistables.exceptions import ConfigurationError


class SqlGenerator(ABC):
    """
    Turns a Meta into SQL text. Implementations are pure: no I/O, no state
    beyond constants, so one instance can be shared by every Session.
    """

    # whether the ids of a multi-row insert are guaranteed to be consecutive
    contiguous_insert_ids = True

    _safe_ident_pattern = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

    @abstractmethod
    def get_select_query(self, meta, clause=None):
        pass

    @abstractmethod
    def get_insert_query(self, meta, rows=1):
        pass

    @abstractmethod
    def get_update_query(self, meta, dirty_names):
        pass

    @abstractmethod
    def get_delete_query(self, meta, count=1):
        pass

    def first_insert_id(self, reported_id, rows):
        """Map the id reported for an insert of `rows` rows to the first row's id."""
        return reported_id

    def insert_columns(self, meta):
        """(property, column) pairs bound by an insert, in statement order."""
        return [
            (prop, column)
            for prop, column in meta.columns.items()
            if not column.readonly and self._is_own_column(meta, column)
        ]

    def update_columns(self, meta, dirty_names):
        """(property, column) pairs bound by an update, in statement order."""
        pairs = []
        for prop in dict.fromkeys(dirty_names):
            column = meta.columns.get(prop)
            if column is None or column.readonly or column.primary:
                continue
            if not self._is_own_column(meta, column):
                continue
            pairs.append((prop, column))
        return pairs

    @staticmethod
    def _is_own_column(meta, column):
        return column.table in (None, meta.table.name)

    def quote(self, identifier):
        if not identifier or not self._safe_ident_pattern.match(str(identifier)):
            raise ConfigurationError(f"Unsafe SQL identifier: {identifier}")
        return f"`{identifier}`"

    def column(self, table, column, alias=None):
        field = f"{self.quote(table)}.{self.quote(column)}"
        if alias and alias != column:
            field = f"{field} AS {self.quote(alias)}"
        return field

    @staticmethod
    def placeholders(count):
        if count < 1:
            raise ValueError("At least one placeholder is required")
        return ",".join("?" * count)


class MySqlGenerator(SqlGenerator):
    """Reference dialect: backtick quoting and the LAST_INSERT_ID upsert."""

    def get_select_query(self, meta, clause=None):
        table = meta.table
        fields = [
            self.column(column.table or table.name, column.name, prop)
            for prop, column in meta.columns.items()
        ]
        sql = f"SELECT {', '.join(fields)} FROM {self.quote(table.name)}"
        if meta.joins:
            sql += " " + " ".join(self._join_clauses(meta.joins, table.name))

        if clause is None:
            if meta.joins:
                key = self.column(table.name, table.primary_key)
            else:
                key = self.quote(table.primary_key)
            clause = f"{key} = ?"
        return f"{sql} WHERE {clause}"

    def get_insert_query(self, meta, rows=1):
        if rows < 1:
            raise ValueError("An insert needs at least one row")
        columns = [column.name for _, column in self.insert_columns(meta)]
        row = f"({self.placeholders(len(columns))})"
        values = ",".join([row] * rows)
        names = ",".join(self.quote(name) for name in columns)
        sql = f"INSERT INTO {self.quote(meta.table.name)} ({names}) VALUES {values}"
        return sql + self._insert_tail(meta)

    def _insert_tail(self, meta):
        key = self.quote(meta.table.primary_key)
        return f" ON DUPLICATE KEY UPDATE {key} = LAST_INSERT_ID({key})"

    def get_update_query(self, meta, dirty_names):
        pairs = self.update_columns(meta, dirty_names or [])
        if not pairs:
            return None
        fields = ", ".join(f"{self.quote(column.name)} = ?" for _, column in pairs)
        table = meta.table
        return f"UPDATE {self.quote(table.name)} SET {fields} WHERE {self.quote(table.primary_key)} = ?"

    def get_delete_query(self, meta, count=1):
        table = meta.table
        sql = f"DELETE FROM {self.quote(table.name)} WHERE {self.quote(table.primary_key)}"
        if count == 1:
            return f"{sql} = ?"
        return f"{sql} IN ({self.placeholders(count)})"

    def _join_clauses(self, joins, table_name):
        clauses = []
        for join in joins:
            origin = self.column(table_name, join.key)
            foreign = self.column(join.table, join.foreign_key)
            kind = "JOIN" if join.kind == "JOIN" else f"{join.kind} JOIN"
            clauses.append(f"{kind} {self.quote(join.table)} ON {origin} = {foreign}")
        return clauses


class SqliteGenerator(MySqlGenerator):
    """
    SQLite accepts the MySQL quoting used above. It has no LAST_INSERT_ID
    upsert, and a multi-row insert reports the rowid of its last row.
    """

    def _insert_tail(self, meta):
        return ""

    def first_insert_id(self, reported_id, rows):
        return reported_id - rows + 1
