import logging
import sqlite3

from persistables.base import Persistable
from persistables.builder import MySqlGenerator, SqliteGenerator
from persistables.collection import Collection
from persistables.exceptions import ConfigurationError, DeleteError, InsertError, UpdateError
from persistables.identity_map import IdentityMap
from persistables.mapper import MetaFactory
from persistables.orm_types import PersistOrder

logger = logging.getLogger(__name__)


def is_empty_key(value):
    return value is None or value == "" or value == 0


def default_generator(engine):
    if isinstance(getattr(engine, "connection", None), sqlite3.Connection):
        return SqliteGenerator()
    return MySqlGenerator()


class Session:
    """
    Persists and loads graphs of entities.

    persist walks BEFORE relations first, writes the entity (or every
    entity of a collection), then walks AFTER relations. desist deletes
    owned AFTER relations before the owner. Reads hydrate both kinds of
    relation recursively.

    Without an explicit generator, an engine on a sqlite3 connection gets
    SqliteGenerator and anything else gets MySqlGenerator.
    """

    def __init__(self, engine, meta_factory=None, generator=None):
        self.engine = engine
        self.meta_factory = meta_factory or MetaFactory()
        self.generator = generator or default_generator(engine)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        self.engine.close()

    def get_meta(self, entity_class):
        return self.meta_factory.get(entity_class)

    def get_primary_key(self, entity):
        meta = self.get_meta(type(entity))
        return meta.primary_column.getter(entity)

    def set_primary_key(self, entity, value):
        meta = self.get_meta(type(entity))
        self._assign(entity, meta.primary_property, meta.primary_column, value)

    @staticmethod
    def _assign(entity, prop, column, value):
        if column.setter is None:
            object.__setattr__(entity, prop, value)
        else:
            column.setter(entity, value)

    def is_insert(self, entity):
        return is_empty_key(self.get_primary_key(entity))

    def is_update(self, entity):
        return not self.is_insert(entity) and not entity.get_modified().is_empty()

    def persist(self, target):
        """Insert or update target and everything reachable through its relations."""
        self._persist(target, set())

    def _persist(self, target, seen):
        entities = [e for e in self._entities(target) if id(e) not in seen]
        if not entities:
            return
        seen.update(id(e) for e in entities)

        for entity in entities:
            self._persist_before(entity, seen)

        for entity_class, group in self._group(entities).items():
            self._write(self.get_meta(entity_class), group)

        for entity in entities:
            self._persist_after(entity, seen)

    def _persist_before(self, entity, seen):
        meta = self.get_meta(type(entity))
        for name, relation in meta.relations_in_order(PersistOrder.BEFORE):
            related = relation.getter(entity)
            if related is None:
                continue
            self._persist(related, seen)
            if relation.is_collection:
                continue

            foreign = self._before_foreign(meta, name, relation)
            key = self.get_primary_key(related)
            logger.debug("Linking %s.%s = %r", type(entity).__name__, foreign, key)
            self._assign(entity, foreign, meta.columns[foreign], key)

    def _persist_after(self, entity, seen):
        meta = self.get_meta(type(entity))
        owner_key = meta.primary_column.getter(entity)
        for name, relation in meta.relations_in_order(PersistOrder.AFTER):
            related = relation.getter(entity)
            if related is None:
                continue
            target_meta = self.get_meta(self._entity_class(name, relation))
            foreign = self._after_foreign(meta, target_meta, name, relation)
            column = target_meta.columns[foreign]
            for child in self._entities(related):
                if is_empty_key(column.getter(child)):
                    self._assign(child, foreign, column, owner_key)
            self._persist(related, seen)

    def _write(self, meta, entities):
        inserts = []
        for entity in entities:
            if self.is_insert(entity):
                inserts.append(entity)
            elif self.is_update(entity):
                self._update(meta, entity)
        if inserts:
            self._insert(meta, inserts)

    def _insert(self, meta, entities):
        if len(entities) > 1 and not self.generator.contiguous_insert_ids:
            for entity in entities:
                self._insert(meta, [entity])
            return

        pairs = self.generator.insert_columns(meta)
        sql = self.generator.get_insert_query(meta, len(entities))
        params = []
        for entity in entities:
            params.extend(None if column.primary else column.getter(entity) for _, column in pairs)

        reported = self.engine.insert_id(sql, params)
        if not reported:
            raise InsertError(f"The {meta.table.name} records could not be inserted")

        first = self.generator.first_insert_id(reported, len(entities))
        for offset, entity in enumerate(entities):
            self.set_primary_key(entity, first + offset)
            entity.reset_modified()
        logger.debug("Inserted %d row(s) into %s starting at %s", len(entities), meta.table.name, first)

    def _update(self, meta, entity):
        names = entity.get_modified().names()
        sql = self.generator.get_update_query(meta, names)
        if sql is None:
            # only readonly or joined columns changed
            entity.reset_modified()
            return

        params = [column.getter(entity) for _, column in self.generator.update_columns(meta, names)]
        params.append(meta.primary_column.getter(entity))
        if self.engine.affected_rows(sql, params) < 1:
            raise UpdateError(f"The {meta.table.name} record could not be updated")
        entity.reset_modified()

    def desist(self, target):
        """Delete target, deleting its AFTER relations first."""
        entities = self._entities(target)
        for entity_class, group in self._group(entities).items():
            meta = self.get_meta(entity_class)
            for entity in group:
                for _, relation in meta.relations_in_order(PersistOrder.AFTER):
                    related = relation.getter(entity)
                    if related is not None:
                        self.desist(related)

            keys = [meta.primary_column.getter(e) for e in group]
            keys = [key for key in keys if not is_empty_key(key)]
            if not keys:
                continue
            sql = self.generator.get_delete_query(meta, len(keys))
            if not self.engine.execute(sql, keys):
                raise DeleteError(f"The {meta.table.name} records could not be deleted")

    def get_entity_by_primary_key(self, entity_class, key, identity_map=None):
        meta = self.get_meta(entity_class)
        identity_map = identity_map if identity_map is not None else IdentityMap()
        cached = identity_map.find(entity_class, key)
        if cached is not None:
            return cached

        row = self.engine.fetch_row(self.generator.get_select_query(meta), [key])
        if not row:
            return None
        return self._hydrate(meta, entity_class, row, identity_map)

    def get_entity_collection(self, sql, collection, params=None):
        """Fill collection from sql, keyed by primary key where that key is free."""
        entity_class = collection.get_entity_class()
        if entity_class is None:
            raise ConfigurationError(f"{type(collection).__name__} declares no entity_class")
        meta = self.get_meta(entity_class)
        identity_map = IdentityMap()
        for row in self.engine.fetch_all(sql, params):
            entity = self._hydrate(meta, entity_class, row, identity_map)
            self._collect(collection, meta, entity)
        return collection

    def execute_transaction(self, commands):
        return self.engine.execute_transaction(commands)

    @staticmethod
    def _collect(collection, meta, entity):
        key = meta.primary_column.getter(entity)
        if is_empty_key(key) or collection.has(key):
            collection.append(entity)
        else:
            collection.set(key, entity)

    def _hydrate(self, meta, entity_class, row, identity_map):
        key = row.get(meta.primary_property)
        known = not is_empty_key(key)
        cached = identity_map.find(entity_class, key) if known else None
        if cached is not None:
            return cached

        entity = entity_class()
        for prop, column in meta.columns.items():
            if prop in row:
                self._assign(entity, prop, column, row[prop])
        entity.reset_modified()
        if known:
            identity_map.remember(entity_class, key, entity)

        for name, relation in meta.relations_in_order(PersistOrder.BEFORE):
            if relation.is_collection:
                continue
            foreign = self._before_foreign(meta, name, relation)
            foreign_key = meta.columns[foreign].getter(entity)
            if is_empty_key(foreign_key):
                continue
            related = self.get_entity_by_primary_key(relation.target, foreign_key, identity_map)
            if related is not None:
                relation.setter(entity, related)

        owner_key = meta.primary_column.getter(entity)
        for name, relation in meta.relations_in_order(PersistOrder.AFTER):
            related = self._load_owned(meta, name, relation, owner_key, identity_map)
            if related is not None:
                relation.setter(entity, related)
        return entity

    def _load_owned(self, meta, name, relation, owner_key, identity_map):
        target_class = self._entity_class(name, relation)
        target_meta = self.get_meta(target_class)
        foreign = self._after_foreign(meta, target_meta, name, relation)
        column = target_meta.columns[foreign]
        clause = f"{self.generator.column(column.table or target_meta.table.name, column.name)} = ?"
        sql = self.generator.get_select_query(target_meta, clause)

        if relation.is_collection:
            collection = relation.target()
            for row in self.engine.fetch_all(sql, [owner_key]):
                child = self._hydrate(target_meta, target_class, row, identity_map)
                self._collect(collection, target_meta, child)
            return collection

        row = self.engine.fetch_row(sql, [owner_key])
        if not row:
            return None
        return self._hydrate(target_meta, target_class, row, identity_map)

    @staticmethod
    def _entities(target):
        if isinstance(target, Persistable):
            return [target]
        if isinstance(target, (Collection, list, tuple)):
            entities = list(target)
            for entity in entities:
                if not isinstance(entity, Persistable):
                    raise TypeError(f"{entity!r} is not a Persistable")
            return entities
        raise TypeError("The object must be an instance of Persistable or Collection")

    @staticmethod
    def _group(entities):
        groups = {}
        for entity in entities:
            groups.setdefault(type(entity), []).append(entity)
        return groups

    @staticmethod
    def _entity_class(name, relation):
        if not relation.is_collection:
            return relation.target
        entity_class = relation.target.entity_class
        if entity_class is None:
            raise ConfigurationError(
                f"Relation {name}: collection {relation.target.__name__} declares no entity_class"
            )
        return entity_class

    def _before_foreign(self, meta, name, relation):
        foreign = relation.foreign or self.get_meta(relation.target).primary_property
        if foreign not in meta.columns:
            raise ConfigurationError(f"Relation {name} stores its key in {foreign}, which is not a Column")
        return foreign

    @staticmethod
    def _after_foreign(meta, target_meta, name, relation):
        foreign = relation.foreign or meta.primary_property
        if foreign not in target_meta.columns:
            raise ConfigurationError(
                f"Relation {name}: {foreign} is not a Column of {target_meta.table.name}"
            )
        return foreign
