import functools
import logging
import operator
import threading
import types
from typing import Union, get_args, get_origin, get_type_hints

from pydantic import ValidationError

from persistables.base import Persistable
from persistables.collection import Collection
from persistables.exceptions import ConfigurationError
from persistables.meta import Accessor, ColumnMeta, JoinMeta, Meta, RelationMeta, Table
from persistables.orm_types import JOIN_KINDS, Join, PersistOrder

logger = logging.getLogger(__name__)


def _assign(prop, entity, value):
    setattr(entity, prop, value)


def is_entity_type(candidate):
    return (
        isinstance(candidate, type)
        and candidate not in (Persistable, Collection)
        and issubclass(candidate, (Persistable, Collection))
    )


class MetaFactory:
    """
    Builds the Meta for an entity class once and caches it.

    The cache is keyed by the class object itself, so two classes sharing a
    qualified name never share a Meta. Reads are lock free; the first build
    of a class happens under a lock so two threads cannot publish different
    Meta objects for it.
    """

    def __init__(self):
        self._meta = {}
        self._lock = threading.Lock()

    def has(self, cls):
        return cls in self._meta

    def clear(self):
        with self._lock:
            self._meta.clear()

    def get(self, cls, refresh=False):
        self._validate_class(cls)
        if not refresh:
            meta = self._meta.get(cls)
            if meta is not None:
                return meta

        with self._lock:
            meta = None if refresh else self._meta.get(cls)
            if meta is None:
                meta = self._build(cls)
                self._meta[cls] = meta
                logger.debug("Built %r for %s.%s", meta, cls.__module__, cls.__qualname__)
        return meta

    def _build(self, cls):
        declaration = getattr(cls, "Meta", None)
        table_name = getattr(declaration, "table_name", None)
        if not table_name:
            raise ConfigurationError(
                f"Persistable class {cls.__name__} requires a Table declaration (Meta.table_name)."
            )

        columns = {
            name: self._build_column(cls, name, column)
            for name, column in cls._declared_columns.items()
        }
        if not columns:
            raise ConfigurationError(
                f"Persistable class {cls.__name__} requires one or more Column declarations."
            )

        table, columns = self._resolve_table(cls, table_name, declaration, columns)
        joins = [self._build_join(cls, join) for join in getattr(declaration, "joins", None) or []]

        hints = self._type_hints(cls)
        relations = {
            name: self._build_relation(cls, name, relation, hints.get(name), columns)
            for name, relation in cls._declared_relations.items()
        }

        return Meta(
            table=table,
            columns=columns,
            joins=joins or None,
            relations=relations or None,
        )

    def _build_column(self, cls, name, column):
        return ColumnMeta(
            name=column.name or name,
            table=column.table,
            primary=column.primary,
            readonly=column.readonly,
            getter=self._accessor(cls, name, column.getter, "get"),
            setter=None if column.readonly else self._accessor(cls, name, column.setter, "set"),
        )

    def _resolve_table(self, cls, table_name, declaration, columns):
        primary_key = getattr(declaration, "primary_key", None)
        if primary_key is None:
            flagged = [c.name for c in columns.values() if c.primary]
            if not flagged:
                raise ConfigurationError(
                    f"Persistable class {cls.__name__} declares no primary key "
                    f"(Meta.primary_key or Column(primary=True))."
                )
            primary_key = flagged[0]

        primary_prop = None
        for prop, column in columns.items():
            own_table = column.table in (None, table_name)
            if column.name == primary_key and own_table and primary_prop is None:
                primary_prop = prop
            elif column.primary:
                raise ConfigurationError(
                    f"Column {prop} of {cls.__name__} is flagged primary but the "
                    f"table primary key is {primary_key}."
                )
        if primary_prop is None:
            raise ConfigurationError(
                f"Primary key {primary_key} of {cls.__name__} is not mapped to a Column."
            )

        columns = dict(columns)
        if not columns[primary_prop].primary:
            columns[primary_prop] = columns[primary_prop].model_copy(update={"primary": True})
        return Table(name=table_name, primary_key=primary_key), columns

    def _build_join(self, cls, join):
        if not isinstance(join, Join):
            raise ConfigurationError(f"Joins of {cls.__name__} must be Join instances, got {join!r}")
        try:
            return JoinMeta(kind=str(join.kind).upper(), table=join.table, key=join.key, foreign=join.foreign)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid join {join!r} on {cls.__name__}; kind must be one of {', '.join(JOIN_KINDS)}"
            ) from exc

    def _build_relation(self, cls, name, relation, hint, columns):
        target = self._resolve_target(cls, name, relation, hint)
        if relation.order is PersistOrder.BEFORE and relation.foreign and relation.foreign not in columns:
            raise ConfigurationError(
                f"Relation {name} of {cls.__name__} stores its key in {relation.foreign}, "
                f"which is not a Column."
            )
        return RelationMeta(
            target=target,
            foreign=relation.foreign,
            nullable=self._is_nullable(hint),
            is_collection=issubclass(target, Collection),
            getter=self._accessor(cls, name, relation.getter, "get"),
            setter=self._accessor(cls, name, relation.setter, "set"),
            order=relation.order,
        )

    def _resolve_target(self, cls, name, relation, hint):
        if relation.target is not None:
            target = self._lookup(relation.target)
            if not is_entity_type(target):
                raise ConfigurationError(
                    f"Relation {name} of {cls.__name__}: class {relation.target} does not exist "
                    f"or does not implement Persistable"
                )
            return target

        if hint is not None:
            if get_origin(hint) in (Union, types.UnionType):
                for member in get_args(hint):
                    if is_entity_type(member):
                        return member
            else:
                target = self._lookup(hint)
                if is_entity_type(target):
                    return target
                if not relation.candidates:
                    raise ConfigurationError(
                        f"Relation {name} of {cls.__name__}: type {hint} does not implement Persistable"
                    )

        for candidate in relation.candidates:
            candidate = self._lookup(candidate)
            if is_entity_type(candidate):
                return candidate

        raise ConfigurationError(
            f"Relation {name} of {cls.__name__}: cannot infer a Persistable target from {hint}"
        )

    @staticmethod
    def _lookup(target):
        if isinstance(target, str):
            return Persistable._registry.get(target) or Collection._registry.get(target)
        return target

    @staticmethod
    def _is_nullable(hint):
        if hint is None:
            return True
        if get_origin(hint) in (Union, types.UnionType):
            return type(None) in get_args(hint)
        return False

    @staticmethod
    def _type_hints(cls):
        namespace = {**Collection._registry, **Persistable._registry}
        try:
            return get_type_hints(cls, localns=namespace)
        except (NameError, TypeError):
            # unresolvable forward references; keep raw annotations
            hints = {}
            for klass in reversed(cls.__mro__):
                hints.update(vars(klass).get("__annotations__", {}))
            return hints

    def _accessor(self, cls, prop, explicit, kind):
        if explicit:
            method = getattr(cls, explicit, None)
            if not callable(method):
                raise ConfigurationError(f"Method {explicit} not found in class {cls.__name__}")
            return Accessor(name=explicit, call=method)

        conventional = f"{kind}_{prop}"
        method = getattr(cls, conventional, None)
        if callable(method):
            return Accessor(name=conventional, call=method)

        if not hasattr(cls, prop):
            raise ConfigurationError(f"Property {prop} not found in class {cls.__name__}")
        if kind == "get":
            return Accessor(name=prop, call=operator.attrgetter(prop))
        return Accessor(name=prop, call=functools.partial(_assign, prop))

    @staticmethod
    def _validate_class(cls):
        if not (isinstance(cls, type) and issubclass(cls, Persistable) and cls is not Persistable):
            raise ConfigurationError(
                f"Class {getattr(cls, '__name__', cls)} does not exist or does not implement Persistable"
            )
