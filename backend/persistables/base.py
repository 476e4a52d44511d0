import logging

from persistables.modification import Modification, ModificationCollection
from persistables.orm_types import Column, Relation

logger = logging.getLogger(__name__)


class Persistable:
    """
    Base class for mapped entities.

    Declared columns are tracked: assigning one records a Modification when
    the value actually changes. Keyword arguments given to the constructor
    are the initial state and are not tracked.
    """

    _registry = {}
    _declared_columns = {}
    _declared_relations = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        columns = {}
        relations = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Column):
                    columns[name] = value
                    relations.pop(name, None)
                elif isinstance(value, Relation):
                    relations[name] = value
                    columns.pop(name, None)

        cls._declared_columns = columns
        cls._declared_relations = relations
        known = Persistable._registry.get(cls.__name__)
        if known is not None and known is not cls:
            logger.warning("Entity name %s now refers to %s.%s", cls.__name__, cls.__module__, cls.__qualname__)
        Persistable._registry[cls.__name__] = cls

    def __init__(self, **kwargs):
        object.__setattr__(self, "_modified", None)
        for name, column in self._declared_columns.items():
            object.__setattr__(self, name, column.default)
        for name in self._declared_relations:
            object.__setattr__(self, name, None)
        for key, value in kwargs.items():
            object.__setattr__(self, key, value)

    def __setattr__(self, name, value):
        if name in self._declared_columns:
            self.modify(name, value)
        else:
            object.__setattr__(self, name, value)

    def __repr__(self):
        values = ", ".join(f"{name}={self.__dict__.get(name)!r}" for name in self._declared_columns)
        return f"<{type(self).__name__}({values})>"

    def modify(self, name, new):
        """Assign new to the property name, recording the change if there is one."""
        old = self.__dict__.get(name)
        if old == new:
            return
        self.get_modified().append(Modification.from_change(name, old, new))
        object.__setattr__(self, name, new)

    def get_modified(self):
        if self._modified is None:
            object.__setattr__(self, "_modified", ModificationCollection())
        return self._modified

    def reset_modified(self):
        self.get_modified().clear()

    def rollback(self):
        # newest first, so a property changed twice ends at its first old value
        for modification in reversed(self.get_modified()):
            object.__setattr__(self, modification.name, modification.old_value)
        self.get_modified().clear()

    def to_dict(self):
        return {name: self.__dict__.get(name) for name in self._declared_columns}
