import logging

logger = logging.getLogger(__name__)


class Collection:
    """
    An ordered, keyed list of entities that all share one class.

    Subclasses set ``entity_class``. Items appended without a key get the
    next free integer key.
    """

    entity_class = None
    _registry = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        known = Collection._registry.get(cls.__name__)
        if known is not None and known is not cls:
            logger.warning("Collection name %s now refers to %s.%s", cls.__name__, cls.__module__, cls.__qualname__)
        Collection._registry[cls.__name__] = cls

    def __init__(self, items=None):
        self._items = {}
        self._next_key = 0
        if isinstance(items, dict):
            for key, value in items.items():
                self.set(key, value)
        else:
            for value in items or []:
                self.append(value)

    def get_entity_class(self):
        return self.entity_class

    def validate(self, value):
        entity_class = self.get_entity_class()
        if entity_class is None or type(value) is not entity_class:
            name = getattr(entity_class, "__name__", entity_class)
            raise TypeError(f"Value must be an instance of {name}")

    def append(self, value):
        self.validate(value)
        while self._next_key in self._items:
            self._next_key += 1
        self._items[self._next_key] = value
        self._next_key += 1
        return self

    def set(self, key, value):
        self.validate(value)
        self._items[key] = value
        if isinstance(key, int) and key >= self._next_key:
            self._next_key = key + 1
        return self

    def get(self, key, default=None):
        return self._items.get(key, default)

    def has(self, key):
        return key in self._items

    def remove(self, key):
        return self._items.pop(key, None)

    def keys(self):
        return list(self._items.keys())

    def items(self):
        return list(self._items.items())

    def first(self):
        return next(iter(self._items.values()), None)

    def last(self):
        return next(reversed(self._items.values()), None) if self._items else None

    def filter(self, predicate):
        """A new collection of the same class holding items that pass predicate."""
        out = type(self)()
        for key, value in self._items.items():
            if predicate(value):
                out.set(key, value)
        return out

    def reduce(self, fn, initial=None):
        carry = initial
        for value in self._items.values():
            carry = fn(carry, value)
        return carry

    def count(self):
        return len(self._items)

    def is_empty(self):
        return not self._items

    def clear(self):
        self._items.clear()
        self._next_key = 0

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items.values()))

    def __contains__(self, value):
        return any(item is value for item in self._items.values())

    def __getitem__(self, key):
        return self._items[key]

    def __repr__(self):
        name = getattr(self.entity_class, "__name__", None)
        return f"<{type(self).__name__} of {name} count={len(self)}>"
