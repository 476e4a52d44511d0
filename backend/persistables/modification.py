class Modification:
    """One recorded change of a property: name, old value, new value."""

    __slots__ = ("_name", "_old_value", "_new_value")

    def __init__(self, name, old_value, new_value):
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_old_value", old_value)
        object.__setattr__(self, "_new_value", new_value)

    @classmethod
    def from_change(cls, name, old_value, new_value):
        return cls(name, old_value, new_value)

    @property
    def name(self):
        return self._name

    @property
    def old_value(self):
        return self._old_value

    @property
    def new_value(self):
        return self._new_value

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other):
        if not isinstance(other, Modification):
            return NotImplemented
        return (self.name, self.old_value, self.new_value) == (other.name, other.old_value, other.new_value)

    def __hash__(self):
        return hash((self.name, repr(self.old_value), repr(self.new_value)))

    def __repr__(self):
        return f"<Modification {self.name}: {self.old_value!r} -> {self.new_value!r}>"


class ModificationCollection:
    def __init__(self, modifications=None):
        self._items = []
        for modification in modifications or []:
            self.append(modification)

    def append(self, modification):
        if not isinstance(modification, Modification):
            raise TypeError(f"Value must be an instance of {Modification.__name__}")
        self._items.append(modification)

    def names(self):
        """Distinct property names in the order they were first modified."""
        return list(dict.fromkeys(m.name for m in self._items))

    def first(self):
        return self._items[0] if self._items else None

    def last(self):
        return self._items[-1] if self._items else None

    def clear(self):
        self._items.clear()

    def is_empty(self):
        return not self._items

    def count(self):
        return len(self._items)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def __reversed__(self):
        return reversed(list(self._items))

    def __bool__(self):
        return bool(self._items)

    def __repr__(self):
        return f"<ModificationCollection {self.names()}>"
