from enum import Enum


class PersistOrder(Enum):
    # BEFORE: the owner stores the related key, so the related entity is written first.
    # AFTER: the related entities point back at the owner and are written after it.
    BEFORE = "before"
    AFTER = "after"


JOIN_KINDS = ("INNER", "LEFT", "RIGHT", "FULL OUTER", "JOIN")


class Column:
    def __init__(self, name=None, table=None, primary=False, readonly=False,
                 getter=None, setter=None, default=None):
        self.name = name
        self.table = table
        self.primary = primary
        self.readonly = readonly
        self.getter = getter
        self.setter = setter
        self.default = default

    def __repr__(self):
        parts = [f"name={self.name!r}"]
        if self.table:
            parts.append(f"table={self.table!r}")
        if self.primary:
            parts.append("primary")
        if self.readonly:
            parts.append("readonly")
        return f"<Column {', '.join(parts)}>"


class Relation:
    """
    Marks a property holding another entity (or a collection of them).

    target may be a class, a class name, or left out so the property's
    annotation decides. candidates lists classes to try when the
    annotation does not point at a single entity type.
    """

    def __init__(self, target=None, foreign=None, order=PersistOrder.AFTER,
                 getter=None, setter=None, candidates=None):
        self.target = target
        self.foreign = foreign
        self.order = order
        self.getter = getter
        self.setter = setter
        self.candidates = list(candidates) if candidates else []

    def __repr__(self):
        target = getattr(self.target, "__name__", self.target)
        return f"<Relation target={target} foreign={self.foreign} order={self.order.name}>"


class Join:
    def __init__(self, kind, table, key, foreign=None):
        self.kind = kind
        self.table = table
        self.key = key
        self.foreign = foreign

    def __repr__(self):
        on = self.foreign or self.key
        return f"<Join {self.kind} {self.table} ON {self.key}={on}>"
