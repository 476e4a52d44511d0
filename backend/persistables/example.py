from typing import Optional, Union

from persistables.base import Persistable
from persistables.collection import Collection
from persistables.orm_types import Column, Join, PersistOrder, Relation


# Plain entities
class SimpleEntity(Persistable):
    class Meta:
        table_name = "simple_entity"
        primary_key = "id"

    id = Column(primary=True)
    name = Column(default="")


class AlphaEntity(Persistable):
    class Meta:
        table_name = "alpha"

    id = Column("alpha_id", primary=True)
    name = Column("alpha_name", default="")


class ReadonlyColumnEntity(Persistable):
    class Meta:
        table_name = "readonly_entity"

    id = Column(primary=True)
    name = Column()
    created = Column(readonly=True)


class WithCustomAccessor(Persistable):
    class Meta:
        table_name = "custom_accessor"

    id = Column(primary=True)
    label = Column("label_text", getter="read_label", setter="write_label")

    def read_label(self):
        return (self.label or "").strip()

    def write_label(self, value):
        self.modify("label", (value or "").strip())


class WithConventionalAccessor(Persistable):
    class Meta:
        table_name = "conventional_accessor"

    id = Column(primary=True)
    name = Column()

    def get_name(self):
        return self.name.upper() if self.name else self.name

    def set_name(self, value):
        self.name = value


# Joined-table columns
class UserProfile(Persistable):
    class Meta:
        table_name = "users"
        joins = [Join("LEFT", "profiles", "user_id")]

    id = Column("user_id", primary=True)
    email = Column()
    bio = Column(table="profiles")


# Aggregates
class ChildEntity(Persistable):
    class Meta:
        table_name = "children"

    id = Column(primary=True)
    aggregate_id = Column()
    name = Column(default="")


class Children(Collection):
    entity_class = ChildEntity


class OwnerAggregate(Persistable):
    class Meta:
        table_name = "owner_aggregates"

    id = Column(primary=True)
    name = Column(default="")
    children: Children = Relation(foreign="aggregate_id")


class ComplexAggregate(Persistable):
    class Meta:
        table_name = "complex_aggregates"

    id = Column(primary=True)
    entity_id = Column()
    entity: Optional[SimpleEntity] = Relation(foreign="entity_id", order=PersistOrder.BEFORE)
    children: Children = Relation(foreign="aggregate_id")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.children is None:
            self.children = Children()


# Relation target resolution
class WithEntityExplicit(Persistable):
    class Meta:
        table_name = "explicit_entity"

    id = Column(primary=True)
    simple_id = Column()
    simple = Relation(target=SimpleEntity, foreign="simple_id", order=PersistOrder.BEFORE)


class WithEntityByName(Persistable):
    class Meta:
        table_name = "named_entity"

    id = Column(primary=True)
    simple_id = Column()
    simple = Relation(target="SimpleEntity", foreign="simple_id", order=PersistOrder.BEFORE)


class WithEntityImplicitNullable(Persistable):
    class Meta:
        table_name = "implicit_entity"

    id = Column(primary=True)
    simple_id = Column()
    simple: "SimpleEntity | None" = Relation(foreign="simple_id", order=PersistOrder.BEFORE)


class WithEntityUnion(Persistable):
    class Meta:
        table_name = "union_entity"

    id = Column(primary=True)
    item_id = Column()
    item: Union[int, SimpleEntity, None] = Relation(foreign="item_id", order=PersistOrder.BEFORE)


class WithEntityCandidates(Persistable):
    class Meta:
        table_name = "candidate_entity"

    id = Column(primary=True)
    item_id = Column()
    item: object = Relation(
        foreign="item_id",
        order=PersistOrder.BEFORE,
        candidates=[int, "SimpleEntity"],
    )
