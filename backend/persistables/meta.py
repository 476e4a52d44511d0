"""
Resolved mapping descriptors.

These are built once per entity class by the MetaFactory and never change
afterwards; the SQL generators and the Session only ever read them.
"""
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from persistables.orm_types import PersistOrder


class Accessor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    call: Callable[..., Any] = Field(repr=False)

    def __call__(self, entity, *args):
        return self.call(entity, *args)


class Table(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    primary_key: str


class ColumnMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    table: Optional[str] = None
    primary: bool = False
    readonly: bool = False
    getter: Accessor
    setter: Optional[Accessor] = None


class JoinMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["INNER", "LEFT", "RIGHT", "FULL OUTER", "JOIN"]
    table: str
    key: str
    foreign: Optional[str] = None

    @property
    def foreign_key(self):
        return self.foreign or self.key


class RelationMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: type
    foreign: Optional[str] = None
    nullable: bool = False
    is_collection: bool = False
    getter: Accessor
    setter: Accessor
    order: PersistOrder = PersistOrder.AFTER


class Meta(BaseModel):
    model_config = ConfigDict(frozen=True)

    table: Table
    columns: Dict[str, ColumnMeta]
    joins: Optional[List[JoinMeta]] = None
    relations: Optional[Dict[str, RelationMeta]] = None

    @property
    def primary_property(self):
        """Name of the property mapped to the table's primary key."""
        for prop, column in self.columns.items():
            if column.primary:
                return prop
        return None

    @property
    def primary_column(self):
        return self.columns[self.primary_property]

    def relations_in_order(self, order):
        return [
            (name, relation)
            for name, relation in (self.relations or {}).items()
            if relation.order is order
        ]

    def __repr__(self):
        cols = ", ".join(self.columns.keys())
        rels = ", ".join((self.relations or {}).keys()) or "None"
        return (
            f"<Meta table={self.table.name} pk={self.table.primary_key} "
            f"columns=[{cols}] relations=[{rels}]>"
        )
