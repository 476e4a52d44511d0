import pytest

from persistables.base import Persistable
from persistables.example import ComplexAggregate, ReadonlyColumnEntity, SimpleEntity
from persistables.modification import Modification, ModificationCollection


def test_constructor_values_are_not_tracked():
    entity = SimpleEntity(id=1, name="one")

    assert entity.id == 1
    assert entity.name == "one"
    assert entity.get_modified().is_empty()


def test_declared_defaults():
    entity = SimpleEntity()

    assert entity.id is None
    assert entity.name == ""


def test_modify_records_old_and_new_values():
    entity = SimpleEntity(id=1, name="one")
    entity.modify("name", "uno")

    assert entity.name == "uno"
    assert list(entity.get_modified()) == [Modification("name", "one", "uno")]


def test_assignment_routes_through_modify():
    entity = SimpleEntity(name="a")
    entity.name = "b"

    assert entity.get_modified().count() == 1
    assert entity.get_modified().last().new_value == "b"


def test_modify_with_current_value_is_noop():
    entity = SimpleEntity(name="same")
    entity.name = "same"

    assert entity.get_modified().is_empty()


def test_repeated_identical_writes_record_once():
    entity = SimpleEntity(name="a")
    entity.name = "b"
    entity.name = "b"

    assert entity.get_modified().count() == 1


def test_non_column_attributes_are_not_tracked():
    entity = ComplexAggregate()
    entity.entity = SimpleEntity()

    assert entity.get_modified().is_empty()


def test_reset_modified():
    entity = SimpleEntity(name="a")
    entity.name = "b"
    entity.reset_modified()

    assert entity.get_modified().is_empty()
    assert entity.name == "b"


def test_rollback_restores_original_values():
    entity = ReadonlyColumnEntity(id=4, name="first", created="2024-01-01")
    entity.name = "second"
    entity.name = "third"
    entity.created = "2025-01-01"

    entity.rollback()

    assert entity.name == "first"
    assert entity.created == "2024-01-01"
    assert entity.id == 4
    assert entity.get_modified().is_empty()


def test_modified_collection_is_never_none():
    entity = SimpleEntity()
    object.__setattr__(entity, "_modified", None)

    assert isinstance(entity.get_modified(), ModificationCollection)


def test_to_dict_serializes_columns_only():
    aggregate = ComplexAggregate(id=2, entity_id=5)

    assert aggregate.to_dict() == {"id": 2, "entity_id": 5}


def test_subclasses_are_registered():
    assert Persistable._registry["SimpleEntity"] is SimpleEntity


def test_modification_is_immutable():
    modification = Modification.from_change("name", "a", "b")

    with pytest.raises(AttributeError):
        modification.name = "other"
    assert modification == Modification("name", "a", "b")
    assert hash(modification) == hash(Modification("name", "a", "b"))


def test_modification_collection_names_are_distinct_and_ordered():
    modifications = ModificationCollection([
        Modification("b", 1, 2),
        Modification("a", 1, 2),
        Modification("b", 2, 3),
    ])

    assert modifications.names() == ["b", "a"]
    assert modifications.first().name == "b"
    assert modifications.last().new_value == 3
    assert len(modifications) == 3


def test_modification_collection_rejects_other_types():
    with pytest.raises(TypeError):
        ModificationCollection().append(("name", 1, 2))
