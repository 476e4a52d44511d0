import pytest

from persistables.builder import MySqlGenerator, SqliteGenerator
from persistables.exceptions import ConfigurationError
from persistables.example import AlphaEntity, ReadonlyColumnEntity, SimpleEntity, UserProfile
from persistables.mapper import MetaFactory
from persistables.meta import Accessor, ColumnMeta, Meta, Table


@pytest.fixture
def factory():
    return MetaFactory()


@pytest.fixture
def generator():
    return MySqlGenerator()


def test_select_aliases_only_renamed_columns(factory, generator):
    meta = factory.get(AlphaEntity)

    assert generator.get_select_query(meta) == (
        "SELECT `alpha`.`alpha_id` AS `id`, `alpha`.`alpha_name` AS `name` "
        "FROM `alpha` WHERE `alpha_id` = ?"
    )


def test_select_without_aliases(factory, generator):
    meta = factory.get(SimpleEntity)

    assert generator.get_select_query(meta) == (
        "SELECT `simple_entity`.`id`, `simple_entity`.`name` FROM `simple_entity` WHERE `id` = ?"
    )


def test_select_with_custom_clause(factory, generator):
    meta = factory.get(SimpleEntity)

    sql = generator.get_select_query(meta, "`simple_entity`.`name` = ?")
    assert sql.endswith("FROM `simple_entity` WHERE `simple_entity`.`name` = ?")


def test_select_with_join(factory, generator):
    meta = factory.get(UserProfile)

    assert generator.get_select_query(meta) == (
        "SELECT `users`.`user_id` AS `id`, `users`.`email`, `profiles`.`bio` FROM `users` "
        "LEFT JOIN `profiles` ON `users`.`user_id` = `profiles`.`user_id` "
        "WHERE `users`.`user_id` = ?"
    )


def test_insert_single_row(factory, generator):
    meta = factory.get(AlphaEntity)

    assert generator.get_insert_query(meta, 1) == (
        "INSERT INTO `alpha` (`alpha_id`,`alpha_name`) VALUES (?,?) "
        "ON DUPLICATE KEY UPDATE `alpha_id` = LAST_INSERT_ID(`alpha_id`)"
    )


def test_insert_many_rows(factory, generator):
    meta = factory.get(AlphaEntity)

    sql = generator.get_insert_query(meta, 3)
    assert "VALUES (?,?),(?,?),(?,?) ON DUPLICATE KEY" in sql


def test_insert_excludes_readonly_and_joined_columns(factory, generator):
    readonly = factory.get(ReadonlyColumnEntity)
    joined = factory.get(UserProfile)

    assert generator.get_insert_query(readonly).startswith(
        "INSERT INTO `readonly_entity` (`id`,`name`) VALUES (?,?)"
    )
    assert generator.get_insert_query(joined).startswith(
        "INSERT INTO `users` (`user_id`,`email`) VALUES (?,?)"
    )


def test_insert_needs_a_row(factory, generator):
    with pytest.raises(ValueError):
        generator.get_insert_query(factory.get(SimpleEntity), 0)


def test_update_uses_only_dirty_columns(factory, generator):
    meta = factory.get(AlphaEntity)

    assert generator.get_update_query(meta, ["name"]) == (
        "UPDATE `alpha` SET `alpha_name` = ? WHERE `alpha_id` = ?"
    )


def test_update_skips_primary_readonly_and_joined(factory, generator):
    readonly = factory.get(ReadonlyColumnEntity)
    joined = factory.get(UserProfile)

    assert generator.get_update_query(readonly, ["created", "id", "name", "name"]) == (
        "UPDATE `readonly_entity` SET `name` = ? WHERE `id` = ?"
    )
    assert generator.get_update_query(joined, ["bio"]) is None
    assert generator.get_update_query(readonly, []) is None


def test_update_columns_follow_dirty_order(factory, generator):
    meta = factory.get(ReadonlyColumnEntity)

    pairs = generator.update_columns(meta, ["name", "unknown"])
    assert [prop for prop, _ in pairs] == ["name"]


def test_delete_single_and_batch(factory, generator):
    meta = factory.get(AlphaEntity)

    assert generator.get_delete_query(meta) == "DELETE FROM `alpha` WHERE `alpha_id` = ?"
    assert generator.get_delete_query(meta, 3) == "DELETE FROM `alpha` WHERE `alpha_id` IN (?,?,?)"


def test_unsafe_identifier_is_rejected(generator):
    getter = Accessor(name="id", call=lambda entity: None)
    meta = Meta(
        table=Table(name="alpha; DROP TABLE alpha", primary_key="id"),
        columns={"id": ColumnMeta(name="id", primary=True, getter=getter)},
    )

    with pytest.raises(ConfigurationError, match="Unsafe"):
        generator.get_select_query(meta)


def test_placeholders():
    assert MySqlGenerator.placeholders(1) == "?"
    assert MySqlGenerator.placeholders(4) == "?,?,?,?"
    with pytest.raises(ValueError):
        MySqlGenerator.placeholders(0)


def test_sqlite_generator_drops_upsert_tail(factory):
    generator = SqliteGenerator()
    meta = factory.get(AlphaEntity)

    assert generator.get_insert_query(meta, 2) == (
        "INSERT INTO `alpha` (`alpha_id`,`alpha_name`) VALUES (?,?),(?,?)"
    )
    assert generator.first_insert_id(12, 3) == 10
    assert MySqlGenerator().first_insert_id(12, 3) == 12
