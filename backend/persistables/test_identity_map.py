from persistables.example import ChildEntity, SimpleEntity
from persistables.identity_map import IdentityMap


def test_find_and_remember():
    identity_map = IdentityMap()
    entity = SimpleEntity(id=1)
    identity_map.remember(SimpleEntity, 1, entity)

    assert identity_map.find(SimpleEntity, 1) is entity
    assert identity_map.find(ChildEntity, 1) is None
    assert (SimpleEntity, 1) in identity_map
    assert len(identity_map) == 1


def test_digit_strings_match_integer_keys():
    identity_map = IdentityMap()
    entity = SimpleEntity(id=7)
    identity_map.remember(SimpleEntity, "7", entity)

    assert identity_map.find(SimpleEntity, 7) is entity
    identity_map.forget(SimpleEntity, 7)
    assert identity_map.find(SimpleEntity, "7") is None
