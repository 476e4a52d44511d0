from typing import Optional

from persistables import Collection, Column, Persistable, PersistOrder, Relation


class Owner(Persistable):
    class Meta:
        table_name = "owners"

    owner_id = Column(primary=True)
    first_name = Column()
    last_name = Column()
    email = Column()
    phone = Column()
    pets: "Pets" = Relation(foreign="owner_id")


class Pet(Persistable):
    class Meta:
        table_name = "pets"

    pet_id = Column(primary=True)
    owner_id = Column()
    name = Column()
    species = Column()
    breed = Column()
    birth_date = Column()
    owner: Optional[Owner] = Relation(foreign="owner_id", order=PersistOrder.BEFORE)

    def set_owner(self, owner):
        object.__setattr__(self, "owner", owner)
        if owner is not None:
            self.owner_id = owner.owner_id


class Pets(Collection):
    entity_class = Pet


class Owners(Collection):
    entity_class = Owner


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS owners (
        owner_id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT,
        last_name TEXT,
        email TEXT,
        phone TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pets (
        pet_id INTEGER PRIMARY KEY AUTOINCREMENT,
        owner_id INTEGER REFERENCES owners (owner_id),
        name TEXT,
        species TEXT,
        breed TEXT,
        birth_date TEXT
    )
    """,
]


def create_schema(engine):
    for statement in SCHEMA:
        engine.execute(statement)
