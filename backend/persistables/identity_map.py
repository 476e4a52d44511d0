class IdentityMap:
    """
    Entities hydrated during one read, keyed by class and primary key.

    A key given as a string of digits finds the same entity as its integer
    form, since drivers and callers disagree about which one they hand over.
    """

    def __init__(self):
        self._entities = {}

    @staticmethod
    def key(entity_class, pk):
        if isinstance(pk, str) and pk.isdigit():
            pk = int(pk)
        return entity_class, pk

    def find(self, entity_class, pk):
        return self._entities.get(self.key(entity_class, pk))

    def remember(self, entity_class, pk, entity):
        self._entities[self.key(entity_class, pk)] = entity

    def forget(self, entity_class, pk):
        self._entities.pop(self.key(entity_class, pk), None)

    def __contains__(self, item):
        entity_class, pk = item
        return self.key(entity_class, pk) in self._entities

    def __len__(self):
        return len(self._entities)
