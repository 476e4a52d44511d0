class PersistablesError(Exception):
    pass


class ConfigurationError(PersistablesError, ValueError):
    """An entity class is declared in a way that cannot be mapped."""


class PersistenceError(PersistablesError, RuntimeError):
    """A write that had to touch rows reported that it touched none."""


class InsertError(PersistenceError):
    pass


class UpdateError(PersistenceError):
    pass


class DeleteError(PersistenceError):
    pass
