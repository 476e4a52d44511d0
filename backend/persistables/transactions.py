from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class SqlCommand(BaseModel):
    """A statement and the values bound to it, run as one step of a transaction."""

    model_config = ConfigDict(frozen=True)

    query: str
    params: List[Any] = Field(default_factory=list)

    def __init__(self, query, params=None, **data):
        super().__init__(query=query, params=list(params or []), **data)


class CommandSequence:
    def __init__(self, commands=None):
        self._commands = []
        for command in commands or []:
            self.append(command)

    def append(self, command, params=None):
        if isinstance(command, str):
            command = SqlCommand(command, params)
        if not isinstance(command, SqlCommand):
            raise TypeError(f"Value must be an instance of: {SqlCommand.__name__}")
        self._commands.append(command)
        return self

    def is_empty(self):
        return not self._commands

    def __len__(self):
        return len(self._commands)

    def __iter__(self):
        return iter(list(self._commands))
