"""Indexing scopes: a local project or a running container."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ProjectScope:
    """A project on the local filesystem, identified by its path."""

    path: str

    kind = "project"

    @property
    def key(self) -> str:
        return self.path

    def __str__(self) -> str:
        return f"project:{self.path}"


@dataclass(frozen=True)
class ContainerScope:
    """A container, identified by its id."""

    container_id: str

    kind = "container"

    @property
    def key(self) -> str:
        return self.container_id

    def __str__(self) -> str:
        return f"container:{self.container_id}"


Scope = Union[ProjectScope, ContainerScope]
