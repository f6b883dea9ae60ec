"""File access implementations for local projects and containers."""

from projectrag.access.command import CommandError, run_command
from projectrag.access.container import ContainerFileAccess
from projectrag.access.local import LocalFileAccess
from projectrag.models import ContainerScope, ProjectScope, Scope
from projectrag.protocols import FileAccess


def access_for(scope: Scope) -> FileAccess:
    """Pick the file access matching a scope.

    Args:
        scope: A project or container scope

    Returns:
        LocalFileAccess for projects, ContainerFileAccess for containers
    """
    if isinstance(scope, ContainerScope):
        return ContainerFileAccess(scope.container_id)
    if isinstance(scope, ProjectScope):
        return LocalFileAccess()
    raise TypeError(f"Unsupported scope: {scope!r}")


__all__ = [
    "access_for",
    "run_command",
    "CommandError",
    "LocalFileAccess",
    "ContainerFileAccess",
]
