"""Version control probing."""

from projectrag.vcs.git import GitProbe

__all__ = ["GitProbe"]
