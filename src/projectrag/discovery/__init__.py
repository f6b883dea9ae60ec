"""Discovery of indexable files for a scope."""

from projectrag.discovery.discoverer import DiscoveryResult, FileDiscovery
from projectrag.discovery.filesystem_walk import FilesystemWalk
from projectrag.discovery.filters import MAX_FILE_SIZE, is_ignored_path, is_text_file
from projectrag.discovery.vcs_listing import NotARepository, VcsListing

__all__ = [
    "FileDiscovery",
    "DiscoveryResult",
    "VcsListing",
    "FilesystemWalk",
    "NotARepository",
    "MAX_FILE_SIZE",
    "is_ignored_path",
    "is_text_file",
]
