"""File discovery: ordered listing strategies plus name and size filters."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from projectrag.access import CommandError
from projectrag.discovery.filesystem_walk import FilesystemWalk
from projectrag.discovery.filters import MAX_FILE_SIZE, is_ignored_path, is_text_file
from projectrag.discovery.vcs_listing import VcsListing
from projectrag.models import FileStat
from projectrag.protocols import FileAccess, ListingStrategy

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    """Indexable files found under a root."""

    root: str
    files: list[str]  # root-relative, sorted
    stats: dict[str, FileStat] = field(default_factory=dict)  # keyed by relative path
    strategy: Optional[str] = None

    @property
    def is_repository(self) -> bool:
        return self.strategy == VcsListing.name


class FileDiscovery:
    """Enumerate the indexable files of a scope root.

    Strategies are tried in order and the first non-empty listing wins.
    Candidates are then filtered by ignored path components, by name
    and finally by size, before any content is read.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[ListingStrategy]] = None,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.strategies = list(strategies) if strategies is not None else [
            VcsListing(),
            FilesystemWalk(),
        ]
        self.max_file_size = max_file_size

    def discover(
        self,
        access: FileAccess,
        root: str,
        log: Optional[Callable[[str], None]] = None,
    ) -> DiscoveryResult:
        """Find indexable files under root.

        Args:
            access: Filesystem access for the scope
            root: Scope root (local path or container working directory)
            log: Optional sink for human-readable progress messages

        Returns:
            DiscoveryResult with deterministic, root-relative file paths
        """
        candidates: list[str] = []
        used: Optional[str] = None

        for strategy in self.strategies:
            try:
                candidates = strategy.list_files(access, root)
            except Exception as e:
                logger.debug("Listing strategy %s failed for %s: %s", strategy.name, root, e)
                if log:
                    log(f"{strategy.name} listing unavailable, falling back")
                continue
            if candidates:
                used = strategy.name
                if log:
                    log(f"{strategy.name} listing found {len(candidates)} files")
                break

        filtered = sorted({
            path for path in candidates
            if path and not is_ignored_path(path) and is_text_file(path)
        })

        stats: dict[str, FileStat] = {}
        if filtered:
            by_full = {access.join(root, path): path for path in filtered}
            try:
                found = access.stat(list(by_full))
            except (CommandError, OSError) as e:
                logger.warning("Cannot stat files under %s: %s", root, e)
                found = {}
            for full_path, stat in found.items():
                rel = by_full.get(full_path)
                if rel is not None:
                    stats[rel] = stat

        files = []
        for path in filtered:
            stat = stats.get(path)
            if stat is None:
                logger.debug("Skipping unreadable or deleted file: %s", path)
                continue
            if stat.size > self.max_file_size:
                logger.info(
                    "Skipping large file (%.2fMB): %s", stat.size / 1024 / 1024, path
                )
                continue
            files.append(path)

        return DiscoveryResult(
            root=root,
            files=files,
            stats={path: stats[path] for path in files},
            strategy=used,
        )
