"""File access for projects on the local filesystem."""

import logging
import os
from pathlib import Path
from typing import Optional, Sequence

from projectrag.access.command import run_command
from projectrag.models import FileStat

logger = logging.getLogger(__name__)


class LocalFileAccess:
    """Access to the local filesystem."""

    source_type = "local"

    def is_alive(self) -> bool:
        return True

    def join(self, root: str, relative: str) -> str:
        return os.path.join(root, *relative.split("/"))

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        return run_command(args, cwd=cwd, timeout=timeout)

    def walk(self, root: str, prune: frozenset[str]) -> list[str]:
        """List files under root recursively.

        Pruned directory names are removed in place so os.walk never
        descends into them. Unreadable directories are skipped.
        """
        files = []

        def on_error(err: OSError) -> None:
            logger.debug("Skipping unreadable directory %s: %s", err.filename, err)

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames[:] = sorted(d for d in dirnames if d not in prune)
            for filename in filenames:
                if filename in prune:
                    continue
                full_path = os.path.join(dirpath, filename)
                if os.path.isfile(full_path):
                    files.append(full_path)
        return files

    def stat(self, paths: Sequence[str]) -> dict[str, FileStat]:
        stats = {}
        for path in paths:
            try:
                st = os.stat(path)
            except OSError:
                continue
            stats[path] = FileStat(size=st.st_size, mtime=st.st_mtime)
        return stats

    def read_bytes(self, path: str) -> bytes:
        return Path(path).read_bytes()
