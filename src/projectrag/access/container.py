"""File access for a running container, proxied through `docker exec`."""

import logging
import posixpath
from typing import Optional, Sequence

from projectrag.access.command import CommandError, run_command
from projectrag.models import FileStat

logger = logging.getLogger(__name__)

# Keeps a single `stat` invocation well under ARG_MAX
STAT_BATCH_SIZE = 200


class ContainerFileAccess:
    """Access to a container's filesystem using the docker CLI.

    Every operation is a `docker exec` of a standard tool (find, stat,
    cat, git), so the container only needs a POSIX userland.
    """

    source_type = "container"

    def __init__(self, container_id: str, docker: str = "docker"):
        self.container_id = container_id
        self.docker = docker

    def _exec(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        cmd = [self.docker, "exec"]
        if cwd:
            cmd += ["-w", cwd]
        cmd.append(self.container_id)
        cmd.extend(args)
        return run_command(cmd, timeout=timeout)

    def is_alive(self) -> bool:
        try:
            out = run_command(
                [self.docker, "inspect", "-f", "{{.State.Running}}", self.container_id],
                timeout=10,
            )
        except CommandError as e:
            logger.warning("Cannot inspect container %s: %s", self.container_id, e)
            return False
        return out.decode("utf-8", errors="replace").strip() == "true"

    def join(self, root: str, relative: str) -> str:
        return posixpath.join(root, relative)

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        return self._exec(args, cwd=cwd, timeout=timeout)

    def walk(self, root: str, prune: frozenset[str]) -> list[str]:
        """List files with `find`, pruning ignored directory names."""
        cmd = ["find", root]
        if prune:
            cmd.append("(")
            cmd += ["-type", "d", "("]
            for i, name in enumerate(sorted(prune)):
                if i:
                    cmd.append("-o")
                cmd += ["-name", name]
            cmd += [")", "-prune", ")", "-o"]
        cmd += ["-type", "f", "-print"]

        out = self._exec(cmd)
        files = []
        for line in out.decode("utf-8", errors="replace").split("\n"):
            line = line.strip()
            if not line or "\x00" in line:
                continue
            if posixpath.basename(line) in prune:
                continue
            files.append(line)
        return files

    def stat(self, paths: Sequence[str]) -> dict[str, FileStat]:
        stats = {}
        for i in range(0, len(paths), STAT_BATCH_SIZE):
            batch = list(paths[i : i + STAT_BATCH_SIZE])
            # Missing files only produce stderr noise; keep the rest of the batch
            script = 'stat -c "%s %Y %n" -- "$@" 2>/dev/null; true'
            out = self._exec(["sh", "-c", script, "sh", *batch])
            for line in out.decode("utf-8", errors="replace").splitlines():
                parts = line.split(" ", 2)
                if len(parts) != 3:
                    continue
                size, mtime, name = parts
                try:
                    stats[name] = FileStat(size=int(size), mtime=float(mtime))
                except ValueError:
                    continue
        return stats

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._exec(["cat", "--", path])
        except CommandError as e:
            raise OSError(f"Cannot read {path} in container {self.container_id}: {e}") from e
