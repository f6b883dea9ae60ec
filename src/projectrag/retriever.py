"""Similarity search and budgeted context assembly."""

import logging
from typing import Optional, Sequence

from projectrag.config import RagConfig
from projectrag.embedders import EmbeddingProvider
from projectrag.models import FileTreeEntry, RepoInfo, Scope, SearchResult
from projectrag.storage import IndexStore

logger = logging.getLogger(__name__)

MAX_CONTEXT_LENGTH = 8000
PREVIEW_CHARS = 1200
TREE_BUDGET = 2000

FILES_HEADER = (
    "\n\n[RELEVANT PROJECT FILES]\n"
    "The following code excerpts from the project filesystem are semantically "
    "similar to your query and may help answer it:\n"
)
FILES_FOOTER = "\n[END RELEVANT FILES]\n"
TREE_HEADER = "\n[PROJECT STRUCTURE]\nDirectory structure of the project:\n"
TREE_FOOTER = "\n[END PROJECT STRUCTURE]\n"
GIT_HEADER = "\n[GIT REPOSITORY INFORMATION]"
GIT_FOOTER = "\n[END GIT INFO]\n"


def format_preview(result: SearchResult, preview_chars: int = PREVIEW_CHARS) -> str:
    """Render one search result as a file excerpt."""
    path = result.file_path.lstrip("/")
    content = result.content[:preview_chars]
    if len(result.content) > preview_chars:
        content += "\n..."
    return f"\n--- File: {path} (similarity: {result.similarity:.2f}) ---\n{content}\n"


def truncation_notice(remaining: int) -> str:
    return f"... ({remaining} more files available but truncated for context limit)"


def format_file_tree(entries: Sequence[FileTreeEntry], max_chars: Optional[int] = None) -> str:
    """Render tree entries as an indented listing.

    Directories come before files at each level and end with "/". When
    max_chars is given, lines past the cap are replaced by a single
    "... (N more entries)" line and the result never exceeds max_chars.

    Args:
        entries: Tree rows of one scope
        max_chars: Optional cap on the rendered length

    Returns:
        The rendered tree, one entry per line
    """
    children: dict[Optional[str], list[FileTreeEntry]] = {}
    known = {entry.path for entry in entries}
    for entry in entries:
        parent = entry.parent_path if entry.parent_path in known else None
        children.setdefault(parent, []).append(entry)

    lines: list[str] = []

    def walk(parent: Optional[str], depth: int) -> None:
        nodes = sorted(
            children.get(parent, []),
            key=lambda e: (not e.is_directory, e.path.lower()),
        )
        for node in nodes:
            name = node.path.rsplit("/", 1)[-1]
            if node.is_directory:
                lines.append(f"{'  ' * depth}{name}/")
                walk(node.path, depth + 1)
            else:
                lines.append(f"{'  ' * depth}{name}")

    walk(None, 0)

    if max_chars is None:
        return "\n".join(lines)

    kept: list[str] = []
    length = 0
    for idx, line in enumerate(lines):
        remaining = len(lines) - idx
        # Room for this line plus a marker covering whatever follows it
        marker_room = len(f"\n... ({remaining - 1} more entries)") if remaining > 1 else 0
        added = len(line) + (1 if kept else 0)
        if length + added + marker_room > max_chars:
            marker = f"... ({remaining} more entries)"
            if length + len(marker) + (1 if kept else 0) <= max_chars:
                kept.append(marker)
            break
        kept.append(line)
        length += added
    return "\n".join(kept)


def format_repo_info(info: RepoInfo) -> str:
    """Render repository metadata as a context block."""
    lines = [GIT_HEADER]
    if info.remote_url:
        lines.append(f"Repository: {info.remote_url}")
    if info.branch:
        lines.append(f"Branch: {info.branch}")
    if info.last_commit and info.last_commit_message:
        lines.append(f"Latest Commit: {info.last_commit[:8]} - {info.last_commit_message}")
    return "\n".join(lines) + "\n" + GIT_FOOTER


class ContextRetriever:
    """Builds the context block handed to the language model.

    Read-only against the store. The config attribute is read on every
    call so updates apply to the next query.
    """

    def __init__(
        self,
        store: IndexStore,
        embedder: EmbeddingProvider,
        config: Optional[RagConfig] = None,
        tree_budget: int = TREE_BUDGET,
    ):
        self.store = store
        self.embedder = embedder
        self.config = config or RagConfig()
        self.tree_budget = tree_budget

    async def search(
        self,
        query: str,
        scope: Scope,
        limit: Optional[int] = None,
        min_similarity: Optional[float] = None,
    ) -> list[SearchResult]:
        """Rank the scope's chunks against a query.

        Args:
            query: Natural language query
            scope: Scope to search
            limit: Maximum results (default: config.top_k)
            min_similarity: Score floor (default: config.similarity_threshold)

        Returns:
            Results by descending similarity; empty if the query cannot be embedded
        """
        vector = await self.embedder.embed(query)
        if vector is None:
            logger.warning("Could not embed query; returning no results")
            return []
        return self.store.similarity_search(
            scope,
            vector,
            top_k=limit if limit is not None else self.config.top_k,
            min_similarity=(
                min_similarity
                if min_similarity is not None
                else self.config.similarity_threshold
            ),
        )

    async def build_context(
        self,
        query: str,
        scope: Scope,
        max_budget: int = MAX_CONTEXT_LENGTH,
    ) -> str:
        """Assemble relevant files, project structure and git info.

        The files section stays within max_budget except for one trailing
        truncation line. When not even one excerpt fits, the section is
        replaced by that line alone. The structure block is capped by tree_budget and
        by what the files left over; the git block is added only if it fits.

        Args:
            query: The user's message
            scope: Scope to retrieve from
            max_budget: Character budget for the whole block

        Returns:
            The context block, or "" when disabled or nothing is indexed
        """
        if not self.config.enabled or not self.store.has_indexed_files(scope):
            return ""

        results = await self.search(query, scope)
        logger.info("Found %d similar file chunks for query: %r", len(results), query[:50])

        parts: list[str] = []
        used = 0

        if results:
            previews = [format_preview(result) for result in results]
            wrapper = len(FILES_HEADER) + len(FILES_FOOTER)
            if wrapper + len(previews[0]) > max_budget:
                # Not even one file fits: the notice line is all that is emitted
                notice = truncation_notice(len(results))
                parts.append(notice)
                used = len(notice)
            else:
                parts.append(FILES_HEADER)
                used = wrapper
                for idx, preview in enumerate(previews):
                    if used + len(preview) > max_budget:
                        parts.append("\n" + truncation_notice(len(results) - idx))
                        break
                    parts.append(preview)
                    used += len(preview)
                parts.append(FILES_FOOTER)

        tree = self.store.get_file_tree(scope)
        if tree:
            wrapper = len(TREE_HEADER) + len(TREE_FOOTER)
            room = min(self.tree_budget, max_budget - used) - wrapper
            if room > 0:
                rendered = format_file_tree(tree, max_chars=room)
                if rendered:
                    block = TREE_HEADER + rendered + TREE_FOOTER
                    parts.append(block)
                    used += len(block)

        info = self.store.get_repo_metadata(scope)
        if info is not None:
            block = format_repo_info(info)
            if used + len(block) <= max_budget:
                parts.append(block)
                used += len(block)

        context = "".join(parts)
        if context:
            logger.info(
                "Context built: %d files, %d tree entries, %d chars",
                len(results),
                len(tree),
                len(context),
            )
        return context
