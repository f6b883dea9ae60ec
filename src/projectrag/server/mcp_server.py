"""FastMCP server implementation for projectrag."""

from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from projectrag.models import Scope
from projectrag.service import RagService


def create_mcp_server(
    scope: Scope,
    home: Optional[Path] = None,
    service: Optional[RagService] = None,
) -> FastMCP:
    """Create an MCP server for one indexed scope.

    Design: 1 process = 1 scope. Tools never see another project's or
    container's chunks.

    Args:
        scope: Project or container to serve
        home: Directory holding the config and index (default: ~/.projectrag)
        service: Prebuilt service to serve; one rooted at home is created if omitted

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(
        name="projectrag",
    )

    rag = service or RagService(home=home)

    async def ready() -> RagService:
        # Loaded on first use so the server starts before the model does
        await rag.initialize()
        return rag

    @mcp.tool()
    async def context(query: str, max_chars: int = 8000) -> str:
        """Build a context block for a question about the project.

        Returns the most relevant file excerpts, the project structure
        and git information, ready to paste into a prompt.

        Args:
            query: The question or task description
            max_chars: Character budget for the block (default: 8000)

        Returns:
            Formatted context block, or a note when nothing is indexed
        """
        svc = await ready()
        block = await svc.build_context(query, scope, max_budget=max_chars)
        if not block:
            return f"No indexed context available for {scope}"
        return block

    @mcp.tool()
    async def search(query: str, limit: int = 10) -> str:
        """Semantic search across the project's files.

        Use this to find relevant code by concept, not just keyword.
        For example: "database connection setup" might find db.py even
        if it never says "connection setup".

        Args:
            query: Natural language description of what you're looking for
            limit: Maximum number of results to return (default: 10)

        Returns:
            Ranked list of relevant file chunks with similarity scores
        """
        svc = await ready()
        results = await svc.search(query, scope, limit=limit)

        if not results:
            return f"No results found for: {query}"

        lines = []
        for i, r in enumerate(results, 1):
            # Truncate long text snippets
            text = r.content[:200].replace("\n", " ")
            if len(r.content) > 200:
                text += "..."

            lines.append(f"{i}. [{r.similarity:.3f}] {r.file_path} (chunk {r.chunk_index})")
            lines.append(f"   {text}")
            lines.append("")

        return "\n".join(lines)

    @mcp.tool()
    async def stats() -> str:
        """Show what is indexed for this project.

        Returns:
            Chunk, embedding, tree and repository counts plus retrieval settings
        """
        svc = await ready()
        data = svc.get_stats(scope)
        config = data.pop("config")

        lines = [f"Scope: {scope}"]
        for key, value in data.items():
            lines.append(f"  {key}: {value}")
        lines.append("Config:")
        for key, value in config.items():
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)

    return mcp
