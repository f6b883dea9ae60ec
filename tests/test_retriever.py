"""Tests for search and context assembly."""

from datetime import datetime

import pytest

from conftest import FailingStrategy
from projectrag.config import RagConfig
from projectrag.embedders import EmbeddingProvider, HashedEmbedder
from projectrag.models import Chunk, FileTreeEntry, ProjectScope, RepoInfo
from projectrag.retriever import ContextRetriever, format_file_tree
from projectrag.storage import IndexStore

SCOPE = ProjectScope("/home/dev/app")
WHEN = datetime(2024, 5, 1)

DOCKER_TEXT = (
    "Use docker run to start a docker container from an image. "
    "The docker container runs isolated from the host."
)
GARDEN_TEXT = "Water the tomato plants every morning and prune the roses in spring."


async def index_text(store: IndexStore, embedder: EmbeddingProvider, path: str, text: str):
    chunk = Chunk(text=text, file_path=path, chunk_index=0, start_char=0, end_char=len(text))
    store.replace_file(SCOPE, path, [chunk], [await embedder.embed(text)], WHEN)


def open_config(**overrides) -> RagConfig:
    values = {"similarity_threshold": 0.0}
    values.update(overrides)
    return RagConfig(**values)


class TestFormatFileTree:
    def test_directories_first_and_indented(self):
        entries = [
            FileTreeEntry("README.md", False),
            FileTreeEntry("src", True),
            FileTreeEntry("src/app.py", False, "src"),
            FileTreeEntry("src/lib", True, "src"),
            FileTreeEntry("src/lib/util.py", False, "src/lib"),
        ]

        assert format_file_tree(entries).split("\n") == [
            "src/",
            "  lib/",
            "    util.py",
            "  app.py",
            "README.md",
        ]

    def test_cap_adds_marker(self):
        entries = [FileTreeEntry(f"file_{i:03d}.py", False) for i in range(100)]

        rendered = format_file_tree(entries, max_chars=60)

        assert len(rendered) <= 60
        assert rendered.split("\n")[-1].endswith("more entries)")
        kept = len(rendered.split("\n")) - 1
        assert f"({100 - kept} more entries)" in rendered

    def test_cap_not_reached(self):
        entries = [FileTreeEntry("a.py", False), FileTreeEntry("b.py", False)]
        assert format_file_tree(entries, max_chars=1000) == "a.py\nb.py"


class TestSearch:
    @pytest.mark.asyncio
    async def test_ranks_relevant_file_first(self, store, embedder):
        await index_text(store, embedder, "docs/docker.md", DOCKER_TEXT)
        await index_text(store, embedder, "docs/garden.md", GARDEN_TEXT)
        retriever = ContextRetriever(store, embedder, open_config())

        results = await retriever.search("How do I run a docker container?", SCOPE)

        assert results[0].file_path == "docs/docker.md"
        assert results[0].similarity > results[-1].similarity

    @pytest.mark.asyncio
    async def test_unembeddable_query_returns_nothing(self, store, embedder):
        await index_text(store, embedder, "docs/docker.md", DOCKER_TEXT)
        broken = EmbeddingProvider([FailingStrategy()])
        retriever = ContextRetriever(store, broken, open_config())

        assert await retriever.search("docker", SCOPE) == []

    @pytest.mark.asyncio
    async def test_limit_overrides_top_k(self, store, embedder):
        for i in range(4):
            await index_text(store, embedder, f"f{i}.md", f"docker note number {i}")
        retriever = ContextRetriever(store, embedder, open_config(top_k=3))

        assert len(await retriever.search("docker", SCOPE)) == 3
        assert len(await retriever.search("docker", SCOPE, limit=1)) == 1


class TestBuildContext:
    @pytest.mark.asyncio
    async def test_disabled_returns_empty(self, store, embedder):
        await index_text(store, embedder, "docs/docker.md", DOCKER_TEXT)
        retriever = ContextRetriever(store, embedder, open_config(enabled=False))
        assert await retriever.build_context("docker", SCOPE) == ""

    @pytest.mark.asyncio
    async def test_nothing_indexed_returns_empty(self, store, embedder):
        store.build_file_tree(SCOPE, ["a.py"], SCOPE.path)
        retriever = ContextRetriever(store, embedder, open_config())
        assert await retriever.build_context("docker", SCOPE) == ""

    @pytest.mark.asyncio
    async def test_sections(self, store, embedder):
        await index_text(store, embedder, "docs/docker.md", DOCKER_TEXT)
        await index_text(store, embedder, "docs/garden.md", GARDEN_TEXT)
        store.build_file_tree(SCOPE, ["docs/docker.md", "docs/garden.md"], SCOPE.path)
        store.upsert_repo_metadata(
            SCOPE,
            RepoInfo(
                remote_url="https://example.com/acme/app.git",
                branch="main",
                last_commit="0123456789abcdef",
                last_commit_message="Add docs",
            ),
        )
        retriever = ContextRetriever(store, embedder, open_config())

        context = await retriever.build_context("How do I run a docker container?", SCOPE)

        assert "[RELEVANT PROJECT FILES]" in context
        assert "[END RELEVANT FILES]" in context
        assert context.index("--- File: docs/docker.md") < context.index("--- File: docs/garden.md")
        assert "(similarity: " in context
        assert "[PROJECT STRUCTURE]" in context
        assert "docs/\n  docker.md\n  garden.md" in context
        assert "Repository: https://example.com/acme/app.git" in context
        assert "Branch: main" in context
        assert "Latest Commit: 01234567 - Add docs" in context
        assert "[END GIT INFO]" in context

    @pytest.mark.asyncio
    async def test_long_chunks_are_cut(self, store, embedder):
        await index_text(store, embedder, "big.md", "docker " * 400)
        retriever = ContextRetriever(store, embedder, open_config())

        context = await retriever.build_context("docker", SCOPE)

        preview = context.split("--- File: big.md")[1]
        assert "\n...\n" in preview

    @pytest.mark.asyncio
    async def test_respects_budget(self, store, embedder):
        for i in range(5):
            await index_text(store, embedder, f"notes/{i}.md", f"docker note {i} " * 120)
        store.build_file_tree(SCOPE, [f"notes/{i}.md" for i in range(5)], SCOPE.path)
        retriever = ContextRetriever(store, embedder, open_config(similarity_threshold=-1.0))

        context = await retriever.build_context("docker note", SCOPE, max_budget=3000)

        truncation = [line for line in context.split("\n") if "more files available" in line]
        assert len(truncation) == 1
        assert "truncated for context limit" in truncation[0]
        assert len(context) <= 3000 + len(truncation[0]) + 1
        assert context.count("--- File:") == 2

    @pytest.mark.asyncio
    async def test_tiny_budget_emits_only_notice(self, store, embedder):
        await index_text(store, embedder, "docs/docker.md", DOCKER_TEXT)
        retriever = ContextRetriever(store, embedder, open_config())

        context = await retriever.build_context("docker", SCOPE, max_budget=100)

        notice = "... (1 more files available but truncated for context limit)"
        assert context == notice
        assert "[RELEVANT PROJECT FILES]" not in context
        assert len(context) <= 100 + len(notice)

    @pytest.mark.asyncio
    async def test_tiny_budget_later_blocks_stay_within_budget(self, store, embedder):
        await index_text(store, embedder, "docs/docker.md", DOCKER_TEXT)
        store.build_file_tree(SCOPE, ["docs/docker.md"], SCOPE.path)
        retriever = ContextRetriever(store, embedder, open_config())

        context = await retriever.build_context("docker", SCOPE, max_budget=150)

        assert context.startswith("... (1 more files available")
        assert "--- File:" not in context
        assert len(context) <= 150

    @pytest.mark.asyncio
    async def test_tree_limited_by_tree_budget(self, store, embedder):
        await index_text(store, embedder, "a.md", "docker")
        files = [f"pkg/module_{i:04d}.py" for i in range(500)]
        store.build_file_tree(SCOPE, files, SCOPE.path)
        retriever = ContextRetriever(store, embedder, open_config(), tree_budget=500)

        context = await retriever.build_context("docker", SCOPE)

        tree = context.split("[PROJECT STRUCTURE]")[1].split("[END PROJECT STRUCTURE]")[0]
        assert len(tree) <= 500
        assert "more entries)" in tree
