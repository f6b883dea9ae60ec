"""Tests for the RagService facade."""

from pathlib import Path

import pytest
import pytest_asyncio

from projectrag.embedders import EmbeddingProvider, HashedEmbedder
from projectrag.models import ContainerScope, ProjectScope
from projectrag.service import RagService, parse_scope

SCOPE = ContainerScope("c0ffee")


@pytest_asyncio.fixture
async def service(tmp_path: Path):
    svc = RagService(home=tmp_path, embedder=EmbeddingProvider([HashedEmbedder()]))
    await svc.initialize()
    svc.update_config(similarity_threshold=0.0)
    yield svc
    svc.close()


@pytest.fixture
def project_access(make_access):
    return make_access(
        {
            "docker/README.md": "Run the docker container with docker compose up.",
            "garden.txt": "Tomatoes need sun and water.",
        },
        tracked=["docker/README.md", "garden.txt"],
    )


class TestRagService:
    @pytest.mark.asyncio
    async def test_uninitialized_raises(self, tmp_path: Path):
        svc = RagService(home=tmp_path)
        with pytest.raises(RuntimeError):
            await svc.search("x", SCOPE)

    @pytest.mark.asyncio
    async def test_index_and_query(self, service: RagService, project_access):
        count = await service.index_scope(SCOPE, access=project_access)

        assert count == 2
        results = await service.search("docker container", SCOPE, limit=1)
        assert results[0].file_path == "docker/README.md"
        context = await service.build_context("docker container", SCOPE)
        assert "--- File: docker/README.md" in context

    @pytest.mark.asyncio
    async def test_stats_include_config(self, service: RagService, project_access):
        await service.index_scope(SCOPE, access=project_access)

        stats = service.get_stats()

        assert stats["total_chunks"] == 2
        assert stats["total_embeddings"] == 2
        assert stats["total_tree_entries"] == 3
        assert stats["total_repos"] == 1
        assert stats["config"]["similarity_threshold"] == 0.0

    @pytest.mark.asyncio
    async def test_config_update_applies_to_next_query(
        self, service: RagService, project_access
    ):
        await service.index_scope(SCOPE, access=project_access)

        service.update_config(enabled=False)

        assert await service.build_context("docker", SCOPE) == ""
        assert service.get_config().enabled is False

    @pytest.mark.asyncio
    async def test_invalid_config_update(self, service: RagService):
        with pytest.raises(ValueError):
            service.update_config(top_k=0)
        assert service.get_config().top_k == 5

    @pytest.mark.asyncio
    async def test_clear_scope_clears_cache(self, service: RagService, project_access):
        await service.index_scope(SCOPE, access=project_access)
        assert len(service.embedder.cache) > 0

        service.clear_scope(SCOPE)

        assert service.get_stats(SCOPE)["total_chunks"] == 0
        assert len(service.embedder.cache) == 0

    @pytest.mark.asyncio
    async def test_clear_all(self, service: RagService, project_access):
        await service.index_scope(SCOPE, access=project_access)
        service.clear_all()
        assert service.get_stats()["total_chunks"] == 0

    @pytest.mark.asyncio
    async def test_persists_across_restarts(self, tmp_path: Path, make_access):
        access = make_access({"app.py": "print('persist me')"})
        first = RagService(home=tmp_path, embedder=EmbeddingProvider([HashedEmbedder()]))
        await first.initialize()
        await first.index_scope(SCOPE, access=access)
        first.close()

        assert (tmp_path / "rag-index.db").exists()

        second = RagService(home=tmp_path, embedder=EmbeddingProvider([HashedEmbedder()]))
        await second.initialize()
        try:
            assert second.get_stats(SCOPE)["total_chunks"] == 1
            assert second.store.get_metadata("embedding_dimension") == "384"
        finally:
            second.close()

    @pytest.mark.asyncio
    async def test_abort_without_job(self, service: RagService):
        assert service.abort_indexing() is False


class TestParseScope:
    def test_container(self):
        assert parse_scope(container="abc") == ContainerScope("abc")

    def test_project_is_resolved(self, tmp_path: Path):
        scope = parse_scope(project=str(tmp_path / "sub" / ".."))
        assert scope == ProjectScope(str(tmp_path.resolve()))

    @pytest.mark.parametrize("project,container", [(None, None), ("/a", "b")])
    def test_exactly_one(self, project, container):
        with pytest.raises(ValueError):
            parse_scope(project, container)
