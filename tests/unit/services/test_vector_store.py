"""Unit tests for the VectorStore service."""

from uuid import uuid4

import chromadb
import pytest

from sqltune.errors import InputError
from sqltune.services.vector_store import VectorStore


@pytest.fixture
def ephemeral_client() -> chromadb.ClientAPI:
    """Create an ephemeral ChromaDB client for testing."""
    return chromadb.EphemeralClient()


@pytest.fixture
async def store(ephemeral_client: chromadb.ClientAPI) -> VectorStore:
    """Create a VectorStore with initialized collection.

    Uses a unique collection name per test to ensure isolation.
    """
    store = VectorStore(
        client=ephemeral_client,
        collection_name=f"test_{uuid4().hex[:8]}",
        dimension=3,
    )
    await store.initialize()
    return store


class TestVectorStoreInitialization:
    """Tests for collection setup."""

    async def test_uninitialized_store_raises(self, ephemeral_client: chromadb.ClientAPI) -> None:
        store = VectorStore(client=ephemeral_client, collection_name=f"test_{uuid4().hex[:8]}")

        with pytest.raises(RuntimeError, match="not initialized"):
            await store.count()

    async def test_default_collection_name(self, ephemeral_client: chromadb.ClientAPI) -> None:
        store = VectorStore(client=ephemeral_client)

        assert store._collection_name == VectorStore.DEFAULT_COLLECTION_NAME


class TestVectorStoreWrites:
    """Tests for adding and deleting embeddings."""

    async def test_add_and_count(self, store: VectorStore) -> None:
        await store.add_embeddings(
            ids=["a", "b"],
            embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            documents=["first", "second"],
            metadatas=[{"title": "A"}, {"title": "B"}],
        )

        assert await store.count() == 2

    async def test_add_is_upsert(self, store: VectorStore) -> None:
        await store.add_embeddings(ids=["a"], embeddings=[[1.0, 0.0, 0.0]], documents=["first"])
        await store.add_embeddings(ids=["a"], embeddings=[[0.0, 1.0, 0.0]], documents=["replaced"])

        [match] = await store.query([0.0, 1.0, 0.0], limit=5)

        assert await store.count() == 1
        assert match.text == "replaced"
        assert match.distance == pytest.approx(0.0, abs=1e-6)

    async def test_add_empty_is_noop(self, store: VectorStore) -> None:
        await store.add_embeddings(ids=[], embeddings=[], documents=[])

        assert await store.count() == 0

    async def test_mismatched_lengths_raise(self, store: VectorStore) -> None:
        with pytest.raises(InputError, match="Mismatched lengths"):
            await store.add_embeddings(ids=["a", "b"], embeddings=[[1.0, 0.0, 0.0]], documents=["x", "y"])

    async def test_wrong_dimension_is_rejected(self, store: VectorStore) -> None:
        with pytest.raises(InputError, match="dimension"):
            await store.add_embeddings(ids=["a"], embeddings=[[1.0, 0.0]], documents=["x"])

        assert await store.count() == 0

    async def test_delete_by_ids(self, store: VectorStore) -> None:
        await store.add_embeddings(
            ids=["a", "b"],
            embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            documents=["first", "second"],
        )

        await store.delete_by_ids(["a"])

        assert await store.count() == 1
        assert [m.id for m in await store.query([1.0, 0.0, 0.0], limit=5)] == ["b"]


class TestVectorStoreQuery:
    """Tests for nearest-neighbour queries."""

    async def _seed(self, store: VectorStore) -> None:
        await store.add_embeddings(
            ids=["exact", "near", "far"],
            embeddings=[[1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
            documents=["exact match", "near match", "orthogonal"],
            metadatas=[{"title": "E"}, {"title": "N"}, {"title": "F"}],
        )

    async def test_empty_collection_returns_nothing(self, store: VectorStore) -> None:
        assert await store.query([1.0, 0.0, 0.0], limit=3) == []

    async def test_results_ordered_by_ascending_distance(self, store: VectorStore) -> None:
        await self._seed(store)

        matches = await store.query([1.0, 0.0, 0.0], limit=3)

        assert [m.id for m in matches] == ["exact", "near", "far"]
        assert matches[0].distance == pytest.approx(0.0, abs=1e-5)
        assert matches[1].distance == pytest.approx(1 - 2**-0.5, abs=1e-4)
        assert matches[2].distance == pytest.approx(1.0, abs=1e-4)
        assert matches[0].metadata["title"] == "E"
        assert matches[0].text == "exact match"

    async def test_limit_bounds_results(self, store: VectorStore) -> None:
        await self._seed(store)

        matches = await store.query([1.0, 0.0, 0.0], limit=1)

        assert [m.id for m in matches] == ["exact"]

    async def test_limit_larger_than_collection(self, store: VectorStore) -> None:
        await self._seed(store)

        assert len(await store.query([1.0, 0.0, 0.0], limit=10)) == 3

    async def test_max_distance_filters_matches(self, store: VectorStore) -> None:
        await self._seed(store)

        matches = await store.query([1.0, 0.0, 0.0], limit=3, max_distance=0.5)

        assert [m.id for m in matches] == ["exact", "near"]

    async def test_non_positive_limit_raises(self, store: VectorStore) -> None:
        with pytest.raises(InputError):
            await store.query([1.0, 0.0, 0.0], limit=0)

    async def test_query_dimension_is_checked(self, store: VectorStore) -> None:
        with pytest.raises(InputError):
            await store.query([1.0, 0.0], limit=1)
