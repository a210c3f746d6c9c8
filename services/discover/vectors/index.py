"""
Nearest-neighbour index over property embeddings.

Two implementations of the same interface:

QdrantVectorIndex
    Production index. One point per property in the ``place_embeddings``
    collection (cosine distance). Qdrant point ids must be UUIDs or ints,
    so the point id is uuid5(place id) and the place id travels in the
    payload.

InMemoryVectorIndex
    numpy brute-force cosine search. For local runs and tests.

Both return VectorMatch(id, similarity, score) ordered best first, where
score is the 0-100 match score derived from cosine similarity.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

import numpy as np
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointStruct, SearchParams, VectorParams

from services.discover.vectors.embedding import VECTOR_DIM, similarity_to_match_score

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "place_embeddings"
SEARCH_TIMEOUT_S = 3

# Fixed namespace so the same place id always maps to the same point id
_POINT_NAMESPACE = uuid.UUID("6f1c3f0e-5d3c-4d8e-9a57-2f4b1f0c7d21")


@dataclass(frozen=True)
class VectorMatch:
    id: str
    similarity: float
    score: int


@dataclass
class VectorItem:
    """One property embedding to write into the index."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)


class VectorIndex(Protocol):
    async def find_similar(self, vector: Sequence[float], k: int) -> list[VectorMatch]: ...

    async def upsert(self, items: Sequence[VectorItem]) -> int: ...


def point_id_for(place_id: str) -> str:
    return str(uuid.uuid5(_POINT_NAMESPACE, place_id))


class QdrantVectorIndex:
    """Async Qdrant index with lazy client creation."""

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: str | None = None,
        collection_name: str = DEFAULT_COLLECTION_NAME,
        timeout: float = SEARCH_TIMEOUT_S,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key or None
        self._collection_name = collection_name
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Any) -> QdrantVectorIndex:
        return cls(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key or None,
            collection_name=settings.vector_collection_name,
            timeout=settings.qdrant_timeout_s,
        )

    async def _get_client(self) -> AsyncQdrantClient:
        if self._client is None:
            self._client = AsyncQdrantClient(
                url=self._url,
                api_key=self._api_key,
                timeout=self._timeout,
            )
        return self._client

    async def ensure_collection(self) -> None:
        """Create the collection if it doesn't exist."""
        client = await self._get_client()
        collections = await client.get_collections()
        existing = {c.name for c in collections.collections}
        if self._collection_name in existing:
            logger.info("Collection %s already exists", self._collection_name)
            return

        await client.create_collection(
            collection_name=self._collection_name,
            vectors_config=VectorParams(size=VECTOR_DIM, distance=Distance.COSINE),
        )
        logger.info("Created collection %s (%d-dim, cosine)", self._collection_name, VECTOR_DIM)

    async def find_similar(self, vector: Sequence[float], k: int) -> list[VectorMatch]:
        """Top-k properties by cosine similarity. Client errors propagate."""
        client = await self._get_client()
        response = await client.query_points(
            collection_name=self._collection_name,
            query=[float(v) for v in vector],
            limit=k,
            with_payload=True,
            search_params=SearchParams(hnsw_ef=128, exact=False),
        )

        matches: list[VectorMatch] = []
        for point in response.points:
            payload = point.payload or {}
            matches.append(VectorMatch(
                id=str(payload.get("place_id", point.id)),
                similarity=float(point.score),
                score=similarity_to_match_score(float(point.score)),
            ))
        return matches

    async def upsert(self, items: Sequence[VectorItem]) -> int:
        if not items:
            return 0
        points = [
            PointStruct(
                id=point_id_for(item.id),
                vector=item.vector,
                payload={**item.payload, "place_id": item.id},
            )
            for item in items
        ]
        client = await self._get_client()
        await client.upsert(collection_name=self._collection_name, points=points, wait=True)
        return len(points)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class InMemoryVectorIndex:
    """Brute-force cosine index held in process memory."""

    def __init__(self) -> None:
        self._ids: list[str] = []
        self._rows: dict[str, np.ndarray] = {}

    def __len__(self) -> int:
        return len(self._ids)

    async def upsert(self, items: Sequence[VectorItem]) -> int:
        for item in items:
            if item.id not in self._rows:
                self._ids.append(item.id)
            self._rows[item.id] = np.asarray(item.vector, dtype=np.float64)
        return len(items)

    async def find_similar(self, vector: Sequence[float], k: int) -> list[VectorMatch]:
        if not self._ids or k <= 0:
            return []

        matrix = np.vstack([self._rows[i] for i in self._ids])
        query = np.asarray(vector, dtype=np.float64)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        sims = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        order = np.argsort(-sims, kind="stable")[:k]
        return [
            VectorMatch(
                id=self._ids[i],
                similarity=float(sims[i]),
                score=similarity_to_match_score(float(sims[i])),
            )
            for i in order
        ]
