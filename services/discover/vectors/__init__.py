"""
Taste vectors — embeddings, nearest-neighbour index, and score blending.

Usage:
    from services.discover.vectors import QdrantVectorIndex, apply_vector_blend
"""

from __future__ import annotations

from services.discover.vectors.blender import (
    VECTOR_WEIGHT,
    VectorBlendResult,
    apply_vector_blend,
    blend_scores,
)
from services.discover.vectors.embedding import (
    VECTOR_DIM,
    compute_property_embedding,
    compute_user_taste_vector,
    compute_user_vector_from_profile,
    cosine_similarity,
    similarity_to_match_score,
)
from services.discover.vectors.index import (
    InMemoryVectorIndex,
    QdrantVectorIndex,
    VectorIndex,
    VectorItem,
    VectorMatch,
)
from services.discover.vectors.user_vectors import UserVectorStore

__all__ = [
    "VECTOR_DIM",
    "VECTOR_WEIGHT",
    "InMemoryVectorIndex",
    "QdrantVectorIndex",
    "UserVectorStore",
    "VectorBlendResult",
    "VectorIndex",
    "VectorItem",
    "VectorMatch",
    "apply_vector_blend",
    "blend_scores",
    "compute_property_embedding",
    "compute_user_taste_vector",
    "compute_user_vector_from_profile",
    "cosine_similarity",
    "similarity_to_match_score",
]
