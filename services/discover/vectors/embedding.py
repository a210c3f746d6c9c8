"""
Taste vectors — users and properties in one 32-dim space.

Vector layout
-------------
    [0-5]   six taste domains (Design, Character, Service, Food, Location, Wellness)
    [6-31]  26 hashed signal-text buckets

Signal text is hashed with 32-bit FNV-1a into a bucket; each bucket holds
the mean confidence of the signals that landed in it (capped at 1.0).
Both user and property vectors are L2-normalised, so cosine similarity is
a dot product.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from services.discover.taste.match import round_half_up
from services.discover.taste.types import ALL_DOMAINS, AntiSignal, Signal, domain_for, domain_for_axis

VECTOR_DIM = 32
DOMAIN_DIMS = 6
SIGNAL_DIMS = VECTOR_DIM - DOMAIN_DIMS

DOMAIN_INDEX: dict[str, int] = {d: i for i, d in enumerate(ALL_DOMAINS)}

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619

# Onboarding signal categories that describe rejections or context, not taste
_EXCLUDED_SIGNAL_CATEGORIES = {"Rejection", "Context"}

# Property domain strength mirrors the taste match weighting
_CORROBORATION_BOOST = 0.05
_FULL_DENSITY_SIGNALS = 20
_ANTI_SIGNAL_WEIGHT = 0.1


def hash_signal_to_bucket(text: str) -> int:
    """Deterministic bucket in [0, SIGNAL_DIMS) for a signal string."""
    normalized = text.lower().strip()
    data = normalized.encode("utf-16-le")
    h = _FNV_OFFSET_BASIS
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h % SIGNAL_DIMS


def _signal_features(items: Iterable[tuple[str, float]]) -> np.ndarray:
    totals = np.zeros(SIGNAL_DIMS, dtype=np.float64)
    counts = np.zeros(SIGNAL_DIMS, dtype=np.float64)
    for text, confidence in items:
        bucket = hash_signal_to_bucket(text)
        totals[bucket] += confidence
        counts[bucket] += 1

    features = np.zeros(SIGNAL_DIMS, dtype=np.float64)
    filled = counts > 0
    features[filled] = np.minimum(totals[filled] / counts[filled], 1.0)
    return features


def l2_normalize(vec: np.ndarray) -> np.ndarray:
    """Unit-length copy of ``vec``; a zero vector is returned unchanged."""
    norm = float(np.linalg.norm(vec))
    if norm == 0.0:
        return vec
    return vec / norm


def compute_user_taste_vector(
    radar_data: Sequence[Mapping[str, Any]],
    micro_signals: Mapping[str, Sequence[str]],
    all_signals: Sequence[Mapping[str, Any]] | None = None,
) -> list[float]:
    """
    Compute a user's taste vector.

    Args:
        radar_data:    [{"axis": str, "value": 0..1}] from the generated profile.
        micro_signals: domain -> phrases. Each phrase is weighted by the
                       user's radar value for that domain (0.5 if unknown).
        all_signals:   Optional onboarding signals [{"tag", "cat", "confidence"}];
                       Rejection/Context categories are skipped.
    """
    vector = np.zeros(VECTOR_DIM, dtype=np.float64)

    for entry in radar_data:
        domain = domain_for_axis(entry.get("axis"))
        if domain is not None:
            idx = DOMAIN_INDEX[domain]
            vector[idx] = max(vector[idx], float(entry.get("value") or 0.0))

    inputs: list[tuple[str, float]] = []
    for key, phrases in micro_signals.items():
        domain = domain_for(key)
        weight = float(vector[DOMAIN_INDEX[domain]]) if domain else 0.5
        inputs.extend((phrase, weight) for phrase in phrases)

    for sig in all_signals or []:
        if sig.get("cat") in _EXCLUDED_SIGNAL_CATEGORIES:
            continue
        inputs.append((str(sig.get("tag") or ""), float(sig.get("confidence") or 0.0)))

    vector[DOMAIN_DIMS:] = _signal_features(inputs)
    return l2_normalize(vector).tolist()


def compute_user_vector_from_profile(
    profile: Mapping[str, Any],
    all_signals: Sequence[Mapping[str, Any]] | None = None,
) -> list[float]:
    """Convenience wrapper over a stored generated-profile JSON blob."""
    return compute_user_taste_vector(
        radar_data=profile.get("radarData") or [],
        micro_signals=profile.get("microTasteSignals") or {},
        all_signals=all_signals,
    )


def compute_property_embedding(
    signals: Sequence[Signal],
    anti_signals: Sequence[AntiSignal] = (),
) -> list[float]:
    """Embed a property's signals into the same space as user taste vectors."""
    vector = np.zeros(VECTOR_DIM, dtype=np.float64)

    by_domain: dict[str, list[Signal]] = {d: [] for d in ALL_DOMAINS}
    for sig in signals:
        domain = domain_for(sig.dimension)
        if domain:
            by_domain[domain].append(sig)

    for domain, domain_signals in by_domain.items():
        if not domain_signals:
            continue
        avg_conf = sum(
            min(s.confidence + (_CORROBORATION_BOOST if s.corroborated else 0.0), 1.0)
            for s in domain_signals
        ) / len(domain_signals)
        density = min(len(domain_signals) / _FULL_DENSITY_SIGNALS, 1.0)
        vector[DOMAIN_INDEX[domain]] = avg_conf * 0.6 + density * 0.4

    for anti in anti_signals:
        domain = domain_for(anti.dimension)
        if domain:
            idx = DOMAIN_INDEX[domain]
            vector[idx] = max(0.0, vector[idx] - anti.confidence * _ANTI_SIGNAL_WEIGHT)

    vector[DOMAIN_DIMS:] = _signal_features((s.text, s.confidence) for s in signals)
    return l2_normalize(vector).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]. 0.0 when either vector is zero."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def similarity_to_match_score(similarity: float) -> int:
    """Map cosine similarity to a 0-100 match score (negative similarity -> 0)."""
    return max(0, min(100, round_half_up(similarity * 100)))
