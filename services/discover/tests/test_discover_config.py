"""Tests for config.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from services.discover.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("CANDIDATE_CACHE_BACKEND", raising=False)
    monkeypatch.delenv("VECTOR_TOP_K", raising=False)
    s = Settings(_env_file=None)
    assert s.candidate_cache_backend == "memory"
    assert s.candidate_cache_ttl_s == 300
    assert s.vector_top_k == 100
    assert s.min_candidates_for_feed == 15
    assert s.vector_collection_name == "place_embeddings"


def test_env_override(monkeypatch):
    monkeypatch.setenv("CANDIDATE_CACHE_BACKEND", "redis")
    monkeypatch.setenv("CANDIDATE_CACHE_TTL_S", "60")
    monkeypatch.setenv("VECTOR_TOP_K", "25")
    s = Settings(_env_file=None)
    assert s.candidate_cache_backend == "redis"
    assert s.candidate_cache_ttl_s == 60
    assert s.vector_top_k == 25


def test_invalid_cache_backend(monkeypatch):
    monkeypatch.setenv("CANDIDATE_CACHE_BACKEND", "memcached")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_invalid_environment(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "prod-ish")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
