"""User taste profile parsing and loading."""

from services.discover.profile.loader import ProfileStore, parse_taste_profile

__all__ = ["ProfileStore", "parse_taste_profile"]
