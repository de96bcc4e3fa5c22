"""Test helper utilities for Engage matching tests."""

from .fixture_seeder import load_fixture_members, seed_database

__all__ = ["load_fixture_members", "seed_database"]
