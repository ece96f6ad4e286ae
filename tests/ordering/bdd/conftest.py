"""Shared BDD fixtures for checkout scenarios."""

import pytest


@pytest.fixture()
def outcome():
    """Container for the last placed order or the error it raised."""
    return {"order": None, "error": None, "proof": None}
