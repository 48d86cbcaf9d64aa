"""Shared fixtures for the roompack test suite."""

import os
import sys

import pytest

# Ensure the src/ layout is importable without an install
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from roompack.config import EngineSettings
from roompack.models import ItemRequest, PackOptions, RoomDimensions


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------

@pytest.fixture
def room():
    """A 10 m x 8 m room, 3 m high (centimetres)."""
    return RoomDimensions(width=1000, depth=800, height=300)


@pytest.fixture
def small_room():
    """A 1 m cube."""
    return RoomDimensions(width=100, depth=100, height=100)


# ---------------------------------------------------------------------------
# Items and options
# ---------------------------------------------------------------------------

@pytest.fixture
def four_boxes():
    """Four identical 200x150x100 units."""
    return [ItemRequest(product_id=1, width=200, depth=150, height=100, quantity=4)]


@pytest.fixture
def no_rotation():
    return PackOptions(allow_rotation=False)


@pytest.fixture
def twelve_products():
    """Twelve small products, two units each."""
    return [
        ItemRequest(product_id=i, width=60, depth=40, height=50 + 5 * i, quantity=2)
        for i in range(1, 13)
    ]


@pytest.fixture
def settings():
    return EngineSettings()
