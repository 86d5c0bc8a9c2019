"""Pytest fixtures."""

from __future__ import annotations

import pytest
from diagsvg import backend, encode


@pytest.fixture
def encoder() -> encode.SVGEncoder:
    return encode.SVGEncoder()


@pytest.fixture
def options() -> backend.SVGOptions:
    """Unflipped 100x100 document options."""
    return backend.SVGOptions(
        size=backend.SizeSpec.dims(100, 100), flip_y=False
    )
