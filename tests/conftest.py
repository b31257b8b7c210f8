"""
Pytest configuration and shared fixtures for POD Studio tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import io

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def temp_store_dir(tmp_path):
    """
    Provide a temporary directory for config store files.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path


@pytest.fixture
def sample_rgb_colors():
    """
    Provide a list of sample RGB color tuples for testing.

    Returns:
        List of (R, G, B) tuples with common test colors
    """
    return [
        (255, 0, 0),      # Red
        (0, 255, 0),      # Green
        (0, 0, 255),      # Blue
        (255, 255, 255),  # White
        (0, 0, 0),        # Black
        (128, 128, 128),  # Gray
        (255, 255, 0),    # Yellow (R/G tie)
        (12, 200, 97),
    ]


@pytest.fixture
def red_image():
    """100x100 fully opaque red raster."""
    return Image.new("RGBA", (100, 100), (255, 0, 0, 255))


@pytest.fixture
def noisy_image():
    """64x48 opaque raster of seeded random colors."""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return Image.fromarray(pixels, mode="RGBA")


@pytest.fixture
def png_bytes():
    """Factory encoding a solid RGBA image as PNG bytes."""
    def _make(size, color):
        buffer = io.BytesIO()
        Image.new("RGBA", size, color).save(buffer, format="PNG")
        return buffer.getvalue()
    return _make
