"""
Pytest configuration and shared fixtures for Better Image tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import pytest
from PIL import Image


@pytest.fixture
def red_blue_image():
    """A 20x10 RGBA image, red on the left half and blue on the right half."""
    image = Image.new("RGBA", (20, 10), (255, 0, 0, 255))
    image.paste((0, 0, 255, 255), (10, 0, 20, 10))
    return image


@pytest.fixture
def half_transparent_image():
    """A 16x16 RGBA image: green on top, fully transparent below."""
    image = Image.new("RGBA", (16, 16), (0, 0, 0, 0))
    image.paste((0, 200, 0, 255), (0, 0, 16, 8))
    return image


@pytest.fixture
def gradient_image():
    """A 64x64 RGBA image with 4096 distinct colors."""
    image = Image.new("RGBA", (64, 64))
    image.putdata([
        (x * 4, y * 4, (x + y) * 2, 255)
        for y in range(64)
        for x in range(64)
    ])
    return image


@pytest.fixture
def palette_image():
    """A 40x20 "P" image using palette entries red (0) and blue (1)."""
    image = Image.new("P", (40, 20), 0)
    image.putpalette([255, 0, 0, 0, 0, 255])
    image.paste(1, (20, 0, 40, 20))
    return image


@pytest.fixture
def temp_settings_dir(tmp_path):
    """A temporary directory for settings files."""
    return tmp_path
