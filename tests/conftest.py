"""Shared test fixtures for scenecompose tests."""

import pytest
from PIL import Image


@pytest.fixture
def solid_png(tmp_path):
    """Factory writing a small single-color PNG and returning its path.

    Shared across test_raster.py and test_cli.py.
    """
    def _make(name, color, size=(4, 4)):
        out = tmp_path / name
        Image.new("RGB", size, color).save(out)
        return str(out)

    return _make
