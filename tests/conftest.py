"""Shared pytest fixtures and configuration for pytest."""

import sys
from collections.abc import Callable
from io import BytesIO

import pytest
from PIL import Image


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for platform-specific tests."""
    config.addinivalue_line("markers", "unix_only: mark test to run only on Unix")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Auto-skip tests based on platform markers."""
    skip_unix = pytest.mark.skip(reason="Unix-only test")

    for item in items:
        if "unix_only" in item.keywords and sys.platform == "win32":
            item.add_marker(skip_unix)


def encode_image(
    color: str = "red",
    size: tuple[int, int] = (4, 4),
    fmt: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Encode a solid-color image in the given format."""
    buf = BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Factory for encoded test images."""
    return encode_image


@pytest.fixture
def png_bytes() -> bytes:
    """A small red PNG."""
    return encode_image()
