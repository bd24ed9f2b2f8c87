"""
Pytest configuration for reportx
"""

import base64
import io
import logging
import os
import sys

import pytest
from PIL import Image

from reportx.config import get_settings
from reportx.layout.pagination import PageGeometry
from reportx.layout.surface import PAGE_HEIGHT
from reportx.types import RenderConfig


@pytest.fixture(autouse=True)
def configure_logging():
    """Console-only logging at WARNING so layout debug output stays quiet."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep REPORTX_* variables and a stray .env out of every test."""
    for key in list(os.environ):
        if key.startswith('REPORTX_') or key == 'LOG_LEVEL':
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _png_bytes(color=(200, 30, 30), size=(4, 3)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _png_bytes()


@pytest.fixture
def png_data_uri(png_bytes) -> str:
    return 'data:image/png;base64,' + base64.b64encode(png_bytes).decode('ascii')


@pytest.fixture
def png_file(tmp_path, png_bytes):
    path = tmp_path / 'pixel.png'
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def render_config() -> RenderConfig:
    """Built-in Helvetica, page numbers on, no timestamp: deterministic output."""
    return RenderConfig()


@pytest.fixture
def small_geometry() -> PageGeometry:
    """A4 page whose content limit is 90pt: a 30pt heading fits, a following line does not."""
    return PageGeometry(footer_height=PAGE_HEIGHT - 50.0 - 90.0)


@pytest.fixture
def sample_report() -> dict:
    return {
        'Header': {
            'Title': 'Quarterly Report',
            'Subtitle': 'April - June',
            'Explanation': 'Overview of the quarter.',
            'Logo': '',
            'LogoAlign': 'left',
        },
        'Footer': {'Note': 'Prepared by the reporting team'},
        'Data': {'Customer': 'Jane Smith', 'Status': 'Complete'},
        'Charts': [
            {'Tag': '', 'Align': 'left', 'Order': 1, 'Description': 'Second chart', 'Title': 'Errors'},
            {'Tag': '', 'Align': 'center', 'Order': 0, 'Description': 'First chart', 'Title': 'Usage'},
        ],
    }
