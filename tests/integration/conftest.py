"""Pytest configuration and fixtures for integration tests.

Ensures environment variables are loaded and skips the suite when the
Gemini API key is not configured.
"""

import os
from io import BytesIO
from pathlib import Path

import pytest
from dotenv import load_dotenv
from PIL import Image, ImageDraw

from src.catalog.catalog import RecipeCatalog


PROJECT_ROOT = Path(__file__).parent.parent.parent


def pytest_configure(config):
    """Load .env from the project root before test collection."""
    env_path = PROJECT_ROOT / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: These tests require a valid GEMINI_API_KEY")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip the integration suite if GEMINI_API_KEY is missing."""
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip("Missing required API key: GEMINI_API_KEY. Configure it in .env to run integration tests.")


@pytest.fixture(scope="session")
def bundled_catalog() -> RecipeCatalog:
    return RecipeCatalog.from_file(PROJECT_ROOT / "data" / "recipes.json")


@pytest.fixture(scope="session")
def tomato_image() -> bytes:
    """A drawn red tomato on a cutting board, as PNG bytes."""
    image = Image.new("RGB", (512, 512), (222, 184, 135))
    draw = ImageDraw.Draw(image)
    draw.ellipse((136, 156, 376, 396), fill=(210, 30, 30))
    draw.polygon([(256, 150), (236, 120), (256, 135), (276, 120)], fill=(40, 140, 40))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
