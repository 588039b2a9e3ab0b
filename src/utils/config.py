"""Configuration management for Gap Chef.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()

DEFAULT_MOCK_INGREDIENTS = "chicken,pasta,tomatoes,garlic,olive oil,onion,eggs,cheese,butter,milk"
DEFAULT_FALLBACK_INGREDIENTS = "chicken,rice,vegetables,garlic,onion,soy sauce"


def _parse_list(raw: Optional[str]) -> list[str]:
    """Split a comma-separated env value into trimmed, non-empty items."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini API Key: optional. Without it, image recognition is unavailable
        # and requests without typed ingredients are served from MOCK_INGREDIENTS
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Vision model used by the ingredient recognizer
        self.IMAGE_DETECTION_MODEL: str = os.getenv("IMAGE_DETECTION_MODEL", "gemini-2.5-flash")
        # Server Host/Port
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "7777"))
        # Static recipe catalog, loaded once at startup
        self.CATALOG_PATH: str = os.getenv("CATALOG_PATH", "data/recipes.json")
        # Page size for match results. Short match lists are padded up to this size
        self.MAX_RESULTS: int = int(os.getenv("MAX_RESULTS", "50"))
        # Minimum fraction (0.0 - 1.0) of required ingredients a recipe must cover to count as a match
        self.MIN_MATCH_PERCENTAGE: float = float(os.getenv("MIN_MATCH_PERCENTAGE", "0.2"))
        # Maximum image size (in MB) that can be processed. Default: 5 MB
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
        # Minimum confidence score (0.0 - 1.0) for ingredient detection. Default: 0.7
        self.MIN_INGREDIENT_CONFIDENCE: float = float(os.getenv("MIN_INGREDIENT_CONFIDENCE", "0.7"))
        # Image Compression: Enable/disable image compression before processing
        self.COMPRESS_IMG: bool = os.getenv("COMPRESS_IMG", "true").lower() in ("true", "1", "yes")
        # Image Compression Threshold: Only compress if image size is above this (in KB)
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))
        # Retry budget for the vision API (exponential backoff 1s, 2s, 4s...)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        # Ingredient list served when the caller asks for mock data
        self.MOCK_INGREDIENTS: list[str] = _parse_list(
            os.getenv("MOCK_INGREDIENTS", DEFAULT_MOCK_INGREDIENTS)
        )
        # Ingredient list served when the recognizer fails, so users still get suggestions
        self.FALLBACK_INGREDIENTS: list[str] = _parse_list(
            os.getenv("FALLBACK_INGREDIENTS", DEFAULT_FALLBACK_INGREDIENTS)
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a numeric setting is out of range.
        """
        if not (0.0 <= self.MIN_MATCH_PERCENTAGE <= 1.0):
            raise ValueError(
                f"MIN_MATCH_PERCENTAGE must be between 0.0 and 1.0, got: {self.MIN_MATCH_PERCENTAGE}"
            )
        if self.MAX_RESULTS < 1:
            raise ValueError(f"MAX_RESULTS must be at least 1, got: {self.MAX_RESULTS}")
        if not (0.0 <= self.MIN_INGREDIENT_CONFIDENCE <= 1.0):
            raise ValueError(
                f"MIN_INGREDIENT_CONFIDENCE must be between 0.0 and 1.0, got: {self.MIN_INGREDIENT_CONFIDENCE}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}")
        if self.MAX_IMAGE_SIZE_MB < 1:
            raise ValueError(f"MAX_IMAGE_SIZE_MB must be at least 1, got: {self.MAX_IMAGE_SIZE_MB}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
