"""Gap Chef Application - Recipe Matching Service.

Single entry point for the HTTP service:
- Loads the recipe catalog once (fail-fast if missing or invalid)
- Builds the FastAPI app around the loaded catalog
- Serves the REST API via uvicorn

Run with: python app.py
"""

import uvicorn

from src.api.app import create_app
from src.catalog.catalog import CatalogError, RecipeCatalog
from src.utils.config import config
from src.utils.logger import logger


# Load catalog FIRST (fail-fast if unreadable)
logger.info(f"Loading recipe catalog from {config.CATALOG_PATH}...")
try:
    catalog = RecipeCatalog.from_file(config.CATALOG_PATH)
except CatalogError as e:
    logger.error(f"Catalog initialization failed: {e}")
    raise SystemExit(1)

app = create_app(catalog)


if __name__ == "__main__":
    logger.info(f"Starting Gap Chef on port {config.PORT}")
    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set: image recognition disabled, empty requests use mock ingredients")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
