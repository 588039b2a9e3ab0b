#!/usr/bin/env python3
"""Ad hoc query runner for Gap Chef.

Match ingredients against the catalog without starting the API server.

Usage:
    python query.py "chicken, garlic, olive oil"
    python query.py --debug "chicken, garlic"  # Show full JSON payload
    python query.py --max 10 "eggs, flour"  # Limit result page size
    python query.py --image images/fridge.jpg  # Recognize ingredients from a photo
    python query.py --mock  # Use the mock ingredient list
"""

import asyncio
import base64
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from src.catalog.catalog import RecipeCatalog
from src.models.models import AnalysisResult, AnalyzeRequest
from src.services.analysis import analyze
from src.utils.config import config
from src.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--debug] [--mock] [--max N] [--image PATH] "<comma-separated ingredients>"'


def render_results(result: AnalysisResult, limit: int = 10) -> None:
    """Print found ingredients and the top recipes as a table."""
    console.print(f"[bold]Ingredients:[/bold] {', '.join(result.found_ingredients) or '(none)'}")
    if result.fallback:
        console.print(f"[yellow]Recognition failed, using fallback ingredients: {result.error}[/yellow]")

    table = Table(title=f"Top {min(limit, len(result.recipes))} of {len(result.recipes)} recipes")
    table.add_column("Recipe", style="bold")
    table.add_column("Cuisine")
    table.add_column("Match", justify="right")
    table.add_column("Missing", style="dim")

    for annotated in result.recipes[:limit]:
        color = "green" if annotated.match_percentage >= 70 else "yellow" if annotated.match_percentage >= 20 else "red"
        table.add_row(
            annotated.name,
            annotated.recipe.cuisine,
            f"[{color}]{annotated.match_percentage}%[/{color}]",
            ", ".join(annotated.missing_ingredients) or "-",
        )

    console.print(table)


def run_query(
    ingredients: Optional[str],
    debug: bool = False,
    image_path: Optional[str] = None,
    max_results: Optional[int] = None,
    use_mock: bool = False,
) -> None:
    """Run one analysis locally and print the outcome.

    Args:
        ingredients: Comma-separated ingredient names, or None.
        debug: If True, print the full JSON payload.
        image_path: Optional photo to recognize ingredients from.
        max_results: Page size override.
        use_mock: Serve the mock ingredient list.
    """
    try:
        catalog = RecipeCatalog.from_file(config.CATALOG_PATH)

        image_data = None
        if image_path:
            image_file = Path(image_path)
            if not image_file.exists():
                console.print(f"[red]✗ Error: Image file not found: {image_path}[/red]")
                sys.exit(1)
            image_data = base64.b64encode(image_file.read_bytes()).decode("utf-8")
            logger.info(f"✓ Loaded image: {image_file.name} ({len(image_data) / 1024:.1f} KB base64)")

        request = AnalyzeRequest(
            ingredients=ingredients,
            image=image_data,
            use_mock=use_mock,
            max_results=max_results,
        )
        result = asyncio.run(analyze(request, catalog))

        console.print()
        if debug:
            console.print("[bold cyan]Debug Mode: Full Response[/bold cyan]")
            console.print_json(data=result.to_payload())
            console.print()

        render_results(result)

    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    debug_mode = False
    mock_mode = False
    image_path = None
    max_results = None
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
        elif flag == "--mock":
            mock_mode = True
            argv_start += 1
        elif flag in ("--image", "--max"):
            argv_start += 1
            if argv_start >= len(sys.argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            if flag == "--image":
                image_path = sys.argv[argv_start]
            else:
                try:
                    max_results = int(sys.argv[argv_start])
                except ValueError:
                    print(f"Error: --max expects an integer, got {sys.argv[argv_start]}")
                    sys.exit(1)
            argv_start += 1
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    query = " ".join(sys.argv[argv_start:]) or None
    if query is None and image_path is None and not mock_mode:
        print("Error: No ingredients provided")
        print(USAGE)
        sys.exit(1)

    run_query(query, debug=debug_mode, image_path=image_path, max_results=max_results, use_mock=mock_mode)
