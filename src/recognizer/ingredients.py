"""Ingredient recognition from food photos using the Gemini vision API.

Upstream producer for the matcher: turns an image (or typed text) into a flat
list of ingredient names.

Pipeline:
- resolve_image_bytes(): Get image bytes from bytes, URL, data URL, or base64 (async)
- validate_image_format(): Check JPEG/PNG/WEBP only
- validate_image_size(): Check MAX_IMAGE_SIZE_MB limit
- compress_image(): Optional Pillow re-encode for large photos
- extract_ingredients_with_retries(): Call Gemini with exponential backoff (async)
- filter_ingredients_by_confidence(): Drop low-confidence detections
- recognize_ingredients(): Entry point used by the analysis service
"""

import asyncio
import base64
import json
import re
from io import BytesIO
from typing import Optional, Sequence

import aiohttp
import filetype
from google import genai
from google.genai import types
from PIL import Image

from src.models.models import IngredientDetectionOutput
from src.utils.config import config
from src.utils.logger import logger

SUPPORTED_FORMATS = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

TRANSIENT_ERROR_KEYWORDS = ("timeout", "connection", "429", "500", "502", "503", "retryable")

DETECTION_PROMPT = (
    "Analyze this image and identify all visible food ingredients. "
    "Return ONLY valid JSON with an 'ingredients' list of common ingredient names "
    "(e.g. 'chicken breast', 'garlic', 'olive oil') and a 'confidence_scores' dict "
    "mapping each ingredient to a confidence between 0.0 and 1.0. "
    'Example: {"ingredients": ["tomato", "basil"], "confidence_scores": {"tomato": 0.95, "basil": 0.88}}. '
    "If no food is visible, return an empty ingredients list."
)


class IngredientRecognitionError(ValueError):
    """Raised when ingredients cannot be recognized from the given input."""


# ============================================================================
# Error Handling Helpers
# ============================================================================


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(
    coro,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
    reraise: bool = False,
):
    """Await an optional operation, logging and degrading to a default on failure.

    Args:
        coro: Awaitable coroutine to execute.
        operation_name: Description for logging (e.g., "Fetch image from URL").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None.
        reraise: If True, re-raise exception after logging. Default: False.

    Returns:
        Result of coroutine, or ``default_return`` if it raised and ``reraise`` is False.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


def safe_execute_sync(
    func,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
    reraise: bool = False,
):
    """Synchronous version of safe_execute_async; ``func`` takes no arguments."""
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


# ============================================================================
# Image Handling
# ============================================================================


def compress_image(image_bytes: bytes, max_width: int = 1024) -> bytes:
    """Re-encode a large photo as a smaller JPEG before upload.

    Images below COMPRESS_IMG_THRESHOLD_KB are returned untouched, as is the
    original when Pillow cannot decode it.

    Args:
        image_bytes: Raw image bytes to compress
        max_width: Maximum image width in pixels

    Returns:
        Compressed image bytes, or the original bytes.
    """
    size_kb = len(image_bytes) / 1024
    if size_kb < config.COMPRESS_IMG_THRESHOLD_KB:
        logger.debug(f"Image size {size_kb:.1f}KB below {config.COMPRESS_IMG_THRESHOLD_KB}KB, skipping compression")
        return image_bytes

    def _compress():
        img = Image.open(BytesIO(image_bytes))

        # JPEG has no alpha channel
        if img.mode in ("RGBA", "LA", "P"):
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            if img.mode == "RGBA":
                rgb_img.paste(img, mask=img.split()[-1])
            else:
                rgb_img.paste(img)
            img = rgb_img

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed = output.getvalue()
        logger.debug(f"Image compressed: {size_kb:.1f}KB → {len(compressed) / 1024:.1f}KB")
        return compressed

    return safe_execute_sync(_compress, "Image compression", log_level="warning", default_return=image_bytes)


async def resolve_image_bytes(image_source: str | bytes) -> Optional[bytes]:
    """Get raw image bytes from any supported source.

    Handles:
    - Direct bytes: Returned as-is
    - HTTP/HTTPS URLs: Fetched asynchronously (10s timeout)
    - Data URLs (data:image/jpeg;base64,...): Decoded from base64
    - Plain base64 strings: Decoded directly

    Args:
        image_source: URL, data URL, base64 string, or bytes.

    Returns:
        Image bytes, or None on any failure (logged as warning).
    """
    if isinstance(image_source, bytes):
        return image_source

    if not isinstance(image_source, str):
        return None

    if image_source.startswith(("http://", "https://")):

        async def _fetch_url():
            async with aiohttp.ClientSession() as session:
                async with session.get(image_source, timeout=aiohttp.ClientTimeout(total=10)) as response:
                    response.raise_for_status()
                    return await response.read()

        return await safe_execute_async(
            _fetch_url(),
            f"Fetch image from URL: {image_source}",
            log_level="warning",
            default_return=None,
        )

    def _decode():
        encoded = image_source.split(",", 1)[1] if image_source.startswith("data:") else image_source
        return base64.b64decode(encoded, validate=False)

    return safe_execute_sync(_decode, "Decode base64 image", log_level="warning", default_return=None)


def detect_mime_type(image_bytes: bytes) -> Optional[str]:
    """MIME type from magic bytes, or None when the format is unsupported."""
    kind = filetype.guess(image_bytes)
    if kind is None:
        return None
    return SUPPORTED_FORMATS.get(kind.extension)


def validate_image_format(image_bytes: bytes) -> bool:
    """Check the real format (from magic bytes, not extension) is JPEG, PNG, or WEBP."""
    if detect_mime_type(image_bytes) is None:
        logger.warning(f"Invalid image format: {filetype.guess(image_bytes)}. Only JPEG, PNG and WEBP supported.")
        return False
    return True


def validate_image_size(image_bytes: bytes) -> bool:
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > config.MAX_IMAGE_SIZE_MB:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {config.MAX_IMAGE_SIZE_MB}MB")
        return False
    return True


# ============================================================================
# Gemini Vision
# ============================================================================


def parse_gemini_response(response_text: str) -> Optional[IngredientDetectionOutput]:
    """Parse JSON from a Gemini response into a validated IngredientDetectionOutput.

    Tries, in order: the full text as JSON, the body of a markdown code fence,
    and the outermost ``{...}`` found in the text.

    Args:
        response_text: Raw response text (may include prose or code fences).

    Returns:
        Validated output, or None if no valid JSON was found or validation failed.
    """
    if not response_text:
        logger.warning("Empty response from Gemini")
        return None

    def _parse_json_direct():
        return json.loads(response_text)

    def _parse_code_fence():
        fence = re.search(r"```(?:json)?\s*(.*?)```", response_text, re.DOTALL)
        return json.loads(fence.group(1)) if fence else None

    def _parse_json_regex():
        json_match = re.search(r"\{.*\}", response_text, re.DOTALL)
        return json.loads(json_match.group()) if json_match else None

    parsed_dict = None
    for strategy, name in (
        (_parse_json_direct, "Direct JSON parse"),
        (_parse_code_fence, "Code fence JSON extraction"),
        (_parse_json_regex, "Regex JSON extraction"),
    ):
        parsed_dict = safe_execute_sync(strategy, name, log_level="debug", default_return=None)
        if isinstance(parsed_dict, dict):
            break
        parsed_dict = None

    if parsed_dict is None:
        logger.warning("Failed to parse JSON from Gemini response")
        return None

    def _validate_output():
        return IngredientDetectionOutput(
            ingredients=parsed_dict.get("ingredients", []),
            confidence_scores=parsed_dict.get("confidence_scores", {}),
            image_description=parsed_dict.get("image_description"),
        )

    return safe_execute_sync(
        _validate_output,
        "Validate IngredientDetectionOutput schema",
        log_level="warning",
        default_return=None,
    )


async def extract_ingredients_from_image(image_bytes: bytes) -> Optional[IngredientDetectionOutput]:
    """Single Gemini vision call, no retries.

    Args:
        image_bytes: Validated image bytes.

    Returns:
        Parsed detection output, or None if the response could not be parsed.

    Raises:
        Exception: Client and transport errors propagate so the retry loop can
            classify them as transient or permanent.
    """
    mime_type = detect_mime_type(image_bytes) or "image/jpeg"
    client = genai.Client(api_key=config.GEMINI_API_KEY)

    # Sync client, keep the event loop free
    response = await asyncio.to_thread(
        client.models.generate_content,
        model=config.IMAGE_DETECTION_MODEL,
        contents=[DETECTION_PROMPT, types.Part.from_bytes(data=image_bytes, mime_type=mime_type)],
    )
    return parse_gemini_response(response.text)


async def extract_ingredients_with_retries(
    image_bytes: bytes, max_retries: Optional[int] = None
) -> Optional[IngredientDetectionOutput]:
    """Call Gemini with exponential backoff (1s → 2s → 4s).

    Unparseable responses and transient errors (network, timeouts, 429/5xx)
    are retried; anything else fails immediately.

    Args:
        image_bytes: Validated image bytes.
        max_retries: Attempt budget. Defaults to ``config.MAX_RETRIES``.

    Returns:
        Validated output, or None once attempts are exhausted.
    """
    attempts = config.MAX_RETRIES if max_retries is None else max_retries
    delay_seconds = 1

    for attempt in range(1, attempts + 1):
        try:
            result = await extract_ingredients_from_image(image_bytes)
            if result:
                return result
            reason = "unparseable response"
        except Exception as e:
            error_str = str(e).lower()
            if not any(keyword in error_str for keyword in TRANSIENT_ERROR_KEYWORDS):
                logger.warning(f"Permanent error from Gemini, not retrying: {e}")
                return None
            reason = str(e)

        if attempt < attempts:
            logger.debug(f"Retrying ingredient extraction (attempt {attempt + 1}/{attempts}) after {delay_seconds}s: {reason}")
            await asyncio.sleep(delay_seconds)
            delay_seconds *= 2

    logger.warning(f"Ingredient extraction exhausted all {attempts} attempts")
    return None


def filter_ingredients_by_confidence(ingredients: list[str], confidence_scores: dict[str, float]) -> list[str]:
    """Keep ingredients scoring at least MIN_INGREDIENT_CONFIDENCE, in order.

    Missing scores count as 0.0.
    """
    filtered = [
        ingredient
        for ingredient in ingredients
        if confidence_scores.get(ingredient, 0.0) >= config.MIN_INGREDIENT_CONFIDENCE
    ]

    if len(filtered) < len(ingredients):
        logger.debug(
            f"Filtered ingredients: {len(ingredients)} → {len(filtered)} "
            f"(confidence threshold: {config.MIN_INGREDIENT_CONFIDENCE})"
        )

    return filtered


async def detect_ingredients(image: str | bytes) -> list[str]:
    """Run the full image pipeline and return de-duplicated ingredient names.

    Raises:
        IngredientRecognitionError: With a user-facing message for each failure:
        - "Could not retrieve image bytes from provided data"
        - "Invalid image format. Only JPEG, PNG and WEBP are supported."
        - "Image too large. Maximum size is {MAX_IMAGE_SIZE_MB}MB"
        - "Failed to extract ingredients from image. Please try another image."
        - "No ingredients detected with sufficient confidence. Please try another image."
    """
    image_bytes = await resolve_image_bytes(image)
    if not image_bytes:
        raise IngredientRecognitionError("Could not retrieve image bytes from provided data")

    if not validate_image_format(image_bytes):
        raise IngredientRecognitionError("Invalid image format. Only JPEG, PNG and WEBP are supported.")

    if not validate_image_size(image_bytes):
        raise IngredientRecognitionError(f"Image too large. Maximum size is {config.MAX_IMAGE_SIZE_MB}MB")

    if config.COMPRESS_IMG:
        image_bytes = compress_image(image_bytes)

    result = await extract_ingredients_with_retries(image_bytes)
    if result is None:
        raise IngredientRecognitionError("Failed to extract ingredients from image. Please try another image.")

    ingredients = filter_ingredients_by_confidence(result.ingredients, result.confidence_scores)
    if not ingredients:
        raise IngredientRecognitionError("No ingredients detected with sufficient confidence. Please try another image.")

    unique = list(dict.fromkeys(ingredients))
    logger.info(f"Ingredients detected from image: {unique}", extra={"ingredient_count": len(unique)})
    return unique


async def recognize_ingredients(
    image: Optional[str | bytes] = None,
    ingredients: Optional[Sequence[str]] = None,
) -> list[str]:
    """Produce the available-ingredient list for one request.

    Typed ingredients win over an image and are returned as given (manual
    entry). With neither, the result is an empty list.

    Args:
        image: Photo as bytes, URL, data URL, or base64 string.
        ingredients: Ingredient names typed by the user.

    Returns:
        Ingredient names, in order, without duplicates for detected lists.

    Raises:
        IngredientRecognitionError: If an image is given but no API key is
            configured, or the image pipeline fails.
    """
    if ingredients:
        return list(ingredients)

    if not image:
        return []

    if not config.GEMINI_API_KEY:
        raise IngredientRecognitionError("GEMINI_API_KEY is not configured; image recognition is unavailable")

    try:
        return await detect_ingredients(image)
    except IngredientRecognitionError:
        raise
    except Exception as e:
        logger.error(f"Ingredient recognition failed: {e}")
        raise IngredientRecognitionError(f"Ingredient detection failed: {str(e)}") from e
