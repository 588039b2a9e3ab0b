"""Unit tests for image-based ingredient recognition.

Tests cover:
- Image source resolution, format and size validation
- Optional compression
- JSON response parsing from Gemini API
- Confidence score filtering
- Retry logic with exponential backoff
- The recognize_ingredients entry point
"""

import base64
from io import BytesIO
from unittest.mock import AsyncMock, Mock, patch

import aiohttp
import pytest
from PIL import Image

from src.models.models import IngredientDetectionOutput
from src.recognizer.ingredients import (
    IngredientRecognitionError,
    compress_image,
    detect_ingredients,
    extract_ingredients_from_image,
    extract_ingredients_with_retries,
    filter_ingredients_by_confidence,
    parse_gemini_response,
    recognize_ingredients,
    resolve_image_bytes,
    validate_image_format,
    validate_image_size,
)
from src.utils.config import config

# PNG magic bytes
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF"
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBPVP8 "


def detection(ingredients, scores):
    return IngredientDetectionOutput(ingredients=ingredients, confidence_scores=scores)


@pytest.fixture
def recognizer_config(monkeypatch):
    """Deterministic recognizer settings."""
    monkeypatch.setattr(config, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(config, "COMPRESS_IMG", False)
    monkeypatch.setattr(config, "MIN_INGREDIENT_CONFIDENCE", 0.7)
    monkeypatch.setattr(config, "MAX_IMAGE_SIZE_MB", 5)
    monkeypatch.setattr(config, "MAX_RETRIES", 3)
    return config


class TestValidateImageFormat:
    """Test image format validation."""

    @pytest.mark.parametrize("image_bytes", [JPEG_BYTES, PNG_BYTES, WEBP_BYTES])
    def test_supported_formats(self, image_bytes):
        """JPEG, PNG, and WEBP images should be valid."""
        assert validate_image_format(image_bytes) is True

    def test_invalid_format(self):
        """GIF images should be rejected."""
        assert validate_image_format(b"GIF89a\x01\x00\x01\x00") is False

    def test_empty_bytes(self):
        assert validate_image_format(b"") is False


class TestValidateImageSize:
    """Test image size validation."""

    def test_valid_size(self, recognizer_config):
        assert validate_image_size(PNG_BYTES) is True

    def test_exactly_at_limit(self, recognizer_config):
        """An image of exactly MAX_IMAGE_SIZE_MB is accepted."""
        assert validate_image_size(b"\x00" * (5 * 1024 * 1024)) is True

    def test_over_limit(self, recognizer_config):
        assert validate_image_size(b"\x00" * (5 * 1024 * 1024 + 1)) is False


class TestCompressImage:
    """Test optional Pillow re-encoding."""

    def test_small_image_untouched(self, monkeypatch):
        """Images below the threshold are returned as-is."""
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 300)

        assert compress_image(PNG_BYTES) is PNG_BYTES

    def test_large_image_resized_to_jpeg(self, monkeypatch):
        """Oversized images are converted to RGB JPEG no wider than max_width."""
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 0)
        buffer = BytesIO()
        Image.new("RGBA", (2048, 512), (255, 0, 0, 128)).save(buffer, format="PNG")

        compressed = compress_image(buffer.getvalue(), max_width=1024)
        result = Image.open(BytesIO(compressed))

        assert result.format == "JPEG"
        assert result.size == (1024, 256)

    def test_undecodable_image_returns_original(self, monkeypatch):
        """Compression failures degrade to the original bytes."""
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 0)

        assert compress_image(PNG_BYTES) == PNG_BYTES


class TestResolveImageBytes:
    """Test image source handling."""

    @pytest.mark.asyncio
    async def test_bytes_pass_through(self):
        assert await resolve_image_bytes(PNG_BYTES) == PNG_BYTES

    @pytest.mark.asyncio
    async def test_data_url(self):
        data_url = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

        assert await resolve_image_bytes(data_url) == PNG_BYTES

    @pytest.mark.asyncio
    async def test_plain_base64(self):
        assert await resolve_image_bytes(base64.b64encode(JPEG_BYTES).decode()) == JPEG_BYTES

    @pytest.mark.asyncio
    async def test_url_fetch_failure_returns_none(self):
        """Network errors are logged and degrade to None."""
        with patch(
            "src.recognizer.ingredients.aiohttp.ClientSession",
            side_effect=aiohttp.ClientError("connection refused"),
        ):
            assert await resolve_image_bytes("https://example.com/food.jpg") is None

    @pytest.mark.asyncio
    async def test_unsupported_type_returns_none(self):
        assert await resolve_image_bytes(12345) is None


class TestParseGeminiResponse:
    """Test lenient JSON parsing of Gemini responses."""

    def test_valid_json(self):
        result = parse_gemini_response('{"ingredients": ["Tomato"], "confidence_scores": {"Tomato": 0.95}}')

        assert result.ingredients == ["tomato"]
        assert result.confidence_scores == {"tomato": 0.95}

    def test_code_fence(self):
        """Markdown fences around the JSON are tolerated."""
        text = '```json\n{"ingredients": ["basil"], "confidence_scores": {"basil": 0.9}}\n```'

        assert parse_gemini_response(text).ingredients == ["basil"]

    def test_json_with_surrounding_text(self):
        text = 'Here you go: {"ingredients": ["egg"], "confidence_scores": {"egg": 0.8}} Enjoy!'

        assert parse_gemini_response(text).ingredients == ["egg"]

    def test_invalid_json(self):
        assert parse_gemini_response("no json here") is None

    def test_missing_fields(self):
        """Responses that fail schema validation return None."""
        assert parse_gemini_response('{"invalid": "structure"}') is None

    def test_empty_string(self):
        assert parse_gemini_response("") is None


class TestFilterIngredientsByConfidence:
    """Test confidence threshold filtering."""

    def test_some_below_threshold(self, recognizer_config):
        scores = {"tomato": 0.95, "basil": 0.5, "garlic": 0.7}

        assert filter_ingredients_by_confidence(["tomato", "basil", "garlic"], scores) == ["tomato", "garlic"]

    def test_missing_confidence_score(self, recognizer_config):
        """Ingredients without a score are treated as 0.0."""
        assert filter_ingredients_by_confidence(["tomato"], {}) == []


class TestExtractIngredientsFromImage:
    """Test the Gemini vision API integration."""

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.genai.Client")
    async def test_successful_call(self, mock_client_class, recognizer_config):
        """Successful API call should return parsed ingredients."""
        mock_client = Mock()
        mock_client_class.return_value = mock_client
        mock_client.models.generate_content.return_value = Mock(
            text='{"ingredients": ["tomato"], "confidence_scores": {"tomato": 0.95}}'
        )

        result = await extract_ingredients_from_image(PNG_BYTES)

        assert result.ingredients == ["tomato"]
        mock_client_class.assert_called_once_with(api_key="test-key")
        kwargs = mock_client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == config.IMAGE_DETECTION_MODEL

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.genai.Client")
    async def test_unparseable_response(self, mock_client_class, recognizer_config):
        mock_client_class.return_value.models.generate_content.return_value = Mock(text="Sorry, I can't help")

        assert await extract_ingredients_from_image(PNG_BYTES) is None

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.genai.Client")
    async def test_api_error_propagates(self, mock_client_class, recognizer_config):
        """Client errors reach the retry loop for classification."""
        mock_client_class.return_value.models.generate_content.side_effect = RuntimeError("503 unavailable")

        with pytest.raises(RuntimeError):
            await extract_ingredients_from_image(PNG_BYTES)


class TestExtractIngredientsWithRetries:
    """Test retry logic with exponential backoff."""

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.asyncio.sleep", new_callable=AsyncMock)
    @patch("src.recognizer.ingredients.extract_ingredients_from_image", new_callable=AsyncMock)
    async def test_success_first_attempt(self, mock_extract, mock_sleep):
        mock_extract.return_value = detection(["tomato"], {"tomato": 0.95})

        result = await extract_ingredients_with_retries(PNG_BYTES, max_retries=3)

        assert result.ingredients == ["tomato"]
        assert mock_extract.call_count == 1
        mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.asyncio.sleep", new_callable=AsyncMock)
    @patch("src.recognizer.ingredients.extract_ingredients_from_image", new_callable=AsyncMock)
    async def test_retry_on_transient_failure(self, mock_extract, mock_sleep):
        """Should retry on transient failures (network errors, timeouts)."""
        mock_extract.side_effect = [
            Exception("Connection timeout"),
            Exception("503 Service Unavailable"),
            detection(["tomato"], {"tomato": 0.95}),
        ]

        result = await extract_ingredients_with_retries(PNG_BYTES, max_retries=3)

        assert result is not None
        assert mock_extract.call_count == 3
        assert [call.args[0] for call in mock_sleep.call_args_list] == [1, 2]

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.asyncio.sleep", new_callable=AsyncMock)
    @patch("src.recognizer.ingredients.extract_ingredients_from_image", new_callable=AsyncMock)
    async def test_exhausted_retries(self, mock_extract, mock_sleep):
        """Should give up after the attempt budget with 1s, 2s backoff in between."""
        mock_extract.side_effect = Exception("Connection timeout")

        result = await extract_ingredients_with_retries(PNG_BYTES, max_retries=3)

        assert result is None
        assert mock_extract.call_count == 3
        assert [call.args[0] for call in mock_sleep.call_args_list] == [1, 2]

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.asyncio.sleep", new_callable=AsyncMock)
    @patch("src.recognizer.ingredients.extract_ingredients_from_image", new_callable=AsyncMock)
    async def test_no_retry_on_permanent_failure(self, mock_extract, mock_sleep):
        """Should NOT retry on permanent failures (invalid API key)."""
        mock_extract.side_effect = Exception("Invalid API key")

        assert await extract_ingredients_with_retries(PNG_BYTES, max_retries=3) is None
        assert mock_extract.call_count == 1

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.asyncio.sleep", new_callable=AsyncMock)
    @patch("src.recognizer.ingredients.extract_ingredients_from_image", new_callable=AsyncMock)
    async def test_unparseable_responses_are_retried(self, mock_extract, mock_sleep):
        mock_extract.return_value = None

        assert await extract_ingredients_with_retries(PNG_BYTES, max_retries=2) is None
        assert mock_extract.call_count == 2

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.asyncio.sleep", new_callable=AsyncMock)
    @patch("src.recognizer.ingredients.extract_ingredients_from_image", new_callable=AsyncMock)
    async def test_budget_defaults_to_config(self, mock_extract, mock_sleep, monkeypatch):
        monkeypatch.setattr(config, "MAX_RETRIES", 4)
        mock_extract.return_value = None

        await extract_ingredients_with_retries(PNG_BYTES)

        assert mock_extract.call_count == 4


class TestDetectIngredients:
    """Test the full image pipeline."""

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.extract_ingredients_with_retries", new_callable=AsyncMock)
    async def test_filters_and_deduplicates(self, mock_extract, recognizer_config):
        mock_extract.return_value = detection(
            ["tomato", "basil", "tomato", "parsley"],
            {"tomato": 0.95, "basil": 0.88, "parsley": 0.4},
        )

        result = await detect_ingredients(base64.b64encode(PNG_BYTES).decode())

        assert result == ["tomato", "basil"]

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.compress_image")
    @patch("src.recognizer.ingredients.extract_ingredients_with_retries", new_callable=AsyncMock)
    async def test_compresses_when_enabled(self, mock_extract, mock_compress, recognizer_config, monkeypatch):
        monkeypatch.setattr(config, "COMPRESS_IMG", True)
        mock_compress.return_value = JPEG_BYTES
        mock_extract.return_value = detection(["egg"], {"egg": 0.9})

        await detect_ingredients(PNG_BYTES)

        mock_compress.assert_called_once_with(PNG_BYTES)
        mock_extract.assert_awaited_once_with(JPEG_BYTES)

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.resolve_image_bytes", new_callable=AsyncMock)
    async def test_failed_to_fetch_image(self, mock_resolve, recognizer_config):
        mock_resolve.return_value = None

        with pytest.raises(IngredientRecognitionError, match="Could not retrieve image bytes"):
            await detect_ingredients("https://example.com/missing.jpg")

    @pytest.mark.asyncio
    async def test_invalid_image_format(self, recognizer_config):
        with pytest.raises(IngredientRecognitionError, match="Invalid image format"):
            await detect_ingredients(b"GIF89a\x01\x00\x01\x00")

    @pytest.mark.asyncio
    async def test_image_too_large(self, recognizer_config, monkeypatch):
        monkeypatch.setattr(config, "MAX_IMAGE_SIZE_MB", 1)

        with pytest.raises(IngredientRecognitionError, match="Image too large"):
            await detect_ingredients(PNG_BYTES + b"\x00" * (1024 * 1024))

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.extract_ingredients_with_retries", new_callable=AsyncMock)
    async def test_extraction_failed(self, mock_extract, recognizer_config):
        mock_extract.return_value = None

        with pytest.raises(IngredientRecognitionError, match="Failed to extract ingredients"):
            await detect_ingredients(PNG_BYTES)

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.extract_ingredients_with_retries", new_callable=AsyncMock)
    async def test_nothing_confident_enough(self, mock_extract, recognizer_config):
        mock_extract.return_value = detection(["blur"], {"blur": 0.2})

        with pytest.raises(IngredientRecognitionError, match="sufficient confidence"):
            await detect_ingredients(PNG_BYTES)


class TestRecognizeIngredients:
    """Test the recognizer entry point."""

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.detect_ingredients", new_callable=AsyncMock)
    async def test_typed_ingredients_win(self, mock_detect, recognizer_config):
        """Typed ingredients are returned as given and the image is ignored."""
        result = await recognize_ingredients(image=PNG_BYTES, ingredients=["Chicken", "garlic"])

        assert result == ["Chicken", "garlic"]
        mock_detect.assert_not_called()

    @pytest.mark.asyncio
    async def test_nothing_given_returns_empty(self, recognizer_config):
        assert await recognize_ingredients() == []
        assert await recognize_ingredients(image=None, ingredients=[]) == []

    @pytest.mark.asyncio
    async def test_image_without_key_raises(self, recognizer_config, monkeypatch):
        monkeypatch.setattr(config, "GEMINI_API_KEY", "")

        with pytest.raises(IngredientRecognitionError, match="GEMINI_API_KEY"):
            await recognize_ingredients(image=PNG_BYTES)

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.detect_ingredients", new_callable=AsyncMock)
    async def test_image_runs_pipeline(self, mock_detect, recognizer_config):
        mock_detect.return_value = ["tomato"]

        assert await recognize_ingredients(image=PNG_BYTES) == ["tomato"]
        mock_detect.assert_awaited_once_with(PNG_BYTES)

    @pytest.mark.asyncio
    @patch("src.recognizer.ingredients.detect_ingredients", new_callable=AsyncMock)
    async def test_unexpected_errors_are_wrapped(self, mock_detect, recognizer_config):
        mock_detect.side_effect = KeyError("boom")

        with pytest.raises(IngredientRecognitionError, match="Ingredient detection failed"):
            await recognize_ingredients(image=PNG_BYTES)
