"""
AI Adapter interface and implementations.

The adapter is the facade over the remote generation model. Each public
operation builds its prompt, calls the model and adapts the response;
every failure below it is wrapped into a single RemoteOperationError
carrying a user-facing message.
"""

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types

from studio.ai.prompts import (
    build_color_transfer_prompt,
    build_palette_extraction_prompt,
    build_retouch_prompt,
    build_suggestion_prompt,
)
from studio.ai.responses import (
    extract_image,
    parse_suggestion,
    response_text,
    validate_palette_response,
)
from studio.core.config import settings
from studio.core.errors import RemoteOperationError, StudioError, TransportError
from studio.core.image_utils import encode_data_uri
from studio.core.messages import message
from studio.models import (
    ColorPalette,
    DodgeBurnSuggestion,
    ExtractedColor,
    RetouchParameters,
)

logger = logging.getLogger(__name__)


PALETTE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "colors": types.Schema(
            type=types.Type.ARRAY,
            description="An array of the extracted colors.",
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "hex": types.Schema(
                        type=types.Type.STRING,
                        description="The color in hexadecimal format (e.g., '#RRGGBB').",
                    ),
                    "name": types.Schema(
                        type=types.Type.STRING,
                        description="A creative name for the color.",
                    ),
                    "semantic": types.Schema(
                        type=types.Type.STRING,
                        description="A brief semantic description of the color's role in the image.",
                    ),
                },
                required=["hex", "name", "semantic"],
            ),
        ),
    },
    required=["colors"],
)

SUGGESTION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "dodge": types.Schema(
            type=types.Type.INTEGER,
            description="Recommended dodge intensity, 0-100.",
        ),
        "burn": types.Schema(
            type=types.Type.INTEGER,
            description="Recommended burn intensity, 0-100.",
        ),
    },
    required=["dodge", "burn"],
)


class AIAdapter(ABC):
    """
    Abstract base class for AI adapters.

    Subclasses implement the underscored operations; the public wrappers
    convert any failure into RemoteOperationError with a localized message
    that embeds the original error text.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = log_dir
        self.call_log: deque[dict[str, Any]] = deque(maxlen=settings.MAX_CALL_LOG_ENTRIES)

    def _log_call(
        self,
        operation: str,
        model: str,
        mime_type: str,
        input_size: int,
        prompt: str,
        success: bool,
        error: Optional[str] = None,
    ) -> None:
        """Log an adapter call for debugging."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "operation": operation,
            "model": model,
            "mime_type": mime_type,
            "input_size": input_size,
            "prompt": prompt[:500],  # Truncate long prompts
            "success": success,
            "error": error,
        }
        self.call_log.append(entry)

        if self.log_dir:
            # One JSON object per line; appending never rereads the file
            log_path = self.log_dir / "adapter_log.jsonl"
            try:
                with open(log_path, "a") as f:
                    f.write(json.dumps(entry) + "\n")
            except OSError as e:
                logger.warning(f"Failed to write adapter log: {e}")

    def _operation_error(self, key: str, error: Exception) -> RemoteOperationError:
        if not isinstance(error, StudioError):
            error = TransportError(str(error) or error.__class__.__name__)
        logger.error(f"{key}: {error}")
        return RemoteOperationError(message(key, error=error), cause=error)

    async def enhance(
        self,
        image_bytes: bytes,
        mime_type: str,
        params: RetouchParameters,
    ) -> str:
        """
        Apply the dodge & burn retouch.

        Returns:
            Data URI of the enhanced image

        Raises:
            RemoteOperationError: on any failure
        """
        try:
            return await self._enhance(image_bytes, mime_type, params)
        except Exception as e:
            raise self._operation_error("enhance_failed", e)

    async def extract_palette(
        self,
        image_bytes: bytes,
        mime_type: str,
        count: int,
    ) -> ColorPalette:
        """
        Extract `count` dominant colors from a reference image.

        Raises:
            RemoteOperationError: on any failure
        """
        try:
            return await self._extract_palette(image_bytes, mime_type, count)
        except Exception as e:
            raise self._operation_error("extract_failed", e)

    async def transfer_colors(
        self,
        image_bytes: bytes,
        mime_type: str,
        colors: Sequence[ExtractedColor],
    ) -> str:
        """
        Re-grade an image toward the selected palette colors.

        Returns:
            Data URI of the harmonized image

        Raises:
            RemoteOperationError: on any failure
        """
        try:
            return await self._transfer_colors(image_bytes, mime_type, colors)
        except Exception as e:
            raise self._operation_error("transfer_failed", e)

    async def suggest(
        self,
        image_bytes: bytes,
        mime_type: str,
        guidance: str = "",
    ) -> DodgeBurnSuggestion:
        """
        Ask for recommended dodge/burn intensities.

        Raises:
            RemoteOperationError: on any failure
        """
        try:
            return await self._suggest(image_bytes, mime_type, guidance)
        except Exception as e:
            raise self._operation_error("suggest_failed", e)

    @abstractmethod
    async def _enhance(self, image_bytes: bytes, mime_type: str, params: RetouchParameters) -> str:
        pass

    @abstractmethod
    async def _extract_palette(self, image_bytes: bytes, mime_type: str, count: int) -> ColorPalette:
        pass

    @abstractmethod
    async def _transfer_colors(
        self, image_bytes: bytes, mime_type: str, colors: Sequence[ExtractedColor]
    ) -> str:
        pass

    @abstractmethod
    async def _suggest(self, image_bytes: bytes, mime_type: str, guidance: str) -> DodgeBurnSuggestion:
        pass


class GeminiAIAdapter(AIAdapter):
    """
    Gemini AI adapter using Google's Gemini API.

    Image-producing calls use the image model with TEXT and IMAGE response
    modalities; palette and suggestion calls use the text model with a
    JSON response schema.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        image_model: Optional[str] = None,
        text_model: Optional[str] = None,
        log_dir: Optional[Path] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize the Gemini adapter.

        Args:
            api_key: Gemini API key (falls back to settings if not provided)
            image_model: Model for image-producing calls
            text_model: Model for JSON calls
            log_dir: Optional directory to save adapter logs
            client: Pre-built genai client, mainly for tests
        """
        super().__init__(log_dir=log_dir)
        self.image_model = image_model or settings.GEMINI_IMAGE_MODEL
        self.text_model = text_model or settings.GEMINI_TEXT_MODEL
        self.client = client or genai.Client(api_key=api_key or settings.require_api_key())

    async def _generate(
        self,
        operation: str,
        model: str,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse:
        contents = [
            types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
            types.Part.from_text(text=prompt),
        ]
        logger.info(f"Gemini {operation}: model={model}, prompt_chars={len(prompt)}")
        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            self._log_call(operation, model, mime_type, len(image_bytes), prompt, False, str(e))
            raise
        self._log_call(operation, model, mime_type, len(image_bytes), prompt, True)
        return response

    async def _generate_image(
        self, operation: str, image_bytes: bytes, mime_type: str, prompt: str
    ) -> str:
        response = await self._generate(
            operation,
            self.image_model,
            image_bytes,
            mime_type,
            prompt,
            types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )
        return extract_image(response)

    async def _generate_json(
        self,
        operation: str,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        schema: types.Schema,
    ) -> str:
        response = await self._generate(
            operation,
            self.text_model,
            image_bytes,
            mime_type,
            prompt,
            types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        return response_text(response)

    async def _enhance(self, image_bytes: bytes, mime_type: str, params: RetouchParameters) -> str:
        prompt = build_retouch_prompt(
            params.dodge,
            params.burn,
            params.lighting_style,
            params.creative_guidance,
        )
        return await self._generate_image("enhance", image_bytes, mime_type, prompt)

    async def _extract_palette(self, image_bytes: bytes, mime_type: str, count: int) -> ColorPalette:
        prompt = build_palette_extraction_prompt(count)
        json_text = await self._generate_json(
            "extract_palette", image_bytes, mime_type, prompt, PALETTE_SCHEMA
        )
        return validate_palette_response(json_text, expected_count=count)

    async def _transfer_colors(
        self, image_bytes: bytes, mime_type: str, colors: Sequence[ExtractedColor]
    ) -> str:
        prompt = build_color_transfer_prompt(colors)
        return await self._generate_image("transfer_colors", image_bytes, mime_type, prompt)

    async def _suggest(self, image_bytes: bytes, mime_type: str, guidance: str) -> DodgeBurnSuggestion:
        prompt = build_suggestion_prompt(guidance)
        json_text = await self._generate_json(
            "suggest", image_bytes, mime_type, prompt, SUGGESTION_SCHEMA
        )
        return parse_suggestion(json_text)


MOCK_COLORS = [
    ExtractedColor(hex="#1B2A41", name="Blu Notte", semantic="Ombre profonde"),
    ExtractedColor(hex="#C9A66B", name="Oro Antico", semantic="Luci calde"),
    ExtractedColor(hex="#8C2F39", name="Rosso Vino", semantic="Accento principale"),
    ExtractedColor(hex="#E8DCC4", name="Avorio", semantic="Alte luci"),
    ExtractedColor(hex="#4F6D7A", name="Ardesia", semantic="Toni medi freddi"),
    ExtractedColor(hex="#A3B18A", name="Salvia", semantic="Vegetazione"),
    ExtractedColor(hex="#D9822B", name="Ambra", semantic="Tramonto"),
    ExtractedColor(hex="#2E1F27", name="Prugna Scura", semantic="Neri ricchi"),
    ExtractedColor(hex="#F2C14E", name="Zafferano", semantic="Riflessi"),
    ExtractedColor(hex="#5D737E", name="Acciaio", semantic="Cielo coperto"),
    ExtractedColor(hex="#B56576", name="Rosa Antico", semantic="Incarnato"),
    ExtractedColor(hex="#355070", name="Indaco", semantic="Ombre fredde"),
    ExtractedColor(hex="#EAAC8B", name="Pesca", semantic="Pelle in luce"),
    ExtractedColor(hex="#6D597A", name="Lavanda Scura", semantic="Penombra"),
    ExtractedColor(hex="#90BE6D", name="Verde Prato", semantic="Sfondo naturale"),
    ExtractedColor(hex="#F8F4E3", name="Panna", semantic="Bianchi caldi"),
]


class MockAIAdapter(AIAdapter):
    """
    Deterministic offline adapter.

    Echoes the input image as the result and derives palettes and
    suggestions from a hash of the input bytes, so the same image always
    yields the same output.
    """

    def _compute_seed_hash(self, *args: Any) -> int:
        """Compute a deterministic seed from input arguments."""
        digest = hashlib.sha256()
        for arg in args:
            digest.update(arg if isinstance(arg, bytes) else str(arg).encode())
        return int.from_bytes(digest.digest()[:4], byteorder="big")

    async def _enhance(self, image_bytes: bytes, mime_type: str, params: RetouchParameters) -> str:
        prompt = build_retouch_prompt(
            params.dodge, params.burn, params.lighting_style, params.creative_guidance
        )
        self._log_call("enhance", "mock", mime_type, len(image_bytes), prompt, True)
        return encode_data_uri(image_bytes, mime_type)

    async def _extract_palette(self, image_bytes: bytes, mime_type: str, count: int) -> ColorPalette:
        prompt = build_palette_extraction_prompt(count)
        self._log_call("extract_palette", "mock", mime_type, len(image_bytes), prompt, True)
        start = self._compute_seed_hash(image_bytes) % len(MOCK_COLORS)
        colors = [MOCK_COLORS[(start + i) % len(MOCK_COLORS)] for i in range(count)]
        return ColorPalette(colors=colors)

    async def _transfer_colors(
        self, image_bytes: bytes, mime_type: str, colors: Sequence[ExtractedColor]
    ) -> str:
        prompt = build_color_transfer_prompt(colors)
        self._log_call("transfer_colors", "mock", mime_type, len(image_bytes), prompt, True)
        return encode_data_uri(image_bytes, mime_type)

    async def _suggest(self, image_bytes: bytes, mime_type: str, guidance: str) -> DodgeBurnSuggestion:
        prompt = build_suggestion_prompt(guidance)
        self._log_call("suggest", "mock", mime_type, len(image_bytes), prompt, True)
        seed = self._compute_seed_hash(image_bytes, guidance)
        return DodgeBurnSuggestion(dodge=30 + seed % 41, burn=30 + (seed >> 8) % 41)


def get_adapter(adapter_type: Optional[str] = None, log_dir: Optional[Path] = None, **kwargs) -> AIAdapter:
    """
    Factory function to get an AI adapter instance.

    Args:
        adapter_type: "gemini" or "mock" (defaults to settings.AI_ADAPTER_TYPE)
        log_dir: Optional directory to save adapter logs
        **kwargs: Additional arguments passed to adapter constructor

    Returns:
        AIAdapter instance
    """
    adapter_type = adapter_type or settings.AI_ADAPTER_TYPE
    log_dir = log_dir or settings.ADAPTER_LOG_DIR
    if adapter_type == "mock":
        return MockAIAdapter(log_dir=log_dir)
    elif adapter_type == "gemini":
        return GeminiAIAdapter(log_dir=log_dir, **kwargs)
    else:
        raise ValueError(f"Unknown adapter type: {adapter_type}")
