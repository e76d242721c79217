"""
Response adapter for generate_content results.

A raw model response is decoded once into one of three closed variants
(image, text only, empty) so nothing downstream inspects the SDK
structure again. JSON responses are validated against the shapes the
wizard expects.
"""

import base64
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from studio.core.errors import GenerationFailure, ParseFailure
from studio.core.image_utils import encode_data_uri
from studio.core.messages import message
from studio.models import ColorPalette, DodgeBurnSuggestion

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class Diagnostics:
    """Why a response may have carried no image."""
    block_reason: Optional[str] = None
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class ImageResult:
    """First inline image found in the response."""
    data: bytes
    mime_type: str

    def data_uri(self) -> str:
        return encode_data_uri(self.data, self.mime_type)


@dataclass(frozen=True)
class TextResult:
    """Response carried text but no image."""
    text: str
    diagnostics: Diagnostics


@dataclass(frozen=True)
class EmptyResult:
    """Response carried neither image nor text."""
    diagnostics: Diagnostics


DecodedResponse = Union[ImageResult, TextResult, EmptyResult]


def _reason_name(value: Any) -> Optional[str]:
    """Normalize an SDK enum (or plain string) to its name."""
    if value is None:
        return None
    name = getattr(value, "value", value)
    return str(name) if name else None


def _first_candidate(response: Any) -> Any:
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def _candidate_parts(candidate: Any) -> list:
    content = getattr(candidate, "content", None)
    return list(getattr(content, "parts", None) or [])


def _diagnostics(response: Any, candidate: Any) -> Diagnostics:
    feedback = getattr(response, "prompt_feedback", None)
    return Diagnostics(
        block_reason=_reason_name(getattr(feedback, "block_reason", None)),
        finish_reason=_reason_name(getattr(candidate, "finish_reason", None)),
    )


def response_text(response: Any) -> str:
    """Concatenate the non-thought text parts of the first candidate."""
    texts = []
    for part in _candidate_parts(_first_candidate(response)):
        text = getattr(part, "text", None)
        if isinstance(text, str) and not getattr(part, "thought", None):
            texts.append(text)
    return "".join(texts)


def decode_response(response: Any) -> DecodedResponse:
    """
    Decode a generate_content response into a closed variant.

    Parts are scanned in order; the first inline image wins even when text
    parts precede it.
    """
    candidate = _first_candidate(response)

    for part in _candidate_parts(candidate):
        inline = getattr(part, "inline_data", None)
        if inline is None:
            continue
        mime_type = getattr(inline, "mime_type", None) or ""
        data = getattr(inline, "data", None)
        if not mime_type.startswith("image/") or not data:
            continue
        if isinstance(data, str):
            data = base64.b64decode(data)
        return ImageResult(data=data, mime_type=mime_type)

    diagnostics = _diagnostics(response, candidate)
    text = response_text(response)
    if text:
        return TextResult(text=text, diagnostics=diagnostics)
    return EmptyResult(diagnostics=diagnostics)


def describe_missing_image(decoded: Union[TextResult, EmptyResult]) -> GenerationFailure:
    """
    Build the failure for a response without an image.

    Exactly one cause is reported, by priority: block reason, abnormal
    finish reason, model text, generic empty message.
    """
    diagnostics = decoded.diagnostics
    detail = message("no_image_returned")

    if diagnostics.block_reason:
        reason = "blocked"
        detail += " " + message("block_reason", reason=diagnostics.block_reason)
    elif diagnostics.finish_reason and diagnostics.finish_reason != "STOP":
        reason = "finish"
        detail += " " + message("finish_reason", reason=diagnostics.finish_reason)
    elif isinstance(decoded, TextResult):
        reason = "text"
        detail += " " + message("model_text", text=decoded.text)
    else:
        reason = "empty"
        detail += " " + message("empty_response")

    return GenerationFailure(message("generation_failed", detail=detail), reason=reason)


def extract_image(response: Any) -> str:
    """
    Return the first inline image of a response as a data URI.

    Raises:
        GenerationFailure: if the response has no image part
    """
    decoded = decode_response(response)
    if isinstance(decoded, ImageResult):
        return decoded.data_uri()

    failure = describe_missing_image(decoded)
    logger.error(f"API did not return an image part as expected: {failure}")
    raise failure


def _load_json(json_text: str) -> Any:
    text = (json_text or "").strip()
    fenced = CODE_FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseFailure(message("bad_json", error=e))


def validate_palette_response(json_text: str, expected_count: Optional[int] = None) -> ColorPalette:
    """
    Parse a palette JSON payload.

    Requires a top-level object whose `colors` field is a list of
    {hex, name, semantic} objects. A count different from `expected_count`
    or a non-canonical hex value is logged, not rejected.

    Raises:
        ParseFailure: if the payload is not JSON or lacks the colors list
    """
    parsed = _load_json(json_text)

    if not isinstance(parsed, dict) or not isinstance(parsed.get("colors"), list):
        raise ParseFailure(message("no_colors"))

    try:
        palette = ColorPalette.model_validate({"colors": parsed["colors"]})
    except PydanticValidationError as e:
        logger.error(f"Malformed palette entries: {e}")
        raise ParseFailure(message("no_colors"))

    if expected_count is not None and len(palette.colors) != expected_count:
        logger.warning(f"Requested {expected_count} colors, model returned {len(palette.colors)}")
    for color in palette.colors:
        if not HEX_COLOR_RE.match(color.hex):
            logger.warning(f"Non-canonical hex value in palette: {color.hex!r}")

    return palette


def _as_intensity(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return max(0, min(100, int(round(value))))


def parse_suggestion(json_text: str) -> DodgeBurnSuggestion:
    """
    Parse a {dodge, burn} suggestion, clamping both values to 0-100.

    Raises:
        ParseFailure: if either value is missing or not numeric
    """
    parsed = _load_json(json_text)
    if not isinstance(parsed, dict):
        raise ParseFailure(message("bad_suggestion"))

    dodge = _as_intensity(parsed.get("dodge"))
    burn = _as_intensity(parsed.get("burn"))
    if dodge is None or burn is None:
        raise ParseFailure(message("bad_suggestion"))

    return DodgeBurnSuggestion(dodge=dodge, burn=burn)
