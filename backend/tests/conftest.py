"""
Pytest configuration and fixtures.
"""

import asyncio
import io
import struct
import sys
import zlib
from pathlib import Path
from typing import Optional
from unittest.mock import patch

import pytest
from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from studio.ai.adapter import AIAdapter
from studio.core.config import settings
from studio.core.previews import PreviewRegistry
from studio.models import ColorPalette, DodgeBurnSuggestion, ExtractedColor
from studio.wizard import RetouchWizard


def make_image_bytes(fmt: str = "JPEG", size=(64, 48), color: str = "red") -> bytes:
    """Encode a solid-color test image."""
    img = Image.new("RGB", size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_png_header(width: int, height: int) -> bytes:
    """
    Minimal 1-bit grayscale PNG declaring the given size.

    The pixel data is a single empty row, so the file stays tiny while its
    header claims an arbitrarily large image.
    """
    def chunk(kind: bytes, payload: bytes) -> bytes:
        crc = zlib.crc32(kind + payload) & 0xFFFFFFFF
        return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 1, 0, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", ihdr)
        + chunk(b"IDAT", zlib.compress(b"\x00"))
        + chunk(b"IEND", b"")
    )


def make_palette(count: int) -> ColorPalette:
    """Palette with distinct, predictable hex values."""
    return ColorPalette(colors=[
        ExtractedColor(
            hex=f"#{i * 16:02X}{255 - i * 16:02X}80",
            name=f"Colore {i}",
            semantic=f"Ruolo {i}",
        )
        for i in range(count)
    ])


class FakeAdapter(AIAdapter):
    """
    Scriptable stand-in for the remote model.

    Results are plain attributes; `error` is raised by every operation;
    `gates` holds asyncio.Events an operation waits on before answering.
    """

    def __init__(self):
        super().__init__()
        self.calls: list[tuple] = []
        self.enhance_result = "data:image/png;base64,ZW5oYW5jZWQ="
        self.transfer_result = "data:image/png;base64,ZmluYWw="
        self.palette = make_palette(8)
        self.suggestion = DodgeBurnSuggestion(dodge=70, burn=30)
        self.error: Optional[Exception] = None
        self.gates: dict[str, asyncio.Event] = {}

    async def _answer(self, operation: str, result):
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return result

    async def _enhance(self, image_bytes, mime_type, params):
        self.calls.append(("enhance", image_bytes, mime_type, params))
        return await self._answer("enhance", self.enhance_result)

    async def _extract_palette(self, image_bytes, mime_type, count):
        self.calls.append(("extract_palette", image_bytes, mime_type, count))
        return await self._answer("extract_palette", self.palette)

    async def _transfer_colors(self, image_bytes, mime_type, colors):
        self.calls.append(("transfer_colors", image_bytes, mime_type, list(colors)))
        return await self._answer("transfer_colors", self.transfer_result)

    async def _suggest(self, image_bytes, mime_type, guidance):
        self.calls.append(("suggest", image_bytes, mime_type, guidance))
        return await self._answer("suggest", self.suggestion)


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def registry():
    """A small, isolated preview registry."""
    return PreviewRegistry(max_handles=8)


@pytest.fixture
def wizard(fake_adapter, registry):
    return RetouchWizard(adapter=fake_adapter, registry=registry, session_id="test")


@pytest.fixture
def image_factory():
    return make_image_bytes


@pytest.fixture
def palette_factory():
    return make_palette


@pytest.fixture
def sample_jpeg():
    return make_image_bytes("JPEG")


@pytest.fixture
def sample_png():
    return make_image_bytes("PNG", color="blue")


@pytest.fixture
def italian_messages():
    """Pin the message catalog so assertions on text are stable."""
    with patch.object(settings, "UI_LANGUAGE", "it"):
        yield


@pytest.fixture
def oversized_png():
    """A small file whose header declares 20000x20000 pixels."""
    return make_png_header(20000, 20000)
