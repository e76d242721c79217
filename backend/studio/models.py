"""
Pydantic models for the wizard and the API.

Defines enums for wizard steps, remote action kinds and lighting styles,
the retouch/palette data model, and request/response models for the
session endpoints.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WizardStep(str, Enum):
    """Wizard steps, strictly ordered."""
    UPLOAD = "upload"
    RETOUCH = "retouch"      # Dodge & burn parameters
    HARMONIZE = "harmonize"  # Palette extraction + color transfer
    DONE = "done"


class ActionKind(str, Enum):
    """Remote operations the wizard can have in flight."""
    ENHANCE = "enhance"
    EXTRACT = "extract"
    TRANSFER = "transfer"
    SUGGEST = "suggest"


class LightingStyle(str, Enum):
    """Lighting styles offered for the retouch step."""
    STANDARD = "Standard"
    CINEMATIC = "Cinematic"
    REMBRANDT = "Rembrandt"
    SOFT_CONTRAST = "Soft Contrast"
    DRAMATIC = "Dramatic"


# === Data Model ===

class RetouchParameters(BaseModel):
    """Dodge & burn parameters; frozen so a dispatched request cannot change."""
    model_config = ConfigDict(frozen=True)

    dodge: int = Field(default=50, ge=0, le=100, description="Dodge intensity")
    burn: int = Field(default=50, ge=0, le=100, description="Burn intensity")
    lighting_style: LightingStyle = LightingStyle.STANDARD
    creative_guidance: str = Field(default="", description="Optional free-text guidance")


class ExtractedColor(BaseModel):
    """A single color returned by palette extraction."""
    model_config = ConfigDict(frozen=True)

    hex: str
    name: str
    semantic: str


class ColorPalette(BaseModel):
    """Colors in model output order."""
    colors: list[ExtractedColor]


class DodgeBurnSuggestion(BaseModel):
    """Suggested dodge/burn intensities."""
    dodge: int = Field(..., ge=0, le=100)
    burn: int = Field(..., ge=0, le=100)


# === API Request Models ===

class SelectionToggleRequest(BaseModel):
    """Request body for POST /api/sessions/{id}/selection."""
    hex: str = Field(..., description="Hex value of the palette color to toggle")


# === API Response Models ===

class ColorView(BaseModel):
    """Palette color as shown to the client."""
    hex: str
    name: str
    semantic: str
    is_light: bool = Field(..., description="True when dark text should be used on this swatch")


class WizardStateResponse(BaseModel):
    """Snapshot of one wizard session."""
    session_id: str
    step: WizardStep
    busy: Optional[ActionKind] = None
    error: Optional[str] = None
    parameters: RetouchParameters
    original_preview_url: Optional[str] = None
    enhanced_result: Optional[str] = None
    final_result: Optional[str] = None
    reference_preview_url: Optional[str] = None
    palette: Optional[list[ColorView]] = None
    selected_colors: list[ColorView] = Field(default_factory=list)
