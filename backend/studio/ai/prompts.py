"""
Prompt builders for the remote image model.

Pure string construction: intensities, styles and palettes in,
instruction text out.
"""

from typing import Iterable, Optional, Union

from studio.core.config import settings
from studio.models import ExtractedColor, LightingStyle


IMAGE_ONLY_RULE = (
    "**Critical Rule: Your output MUST be the processed image ONLY. "
    "Do not output any text, JSON, or explanation. Just the image.**"
)

DEFAULT_GUIDANCE = (
    "Use your expert artistic judgment to naturally enhance the image, "
    "guiding the viewer's eye and improving the overall mood."
)

LIGHTING_STYLE_DESCRIPTIONS = {
    LightingStyle.STANDARD:
        "Applies a balanced enhancement to naturally increase dimensionality.",
    LightingStyle.CINEMATIC:
        "Emulates cinematic lighting with high contrast and deep shadows for a dramatic look.",
    LightingStyle.REMBRANDT:
        "Creates a classic Rembrandt-style portrait with a triangle of light on the cheek "
        "to add dimensionality.",
    LightingStyle.SOFT_CONTRAST:
        "Applies a dreamy and ethereal look with soft transitions between light and shadow.",
    LightingStyle.DRAMATIC:
        "Uses strong chiaroscuro for a bold image, pushing highlights and shadows to their extremes.",
}

# Upper bounds (exclusive) of each intensity band
INTENSITY_BANDS = [
    (20, "very subtle"),
    (40, "subtle"),
    (60, "moderate"),
    (80, "strong"),
]


def intensity_word(value: int) -> str:
    """Map a 0-100 intensity to its qualitative band."""
    for upper, word in INTENSITY_BANDS:
        if value < upper:
            return word
    return "very strong"


def lighting_style_description(style: Union[LightingStyle, str]) -> str:
    """Describe a lighting style; unknown styles get the Standard description."""
    try:
        style = LightingStyle(style)
    except ValueError:
        style = LightingStyle.STANDARD
    return LIGHTING_STYLE_DESCRIPTIONS[style]


def build_retouch_prompt(
    dodge: int,
    burn: int,
    style: Union[LightingStyle, str],
    guidance: Optional[str] = None,
) -> str:
    """
    Build the dodge & burn instruction.

    Args:
        dodge: Dodge intensity 0-100
        burn: Burn intensity 0-100
        style: Lighting style (enum or its value)
        guidance: Free-text user guidance, used verbatim when non-empty

    Returns:
        Prompt text ending with the image-only rule
    """
    style_label = style.value if isinstance(style, LightingStyle) else str(style)
    if guidance:
        guidance_line = f'- **User Guidance:** "{guidance}"'
    else:
        guidance_line = f"- **User Guidance:** {DEFAULT_GUIDANCE}"

    return (
        "You are a world-class photo retoucher. Your task is to perform a non-destructive "
        '"Dodge & Burn" enhancement on the provided image to increase its dimensionality '
        "and impact.\n"
        "\n"
        "- **Objective:** Apply dodging (brightening highlights) and burning (darkening "
        "shadows) based on the following creative direction.\n"
        f"- **Dodge Intensity:** {intensity_word(dodge)}\n"
        f"- **Burn Intensity:** {intensity_word(burn)}\n"
        f"- **Lighting Style:** {style_label}. ({lighting_style_description(style)})\n"
        f"{guidance_line}\n"
        "\n"
        f"{IMAGE_ONLY_RULE}"
    )


def build_palette_extraction_prompt(count: int, language: Optional[str] = None) -> str:
    """Ask for `count` dominant colors with names/roles in `language`."""
    language = language or settings.PALETTE_LANGUAGE
    return (
        f"Analyze this reference image and identify the {count} most dominant and "
        "representative colors that define its overall mood and aesthetic. For each color, "
        "provide its HEX code, a creative name, and a brief semantic description. "
        f"IMPORTANT: The 'name' and 'semantic' fields in the JSON response MUST be in {language}. "
        "Respond with JSON only."
    )


def build_color_transfer_prompt(colors: Iterable[ExtractedColor]) -> str:
    """Ask for a professional re-grade of the image toward the selected palette."""
    color_list = "\n".join(f"- {c.name} ({c.hex}): {c.semantic}" for c in colors)

    return (
        "You are an expert colorist. Your task is to creatively re-grade the provided image "
        "to match the mood of a specific color palette.\n"
        "\n"
        "- **Source Image:** The user has provided an image that has already been retouched "
        "for light and shadow.\n"
        "- **Target Palette:** Harmonize the image's colors with the following palette:\n"
        f"{color_list}\n"
        "- **Objective:** The final image should feel as if it belongs to the same world as "
        "the reference palette. Adjust midtones, highlights, and shadows subtly to incorporate "
        "these colors. Do not just tint the image; perform a professional-grade color transfer.\n"
        "\n"
        f"{IMAGE_ONLY_RULE}"
    )


def build_suggestion_prompt(guidance: Optional[str] = None) -> str:
    """Ask the model to recommend dodge/burn intensities for the image."""
    if guidance:
        guidance_line = f'The user describes the desired result as: "{guidance}".'
    else:
        guidance_line = "The user gave no specific direction; aim for a natural, dimensional result."

    return (
        "You are a world-class photo retoucher. Study the lighting of the provided image and "
        "recommend how strongly to apply a Dodge & Burn enhancement.\n"
        f"{guidance_line}\n"
        "Return two integers between 0 and 100: 'dodge' (how much to brighten highlights) and "
        "'burn' (how much to darken shadows). Respond with JSON only."
    )
