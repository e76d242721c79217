"""
Unit tests for the prompt builders.
"""

import pytest

from studio.ai.prompts import (
    DEFAULT_GUIDANCE,
    IMAGE_ONLY_RULE,
    LIGHTING_STYLE_DESCRIPTIONS,
    build_color_transfer_prompt,
    build_palette_extraction_prompt,
    build_retouch_prompt,
    build_suggestion_prompt,
    intensity_word,
    lighting_style_description,
)
from studio.models import ExtractedColor, LightingStyle


def expected_band(value: int) -> str:
    if value < 20:
        return "very subtle"
    if value < 40:
        return "subtle"
    if value < 60:
        return "moderate"
    if value < 80:
        return "strong"
    return "very strong"


@pytest.mark.parametrize("value", range(0, 101))
def test_intensity_word_bands(value):
    """Every integer 0-100 lands in the right band."""
    assert intensity_word(value) == expected_band(value)


@pytest.mark.parametrize("value,word", [
    (0, "very subtle"), (19, "very subtle"),
    (20, "subtle"), (39, "subtle"),
    (40, "moderate"), (59, "moderate"),
    (60, "strong"), (79, "strong"),
    (80, "very strong"), (100, "very strong"),
])
def test_intensity_word_boundaries(value, word):
    assert intensity_word(value) == word


@pytest.mark.parametrize("dodge,burn", [(80, 20), (20, 80), (0, 100), (55, 45)])
def test_retouch_prompt_maps_dodge_and_burn_independently(dodge, burn):
    prompt = build_retouch_prompt(dodge, burn, LightingStyle.STANDARD, "")

    assert f"- **Dodge Intensity:** {expected_band(dodge)}\n" in prompt
    assert f"- **Burn Intensity:** {expected_band(burn)}\n" in prompt


def test_retouch_prompt_includes_style_description():
    prompt = build_retouch_prompt(80, 20, LightingStyle.DRAMATIC, "")

    assert "Lighting Style:** Dramatic." in prompt
    assert LIGHTING_STYLE_DESCRIPTIONS[LightingStyle.DRAMATIC] in prompt


def test_every_style_has_a_description():
    for style in LightingStyle:
        assert lighting_style_description(style) == LIGHTING_STYLE_DESCRIPTIONS[style]


def test_unknown_style_falls_back_to_standard():
    assert lighting_style_description("Noir") == LIGHTING_STYLE_DESCRIPTIONS[LightingStyle.STANDARD]

    prompt = build_retouch_prompt(50, 50, "Noir", "")
    assert "Lighting Style:** Noir." in prompt
    assert LIGHTING_STYLE_DESCRIPTIONS[LightingStyle.STANDARD] in prompt


def test_style_accepts_enum_value_string():
    assert lighting_style_description("Soft Contrast") == LIGHTING_STYLE_DESCRIPTIONS[
        LightingStyle.SOFT_CONTRAST
    ]


def test_retouch_prompt_uses_guidance_verbatim():
    prompt = build_retouch_prompt(50, 50, LightingStyle.CINEMATIC, "make it film noir")

    assert '- **User Guidance:** "make it film noir"' in prompt
    assert DEFAULT_GUIDANCE not in prompt


@pytest.mark.parametrize("guidance", ["", None])
def test_retouch_prompt_default_guidance(guidance):
    prompt = build_retouch_prompt(50, 50, LightingStyle.STANDARD, guidance)

    assert DEFAULT_GUIDANCE in prompt


def test_retouch_prompt_ends_with_image_only_rule():
    prompt = build_retouch_prompt(10, 90, LightingStyle.REMBRANDT, "")

    assert prompt.endswith(IMAGE_ONLY_RULE)


def test_palette_prompt_count_and_language():
    prompt = build_palette_extraction_prompt(8, language="French")

    assert "identify the 8 most dominant" in prompt
    assert "MUST be in French" in prompt
    assert "HEX code" in prompt


def test_palette_prompt_defaults_to_configured_language():
    prompt = build_palette_extraction_prompt(5)

    assert "MUST be in Italian" in prompt


def test_color_transfer_prompt_lists_colors():
    colors = [
        ExtractedColor(hex="#112233", name="Notte", semantic="Ombre"),
        ExtractedColor(hex="#F0E0D0", name="Avorio", semantic="Alte luci"),
    ]

    prompt = build_color_transfer_prompt(colors)

    assert "- Notte (#112233): Ombre\n- Avorio (#F0E0D0): Alte luci" in prompt
    assert "Do not just tint the image" in prompt
    assert prompt.endswith(IMAGE_ONLY_RULE)


def test_suggestion_prompt_with_and_without_guidance():
    with_guidance = build_suggestion_prompt("moody portrait")
    without = build_suggestion_prompt("")

    assert '"moody portrait"' in with_guidance
    assert "no specific direction" in without
    for prompt in (with_guidance, without):
        assert "'dodge'" in prompt and "'burn'" in prompt
        assert "between 0 and 100" in prompt
