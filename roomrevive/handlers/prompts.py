"""Redesign prompt construction.

The style paragraphs are the product: each one names materials, palette
and period cues, and each one tells the model to keep the room's layout,
windows and structure. Without that last instruction the model tends to
invent a different room instead of redesigning the one in the photo.

``build_redesign_prompt`` is pure: same inputs, same string.
"""

from __future__ import annotations

import structlog

from roomrevive.models.contracts import Customizations, StyleOption

logger = structlog.get_logger()

STYLE_OPTIONS: tuple[StyleOption, ...] = (
    StyleOption(id="modern", name="Modern", description="Clean lines, minimal clutter"),
    StyleOption(
        id="modern-spa",
        name="Modern Spa",
        description="Serene, zen-inspired retreat",
        premium=True,
    ),
    StyleOption(id="scandinavian", name="Scandinavian", description="Light, airy, functional"),
    StyleOption(id="industrial", name="Industrial", description="Raw materials, urban edge"),
    StyleOption(id="bohemian", name="Bohemian", description="Eclectic, colorful, layered"),
    StyleOption(id="minimalist", name="Minimalist", description="Less is more, pure simplicity"),
    StyleOption(id="traditional", name="Traditional", description="Classic, elegant, timeless"),
    StyleOption(
        id="mid-century",
        name="Mid-Century Modern",
        description="Retro charm, organic curves",
    ),
    StyleOption(id="coastal", name="Coastal", description="Beach vibes, relaxed feel"),
    StyleOption(id="farmhouse", name="Farmhouse", description="Rustic warmth, cozy charm"),
    StyleOption(
        id="art-deco",
        name="Art Deco",
        description="Bold geometry, glamorous",
        premium=True,
    ),
    StyleOption(
        id="japanese",
        name="Japanese",
        description="Wabi-sabi, natural harmony",
        premium=True,
    ),
    StyleOption(
        id="mediterranean",
        name="Mediterranean",
        description="Warm tones, terracotta",
        premium=True,
    ),
)

STYLE_PROMPTS: dict[str, str] = {
    "modern": (
        "Transform this room into a sleek modern style with clean lines, neutral colors, "
        "minimalist furniture, contemporary art, and high-end finishes. "
        "Keep the same room layout and windows."
    ),
    "modern-spa": (
        "Redesign this room as a serene modern spa retreat with zen elements, natural "
        "materials like bamboo and stone, soft neutral tones, ambient lighting, plants, "
        "and calming water features. Keep the same room structure."
    ),
    "scandinavian": (
        "Redesign this room in Scandinavian style with light wood tones, white walls, "
        "cozy textiles, functional furniture, natural light emphasis, and hygge elements. "
        "Keep the same room structure."
    ),
    "industrial": (
        "Convert this room to industrial style with exposed brick, metal accents, raw "
        "materials, Edison bulbs, concrete elements, and urban loft aesthetic. "
        "Maintain the room's basic layout."
    ),
    "bohemian": (
        "Transform this room into bohemian style with rich colors, layered textiles, "
        "eclectic patterns, plants, global accents, and artistic décor. "
        "Keep the same room dimensions."
    ),
    "minimalist": (
        "Redesign this room in minimalist style with only essential furniture, "
        "monochromatic palette, clean surfaces, hidden storage, and zen-like simplicity. "
        "Preserve the room layout."
    ),
    "traditional": (
        "Convert this room to traditional style with elegant furniture, classic patterns, "
        "rich wood tones, formal arrangements, and timeless décor. "
        "Maintain the room structure."
    ),
    "mid-century": (
        "Transform this room into mid-century modern style with organic curves, retro "
        "furniture, warm wood tones, iconic design pieces, and 1950s-60s aesthetic. "
        "Keep the same room layout."
    ),
    "coastal": (
        "Redesign this room in coastal style with ocean-inspired blues and whites, natural "
        "textures, driftwood accents, nautical elements, and breezy beach house vibes. "
        "Maintain the room structure."
    ),
    "farmhouse": (
        "Convert this room to farmhouse style with rustic wood beams, shiplap walls, "
        "vintage accents, cozy textiles, warm neutrals, and country charm. "
        "Keep the same room dimensions."
    ),
    "art-deco": (
        "Transform this room into art deco style with bold geometric patterns, luxurious "
        "materials, gold accents, velvet upholstery, and 1920s glamour. "
        "Preserve the room layout."
    ),
    "japanese": (
        "Redesign this room in Japanese style with minimalist zen aesthetic, natural "
        "materials, shoji screens, low furniture, tatami elements, and wabi-sabi "
        "philosophy. Keep the same room structure."
    ),
    "mediterranean": (
        "Convert this room to Mediterranean style with terracotta tones, wrought iron "
        "details, arched doorways, mosaic tiles, and warm sunny European villa aesthetic. "
        "Maintain the room layout."
    ),
}

# Appended to every style paragraph
ROOM_PRESERVATION = (
    "Do not move or resize walls, windows, doors, or the ceiling, and keep the same "
    "camera angle so the result is clearly the same room."
)

CUSTOMIZATIONS_HEADER = "IMPORTANT CUSTOMIZATIONS (apply these exactly):"

WALL_COLOR_PHRASES: dict[str, str] = {
    "white": "Paint the walls a crisp classic white",
    "off-white": "Paint the walls a warm off-white cream",
    "light-gray": "Paint the walls a soft light gray",
    "greige": "Paint the walls a balanced greige (warm gray-beige)",
    "navy": "Paint the walls a deep navy blue",
    "sage": "Paint the walls a calming sage green",
    "terracotta": "Paint the walls an earthy terracotta",
    "charcoal": "Paint the walls a moody charcoal gray",
    "blush": "Paint the walls a subtle blush pink",
    "accent-wall": (
        "Paint one feature wall in a bold accent color that suits the style "
        "and keep the other walls neutral"
    ),
}

TRIM_STYLE_PHRASES: dict[str, str] = {
    "simple": "Add simple, clean baseboards",
    "classic": "Add classic crown molding along the ceiling and matching baseboards",
    "wainscoting": "Add raised-panel wainscoting to the lower third of the walls",
    "shiplap": "Clad the walls in horizontal shiplap paneling",
    "board-batten": "Add board and batten paneling to the walls",
    "picture-rail": "Add a picture rail molding around the upper walls",
    "coffered": "Add coffered ceiling trim with recessed panels",
}

TRIM_COLOR_PHRASES: dict[str, str] = {
    "white": "finished in bright white semi-gloss",
    "match": "painted to match the wall color",
    "contrast": "painted in a contrasting dark tone",
    "wood": "in a natural stained wood finish",
    "black": "painted matte black",
}

# Values meaning "no change requested"
_SENTINELS = frozenset({"", "keep", "none"})

STYLE_IDS: frozenset[str] = frozenset(STYLE_PROMPTS)


def is_known_style(style: str | None) -> bool:
    return style in STYLE_IDS


def is_premium_style(style: str) -> bool:
    return any(s.id == style and s.premium for s in STYLE_OPTIONS)


def _wall_color_instruction(c: Customizations) -> str | None:
    choice = c.wall_color.strip()
    if choice in _SENTINELS:
        return None
    if choice == "custom":
        custom = c.wall_color_custom.strip()
        return f"Paint the walls this exact color: {custom}" if custom else None
    phrase = WALL_COLOR_PHRASES.get(choice)
    if phrase is None:
        logger.warning("unknown_customization_value", field="wall_color", value=choice)
    return phrase


def _trim_instruction(c: Customizations) -> str | None:
    style = c.trim_style.strip()
    if style in _SENTINELS:
        return None
    phrase = TRIM_STYLE_PHRASES.get(style)
    if phrase is None:
        logger.warning("unknown_customization_value", field="trim_style", value=style)
        return None
    color = TRIM_COLOR_PHRASES.get(c.trim_color.strip())
    return f"{phrase}, {color}" if color else phrase


def build_customization_clause(customizations: Customizations | None) -> str:
    """Return the IMPORTANT CUSTOMIZATIONS block, or "" when nothing applies."""
    if customizations is None:
        return ""

    lines = [
        instruction
        for instruction in (
            _wall_color_instruction(customizations),
            _trim_instruction(customizations),
        )
        if instruction
    ]
    details = customizations.additional_details.strip()
    if details:
        lines.append(f"Additional requests: {details}")

    if not lines:
        return ""
    bullets = [f"- {line}" if line.endswith(".") else f"- {line}." for line in lines]
    return CUSTOMIZATIONS_HEADER + "\n" + "\n".join(bullets)


def build_redesign_prompt(style: str, customizations: Customizations | None = None) -> str:
    """Build the image-model instruction for one redesign.

    Raises KeyError for an unknown style; callers validate first.
    """
    prompt = f"{STYLE_PROMPTS[style]} {ROOM_PRESERVATION}"
    clause = build_customization_clause(customizations)
    if clause:
        prompt += "\n\n" + clause
    return prompt
