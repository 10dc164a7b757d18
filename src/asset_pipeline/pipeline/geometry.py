"""Asset classification, palette resolution, and construction plan types.

Everything here is pure. The per-category recipes live in ``recipes.py`` and
produce the plan types defined below; ``render.py`` turns a plan into the
script form the authoring tool executes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from asset_pipeline.pipeline.models import DEFAULT_POLY_BUDGET, Asset, Manifest, Region

_HEX_COLOR_RE = re.compile(r"^#?([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})$")

FALLBACK_PRIMARY = "#808080"
FALLBACK_SECONDARY = "#404040"
FALLBACK_ACCENT = "#FFFFFF"
FALLBACK_DARK = "#1A1A1A"


class GeometryError(ValueError):
    """Invalid input to colour or recipe resolution."""


class AssetCategory(str, Enum):
    """Construction recipe families."""

    TREE = "tree"
    ROCK_FORMATION = "rock_formation"
    CONTAINER = "container"
    SHRINE = "shrine"
    GLOWING_FUNGUS = "glowing_fungus"
    ARCHWAY = "archway"
    GENERIC = "generic"


# Evaluated top to bottom, first match wins. The order is the only tie-break.
CLASSIFICATION_RULES: tuple[tuple[AssetCategory, tuple[str, ...]], ...] = (
    (AssetCategory.TREE, ("tree", "oak", "mist_tree")),
    (AssetCategory.ROCK_FORMATION, ("rock", "stone", "pillar", "spire")),
    (AssetCategory.CONTAINER, ("chest", "crate", "barrel")),
    (AssetCategory.SHRINE, ("altar", "shrine", "wayshrine")),
    (AssetCategory.GLOWING_FUNGUS, ("mushroom", "fungi")),
    (AssetCategory.ARCHWAY, ("gate", "arch", "door")),
)


class RgbaColor(NamedTuple):
    red: float
    green: float
    blue: float
    alpha: float = 1.0


@dataclass(slots=True)
class PaletteColors:
    """Region palette resolved into named roles."""

    primary: RgbaColor
    secondary: RgbaColor
    accent: RgbaColor
    dark: RgbaColor


class PrimitiveKind(str, Enum):
    CUBE = "cube"
    CYLINDER = "cylinder"
    CONE = "cone"
    ICO_SPHERE = "ico_sphere"
    UV_SPHERE = "uv_sphere"


@dataclass(slots=True)
class MaterialSpec:
    """Principled material; unset inputs keep the tool defaults."""

    name: str
    base_color: RgbaColor | None = None
    roughness: float | None = None
    emission_color: RgbaColor | None = None
    emission_strength: float | None = None


@dataclass(slots=True)
class TextureSpec:
    name: str
    kind: str


@dataclass(slots=True)
class ModifierSpec:
    """Modifier attached to a primitive, settings are tool attribute values."""

    name: str
    kind: str
    settings: dict[str, float | int] = field(default_factory=dict)
    texture: TextureSpec | None = None


Vector3 = tuple[float, float, float]


@dataclass(slots=True)
class PrimitiveStep:
    """One primitive to add, name, transform and bind."""

    object_name: str
    kind: PrimitiveKind
    dimensions: dict[str, float | int]
    location: Vector3
    material: str
    rotation: Vector3 | None = None
    scale: Vector3 | None = None
    modifiers: list[ModifierSpec] = field(default_factory=list)


@dataclass(slots=True)
class GenerationRecipe:
    """Tool-agnostic construction plan for one asset."""

    asset_id: str
    asset_name: str
    description: str
    category: AssetCategory
    materials: list[MaterialSpec]
    steps: list[PrimitiveStep]

    def material_names(self) -> list[str]:
        return [material.name for material in self.materials]


def classify_asset(asset_id: str) -> AssetCategory:
    """Map an asset id to its recipe category by ordered substring rules."""

    for category, keywords in CLASSIFICATION_RULES:
        if any(keyword in asset_id for keyword in keywords):
            return category
    return AssetCategory.GENERIC


def hex_to_normalized_color(value: str) -> RgbaColor:
    """Parse ``#RRGGBB`` into channels in [0, 1] rounded to 3 decimals."""

    if not isinstance(value, str):
        raise GeometryError(f"Colour must be a hex string, got {type(value).__name__}")
    match = _HEX_COLOR_RE.match(value.strip())
    if match is None:
        raise GeometryError(f"Invalid hex colour: {value!r}. Expected #RRGGBB.")
    red, green, blue = (round(int(channel, 16) / 255, 3) for channel in match.groups())
    return RgbaColor(red, green, blue, 1.0)


def resolve_palette_colors(region: Region) -> PaletteColors:
    """Resolve primary/secondary/accent/dark, falling back to fixed greys."""

    fallbacks = (FALLBACK_PRIMARY, FALLBACK_SECONDARY, FALLBACK_ACCENT, FALLBACK_DARK)
    resolved = [
        hex_to_normalized_color(region.palette[index] if index < len(region.palette) else default)
        for index, default in enumerate(fallbacks)
    ]
    return PaletteColors(
        primary=resolved[0],
        secondary=resolved[1],
        accent=resolved[2],
        dark=resolved[3],
    )


def build_authoring_brief(asset: Asset, region: Region, region_id: str, manifest: Manifest) -> str:
    """Natural-language context for the asset; advisory, never executed."""

    art = manifest.art_direction
    poly_budget = art.budget_for(asset.type) if art is not None else DEFAULT_POLY_BUDGET
    style = art.style if art is not None else ""
    palette = ", ".join(region.palette)

    return (
        "You are creating a 3D game asset.\n"
        "\n"
        f"ASSET: {asset.name}\n"
        f"DESCRIPTION: {asset.description}\n"
        f"TYPE: {asset.type.value} (poly budget: {poly_budget})\n"
        f"REGION: {region_id} - {region.theme}\n"
        f"COLOR PALETTE: {palette}\n"
        f"STYLE: {style}\n"
        "\n"
        "INSTRUCTIONS:\n"
        "1. First, clear the scene (delete default cube/light/camera)\n"
        "2. Create the asset using primitives, modifiers, and sculpting\n"
        "3. Use the region's color palette for materials\n"
        "4. Add proper UV mapping\n"
        "5. Keep within the poly budget\n"
        "6. Place the asset at world origin (0, 0, 0)\n"
        f'7. Name the root object "{asset.id}"\n'
        "8. Apply all transforms\n"
        "\n"
        "Create this asset step by step. Start by clearing the scene, then build the geometry."
    )
