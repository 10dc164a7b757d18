"""Per-category construction recipes."""

from __future__ import annotations

import math
from collections.abc import Callable

from asset_pipeline.pipeline.geometry import (
    AssetCategory,
    GenerationRecipe,
    MaterialSpec,
    ModifierSpec,
    PaletteColors,
    PrimitiveKind,
    PrimitiveStep,
    RgbaColor,
    TextureSpec,
    classify_asset,
    hex_to_normalized_color,
    resolve_palette_colors,
)
from asset_pipeline.pipeline.models import Asset, Manifest, Region

BASE_ROUGHNESS = 0.7
TREE_BRANCH_ANGLES = (0, 1.2, 2.5, 3.8, 5.0)
CONTAINER_BAND_HEIGHTS = (0.2, 0.5)
SHRINE_VOID_MARKERS = ("void", "aeth")
SHRINE_VOID_GLOW = "#7B2FBE"
SHRINE_EMBER_GLOW = "#FF6B2B"
FUNGUS_GLOW = RgbaColor(0.0, 1.0, 0.66, 1.0)


class BaseMaterials:
    """Names of the four palette materials every recipe starts from."""

    def __init__(self, asset_id: str) -> None:
        self.primary = f"{asset_id}_Primary"
        self.secondary = f"{asset_id}_Secondary"
        self.accent = f"{asset_id}_Accent"
        self.dark = f"{asset_id}_Dark"

    def specs(self, colors: PaletteColors) -> list[MaterialSpec]:
        return [
            MaterialSpec(self.primary, base_color=colors.primary, roughness=BASE_ROUGHNESS),
            MaterialSpec(self.secondary, base_color=colors.secondary, roughness=BASE_ROUGHNESS),
            MaterialSpec(self.accent, base_color=colors.accent, roughness=BASE_ROUGHNESS),
            MaterialSpec(self.dark, base_color=colors.dark, roughness=BASE_ROUGHNESS),
        ]


RecipeParts = tuple[list[MaterialSpec], list[PrimitiveStep]]
RecipeBuilder = Callable[[Asset, BaseMaterials], RecipeParts]


def tree_recipe(asset: Asset, mats: BaseMaterials) -> RecipeParts:
    steps = [
        PrimitiveStep(
            object_name=f"{asset.id}_trunk",
            kind=PrimitiveKind.CYLINDER,
            dimensions={"radius": 0.3, "depth": 5},
            location=(0, 0, 2.5),
            material=mats.secondary,
        ),
        PrimitiveStep(
            object_name=f"{asset.id}_canopy",
            kind=PrimitiveKind.ICO_SPHERE,
            dimensions={"radius": 2.5, "subdivisions": 2},
            location=(0, 0, 5.5),
            scale=(1.0, 1.0, 0.7),
            material=mats.primary,
        ),
    ]
    for angle in TREE_BRANCH_ANGLES:
        x = math.cos(angle) * 1.2
        y = math.sin(angle) * 1.2
        steps.append(
            PrimitiveStep(
                object_name=f"{asset.id}_branch_{int(angle * 10)}",
                kind=PrimitiveKind.CYLINDER,
                dimensions={"radius": 0.08, "depth": 2},
                location=(x * 0.5, y * 0.5, 3.5),
                rotation=(0.4 * math.cos(angle), 0.4 * math.sin(angle), angle),
                material=mats.secondary,
            ),
        )
    return [], steps


def rock_formation_recipe(asset: Asset, mats: BaseMaterials) -> RecipeParts:
    rock = PrimitiveStep(
        object_name=asset.id,
        kind=PrimitiveKind.ICO_SPHERE,
        dimensions={"radius": 1.5, "subdivisions": 2},
        location=(0, 0, 1.5),
        scale=(1.2, 0.9, 1.5),
        material=mats.primary,
        modifiers=[
            ModifierSpec(
                name="Displace",
                kind="DISPLACE",
                settings={"strength": 0.5},
                texture=TextureSpec(name=f"{asset.id}_noise", kind="VORONOI"),
            ),
            ModifierSpec(name="Subsurf", kind="SUBSURF", settings={"levels": 1}),
        ],
    )
    return [], [rock]


def container_recipe(asset: Asset, mats: BaseMaterials) -> RecipeParts:
    steps = [
        PrimitiveStep(
            object_name=f"{asset.id}_body",
            kind=PrimitiveKind.CUBE,
            dimensions={"size": 0.8},
            location=(0, 0, 0.4),
            scale=(1, 0.7, 0.6),
            material=mats.secondary,
        ),
        PrimitiveStep(
            object_name=f"{asset.id}_lid",
            kind=PrimitiveKind.CUBE,
            dimensions={"size": 0.8},
            location=(0, 0, 0.72),
            scale=(1.02, 0.72, 0.15),
            material=mats.secondary,
        ),
    ]
    for z in CONTAINER_BAND_HEIGHTS:
        steps.append(
            PrimitiveStep(
                object_name=f"{asset.id}_band_{int(z * 10)}",
                kind=PrimitiveKind.CUBE,
                dimensions={"size": 0.82},
                location=(0, 0, z),
                scale=(1.03, 0.73, 0.03),
                material=mats.dark,
            ),
        )
    return [], steps


def shrine_recipe(asset: Asset, mats: BaseMaterials) -> RecipeParts:
    glow_hex = (
        SHRINE_VOID_GLOW
        if any(marker in asset.id for marker in SHRINE_VOID_MARKERS)
        else SHRINE_EMBER_GLOW
    )
    crystal_glow = MaterialSpec(
        name=f"{asset.id}_CrystalGlow",
        emission_color=hex_to_normalized_color(glow_hex),
        emission_strength=5.0,
    )
    steps = [
        PrimitiveStep(
            object_name=f"{asset.id}_base",
            kind=PrimitiveKind.CYLINDER,
            dimensions={"radius": 1, "depth": 0.3},
            location=(0, 0, 0.15),
            material=mats.primary,
        ),
        PrimitiveStep(
            object_name=f"{asset.id}_pillar",
            kind=PrimitiveKind.CYLINDER,
            dimensions={"radius": 0.25, "depth": 1.5},
            location=(0, 0, 1.0),
            material=mats.primary,
        ),
        PrimitiveStep(
            object_name=f"{asset.id}_crystal",
            kind=PrimitiveKind.CONE,
            dimensions={"radius1": 0.3, "radius2": 0.0, "depth": 0.8},
            location=(0, 0, 2.2),
            material=crystal_glow.name,
        ),
    ]
    return [crystal_glow], steps


def glowing_fungus_recipe(asset: Asset, mats: BaseMaterials) -> RecipeParts:
    glow = MaterialSpec(
        name=f"{asset.id}_Glow",
        base_color=FUNGUS_GLOW,
        emission_color=FUNGUS_GLOW,
        emission_strength=3.0,
    )
    steps = [
        PrimitiveStep(
            object_name=f"{asset.id}_stem",
            kind=PrimitiveKind.CYLINDER,
            dimensions={"radius": 0.4, "depth": 3},
            location=(0, 0, 1.5),
            material=mats.secondary,
        ),
        PrimitiveStep(
            object_name=f"{asset.id}_cap",
            kind=PrimitiveKind.UV_SPHERE,
            dimensions={"radius": 1.5},
            location=(0, 0, 3.5),
            scale=(1.0, 1.0, 0.5),
            material=glow.name,
        ),
    ]
    return [glow], steps


def archway_recipe(asset: Asset, mats: BaseMaterials) -> RecipeParts:
    def block(
        part: str,
        location: tuple[float, float, float],
        scale: tuple[float, float, float],
        material: str,
    ) -> PrimitiveStep:
        return PrimitiveStep(
            object_name=f"{asset.id}_{part}",
            kind=PrimitiveKind.CUBE,
            dimensions={"size": 1},
            location=location,
            scale=scale,
            material=material,
        )

    return [], [
        block("left", (-2, 0, 2.5), (0.5, 0.5, 2.5), mats.primary),
        block("right", (2, 0, 2.5), (0.5, 0.5, 2.5), mats.primary),
        block("top", (0, 0, 5.3), (2.5, 0.5, 0.3), mats.primary),
        block("door", (0, 0, 2.5), (1.8, 0.1, 2.3), mats.dark),
    ]


def generic_recipe(asset: Asset, mats: BaseMaterials) -> RecipeParts:
    placeholder = PrimitiveStep(
        object_name=asset.id,
        kind=PrimitiveKind.CUBE,
        dimensions={"size": 1},
        location=(0, 0, 0.5),
        material=mats.primary,
        modifiers=[
            ModifierSpec(name="Bevel", kind="BEVEL", settings={"width": 0.05, "segments": 2}),
        ],
    )
    return [], [placeholder]


RECIPE_BUILDERS: dict[AssetCategory, RecipeBuilder] = {
    AssetCategory.TREE: tree_recipe,
    AssetCategory.ROCK_FORMATION: rock_formation_recipe,
    AssetCategory.CONTAINER: container_recipe,
    AssetCategory.SHRINE: shrine_recipe,
    AssetCategory.GLOWING_FUNGUS: glowing_fungus_recipe,
    AssetCategory.ARCHWAY: archway_recipe,
    AssetCategory.GENERIC: generic_recipe,
}


def build_generation_recipe(
    asset: Asset,
    region: Region,
    region_id: str,  # noqa: ARG001
    manifest: Manifest,  # noqa: ARG001
) -> GenerationRecipe:
    """Build the construction plan for ``asset`` from its category and palette.

    Raises ``GeometryError`` when the region palette holds a malformed colour.
    """

    colors = resolve_palette_colors(region)
    category = classify_asset(asset.id)
    mats = BaseMaterials(asset.id)
    extra_materials, steps = RECIPE_BUILDERS[category](asset, mats)
    return GenerationRecipe(
        asset_id=asset.id,
        asset_name=asset.name,
        description=asset.description,
        category=category,
        materials=mats.specs(colors) + extra_materials,
        steps=steps,
    )
