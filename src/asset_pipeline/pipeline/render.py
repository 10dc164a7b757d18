"""Render construction plans and pipeline steps as Blender Python scripts."""

from __future__ import annotations

from asset_pipeline.pipeline.geometry import (
    GenerationRecipe,
    MaterialSpec,
    ModifierSpec,
    PrimitiveKind,
    PrimitiveStep,
    RgbaColor,
)

EXPORT_EXTENSION = "fbx"

_PRIMITIVE_OPERATORS: dict[PrimitiveKind, str] = {
    PrimitiveKind.CUBE: "primitive_cube_add",
    PrimitiveKind.CYLINDER: "primitive_cylinder_add",
    PrimitiveKind.CONE: "primitive_cone_add",
    PrimitiveKind.ICO_SPHERE: "primitive_ico_sphere_add",
    PrimitiveKind.UV_SPHERE: "primitive_uv_sphere_add",
}

_MATERIAL_HELPER = '''\
def make_mat(name, base_color=None, roughness=None, emission_color=None, emission_strength=None):
    mat = bpy.data.materials.new(name=name)
    mat.use_nodes = True
    bsdf = mat.node_tree.nodes["Principled BSDF"]
    if base_color is not None:
        bsdf.inputs["Base Color"].default_value = base_color
    if roughness is not None:
        bsdf.inputs["Roughness"].default_value = roughness
    if emission_color is not None:
        bsdf.inputs["Emission Color"].default_value = emission_color
    if emission_strength is not None:
        bsdf.inputs["Emission Strength"].default_value = emission_strength
    return mat
'''

_FINALIZE = """\
bpy.ops.object.select_all(action='SELECT')
for obj in bpy.context.selected_objects:
    if obj.type == 'MESH':
        bpy.context.view_layer.objects.active = obj
        bpy.ops.object.origin_set(type='ORIGIN_GEOMETRY', center='BOUNDS')

bpy.ops.object.transform_apply(location=False, rotation=True, scale=True)
"""

SCENE_RESET_SCRIPT = """\
import bpy

bpy.ops.object.select_all(action='SELECT')
bpy.ops.object.delete()
for block in bpy.data.meshes:
    if block.users == 0:
        bpy.data.meshes.remove(block)
for block in bpy.data.materials:
    if block.users == 0:
        bpy.data.materials.remove(block)
print("Scene cleared")
"""


def format_color(color: RgbaColor) -> str:
    return f"({color.red:.3f}, {color.green:.3f}, {color.blue:.3f}, {float(color.alpha)!r})"


def render_recipe_script(recipe: GenerationRecipe) -> str:
    """Render the full generation script for one recipe."""

    known_materials = set(recipe.material_names())
    for step in recipe.steps:
        if step.material not in known_materials:
            raise ValueError(
                f"Step {step.object_name!r} references unknown material {step.material!r}",
            )

    lines = ["import bpy", "import math", "", _MATERIAL_HELPER, "materials = {}"]
    lines.extend(_render_material(material) for material in recipe.materials)
    lines.append("")
    lines.append(f"# Asset: {recipe.asset_name} ({recipe.category.value})")
    lines.extend(f"# {line}" for line in recipe.description.splitlines())
    for step in recipe.steps:
        lines.append("")
        lines.extend(_render_step(step))
    lines.append("")
    lines.append(_FINALIZE)
    message = f"Asset {recipe.asset_name!r} created successfully"
    lines.append(f"print({message!r})")
    return "\n".join(lines) + "\n"


def render_export_script(filepath: str) -> str:
    """Select all meshes and export them as FBX in game-engine axes."""

    message = f"Exported to {filepath}"
    return f"""\
import bpy

bpy.ops.object.select_all(action='DESELECT')
for obj in bpy.data.objects:
    if obj.type == 'MESH':
        obj.select_set(True)
        bpy.context.view_layer.objects.active = obj

bpy.ops.export_scene.fbx(
    filepath={filepath!r},
    use_selection=True,
    apply_scale_options='FBX_SCALE_ALL',
    axis_forward='-Y',
    axis_up='Z',
    use_mesh_modifiers=True,
    mesh_smooth_type='FACE',
    add_leaf_bones=False,
)
print({message!r})
"""


def _render_material(material: MaterialSpec) -> str:
    args = [repr(material.name)]
    if material.base_color is not None:
        args.append(f"base_color={format_color(material.base_color)}")
    if material.roughness is not None:
        args.append(f"roughness={_number(material.roughness)}")
    if material.emission_color is not None:
        args.append(f"emission_color={format_color(material.emission_color)}")
    if material.emission_strength is not None:
        args.append(f"emission_strength={_number(material.emission_strength)}")
    return f"materials[{material.name!r}] = make_mat({', '.join(args)})"


def _render_step(step: PrimitiveStep) -> list[str]:
    kwargs = [f"{key}={_number(value)}" for key, value in step.dimensions.items()]
    kwargs.append(f"location={_vector(step.location)}")
    if step.rotation is not None:
        kwargs.append(f"rotation={_vector(step.rotation)}")
    lines = [
        f"bpy.ops.mesh.{_PRIMITIVE_OPERATORS[step.kind]}({', '.join(kwargs)})",
        "obj = bpy.context.object",
        f"obj.name = {step.object_name!r}",
    ]
    if step.scale is not None:
        lines.append(f"obj.scale = {_vector(step.scale)}")
    lines.append(f"obj.data.materials.append(materials[{step.material!r}])")
    for modifier in step.modifiers:
        lines.extend(_render_modifier(modifier))
    return lines


def _render_modifier(modifier: ModifierSpec) -> list[str]:
    lines = [f"mod = obj.modifiers.new(name={modifier.name!r}, type={modifier.kind!r})"]
    if modifier.texture is not None:
        lines.append(
            f"mod.texture = bpy.data.textures.new({modifier.texture.name!r}, "
            f"type={modifier.texture.kind!r})",
        )
    lines.extend(f"mod.{key} = {_number(value)}" for key, value in modifier.settings.items())
    return lines


def _vector(values: tuple[float, float, float]) -> str:
    return f"({', '.join(_number(value) for value in values)})"


def _number(value: float | int) -> str:
    if isinstance(value, float):
        return repr(round(value, 6))
    return str(value)
