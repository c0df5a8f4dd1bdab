"""
Material Writer Module for Shader-to-Shader Material Conversion.

This module writes converted MaterialStore objects back to Unity .mat files.

Key Features:
    - Renders m_Shader references and m_SavedProperties in Unity's YAML layout
    - Updates an existing .mat file in place, keeping every field the
      converter does not touch (keywords, render queue, tags, ...)
    - Generates a complete .mat document when there is no original file
    - Compact number formatting ("1" rather than "1.0", as Unity writes it)

Example Usage:
    >>> from material_writer import update_mat, write_mat_file
    >>>
    >>> original = mat_path.read_text(encoding="utf-8")
    >>> content = update_mat(original, converted_store)
    >>> write_mat_file(content, output_dir / mat_path.name)

Module Structure:
    - format_float(), format_pair(), format_color(): Number formatting
    - sanitize_filename(): Make shader/material names safe for filenames
    - render_shader_ref(), render_saved_properties(): YAML fragments
    - generate_mat(): Full .mat document for a store
    - update_mat(): Patch an existing .mat document
    - write_mat_file(): Write content to disk
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from material_store import MaterialStore
    from unity_parser import Color, TextureRef

logger = logging.getLogger(__name__)

# File ID Unity uses for references to shader assets
SHADER_ASSET_FILE_ID = 4800000

# File ID Unity uses for references to texture assets
TEXTURE_ASSET_FILE_ID = 2800000

MAT_HEADER = """%YAML 1.1
%TAG !u! tag:unity3d.com,2011:
--- !u!21 &2100000
Material:
  serializedVersion: 6
  m_ObjectHideFlags: 0
  m_CorrespondingSourceObject: {{fileID: 0}}
  m_PrefabInstance: {{fileID: 0}}
  m_PrefabAsset: {{fileID: 0}}
  m_Name: {name}
  m_Shader: {shader_ref}
  m_ShaderKeywords:
  m_LightmapFlags: 4
  m_EnableInstancingVariants: 0
  m_DoubleSidedGI: 0
  m_CustomRenderQueue: -1
  stringTagMap: {{}}
  disabledShaderPasses: []
"""

_SHADER_LINE_PATTERN = re.compile(r"^([ \t]*)m_Shader:[ \t]*\{[^}\n]*\}[ \t]*$", re.MULTILINE)

# The m_SavedProperties header plus every line indented deeper than it
_SAVED_PROPERTIES_PATTERN = re.compile(
    r"^(?P<indent>[ \t]*)m_SavedProperties:[ \t]*\n(?:(?P=indent)[ \t]+\S.*(?:\n|$)|[ \t]*\n)*",
    re.MULTILINE,
)


# =============================================================================
# NUMBER FORMATTING
# =============================================================================

def format_float(value: float) -> str:
    """
    Format a float value for .mat output.

    Uses the shortest representation that round-trips, and drops a
    trailing ".0" the way Unity does.

    Examples:
        >>> format_float(0.5)
        '0.5'
        >>> format_float(1.0)
        '1'
        >>> format_float(-0.0)
        '-0'
        >>> format_float(0.21176471)
        '0.21176471'
    """
    formatted = repr(float(value))
    if formatted.endswith(".0"):
        formatted = formatted[:-2]
    return formatted


def format_pair(pair: tuple[float, float]) -> str:
    """Format a texture scale/offset pair, e.g. '{x: 1, y: 1}'."""
    return f"{{x: {format_float(pair[0])}, y: {format_float(pair[1])}}}"


def format_color(color: "Color") -> str:
    """Format an RGBA color, e.g. '{r: 1, g: 0.5, b: 0.25, a: 1}'."""
    return (
        f"{{r: {format_float(color.r)}, g: {format_float(color.g)}, "
        f"b: {format_float(color.b)}, a: {format_float(color.a)}}}"
    )


# =============================================================================
# FILENAME UTILITIES
# =============================================================================

def sanitize_filename(name: str) -> str:
    """
    Make a name safe for use as a filename.

    Examples:
        >>> sanitize_filename('Standard')
        'Standard'
        >>> sanitize_filename('Universal Render Pipeline/Lit')
        'Universal Render Pipeline_Lit'
        >>> sanitize_filename('???')
        'unnamed'

    Invalid characters replaced:
        < > : " / \\ | ? * and control characters (0x00-0x1f)
    """
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name)
    sanitized = re.sub(r"_+", "_", sanitized)
    sanitized = sanitized.strip("_ \t\n")

    if not sanitized:
        sanitized = "unnamed"

    return sanitized


# =============================================================================
# YAML FRAGMENTS
# =============================================================================

def render_shader_ref(guid: str, file_id: int = SHADER_ASSET_FILE_ID) -> str:
    """
    Render the value of an m_Shader field.

    Shader assets are referenced with type 3, built-in shaders with type 0.

    Examples:
        >>> render_shader_ref("933532a4fcc9baf4fa0491de14d08ed7")
        '{fileID: 4800000, guid: 933532a4fcc9baf4fa0491de14d08ed7, type: 3}'
        >>> render_shader_ref("")
        '{fileID: 0}'
    """
    if not guid:
        return "{fileID: 0}"
    ref_type = 3 if file_id == SHADER_ASSET_FILE_ID else 0
    return f"{{fileID: {file_id}, guid: {guid}, type: {ref_type}}}"


def _render_texture(name: str, tex_ref: "TextureRef", indent: str) -> list[str]:
    if tex_ref.guid:
        texture = f"{{fileID: {TEXTURE_ASSET_FILE_ID}, guid: {tex_ref.guid}, type: 3}}"
    else:
        texture = "{fileID: 0}"
    return [
        f"{indent}- {name}:",
        f"{indent}    m_Texture: {texture}",
        f"{indent}    m_Scale: {format_pair(tex_ref.scale)}",
        f"{indent}    m_Offset: {format_pair(tex_ref.offset)}",
    ]


def render_saved_properties(store: "MaterialStore", indent: str = "  ") -> str:
    """
    Render the m_SavedProperties block of a material.

    Every saved value is written, including values the current shader does
    not declare; Unity keeps those too. Entries are sorted by name.

    Args:
        store: Material whose values are written.
        indent: Indentation of the m_SavedProperties key itself.

    Returns:
        The block, ending with a newline.
    """
    inner = indent + "  "
    lines = [f"{indent}m_SavedProperties:", f"{inner}serializedVersion: 3"]

    if store.textures:
        lines.append(f"{inner}m_TexEnvs:")
        for name in sorted(store.textures):
            lines.extend(_render_texture(name, store.textures[name], inner))
    else:
        lines.append(f"{inner}m_TexEnvs: []")

    # m_Ints is left out when empty
    if store.ints:
        lines.append(f"{inner}m_Ints:")
        for name in sorted(store.ints):
            lines.append(f"{inner}- {name}: {store.ints[name]}")

    if store.floats:
        lines.append(f"{inner}m_Floats:")
        for name in sorted(store.floats):
            lines.append(f"{inner}- {name}: {format_float(store.floats[name])}")
    else:
        lines.append(f"{inner}m_Floats: []")

    if store.colors:
        lines.append(f"{inner}m_Colors:")
        for name in sorted(store.colors):
            lines.append(f"{inner}- {name}: {format_color(store.colors[name])}")
    else:
        lines.append(f"{inner}m_Colors: []")

    return "\n".join(lines) + "\n"


# =============================================================================
# DOCUMENT GENERATION
# =============================================================================

def _shader_file_id(store: "MaterialStore") -> int:
    if store.shader_file_id:
        return store.shader_file_id
    if store.schema is not None:
        return store.schema.file_id
    return SHADER_ASSET_FILE_ID


def generate_mat(store: "MaterialStore") -> str:
    """
    Generate a complete .mat document for a material.

    Example:
        >>> content = generate_mat(store)
        >>> content.splitlines()[2]
        '--- !u!21 &2100000'
    """
    header = MAT_HEADER.format(
        name=store.name,
        shader_ref=render_shader_ref(store.shader_guid, _shader_file_id(store)),
    )
    return header + render_saved_properties(store)


def update_mat(original: str, store: "MaterialStore") -> str:
    """
    Patch an existing .mat document with a converted material.

    Replaces the m_Shader reference and the m_SavedProperties block. All
    other content is kept byte for byte. If the document has no
    m_SavedProperties block, a complete document is generated instead.

    Args:
        original: Content of the .mat file the store was parsed from.
        store: Converted material.

    Returns:
        Updated .mat content.
    """
    saved_match = _SAVED_PROPERTIES_PATTERN.search(original)
    if saved_match is None:
        logger.warning(
            "No m_SavedProperties block in material '%s', regenerating the file",
            store.name,
        )
        return generate_mat(store)

    block = render_saved_properties(store, saved_match.group("indent"))
    content = original[:saved_match.start()] + block + original[saved_match.end():]

    shader_ref = render_shader_ref(store.shader_guid, _shader_file_id(store))
    content, replaced = _SHADER_LINE_PATTERN.subn(
        lambda m: f"{m.group(1)}m_Shader: {shader_ref}", content, count=1,
    )
    if not replaced:
        logger.warning("No m_Shader reference in material '%s'", store.name)

    return content


# =============================================================================
# FILE WRITING
# =============================================================================

def write_mat_file(content: str, output_path: Path) -> None:
    """
    Write .mat content to a file, creating directories as needed.

    Raises:
        OSError: If the directory cannot be created or file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    logger.info("Wrote .mat file: %s", output_path)
