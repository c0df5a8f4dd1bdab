"""Read Unity .mat documents into plain dataclasses.

A .mat file is YAML 1.1 with Unity's `!u!` tag handles, which general YAML
loaders reject, so the fields the converter needs are pulled out with
regular expressions: the material name, the shader GUID, and the three
saved-property blocks.

    Material:
      m_Name: Crate
      m_Shader: {fileID: 46, guid: 0000000000000000f000000000000000, type: 0}
      m_SavedProperties:
        m_TexEnvs:
        - _MainTex:
            m_Texture: {fileID: 2800000, guid: 0730dae39bc73f34796280af9875ce14, type: 3}
            m_Scale: {x: 2, y: 2}
            m_Offset: {x: 0, y: 0}
        m_Floats:
        - _Glossiness: 0.5
        m_Colors:
        - _Color: {r: 1, g: 1, b: 1, a: 1}

Vectors are saved in m_Colors with the same r/g/b/a layout and cannot be
told apart from colors here. material_store reads them through the shader
schema.

Example:
    >>> material = parse_material(mat_path.read_text(encoding="utf-8"))
    >>> material.floats["_Glossiness"]
    0.5
    >>> material.tex_envs["_MainTex"].scale
    (2.0, 2.0)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# GUID shared by every built-in shader; the m_Shader fileID tells them apart
# (Standard is 46, Unlit/Texture is 10752, ...)
BUILTIN_SHADER_GUID = "0000000000000000f000000000000000"


@dataclass(frozen=True)
class TextureRef:
    """One m_TexEnvs slot: texture reference plus its tiling.

    guid is None when the slot is empty (`{fileID: 0}`). Scale and offset are
    (x, y) pairs and belong to the slot even when no texture is assigned.
    """

    guid: str | None = None
    scale: tuple[float, float] = (1.0, 1.0)
    offset: tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class Color:
    """An m_Colors entry. Values are stored as written, HDR included."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return color as (r, g, b, a) tuple."""
        return (self.r, self.g, self.b, self.a)

    @classmethod
    def from_tuple(cls, values: tuple[float, float, float, float]) -> Color:
        r, g, b, a = values
        return cls(r=r, g=g, b=b, a=a)


@dataclass
class UnityMaterial:
    """Name, shader and saved values of one .mat document.

    shader_guid is lower-case hex, or "" when the document has none.
    shader_file_id is the local file ID of the m_Shader reference; it is
    what tells built-in shaders apart, since they all share one GUID.
    tex_envs includes empty slots. colors also holds vector properties.
    ints are carried through conversion unchanged.
    """

    name: str
    shader_guid: str
    tex_envs: dict[str, TextureRef] = field(default_factory=dict)
    floats: dict[str, float] = field(default_factory=dict)
    colors: dict[str, Color] = field(default_factory=dict)
    ints: dict[str, int] = field(default_factory=dict)
    shader_file_id: int = 0


# =============================================================================
# PATTERNS
# =============================================================================

_NUMBER = r"([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"

_NAME_PATTERN = re.compile(r"m_Name:[ \t]*(.*?)[ \t]*(?:\n|$)")

# m_Shader: {fileID: ..., guid: <hex>, type: ...}
_SHADER_GUID_PATTERN = re.compile(
    r"m_Shader:\s*\{[^}]*guid:\s*([a-f0-9]+)",
    re.IGNORECASE,
)

_SHADER_FILE_ID_PATTERN = re.compile(r"m_Shader:\s*\{[^}]*fileID:\s*(-?\d+)")

# Header line of each saved-properties block
_SECTION_PATTERN = re.compile(
    r"^[ \t]*(m_TexEnvs|m_Ints|m_Floats|m_Colors|m_BuildTextureStacks):[ \t]*(\[\])?[ \t]*$",
    re.MULTILINE,
)

# "- _Name: 0.5"
_FLOAT_PATTERN = re.compile(
    r"^\s*-\s+(\w+):\s*" + _NUMBER + r"\s*$",
    re.MULTILINE,
)

# "- _Name: 1"
_INT_PATTERN = re.compile(r"^\s*-\s+(\w+):\s*([-+]?\d+)\s*$", re.MULTILINE)

# "- _Name: {r: 1, g: 1, b: 1, a: 1}"
_COLOR_PATTERN = re.compile(
    r"^\s*-\s+(\w+):\s*\{r:\s*" + _NUMBER + r",\s*"
    r"g:\s*" + _NUMBER + r",\s*"
    r"b:\s*" + _NUMBER + r",\s*"
    r"a:\s*" + _NUMBER + r"\s*\}",
    re.MULTILINE,
)

# "- _Name:" opening a texture slot
_TEX_PROPERTY_PATTERN = re.compile(r"^\s*-\s+(\w+):\s*$", re.MULTILINE)

# Empty slots are written as {fileID: 0} without a guid
_TEX_GUID_PATTERN = re.compile(
    r"m_Texture:\s*\{[^}]*guid:\s*([a-f0-9]+)",
    re.IGNORECASE,
)

_TEX_SCALE_PATTERN = re.compile(
    r"m_Scale:\s*\{x:\s*" + _NUMBER + r",\s*y:\s*" + _NUMBER + r"\s*\}",
)

_TEX_OFFSET_PATTERN = re.compile(
    r"m_Offset:\s*\{x:\s*" + _NUMBER + r",\s*y:\s*" + _NUMBER + r"\s*\}",
)


def _extract_material_section(content: str) -> str:
    """Extract the Material document (class ID 21) from multi-document YAML.

    Returns the original content if no document markers are found.
    """
    material_match = re.search(
        r"---\s*!u!21[^\n]*\n((?:.*\n)*?)(?=---|\Z)",
        content,
        re.MULTILINE,
    )
    if material_match:
        return material_match.group(0)
    return content


def _extract_blocks(content: str) -> dict[str, str]:
    """Split the saved properties into m_TexEnvs / m_Floats / m_Colors blocks."""
    blocks: dict[str, str] = {}
    matches = list(_SECTION_PATTERN.finditer(content))

    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(content)
        body = "" if match.group(2) else content[match.end():end]
        # A key at the header's indentation or less ends the block
        header = match.group(0)
        indent = len(header) - len(header.lstrip(" \t"))
        stop = re.search(rf"^[ \t]{{0,{indent}}}\w+:", body, re.MULTILINE)
        blocks[match.group(1)] = body[:stop.start()] if stop else body

    return blocks


def _extract_material_name(content: str) -> str:
    match = _NAME_PATTERN.search(content)
    if match and match.group(1):
        return match.group(1).strip()

    logger.warning("Could not extract material name from content")
    return "Unknown"


def _extract_shader_guid(content: str) -> str:
    match = _SHADER_GUID_PATTERN.search(content)
    if match:
        return match.group(1).lower()

    logger.warning("Could not extract shader GUID from content")
    return ""


def _extract_shader_file_id(content: str) -> int:
    match = _SHADER_FILE_ID_PATTERN.search(content)
    return int(match.group(1)) if match else 0


def _parse_ints(block: str) -> dict[str, int]:
    return {match.group(1): int(match.group(2)) for match in _INT_PATTERN.finditer(block)}


def _parse_floats(block: str) -> dict[str, float]:
    """Parse float properties, including scientific notation.

    Example:
        >>> _parse_floats("    - _Glossiness: 0.7\\n    - _Metallic: 0")
        {'_Glossiness': 0.7, '_Metallic': 0.0}
    """
    floats: dict[str, float] = {}

    for match in _FLOAT_PATTERN.finditer(block):
        try:
            floats[match.group(1)] = float(match.group(2))
        except ValueError as e:
            logger.warning("Failed to parse float '%s': %s", match.group(2), e)

    return floats


def _parse_colors(block: str) -> dict[str, Color]:
    colors: dict[str, Color] = {}

    for match in _COLOR_PATTERN.finditer(block):
        prop_name = match.group(1)
        try:
            colors[prop_name] = Color(
                r=float(match.group(2)),
                g=float(match.group(3)),
                b=float(match.group(4)),
                a=float(match.group(5)),
            )
        except ValueError as e:
            logger.warning("Failed to parse color '%s': %s", prop_name, e)

    return colors


def _parse_pair(pattern: re.Pattern[str], block: str, default: tuple[float, float]) -> tuple[float, float]:
    match = pattern.search(block)
    if not match:
        return default
    try:
        return (float(match.group(1)), float(match.group(2)))
    except ValueError:
        return default


def _parse_tex_envs(block: str) -> dict[str, TextureRef]:
    """Parse texture slots from the m_TexEnvs block.

    Each entry has this structure:

        - _MainTex:
            m_Texture: {fileID: 2800000, guid: <32-char-hex>, type: 3}
            m_Scale: {x: 1, y: 1}
            m_Offset: {x: 0, y: 0}

    Slots without a texture (``{fileID: 0}`` or an all-zero GUID) are kept
    with guid=None, since their tiling is still part of the material.
    """
    tex_envs: dict[str, TextureRef] = {}
    prop_matches = list(_TEX_PROPERTY_PATTERN.finditer(block))

    for index, prop_match in enumerate(prop_matches):
        prop_end = prop_matches[index + 1].start() if index + 1 < len(prop_matches) else len(block)
        prop_block = block[prop_match.end():prop_end]

        guid: str | None = None
        guid_match = _TEX_GUID_PATTERN.search(prop_block)
        if guid_match:
            guid = guid_match.group(1).lower()
            if guid == "0" * len(guid):
                guid = None

        tex_envs[prop_match.group(1)] = TextureRef(
            guid=guid,
            scale=_parse_pair(_TEX_SCALE_PATTERN, prop_block, (1.0, 1.0)),
            offset=_parse_pair(_TEX_OFFSET_PATTERN, prop_block, (0.0, 0.0)),
        )

    return tex_envs


def parse_material(content: str) -> UnityMaterial:
    """Parse the Material document of a .mat file.

    Missing fields fall back to defaults: name "Unknown", empty shader GUID,
    empty property dicts. Nothing raises on malformed input; unreadable
    values are logged and left out.
    """
    material_section = _extract_material_section(content)
    blocks = _extract_blocks(material_section)

    name = _extract_material_name(material_section)
    shader_guid = _extract_shader_guid(material_section)
    shader_file_id = _extract_shader_file_id(material_section)
    tex_envs = _parse_tex_envs(blocks.get("m_TexEnvs", ""))
    ints = _parse_ints(blocks.get("m_Ints", ""))
    floats = _parse_floats(blocks.get("m_Floats", ""))
    colors = _parse_colors(blocks.get("m_Colors", ""))

    logger.debug(
        "Parsed material '%s': shader=%s (fileID %d), textures=%d, ints=%d, floats=%d, colors=%d",
        name,
        shader_guid[:8] + "..." if shader_guid else "none",
        shader_file_id,
        len(tex_envs),
        len(ints),
        len(floats),
        len(colors),
    )

    return UnityMaterial(
        name=name,
        shader_guid=shader_guid,
        tex_envs=tex_envs,
        floats=floats,
        colors=colors,
        ints=ints,
        shader_file_id=shader_file_id,
    )


def parse_material_bytes(content: bytes, encoding: str = "utf-8") -> UnityMaterial:
    """Decode and parse .mat bytes.

    Raises:
        UnicodeDecodeError: If content cannot be decoded with the given encoding.
    """
    return parse_material(content.decode(encoding))
