"""Shader property tables.

A ShaderSchema is the list of properties a shader declares, in declaration
order, together with the shader's name and GUID. It is what
property_mapping.read_attributes() reads when building a catalog.

Schemas are stored as JSON documents:

    {
      "name": "Universal Render Pipeline/Lit",
      "guid": "933532a4fcc9baf4fa0491de14d08ed7",
      "properties": [
        {"name": "_BaseMap", "type": "TexEnv"},
        {"name": "_BaseColor", "type": "Color"},
        {"name": "_Smoothness", "type": "Range"}
      ]
    }

The "type" field takes the ShaderUtil type names ("Color", "Vector",
"Float", "Range", "TexEnv") or their integer codes.

Schemas can also be derived from a set of parsed .mat files with
schema_from_materials(). Unity materials keep every property the shader
declared when they were last saved, so the union over a few materials
is usually the full table. Vectors are serialized in the same block as
colors and are reported as colors.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from property_types import CanonicalType, RawPropertyType, classify
from unity_parser import BUILTIN_SHADER_GUID, UnityMaterial

logger = logging.getLogger(__name__)


class SchemaFormatError(ValueError):
    """Raised when a schema document is malformed."""


@dataclass(frozen=True)
class ShaderProperty:
    """One declared shader property.

    Attributes:
        name: Property name (e.g., "_BaseMap").
        raw_type: Type as found in the schema document; either a
            RawPropertyType name or its integer code.
    """

    name: str
    raw_type: object

    @property
    def kind(self) -> CanonicalType:
        return classify(self.raw_type)


@dataclass
class ShaderSchema:
    """Named, ordered property table of one shader.

    Attributes:
        name: Shader name as used in the editor (e.g., "Standard").
        guid: Unity GUID of the shader asset. Empty for built-in shaders
            that are only referenced by name.
        properties: Declared properties in declaration order.
        file_id: Local file ID used in m_Shader references. 4800000 for
            shader assets; built-in shaders use their own IDs (Standard is 46).
    """

    name: str
    guid: str = ""
    properties: list[ShaderProperty] = field(default_factory=list)
    file_id: int = 4800000

    def property_count(self) -> int:
        return len(self.properties)

    def property_name(self, index: int) -> str:
        return self.properties[index].name

    def property_type(self, index: int) -> object:
        return self.properties[index].raw_type

    def kind_of(self, name: str) -> CanonicalType | None:
        """Return the kind of a declared property, or None if undeclared."""
        for prop in self.properties:
            if prop.name == name:
                return prop.kind
        return None

    def has_property(self, name: str) -> bool:
        return any(prop.name == name for prop in self.properties)

    def matches(self, shader: str, file_id: int | None = None) -> bool:
        """Return True if shader is this schema's name, or its GUID.

        Every built-in shader has the same GUID, so a built-in GUID only
        matches when file_id (the m_Shader reference's fileID) is this
        schema's file_id as well.

        Example:
            >>> standard = ShaderSchema("Standard", BUILTIN_SHADER_GUID, file_id=46)
            >>> standard.matches(BUILTIN_SHADER_GUID, 46)
            True
            >>> standard.matches(BUILTIN_SHADER_GUID, 10752)
            False
        """
        if not shader:
            return False
        if shader == self.name:
            return True
        if not self.guid or shader.lower() != self.guid.lower():
            return False
        if self.guid.lower() == BUILTIN_SHADER_GUID:
            return file_id == self.file_id
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "guid": self.guid,
            "fileID": self.file_id,
            "properties": [
                {"name": prop.name, "type": _type_to_json(prop.raw_type)}
                for prop in self.properties
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShaderSchema:
        """Build a schema from its JSON document.

        Raises:
            SchemaFormatError: If "name" or a property's "name"/"type"
                is missing.
        """
        if not isinstance(data, dict) or "name" not in data:
            raise SchemaFormatError("Schema document must be an object with a 'name'")

        properties: list[ShaderProperty] = []
        for index, entry in enumerate(data.get("properties", [])):
            try:
                properties.append(ShaderProperty(str(entry["name"]), entry["type"]))
            except (KeyError, TypeError) as e:
                raise SchemaFormatError(
                    f"Property #{index} of schema '{data['name']}' is malformed: {e}"
                ) from e

        return cls(
            name=str(data["name"]),
            guid=str(data.get("guid") or "").lower(),
            properties=properties,
            file_id=int(data.get("fileID", 4800000)),
        )


def _type_to_json(raw_type: object) -> object:
    if isinstance(raw_type, RawPropertyType):
        return "TexEnv" if raw_type is RawPropertyType.TEXENV else raw_type.name.capitalize()
    return raw_type


def load_shader_schema(path: Path) -> ShaderSchema:
    """Load a schema JSON file.

    Raises:
        OSError: If the file cannot be read.
        SchemaFormatError: If the file is not a valid schema document.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SchemaFormatError(f"{path} is not valid JSON: {e}") from e

    schema = ShaderSchema.from_dict(data)
    logger.debug("Loaded schema '%s' with %d properties from %s",
                 schema.name, schema.property_count(), path)
    return schema


def save_shader_schema(schema: ShaderSchema, path: Path) -> None:
    """Write a schema JSON file, creating directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(schema.to_dict(), indent=2) + "\n", encoding="utf-8")
    logger.info("Wrote schema '%s' to %s", schema.name, path)


def schema_from_materials(
    name: str,
    materials: Iterable[UnityMaterial],
    guid: str = "",
    file_id: int | None = None,
) -> ShaderSchema:
    """Derive a shader schema from the properties used by some materials.

    Properties are collected in the order they are first seen, textures
    first, then floats, then colors.

    Args:
        name: Name to give the schema.
        materials: Parsed materials that all use the shader.
        guid: Shader GUID. If empty, the first material's shader GUID is used.
        file_id: m_Shader fileID. If None, the first material's is used.

    Returns:
        ShaderSchema covering every property seen.
    """
    textures: dict[str, None] = {}
    floats: dict[str, None] = {}
    colors: dict[str, None] = {}

    for material in materials:
        if not guid:
            guid = material.shader_guid
        if file_id is None and material.shader_file_id:
            file_id = material.shader_file_id
        textures.update(dict.fromkeys(material.tex_envs))
        floats.update(dict.fromkeys(material.floats))
        colors.update(dict.fromkeys(material.colors))

    properties = (
        [ShaderProperty(prop, RawPropertyType.TEXENV) for prop in textures]
        + [ShaderProperty(prop, RawPropertyType.FLOAT) for prop in floats]
        + [ShaderProperty(prop, RawPropertyType.COLOR) for prop in colors]
    )
    logger.info(
        "Derived schema '%s': textures=%d, floats=%d, colors=%d",
        name, len(textures), len(floats), len(colors),
    )
    return ShaderSchema(
        name=name,
        guid=guid.lower(),
        properties=properties,
        file_id=file_id if file_id is not None else 4800000,
    )


# CLI for deriving a schema from existing materials
if __name__ == "__main__":
    import argparse
    import sys

    from unity_parser import parse_material

    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Derive a shader schema JSON file from Unity .mat files."
    )
    parser.add_argument("materials", type=Path, help="Directory searched recursively for .mat files")
    parser.add_argument("--name", required=True, help="Shader name to record in the schema")
    parser.add_argument("--guid", default="", help="Only use materials with this shader GUID")
    parser.add_argument("--file-id", type=int, default=None,
                        help="Only use materials whose m_Shader has this fileID (built-in shaders)")
    parser.add_argument("--output", type=Path, required=True, help="Schema JSON file to write")
    args = parser.parse_args()

    if not args.materials.is_dir():
        print(f"Error: Directory not found: {args.materials}", file=sys.stderr)
        sys.exit(1)

    parsed = []
    for mat_path in sorted(args.materials.rglob("*.mat")):
        try:
            material = parse_material(mat_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping %s: %s", mat_path, e)
            continue
        if args.guid and material.shader_guid != args.guid.lower():
            continue
        if args.file_id is not None and material.shader_file_id != args.file_id:
            continue
        parsed.append(material)

    if not parsed:
        print("Error: No matching materials found", file=sys.stderr)
        sys.exit(1)

    save_shader_schema(schema_from_materials(args.name, parsed, args.guid, args.file_id), args.output)
