"""In-memory material value store.

MaterialStore holds the saved property values of one Unity material and
answers the typed get/set calls material_transfer makes. Like a Unity
material, it keeps every saved value when its shader is switched; which
properties are visible is decided by the current shader schema.

Colors and vectors share one dictionary, the same way Unity serializes both
into m_Colors. The schema says whether an entry is read as a Color or as a
4-component vector.

Example:
    >>> from unity_parser import parse_material
    >>> from material_store import MaterialStore
    >>>
    >>> store = MaterialStore.from_unity_material(parse_material(text), standard_schema)
    >>> store.get_float("_Glossiness")
    0.5
    >>> store.switch_shader(urp_lit_schema)
    >>> store.has("_Glossiness")
    False
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace

from property_types import CanonicalType
from shader_schema import ShaderSchema
from unity_parser import Color, TextureRef, UnityMaterial

logger = logging.getLogger(__name__)

Vector4 = tuple[float, float, float, float]


@dataclass
class MaterialStore:
    """Saved property values of one material, typed by its shader schema.

    Attributes:
        name: Material name.
        shader_name: Name of the shader the material currently uses, or None
            if no shader is assigned.
        shader_guid: GUID of the current shader.
        shader_file_id: fileID of the current shader reference. Needed to
            tell built-in shaders apart, which all share one GUID.
        schema: Property table of the current shader. When None, every
            saved value is visible and typed by the block it was saved in.
        floats: Saved scalar values.
        colors: Saved color and vector values.
        textures: Saved texture slots (reference plus tiling).
        ints: Saved integer values. Never transferred, only written back.
    """

    name: str
    shader_name: str | None = None
    shader_guid: str = ""
    shader_file_id: int = 0
    schema: ShaderSchema | None = None
    floats: dict[str, float] = field(default_factory=dict)
    colors: dict[str, Color] = field(default_factory=dict)
    textures: dict[str, TextureRef] = field(default_factory=dict)
    ints: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_unity_material(
        cls,
        material: UnityMaterial,
        schema: ShaderSchema | None = None,
    ) -> MaterialStore:
        """Create a store holding a parsed material's values."""
        if schema is not None and schema.guid and not schema.matches(
            material.shader_guid, material.shader_file_id,
        ):
            logger.warning(
                "Material '%s' uses shader %s (fileID %d), not '%s' (%s, fileID %d)",
                material.name, material.shader_guid or "none", material.shader_file_id,
                schema.name, schema.guid, schema.file_id,
            )
        return cls(
            name=material.name,
            shader_name=schema.name if schema is not None else (material.shader_guid or None),
            shader_guid=material.shader_guid,
            shader_file_id=material.shader_file_id,
            schema=schema,
            floats=dict(material.floats),
            colors=dict(material.colors),
            textures=dict(material.tex_envs),
            ints=dict(material.ints),
        )

    def to_unity_material(self) -> UnityMaterial:
        return UnityMaterial(
            name=self.name,
            shader_guid=self.shader_guid,
            tex_envs=dict(self.textures),
            floats=dict(self.floats),
            colors=dict(self.colors),
            ints=dict(self.ints),
            shader_file_id=self.shader_file_id,
        )

    # -------------------------------------------------------------------------
    # Shader
    # -------------------------------------------------------------------------

    def switch_shader(self, schema: ShaderSchema) -> None:
        """Assign a new shader. Saved values are kept."""
        logger.debug("Switching material '%s' from '%s' to '%s'",
                     self.name, self.shader_name, schema.name)
        self.schema = schema
        self.shader_name = schema.name
        self.shader_guid = schema.guid
        self.shader_file_id = schema.file_id

    def snapshot(self) -> MaterialStore:
        """Return an independent copy of this store."""
        return copy.deepcopy(self)

    def kind_of(self, name: str) -> CanonicalType | None:
        """Return the kind of a visible property, or None if it is not visible."""
        if self.schema is not None:
            return self.schema.kind_of(name)
        if name in self.textures:
            return CanonicalType.TEXTURE
        if name in self.floats:
            return CanonicalType.SCALAR
        if name in self.colors:
            return CanonicalType.COLOR
        return None

    def has(self, name: str) -> bool:
        return self.kind_of(name) is not None

    # -------------------------------------------------------------------------
    # Typed values
    # -------------------------------------------------------------------------

    def get_float(self, name: str) -> float:
        return self.floats.get(name, 0.0)

    def set_float(self, name: str, value: float) -> None:
        self.floats[name] = value

    def get_color(self, name: str) -> Color:
        return self.colors.get(name, Color())

    def set_color(self, name: str, value: Color) -> None:
        self.colors[name] = value

    def get_vector(self, name: str) -> Vector4:
        return self.colors.get(name, Color(0.0, 0.0, 0.0, 0.0)).as_tuple()

    def set_vector(self, name: str, value: Vector4) -> None:
        self.colors[name] = Color.from_tuple(value)

    def get_texture(self, name: str) -> str | None:
        return self.textures.get(name, TextureRef()).guid

    def set_texture(self, name: str, guid: str | None) -> None:
        self.textures[name] = replace(self.textures.get(name, TextureRef()), guid=guid)

    def get_texture_offset(self, name: str) -> tuple[float, float]:
        return self.textures.get(name, TextureRef()).offset

    def set_texture_offset(self, name: str, offset: tuple[float, float]) -> None:
        self.textures[name] = replace(self.textures.get(name, TextureRef()), offset=offset)

    def get_texture_scale(self, name: str) -> tuple[float, float]:
        return self.textures.get(name, TextureRef()).scale

    def set_texture_scale(self, name: str, scale: tuple[float, float]) -> None:
        self.textures[name] = replace(self.textures.get(name, TextureRef()), scale=scale)
