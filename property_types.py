"""Shader property type classification.

Unity reports shader property types through ``ShaderUtil.ShaderPropertyType``.
For matching and value transfer we only care about four buckets: scalars,
colors, vectors, and textures. Everything else is unsupported and never
takes part in a mapping.

The module provides:
- RawPropertyType: The engine-side property type codes
- CanonicalType: The four kinds (plus Unsupported) used for compatibility
- Attribute: An immutable (name, kind) record for one shader property
- classify(): Map a raw type code to its CanonicalType
- is_compatible(): Check whether two attributes may be mapped onto each other

Example:
    >>> from property_types import Attribute, classify
    >>> classify("Range")
    <CanonicalType.SCALAR: 'Scalar'>
    >>> Attribute("_MainTex", classify(4)).kind.value
    'Texture'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum

logger = logging.getLogger(__name__)


class RawPropertyType(IntEnum):
    """Unity ``ShaderUtil.ShaderPropertyType`` codes."""

    COLOR = 0
    VECTOR = 1
    FLOAT = 2
    RANGE = 3
    TEXENV = 4
    INT = 5


class CanonicalType(Enum):
    """Canonical property kinds used for compatibility checks."""

    SCALAR = "Scalar"
    COLOR = "Color"
    VECTOR = "Vector"
    TEXTURE = "Texture"
    UNSUPPORTED = "Unsupported"


# Float and Range both hold a single number. Int is left out on purpose:
# the material serializes it in a separate block that we do not transfer.
_RAW_TO_CANONICAL: dict[RawPropertyType, CanonicalType] = {
    RawPropertyType.COLOR: CanonicalType.COLOR,
    RawPropertyType.VECTOR: CanonicalType.VECTOR,
    RawPropertyType.FLOAT: CanonicalType.SCALAR,
    RawPropertyType.RANGE: CanonicalType.SCALAR,
    RawPropertyType.TEXENV: CanonicalType.TEXTURE,
}

# Names accepted in schema documents, lower-cased.
_RAW_TYPE_ALIASES: dict[str, RawPropertyType] = {
    "color": RawPropertyType.COLOR,
    "vector": RawPropertyType.VECTOR,
    "float": RawPropertyType.FLOAT,
    "range": RawPropertyType.RANGE,
    "texenv": RawPropertyType.TEXENV,
    "texture": RawPropertyType.TEXENV,
    "int": RawPropertyType.INT,
}


@dataclass(frozen=True)
class Attribute:
    """One named, typed property slot of a shader.

    Attributes:
        name: Shader property name exactly as the shader declares it
            (e.g., "_BaseColor").
        kind: Canonical kind of the property.
    """

    name: str
    kind: CanonicalType


def _to_raw_type(raw_type: object) -> RawPropertyType | None:
    if isinstance(raw_type, RawPropertyType):
        return raw_type
    if isinstance(raw_type, bool):
        return None
    if isinstance(raw_type, int):
        try:
            return RawPropertyType(raw_type)
        except ValueError:
            return None
    if isinstance(raw_type, str):
        return _RAW_TYPE_ALIASES.get(raw_type.strip().lower())
    return None


def classify(raw_type: object) -> CanonicalType:
    """Map an engine property type code to its canonical kind.

    The mapping is total: anything not recognized becomes
    ``CanonicalType.UNSUPPORTED`` instead of raising.

    Args:
        raw_type: A RawPropertyType, its integer code, or its name
            ("Float", "Range", "Color", "Vector", "TexEnv"/"Texture").

    Returns:
        The CanonicalType for this code.

    Example:
        >>> classify(RawPropertyType.RANGE)
        <CanonicalType.SCALAR: 'Scalar'>
        >>> classify("TexEnv")
        <CanonicalType.TEXTURE: 'Texture'>
        >>> classify(42)
        <CanonicalType.UNSUPPORTED: 'Unsupported'>
    """
    raw = _to_raw_type(raw_type)
    if raw is None:
        logger.debug("Unrecognized property type %r, treating as unsupported", raw_type)
        return CanonicalType.UNSUPPORTED
    return _RAW_TO_CANONICAL.get(raw, CanonicalType.UNSUPPORTED)


def is_compatible(first: Attribute, second: Attribute) -> bool:
    """Return True if two attributes may be mapped onto each other."""
    return first.kind == second.kind and first.kind is not CanonicalType.UNSUPPORTED
