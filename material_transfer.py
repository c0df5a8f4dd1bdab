"""
Material Transfer Module.

Copies property values from a material using the source shader onto the
matching properties of the target shader, following a confirmed MappingSet.

Transfer Rules
--------------
For every mapped candidate, in mapping order:

- Scalar: one float, copied verbatim
- Color: r, g, b, a copied verbatim (no color-space conversion)
- Vector: 4 components copied verbatim
- Texture: texture reference, offset and scale copied together

Texture slots are read from the source before anything is written. When the
source and target are the same material, switching the shader can reset the
tiling of a slot, so reading late would lose it.

A pair whose source or target property is missing is skipped and recorded
in the TransferReport. Skips never abort the transfer and nothing written
is rolled back.

Usage
-----
Converting one material in place:

    >>> report = convert_material(mapping, store, target_schema)
    >>> print("\\n".join(report.log_lines()))
      Mapped Color: _Color -> _BaseColor = (1.0, 1.0, 1.0, 1.0)
      Skipped Texture: _MainTex -> _BaseMap (target has no Texture property '_BaseMap')

Converting every material of a shader:

    >>> stores = find_materials_with_shader(all_stores, source_schema.guid, source_schema.file_id)
    >>> batch = convert_materials(mapping, stores, target_schema)
    >>> print(batch.mapped_count, batch.skipped_count, len(batch.failures))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from property_mapping import ConfigurationError, MappingCandidate, MappingSet
from property_types import CanonicalType
from unity_parser import BUILTIN_SHADER_GUID

logger = logging.getLogger(__name__)


class ValueStore(Protocol):
    """Typed read/write access to a live material's property values."""

    shader_name: str | None

    def has(self, name: str) -> bool: ...

    def kind_of(self, name: str) -> CanonicalType | None: ...

    def get_float(self, name: str) -> float: ...

    def set_float(self, name: str, value: float) -> None: ...

    def get_color(self, name: str) -> Any: ...

    def set_color(self, name: str, value: Any) -> None: ...

    def get_vector(self, name: str) -> Any: ...

    def set_vector(self, name: str, value: Any) -> None: ...

    def get_texture(self, name: str) -> Any: ...

    def set_texture(self, name: str, texture: Any) -> None: ...

    def get_texture_offset(self, name: str) -> tuple[float, float]: ...

    def set_texture_offset(self, name: str, offset: tuple[float, float]) -> None: ...

    def get_texture_scale(self, name: str) -> tuple[float, float]: ...

    def set_texture_scale(self, name: str, scale: tuple[float, float]) -> None: ...


class ConvertibleStore(ValueStore, Protocol):
    """A ValueStore that can switch shaders and copy itself."""

    name: str

    def switch_shader(self, schema: Any) -> None: ...

    def snapshot(self) -> ConvertibleStore: ...


# =============================================================================
# REPORTS
# =============================================================================

class TransferStatus(Enum):
    MAPPED = "Mapped"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class TextureValue:
    """Texture reference plus tiling, transferred as one unit."""

    texture: Any
    offset: tuple[float, float]
    scale: tuple[float, float]


@dataclass(frozen=True)
class TransferEntry:
    """Outcome of one mapped property pair.

    Attributes:
        source_name: Property read from the source store.
        target_name: Property written on the target store.
        kind: Canonical kind of both properties.
        status: MAPPED if the value was written, SKIPPED otherwise.
        value: The value written (TextureValue for textures), or None.
        reason: Why the pair was skipped. Empty for mapped pairs.
    """

    source_name: str
    target_name: str
    kind: CanonicalType
    status: TransferStatus
    value: Any = None
    reason: str = ""

    def log_lines(self) -> list[str]:
        prefix = f"  {self.status.value} {self.kind.value}: {self.source_name} -> {self.target_name}"
        if self.status is TransferStatus.SKIPPED:
            return [f"{prefix} ({self.reason})"]
        if isinstance(self.value, TextureValue):
            return [
                f"{prefix} = {self.value.texture if self.value.texture else 'null'}",
                f"    Offset: {self.value.offset}, Scale: {self.value.scale}",
            ]
        shown = self.value.as_tuple() if hasattr(self.value, "as_tuple") else self.value
        return [f"{prefix} = {shown}"]


@dataclass
class TransferReport:
    """Ordered record of everything one transfer did or skipped."""

    material_name: str = ""
    entries: list[TransferEntry] = field(default_factory=list)

    @property
    def mapped(self) -> list[TransferEntry]:
        return [e for e in self.entries if e.status is TransferStatus.MAPPED]

    @property
    def skipped(self) -> list[TransferEntry]:
        return [e for e in self.entries if e.status is TransferStatus.SKIPPED]

    def log_lines(self) -> list[str]:
        lines = [f"Converting material: {self.material_name}"] if self.material_name else []
        for entry in self.entries:
            lines.extend(entry.log_lines())
        return lines


@dataclass
class BatchReport:
    """Result of converting several materials with one mapping.

    Attributes:
        reports: One TransferReport per converted material, in order.
        failures: (material name, error message) for every material that
            was refused as a whole.
    """

    reports: list[TransferReport] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def mapped_count(self) -> int:
        return sum(len(report.mapped) for report in self.reports)

    @property
    def skipped_count(self) -> int:
        return sum(len(report.skipped) for report in self.reports)


# =============================================================================
# TRANSFER
# =============================================================================

def _read_textures(mapping: MappingSet, source: ValueStore) -> dict[str, TextureValue]:
    textures: dict[str, TextureValue] = {}
    for candidate in mapping.mapped():
        name = candidate.source.name
        if candidate.source.kind is not CanonicalType.TEXTURE or not source.has(name):
            continue
        textures[name] = TextureValue(
            texture=source.get_texture(name),
            offset=source.get_texture_offset(name),
            scale=source.get_texture_scale(name),
        )
    return textures


def _skip_reason(candidate: MappingCandidate, source: ValueStore, target: ValueStore) -> str | None:
    kind = candidate.source.kind
    source_name = candidate.source.name
    target_name = candidate.target_name

    if not source.has(source_name):
        return f"source has no property '{source_name}'"
    if not target.has(target_name):
        return f"target has no {kind.value} property '{target_name}'"
    if target.kind_of(target_name) != kind:
        return f"target property '{target_name}' is not a {kind.value}"
    return None


def _copy_value(
    candidate: MappingCandidate,
    source: ValueStore,
    target: ValueStore,
    textures: dict[str, TextureValue],
) -> Any:
    source_name = candidate.source.name
    target_name = candidate.target_name
    kind = candidate.source.kind

    if kind is CanonicalType.SCALAR:
        value = source.get_float(source_name)
        target.set_float(target_name, value)
    elif kind is CanonicalType.COLOR:
        value = source.get_color(source_name)
        target.set_color(target_name, value)
    elif kind is CanonicalType.VECTOR:
        value = source.get_vector(source_name)
        target.set_vector(target_name, value)
    elif kind is CanonicalType.TEXTURE:
        value = textures[source_name]
        target.set_texture(target_name, value.texture)
        target.set_texture_offset(target_name, value.offset)
        target.set_texture_scale(target_name, value.scale)
    else:
        raise ValueError(f"Cannot transfer {kind.value} property '{source_name}'")

    return value


def apply_mapping(mapping: MappingSet, source: ValueStore, target: ValueStore) -> TransferReport:
    """Copy values from source to target following a mapping.

    The target must already use the destination shader.

    Args:
        mapping: Mapping whose confirmed, non-None candidates are applied.
        source: Store to read from, keyed by source property names.
        target: Store to write to, keyed by target property names.

    Returns:
        TransferReport with one entry per mapped candidate, in order.

    Raises:
        ConfigurationError: If the target has no shader assigned. Nothing
            is read or written in that case.
    """
    if not target.shader_name:
        raise ConfigurationError("Target shader must be assigned.")

    report = TransferReport(material_name=getattr(target, "name", ""))

    # Snapshot every texture before the first write
    textures = _read_textures(mapping, source)

    for candidate in mapping.mapped():
        target_name = candidate.target_name
        reason = _skip_reason(candidate, source, target)
        if reason is not None:
            logger.debug("Skipped %s -> %s: %s", candidate.source.name, target_name, reason)
            report.entries.append(TransferEntry(
                source_name=candidate.source.name,
                target_name=target_name,
                kind=candidate.source.kind,
                status=TransferStatus.SKIPPED,
                reason=reason,
            ))
            continue

        value = _copy_value(candidate, source, target, textures)
        report.entries.append(TransferEntry(
            source_name=candidate.source.name,
            target_name=target_name,
            kind=candidate.source.kind,
            status=TransferStatus.MAPPED,
            value=value,
        ))

    logger.debug(
        "Transferred %d properties (%d skipped) to '%s'",
        len(report.mapped), len(report.skipped), report.material_name or target.shader_name,
    )
    return report


def convert_material(mapping: MappingSet, store: ConvertibleStore, target_schema: Any) -> TransferReport:
    """Switch a material to the target shader and transfer its values.

    The store's values are snapshotted before the switch and used as the
    transfer source, so the material is converted in place.

    Raises:
        ConfigurationError: If target_schema is None. The store is untouched.
    """
    if target_schema is None:
        raise ConfigurationError("Target shader must be assigned.")

    source = store.snapshot()
    store.switch_shader(target_schema)
    return apply_mapping(mapping, source, store)


def convert_materials(
    mapping: MappingSet,
    stores: Iterable[ConvertibleStore],
    target_schema: Any,
) -> BatchReport:
    """Convert several materials, one after another, with the same mapping.

    A material refused with ConfigurationError is recorded in
    BatchReport.failures and the remaining materials are still converted.
    """
    batch = BatchReport()

    for store in stores:
        try:
            report = convert_material(mapping, store, target_schema)
        except ConfigurationError as e:
            logger.error("Could not convert material '%s': %s", store.name, e)
            batch.failures.append((store.name, str(e)))
            continue
        batch.reports.append(report)

    logger.info(
        "Converted %d materials (%d properties mapped, %d skipped, %d failed)",
        len(batch.reports), batch.mapped_count, batch.skipped_count, len(batch.failures),
    )
    return batch


def _uses_shader(store: ConvertibleStore, shader: str, file_id: int | None) -> bool:
    guid = getattr(store, "shader_guid", "").lower()
    if guid and guid == shader.lower():
        if guid == BUILTIN_SHADER_GUID:
            return file_id is not None and getattr(store, "shader_file_id", None) == file_id
        return True
    return store.shader_name == shader


def find_materials_with_shader(
    stores: Iterable[ConvertibleStore],
    shader: str,
    file_id: int | None = None,
) -> list[ConvertibleStore]:
    """Return the stores whose current shader name or GUID equals shader.

    Built-in shaders share one GUID; matching by that GUID also requires
    file_id to equal the store's m_Shader fileID.
    """
    if not shader:
        return []
    return [store for store in stores if _uses_shader(store, shader, file_id)]
