"""Reusable shader mapping presets.

A Preset records the confirmed property pairs of a mapping together with
the names of the two shaders. It does not hold any catalog state, so it is
replayed against a freshly built catalog with load_preset(). Pairs that no
longer resolve (a property was renamed or removed from either shader) are
dropped; the rest of the preset still loads.

Preset files are JSON:

    {
      "sourceShaderName": "Standard",
      "targetShaderName": "Universal Render Pipeline/Lit",
      "propertyPairs": [
        {"sourceProperty": "_Color", "targetProperty": "_BaseColor", "propertyType": "Color"}
      ]
    }

Example:
    >>> preset = save_preset(mapping, "Standard", "Universal Render Pipeline/Lit")
    >>> write_preset_file(preset, presets_dir / default_preset_filename(
    ...     preset.source_shader, preset.target_shader))
    >>>
    >>> fresh = build_catalog_from_schemas(source_schema, target_schema)
    >>> restored = load_preset(read_preset_file(path), fresh)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from material_writer import sanitize_filename
from property_mapping import MappingCandidate, MappingSet, TargetOption
from property_types import CanonicalType

logger = logging.getLogger(__name__)


class PresetFormatError(ValueError):
    """Raised when a preset document is malformed."""


@dataclass(frozen=True)
class PropertyPair:
    """One confirmed (source, target, kind) correspondence."""

    source_property: str
    target_property: str
    kind: CanonicalType

    def to_dict(self) -> dict[str, str]:
        return {
            "sourceProperty": self.source_property,
            "targetProperty": self.target_property,
            "propertyType": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PropertyPair:
        try:
            return cls(
                source_property=str(data["sourceProperty"]),
                target_property=str(data["targetProperty"]),
                kind=CanonicalType(data["propertyType"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise PresetFormatError(f"Malformed property pair {data!r}: {e}") from e


@dataclass(frozen=True)
class Preset:
    """Portable, shader-named list of confirmed property pairs.

    Attributes:
        source_shader: Name of the shader the mapping reads from.
        target_shader: Name of the shader the mapping writes to.
        pairs: Confirmed pairs in mapping order.
    """

    source_shader: str
    target_shader: str
    pairs: tuple[PropertyPair, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceShaderName": self.source_shader,
            "targetShaderName": self.target_shader,
            "propertyPairs": [pair.to_dict() for pair in self.pairs],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Preset:
        """Build a preset from its JSON document.

        Raises:
            PresetFormatError: If a shader name or a pair field is missing.
        """
        if not isinstance(data, dict):
            raise PresetFormatError("Preset document must be a JSON object")
        try:
            source_shader = str(data["sourceShaderName"])
            target_shader = str(data["targetShaderName"])
        except KeyError as e:
            raise PresetFormatError(f"Preset is missing {e}") from e

        pairs = tuple(PropertyPair.from_dict(entry) for entry in data.get("propertyPairs", []))
        return cls(source_shader=source_shader, target_shader=target_shader, pairs=pairs)


# =============================================================================
# CODEC
# =============================================================================

def save_preset(mapping: MappingSet, source_shader: str, target_shader: str) -> Preset:
    """Record the confirmed, non-None selections of a mapping.

    Target names are stored bare ("_BaseColor"), never in display form.
    """
    pairs = tuple(
        PropertyPair(candidate.source.name, candidate.target_name, candidate.source.kind)
        for candidate in mapping.mapped()
    )
    logger.debug("Saved preset %s -> %s with %d pairs", source_shader, target_shader, len(pairs))
    return Preset(source_shader=source_shader, target_shader=target_shader, pairs=pairs)


def _resolve_option(candidate: MappingCandidate, target_property: str) -> int | None:
    index = candidate.option_index(target_property)
    if index is not None:
        return index
    # Option names are unique within a kind, so a suffix match is unambiguous
    # for presets written by tools that stored a decorated name
    for index, option in enumerate(candidate.options):
        if isinstance(option, TargetOption) and option.name.endswith(target_property):
            return index
    return None


def load_preset(preset: Preset, fresh_mapping: MappingSet) -> MappingSet:
    """Replay a preset against a freshly built catalog.

    Args:
        preset: Preset to apply.
        fresh_mapping: Catalog built for the preset's two shaders. It is
            not modified.

    Returns:
        New MappingSet with the preset's pairs selected and confirmed.
        Pairs without a matching candidate or option are dropped.
    """
    mapping = fresh_mapping
    applied = 0

    for pair in preset.pairs:
        candidate = mapping.find(pair.source_property, pair.kind)
        if candidate is None:
            logger.debug("Preset pair dropped, no %s property '%s' on source shader",
                         pair.kind.value, pair.source_property)
            continue

        index = _resolve_option(candidate, pair.target_property)
        if index is None:
            logger.debug("Preset pair dropped, no %s option '%s' for '%s'",
                         pair.kind.value, pair.target_property, pair.source_property)
            continue

        mapping = mapping.replace_candidate(candidate.with_selection(index))
        applied += 1

    logger.info("Applied %d of %d preset pairs", applied, len(preset.pairs))
    return mapping


# =============================================================================
# FILE I/O
# =============================================================================

def default_preset_filename(source_shader: str, target_shader: str) -> str:
    """Return the default file name for a preset, e.g. 'StandardToUnlitPreset.json'."""
    return sanitize_filename(f"{source_shader}To{target_shader}Preset") + ".json"


def write_preset_file(preset: Preset, path: Path) -> None:
    """Write a preset JSON file, creating directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(preset.to_dict(), indent=2) + "\n", encoding="utf-8")
    logger.info("Wrote preset: %s", path)


def read_preset_file(path: Path) -> Preset:
    """Read a preset JSON file.

    Raises:
        OSError: If the file cannot be read.
        PresetFormatError: If the file is not a valid preset document.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PresetFormatError(f"{path} is not valid JSON: {e}") from e
    return Preset.from_dict(data)
