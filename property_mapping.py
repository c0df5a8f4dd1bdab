"""
Property Mapping Module for Shader-to-Shader Material Conversion.

This module builds the table of possible property correspondences between a
source shader and a target shader, proposes best-guess matches, and lets a
caller confirm or override individual selections.

Overview
--------
Every stage produces a new, immutable MappingSet:

1. build_catalog(): one MappingCandidate per source property, listing the
   target properties of the same kind as selectable options
2. auto_match(): select the best-scoring option of each candidate using
   name_matching.score()
3. MappingSet.select() / MappingSet.clear(): user edits
4. mapping_preset.load_preset(): replay a saved preset

Option Layout
-------------
Each candidate's options start with NONE_OPTION ("no mapping"), followed by
the compatible target properties sorted by name:

    _Color (Color)
        [0] None
        [1] Color | _BaseColor
        [2] Color | _EmissionColor

The candidates themselves are ordered by kind, then by source name, so
every consumer sees the same canonical order without re-sorting.

Usage
-----
    >>> from shader_schema import load_shader_schema
    >>> from property_mapping import auto_match, build_catalog_from_schemas
    >>>
    >>> source = load_shader_schema(Path("schemas/Standard.json"))
    >>> target = load_shader_schema(Path("schemas/URP_Lit.json"))
    >>> mapping = auto_match(build_catalog_from_schemas(source, target))
    >>> for candidate in mapping.mapped():
    ...     print(candidate.source.name, "->", candidate.target_name)
    _Color -> _BaseColor
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from typing import Protocol, Union

from name_matching import NO_MATCH, score
from property_types import Attribute, CanonicalType, classify

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when an operation is requested without the shaders it needs."""


class SchemaIntrospector(Protocol):
    """Read access to a shader's property table."""

    def property_count(self) -> int: ...

    def property_name(self, index: int) -> str: ...

    def property_type(self, index: int) -> object: ...


# =============================================================================
# OPTIONS
# =============================================================================

@dataclass(frozen=True)
class NoneOption:
    """The "no mapping" choice. Always at index 0 of a candidate's options."""

    @property
    def display_name(self) -> str:
        return "None"


@dataclass(frozen=True)
class TargetOption:
    """A selectable target shader property.

    Attributes:
        name: Bare property name on the target shader (e.g., "_BaseColor").
        kind: Canonical kind shared with the candidate's source property.
    """

    name: str
    kind: CanonicalType

    @property
    def display_name(self) -> str:
        """Label shown in option lists, e.g. "Color | _BaseColor"."""
        return f"{self.kind.value} | {self.name}"


NONE_OPTION = NoneOption()

Option = Union[NoneOption, TargetOption]


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class MappingCandidate:
    """One source property together with its compatible target options.

    Attributes:
        source: The source shader property.
        options: NONE_OPTION followed by TargetOptions sorted by name.
        selected: Index into options. 0 means "no mapping".
        confirmed: True once a non-None option has been chosen by
            auto-matching, a user edit, or a preset. Never True while
            selected is 0.

    Example:
        >>> candidate = MappingCandidate(
        ...     source=Attribute("_Color", CanonicalType.COLOR),
        ...     options=(NONE_OPTION, TargetOption("_BaseColor", CanonicalType.COLOR)),
        ... )
        >>> candidate.with_selection(1).target_name
        '_BaseColor'
    """

    source: Attribute
    options: tuple[Option, ...] = (NONE_OPTION,)
    selected: int = 0
    confirmed: bool = False

    @property
    def selected_option(self) -> Option:
        return self.options[self.selected]

    @property
    def target_name(self) -> str | None:
        """Bare name of the selected target property, or None."""
        option = self.selected_option
        if isinstance(option, TargetOption):
            return option.name
        return None

    @property
    def is_mapped(self) -> bool:
        """True if this candidate takes part in a transfer."""
        return self.confirmed and self.selected != 0

    @property
    def target_options(self) -> tuple[TargetOption, ...]:
        return self.options[1:]  # type: ignore[return-value]

    def option_index(self, target_name: str) -> int | None:
        """Return the index of the option named target_name, or None."""
        for index, option in enumerate(self.options):
            if isinstance(option, TargetOption) and option.name == target_name:
                return index
        return None

    def with_selection(self, index: int) -> MappingCandidate:
        """Return a copy selecting options[index].

        Selecting index 0 clears the mapping; any other index confirms it.

        Raises:
            IndexError: If index is outside the options list.
        """
        if not 0 <= index < len(self.options):
            raise IndexError(
                f"Option index {index} out of range for '{self.source.name}' "
                f"({len(self.options)} options)"
            )
        return replace(self, selected=index, confirmed=index != 0)


@dataclass(frozen=True)
class MappingSet:
    """Ordered, immutable collection of MappingCandidates.

    Candidates are kept in catalog order: by kind, then by source name.
    Edits return new MappingSets.
    """

    candidates: tuple[MappingCandidate, ...] = ()

    def __iter__(self) -> Iterator[MappingCandidate]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def __getitem__(self, index: int) -> MappingCandidate:
        return self.candidates[index]

    def find(self, source_name: str, kind: CanonicalType | None = None) -> MappingCandidate | None:
        """Return the candidate for a source property, or None."""
        for candidate in self.candidates:
            if candidate.source.name != source_name:
                continue
            if kind is None or candidate.source.kind == kind:
                return candidate
        return None

    def mapped(self) -> list[MappingCandidate]:
        """Return the candidates that take part in a transfer, in order."""
        return [candidate for candidate in self.candidates if candidate.is_mapped]

    def grouped(self) -> dict[CanonicalType, list[MappingCandidate]]:
        """Group candidates by kind for display, preserving catalog order."""
        groups: dict[CanonicalType, list[MappingCandidate]] = {}
        for candidate in self.candidates:
            groups.setdefault(candidate.source.kind, []).append(candidate)
        return groups

    def replace_candidate(self, updated: MappingCandidate) -> MappingSet:
        """Return a new set with the candidate for updated.source swapped in."""
        candidates = tuple(
            updated if candidate.source == updated.source else candidate
            for candidate in self.candidates
        )
        return MappingSet(candidates)

    def select(self, source_name: str, target_name: str) -> MappingSet:
        """Map a source property onto a named target property.

        Raises:
            KeyError: If there is no candidate for source_name, or its
                options contain no target named target_name.
        """
        candidate = self.find(source_name)
        if candidate is None:
            raise KeyError(f"No source property named '{source_name}'")
        index = candidate.option_index(target_name)
        if index is None:
            raise KeyError(
                f"'{target_name}' is not a {candidate.source.kind.value} option "
                f"for '{source_name}'"
            )
        return self.replace_candidate(candidate.with_selection(index))

    def clear(self, source_name: str) -> MappingSet:
        """Reset a source property to "no mapping".

        Raises:
            KeyError: If there is no candidate for source_name.
        """
        candidate = self.find(source_name)
        if candidate is None:
            raise KeyError(f"No source property named '{source_name}'")
        return self.replace_candidate(candidate.with_selection(0))


# =============================================================================
# CATALOG BUILDING
# =============================================================================

def read_attributes(schema: SchemaIntrospector) -> list[Attribute]:
    """Read every property of a shader as an Attribute.

    Args:
        schema: Any object exposing property_count(), property_name(i)
            and property_type(i).

    Returns:
        Attributes in the shader's declaration order.
    """
    return [
        Attribute(schema.property_name(index), classify(schema.property_type(index)))
        for index in range(schema.property_count())
    ]


def _build_options(source: Attribute, targets: Sequence[Attribute]) -> tuple[Option, ...]:
    if source.kind is CanonicalType.UNSUPPORTED:
        return (NONE_OPTION,)
    names = sorted({target.name for target in targets if target.kind == source.kind})
    return (NONE_OPTION, *(TargetOption(name, source.kind) for name in names))


def build_catalog(
    source_attrs: Iterable[Attribute],
    target_attrs: Iterable[Attribute],
) -> MappingSet:
    """Build the mapping-candidate table for two property lists.

    Args:
        source_attrs: Properties of the source shader.
        target_attrs: Properties of the target shader.

    Returns:
        MappingSet with one unselected candidate per source property,
        sorted by (kind, source name). Empty if either list is empty.

    Example:
        >>> mapping = build_catalog(
        ...     [Attribute("_Color", CanonicalType.COLOR)],
        ...     [Attribute("_EmissionColor", CanonicalType.COLOR),
        ...      Attribute("_BaseColor", CanonicalType.COLOR)],
        ... )
        >>> [option.display_name for option in mapping[0].options]
        ['None', 'Color | _BaseColor', 'Color | _EmissionColor']
    """
    sources = list(source_attrs)
    targets = list(target_attrs)

    if not sources or not targets:
        logger.info(
            "Empty catalog: source has %d properties, target has %d",
            len(sources), len(targets),
        )
        return MappingSet()

    candidates = [
        MappingCandidate(source=source, options=_build_options(source, targets))
        for source in sources
    ]
    candidates.sort(key=lambda c: (c.source.kind.value, c.source.name))

    logger.debug(
        "Built catalog with %d candidates against %d target properties",
        len(candidates), len(targets),
    )
    return MappingSet(tuple(candidates))


def build_catalog_from_schemas(
    source: SchemaIntrospector | None,
    target: SchemaIntrospector | None,
) -> MappingSet:
    """Read two shaders and build their mapping catalog.

    Raises:
        ConfigurationError: If either shader is missing.
    """
    if source is None or target is None:
        raise ConfigurationError("Both source and target shaders must be assigned.")
    return build_catalog(read_attributes(source), read_attributes(target))


# =============================================================================
# AUTO-MATCHING
# =============================================================================

def _best_option_index(candidate: MappingCandidate) -> int | None:
    best_index: int | None = None
    best_priority = 0

    for index, option in enumerate(candidate.options):
        if not isinstance(option, TargetOption):
            continue
        priority = score(candidate.source.name, option.name)
        if priority is NO_MATCH:
            continue
        # Strictly greater keeps the alphabetically first option on ties
        if priority > best_priority:
            best_index, best_priority = index, priority

    if best_index is not None:
        logger.debug(
            "Auto-matched %s -> %s (priority %d)",
            candidate.source.name, candidate.options[best_index].name, best_priority,
        )
    return best_index


def auto_match(mapping: MappingSet) -> MappingSet:
    """Select the best-scoring target option of every candidate.

    Candidates without any name-compatible option keep their current
    state. A confirmed candidate is never cleared, but a manual choice
    is replaced when a different option scores higher. Running auto_match
    on its own output returns an equal MappingSet.

    Args:
        mapping: MappingSet to match. It is not modified.

    Returns:
        New MappingSet with the proposed selections.
    """
    candidates: list[MappingCandidate] = []
    matched = 0

    for candidate in mapping:
        best_index = _best_option_index(candidate) if len(candidate.options) > 1 else None
        if best_index is None:
            candidates.append(candidate)
            continue
        candidates.append(candidate.with_selection(best_index))
        matched += 1

    logger.info("Auto-matched %d of %d properties", matched, len(candidates))
    return MappingSet(tuple(candidates))
