#!/usr/bin/env python3
"""
Material Converter - Main CLI Entry Point.

This module converts every Unity material that uses one shader so that it
uses another shader, carrying property values across according to a
property mapping.

Usage:
    python converter.py \\
        --source-schema "schemas/Standard.json" \\
        --target-schema "schemas/URP_Lit.json" \\
        --materials "path/to/Assets" \\
        --preset "presets/StandardToURPLitPreset.json" \\
        --output "path/to/output" \\
        --dry-run \\
        --verbose

Pipeline Steps:
    1. Load the source and target shader schemas
    2. Build the property mapping catalog
    3. Replay the preset (if given) and run auto-matching (if requested,
       or if no preset was given)
    4. Save the resulting mapping as a preset (if requested)
    5. Find all .mat files that use the source shader
    6. Convert each material: switch shader, transfer mapped values
    7. Write the converted .mat files
    8. Print conversion summary and write conversion_log.txt
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from mapping_preset import (
    PresetFormatError,
    default_preset_filename,
    load_preset,
    read_preset_file,
    save_preset,
    write_preset_file,
)
from material_store import MaterialStore
from material_transfer import TransferReport, convert_material
from material_writer import update_mat, write_mat_file
from property_mapping import (
    ConfigurationError,
    MappingSet,
    auto_match,
    build_catalog_from_schemas,
)
from shader_schema import SchemaFormatError, ShaderSchema, load_shader_schema
from unity_parser import parse_material

logger = logging.getLogger(__name__)


@dataclass
class ConversionConfig:
    """Configuration dataclass for the conversion pipeline.

    Populated from command-line arguments via parse_args().

    Attributes:
        source_schema: Path to the JSON schema of the shader materials use now.
        target_schema: Path to the JSON schema of the shader to convert to.
        materials_dir: Directory searched recursively for .mat files.
        output_dir: Directory for converted .mat files, mirroring the layout
            under materials_dir. None converts the files in place.
        preset: Optional preset file to replay onto the catalog.
        save_preset: Optional path to save the final mapping to. An existing
            directory, or a path without a suffix, is treated as a directory
            (created if missing) and the default preset filename is used.
        auto_match: If True, run name-based auto-matching. Always done
            when no preset is given.
        show_mapping: If True, print the mapping table before converting.
        dry_run: If True, convert in memory without writing any file.
        verbose: If True, enable DEBUG logging level.

    Example:
        >>> config = ConversionConfig(
        ...     source_schema=Path("schemas/Standard.json"),
        ...     target_schema=Path("schemas/URP_Lit.json"),
        ...     materials_dir=Path("Assets/Materials"),
        ...     dry_run=True,
        ... )
    """

    source_schema: Path
    target_schema: Path
    materials_dir: Path
    output_dir: Path | None = None
    preset: Path | None = None
    save_preset: Path | None = None
    auto_match: bool = False
    show_mapping: bool = False
    dry_run: bool = False
    verbose: bool = False


@dataclass
class ConversionStats:
    """Statistics collected during the conversion pipeline.

    Attributes:
        materials_found: .mat files found under the materials directory.
        materials_matched: Materials that use the source shader.
        materials_converted: Materials converted (and written, unless dry run).
        properties_mapped: Property values transferred, over all materials.
        properties_skipped: Mapped pairs skipped because a property was
            missing, over all materials.
        mappings_confirmed: Confirmed pairs in the final mapping.
        transfer_log: Per-material transfer trace lines.
        warnings: Non-critical issues.
        errors: Failures that left a material unconverted or stopped the run.
    """

    materials_found: int = 0
    materials_matched: int = 0
    materials_converted: int = 0
    properties_mapped: int = 0
    properties_skipped: int = 0
    mappings_confirmed: int = 0
    transfer_log: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_args(argv: list[str] | None = None) -> ConversionConfig:
    """Parse command-line arguments and validate inputs.

    Raises:
        SystemExit: If required arguments are missing or invalid.
    """
    parser = argparse.ArgumentParser(
        description="Convert Unity materials from one shader to another.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python converter.py \\
        --source-schema schemas/Standard.json \\
        --target-schema schemas/URP_Lit.json \\
        --materials Assets/Materials \\
        --auto-match --save-preset presets/

    python converter.py \\
        --source-schema schemas/Standard.json \\
        --target-schema schemas/URP_Lit.json \\
        --materials Assets/Materials \\
        --preset presets/StandardToURP_LitPreset.json \\
        --output converted --dry-run --verbose
""",
    )

    parser.add_argument(
        "--source-schema",
        type=Path,
        required=True,
        help="Schema JSON of the shader the materials currently use",
    )
    parser.add_argument(
        "--target-schema",
        type=Path,
        required=True,
        help="Schema JSON of the shader to convert to",
    )
    parser.add_argument(
        "--materials",
        type=Path,
        required=True,
        help="Directory searched recursively for .mat files",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output directory for converted materials (default: convert in place)",
    )
    parser.add_argument(
        "--preset",
        type=Path,
        default=None,
        help="Preset JSON to replay onto the property mapping",
    )
    parser.add_argument(
        "--save-preset",
        type=Path,
        default=None,
        help="Save the final mapping as a preset (.json file path, or a directory created if missing)",
    )
    parser.add_argument(
        "--auto-match",
        action="store_true",
        help="Match properties by name (always on when no --preset is given)",
    )
    parser.add_argument(
        "--show-mapping",
        action="store_true",
        help="Print the property mapping table",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview without writing files",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    if not args.source_schema.is_file():
        parser.error(f"Source schema not found: {args.source_schema}")

    if not args.target_schema.is_file():
        parser.error(f"Target schema not found: {args.target_schema}")

    if not args.materials.is_dir():
        parser.error(f"Materials directory not found: {args.materials}")

    if args.preset is not None and not args.preset.is_file():
        parser.error(f"Preset not found: {args.preset}")

    return ConversionConfig(
        source_schema=args.source_schema.resolve(),
        target_schema=args.target_schema.resolve(),
        materials_dir=args.materials.resolve(),
        output_dir=args.output.resolve() if args.output else None,
        preset=args.preset.resolve() if args.preset else None,
        save_preset=args.save_preset.resolve() if args.save_preset else None,
        auto_match=args.auto_match,
        show_mapping=args.show_mapping,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )


def format_mapping_table(mapping: MappingSet) -> list[str]:
    """Render a mapping grouped by property kind, one line per source property."""
    lines: list[str] = []
    for kind, candidates in mapping.grouped().items():
        lines.append(f"{kind.value} Properties ({len(candidates)})")
        for candidate in candidates:
            marker = "*" if candidate.is_mapped else " "
            choices = len(candidate.options) - 1
            lines.append(
                f"  {marker} {candidate.source.name} -> "
                f"{candidate.selected_option.display_name} ({choices} options)"
            )
    return lines


def resolve_mapping(
    config: ConversionConfig,
    source: ShaderSchema,
    target: ShaderSchema,
    stats: ConversionStats,
) -> MappingSet:
    """Build the catalog and apply the preset and/or auto-matching."""
    mapping = build_catalog_from_schemas(source, target)
    if not mapping:
        warning_msg = f"No properties to map between '{source.name}' and '{target.name}'"
        logger.warning(warning_msg)
        stats.warnings.append(warning_msg)
        return mapping

    if config.preset is not None:
        preset = read_preset_file(config.preset)
        if preset.source_shader != source.name or preset.target_shader != target.name:
            warning_msg = (
                f"Preset maps '{preset.source_shader}' -> '{preset.target_shader}', "
                f"not '{source.name}' -> '{target.name}'"
            )
            logger.warning(warning_msg)
            stats.warnings.append(warning_msg)
        mapping = load_preset(preset, mapping)

    if config.auto_match or config.preset is None:
        mapping = auto_match(mapping)

    return mapping


def find_material_files(materials_dir: Path) -> list[Path]:
    return sorted(materials_dir.rglob("*.mat"))


def convert_material_file(
    mat_path: Path,
    mapping: MappingSet,
    source: ShaderSchema,
    target: ShaderSchema,
    config: ConversionConfig,
) -> TransferReport | None:
    """Convert one .mat file. Returns None if it does not use the source shader.

    Raises:
        OSError: If the file cannot be read or written.
        UnicodeDecodeError: If the file is not UTF-8.
        ConfigurationError: If the material cannot be converted at all.
    """
    original = mat_path.read_text(encoding="utf-8")
    material = parse_material(original)
    if not source.matches(material.shader_guid, material.shader_file_id):
        return None

    store = MaterialStore.from_unity_material(material, source)
    report = convert_material(mapping, store, target)

    if config.output_dir is not None:
        output_path = config.output_dir / mat_path.relative_to(config.materials_dir)
    else:
        output_path = mat_path

    if not config.dry_run:
        write_mat_file(update_mat(original, store), output_path)

    return report


def write_conversion_log(log_dir: Path, stats: ConversionStats, config: ConversionConfig) -> None:
    """Write a summary log file with the transfer trace, warnings and errors."""
    log_path = log_dir / "conversion_log.txt"

    lines = [
        "=" * 60,
        "Material Converter - Conversion Log",
        "=" * 60,
        f"Date: {datetime.now().isoformat()}",
        f"Source Schema: {config.source_schema}",
        f"Target Schema: {config.target_schema}",
        f"Materials Directory: {config.materials_dir}",
        f"Output Directory: {config.output_dir or '(in place)'}",
        f"Preset: {config.preset or '(none)'}",
        "",
        "Statistics:",
        f"  Materials Found: {stats.materials_found}",
        f"  Materials Matched: {stats.materials_matched}",
        f"  Materials Converted: {stats.materials_converted}",
        f"  Confirmed Mappings: {stats.mappings_confirmed}",
        f"  Properties Mapped: {stats.properties_mapped}",
        f"  Properties Skipped: {stats.properties_skipped}",
        "",
    ]

    if stats.transfer_log:
        lines.append("Transfers:")
        lines.extend(stats.transfer_log)
        lines.append("")

    if stats.warnings:
        lines.append(f"Warnings ({len(stats.warnings)}):")
        for warning in stats.warnings:
            lines.append(f"  - {warning}")
        lines.append("")

    if stats.errors:
        lines.append(f"Errors ({len(stats.errors)}):")
        for error in stats.errors:
            lines.append(f"  - {error}")
        lines.append("")

    lines.append("=" * 60)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Wrote conversion log to: %s", log_path)


def print_summary(stats: ConversionStats) -> None:
    """Print conversion summary to console."""
    print("\n" + "=" * 60)
    print("Conversion Complete")
    print("=" * 60)
    print(f"  Materials Found:     {stats.materials_found}")
    print(f"  Materials Matched:   {stats.materials_matched}")
    print(f"  Materials Converted: {stats.materials_converted}")
    print(f"  Confirmed Mappings:  {stats.mappings_confirmed}")
    print(f"  Properties Mapped:   {stats.properties_mapped}")
    if stats.properties_skipped > 0:
        print(f"  Properties Skipped:  {stats.properties_skipped}")

    if stats.warnings:
        print(f"\n  Warnings: {len(stats.warnings)}")

    if stats.errors:
        print(f"\n  Errors: {len(stats.errors)}")
        for error in stats.errors[:5]:
            print(f"    - {error}")
        if len(stats.errors) > 5:
            print(f"    ... and {len(stats.errors) - 5} more")

    print("=" * 60 + "\n")


def run_conversion(config: ConversionConfig) -> ConversionStats:
    """Execute the full conversion pipeline.

    Args:
        config: ConversionConfig with all paths and options.

    Returns:
        ConversionStats populated with all metrics, warnings, and errors.

    Raises:
        No exceptions are raised to the caller for bad inputs or single
        materials; those are captured in ConversionStats.errors and logged.
    """
    stats = ConversionStats()

    # Step 1: Load schemas
    logger.info("Loading shader schemas...")
    try:
        source = load_shader_schema(config.source_schema)
        target = load_shader_schema(config.target_schema)
    except (OSError, SchemaFormatError) as e:
        error_msg = f"Failed to load shader schema: {e}"
        logger.error(error_msg)
        stats.errors.append(error_msg)
        return stats

    logger.info("  Source Shader: %s (%d properties)", source.name, source.property_count())
    logger.info("  Target Shader: %s (%d properties)", target.name, target.property_count())

    # Steps 2-3: Catalog, preset, auto-match
    try:
        mapping = resolve_mapping(config, source, target, stats)
    except (OSError, PresetFormatError, ConfigurationError) as e:
        error_msg = f"Failed to build property mapping: {e}"
        logger.error(error_msg)
        stats.errors.append(error_msg)
        return stats

    stats.mappings_confirmed = len(mapping.mapped())

    if config.show_mapping:
        print("\n".join(format_mapping_table(mapping)))

    # Step 4: Save preset
    if config.save_preset is not None:
        preset_path = config.save_preset
        if preset_path.is_dir() or not preset_path.suffix:
            preset_path = preset_path / default_preset_filename(source.name, target.name)
        if config.dry_run:
            logger.info("[DRY RUN] Would save preset to: %s", preset_path)
        else:
            try:
                write_preset_file(save_preset(mapping, source.name, target.name), preset_path)
            except OSError as e:
                error_msg = f"Failed to save preset {preset_path}: {e}"
                logger.error(error_msg)
                stats.errors.append(error_msg)

    if stats.mappings_confirmed == 0:
        warning_msg = "No confirmed property mappings; materials will only switch shader"
        logger.warning(warning_msg)
        stats.warnings.append(warning_msg)

    # Steps 5-7: Find and convert materials
    logger.info("Converting materials in %s...", config.materials_dir)
    mat_files = find_material_files(config.materials_dir)
    stats.materials_found = len(mat_files)

    for mat_path in mat_files:
        try:
            report = convert_material_file(mat_path, mapping, source, target, config)
        except (OSError, UnicodeDecodeError, ConfigurationError) as e:
            error_msg = f"Failed to convert {mat_path}: {e}"
            logger.error(error_msg)
            stats.errors.append(error_msg)
            continue

        if report is None:
            continue

        stats.materials_matched += 1
        stats.materials_converted += 1
        stats.properties_mapped += len(report.mapped)
        stats.properties_skipped += len(report.skipped)
        stats.transfer_log.extend(report.log_lines())
        for entry in report.skipped:
            stats.warnings.append(
                f"{report.material_name}: skipped {entry.source_name} -> "
                f"{entry.target_name} ({entry.reason})"
            )

    logger.info(
        "Converted %d of %d materials from '%s' to '%s'",
        stats.materials_converted, stats.materials_found, source.name, target.name,
    )

    # Step 8: Conversion log
    if config.dry_run:
        logger.info("[DRY RUN] Skipping conversion log")
    else:
        try:
            write_conversion_log(config.output_dir or config.materials_dir, stats, config)
        except OSError as e:
            logger.warning("Could not write conversion log: %s", e)

    return stats


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    try:
        config = parse_args(argv)
    except SystemExit:
        return 1

    log_level = logging.DEBUG if config.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    try:
        stats = run_conversion(config)
    except KeyboardInterrupt:
        print("\nConversion interrupted by user.")
        return 1
    except Exception as e:
        logger.exception("Unexpected error during conversion: %s", e)
        return 1

    print_summary(stats)

    if stats.errors:
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
