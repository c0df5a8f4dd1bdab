"""Tests for saving and replaying mapping presets."""

import json

import pytest

from mapping_preset import (
    Preset,
    PresetFormatError,
    PropertyPair,
    default_preset_filename,
    load_preset,
    read_preset_file,
    save_preset,
    write_preset_file,
)
from property_mapping import auto_match, build_catalog_from_schemas
from property_types import CanonicalType, RawPropertyType
from shader_schema import ShaderProperty, ShaderSchema


@pytest.fixture
def catalog(standard_schema, urp_lit_schema):
    return build_catalog_from_schemas(standard_schema, urp_lit_schema)


class TestSavePreset:
    """Tests for save_preset()."""

    def test_only_confirmed_pairs_are_saved(self, catalog):
        mapping = catalog.select("_MainTex", "_BaseMap").select("_Color", "_BaseColor").clear("_Color")

        preset = save_preset(mapping, "Standard", "Universal Render Pipeline/Lit")

        assert preset.source_shader == "Standard"
        assert preset.target_shader == "Universal Render Pipeline/Lit"
        assert preset.pairs == (PropertyPair("_MainTex", "_BaseMap", CanonicalType.TEXTURE),)

    def test_target_names_are_bare(self, catalog):
        preset = save_preset(auto_match(catalog), "Standard", "URP")

        assert all("|" not in pair.target_property for pair in preset.pairs)

    def test_to_dict(self, catalog):
        preset = save_preset(catalog.select("_Color", "_BaseColor"), "Standard", "URP")

        assert preset.to_dict() == {
            "sourceShaderName": "Standard",
            "targetShaderName": "URP",
            "propertyPairs": [
                {"sourceProperty": "_Color", "targetProperty": "_BaseColor", "propertyType": "Color"},
            ],
        }


class TestLoadPreset:
    """Tests for load_preset()."""

    def test_round_trip(self, catalog, standard_schema, urp_lit_schema):
        mapping = auto_match(catalog).select("_MainTex", "_BaseMap").select("_Glossiness", "_Smoothness")
        preset = save_preset(mapping, standard_schema.name, urp_lit_schema.name)

        fresh = build_catalog_from_schemas(standard_schema, urp_lit_schema)
        restored = load_preset(preset, fresh)

        assert restored == mapping

    def test_does_not_modify_fresh_catalog(self, catalog):
        preset = Preset("Standard", "URP", (PropertyPair("_Color", "_BaseColor", CanonicalType.COLOR),))

        load_preset(preset, catalog)

        assert catalog.mapped() == []

    def test_unresolved_pairs_are_dropped(self, catalog):
        preset = Preset("Standard", "URP", (
            PropertyPair("_Parallax", "_Parallax", CanonicalType.SCALAR),
            PropertyPair("_Color", "_TintColor", CanonicalType.COLOR),
            PropertyPair("_Color", "_BaseMap", CanonicalType.TEXTURE),
            PropertyPair("_Metallic", "_Metallic", CanonicalType.SCALAR),
        ))

        mapping = load_preset(preset, catalog)

        assert [(c.source.name, c.target_name) for c in mapping.mapped()] == [("_Metallic", "_Metallic")]

    def test_suffix_match(self):
        source = ShaderSchema("Src", properties=[ShaderProperty("_Color", RawPropertyType.COLOR)])
        target = ShaderSchema("Dst", properties=[ShaderProperty("Lit_BaseColor", RawPropertyType.COLOR)])
        preset = Preset("Src", "Dst", (PropertyPair("_Color", "_BaseColor", CanonicalType.COLOR),))

        mapping = load_preset(preset, build_catalog_from_schemas(source, target))

        assert mapping.find("_Color").target_name == "Lit_BaseColor"
        assert mapping.find("_Color").confirmed


class TestPresetFiles:
    """Tests for preset file I/O."""

    def test_write_and_read(self, tmp_path, catalog):
        preset = save_preset(auto_match(catalog), "Standard", "URP")
        path = tmp_path / "presets" / "StandardToURPPreset.json"

        write_preset_file(preset, path)

        assert read_preset_file(path) == preset

    def test_default_filename(self):
        assert default_preset_filename("Standard", "Unlit") == "StandardToUnlitPreset.json"
        assert (
            default_preset_filename("Standard", "Universal Render Pipeline/Lit")
            == "StandardToUniversal Render Pipeline_LitPreset.json"
        )

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(PresetFormatError):
            read_preset_file(path)

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"targetShaderName": "URP"},
            {"sourceShaderName": "Standard", "targetShaderName": "URP",
             "propertyPairs": [{"sourceProperty": "_Color"}]},
            {"sourceShaderName": "Standard", "targetShaderName": "URP",
             "propertyPairs": [{"sourceProperty": "_Color", "targetProperty": "_BaseColor",
                                "propertyType": "Matrix"}]},
        ],
    )
    def test_malformed_documents(self, tmp_path, document):
        path = tmp_path / "preset.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        with pytest.raises(PresetFormatError):
            read_preset_file(path)

    def test_missing_pairs_means_empty(self):
        preset = Preset.from_dict({"sourceShaderName": "Standard", "targetShaderName": "URP"})

        assert preset.pairs == ()
