"""Tests for copying material values across a property mapping."""

import pytest

from material_store import MaterialStore
from material_transfer import (
    TextureValue,
    TransferStatus,
    apply_mapping,
    convert_material,
    convert_materials,
    find_materials_with_shader,
)
from property_mapping import ConfigurationError, build_catalog_from_schemas
from property_types import RawPropertyType
from shader_schema import ShaderProperty, ShaderSchema
from unity_parser import Color, TextureRef, parse_material

MAIN_TEX_GUID = "0730dae39bc73f34796280af9875ce14"


@pytest.fixture
def crate_store(crate_mat, standard_schema):
    return MaterialStore.from_unity_material(parse_material(crate_mat), standard_schema)


@pytest.fixture
def full_mapping(standard_schema, urp_lit_schema):
    """Every Standard property mapped onto its URP Lit counterpart."""
    return (
        build_catalog_from_schemas(standard_schema, urp_lit_schema)
        .select("_Color", "_BaseColor")
        .select("_MainTex", "_BaseMap")
        .select("_Glossiness", "_Smoothness")
        .select("_Metallic", "_Metallic")
        .select("_EmissionColor", "_EmissionColor")
    )


class TestApplyMapping:
    """Tests for apply_mapping()."""

    def test_values_are_copied_verbatim(self, crate_store, urp_lit_schema, full_mapping):
        target = MaterialStore(name="Crate_URP")
        target.switch_shader(urp_lit_schema)

        report = apply_mapping(full_mapping, crate_store, target)

        assert target.get_color("_BaseColor") == crate_store.get_color("_Color")
        assert target.get_float("_Smoothness") == crate_store.get_float("_Glossiness") == 0.7
        assert target.get_float("_Metallic") == 0.0
        assert len(report.mapped) == 5
        assert report.skipped == []

    def test_texture_keeps_tiling(self, crate_store, urp_lit_schema, full_mapping):
        target = MaterialStore(name="Crate_URP")
        target.switch_shader(urp_lit_schema)

        report = apply_mapping(full_mapping, crate_store, target)

        assert target.get_texture("_BaseMap") == MAIN_TEX_GUID
        assert target.get_texture_scale("_BaseMap") == (2.0, 3.0)
        assert target.get_texture_offset("_BaseMap") == (0.5, 0.25)
        entry = next(e for e in report.entries if e.target_name == "_BaseMap")
        assert entry.value == TextureValue(MAIN_TEX_GUID, (0.5, 0.25), (2.0, 3.0))

    def test_vector_copy(self):
        source_schema = ShaderSchema("Src", properties=[ShaderProperty("_WindParams", RawPropertyType.VECTOR)])
        target_schema = ShaderSchema("Dst", properties=[ShaderProperty("_Wind", RawPropertyType.VECTOR)])
        mapping = build_catalog_from_schemas(source_schema, target_schema).select("_WindParams", "_Wind")
        source = MaterialStore(name="Tree", schema=source_schema, shader_name="Src")
        source.set_vector("_WindParams", (1.0, 2.0, 3.0, 4.0))
        target = MaterialStore(name="Tree")
        target.switch_shader(target_schema)

        apply_mapping(mapping, source, target)

        assert target.get_vector("_Wind") == (1.0, 2.0, 3.0, 4.0)

    def test_unconfirmed_candidates_are_never_written(self, crate_store, urp_lit_schema, standard_schema):
        mapping = build_catalog_from_schemas(standard_schema, urp_lit_schema)
        target = MaterialStore(name="Crate_URP")
        target.switch_shader(urp_lit_schema)

        report = apply_mapping(mapping, crate_store, target)

        assert report.entries == []
        assert target.floats == {}
        assert target.colors == {}
        assert target.textures == {}

    def test_missing_target_property_is_skipped(self, crate_store, full_mapping):
        reduced = ShaderSchema("Reduced", properties=[
            ShaderProperty("_BaseColor", RawPropertyType.COLOR),
        ])
        target = MaterialStore(name="Crate_Reduced")
        target.switch_shader(reduced)

        report = apply_mapping(full_mapping, crate_store, target)

        assert [e.target_name for e in report.mapped] == ["_BaseColor"]
        assert len(report.skipped) == 4
        assert all(e.status is TransferStatus.SKIPPED and e.reason for e in report.skipped)
        assert "_BaseMap" not in target.textures

    def test_missing_source_property_is_skipped(self, urp_lit_schema, full_mapping):
        source = MaterialStore(name="Empty", shader_name="Standard")
        source.set_float("_Glossiness", 0.25)
        target = MaterialStore(name="Empty_URP")
        target.switch_shader(urp_lit_schema)

        report = apply_mapping(full_mapping, source, target)

        assert [e.source_name for e in report.mapped] == ["_Glossiness"]
        assert target.get_float("_Smoothness") == 0.25
        assert "source has no property '_Color'" in report.skipped[0].reason

    def test_target_without_shader_is_refused(self, crate_store, full_mapping):
        target = MaterialStore(name="Unassigned")

        with pytest.raises(ConfigurationError):
            apply_mapping(full_mapping, crate_store, target)
        assert target.colors == {}

    def test_report_log_lines(self, crate_store, urp_lit_schema, full_mapping):
        target = MaterialStore(name="Crate_URP")
        target.switch_shader(urp_lit_schema)

        lines = apply_mapping(full_mapping, crate_store, target).log_lines()

        assert lines[0] == "Converting material: Crate_URP"
        assert "  Mapped Color: _Color -> _BaseColor = (1.0, 0.5, 0.25, 1.0)" in lines
        assert f"  Mapped Texture: _MainTex -> _BaseMap = {MAIN_TEX_GUID}" in lines
        assert "    Offset: (0.5, 0.25), Scale: (2.0, 3.0)" in lines


class TestConvertMaterial:
    """Tests for converting a material in place."""

    def test_switches_shader_and_transfers(self, crate_store, urp_lit_schema, full_mapping):
        report = convert_material(full_mapping, crate_store, urp_lit_schema)

        assert crate_store.shader_name == "Universal Render Pipeline/Lit"
        assert crate_store.shader_guid == urp_lit_schema.guid
        assert crate_store.get_color("_BaseColor") == Color(1.0, 0.5, 0.25, 1.0)
        assert crate_store.get_texture_scale("_BaseMap") == (2.0, 3.0)
        assert len(report.mapped) == 5

    def test_keeps_values_the_new_shader_does_not_declare(self, crate_store, urp_lit_schema, full_mapping):
        convert_material(full_mapping, crate_store, urp_lit_schema)

        assert crate_store.textures["_MainTex"].guid == MAIN_TEX_GUID
        assert not crate_store.has("_MainTex")

    def test_same_slot_keeps_tiling(self, urp_lit_schema, standard_schema):
        """A slot mapped onto itself keeps its texture and tiling."""
        store = MaterialStore(name="SameSlot", shader_name="Standard", schema=standard_schema)
        store.textures["_BumpMap"] = TextureRef(guid="abc", scale=(4.0, 4.0), offset=(0.1, 0.2))
        mapping = build_catalog_from_schemas(standard_schema, urp_lit_schema).select("_BumpMap", "_BumpMap")

        convert_material(mapping, store, urp_lit_schema)

        assert store.textures["_BumpMap"] == TextureRef(guid="abc", scale=(4.0, 4.0), offset=(0.1, 0.2))

    def test_missing_target_schema(self, crate_store, full_mapping):
        with pytest.raises(ConfigurationError):
            convert_material(full_mapping, crate_store, None)
        assert crate_store.shader_name == "Standard"


class TestBatch:
    """Tests for batch conversion helpers."""

    def test_convert_materials(self, crate_mat, standard_schema, urp_lit_schema, full_mapping):
        stores = [
            MaterialStore.from_unity_material(parse_material(crate_mat), standard_schema)
            for _ in range(3)
        ]

        batch = convert_materials(full_mapping, stores, urp_lit_schema)

        assert len(batch.reports) == 3
        assert batch.mapped_count == 15
        assert batch.skipped_count == 0
        assert batch.failures == []

    def test_failures_do_not_stop_the_batch(self, crate_store, full_mapping):
        batch = convert_materials(full_mapping, [crate_store], None)

        assert batch.reports == []
        assert batch.failures == [("Crate", "Target shader must be assigned.")]

    def test_find_materials_with_shader(self, crate_mat, unlit_mat, standard_schema):
        crate = MaterialStore.from_unity_material(parse_material(crate_mat), standard_schema)
        glow = MaterialStore.from_unity_material(parse_material(unlit_mat))

        assert find_materials_with_shader([crate, glow], "Standard") == [crate]
        assert find_materials_with_shader([crate, glow], standard_schema.guid.upper(), file_id=46) == [crate]
        assert find_materials_with_shader([crate, glow], glow.shader_guid) == [glow]
        assert find_materials_with_shader([crate, glow], "") == []

    def test_find_materials_with_builtin_shader_needs_file_id(self, crate_mat, builtin_unlit_mat, standard_schema):
        crate = MaterialStore.from_unity_material(parse_material(crate_mat), standard_schema)
        sky = MaterialStore.from_unity_material(parse_material(builtin_unlit_mat))

        assert find_materials_with_shader([crate, sky], standard_schema.guid, file_id=46) == [crate]
        assert find_materials_with_shader([crate, sky], standard_schema.guid, file_id=10752) == [sky]
        assert find_materials_with_shader([crate, sky], standard_schema.guid) == []
