"""Tests for shader property type classification."""

import pytest

from property_types import Attribute, CanonicalType, RawPropertyType, classify, is_compatible


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "raw_type, expected",
        [
            (RawPropertyType.FLOAT, CanonicalType.SCALAR),
            (RawPropertyType.RANGE, CanonicalType.SCALAR),
            (RawPropertyType.COLOR, CanonicalType.COLOR),
            (RawPropertyType.VECTOR, CanonicalType.VECTOR),
            (RawPropertyType.TEXENV, CanonicalType.TEXTURE),
        ],
    )
    def test_known_types(self, raw_type, expected):
        assert classify(raw_type) is expected

    def test_integer_codes(self):
        assert classify(3) is CanonicalType.SCALAR
        assert classify(4) is CanonicalType.TEXTURE

    def test_names_are_case_insensitive(self):
        assert classify("Range") is CanonicalType.SCALAR
        assert classify("texenv") is CanonicalType.TEXTURE
        assert classify(" Texture ") is CanonicalType.TEXTURE

    def test_int_properties_are_unsupported(self):
        """Int values are saved in m_Ints and never transferred."""
        assert classify(RawPropertyType.INT) is CanonicalType.UNSUPPORTED
        assert classify("Int") is CanonicalType.UNSUPPORTED

    @pytest.mark.parametrize("raw_type", [42, -1, "Matrix", None, True, 2.0])
    def test_unknown_types_never_raise(self, raw_type):
        assert classify(raw_type) is CanonicalType.UNSUPPORTED


class TestIsCompatible:
    """Tests for is_compatible()."""

    def test_same_kind(self):
        assert is_compatible(
            Attribute("_Color", CanonicalType.COLOR),
            Attribute("_BaseColor", CanonicalType.COLOR),
        )

    def test_different_kind(self):
        assert not is_compatible(
            Attribute("_Color", CanonicalType.COLOR),
            Attribute("_Tint", CanonicalType.VECTOR),
        )

    def test_unsupported_is_never_compatible(self):
        attr = Attribute("_QueueOffset", CanonicalType.UNSUPPORTED)
        assert not is_compatible(attr, attr)
