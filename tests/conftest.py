import json

import pytest

from property_types import RawPropertyType
from shader_schema import ShaderProperty, ShaderSchema

STANDARD_GUID = "0000000000000000f000000000000000"
URP_LIT_GUID = "933532a4fcc9baf4fa0491de14d08ed7"

CRATE_MAT = """%YAML 1.1
%TAG !u! tag:unity3d.com,2011:
--- !u!21 &2100000
Material:
  serializedVersion: 6
  m_ObjectHideFlags: 0
  m_Name: Crate
  m_Shader: {fileID: 46, guid: 0000000000000000f000000000000000, type: 0}
  m_ShaderKeywords: _NORMALMAP
  m_CustomRenderQueue: -1
  m_SavedProperties:
    serializedVersion: 3
    m_TexEnvs:
    - _BumpMap:
        m_Texture: {fileID: 0}
        m_Scale: {x: 1, y: 1}
        m_Offset: {x: 0, y: 0}
    - _MainTex:
        m_Texture: {fileID: 2800000, guid: 0730dae39bc73f34796280af9875ce14, type: 3}
        m_Scale: {x: 2, y: 3}
        m_Offset: {x: 0.5, y: 0.25}
    m_Ints: []
    m_Floats:
    - _Glossiness: 0.7
    - _Metallic: 0
    m_Colors:
    - _Color: {r: 1, g: 0.5, b: 0.25, a: 1}
    - _EmissionColor: {r: 0, g: 0, b: 0, a: 1}
  m_BuildTextureStacks: []
"""

UNLIT_MAT = """%YAML 1.1
%TAG !u! tag:unity3d.com,2011:
--- !u!21 &2100000
Material:
  serializedVersion: 6
  m_Name: Glow
  m_Shader: {fileID: 4800000, guid: 650dd9526735d5b46b79224bc6e94025, type: 3}
  m_SavedProperties:
    serializedVersion: 3
    m_TexEnvs: []
    m_Floats: []
    m_Colors:
    - _BaseColor: {r: 0, g: 1, b: 0, a: 1}
"""

BUILTIN_UNLIT_MAT = """%YAML 1.1
%TAG !u! tag:unity3d.com,2011:
--- !u!21 &2100000
Material:
  serializedVersion: 6
  m_Name: Sky
  m_Shader: {fileID: 10752, guid: 0000000000000000f000000000000000, type: 0}
  m_SavedProperties:
    serializedVersion: 3
    m_TexEnvs:
    - _MainTex:
        m_Texture: {fileID: 2800000, guid: 0730dae39bc73f34796280af9875ce14, type: 3}
        m_Scale: {x: 1, y: 1}
        m_Offset: {x: 0, y: 0}
    m_Ints:
    - _QueueControl: 1
    m_Floats: []
    m_Colors:
    - _Color: {r: 1, g: 1, b: 1, a: 1}
"""


@pytest.fixture
def standard_schema() -> ShaderSchema:
    """Built-in Standard shader, reduced to the properties the tests use."""
    return ShaderSchema(
        name="Standard",
        guid=STANDARD_GUID,
        file_id=46,
        properties=[
            ShaderProperty("_Color", RawPropertyType.COLOR),
            ShaderProperty("_MainTex", RawPropertyType.TEXENV),
            ShaderProperty("_Glossiness", RawPropertyType.RANGE),
            ShaderProperty("_Metallic", RawPropertyType.RANGE),
            ShaderProperty("_BumpMap", RawPropertyType.TEXENV),
            ShaderProperty("_EmissionColor", RawPropertyType.COLOR),
        ],
    )


@pytest.fixture
def urp_lit_schema() -> ShaderSchema:
    return ShaderSchema(
        name="Universal Render Pipeline/Lit",
        guid=URP_LIT_GUID,
        properties=[
            ShaderProperty("_BaseMap", RawPropertyType.TEXENV),
            ShaderProperty("_BaseColor", RawPropertyType.COLOR),
            ShaderProperty("_Smoothness", RawPropertyType.RANGE),
            ShaderProperty("_Metallic", RawPropertyType.RANGE),
            ShaderProperty("_BumpMap", RawPropertyType.TEXENV),
            ShaderProperty("_EmissionColor", RawPropertyType.COLOR),
        ],
    )


@pytest.fixture
def write_schema(tmp_path):
    """Write a ShaderSchema to a JSON file under tmp_path and return its path."""

    def _write(schema: ShaderSchema, filename: str):
        path = tmp_path / "schemas" / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(schema.to_dict(), indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def crate_mat() -> str:
    """Standard-shader material with one texture, two floats and two colors."""
    return CRATE_MAT


@pytest.fixture
def unlit_mat() -> str:
    """Material using a shader that is neither Standard nor URP Lit."""
    return UNLIT_MAT


@pytest.fixture
def builtin_unlit_mat() -> str:
    """Built-in Unlit/Texture material: same shader GUID as Standard, other fileID."""
    return BUILTIN_UNLIT_MAT
