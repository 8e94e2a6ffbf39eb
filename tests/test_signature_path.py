"""Tests for signature_mouse.vector (SignaturePath, SVG and YAML I/O).

Tests:
    - Path markup: two-decimal M/L output, implicit lineto, numeric forms
    - SVG document: width/height/viewBox and the signature path element
    - SVG and YAML round trips preserve stroke structure to 2 decimals
    - viewBox wins over width/height when reading
    - Missing files, invalid XML, SVG without paths → InputError
    - SignaturePath bounds, start point and source-space strokes

Run:
    pytest tests/test_signature_path.py -v
"""

import xml.etree.ElementTree as ET

import numpy as np
import pydantic
import pytest

from signature_mouse.errors import InputError
from signature_mouse.vector import SignaturePath, build_path, load_signature, load_svg, parse_path, save_svg

SVG_NS = "{http://www.w3.org/2000/svg}"


@pytest.fixture
def signature():
    return SignaturePath(
        width=120,
        height=60,
        strokes=[
            np.array([[1.0, 2.0], [10.123, 20.987], [30.5, 5.0]]),
            np.array([[50.0, 40.0]]),
        ],
        offset_x=7,
        offset_y=3,
    )


# ============================================================================
# PATH MARKUP
# ============================================================================

def test_build_path_two_decimals():
    d = build_path([np.array([[1, 2], [3.456, 4]]), np.zeros((0, 2)), np.array([[5, 6]])])
    assert d == "M 1.00 2.00 L 3.46 4.00 M 5.00 6.00"


def test_parse_path_implicit_lineto():
    strokes = parse_path("M 1 2 L 3 4 M 5 6 7 8")
    assert [s.tolist() for s in strokes] == [[[1, 2], [3, 4]], [[5, 6], [7, 8]]]


def test_parse_path_number_forms():
    (stroke,) = parse_path("M-1.5,.5L1e1 +2")
    assert stroke.tolist() == [[-1.5, 0.5], [10.0, 2.0]]


def test_parse_path_stops_at_dangling_coordinate():
    (stroke,) = parse_path("M 1 2 L 3")
    assert stroke.tolist() == [[1.0, 2.0]]


@pytest.mark.parametrize("d", ["", "   "])
def test_parse_path_empty(d):
    assert parse_path(d) == []


# ============================================================================
# SVG
# ============================================================================

def test_svg_document_structure(signature, tmp_path):
    path = tmp_path / "sig.svg"
    save_svg(signature, path)

    root = ET.parse(path).getroot()
    assert root.get("width") == "120"
    assert root.get("height") == "60"
    assert root.get("viewBox") == "0 0 120 60"

    (elem,) = root.iter(f"{SVG_NS}path")
    assert elem.get("id") == "signature"
    assert elem.get("fill") == "none"
    assert elem.get("stroke") == "black"
    assert elem.get("d").startswith("M 1.00 2.00 L 10.12 20.99")


def test_svg_round_trip(signature, tmp_path):
    path = tmp_path / "sig.svg"
    signature.save_svg(path)
    loaded = load_svg(path)

    assert (loaded.width, loaded.height) == (120, 60)
    assert len(loaded.strokes) == len(signature.strokes)
    for a, b in zip(loaded.strokes, signature.strokes):
        assert a.shape == b.shape
        assert np.allclose(a, b, atol=0.005)


def test_svg_viewbox_wins(tmp_path):
    path = tmp_path / "external.svg"
    path.write_text(
        '<svg xmlns="http://www.w3.org/2000/svg" width="10mm" height="10mm" viewBox="0 0 300 200">'
        '<g><path d="M 0 0 L 5 5"/></g><path d="M 9 9 L 8 8"/></svg>'
    )
    sig = load_svg(path)
    assert (sig.width, sig.height) == (300, 200)
    assert [s.tolist() for s in sig.strokes] == [[[0, 0], [5, 5]], [[9, 9], [8, 8]]]


def test_svg_errors(tmp_path):
    with pytest.raises(InputError):
        load_svg(tmp_path / "missing.svg")

    broken = tmp_path / "broken.svg"
    broken.write_text("<svg><path")
    with pytest.raises(InputError):
        load_svg(broken)

    no_paths = tmp_path / "empty.svg"
    no_paths.write_text('<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"/>')
    with pytest.raises(InputError):
        load_svg(no_paths)


def test_empty_signature_svg(tmp_path):
    path = tmp_path / "none.svg"
    SignaturePath(width=5, height=4).save_svg(path)
    sig = load_svg(path)
    assert sig.strokes == []
    assert (sig.width, sig.height) == (5, 4)


# ============================================================================
# YAML
# ============================================================================

def test_yaml_round_trip(signature, tmp_path):
    path = tmp_path / "sig.yaml"
    signature.save_yaml(path)
    loaded = load_signature(path)

    assert (loaded.width, loaded.height) == (120, 60)
    assert (loaded.offset_x, loaded.offset_y) == (7, 3)
    for a, b in zip(loaded.strokes, signature.strokes):
        assert np.allclose(a, b, atol=0.005)


def test_load_signature_by_extension(signature, tmp_path):
    signature.save_svg(tmp_path / "sig.svg")
    assert len(load_signature(tmp_path / "sig.svg").strokes) == 2


def test_yaml_validation_errors(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("schema: signature_path.v1\nwidth: 10\nheight: 10\nstrokes: [[[1, 2, 3]]]\n")
    with pytest.raises(InputError):
        SignaturePath.load_yaml(bad)

    with pytest.raises(InputError):
        SignaturePath.load_yaml(tmp_path / "missing.yaml")

    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- 1\n- 2\n")
    with pytest.raises(InputError, match="mapping"):
        SignaturePath.load_yaml(not_mapping)

    with pytest.raises(pydantic.ValidationError):
        SignaturePath.from_dict({"schema": "signature_path.v2", "width": 1, "height": 1})


# ============================================================================
# MODEL
# ============================================================================

def test_bounds_and_start(signature):
    assert signature.bounds() == (1.0, 2.0, 50.0, 40.0)
    assert signature.start_point() == (1.0, 2.0)
    assert signature.point_count == 4
    assert SignaturePath(width=1, height=1).start_point() == (0.0, 0.0)


def test_source_strokes(signature):
    shifted = signature.source_strokes()
    assert shifted[0][0].tolist() == [8.0, 5.0]
    assert signature.strokes[0][0].tolist() == [1.0, 2.0], "Canvas strokes are unchanged"


def test_empty_stroke_rejected():
    with pytest.raises(ValueError):
        SignaturePath(width=1, height=1, strokes=[[]])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
