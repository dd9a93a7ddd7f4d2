"""Tests for tolerant annotation block parsing."""

import logging

import pytest

from conftest import build_snapshot, vertex_record
from src.domain.entities import Annotation
from src.infrastructure.processing.lssnap import decode
from src.infrastructure.processing.lssnap.annotations import (
    annotations_to_json,
    load_annotations,
    parse_annotation_block,
)
from src.shared.exceptions import AnnotationParseError


ONE_VERTEX = vertex_record(1000, 2000, 3000, 10, 20, 30)


def decode_with_block(block: bytes, annotation_length: int | None = None):
    return decode(
        build_snapshot(
            vertices=ONE_VERTEX, annotation_block=block, annotation_length=annotation_length
        )
    )


class TestDegradesToEmpty:
    """A broken annotation block never costs the point cloud."""

    @pytest.mark.parametrize(
        "block",
        [
            b"\xff\xfe\xfd",  # not UTF-8
            b"[{\"type\": ",  # not JSON
            b'{"type": "point"}',  # object instead of array
            b'"point"',
            b'[{"type": "point", "positions": [0, 0, 0]}, 42]',  # non-object element
            b'[{"type": "circle", "positions": [0, 0, 0], "radius": NaN}]',
            b'[{"type": "point", "positions": [0, 0, 0], "radius": Infinity}]',
            b'[{"type": "point", "positions": [-Infinity, 0, 0]}]',
        ],
    )
    def test_invalid_block(self, block):
        snapshot = decode_with_block(block)

        assert snapshot.vertex_count == 1
        assert snapshot.annotations == ()

    def test_block_past_end_of_buffer(self):
        """Declared length longer than the remaining bytes."""
        snapshot = decode_with_block(b"[]", annotation_length=100)

        assert snapshot.vertex_count == 1
        assert snapshot.annotations == ()

    @pytest.mark.parametrize("length", [0, -5])
    def test_non_positive_length(self, length):
        """No parse is attempted, even when bytes follow the vertex block."""
        snapshot = decode_with_block(b'[{"type": "point"}]', annotation_length=length)
        assert snapshot.annotations == ()

    def test_empty_array(self):
        assert decode_with_block(b"[]").annotations == ()

    def test_failure_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG):
            decode_with_block(b"not json")

        assert any("Ignoring annotation block" in r.message for r in caplog.records)
        assert not any(r.levelno >= logging.WARNING for r in caplog.records)


class TestRecordFields:
    """Test per-record field handling."""

    def test_full_record(self):
        block = b'[{"type":"freehand","positions":[0,0,0,1,1,1],"color":[255,0,0]}]'
        (annotation,) = parse_annotation_block(block)

        assert annotation.kind == "freehand"
        assert annotation.positions == (0.0, 0.0, 0.0, 1.0, 1.0, 1.0)
        assert annotation.radius is None
        assert annotation.color == (255.0, 0.0, 0.0)
        assert annotation.point_count == 2

    def test_unknown_type_kept(self):
        """Unknown kinds survive parsing; the overlay builder drops them later."""
        (annotation,) = parse_annotation_block(b'[{"type":"polygon","positions":[1,2,3]}]')
        assert annotation.kind == "polygon"

    def test_missing_fields(self):
        (annotation,) = parse_annotation_block(b"[{}]")

        assert annotation.kind == ""
        assert annotation.positions == ()
        assert annotation.radius is None
        assert annotation.color is None

    def test_wrong_field_types_degrade(self):
        block = (
            b'[{"type": 5, "positions": [1, "a", 3], "radius": "big", '
            b'"color": [1, 2]}]'
        )
        (annotation,) = parse_annotation_block(block)

        assert annotation.kind == ""
        assert annotation.positions == ()
        assert annotation.radius is None
        assert annotation.color is None

    def test_booleans_are_not_numbers(self):
        (annotation,) = parse_annotation_block(
            b'[{"type":"point","positions":[true,false,true],"radius":true}]'
        )

        assert annotation.positions == ()
        assert annotation.radius is None

    def test_order_preserved(self):
        block = b'[{"type":"point"},{"type":"circle"},{"type":"freehand"}]'
        kinds = [a.kind for a in parse_annotation_block(block)]
        assert kinds == ["point", "circle", "freehand"]


class TestStrictParser:
    """parse_annotation_block itself raises; only load_annotations recovers."""

    def test_raises_on_bad_json(self):
        with pytest.raises(AnnotationParseError):
            parse_annotation_block(b"{")

    def test_raises_on_non_object_element(self):
        with pytest.raises(AnnotationParseError) as exc_info:
            parse_annotation_block(b"[1]")

        assert "Annotation 0" in str(exc_info.value)

    def test_raises_on_nan_literal(self):
        with pytest.raises(AnnotationParseError) as exc_info:
            parse_annotation_block(b'[{"type": "circle", "radius": NaN}]')

        assert "NaN" in str(exc_info.value)

    def test_load_annotations_slices_at_offset(self):
        buffer = b"junk" + b'[{"type":"point"}]' + b"tail"
        annotations = load_annotations(buffer, 4, len(buffer) - 8)

        assert len(annotations) == 1


class TestAnnotationsToJson:
    def test_entities_and_dicts(self):
        annotations = [
            Annotation(kind="point", positions=(1.0, 2.0, 3.0), radius=0.5, color=(255, 0, 0)),
            {"type": "circle", "positions": [0, 0, 0]},
        ]
        parsed = parse_annotation_block(annotations_to_json(annotations))

        assert parsed[0] == Annotation(
            kind="point", positions=(1.0, 2.0, 3.0), radius=0.5, color=(255.0, 0.0, 0.0)
        )
        assert parsed[1].kind == "circle"
