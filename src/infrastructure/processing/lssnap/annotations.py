"""
Annotation block parsing for .lssnap snapshots.

The annotation block is optional decoration: a broken block must never cost
the user the point cloud, so ``load_annotations`` always returns a value and
only ``parse_annotation_block`` raises.
"""

from __future__ import annotations

import json
import logging
import numbers
from collections.abc import Iterable
from typing import Any

from src.domain.entities import Annotation
from src.shared.exceptions import AnnotationParseError

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    # json accepts NaN and Infinity literals that are not valid JSON
    raise AnnotationParseError(f"Annotation block contains non-standard JSON literal {name}")


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _record_to_annotation(record: dict[str, Any]) -> Annotation:
    """Convert one JSON object into an Annotation.

    Field values of the wrong type degrade to their empty form so the record
    is kept (and counted) but later skipped by the overlay builder.
    """
    kind = record.get("type")
    kind = kind if isinstance(kind, str) else ""

    raw_positions = record.get("positions")
    positions: tuple[float, ...] = ()
    if isinstance(raw_positions, list) and all(_is_number(v) for v in raw_positions):
        positions = tuple(float(v) for v in raw_positions)

    raw_radius = record.get("radius")
    radius = float(raw_radius) if _is_number(raw_radius) else None

    raw_color = record.get("color")
    color = None
    if (
        isinstance(raw_color, list)
        and len(raw_color) == 3
        and all(_is_number(v) for v in raw_color)
    ):
        color = (float(raw_color[0]), float(raw_color[1]), float(raw_color[2]))

    return Annotation(kind=kind, positions=positions, radius=radius, color=color)


def parse_annotation_block(raw: bytes) -> list[Annotation]:
    """
    Parse an annotation block strictly.

    Parameters
    ----------
    raw : bytes
        UTF-8 encoded JSON array of annotation objects

    Returns
    -------
    list[Annotation]
        Annotations in file order

    Raises
    ------
    AnnotationParseError
        If the bytes are not UTF-8 or not strict JSON (NaN and
        Infinity literals are rejected), are not an array, or contain a non-object element
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AnnotationParseError("Annotation block is not valid UTF-8", cause=e) from e

    try:
        payload = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise AnnotationParseError("Annotation block is not valid JSON", cause=e) from e

    if not isinstance(payload, list):
        raise AnnotationParseError(
            f"Annotation block must be a JSON array, got {type(payload).__name__}"
        )

    annotations = []
    for index, record in enumerate(payload):
        if not isinstance(record, dict):
            raise AnnotationParseError(
                f"Annotation {index} must be a JSON object, got {type(record).__name__}"
            )
        annotations.append(_record_to_annotation(record))
    return annotations


def load_annotations(buffer: bytes | memoryview, offset: int, length: int) -> tuple[Annotation, ...]:
    """
    Read the annotation block at ``offset``, degrading to no annotations.

    A non-positive ``length`` means the snapshot carries no annotations and no
    parse is attempted. A range running past the end of the buffer counts as
    a parse failure.
    """
    if length <= 0:
        return ()

    end = offset + length
    try:
        if end > len(buffer):
            raise AnnotationParseError(
                f"Annotation block truncated: needs {length} bytes at offset {offset}, "
                f"buffer has {len(buffer)}"
            )
        return tuple(parse_annotation_block(bytes(buffer[offset:end])))
    except AnnotationParseError as e:
        logger.debug("Ignoring annotation block: %s", e)
        return ()


def annotations_to_json(annotations: Iterable[Annotation | dict[str, Any]]) -> bytes:
    """Serialize annotations to the UTF-8 JSON block stored in a snapshot."""
    records = []
    for ann in annotations:
        if isinstance(ann, dict):
            records.append(ann)
            continue
        record: dict[str, Any] = {"type": ann.kind, "positions": list(ann.positions)}
        if ann.radius is not None:
            record["radius"] = ann.radius
        if ann.color is not None:
            record["color"] = [int(round(c)) for c in ann.color]
        records.append(record)
    return json.dumps(records, separators=(",", ":")).encode("utf-8")
