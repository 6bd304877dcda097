"""Conversion of label sequences between the IOB and BIEOU schemas.

Conversions are pure: they return new label objects and never touch the
input, so a label shared by several sentences can be converted safely. Scored
labels keep their score.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Any, List, Sequence, Union

from .errors import MalformedInputError, SchemaConfigurationError
from .schema import BIEOU, IOB, Schema, get_schema
from .types import BIEOUTag, IOBTag, Label, Scored

__all__ = ["convert"]

_BIEOU_TO_IOB = {
    BIEOUTag.Beginning: IOBTag.Beginning,
    BIEOUTag.Unit: IOBTag.Beginning,
    BIEOUTag.Inside: IOBTag.Inside,
    BIEOUTag.End: IOBTag.Inside,
    BIEOUTag.Outside: IOBTag.Outside,
}


def _label(item: Any) -> Label:
    return item.inner if isinstance(item, Scored) else item


def _retag(item: Any, tag) -> Any:
    if isinstance(item, Scored):
        return replace(item, inner=replace(item.inner, tag=tag))
    return replace(item, tag=tag)


def _iob_to_bieou(labels: Sequence[Any]) -> List[Any]:
    out = []
    for i, item in enumerate(labels):
        tag = _label(item).tag
        nxt = _label(labels[i + 1]).tag if i + 1 < len(labels) else None
        next_inside = nxt == IOBTag.Inside

        if tag == IOBTag.Outside:
            new_tag = BIEOUTag.Outside
        elif tag == IOBTag.Beginning:
            new_tag = BIEOUTag.Beginning if next_inside else BIEOUTag.Unit
        elif tag == IOBTag.Inside:
            prev = _label(labels[i - 1]).tag if i > 0 else None
            if prev not in (IOBTag.Beginning, IOBTag.Inside):
                raise MalformedInputError(f"Inside label '{_label(item)}' at index {i} does not follow a span start.")
            new_tag = BIEOUTag.Inside if next_inside else BIEOUTag.End
        else:
            raise SchemaConfigurationError(f"Unexpected tag {tag!r} at index {i} in an IOB sequence.")

        out.append(_retag(item, new_tag))
    return out


def _bieou_to_iob(labels: Sequence[Any]) -> List[Any]:
    out = []
    for i, item in enumerate(labels):
        tag = _label(item).tag
        if tag not in _BIEOU_TO_IOB:
            raise SchemaConfigurationError(f"Unexpected tag {tag!r} at index {i} in a BIEOU sequence.")
        out.append(_retag(item, _BIEOU_TO_IOB[tag]))
    return out


def convert(
    labels: Sequence[Any],
    scheme_from: Union[Schema, str],
    scheme_to: Union[Schema, str],
) -> List[Any]:
    """
    Converts a label sequence from one schema to another.

    IOB to BIEOU looks one label ahead: a Beginning followed by an Inside
    stays a Beginning and otherwise becomes a Unit; an Inside followed by an
    Inside stays an Inside and otherwise becomes an End. BIEOU to IOB folds
    Unit into Beginning and End into Inside.

    Args:
        labels: The labels of one sentence, plain or scored.
        scheme_from: The schema of ``labels`` (object or name).
        scheme_to: The target schema (object or name).

    Returns:
        A new list of labels in the target schema.

    Raises:
        SchemaConfigurationError: If a label does not belong to ``scheme_from``.
        MalformedInputError: If an IOB Inside does not follow a span start.
    """
    source = get_schema(scheme_from) if isinstance(scheme_from, str) else scheme_from
    target = get_schema(scheme_to) if isinstance(scheme_to, str) else scheme_to

    for i, item in enumerate(labels):
        if not source.owns(_label(item).tag):
            raise SchemaConfigurationError(f"Label '{_label(item)}' at index {i} is not a {source.name.upper()} label.")

    if source is target:
        return list(labels)
    if source is IOB and target is BIEOU:
        return _iob_to_bieou(labels)
    if source is BIEOU and target is IOB:
        return _bieou_to_iob(labels)
    raise SchemaConfigurationError(f"No conversion from '{source.name}' to '{target.name}'.")
