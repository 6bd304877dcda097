"""Builds entity segments out of a finalized label sequence."""
from __future__ import annotations
from typing import Any, List, Optional, Sequence

from .errors import MalformedInputError
from .schema import Schema
from .types import AnnotatedSegment, Token

__all__ = ["build_segments"]


class _OpenSegment:
    """A segment whose last token has not been seen yet."""

    def __init__(self, start_token: int, start_char: Optional[int], annotation: str, score: float):
        self.start_token = start_token
        self.start_char = start_char
        self.annotation = annotation
        self._score_acc = score
        self._score_count = 1

    def add_score(self, value: float) -> None:
        self._score_acc += value
        self._score_count += 1

    def close(self, end_token: int, end_char: Optional[int]) -> AnnotatedSegment:
        return AnnotatedSegment(
            start_token=self.start_token,
            end_token=end_token,
            start_char=self.start_char,
            end_char=end_char,
            annotation=self.annotation,
            score=self._score_acc / self._score_count,
        )


def build_segments(
    labels: Sequence[Any],
    schema: Schema,
    tokens: Optional[Sequence[Token]] = None,
) -> List[AnnotatedSegment]:
    """
    Merges the labels of a valid sequence into annotated segments.

    Opening tags start a segment, continuation tags add their score to it, and
    a non-Outside label that is not followed by a continuation tag closes it.
    Outside labels are skipped. Unscored labels count with a score of 1.0.

    Args:
        labels: One label per token, usually the output of the decoder.
        schema: The schema the labels belong to.
        tokens: Optional parallel tokens, used to fill the character offsets.

    Returns:
        The segments in left-to-right order.

    Raises:
        MalformedInputError: If ``tokens`` and ``labels`` differ in length or a
                             continuation tag appears outside of a segment.
    """
    if tokens is not None and len(tokens) != len(labels):
        raise MalformedInputError(f"Got {len(labels)} labels for {len(tokens)} tokens.")

    segments: List[AnnotatedSegment] = []
    current: Optional[_OpenSegment] = None

    for i, label in enumerate(labels):
        score = float(getattr(label, "score", 1.0))
        nxt = labels[i + 1] if i + 1 < len(labels) else None

        if schema.opens(label.tag):
            start_char = tokens[i].position.start if tokens is not None else None
            current = _OpenSegment(start_token=i, start_char=start_char, annotation=label.value, score=score)
        elif schema.continues(label.tag):
            if current is None:
                raise MalformedInputError(f"Label '{label}' at index {i} continues a segment that was never opened.")
            current.add_score(score)

        if not schema.is_outside(label) and (nxt is None or not schema.continues(nxt.tag)):
            if current is None:
                raise MalformedInputError(f"Label '{label}' at index {i} closes a segment that was never opened.")
            end_char = tokens[i].position.end if tokens is not None else None
            segments.append(current.close(end_token=i, end_char=end_char))
            current = None

    return segments
