from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Optional, TypeVar, Union

__all__ = [
    "IOBTag",
    "BIEOUTag",
    "Tag",
    "Label",
    "Scored",
    "ScoredLabel",
    "Position",
    "Token",
    "AnnotatedToken",
    "AnnotatedSegment",
    "labels_of",
]


class IOBTag(Enum):
    """The Inside-Outside-Beginning tag alphabet."""

    Beginning = "B"
    Inside = "I"
    Outside = "O"


class BIEOUTag(Enum):
    """The Beginning-Inside-End-Outside-Unit tag alphabet.

    Every other common span scheme (IOB, IOE) can be derived from it, which is
    why it is the default scheme of the decoder configuration.
    """

    Beginning = "B"
    Inside = "I"
    End = "E"
    Outside = "O"
    Unit = "U"


Tag = Union[IOBTag, BIEOUTag]

T = TypeVar("T")


@dataclass(frozen=True)
class Label:
    """
    A segmentation tag paired with an entity type.

    Attributes:
        tag: The span tag (e.g. ``IOBTag.Beginning``).
        value: The entity type (e.g. "PER", "LOC", "ORG"). It is the empty
               string for the Outside tag. The pairing is checked when a
               :class:`~seqlabel.alphabet.LabelAlphabet` is built, not here.
    """
    tag: Tag
    value: str = ""

    def __str__(self) -> str:
        if self.value:
            return f"{self.tag.value}-{self.value}"
        return self.tag.value


@dataclass(frozen=True)
class Scored(Generic[T]):
    """A value decorated with a confidence score, usually a softmax probability."""
    inner: T
    score: float

    @property
    def tag(self) -> Tag:
        return self.inner.tag  # type: ignore[attr-defined]

    @property
    def value(self) -> str:
        return self.inner.value  # type: ignore[attr-defined]

    def __str__(self) -> str:
        return f"{self.inner} ({self.score:.4f})"


ScoredLabel = Scored[Label]


@dataclass(frozen=True)
class Position:
    """
    Location of a token inside the original text.

    Attributes:
        index: Index of the token inside its sentence.
        start: Index of the first character of the token.
        end: Index of the last character of the token (inclusive).
    """
    index: int
    start: int
    end: int


@dataclass(frozen=True)
class Token:
    """A token produced by the external tokenizer. The decoder only reads it."""
    form: str
    position: Position


@dataclass(frozen=True)
class AnnotatedToken:
    """A token paired with the label assigned to it."""
    form: str
    position: Position
    label: Union[Label, ScoredLabel]

    def __str__(self) -> str:
        label = self.label.inner if isinstance(self.label, Scored) else self.label
        return f"{self.form}\t{label}"


@dataclass(frozen=True)
class AnnotatedSegment:
    """
    A contiguous run of tokens annotated as one entity mention.

    Attributes:
        start_token: Index of the first token of the segment.
        end_token: Index of the last token of the segment (inclusive).
        start_char: Index of the first character, when token positions are known.
        end_char: Index of the last character (inclusive), when token positions are known.
        annotation: The entity type of the segment.
        score: The mean score of the labels that compose the segment.
    """
    start_token: int
    end_token: int
    start_char: Optional[int]
    end_char: Optional[int]
    annotation: str
    score: float

    def to_dict(self) -> dict:
        return {
            "start_token": self.start_token,
            "end_token": self.end_token,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "annotation": self.annotation,
            "score": self.score,
        }


def labels_of(scored: List[ScoredLabel]) -> List[Label]:
    """Strip the scores from a list of scored labels."""
    return [s.inner for s in scored]
