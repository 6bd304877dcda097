"""The indexed label alphabet shared by the encoder and the decoder.

Position ``i`` of every score vector produced by the encoder is the score of
``alphabet[i]``. The alphabet is validated against its schema once, when it
is built, so that decoding never meets a misconfigured label set.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, Iterator, List, Sequence

from .errors import SchemaConfigurationError
from .schema import Schema
from .types import Label

logger = logging.getLogger(__name__)

__all__ = ["LabelAlphabet"]


class LabelAlphabet:
    """
    A bidirectional mapping between vector indices and labels.

    Attributes:
        schema: The tag schema every label of the alphabet belongs to.
    """

    def __init__(self, labels: Sequence[Label], schema: Schema):
        self.schema = schema
        self._labels: List[Label] = list(labels)
        self._index: Dict[Label, int] = {}
        for i, label in enumerate(self._labels):
            if label in self._index:
                raise SchemaConfigurationError(f"Duplicate label '{label}' at index {i}.")
            self._index[label] = i
        self._validate()
        logger.debug("Built %s alphabet with %d labels", schema.name, len(self._labels))

    @classmethod
    def from_annotations(cls, annotations: Iterable[str], schema: Schema) -> "LabelAlphabet":
        """Builds an alphabet from textual labels such as ``["O", "B-PER", "I-PER"]``."""
        return cls([schema.parse(a) for a in annotations], schema)

    def _validate(self) -> None:
        """
        Checks that the labels fit the schema and can always be decoded.

        Besides the per-label checks (right tag family, Outside without a
        type, entity tags with a type), every label must be followable by at
        least one label that may also close a sentence. That guarantees the
        greedy decoder can always complete a sequence.

        Raises:
            SchemaConfigurationError: On the first problem found.
        """
        schema = self.schema
        if not self._labels:
            raise SchemaConfigurationError("The label alphabet is empty.")

        for i, label in enumerate(self._labels):
            if not schema.owns(label.tag):
                raise SchemaConfigurationError(
                    f"Label '{label}' at index {i} does not belong to the {schema.name.upper()} schema."
                )
            if schema.is_outside(label) and label.value:
                raise SchemaConfigurationError(f"Outside label at index {i} must not carry a type ('{label.value}').")
            if not schema.is_outside(label) and not label.value:
                raise SchemaConfigurationError(f"Label '{label}' at index {i} is missing its entity type.")

        if not any(schema.is_outside(label) for label in self._labels):
            raise SchemaConfigurationError("The label alphabet has no Outside label.")

        closers = [label for label in self._labels if schema.can_end(label)]
        for previous in [None] + self._labels:
            if not any(schema.can_follow(label, previous) for label in closers):
                where = "the start of a sentence" if previous is None else f"'{previous}'"
                raise SchemaConfigurationError(
                    f"No label of the alphabet can both follow {where} and end a sentence."
                )

    def __len__(self) -> int:
        return len(self._labels)

    def __getitem__(self, index: int) -> Label:
        return self._labels[index]

    def __iter__(self) -> Iterator[Label]:
        return iter(self._labels)

    def __contains__(self, label: object) -> bool:
        return label in self._index

    def index(self, label: Label) -> int:
        try:
            return self._index[label]
        except KeyError:
            raise KeyError(f"Label '{label}' is not part of the alphabet.")

    @property
    def labels(self) -> List[Label]:
        return list(self._labels)

    def entity_types(self) -> List[str]:
        """The entity types of the alphabet, in order of first appearance."""
        seen: Dict[str, None] = {}
        for label in self._labels:
            if label.value:
                seen.setdefault(label.value, None)
        return list(seen)

    def to_annotations(self) -> List[str]:
        return [str(label) for label in self._labels]
