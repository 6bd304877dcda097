"""Tag schemas and the transition rules that make a label sequence valid.

A :class:`Schema` bundles a closed tag alphabet with two constraints:

-   ``can_follow``: whether a label may directly follow another one (or the
    start of the sentence). Besides the tag table, two labels that both carry
    an entity type must carry the *same* type, so a run can never switch
    entity type midway.
-   ``can_end``: whether a label may close the sentence. Spans may never be
    left open at the end of a sequence.

Two schemas are provided, :data:`IOB` and :data:`BIEOU`. A decoding session
always works with exactly one of them.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional, Sequence, Type

from .errors import SchemaConfigurationError
from .types import BIEOUTag, IOBTag, Label, Tag

__all__ = ["Schema", "IOB", "BIEOU", "get_schema"]


@dataclass(frozen=True, eq=False)
class Schema:
    """
    A tag alphabet plus its transition-validity rules.

    Attributes:
        name: Short name of the schema ("iob", "bieou").
        tag_type: The enum class holding the tags of this schema.
        valid_previous: Maps each tag to the set of tags it may follow;
                        ``None`` in the set stands for the sentence start.
        terminal: Tags allowed on the last token of a sentence.
        opening: Tags that open a new span.
        continuation: Tags that extend the span opened before them.
        outside: The tag meaning "no entity".
    """
    name: str
    tag_type: Type[Tag]
    valid_previous: Mapping[Tag, FrozenSet[Optional[Tag]]]
    terminal: FrozenSet[Tag]
    opening: FrozenSet[Tag]
    continuation: FrozenSet[Tag]
    outside: Tag

    def __post_init__(self) -> None:
        if not self.terminal:
            raise SchemaConfigurationError(f"Schema '{self.name}' has an empty terminal tag set.")
        missing = [tag for tag in self.tag_type if tag not in self.valid_previous]
        if missing:
            names = ", ".join(tag.name for tag in missing)
            raise SchemaConfigurationError(f"Schema '{self.name}' has no transition rule for: {names}.")

    def owns(self, tag: Any) -> bool:
        return isinstance(tag, self.tag_type)

    def can_follow(self, current: Any, previous: Optional[Any]) -> bool:
        """
        Checks whether ``current`` may directly follow ``previous``.

        Both arguments may be plain :class:`~seqlabel.types.Label` objects or
        scored labels; only their ``tag`` and ``value`` are read.

        Args:
            current: The label being placed.
            previous: The label on the previous token, or ``None`` at the
                      start of the sentence.

        Returns:
            True if the transition is legal in this schema.
        """
        prev_tag = previous.tag if previous is not None else None
        if prev_tag not in self.valid_previous.get(current.tag, frozenset()):
            return False
        if previous is None or not previous.value or not current.value:
            return True
        return previous.value == current.value

    def can_end(self, label: Any) -> bool:
        return label.tag in self.terminal

    def opens(self, tag: Tag) -> bool:
        return tag in self.opening

    def continues(self, tag: Tag) -> bool:
        return tag in self.continuation

    def is_outside(self, label: Any) -> bool:
        return label.tag == self.outside

    def parse(self, annotation: str) -> Label:
        """
        Builds a label from its textual form ("B-PER", "O", ...).

        Raises:
            SchemaConfigurationError: If the prefix is not a tag of this schema.
        """
        text = annotation.strip()
        prefix, sep, value = text.partition("-")
        try:
            tag = self.tag_type(prefix)
        except ValueError:
            raise SchemaConfigurationError(
                f"Annotation '{annotation}' does not start with a {self.name.upper()} tag."
            )
        return Label(tag=tag, value=value if sep else "")

    def find_violations(self, labels: Sequence[Any]) -> Dict[str, Any]:
        """
        Lists every place where ``labels`` breaks the rules of this schema.

        The report follows the same shape as other validation reports in the
        project: a total ``issue_count`` and a list of ``issues``, each one a
        dictionary with a ``type``, the token index ``idx`` and a message.

        Issue types:
            - ``foreign_tag``: the label uses a tag from another schema.
            - ``illegal_transition``: the label cannot follow the previous one.
            - ``dangling_span``: the last label leaves a span open.

        Args:
            labels: The label sequence to check, scored or not.

        Returns:
            A dictionary summarizing the validation results.
        """
        issues = []
        previous = None
        for i, label in enumerate(labels):
            if not self.owns(label.tag):
                issues.append({
                    "type": "foreign_tag",
                    "idx": i,
                    "message": f"Label '{label}' at index {i} is not a {self.name.upper()} label.",
                })
            elif not self.can_follow(label, previous):
                issues.append({
                    "type": "illegal_transition",
                    "idx": i,
                    "message": f"Label '{label}' at index {i} cannot follow '{previous}'.",
                })
            previous = label

        if labels and self.owns(labels[-1].tag) and not self.can_end(labels[-1]):
            last = len(labels) - 1
            issues.append({
                "type": "dangling_span",
                "idx": last,
                "message": f"Label '{labels[-1]}' at index {last} leaves a span open at the end of the sequence.",
            })

        return {"issue_count": len(issues), "issues": issues}

    def is_valid_sequence(self, labels: Sequence[Any]) -> bool:
        return self.find_violations(labels)["issue_count"] == 0


_IOB_ANY = frozenset({None, IOBTag.Beginning, IOBTag.Inside, IOBTag.Outside})
_IOB_IN_SPAN = frozenset({IOBTag.Beginning, IOBTag.Inside})

IOB = Schema(
    name="iob",
    tag_type=IOBTag,
    valid_previous={
        IOBTag.Beginning: _IOB_ANY,
        IOBTag.Outside: _IOB_ANY,
        IOBTag.Inside: _IOB_IN_SPAN,
    },
    terminal=frozenset({IOBTag.Outside}),
    opening=frozenset({IOBTag.Beginning}),
    continuation=frozenset({IOBTag.Inside}),
    outside=IOBTag.Outside,
)

_BIEOU_IN_SPAN = frozenset({BIEOUTag.Beginning, BIEOUTag.Inside})
_BIEOU_OUT_OF_SPAN = frozenset({None, BIEOUTag.Outside, BIEOUTag.End, BIEOUTag.Unit})

BIEOU = Schema(
    name="bieou",
    tag_type=BIEOUTag,
    valid_previous={
        BIEOUTag.Inside: _BIEOU_IN_SPAN,
        BIEOUTag.End: _BIEOU_IN_SPAN,
        BIEOUTag.Beginning: _BIEOU_OUT_OF_SPAN,
        BIEOUTag.Outside: _BIEOU_OUT_OF_SPAN,
        BIEOUTag.Unit: _BIEOU_OUT_OF_SPAN,
    },
    terminal=frozenset({BIEOUTag.Outside, BIEOUTag.Unit, BIEOUTag.End}),
    opening=frozenset({BIEOUTag.Beginning, BIEOUTag.Unit}),
    continuation=frozenset({BIEOUTag.Inside, BIEOUTag.End}),
    outside=BIEOUTag.Outside,
)

_SCHEMAS: Dict[str, Schema] = {
    "iob": IOB,
    "bio": IOB,
    "bieou": BIEOU,
    "bilou": BIEOU,
}


def get_schema(name: str) -> Schema:
    """Resolves a schema by name ("iob", "bio", "bieou" or "bilou")."""
    try:
        return _SCHEMAS[name.strip().lower()]
    except KeyError:
        known = ", ".join(sorted(_SCHEMAS))
        raise SchemaConfigurationError(f"Unknown tag schema '{name}'. Expected one of: {known}.")
