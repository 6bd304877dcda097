"""Schema-aware decoding of per-token candidates into a label sequence.

:func:`decode` is the entry point used by the labeler. It first runs the
bounded :class:`~seqlabel.beam_search.BeamSearch` and, when that finds no
complete valid path, falls back once to :func:`greedy_decode`, which always
succeeds on an alphabet that passed validation.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from .beam_search import AllowedFn, BeamSearch
from .candidates import CandidateList
from .errors import SchemaConfigurationError
from .schema import Schema
from .types import ScoredLabel

logger = logging.getLogger(__name__)

__all__ = ["transition_rule", "beam_decode", "greedy_decode", "decode"]


def transition_rule(schema: Schema) -> AllowedFn:
    """Builds the beam search predicate enforcing ``schema``."""

    def is_allowed(previous: Optional[ScoredLabel], candidate: ScoredLabel, is_last: bool) -> bool:
        if not schema.can_follow(candidate, previous):
            return False
        return not is_last or schema.can_end(candidate)

    return is_allowed


def beam_decode(
    candidates: Sequence[CandidateList],
    schema: Schema,
    max_beam_size: int = 3,
    max_fork_size: int = 5,
    max_iterations: int = 10,
) -> Optional[List[ScoredLabel]]:
    """
    Searches the best valid label sequence among the pruned candidates.

    Args:
        candidates: The candidate lists of each token.
        schema: The active tag schema.
        max_beam_size: Hypotheses kept per step (-1 = unbounded).
        max_fork_size: Extensions per hypothesis and step (-1 = unbounded).
        max_iterations: Longest sequence the search accepts (-1 = unbounded).

    Returns:
        One scored label per token, or ``None`` if the search gave up.
    """
    search = BeamSearch(
        [c.pruned for c in candidates],
        transition_rule(schema),
        max_beam_size=max_beam_size,
        max_fork_size=max_fork_size,
        max_iterations=max_iterations,
    )
    best = search.run()
    if best is None:
        logger.debug(
            "Beam search found no valid path for %d tokens (stopped after %d steps)",
            len(candidates),
            search.steps,
        )
        return None
    return list(best.elements)


def greedy_decode(candidates: Sequence[CandidateList], schema: Schema) -> List[ScoredLabel]:
    """
    Picks, left to right, the best label that can follow the previous choice.

    The full ranked list of each token is walked, not the pruned one, so the
    Outside label stays reachable even when its score is low. On the last
    token only labels that may end a sentence are accepted.

    Raises:
        SchemaConfigurationError: If a token has no acceptable label, which
                                  only happens with an unvalidated alphabet.
    """
    chosen: List[ScoredLabel] = []
    previous: Optional[ScoredLabel] = None
    last_index = len(candidates) - 1

    for i, options in enumerate(candidates):
        pick = next(
            (
                c for c in options.ranked
                if schema.can_follow(c, previous) and (i != last_index or schema.can_end(c))
            ),
            None,
        )
        if pick is None:
            raise SchemaConfigurationError(
                f"No label can follow '{previous}' at token {i}; the alphabet does not fit the "
                f"{schema.name.upper()} schema."
            )
        chosen.append(pick)
        previous = pick

    return chosen


def decode(
    candidates: Sequence[CandidateList],
    schema: Schema,
    max_beam_size: int = 3,
    max_fork_size: int = 5,
    max_iterations: int = 10,
) -> List[ScoredLabel]:
    """Beam search with a single greedy fallback. Never returns a partial sequence."""
    if not candidates:
        return []

    labels = beam_decode(
        candidates,
        schema,
        max_beam_size=max_beam_size,
        max_fork_size=max_fork_size,
        max_iterations=max_iterations,
    )
    if labels is None:
        logger.debug("Falling back to greedy decoding")
        labels = greedy_decode(candidates, schema)
    return labels
