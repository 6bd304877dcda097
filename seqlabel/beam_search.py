"""Position-synchronous beam search over per-position candidate lists.

The searcher knows nothing about labels or tag schemas: it works with any
candidate object exposing a float ``score`` and asks a caller-supplied
predicate whether a candidate may extend a partial path. The schema-aware
decoder in :mod:`seqlabel.decoding` plugs label transition rules into it.

Each :class:`PathState` is one hypothesis. Its score is the *mean* of the
scores of its elements, so paths of different lengths stay comparable while
the beam is pruned. The search stops early, returning ``None``, when the beam
empties or when the sequence is longer than the iteration limit; it never
returns a partial or invalid path.
"""
from __future__ import annotations
from dataclasses import dataclass
from heapq import nlargest
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from .errors import SchemaConfigurationError

__all__ = ["PathState", "BeamSearch", "UNBOUNDED"]

C = TypeVar("C")

UNBOUNDED = -1

AllowedFn = Callable[[Optional[C], C, bool], bool]


@dataclass(frozen=True)
class PathState(Generic[C]):
    """Represents one hypothesis (a path) in the beam search."""
    elements: Tuple[C, ...]
    total: float

    @property
    def score(self) -> float:
        if not self.elements:
            return 0.0
        return self.total / len(self.elements)

    @property
    def last(self) -> Optional[C]:
        return self.elements[-1] if self.elements else None

    def extend(self, candidate: C) -> "PathState[C]":
        return PathState(elements=self.elements + (candidate,), total=self.total + candidate.score)  # type: ignore[attr-defined]


class BeamSearch(Generic[C]):
    """
    Finds the best-scoring complete path through a sequence of candidate lists.

    Attributes
    ----------
    candidates:
        One list per position, each sorted by descending score.
    is_allowed:
        ``is_allowed(previous, candidate, is_last)`` tells whether
        ``candidate`` may follow ``previous`` (``None`` at the first
        position). ``is_last`` is True on the final position.
    max_beam_size:
        Number of hypotheses kept after each step (``-1`` = unbounded).
    max_fork_size:
        Number of extensions generated from one hypothesis at each step
        (``-1`` = unbounded).
    max_iterations:
        Maximum number of positions the search will process (``-1`` =
        unbounded). Longer sequences are reported as unsolved.
    beam:
        The surviving hypotheses after the last processed step.
    steps:
        Number of positions processed by the last :meth:`run`.
    last_path_score:
        Mean score of the path returned by the last :meth:`run`, or ``None``.
    """

    def __init__(
        self,
        candidates: Sequence[Sequence[C]],
        is_allowed: AllowedFn,
        max_beam_size: int = 3,
        max_fork_size: int = 5,
        max_iterations: int = 10,
    ):
        for name, value in (
            ("max_beam_size", max_beam_size),
            ("max_fork_size", max_fork_size),
            ("max_iterations", max_iterations),
        ):
            if value == 0 or value < UNBOUNDED:
                raise ValueError(f"{name} must be positive or {UNBOUNDED} (unbounded), got {value}")

        for i, options in enumerate(candidates):
            if not options:
                raise SchemaConfigurationError(f"Position {i} has no candidates.")

        self.candidates = [list(options) for options in candidates]
        self.is_allowed = is_allowed
        self.max_beam_size = max_beam_size
        self.max_fork_size = max_fork_size
        self.max_iterations = max_iterations
        self.beam: List[PathState[C]] = []
        self.steps = 0
        self.last_path_score: Optional[float] = None

    def _fork(self, state: PathState[C], options: Sequence[C], is_last: bool) -> List[PathState[C]]:
        """Extends ``state`` with the allowed options, best first, up to the fork size."""
        forks: List[PathState[C]] = []
        for candidate in options:
            if not self.is_allowed(state.last, candidate, is_last):
                continue
            forks.append(state.extend(candidate))
            if self.max_fork_size != UNBOUNDED and len(forks) >= self.max_fork_size:
                break
        return forks

    def _prune(self, states: List[PathState[C]]) -> List[PathState[C]]:
        # nlargest keeps the generation order among equal scores.
        if self.max_beam_size == UNBOUNDED:
            return sorted(states, key=lambda s: s.score, reverse=True)
        return nlargest(self.max_beam_size, states, key=lambda s: s.score)

    def run(self) -> Optional[PathState[C]]:
        """
        Executes the beam search.

        At each position every hypothesis of the beam is forked with the
        candidates the predicate allows, the forks of all hypotheses are
        ranked by mean score and only the best ``max_beam_size`` survive.

        Returns:
            The best complete :class:`PathState`, or ``None`` when the beam
            collapsed or the sequence exceeds ``max_iterations``.
        """
        self.beam = []
        self.steps = 0
        self.last_path_score = None

        length = len(self.candidates)
        if length == 0:
            return None
        if self.max_iterations != UNBOUNDED and length > self.max_iterations:
            return None

        self.beam = [PathState(elements=(), total=0.0)]

        for i, options in enumerate(self.candidates):
            is_last = i == length - 1
            extended: List[PathState[C]] = []
            for state in self.beam:
                extended.extend(self._fork(state, options, is_last))

            self.steps += 1
            if not extended:
                self.beam = []
                return None

            self.beam = self._prune(extended)

        best = self.beam[0]
        self.last_path_score = best.score
        return best
