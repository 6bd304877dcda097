"""Turns raw per-token score vectors into ranked label candidates."""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np

from .alphabet import LabelAlphabet
from .errors import MalformedInputError
from .types import Scored, ScoredLabel

__all__ = ["CandidateList", "softmax", "rank_candidates", "build_candidates"]

ScoreVector = Union[Sequence[float], np.ndarray]


@dataclass(frozen=True)
class CandidateList:
    """
    The candidate labels of one token.

    Attributes:
        ranked: Every label of the alphabet, by descending score.
        pruned: The labels scoring at least the mean of a uniform distribution
                over the alphabet (``1 / len(alphabet)``). Falls back to
                ``ranked`` when nothing clears the threshold. The beam search
                explores this list; the greedy decoder walks ``ranked``.
    """
    ranked: List[ScoredLabel]
    pruned: List[ScoredLabel]


def softmax(logits: np.ndarray) -> np.ndarray:
    """Row-wise softmax over the last axis, shifted by the max to avoid overflow."""
    values = np.asarray(logits, dtype=float)
    shifted = values - values.max(axis=-1, keepdims=True)
    exp_values = np.exp(shifted)
    return exp_values / exp_values.sum(axis=-1, keepdims=True)


def _as_vector(scores: ScoreVector, size: int, token_index: int) -> np.ndarray:
    vector = np.asarray(scores, dtype=float)
    if vector.ndim != 1:
        raise MalformedInputError(
            f"Expected a 1-D score vector for token {token_index}, got shape {vector.shape}."
        )
    if vector.shape[0] != size:
        raise MalformedInputError(
            f"Score vector of token {token_index} has length {vector.shape[0]}, "
            f"but the label alphabet has {size} labels."
        )
    if not np.all(np.isfinite(vector)):
        raise MalformedInputError(f"Score vector of token {token_index} contains NaN or infinite values.")
    if np.any(vector < 0.0):
        raise MalformedInputError(f"Score vector of token {token_index} contains negative scores.")
    return vector


def rank_candidates(scores: ScoreVector, alphabet: LabelAlphabet, token_index: int = 0) -> CandidateList:
    """
    Ranks the labels of one token by descending score.

    Ties keep the alphabet order, so the ranking is deterministic.

    Args:
        scores: The score of each label, aligned with ``alphabet``.
        alphabet: The label alphabet.
        token_index: Position of the token, used in error messages.

    Returns:
        The ranked and pruned candidate lists of the token.

    Raises:
        MalformedInputError: If the vector does not match the alphabet or
                             holds negative or non-finite scores.
    """
    vector = _as_vector(scores, len(alphabet), token_index)
    order = np.argsort(-vector, kind="stable")
    ranked = [Scored(inner=alphabet[int(i)], score=float(vector[i])) for i in order]

    threshold = 1.0 / vector.shape[0]  # the mean of the distribution
    pruned = [c for c in ranked if c.score >= threshold]

    return CandidateList(ranked=ranked, pruned=pruned or list(ranked))


def build_candidates(predictions: Union[Sequence[ScoreVector], np.ndarray], alphabet: LabelAlphabet) -> List[CandidateList]:
    """Ranks the candidates of every token of a sentence."""
    if isinstance(predictions, np.ndarray) and predictions.ndim != 2:
        raise MalformedInputError(f"Expected predictions of shape (N, C), got {predictions.shape}.")
    return [rank_candidates(scores, alphabet, i) for i, scores in enumerate(predictions)]
