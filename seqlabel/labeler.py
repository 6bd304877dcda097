"""The tokens labeler: encoder scores in, valid labels and segments out.

:class:`TokensLabeler` glues an external encoder (anything mapping a list of
tokens to an ``(N, C)`` score matrix) to the candidate generator, the
schema-aware decoder and the segment builder. A labeler owns no state shared
across calls, but encoders often keep forward-pass buffers, so batch labeling
gives every worker thread its own labeler (see :func:`label_sentences`).
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .alphabet import LabelAlphabet
from .candidates import build_candidates, softmax
from .config import Config
from .decoding import decode
from .errors import MalformedInputError
from .segments import build_segments
from .types import AnnotatedSegment, AnnotatedToken, Position, ScoredLabel, Token

logger = logging.getLogger(__name__)

__all__ = [
    "Encoder",
    "PrecomputedEncoder",
    "TokensLabeler",
    "tokens_from_forms",
    "annotate",
    "label_sentences",
]

Encoder = Callable[[Sequence[Token]], np.ndarray]


def tokens_from_forms(forms: Sequence[str]) -> List[Token]:
    """Builds tokens from their forms, assuming one space between consecutive tokens."""
    tokens: List[Token] = []
    end = -2
    for i, form in enumerate(forms):
        start = end + 2
        end = start + len(form) - 1
        tokens.append(Token(form=form, position=Position(index=i, start=start, end=end)))
    return tokens


def annotate(tokens: Sequence[Token], labels: Sequence[ScoredLabel]) -> List[AnnotatedToken]:
    if len(tokens) != len(labels):
        raise MalformedInputError(f"Got {len(labels)} labels for {len(tokens)} tokens.")
    return [AnnotatedToken(form=t.form, position=t.position, label=label) for t, label in zip(tokens, labels)]


class PrecomputedEncoder:
    """
    An encoder replaying score vectors computed elsewhere.

    Sentences are looked up by the tuple of their token forms. Entries can be
    stored as probabilities (``scores``) or raw ``logits``, which are turned
    into probabilities with a softmax.
    """

    def __init__(self) -> None:
        self._table: Dict[Tuple[str, ...], np.ndarray] = {}

    def add(self, forms: Sequence[str], scores=None, logits=None) -> None:
        if (scores is None) == (logits is None):
            raise ValueError("Provide exactly one of 'scores' or 'logits'.")
        if not forms:
            self._table[()] = np.zeros((0, 0))
            return
        matrix = np.asarray(scores if scores is not None else softmax(np.asarray(logits, dtype=float)), dtype=float)
        if matrix.ndim != 2 or matrix.shape[0] != len(forms):
            raise MalformedInputError(
                f"Expected {len(forms)} score vectors for sentence {' '.join(forms)!r}, got shape {matrix.shape}."
            )
        self._table[tuple(forms)] = matrix

    def __len__(self) -> int:
        return len(self._table)

    def __call__(self, tokens: Sequence[Token]) -> np.ndarray:
        key = tuple(t.form for t in tokens)
        try:
            return self._table[key]
        except KeyError:
            raise MalformedInputError(f"No stored scores for sentence {' '.join(key)!r}.")


class TokensLabeler:
    """
    Predicts one schema-valid label per token.

    Attributes:
        encoder: The external encoder producing one score vector per token.
        alphabet: The label alphabet aligned with the encoder output.
        schema: The tag schema of the alphabet.
        decoder_bounds: The beam search bounds passed to :func:`decode`.
    """

    def __init__(
        self,
        encoder: Encoder,
        alphabet: LabelAlphabet,
        max_beam_size: int = 3,
        max_fork_size: int = 5,
        max_iterations: int = 10,
    ):
        self.encoder = encoder
        self.alphabet = alphabet
        self.schema = alphabet.schema
        self.decoder_bounds = {
            "max_beam_size": max_beam_size,
            "max_fork_size": max_fork_size,
            "max_iterations": max_iterations,
        }

    @classmethod
    def from_config(cls, encoder: Encoder, cfg: Config, alphabet: Optional[LabelAlphabet] = None) -> "TokensLabeler":
        if alphabet is None:
            alphabet = LabelAlphabet.from_annotations(cfg.labels, cfg.get_schema())
        return cls(encoder, alphabet, **cfg.decoder_kwargs())

    def decode(self, predictions) -> List[ScoredLabel]:
        """Decodes a ready-made ``(N, C)`` score matrix."""
        candidates = build_candidates(predictions, self.alphabet)
        return decode(candidates, self.schema, **self.decoder_bounds)

    def predict(self, tokens: Sequence[Token]) -> List[ScoredLabel]:
        """
        Labels a sentence.

        Args:
            tokens: The tokens of the sentence.

        Returns:
            One scored label per token, always valid for the schema.

        Raises:
            MalformedInputError: If the encoder output does not match the
                                 tokens or the alphabet.
        """
        if not tokens:
            return []
        predictions = self.encoder(tokens)
        if len(predictions) != len(tokens):
            raise MalformedInputError(f"The encoder returned {len(predictions)} score vectors for {len(tokens)} tokens.")
        return self.decode(predictions)

    def predict_as_segments(self, tokens: Sequence[Token]) -> List[AnnotatedSegment]:
        """Labels a sentence and merges the labels into entity segments."""
        return build_segments(self.predict(tokens), self.schema, tokens=tokens)


def label_sentences(
    sentences: Sequence[Sequence[Token]],
    labelers: Sequence[TokensLabeler],
    show_progress: bool = True,
) -> List[List[ScoredLabel]]:
    """
    Labels many sentences in parallel, one labeler per worker thread.

    Sentence ``i`` is handled by ``labelers[i % len(labelers)]``; each labeler
    processes its share sequentially, so no labeler is used by two threads at
    once. The output keeps the input order.

    Args:
        sentences: The sentences to label.
        labelers: The labelers, one per worker.
        show_progress: Whether to display a progress bar.

    Returns:
        The labels of each sentence.
    """
    if not labelers:
        raise ValueError("At least one labeler is required.")

    results: List[Optional[List[ScoredLabel]]] = [None] * len(sentences)
    workers = len(labelers)
    logger.info("Labeling %d sentences with %d worker(s)", len(sentences), workers)

    with tqdm(total=len(sentences), desc="Labeling", unit="sentence", disable=not show_progress) as progress:

        def run_share(worker: int) -> None:
            labeler = labelers[worker]
            for i in range(worker, len(sentences), workers):
                results[i] = labeler.predict(sentences[i])
                progress.update(1)

        if workers == 1:
            run_share(0)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(run_share, w) for w in range(workers)]
                for future in futures:
                    future.result()

    return [labels if labels is not None else [] for labels in results]
