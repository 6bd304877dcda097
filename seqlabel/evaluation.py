"""Precision, recall and F1 accounting for predicted labels.

The evaluation is token level and compares entity *types* only: a token
counts as correct when the predicted and gold labels carry the same value,
whatever their span tags. Outside tokens never count as positives.
"""
from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from tqdm import tqdm

from .errors import MalformedInputError
from .labeler import TokensLabeler
from .types import Label, Token

logger = logging.getLogger(__name__)

__all__ = ["MetricCounter", "LabelsStatistics", "Evaluator"]


@dataclass
class MetricCounter:
    """True positive, false positive and false negative counts of one label."""
    true_pos: int = 0
    false_pos: int = 0
    false_neg: int = 0

    @property
    def precision(self) -> float:
        total = self.true_pos + self.false_pos
        return self.true_pos / total if total else 0.0

    @property
    def recall(self) -> float:
        total = self.true_pos + self.false_neg
        return self.true_pos / total if total else 0.0

    @property
    def f1_score(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if (p + r) else 0.0

    def reset(self) -> None:
        self.true_pos = 0
        self.false_pos = 0
        self.false_neg = 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "true_pos": self.true_pos,
            "false_pos": self.false_pos,
            "false_neg": self.false_neg,
            "precision": round(self.precision, 4),
            "recall": round(self.recall, 4),
            "f1": round(self.f1_score, 4),
        }

    def __str__(self) -> str:
        return (
            f"precision {100 * self.precision:.2f} % | recall {100 * self.recall:.2f} % "
            f"| f1 score {100 * self.f1_score:.2f} %"
        )


class LabelsStatistics:
    """
    The metric counters of every entity type.

    Attributes:
        metrics: One :class:`MetricCounter` per entity type.
        accuracy: Mean F1 score over the entity types, set by the evaluator.
    """

    def __init__(self, labels: Iterable[str]):
        self.metrics: Dict[str, MetricCounter] = {label: MetricCounter() for label in labels}
        self.accuracy = 0.0

    def reset(self) -> None:
        self.accuracy = 0.0
        for metric in self.metrics.values():
            metric.reset()

    def mean_f1(self) -> float:
        if not self.metrics:
            return 0.0
        return sum(m.f1_score for m in self.metrics.values()) / len(self.metrics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accuracy": round(self.accuracy, 4),
            "labels": {label: self.metrics[label].to_dict() for label in sorted(self.metrics)},
        }

    def __str__(self) -> str:
        return "\n".join(f"label: {label} | {self.metrics[label]}" for label in sorted(self.metrics))


class Evaluator:
    """
    Evaluates a labeler against gold-annotated sentences.

    Attributes:
        labeler: The labeler under evaluation.
        examples: Pairs of (tokens, gold labels).
        ignore_missing_labels: Skip tokens whose gold type is unknown to the
                               labeler's alphabet instead of failing.
        stats: The accumulated :class:`LabelsStatistics`.
        disagreements: One row per token where prediction and gold differ.
    """

    def __init__(
        self,
        labeler: TokensLabeler,
        examples: Sequence[Tuple[Sequence[Token], Sequence[Label]]],
        ignore_missing_labels: bool = False,
        verbose: bool = True,
    ):
        self.labeler = labeler
        self.examples = examples
        self.ignore_missing_labels = ignore_missing_labels
        self.verbose = verbose
        self.stats = LabelsStatistics(labeler.alphabet.entity_types())
        self.disagreements: List[Dict[str, Any]] = []

    def _count(self, predicted: Label, gold: Label) -> None:
        """Updates the counters with a single token prediction."""
        if gold.value and gold.value not in self.stats.metrics:
            if self.ignore_missing_labels:
                return
            raise MalformedInputError(f"Gold label '{gold}' is not part of the label alphabet.")

        if predicted.value == gold.value:
            if gold.value:
                self.stats.metrics[gold.value].true_pos += 1
            return

        if gold.value:
            self.stats.metrics[gold.value].false_neg += 1
        if predicted.value:
            self.stats.metrics[predicted.value].false_pos += 1

    def evaluate_example(self, index: int, tokens: Sequence[Token], gold: Sequence[Label]) -> None:
        if len(tokens) != len(gold):
            raise MalformedInputError(f"Sentence {index} has {len(tokens)} tokens but {len(gold)} gold labels.")

        predicted = self.labeler.predict(tokens)
        for token, pred, gold_label in zip(tokens, predicted, gold):
            self._count(pred.inner, gold_label)
            if pred.inner != gold_label:
                self.disagreements.append({
                    "sentence": index,
                    "index": token.position.index,
                    "token": token.form,
                    "predicted": str(pred.inner),
                    "gold": str(gold_label),
                })

    def evaluate(self) -> LabelsStatistics:
        """Runs the labeler over every example and returns the statistics."""
        self.stats.reset()
        self.disagreements = []

        for i, (tokens, gold) in enumerate(
            tqdm(self.examples, desc="Evaluating", unit="sentence", disable=not self.verbose)
        ):
            self.evaluate_example(i, tokens, gold)

        self.stats.accuracy = self.stats.mean_f1()
        logger.info("Evaluated %d sentences, mean F1 %.4f", len(self.examples), self.stats.accuracy)
        return self.stats
