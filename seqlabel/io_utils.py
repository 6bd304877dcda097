"""Provides utility functions for loading predictions and saving labels.

Prediction files are the hand-off point with the external encoder. They are
JSON documents with the label alphabet under "labels" (optional when the
configuration provides it) and one object per sentence under "sentences":

    {"labels": ["O", "B-PER", "E-PER", "U-PER"],
     "sentences": [{"tokens": ["John", "Smith"],
                    "scores": [[0.1, 0.8, 0.05, 0.05], [0.1, 0.05, 0.8, 0.05]],
                    "gold": ["B-PER", "E-PER"]}]}

Each sentence carries either "scores" (probabilities) or "logits". The
optional "gold" labels feed the evaluator.
"""
from __future__ import annotations
from dataclasses import dataclass, field
import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .labeler import PrecomputedEncoder, tokens_from_forms
from .segments import build_segments
from .schema import Schema
from .types import ScoredLabel, Token

__all__ = ["SentencePrediction", "PredictionSet", "load_predictions", "build_encoder", "save_labeled"]


@dataclass
class SentencePrediction:
    """The encoder output for one sentence, as read from a prediction file."""
    tokens: List[str]
    scores: Optional[List[List[float]]] = None
    logits: Optional[List[List[float]]] = None
    gold: Optional[List[str]] = None


@dataclass
class PredictionSet:
    labels: List[str] = field(default_factory=list)
    sentences: List[SentencePrediction] = field(default_factory=list)


def _matrix(value: Any, key: str, i: int, path: str) -> Optional[List[List[float]]]:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(row, list) for row in value):
        raise TypeError(f"'{key}' of sentence {i} in {path} must be a list of lists of numbers.")
    return value


def load_predictions(path: str) -> PredictionSet:
    """
    Loads a prediction file.

    Args:
        path: The path to the input JSON file.

    Returns:
        The label alphabet and the per-sentence predictions.

    Raises:
        FileNotFoundError: If the file at the specified path does not exist.
        ValueError: If the file is not valid JSON.
        TypeError: If the JSON structure is incorrect (e.g., "sentences" key
                   is missing or not a list, or a sentence lacks its tokens or
                   its scores).
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Prediction file not found at: {path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Error decoding JSON from {path}: {e}")

    if not isinstance(data, dict):
        raise TypeError(f"Expected a JSON object at the root of {path}")

    items = data.get("sentences")
    if not isinstance(items, list):
        raise TypeError(f"Expected a 'sentences' key with a list of objects in {path}")

    labels = data.get("labels", [])
    if not isinstance(labels, list) or not all(isinstance(label, str) for label in labels):
        raise TypeError(f"'labels' in {path} must be a list of strings.")

    sentences = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise TypeError(f"Sentence item at index {i} in {path} is not a dictionary.")

        forms = item.get("tokens")
        if not isinstance(forms, list) or not all(isinstance(form, str) for form in forms):
            raise TypeError(f"Sentence {i} in {path} needs a 'tokens' list of strings.")

        scores = _matrix(item.get("scores"), "scores", i, path)
        logits = _matrix(item.get("logits"), "logits", i, path)
        if (scores is None) == (logits is None):
            raise TypeError(f"Sentence {i} in {path} needs exactly one of 'scores' or 'logits'.")

        gold = item.get("gold")
        if gold is not None and (not isinstance(gold, list) or not all(isinstance(g, str) for g in gold)):
            raise TypeError(f"'gold' of sentence {i} in {path} must be a list of strings.")

        sentences.append(SentencePrediction(tokens=forms, scores=scores, logits=logits, gold=gold))

    return PredictionSet(labels=labels, sentences=sentences)


def _sentence_record(tokens: Sequence[Token], labels: Sequence[ScoredLabel], schema: Schema) -> Dict[str, Any]:
    return {
        "tokens": [
            {"form": t.form, "label": str(label.inner), "score": round(label.score, 6)}
            for t, label in zip(tokens, labels)
        ],
        "segments": [s.to_dict() for s in build_segments(labels, schema, tokens=tokens)],
    }


def save_labeled(
    path: str,
    sentences: Sequence[Sequence[Token]],
    labels: Sequence[Sequence[ScoredLabel]],
    schema: Schema,
) -> None:
    """
    Saves labeled sentences, with their segments, to a JSON file.

    The root of the JSON is a dictionary with a single key, "sentences". The
    output is indented for human readability.
    """
    data = {"sentences": [_sentence_record(t, l, schema) for t, l in zip(sentences, labels)]}

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def build_encoder(predictions: PredictionSet) -> Tuple[PrecomputedEncoder, List[List[Token]]]:
    """Wraps the stored scores in an encoder and builds the tokens of each sentence."""
    encoder = PrecomputedEncoder()
    sentences = []
    for item in predictions.sentences:
        encoder.add(item.tokens, scores=item.scores, logits=item.logits)
        sentences.append(tokens_from_forms(item.tokens))
    return encoder, sentences
