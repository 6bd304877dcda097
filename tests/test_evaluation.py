import pytest

from seqlabel.alphabet import LabelAlphabet
from seqlabel.errors import MalformedInputError
from seqlabel.evaluation import Evaluator, MetricCounter
from seqlabel.labeler import PrecomputedEncoder, TokensLabeler, tokens_from_forms
from seqlabel.schema import IOB

LABELS = ["O", "B-PER", "I-PER", "B-LOC", "I-LOC"]
FORMS = ["John", "lives", "in", "Paris", "."]

#        O     B-PER I-PER B-LOC I-LOC
OUT = [0.8, 0.05, 0.05, 0.05, 0.05]
PER = [0.05, 0.8, 0.05, 0.05, 0.05]


@pytest.fixture
def labeler() -> TokensLabeler:
    encoder = PrecomputedEncoder()
    # Paris is predicted as a person.
    encoder.add(FORMS, scores=[PER, OUT, OUT, PER, OUT])
    alphabet = LabelAlphabet.from_annotations(LABELS, IOB)
    return TokensLabeler(encoder, alphabet)


def gold(*texts):
    return [IOB.parse(t) for t in texts]


def test_metric_counter() -> None:
    counter = MetricCounter(true_pos=1, false_pos=1, false_neg=0)
    assert counter.precision == pytest.approx(0.5)
    assert counter.recall == pytest.approx(1.0)
    assert counter.f1_score == pytest.approx(2 / 3)

    counter.reset()
    assert counter.f1_score == 0.0
    assert "precision 0.00 %" in str(counter)


def test_evaluate_counts_by_entity_type(labeler: TokensLabeler) -> None:
    examples = [(tokens_from_forms(FORMS), gold("B-PER", "O", "O", "B-LOC", "O"))]
    evaluator = Evaluator(labeler, examples, verbose=False)

    stats = evaluator.evaluate()

    per, loc = stats.metrics["PER"], stats.metrics["LOC"]
    assert (per.true_pos, per.false_pos, per.false_neg) == (1, 1, 0)
    assert (loc.true_pos, loc.false_pos, loc.false_neg) == (0, 0, 1)
    assert stats.accuracy == pytest.approx((2 / 3 + 0.0) / 2)
    assert evaluator.disagreements == [
        {"sentence": 0, "index": 3, "token": "Paris", "predicted": "B-PER", "gold": "B-LOC"}
    ]
    assert stats.to_dict()["labels"]["PER"]["f1"] == pytest.approx(0.6667)


def test_evaluate_resets_between_runs(labeler: TokensLabeler) -> None:
    examples = [(tokens_from_forms(FORMS), gold("B-PER", "O", "O", "B-LOC", "O"))]
    evaluator = Evaluator(labeler, examples, verbose=False)

    evaluator.evaluate()
    stats = evaluator.evaluate()

    assert stats.metrics["PER"].true_pos == 1
    assert len(evaluator.disagreements) == 1


def test_unknown_gold_type(labeler: TokensLabeler) -> None:
    examples = [(tokens_from_forms(FORMS), gold("B-PER", "O", "O", "B-ORG", "O"))]

    with pytest.raises(MalformedInputError):
        Evaluator(labeler, examples, verbose=False).evaluate()

    stats = Evaluator(labeler, examples, ignore_missing_labels=True, verbose=False).evaluate()
    assert stats.metrics["PER"].true_pos == 1
    assert "ORG" not in stats.metrics


def test_gold_length_must_match(labeler: TokensLabeler) -> None:
    examples = [(tokens_from_forms(FORMS), gold("B-PER"))]
    with pytest.raises(MalformedInputError):
        Evaluator(labeler, examples, verbose=False).evaluate()
