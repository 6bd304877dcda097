import numpy as np
import pytest

from seqlabel.alphabet import LabelAlphabet
from seqlabel.config import Config
from seqlabel.errors import MalformedInputError
from seqlabel.labeler import PrecomputedEncoder, TokensLabeler, annotate, label_sentences, tokens_from_forms
from seqlabel.schema import BIEOU
from seqlabel.types import Position

LABELS = ["O", "B-PER", "I-PER", "E-PER", "U-PER"]

#                       O     B-PER I-PER E-PER U-PER
OUTSIDE = [0.8, 0.05, 0.05, 0.05, 0.05]
BEGIN = [0.05, 0.8, 0.05, 0.05, 0.05]
END = [0.05, 0.05, 0.05, 0.8, 0.05]
UNIT = [0.05, 0.05, 0.05, 0.05, 0.8]


@pytest.fixture
def alphabet() -> LabelAlphabet:
    return LabelAlphabet.from_annotations(LABELS, BIEOU)


@pytest.fixture
def encoder() -> PrecomputedEncoder:
    enc = PrecomputedEncoder()
    enc.add(["Ada", "Lovelace", "wrote", "notes"], scores=[BEGIN, END, OUTSIDE, OUTSIDE])
    enc.add(["Babbage", "replied"], scores=[UNIT, OUTSIDE])
    return enc


def test_tokens_from_forms_positions() -> None:
    tokens = tokens_from_forms(["Ada", "Lovelace"])
    assert tokens[0].position == Position(index=0, start=0, end=2)
    assert tokens[1].position == Position(index=1, start=4, end=11)


def test_predict_and_segments(encoder: PrecomputedEncoder, alphabet: LabelAlphabet) -> None:
    labeler = TokensLabeler(encoder, alphabet)
    tokens = tokens_from_forms(["Ada", "Lovelace", "wrote", "notes"])

    labels = labeler.predict(tokens)
    assert [str(label.inner) for label in labels] == ["B-PER", "E-PER", "O", "O"]

    segments = labeler.predict_as_segments(tokens)
    assert len(segments) == 1
    assert (segments[0].start_char, segments[0].end_char) == (0, 11)
    assert segments[0].score == pytest.approx(0.8)

    rendered = [str(t) for t in annotate(tokens, labels)]
    assert rendered[0] == "Ada\tB-PER"


def test_predict_empty_sentence(encoder: PrecomputedEncoder, alphabet: LabelAlphabet) -> None:
    labeler = TokensLabeler(encoder, alphabet)
    assert labeler.predict([]) == []
    assert labeler.predict_as_segments([]) == []


def test_predict_rejects_mismatched_encoder_output(alphabet: LabelAlphabet) -> None:
    labeler = TokensLabeler(lambda tokens: np.full((1, len(LABELS)), 0.2), alphabet)
    with pytest.raises(MalformedInputError):
        labeler.predict(tokens_from_forms(["two", "tokens"]))


def test_predict_unknown_sentence(encoder: PrecomputedEncoder, alphabet: LabelAlphabet) -> None:
    labeler = TokensLabeler(encoder, alphabet)
    with pytest.raises(MalformedInputError):
        labeler.predict(tokens_from_forms(["never", "seen"]))


def test_precomputed_encoder_validation() -> None:
    enc = PrecomputedEncoder()
    with pytest.raises(ValueError):
        enc.add(["a"])
    with pytest.raises(ValueError):
        enc.add(["a"], scores=[[1.0]], logits=[[1.0]])
    with pytest.raises(MalformedInputError):
        enc.add(["a", "b"], scores=[[1.0, 0.0]])


def test_from_config_uses_config_alphabet_and_bounds(encoder: PrecomputedEncoder) -> None:
    cfg = Config(schema="bieou", max_beam_size=1, max_fork_size=2, max_iterations=-1, labels=tuple(LABELS))
    labeler = TokensLabeler.from_config(encoder, cfg)

    assert labeler.schema is BIEOU
    assert labeler.decoder_bounds == {"max_beam_size": 1, "max_fork_size": 2, "max_iterations": -1}
    assert len(labeler.alphabet) == len(LABELS)


def test_label_sentences_keeps_input_order(encoder: PrecomputedEncoder, alphabet: LabelAlphabet) -> None:
    long_sentence = tokens_from_forms(["Ada", "Lovelace", "wrote", "notes"])
    short_sentence = tokens_from_forms(["Babbage", "replied"])
    sentences = [long_sentence, short_sentence, [], short_sentence, long_sentence]
    labelers = [TokensLabeler(encoder, alphabet) for _ in range(2)]

    results = label_sentences(sentences, labelers, show_progress=False)

    rendered = [[str(label.inner) for label in labels] for labels in results]
    assert rendered == [
        ["B-PER", "E-PER", "O", "O"],
        ["U-PER", "O"],
        [],
        ["U-PER", "O"],
        ["B-PER", "E-PER", "O", "O"],
    ]


def test_label_sentences_needs_a_labeler() -> None:
    with pytest.raises(ValueError):
        label_sentences([], [], show_progress=False)
