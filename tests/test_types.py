from dataclasses import fields

from seqlabel.types import AnnotatedToken, BIEOUTag, IOBTag, Label, Position, Scored, Token, labels_of


def test_label_rendering() -> None:
    assert str(Label(IOBTag.Beginning, "PER")) == "B-PER"
    assert str(Label(BIEOUTag.Outside)) == "O"
    assert str(Scored(inner=Label(BIEOUTag.Unit, "LOC"), score=0.5)) == "U-LOC (0.5000)"


def test_value_objects_carry_only_their_fields() -> None:
    assert [f.name for f in fields(Label)] == ["tag", "value"]
    assert [f.name for f in fields(Token)] == ["form", "position"]


def test_scored_label_exposes_tag_and_value() -> None:
    scored = Scored(inner=Label(IOBTag.Inside, "ORG"), score=0.25)
    assert scored.tag is IOBTag.Inside
    assert scored.value == "ORG"
    assert labels_of([scored]) == [Label(IOBTag.Inside, "ORG")]


def test_annotated_token_renders_form_and_label() -> None:
    token = AnnotatedToken(
        form="Rome",
        position=Position(index=0, start=0, end=3),
        label=Scored(inner=Label(IOBTag.Beginning, "LOC"), score=0.9),
    )
    assert str(token) == "Rome\tB-LOC"
