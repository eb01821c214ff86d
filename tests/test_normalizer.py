"""Normalization of decoded card objects."""

import pytest

from src.database.models import Competition
from src.scraper.normalizer import normalize_competition, normalize_spaces


def _comp(**fields):
    base = {"id": "c1", "title": "Kaggle Sprint"}
    base.update(fields)
    return {"competition": base}


def test_defaults_for_missing_optional_fields():
    comp = normalize_competition(_comp())

    assert comp == Competition(id="c1", title="Kaggle Sprint")
    assert comp.description == ""
    assert comp.prize == ""
    assert comp.time_left == ""
    assert comp.source == ""
    assert comp.participants == 0
    assert comp.tags == ()


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0),
        ("42", 42),
        ("many", 0),
        (17, 17),
        (12.9, 12),
        ("", 0),
    ],
)
def test_participants_coercion(raw, expected):
    fields = {} if raw is None else {"participants": raw}

    assert normalize_competition(_comp(**fields)).participants == expected


def test_missing_participants_key_is_zero():
    assert normalize_competition(_comp()).participants == 0


def test_text_fields_and_tags():
    comp = normalize_competition(_comp(
        description="  Build a\n\tmodel   fast  ",
        prize=10000,
        timeLeft="3 天",
        source="Kaggle",
        tags=["NLP", 3],
    ))

    assert comp.description == "Build a model fast"
    assert comp.prize == "10000"
    assert comp.time_left == "3 天"
    assert comp.source == "Kaggle"
    assert comp.tags == ("NLP", "3")


def test_non_list_tags_become_empty():
    assert normalize_competition(_comp(tags="NLP")).tags == ()
    assert normalize_competition(_comp(tags={"a": 1})).tags == ()


@pytest.mark.parametrize(
    "payload",
    [
        {"competition": {"title": "No id"}},
        {"competition": {"id": "c2"}},
        {"competition": {"id": "", "title": "Empty id"}},
        {"competition": {"id": "c3", "title": ""}},
        {"competition": None},
        {"other": {}},
        ["not", "a", "dict"],
    ],
)
def test_candidates_without_id_or_title_are_dropped(payload):
    assert normalize_competition(payload) is None


def test_normalization_is_idempotent():
    first = normalize_competition(_comp(
        description="a  b", participants="5", tags=["x"], prize="$1", timeLeft="1d", source="S",
    ))
    second = normalize_competition({"competition": first.to_dict()})

    assert second == first
    assert second.id == "c1"


def test_normalize_spaces():
    assert normalize_spaces("\n a 　 b\t") == "a b"
