import pytest

from app.services.errors import ModelOutputNotJSON
from app.services.json_repair import (
    STRATEGIES,
    balanced_spans,
    extract_json,
    extract_json_with_strategy,
    insert_missing_commas,
    remove_trailing_commas,
    strip_fences,
    trim_to_json_bounds,
)


def test_strategies_run_in_documented_order():
    assert [name for name, _ in STRATEGIES] == ["direct", "strip_fences", "repair_syntax", "bracket_match"]


def test_valid_json_is_returned_by_direct_strategy():
    value, strategy = extract_json_with_strategy('[{"name": "Data Analyst", "growth_rate": 12.5}]')

    assert strategy == "direct"
    assert value == [{"name": "Data Analyst", "growth_rate": 12.5}]


def test_fenced_output_with_language_tag_is_unwrapped():
    raw = '```json\n[{"question_text": "Why?", "question_type": "text", "category": "values"}]\n```'

    value, strategy = extract_json_with_strategy(raw)

    assert strategy == "strip_fences"
    assert value[0]["question_text"] == "Why?"


def test_trailing_commas_and_prose_are_repaired():
    value, strategy = extract_json_with_strategy('Here is your data: {"skills": ["SQL", "Python",],}')

    assert strategy == "repair_syntax"
    assert value == {"skills": ["SQL", "Python"]}


def test_missing_commas_between_objects_are_inserted():
    assert extract_json('[{"a": 1}\n{"b": 2}]') == [{"a": 1}, {"b": 2}]


def test_repairs_leave_string_contents_alone():
    assert extract_json('{"text": "keep ,] and }{ as typed",}') == {"text": "keep ,] and }{ as typed"}


def test_bracket_match_picks_a_balanced_span_out_of_prose():
    value, strategy = extract_json_with_strategy('Sure! {"a": 1} and also {"b": 2}')

    assert strategy == "bracket_match"
    assert value in ({"a": 1}, {"b": 2})


def test_unrecoverable_output_raises_with_raw_text():
    with pytest.raises(ModelOutputNotJSON) as excinfo:
        extract_json("I'm sorry, I cannot help with that.")

    assert excinfo.value.raw_text == "I'm sorry, I cannot help with that."
    assert excinfo.value.last_error is not None
    assert str(excinfo.value).startswith("Model did not return valid JSON")


def test_fenced_block_inside_prose_is_recovered():
    raw = (
        "Here is your answer:\n```json\n"
        '[{"question_text":"Q1","question_type":"text","category":"skills","is_required":true}]\n```'
    )

    assert extract_json(raw) == [
        {"question_text": "Q1", "question_type": "text", "category": "skills", "is_required": True}
    ]


def test_runaway_nesting_raises_not_json():
    with pytest.raises(ModelOutputNotJSON) as excinfo:
        extract_json("[" * 2000)

    assert isinstance(excinfo.value.last_error, RecursionError)


def test_empty_output_raises():
    with pytest.raises(ModelOutputNotJSON):
        extract_json("")


def test_strip_fences_only_removes_outer_markers():
    assert strip_fences("```\n{}\n```") == "{}"
    assert strip_fences("no fences") == "no fences"


def test_trim_to_json_bounds():
    assert trim_to_json_bounds('prefix {"a": [1]} suffix') == '{"a": [1]}'
    assert trim_to_json_bounds("nothing to trim") == "nothing to trim"


def test_comma_helpers():
    assert remove_trailing_commas('[1, 2, ]') == "[1, 2 ]"
    assert remove_trailing_commas('{"a": ",}"}') == '{"a": ",}"}'
    assert insert_missing_commas("[1][2]") == "[1],[2]"
    assert insert_missing_commas('{"a": "}{"}') == '{"a": "}{"}'


def test_balanced_spans_are_sorted_largest_first():
    text = 'x [1] y {"k": [2, 3]}'

    spans = balanced_spans(text)

    assert text[spans[0][0]:spans[0][1]] == '{"k": [2, 3]}'
    assert "[1]" in [text[start:end] for start, end in spans]


def test_balanced_spans_ignore_brackets_inside_strings():
    text = '{"note": "a ] inside"}'

    assert balanced_spans(text) == [(0, len(text))]
