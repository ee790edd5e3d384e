import pytest


def test_plain_json():
    from jobmatch.app.services.json_repair import parse_model_json

    assert parse_model_json('{"full_name": "Asha"}') == {"full_name": "Asha"}


def test_fenced_json_with_newlines_in_strings():
    from jobmatch.app.services.json_repair import parse_model_json

    raw = '```json\n{\n  "full_name": "Asha\nRao",\n  "skills": ["python"]\n}\n```'
    out = parse_model_json(raw)
    assert out["full_name"] == "Asha Rao"
    assert out["skills"] == ["python"]


def test_tab_inside_string_is_escaped():
    from jobmatch.app.services.json_repair import parse_model_json, parse_with_escaped_controls

    raw = '{"full_name": "Asha\tRao"}'
    assert parse_with_escaped_controls(raw) == {"full_name": "Asha\tRao"}
    assert parse_model_json(raw)["full_name"] == "Asha\tRao"


def test_object_embedded_in_prose():
    from jobmatch.app.services.json_repair import parse_model_json

    raw = 'Sure! Here is the profile: {"full_name": "A {curly} name", "skills": []} Hope this helps.'
    assert parse_model_json(raw) == {"full_name": "A {curly} name", "skills": []}


def test_find_first_object_ignores_braces_in_strings():
    from jobmatch.app.services.json_repair import find_first_object

    assert find_first_object('x {"a": "}"} y {"b": 1}') == '{"a": "}"}'


@pytest.mark.parametrize("raw", ["", "   ", "not json at all", "[1, 2, 3]", '{"a": '])
def test_unrecoverable_inputs_raise_value_error(raw):
    from jobmatch.app.services.json_repair import parse_model_json

    with pytest.raises(ValueError):
        parse_model_json(raw)


def test_stages_are_ordered():
    from jobmatch.app.services import json_repair

    assert [s.__name__ for s in json_repair.REPAIR_STAGES] == [
        "parse_as_is",
        "parse_without_fences",
        "parse_with_escaped_controls",
        "parse_first_object",
    ]


def test_pretty_printed_fence_with_tab_inside_string():
    from jobmatch.app.services.json_repair import parse_model_json

    raw = '```json\n{\n  "full_name": "Asha\tRao",\n  "skills": ["python"]\n}\n```'
    out = parse_model_json(raw)
    assert out == {"full_name": "Asha\tRao", "skills": ["python"]}


def test_tab_indentation_is_left_alone_when_escaping():
    from jobmatch.app.services.json_repair import parse_with_escaped_controls

    raw = '{\n\t"full_name": "Asha\tRao",\n\t"skills": []\n}'
    assert parse_with_escaped_controls(raw) == {"full_name": "Asha\tRao", "skills": []}
