"""
Tests for recovering widget payloads from generated text
"""
import json

import pytest

from blinthe.errors import ExtractionFailure
from blinthe.widgets.extractor import (
    extract_widget_descriptor,
    find_json_candidates,
    strip_template,
)


def test_extracts_payload_after_style_block():
    text = (
        "<template><div>{{ value }}</div></template>"
        "<script setup>const value = 1</script>"
        "<style>.x { color: red; }</style>"
        '{"title":"CPU","displayLogic":{"type":"number"}}'
    )

    descriptor = extract_widget_descriptor(text)

    assert descriptor.to_wire() == {
        "title": "CPU",
        "description": "",
        "displayLogic": {"type": "number"},
    }


def test_prose_without_braces_fails_with_zero_candidates():
    with pytest.raises(ExtractionFailure) as exc_info:
        extract_widget_descriptor("Sorry, I cannot help with that request.")

    assert exc_info.value.candidate_count == 0
    assert "Found 0 JSON block(s)" in str(exc_info.value)
    assert "Sorry, I cannot help" in exc_info.value.preview


def test_failure_preview_is_bounded():
    text = "x" * 1000 + '{"description": "no title"}'

    with pytest.raises(ExtractionFailure) as exc_info:
        extract_widget_descriptor(text)

    failure = exc_info.value
    assert failure.candidate_count == 1
    assert len(failure.preview) == 300
    assert failure.truncated
    assert str(failure).endswith("...")


def test_preview_uses_text_after_template():
    text = "<style>.a{}</style>just prose"

    with pytest.raises(ExtractionFailure) as exc_info:
        extract_widget_descriptor(text)

    assert exc_info.value.preview == "just prose"


def test_last_valid_candidate_wins():
    text = (
        'First draft: {"title": "Old", "displayLogic": {"type": "text"}}\n'
        'Final: {"title": "New", "description": "Latest", "displayLogic": {"type": "list"}}'
    )

    descriptor = extract_widget_descriptor(text)

    assert descriptor.title == "New"
    assert descriptor.description == "Latest"
    assert descriptor.display_logic.type == "list"


def test_candidate_without_title_is_skipped():
    text = (
        '{"title": "Weather", "displayLogic": {"type": "text"}}\n'
        'Notes: {"description": "missing title"}'
    )

    assert extract_widget_descriptor(text).title == "Weather"


@pytest.mark.parametrize(
    "payload",
    [
        {"title": ""},
        {"title": 42},
        {"title": "T", "displayLogic": "text"},
        {"title": "T", "displayLogic": {"type": 3}},
        {"title": "T", "displayLogic": {"type": None}},
    ],
)
def test_invalid_payloads_are_rejected(payload):
    with pytest.raises(ExtractionFailure) as exc_info:
        extract_widget_descriptor(json.dumps(payload))

    assert exc_info.value.candidate_count == 1


def test_defaults_for_missing_fields():
    descriptor = extract_widget_descriptor('Here you go: {"title": "Clock"}')

    assert descriptor.description == ""
    assert descriptor.display_logic.type == "text"
    assert descriptor.refresh_interval is None


@pytest.mark.parametrize("description,expected", [
    (None, ""),
    (False, ""),
    (0, ""),
    ([], ""),
    (42, "42"),
])
def test_description_is_coerced_to_text(description, expected):
    text = json.dumps({"title": "Clock", "description": description})

    assert extract_widget_descriptor(text).description == expected


def test_null_display_logic_defaults_to_text():
    descriptor = extract_widget_descriptor('{"title": "Clock", "displayLogic": null}')

    assert descriptor.display_logic.type == "text"


def test_type_specific_fields_are_kept():
    text = json.dumps({
        "title": "Sales",
        "displayLogic": {"type": "chart", "chartType": "bar", "format": "currency"},
        "refreshInterval": 60000,
    })

    descriptor = extract_widget_descriptor(text)

    assert descriptor.refresh_interval == 60000
    assert descriptor.to_wire()["displayLogic"] == {
        "type": "chart",
        "chartType": "bar",
        "format": "currency",
    }


def test_markdown_fenced_payload():
    text = 'Sure!\n```json\n{"title": "News", "displayLogic": {"type": "list"}}\n```\nEnjoy.'

    assert extract_widget_descriptor(text).title == "News"


def test_invalid_json_candidate_is_skipped():
    text = '{"title": "Good"} then {title: unquoted}'

    assert extract_widget_descriptor(text).title == "Good"


def _deeply_nested_payload(depth: int = 5000) -> str:
    return (
        '{"title": "T", "displayLogic": {"type": "text", "data": '
        + '{"a": ' * depth + "1" + "}" * depth
        + "}}"
    )


def test_too_deeply_nested_candidate_fails_with_diagnostics():
    with pytest.raises(ExtractionFailure) as exc_info:
        extract_widget_descriptor("prose " + _deeply_nested_payload())

    assert exc_info.value.candidate_count == 1
    assert exc_info.value.truncated


def test_too_deeply_nested_candidate_is_skipped():
    text = '{"title": "Good"} and then ' + _deeply_nested_payload()

    assert extract_widget_descriptor(text).title == "Good"


def test_nan_is_not_json():
    with pytest.raises(ExtractionFailure):
        extract_widget_descriptor('{"title": "T", "refreshInterval": NaN}')


def test_strip_template_only_after_position_zero():
    assert strip_template("</style>{}") == "</style>{}"
    assert strip_template("<style></style>rest") == "rest"
    assert strip_template("<style>a</style>b<style>c</style>tail") == "tail"


def test_find_candidates_tracks_nesting():
    text = 'a {"x": {"y": 1}} b {"z": 2} c'

    assert find_json_candidates(text) == ['{"x": {"y": 1}}', '{"z": 2}']


def test_find_candidates_ignores_unbalanced_closing_brace():
    assert find_json_candidates("} {}") == []


def test_brace_inside_string_desynchronizes_scan():
    # The scan counts braces literally, even inside JSON strings
    text = '{"title": "Curly } brace", "displayLogic": {"type": "text"}}'

    assert find_json_candidates(text) == ['{"title": "Curly }', '{"type": "text"}']
    with pytest.raises(ExtractionFailure):
        extract_widget_descriptor(text)
