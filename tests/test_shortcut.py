"""
Tests for the local widget fast path and prompt reformulation
"""
import pytest

from blinthe.widgets.shortcut import (
    extract_html_content,
    is_eligible_for_local_synthesis,
    reformulate,
    should_use_remote_service,
    synthesize_locally,
)


@pytest.mark.parametrize("prompt", ["h1 blinthe", "H1 test content", "heading: blinthe", "<h2>Hi</h2>"])
def test_simple_requests_stay_local(prompt):
    assert is_eligible_for_local_synthesis(prompt)
    assert should_use_remote_service(prompt) is False


@pytest.mark.parametrize(
    "prompt",
    [
        "create a dashboard showing today's news",
        "fetch data from api and display",
        "analyze and display metrics",
        "h1 search results for cats",
        "h1 " + "x" * 120,
    ],
)
def test_complex_requests_go_remote(prompt):
    assert should_use_remote_service(prompt) is True
    assert synthesize_locally(prompt) is None


def test_inline_html_is_local_even_when_long():
    prompt = "<p>" + "word " * 40 + "</p> please calculate nothing"

    assert is_eligible_for_local_synthesis(prompt)


def test_h1_widget():
    widget = synthesize_locally("h1 blinthe")

    assert widget is not None
    assert widget.title == "blinthe"
    assert widget.display_logic.type == "html"
    assert widget.display_logic.content == "<h1>blinthe</h1>"
    assert widget.description == "Displays: <h1>blinthe</h1>"


def test_h2_widget():
    widget = synthesize_locally("h2 test title")

    assert widget.title == "test title"
    assert widget.display_logic.content == "<h2>test title</h2>"


def test_explicit_html_is_kept_verbatim():
    widget = synthesize_locally('show <h3 class="big">Hello</h3> please')

    assert widget.display_logic.content == '<h3 class="big">Hello</h3>'
    assert widget.title == "Hello"


def test_generic_heading_request():
    assert extract_html_content("heading: blinthe") == "<h1>blinthe</h1>"
    assert extract_html_content("title Weekly plan") == "<h1>Weekly plan</h1>"


def test_fallback_wraps_cleaned_prompt():
    assert extract_html_content("h4 note") == "<h1>note</h1>"


def test_title_is_truncated():
    widget = synthesize_locally("h1 " + "a" * 80)

    assert len(widget.title) == 50


def test_reformulate_h1_request():
    reformulated = reformulate("h1 blinthe")

    assert "Vue 3" in reformulated
    assert "blinthe" in reformulated
    assert "Blinthe" in reformulated
    assert "<template>" in reformulated
    assert reformulated.endswith("No explanations, only valid .vue component code.")


def test_reformulate_h2_request():
    reformulated = reformulate("h2 test")

    assert "Vue 3" in reformulated
    assert "h2" in reformulated
    assert reformulated.endswith("<style> sections.")
    assert "No explanations" not in reformulated


def test_reformulate_ui_element_request():
    reformulated = reformulate("card display date")

    assert "Vue 3" in reformulated
    assert "Blinthe" in reformulated
    assert "card display date" in reformulated


def test_reformulate_generic_request():
    reformulated = reformulate("bitcoin price in euros")

    assert "bitcoin price in euros" in reformulated
    assert "<style>" in reformulated


@pytest.mark.parametrize(
    "prompt",
    ["How do I create a widget?", "weather today?", "show the weather", "Generate a clock"],
)
def test_reformulate_passes_instructions_through(prompt):
    assert reformulate(prompt) == prompt
