"""Unit tests for prompt template rendering."""

from feedhub.services.prompt_renderer import (
    find_variables,
    missing_variables,
    render_prompt,
)


def test_render_prompt_replaces_every_occurrence() -> None:
    """All placeholders with the same name should be replaced."""
    prompt = render_prompt(
        "{{title}} / {{ title }} costs {{price}}",
        {"title": "Hat", "price": 9.0},
    )

    assert prompt == "Hat / Hat costs 9"


def test_render_prompt_supports_flattened_column_names() -> None:
    """Dotted and indexed column names should be valid variables."""
    prompt = render_prompt("Image: {{images[0].src}}", {"images[0].src": "a.jpg"})

    assert prompt == "Image: a.jpg"


def test_render_prompt_uses_empty_string_for_missing_columns() -> None:
    """Unknown columns should render as empty strings."""
    assert render_prompt("[{{brand}}]", {"title": "Hat"}) == "[]"


def test_find_variables_lists_unique_names_in_order() -> None:
    """Variables should be listed once in order of appearance."""
    assert find_variables("{{b}} {{a}} {{b}}") == ["b", "a"]


def test_missing_variables_reports_unknown_columns() -> None:
    """Variables absent from detected columns should be reported."""
    assert missing_variables("{{id}} {{brand}}", ["id", "title"]) == ["brand"]
