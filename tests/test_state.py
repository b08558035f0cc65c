"""Tests for turning raw widget values into a SelectionState."""

import pytest

from kbcli_builder.state import ActionValue, extract_state, parse_field_tag
from kbcli_builder.types import FieldTag, SelectionState, widget_id


@pytest.mark.parametrize(
    "raw_id, expected",
    [
        ("kbcli @builder --cmds", FieldTag.COMMAND),
        ("@builder --verbs", FieldTag.VERB),
        ("  kbcli   @builder   --resource-name ", FieldTag.RESOURCE_NAME),
        ("kbcli @BUILDER --NAMESPACE", FieldTag.NAMESPACE),
        ("kbcli @builder --filter-query", FieldTag.FILTER),
        ("kbcli @builder --unknown", None),
        ("", None),
    ],
)
def test_parse_field_tag(raw_id: str, expected: FieldTag | None) -> None:
    assert parse_field_tag(raw_id) is expected


def test_extract_state_none_is_empty() -> None:
    assert extract_state(None) == SelectionState()
    assert extract_state({}) == SelectionState()


def test_extract_state_reads_all_fields() -> None:
    action_state = {
        "group-1": {
            widget_id(FieldTag.COMMAND): ActionValue(selected="cluster"),
            widget_id(FieldTag.VERB): ActionValue(selected="list"),
            widget_id(FieldTag.RESOURCE_NAME): ActionValue(selected="mysql-a"),
            widget_id(FieldTag.NAMESPACE): ActionValue(selected="demo"),
        },
        widget_id(FieldTag.FILTER): {
            widget_id(FieldTag.FILTER): ActionValue(text="Running"),
        },
    }

    state = extract_state(action_state)

    assert state == SelectionState(
        command="cluster",
        verb="list",
        resource_name="mysql-a",
        namespace="demo",
        filter_text="Running",
        menu_group_id="group-1",
    )


def test_filter_block_never_becomes_the_menu_group() -> None:
    action_state = {
        "group-1": {widget_id(FieldTag.COMMAND): ActionValue(selected="cluster")},
        widget_id(FieldTag.FILTER): {
            widget_id(FieldTag.FILTER): ActionValue(text="x")
        },
    }
    assert extract_state(action_state).menu_group_id == "group-1"


def test_extract_state_accepts_plain_values_and_skips_unknown_widgets() -> None:
    action_state = {
        "group-1": {
            "@builder --cmds": "kubeblocks",
            "@builder --verbs": None,
            "some-other-widget": "ignored",
        }
    }

    state = extract_state(action_state)

    assert state.command == "kubeblocks"
    assert state.verb == ""
    assert state.menu_group_id == "group-1"


def test_action_value_prefers_selection() -> None:
    assert ActionValue(selected="a", text="b").value == "a"
    assert ActionValue(text="b").value == "b"
    assert ActionValue().value == ""


def test_selection_state_clear() -> None:
    state = SelectionState(command="cluster", verb="list", resource_name="a")
    cleared = state.clear("verb", "resource_name")
    assert cleared == SelectionState(command="cluster")
    assert state.verb == "list"
