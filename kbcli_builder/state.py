"""
Extraction of the builder selection from raw widget values.

Inbound events carry a mapping of block id -> widget id -> value. Each widget
id embeds a FieldTag token (optionally preceded by the "kbcli" command name),
which tells us which SelectionState field the value belongs to.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from .logutil import logger
from .types import KBCLI_COMMAND_NAME, FieldTag, SelectionState

_FIELD_BY_TAG = {
    FieldTag.COMMAND: "command",
    FieldTag.VERB: "verb",
    FieldTag.RESOURCE_NAME: "resource_name",
    FieldTag.NAMESPACE: "namespace",
    FieldTag.FILTER: "filter_text",
}


@dataclass(frozen=True)
class ActionValue:
    """Raw value of one widget: a selected option or typed text."""

    selected: str | None = None
    text: str | None = None

    @property
    def value(self) -> str:
        if self.selected is not None:
            return self.selected
        return self.text or ""


ActionState = Mapping[str, Mapping[str, ActionValue | str | None]]


def parse_field_tag(raw_id: str) -> FieldTag | None:
    """Map a widget identifier (or event command) to its field tag."""
    token = raw_id.strip()
    if token.startswith(KBCLI_COMMAND_NAME):
        token = token[len(KBCLI_COMMAND_NAME) :].strip()
    token = " ".join(token.lower().split())
    try:
        return FieldTag(token)
    except ValueError:
        return None


def _raw_value(raw: ActionValue | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, ActionValue):
        return raw.value
    return str(raw)


def extract_state(action_state: ActionState | None) -> SelectionState:
    """Build a SelectionState from an event's widget values.

    A missing state yields an empty selection. The menu group id kept is the
    block holding the dropdowns, never the filter input's own block.
    """
    if not action_state:
        return SelectionState()

    fields: dict[str, str] = {}
    for block_id, widgets in action_state.items():
        if FieldTag.FILTER.value not in block_id:
            fields["menu_group_id"] = block_id
        for raw_id, raw in (widgets or {}).items():
            tag = parse_field_tag(raw_id)
            if tag is None:
                logger.debug(f"Ignoring unknown widget {raw_id!r}")
                continue
            fields[_FIELD_BY_TAG[tag]] = _raw_value(raw)

    return SelectionState(**fields)
