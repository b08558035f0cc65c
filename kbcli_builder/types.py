"""
Type definitions for kbcli_builder.

Contains the selection, menu and result types shared across the builder.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class FieldTag(str, Enum):
    """Logical field a builder widget represents.

    The value is the stable token embedded in every widget identifier.
    """

    COMMAND = "@builder --cmds"
    VERB = "@builder --verbs"
    RESOURCE_NAME = "@builder --resource-name"
    NAMESPACE = "@builder --namespace"
    FILTER = "@builder --filter-query"


@dataclass(frozen=True)
class ResourceDescriptor:
    """Namespacing metadata for one cluster resource kind."""

    # Always plural for server resources, e.g. "pods".
    name: str
    namespaced: bool


@dataclass(frozen=True)
class Command:
    """A kbcli sub-command with its resolved namespacing."""

    name: str
    namespaced: bool = False


@dataclass(frozen=True)
class SelectionState:
    """Snapshot of the user's current choices, rebuilt on every event."""

    command: str = ""
    verb: str = ""
    resource_name: str = ""
    namespace: str = ""
    filter_text: str = ""
    menu_group_id: str = ""

    def clear(self, *names: str) -> "SelectionState":
        """Return a copy with the given fields reset to empty."""
        return replace(self, **{name: "" for name in names})


@dataclass(frozen=True)
class MenuOption:
    label: str
    value: str
    # Synthetic options (truncation notice, empty placeholder) are never data.
    synthetic: bool = False


@dataclass(frozen=True)
class Menu:
    """A bounded, ordered dropdown."""

    tag: FieldTag
    placeholder: str
    options: tuple[MenuOption, ...] = ()
    initial: MenuOption | None = None

    @property
    def values(self) -> list[str]:
        """Values of the selectable (non-synthetic) options."""
        return [opt.value for opt in self.options if not opt.synthetic]

    def has_value(self, value: str) -> bool:
        return bool(value) and value in self.values

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": widget_id(self.tag),
            "placeholder": self.placeholder,
            "options": [
                {"label": opt.label, "value": opt.value} for opt in self.options
            ],
            "initial": self.initial.value if self.initial else None,
        }


@dataclass(frozen=True)
class CommandPreview:
    """Command line assembled from the current selection (without the binary)."""

    command_line: str
    binary: str = "kbcli"

    @property
    def text(self) -> str:
        return f"{self.binary} {self.command_line}"


# Structured result types for collaborator calls
@dataclass
class Success:
    message: str = ""
    data: Any | None = None


@dataclass
class Error:
    error: str
    exception: Exception | None = None
    details: dict[str, Any] = field(default_factory=dict)


# Union type for command results
Result = Success | Error


# Prefix of every widget identifier; stripped during state extraction.
KBCLI_COMMAND_NAME = "kbcli"


def widget_id(tag: FieldTag) -> str:
    """Return the widget identifier used for the given field."""
    return f"{KBCLI_COMMAND_NAME} {tag.value}"
