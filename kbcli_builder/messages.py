"""
Render results handed to the UI layer.

A result is either an InteractiveMessage (a root menu, optional extra menus
and trailing sections) or a PlaintextMessage.
"""

from dataclasses import dataclass
from typing import Any

from .types import CommandPreview, FieldTag, Menu, widget_id

FILTER_BLOCK_ID = widget_id(FieldTag.FILTER)
FILTER_PLACEHOLDER = "Filter output"


@dataclass(frozen=True)
class PreviewSection:
    preview: CommandPreview

    def to_dict(self) -> dict[str, Any]:
        return {"type": "preview", "text": self.preview.text}


@dataclass(frozen=True)
class PlaintextSection:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "plaintext", "text": self.text}


@dataclass(frozen=True)
class FilterInputSection:
    """Free-text filter; lives in its own block so it is replaced separately."""

    block_id: str = FILTER_BLOCK_ID
    widget: str = FILTER_BLOCK_ID
    placeholder: str = FILTER_PLACEHOLDER
    initial: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "filter_input",
            "block_id": self.block_id,
            "id": self.widget,
            "placeholder": self.placeholder,
            "initial": self.initial,
        }


Section = PreviewSection | PlaintextSection | FilterInputSection


@dataclass(frozen=True)
class InteractiveMessage:
    block_id: str
    root_menu: Menu
    extra_menus: tuple[Menu, ...] = ()
    sections: tuple[Section, ...] = ()
    # False only for the first message of a session: it is sent as a new
    # message so a publicly visible one is never overwritten.
    replace_original: bool = True
    only_visible_for_you: bool = True

    @property
    def menus(self) -> tuple[Menu, ...]:
        return (self.root_menu, *self.extra_menus)

    @property
    def preview(self) -> CommandPreview | None:
        for section in self.sections:
            if isinstance(section, PreviewSection):
                return section.preview
        return None

    def menu(self, tag: FieldTag) -> Menu | None:
        return next((m for m in self.menus if m.tag is tag), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "block_id": self.block_id,
            "menus": [m.to_dict() for m in self.menus],
            "sections": [s.to_dict() for s in self.sections],
            "replace_original": self.replace_original,
            "only_visible_for_you": self.only_visible_for_you,
        }


@dataclass(frozen=True)
class PlaintextMessage:
    text: str
    only_visible_for_you: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "only_visible_for_you": self.only_visible_for_you}


Message = InteractiveMessage | PlaintextMessage


def preview_sections(
    preview: CommandPreview | None, filter_text: str = ""
) -> tuple[Section, ...]:
    """Command preview followed by the filter input."""
    if preview is None:
        return (FilterInputSection(initial=filter_text),)
    return (PreviewSection(preview), FilterInputSection(initial=filter_text))
