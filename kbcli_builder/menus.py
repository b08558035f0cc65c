"""
Menu assembly for the interactive builder.

Turns plain option lists into bounded Menu values. Choosing the initial
option is left to the caller, which must only pass one that is present.
"""

from collections.abc import Iterable, Sequence

from .errors import ConfigurationError
from .types import FieldTag, Menu, MenuOption

# Chat platforms reject dropdowns with more options than this.
DROPDOWN_ITEMS_LIMIT = 100

# Sentinel values contain characters that are invalid in Kubernetes object
# names, so they can never be mistaken for a real resource.
OVERFLOW_OPTION_VALUE = "@builder --overflow"
EMPTY_OPTION_VALUE = "@builder --empty"

PLACEHOLDERS = {
    FieldTag.COMMAND: "Select command",
    FieldTag.VERB: "Select verb",
    FieldTag.RESOURCE_NAME: "Select resource name",
    FieldTag.NAMESPACE: "Select namespace",
}

EMPTY_LABELS = {
    FieldTag.RESOURCE_NAME: "No resources found",
    FieldTag.NAMESPACE: "No namespaces found",
}


def option(value: str, label: str | None = None) -> MenuOption:
    return MenuOption(label=label if label is not None else value, value=value)


def build_menu(
    tag: FieldTag,
    items: Iterable[MenuOption | str],
    initial: str | MenuOption | None = None,
    empty_placeholder: bool = False,
) -> Menu | None:
    """Build a menu from options or plain values.

    Args:
        tag: Field the menu selects
        items: Options in display order; plain strings become label == value
        initial: Value (or option) to preselect; ignored when not in the menu
        empty_placeholder: Return an explicit empty menu instead of None when
            there are no items

    Returns:
        The menu, or None if there are no items and no placeholder was asked for
    """
    options = tuple(
        item if isinstance(item, MenuOption) else option(item) for item in items
    )
    if not options:
        return empty_menu(tag) if empty_placeholder else None

    selected: MenuOption | None = None
    if isinstance(initial, MenuOption):
        selected = initial if initial in options else None
    elif initial:
        selected = next(
            (opt for opt in options if opt.value == initial and not opt.synthetic),
            None,
        )

    return Menu(
        tag=tag,
        placeholder=PLACEHOLDERS.get(tag, ""),
        options=options,
        initial=selected,
    )


def required_menu(
    tag: FieldTag,
    items: Iterable[MenuOption | str],
    initial: str | MenuOption | None = None,
) -> Menu:
    """Like build_menu, for menus that must offer at least one option.

    Raises:
        ConfigurationError: If items is empty
    """
    menu = build_menu(tag, items, initial=initial)
    if menu is None:
        raise ConfigurationError(f"{tag.name.lower()} dropdown select cannot be empty")
    return menu


def empty_menu(tag: FieldTag) -> Menu:
    """Menu holding only the non-selectable "nothing here" sentinel."""
    return Menu(
        tag=tag,
        placeholder=PLACEHOLDERS.get(tag, ""),
        options=(
            MenuOption(
                label=EMPTY_LABELS.get(tag, "No items"),
                value=EMPTY_OPTION_VALUE,
                synthetic=True,
            ),
        ),
    )


def overflow_options(
    names: Sequence[str], limit: int = DROPDOWN_ITEMS_LIMIT
) -> list[MenuOption]:
    """Cap names at limit, adding one truncation-notice option if needed."""
    options = [option(name) for name in names[:limit]]
    hidden = len(names) - limit
    if hidden > 0:
        noun = "item" if hidden == 1 else "items"
        options.append(
            MenuOption(
                label=f"... and {hidden} more {noun} not shown",
                value=OVERFLOW_OPTION_VALUE,
                synthetic=True,
            )
        )
    return options


def non_empty_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]
