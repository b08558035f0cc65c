"""
Cascading selection renderer.

Each pass derives the builder's step from which SelectionState fields are set
and still valid, then returns one of four outcomes:

    RootOnly       the command takes no verb; only the command menu is shown
    NeedsVerb      a verb has to be (re)selected
    NeedsResource  the verb is valid but the command has no fixed resource kind
    Complete       all four menus and the full command preview

A pass keeps no state between calls: the same selection and the same cluster
answers always give the same outcome.
"""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from .discovery import NamespaceLister
from .errors import CmdNotSupported
from .guard import CommandGuard
from .k8s_utils import KBCLI_BINARY, BinaryRunner
from .logutil import logger
from .menus import (
    DROPDOWN_ITEMS_LIMIT,
    build_menu,
    empty_menu,
    non_empty_lines,
    option,
    overflow_options,
    required_menu,
)
from .types import (
    Command,
    CommandPreview,
    Error,
    FieldTag,
    Menu,
    MenuOption,
    ResourceDescriptor,
    SelectionState,
)

DEFAULT_NAMESPACE_SUFFIX = " (namespace)"

RESOURCE_NAMES_QUERY = (
    "get {kind} --ignore-not-found=true -o go-template="
    """'{{{{range .items}}}}{{{{.metadata.name}}}}{{{{"\\n"}}}}{{{{end}}}}'"""
)


@dataclass(frozen=True)
class RootOnly:
    state: SelectionState
    cmd_menu: Menu
    preview: CommandPreview | None

    @property
    def menus(self) -> tuple[Menu, ...]:
        return (self.cmd_menu,)


@dataclass(frozen=True)
class NeedsVerb:
    state: SelectionState
    cmd_menu: Menu
    verb_menu: Menu

    @property
    def menus(self) -> tuple[Menu, ...]:
        return (self.cmd_menu, self.verb_menu)


@dataclass(frozen=True)
class NeedsResource:
    state: SelectionState
    cmd_menu: Menu
    verb_menu: Menu
    preview: CommandPreview

    @property
    def menus(self) -> tuple[Menu, ...]:
        return (self.cmd_menu, self.verb_menu)


@dataclass(frozen=True)
class Complete:
    state: SelectionState
    cmd_menu: Menu
    verb_menu: Menu
    resource_menu: Menu
    namespace_menu: Menu
    preview: CommandPreview

    @property
    def menus(self) -> tuple[Menu, ...]:
        return (
            self.cmd_menu,
            self.verb_menu,
            self.resource_menu,
            self.namespace_menu,
        )


PassOutcome = RootOnly | NeedsVerb | NeedsResource | Complete


def build_command_preview(
    state: SelectionState, command: Command, binary: str = KBCLI_BINARY
) -> CommandPreview:
    """Assemble `command verb [name] [-n namespace] [--filter="text"]`."""
    parts = [state.command]
    if state.verb:
        parts.append(state.verb)
    if state.resource_name:
        parts.append(state.resource_name)
    if command.namespaced and state.namespace:
        parts.extend(["-n", state.namespace])
    if state.filter_text:
        parts.append(f"--filter={json.dumps(state.filter_text, ensure_ascii=False)}")
    return CommandPreview(command_line=" ".join(parts), binary=binary)


def with_default_suffix(namespace: str) -> MenuOption:
    """Option for namespace; "default" gets a display-only suffix."""
    label = namespace
    if namespace == "default":
        label += DEFAULT_NAMESPACE_SUFFIX
    return option(namespace, label)


class SelectionRenderer:
    """Computes the menus and preview for one selection."""

    def __init__(
        self,
        guard: CommandGuard,
        runner: BinaryRunner,
        namespace_lister: NamespaceLister | None = None,
        allowed_namespaces: Sequence[str] = (),
        default_namespace: str = "default",
        kubeconfig: str | None = None,
        catalogue: Mapping[str, ResourceDescriptor] | None = None,
        binary: str = KBCLI_BINARY,
    ) -> None:
        self.guard = guard
        self.runner = runner
        self.namespace_lister = namespace_lister
        self.allowed_namespaces = tuple(allowed_namespaces)
        self.default_namespace = default_namespace
        self.kubeconfig = kubeconfig
        self.catalogue = catalogue
        self.binary = binary

    def render(
        self, state: SelectionState, allowed_cmds: Sequence[str]
    ) -> PassOutcome:
        """Run one pass of the cascade.

        Raises:
            ConfigurationError: If there are no allowed commands
            CmdNotSupported: If the selected command is not an allowed one
        """
        cmd_menu = required_menu(FieldTag.COMMAND, allowed_cmds, initial=state.command)
        if state.command and not cmd_menu.has_value(state.command):
            raise CmdNotSupported(state.command)

        if not state.namespace and self.default_namespace:
            state = replace(state, namespace=self.default_namespace)

        command = self.guard.resolve_command(state.command, self.catalogue)

        # 1. Commands without verbs carry no verb, resource or namespace.
        verbs = self.guard.allowed_verbs_for_cmd(state.command)
        if not verbs:
            state = state.clear("verb", "resource_name", "namespace")
            preview = self._preview(state, command) if state.command else None
            return RootOnly(state=state, cmd_menu=cmd_menu, preview=preview)

        # 2. The verb is unknown for this command: ask for it again. Resource
        #    names and namespaces can't be known without it.
        verb_menu = required_menu(FieldTag.VERB, verbs, initial=state.verb)
        if not verb_menu.has_value(state.verb):
            state = state.clear("verb", "resource_name", "namespace")
            return NeedsVerb(state=state, cmd_menu=cmd_menu, verb_menu=verb_menu)

        # 3. The verb is valid; the command may have no resource kind at all.
        resource_menu = self._resource_names_menu(state)
        if resource_menu is None:
            state = state.clear("resource_name", "namespace")
            return NeedsResource(
                state=state,
                cmd_menu=cmd_menu,
                verb_menu=verb_menu,
                preview=self._preview(state, command),
            )

        namespace_menu = self._namespace_menu(state)

        # 4. Drop selections that are no longer offered.
        if not resource_menu.has_value(state.resource_name):
            state = state.clear("resource_name")
        if not namespace_menu.has_value(state.namespace):
            state = state.clear("namespace")

        return Complete(
            state=state,
            cmd_menu=cmd_menu,
            verb_menu=verb_menu,
            resource_menu=resource_menu,
            namespace_menu=namespace_menu,
            preview=self._preview(state, command),
        )

    def _preview(self, state: SelectionState, command: Command) -> CommandPreview:
        return build_command_preview(state, command, binary=self.binary)

    def _resource_names_menu(self, state: SelectionState) -> Menu | None:
        if not state.verb:
            return empty_menu(FieldTag.RESOURCE_NAME)

        kind = self.guard.resource_type_for_cmd(state.command)
        if not kind:
            return None

        query = RESOURCE_NAMES_QUERY.format(kind=kind)
        if state.namespace:
            query = f"{query} -n {state.namespace}"
        logger.info(f"Listing resource names with {query!r}")

        result = self.runner.run_kubectl_command(
            self.kubeconfig, self.default_namespace, query
        )
        if isinstance(result, Error):
            logger.warning(
                f"Cannot fetch resource names, returning empty dropdown: {result.error}"
            )
            return empty_menu(FieldTag.RESOURCE_NAME)

        names = non_empty_lines(result.data or "")
        return build_menu(
            FieldTag.RESOURCE_NAME,
            overflow_options(names),
            initial=state.resource_name,
            empty_placeholder=True,
        )

    def _namespace_menu(self, state: SelectionState) -> Menu:
        initial = with_default_suffix(state.namespace) if state.namespace else None
        head = [initial] if initial else []
        rest = [n for n in self._additional_namespaces() if n != state.namespace]
        options = head + overflow_options(rest, limit=DROPDOWN_ITEMS_LIMIT - len(head))
        menu = build_menu(
            FieldTag.NAMESPACE, options, initial=initial, empty_placeholder=True
        )
        return menu or empty_menu(FieldTag.NAMESPACE)

    def _additional_namespaces(self) -> Sequence[str]:
        if self.allowed_namespaces:
            return self.allowed_namespaces
        if self.namespace_lister is None:
            return ()
        try:
            return self.namespace_lister.list_namespaces(DROPDOWN_ITEMS_LIMIT)
        except Exception as e:
            logger.warning(
                "Cannot fetch Kubernetes namespaces, offering only the current "
                f"one: {e}"
            )
            return ()
