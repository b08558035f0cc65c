"""
Interactive kbcli command builder.

Routes builder events to the selection renderer and turns the outcome into a
message for the UI layer.
"""

import uuid
from collections.abc import Callable, Mapping, Sequence

from kubernetes.config import ConfigException

from .config import Config
from .discovery import (
    KubernetesDiscovery,
    KubernetesNamespaceLister,
    NamespaceLister,
    load_api_client,
)
from .errors import CmdNotSupported
from .guard import CommandGuard
from .k8s_utils import BinaryRunner
from .logutil import logger
from .menus import required_menu
from .messages import (
    InteractiveMessage,
    Message,
    PlaintextMessage,
    PlaintextSection,
    preview_sections,
)
from .renderer import NeedsVerb, PassOutcome, RootOnly, SelectionRenderer
from .schema import BuilderConfig
from .state import ActionState, extract_state, parse_field_tag
from .types import (
    KBCLI_COMMAND_NAME,
    FieldTag,
    Menu,
    ResourceDescriptor,
    SelectionState,
)

INTERACTIVE_BUILDER_INDICATOR = "@builder"
KBCLI_MISSING_COMMAND_MSG = "Please specify the kbcli command"
UNSUPPORTED_COMMAND_MSG = (
    ":exclamation: Unfortunately, interactive command builder doesn't support "
    "{command!r} command yet.\nSupported commands: {cmds}"
)
NO_SUPPORTED_COMMANDS_MSG = (
    "Unfortunately none of configured {cmds!r} commands are supported by "
    "interactive command builder."
)

# Fields each event invalidates before rendering.
_CLEARED_ON = {
    FieldTag.COMMAND: ("verb", "resource_name", "namespace"),
    # A new verb may target a different resource.
    FieldTag.VERB: ("resource_name",),
    FieldTag.RESOURCE_NAME: (),
    # The resource may still exist in the new namespace, but we don't check.
    FieldTag.NAMESPACE: ("resource_name",),
    FieldTag.FILTER: (),
}


def should_handle(cmd: str) -> bool:
    """Return True if cmd is meant for the interactive builder."""
    cmd = cmd.strip()
    if cmd.startswith(KBCLI_COMMAND_NAME):
        cmd = cmd[len(KBCLI_COMMAND_NAME) :].strip()
    return cmd == "" or cmd.startswith(INTERACTIVE_BUILDER_INDICATOR)


def _new_block_id() -> str:
    return str(uuid.uuid4())


class KbcliBuilder:
    """Handles interactive kbcli command selection."""

    def __init__(
        self,
        renderer: SelectionRenderer,
        config: BuilderConfig,
        new_block_id: Callable[[], str] = _new_block_id,
    ) -> None:
        self.renderer = renderer
        self.guard = renderer.guard
        self.config = config
        self.new_block_id = new_block_id

    def handle(
        self,
        cmd: str,
        interactive: bool = True,
        action_state: ActionState | None = None,
    ) -> Message:
        """Build the next builder message for an event.

        Raises:
            ConfigurationError: If the command menu would be empty
        """
        if not interactive:
            logger.debug(
                "Interactive command builder is not supported, "
                "requesting a full kbcli command."
            )
            return PlaintextMessage(KBCLI_MISSING_COMMAND_MSG)

        all_cmds = self.guard.filter_supported_cmds(self.config.allowed.cmds)
        if not all_cmds:
            return PlaintextMessage(
                NO_SUPPORTED_COMMANDS_MSG.format(
                    cmds=",".join(self.config.allowed.cmds)
                )
            )

        args = cmd.split()
        if args and args[0] == KBCLI_COMMAND_NAME:
            args = args[1:]
        if len(args) < 2:
            return self.initial_message(all_cmds)

        state = extract_state(action_state)
        logger.debug(
            f"Extracted state: cmd={state.command!r} verb={state.verb!r} "
            f"resourceName={state.resource_name!r} namespace={state.namespace!r}"
        )

        try:
            tag = parse_field_tag(" ".join(args[:2]))
            if tag is None:
                raise CmdNotSupported(state.command or " ".join(args))
            return self.render(state.clear(*_CLEARED_ON[tag]), all_cmds)
        except CmdNotSupported as e:
            logger.info(f"Unsupported builder selection: {e}")
            text = UNSUPPORTED_COMMAND_MSG.format(
                command=e.command, cmds=", ".join(all_cmds)
            )
            return self.error_message(all_cmds, text)

    def initial_message(self, all_cmds: Sequence[str]) -> InteractiveMessage:
        """First message of a session, sent as a new message.

        The block id stays the same for the rest of the session; the UI keeps
        widget state per block, so changing it would lose earlier selections.
        """
        return InteractiveMessage(
            block_id=self.new_block_id(),
            root_menu=self._cmd_menu(all_cmds),
            replace_original=False,
        )

    def error_message(self, all_cmds: Sequence[str], text: str) -> InteractiveMessage:
        return InteractiveMessage(
            block_id=self.new_block_id(),
            root_menu=self._cmd_menu(all_cmds),
            sections=(PlaintextSection(text),),
        )

    def render(self, state: SelectionState, all_cmds: Sequence[str]) -> Message:
        outcome = self.renderer.render(state, all_cmds)
        return self.to_message(outcome)

    def to_message(self, outcome: PassOutcome) -> InteractiveMessage:
        if isinstance(outcome, NeedsVerb):
            sections = ()
        elif isinstance(outcome, RootOnly) and outcome.preview is None:
            sections = ()
        else:
            sections = preview_sections(outcome.preview, outcome.state.filter_text)
        return InteractiveMessage(
            block_id=outcome.state.menu_group_id,
            root_menu=outcome.cmd_menu,
            extra_menus=outcome.menus[1:],
            sections=sections,
        )

    def _cmd_menu(self, all_cmds: Sequence[str]) -> Menu:
        return required_menu(FieldTag.COMMAND, all_cmds)


def new_builder(
    config: Config,
    runner: BinaryRunner | None = None,
    namespace_lister: NamespaceLister | None = None,
    guard: CommandGuard | None = None,
    catalogue: Mapping[str, ResourceDescriptor] | None = None,
) -> KbcliBuilder:
    """Wire a builder from user configuration.

    Without a usable kubeconfig the builder still works, but namespaces are
    limited to the configured ones and the live catalogue is unavailable.
    """
    builder_config = BuilderConfig.from_config(config)
    kubeconfig = config.kubeconfig_path()

    if guard is None or namespace_lister is None:
        try:
            api_client = load_api_client(kubeconfig)
        except ConfigException as e:
            logger.warning(f"Kubernetes client unavailable: {e}")
            guard = guard or CommandGuard()
        else:
            guard = guard or CommandGuard(discovery=KubernetesDiscovery(api_client))
            namespace_lister = namespace_lister or KubernetesNamespaceLister(
                api_client
            )

    runner = runner or BinaryRunner(
        kubectl_command=config.get("core.kubectl_command", "kubectl"),
        kbcli_command=config.get("core.kbcli_command", "kbcli"),
        timeout=config.get("core.command_timeout_seconds"),
    )
    renderer = SelectionRenderer(
        guard=guard,
        runner=runner,
        namespace_lister=namespace_lister,
        allowed_namespaces=builder_config.allowed.namespaces,
        default_namespace=builder_config.default_namespace,
        kubeconfig=kubeconfig,
        catalogue=catalogue,
        binary=config.get("core.kbcli_command", "kbcli"),
    )
    return KbcliBuilder(renderer=renderer, config=builder_config)
