"""
Static policy tables for the interactive kbcli builder.

The catalogue answers three questions: which kbcli sub-commands cannot be
built interactively, which verbs a sub-command accepts, and which resource
kind (if any) a sub-command always targets.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .types import ResourceDescriptor


def _freeze_verbs(
    table: Mapping[str, Iterable[str]],
) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({cmd: tuple(verbs) for cmd, verbs in table.items()})


@dataclass(frozen=True)
class PolicyCatalogue:
    """Immutable command/verb/resource tables consulted by the CommandGuard."""

    unsupported_cmds: frozenset[str] = frozenset()
    cmd_resources: Mapping[str, ResourceDescriptor] = field(
        default_factory=lambda: MappingProxyType({})
    )
    cmd_verbs: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        unsupported_cmds: Iterable[str] = (),
        cmd_resources: Mapping[str, ResourceDescriptor] | None = None,
        cmd_verbs: Mapping[str, Iterable[str]] | None = None,
    ) -> "PolicyCatalogue":
        """Create a catalogue from plain collections, copying them read-only."""
        return cls(
            unsupported_cmds=frozenset(unsupported_cmds),
            cmd_resources=MappingProxyType(dict(cmd_resources or {})),
            cmd_verbs=_freeze_verbs(cmd_verbs or {}),
        )


DEFAULT_POLICY = PolicyCatalogue.build(
    # Not supported for interactive operations.
    unsupported_cmds=["playground", "bench"],
    cmd_resources={
        "cluster": ResourceDescriptor(name="cluster", namespaced=True),
    },
    cmd_verbs={
        "cluster": [
            # Basic cluster commands
            "create",
            "connect",
            "describe",
            "list",
            "list-instances",
            "list-components",
            "list-events",
            "list-accounts",
            "delete",
            # Cluster operation commands
            "update",
            "restart",
            "upgrade",
            "volume-expand",
            "vscale",
            "hscale",
            "describe-ops",
            "list-ops",
            "delete-ops",
            "configure",
            "expose",
            "describe-configure",
            "explain-configure",
            "diff-configure",
            "stop",
            "start",
            # Backup/restore commands
            "backup",
            "list-backups",
            "delete-backup",
            "restore",
            "list-restores",
            "delete-restore",
            # Troubleshooting commands
            "logs",
            "list-logs",
        ],
        "kubeblocks": [
            "install",
            "list-versions",
            "preflight",
            "status",
            "uninstall",
            "upgrade",
        ],
        "clusterdefinition": ["list"],
        "clusterversion": ["list"],
    },
)
