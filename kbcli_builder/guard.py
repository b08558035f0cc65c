"""
Command guard: decides which commands, verbs and resources the builder may
offer, based on the policy catalogue and the live cluster catalogue.
"""

from collections.abc import Iterable, Mapping

from .discovery import EMPTY_RESPONSE_MARKER, DiscoveryClient, GroupDiscoveryFailed
from .errors import DiscoveryFailed, ResourceNotFound
from .logutil import logger
from .policy import DEFAULT_POLICY, PolicyCatalogue
from .types import Command, ResourceDescriptor

ResourceCatalogue = Mapping[str, ResourceDescriptor]


def should_ignore_resource_list_error(err: Exception) -> bool:
    """True if every failed group merely answered with an empty resource list.

    Some cluster extensions register groups without resources; those must not
    block the whole catalogue.
    """
    if not isinstance(err, GroupDiscoveryFailed) or not err.groups:
        return False
    return all(EMPTY_RESPONSE_MARKER in str(sub) for sub in err.groups.values())


class CommandGuard:
    """Sole authority on what the interactive builder may offer."""

    def __init__(
        self,
        discovery: DiscoveryClient | None = None,
        policy: PolicyCatalogue = DEFAULT_POLICY,
    ) -> None:
        self.discovery = discovery
        self.policy = policy

    def filter_supported_cmds(self, cmds: Iterable[str]) -> list[str]:
        """Drop commands that cannot be built interactively, keeping order."""
        return [cmd for cmd in cmds if cmd not in self.policy.unsupported_cmds]

    def allowed_verbs_for_cmd(self, cmd: str) -> tuple[str, ...]:
        """Verbs for cmd; empty when the command takes no verb or is unknown."""
        return self.policy.cmd_verbs.get(cmd, ())

    def resource_descriptor_for_cmd(self, cmd: str) -> ResourceDescriptor | None:
        """The fixed resource kind a command operates on, if it has one."""
        return self.policy.cmd_resources.get(cmd)

    def resource_type_for_cmd(self, cmd: str) -> str:
        descriptor = self.resource_descriptor_for_cmd(cmd)
        return descriptor.name if descriptor else ""

    def resolve_command(
        self, cmd: str, catalogue: ResourceCatalogue | None = None
    ) -> Command:
        """Resolve namespacing for cmd, preferring the live catalogue."""
        descriptor = self.resource_descriptor_for_cmd(cmd)
        if descriptor is None:
            return Command(name=cmd, namespaced=False)
        if catalogue:
            try:
                live = self.resolve_resource_descriptor(descriptor.name, catalogue)
                return Command(name=cmd, namespaced=live.namespaced)
            except ResourceNotFound:
                logger.debug(
                    f"Resource {descriptor.name!r} not served by the cluster, "
                    "using static namespacing"
                )
        return Command(name=cmd, namespaced=descriptor.namespaced)

    def build_resource_catalogue(self) -> dict[str, ResourceDescriptor]:
        """Index all server resources by name.

        LIMITATION: the first occurrence of a name wins, e.g. "pods" in "v1"
        shadows "pods" in "metrics.k8s.io/v1beta1".

        Raises:
            DiscoveryFailed: If discovery is unavailable or fails for a reason
                other than groups with empty resource lists
        """
        if self.discovery is None:
            raise DiscoveryFailed("no discovery client configured")

        try:
            groups = self.discovery.server_preferred_resources()
        except GroupDiscoveryFailed as e:
            if not should_ignore_resource_list_error(e):
                raise DiscoveryFailed(
                    f"while getting resource list from K8s cluster: {e}"
                ) from e
            logger.warning(
                f"Ignoring error while getting resource list from K8s cluster: {e}"
            )
            groups = e.resource_groups
        except Exception as e:
            raise DiscoveryFailed(
                f"while getting resource list from K8s cluster: {e}"
            ) from e

        catalogue: dict[str, ResourceDescriptor] = {}
        for group in groups:
            for res in group.resources:
                if res.name in catalogue:
                    logger.debug(
                        f"Skipping resource with the same name {res.name!r} "
                        f"({group.group_version!r})..."
                    )
                    continue
                catalogue[res.name] = res
        return catalogue

    def resolve_resource_descriptor(
        self, name: str, catalogue: ResourceCatalogue
    ) -> ResourceDescriptor:
        """Look up name in a catalogue built by build_resource_catalogue.

        Raises:
            ResourceNotFound: If the catalogue has no such resource
        """
        try:
            return catalogue[name]
        except KeyError:
            raise ResourceNotFound(name) from None
