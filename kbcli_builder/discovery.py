"""
Cluster lookups used by the builder: server resource discovery and
namespace listing, backed by the official kubernetes client.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from .logutil import logger
from .types import ResourceDescriptor

EMPTY_RESPONSE_MARKER = "Got empty response for"


@dataclass(frozen=True)
class ResourceGroup:
    """Resources served under one preferred group version."""

    group_version: str
    resources: tuple[ResourceDescriptor, ...] = ()


class EmptyGroupResponse(Exception):
    """A group version answered discovery with no resources."""

    def __init__(self, group_version: str) -> None:
        super().__init__(f"{EMPTY_RESPONSE_MARKER}: {group_version}")
        self.group_version = group_version


class GroupDiscoveryFailed(Exception):
    """Discovery failed for some groups; the rest are still available."""

    def __init__(
        self,
        groups: dict[str, Exception],
        resource_groups: Sequence[ResourceGroup] = (),
    ) -> None:
        failed = ", ".join(f"{gv}: {err}" for gv, err in groups.items())
        super().__init__(
            f"unable to retrieve the complete list of server APIs: {failed}"
        )
        self.groups = groups
        self.resource_groups = list(resource_groups)


class DiscoveryClient(Protocol):
    def server_preferred_resources(self) -> list[ResourceGroup]: ...


class NamespaceLister(Protocol):
    def list_namespaces(self, limit: int) -> list[str]: ...


def load_api_client(kubeconfig: str | None = None) -> client.ApiClient:
    """Create an API client from in-cluster config or a kubeconfig file."""
    if kubeconfig:
        return config.new_client_from_config(config_file=kubeconfig)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config.")
        return client.ApiClient()
    except config.ConfigException:
        logger.debug("Not running in a cluster, using the default kubeconfig.")
        return config.new_client_from_config()


def _descriptors(resource_list: Any) -> tuple[ResourceDescriptor, ...]:
    return tuple(
        ResourceDescriptor(name=res.name, namespaced=bool(res.namespaced))
        for res in (getattr(resource_list, "resources", None) or [])
    )


class KubernetesDiscovery:
    """Lists the resources of every preferred API group version."""

    def __init__(self, api_client: client.ApiClient) -> None:
        self.api_client = api_client

    def _group_resources(self, group_version: str) -> Any:
        return self.api_client.call_api(
            f"/apis/{group_version}",
            "GET",
            response_type="V1APIResourceList",
            auth_settings=["BearerToken"],
            _return_http_data_only=True,
        )

    def _preferred_group_versions(self) -> list[str]:
        groups = client.ApisApi(self.api_client).get_api_versions().groups or []
        versions = []
        for group in groups:
            preferred = group.preferred_version or (group.versions or [None])[0]
            if preferred is not None:
                versions.append(preferred.group_version)
        return versions

    def server_preferred_resources(self) -> list[ResourceGroup]:
        """Resources for the core group and every preferred group version.

        Raises:
            GroupDiscoveryFailed: If any group could not be listed; carries the
                groups that were listed successfully
            ApiException: If the group list itself is unavailable
        """
        core_list = client.CoreV1Api(self.api_client).get_api_resources()
        result = [
            ResourceGroup(
                group_version=core_list.group_version or "v1",
                resources=_descriptors(core_list),
            )
        ]

        failures: dict[str, Exception] = {}
        for group_version in self._preferred_group_versions():
            try:
                resources = _descriptors(self._group_resources(group_version))
            except ApiException as e:
                failures[group_version] = e
                continue
            if not resources:
                failures[group_version] = EmptyGroupResponse(group_version)
                continue
            result.append(ResourceGroup(group_version, resources))

        if failures:
            raise GroupDiscoveryFailed(failures, result)
        return result


class KubernetesNamespaceLister:
    def __init__(self, api_client: client.ApiClient) -> None:
        self.core_v1 = client.CoreV1Api(api_client)

    def list_namespaces(self, limit: int) -> list[str]:
        namespaces = self.core_v1.list_namespace(limit=limit)
        return [item.metadata.name for item in namespaces.items]
