"""Tests for the kubernetes-backed discovery and namespace listing."""

from types import SimpleNamespace
from unittest.mock import MagicMock, Mock

import pytest
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from pytest_mock import MockerFixture

from kbcli_builder.discovery import (
    EMPTY_RESPONSE_MARKER,
    EmptyGroupResponse,
    GroupDiscoveryFailed,
    KubernetesDiscovery,
    KubernetesNamespaceLister,
    load_api_client,
)
from kbcli_builder.types import ResourceDescriptor


def _resource_list(
    group_version: str, *resources: tuple[str, bool]
) -> SimpleNamespace:
    return SimpleNamespace(
        group_version=group_version,
        resources=[
            SimpleNamespace(name=name, namespaced=namespaced)
            for name, namespaced in resources
        ],
    )


def _group(preferred: str | None, *versions: str) -> SimpleNamespace:
    return SimpleNamespace(
        preferred_version=(
            SimpleNamespace(group_version=preferred) if preferred else None
        ),
        versions=[SimpleNamespace(group_version=v) for v in versions],
    )


@pytest.fixture
def mock_apis(mocker: MockerFixture) -> tuple[Mock, Mock]:
    core_v1 = Mock()
    core_v1.get_api_resources.return_value = _resource_list(
        "v1", ("pods", True), ("namespaces", False)
    )
    apis = Mock()
    mocker.patch("kbcli_builder.discovery.client.CoreV1Api", return_value=core_v1)
    mocker.patch("kbcli_builder.discovery.client.ApisApi", return_value=apis)
    return core_v1, apis


def test_server_preferred_resources(mock_apis: tuple[Mock, Mock]) -> None:
    _, apis = mock_apis
    apis.get_api_versions.return_value = SimpleNamespace(
        groups=[
            _group("apps/v1", "apps/v1"),
            _group(None, "apps.kubeblocks.io/v1alpha1"),
        ]
    )
    api_client = MagicMock()
    api_client.call_api.side_effect = lambda path, *args, **kwargs: {
        "/apis/apps/v1": _resource_list("apps/v1", ("deployments", True)),
        "/apis/apps.kubeblocks.io/v1alpha1": _resource_list(
            "apps.kubeblocks.io/v1alpha1", ("clusters", True)
        ),
    }[path]

    groups = KubernetesDiscovery(api_client).server_preferred_resources()

    assert [g.group_version for g in groups] == [
        "v1",
        "apps/v1",
        "apps.kubeblocks.io/v1alpha1",
    ]
    assert groups[0].resources == (
        ResourceDescriptor("pods", True),
        ResourceDescriptor("namespaces", False),
    )
    assert groups[2].resources == (ResourceDescriptor("clusters", True),)


def test_empty_and_failing_groups_are_reported(mock_apis: tuple[Mock, Mock]) -> None:
    _, apis = mock_apis
    apis.get_api_versions.return_value = SimpleNamespace(
        groups=[
            _group("apps/v1"),
            _group("custom.io/v1"),
            _group("metrics.k8s.io/v1beta1"),
        ]
    )
    unavailable = ApiException(status=503, reason="Service Unavailable")

    def call_api(path: str, *args: object, **kwargs: object) -> SimpleNamespace:
        if path == "/apis/custom.io/v1":
            return _resource_list("custom.io/v1")
        if path == "/apis/metrics.k8s.io/v1beta1":
            raise unavailable
        return _resource_list("apps/v1", ("deployments", True))

    api_client = MagicMock()
    api_client.call_api.side_effect = call_api

    with pytest.raises(GroupDiscoveryFailed) as exc_info:
        KubernetesDiscovery(api_client).server_preferred_resources()

    err = exc_info.value
    assert set(err.groups) == {"custom.io/v1", "metrics.k8s.io/v1beta1"}
    assert isinstance(err.groups["custom.io/v1"], EmptyGroupResponse)
    assert err.groups["metrics.k8s.io/v1beta1"] is unavailable
    assert [g.group_version for g in err.resource_groups] == ["v1", "apps/v1"]


def test_empty_group_response_message() -> None:
    err = EmptyGroupResponse("custom.io/v1")
    assert str(err) == f"{EMPTY_RESPONSE_MARKER}: custom.io/v1"
    assert err.group_version == "custom.io/v1"


def test_namespace_lister_passes_limit(mocker: MockerFixture) -> None:
    core_v1 = Mock()
    core_v1.list_namespace.return_value = SimpleNamespace(
        items=[
            SimpleNamespace(metadata=SimpleNamespace(name="default")),
            SimpleNamespace(metadata=SimpleNamespace(name="demo")),
        ]
    )
    mocker.patch("kbcli_builder.discovery.client.CoreV1Api", return_value=core_v1)

    lister = KubernetesNamespaceLister(MagicMock())

    assert lister.list_namespaces(100) == ["default", "demo"]
    core_v1.list_namespace.assert_called_once_with(limit=100)


def test_load_api_client_uses_kubeconfig(mocker: MockerFixture) -> None:
    new_client = mocker.patch(
        "kbcli_builder.discovery.config.new_client_from_config"
    )
    incluster = mocker.patch("kbcli_builder.discovery.config.load_incluster_config")

    assert load_api_client("/tmp/kubeconfig") is new_client.return_value

    new_client.assert_called_once_with(config_file="/tmp/kubeconfig")
    incluster.assert_not_called()


def test_load_api_client_falls_back_to_default_kubeconfig(
    mocker: MockerFixture,
) -> None:
    mocker.patch(
        "kbcli_builder.discovery.config.load_incluster_config",
        side_effect=ConfigException("not in cluster"),
    )
    new_client = mocker.patch(
        "kbcli_builder.discovery.config.new_client_from_config"
    )

    assert load_api_client(None) is new_client.return_value
    new_client.assert_called_once_with()
