"""
Fixtures for pytest.
"""

import os
from collections.abc import Generator

import pytest
from click.testing import CliRunner

from kbcli_builder.builder import KbcliBuilder
from kbcli_builder.discovery import ResourceGroup
from kbcli_builder.guard import CommandGuard
from kbcli_builder.renderer import SelectionRenderer
from kbcli_builder.schema import AllowedResources, BuilderConfig
from kbcli_builder.types import ResourceDescriptor
from tests.fakes import FakeDiscovery, FakeNamespaceLister, FakeRunner


@pytest.fixture(autouse=True, scope="session")
def ensure_test_config_env(
    tmp_path_factory: pytest.TempPathFactory,
) -> Generator[None, None, None]:
    """Keep tests away from the user's real configuration."""
    config_dir = tmp_path_factory.mktemp("kbcli-builder-test-config")
    old_config_dir = os.environ.get("KBCLI_BUILDER_CONFIG_DIR")
    os.environ["KBCLI_BUILDER_CONFIG_DIR"] = str(config_dir)
    try:
        yield
    finally:
        if old_config_dir is None:
            os.environ.pop("KBCLI_BUILDER_CONFIG_DIR", None)
        else:
            os.environ["KBCLI_BUILDER_CONFIG_DIR"] = old_config_dir


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner(output="mysql-a\nmysql-b\n\npg-main\n")


@pytest.fixture
def fake_lister() -> FakeNamespaceLister:
    return FakeNamespaceLister(namespaces=["default", "kube-system", "demo"])


@pytest.fixture
def fake_discovery() -> FakeDiscovery:
    return FakeDiscovery(
        groups=[
            ResourceGroup(
                "v1",
                (
                    ResourceDescriptor("pods", True),
                    ResourceDescriptor("nodes", False),
                ),
            ),
            ResourceGroup(
                "metrics.k8s.io/v1beta1",
                (
                    ResourceDescriptor("pods", False),
                    ResourceDescriptor("nodes", False),
                ),
            ),
            ResourceGroup(
                "apps.kubeblocks.io/v1alpha1",
                (ResourceDescriptor("clusters", True),),
            ),
        ]
    )


@pytest.fixture
def guard(fake_discovery: FakeDiscovery) -> CommandGuard:
    return CommandGuard(discovery=fake_discovery)


@pytest.fixture
def renderer(
    guard: CommandGuard, fake_runner: FakeRunner, fake_lister: FakeNamespaceLister
) -> SelectionRenderer:
    return SelectionRenderer(
        guard=guard,
        runner=fake_runner,  # type: ignore[arg-type]
        namespace_lister=fake_lister,
        default_namespace="default",
        kubeconfig="/tmp/kubeconfig",
    )


@pytest.fixture
def builder_config() -> BuilderConfig:
    return BuilderConfig(
        allowed=AllowedResources(
            cmds=("cluster", "kubeblocks", "clusterdefinition", "playground")
        )
    )


@pytest.fixture
def builder(
    renderer: SelectionRenderer, builder_config: BuilderConfig
) -> KbcliBuilder:
    ids = iter(f"block-{i}" for i in range(1000))
    return KbcliBuilder(
        renderer=renderer, config=builder_config, new_block_id=lambda: next(ids)
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
