"""Fakes for the cluster collaborators so that no test needs a live cluster."""

from dataclasses import dataclass, field

from kbcli_builder.discovery import ResourceGroup
from kbcli_builder.types import Error, Result, Success


@dataclass
class FakeRunner:
    """Records command lines and replies with canned output."""

    output: str = ""
    error: str | None = None
    calls: list[tuple[str | None, str, str]] = field(default_factory=list)

    def run_kubectl_command(
        self, kubeconfig: str | None, default_namespace: str, cmd: str
    ) -> Result:
        self.calls.append((kubeconfig, default_namespace, cmd))
        if self.error is not None:
            return Error(error=self.error)
        return Success(data=self.output)

    run_kbcli_command = run_kubectl_command


@dataclass
class FakeNamespaceLister:
    namespaces: list[str] = field(default_factory=list)
    error: Exception | None = None
    limits: list[int] = field(default_factory=list)

    def list_namespaces(self, limit: int) -> list[str]:
        self.limits.append(limit)
        if self.error is not None:
            raise self.error
        return list(self.namespaces)


@dataclass
class FakeDiscovery:
    groups: list[ResourceGroup] = field(default_factory=list)
    error: Exception | None = None
    calls: int = 0

    def server_preferred_resources(self) -> list[ResourceGroup]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.groups)


