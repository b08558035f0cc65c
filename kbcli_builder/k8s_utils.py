import os
import shlex
import subprocess

import click
from rich.text import Text

from .logutil import logger
from .types import Error, Result, Success

KUBECTL_BINARY = "kubectl"
KBCLI_BINARY = "kbcli"

# Parses only the namespace flags; everything else passes through untouched.
_namespace_flags = click.Command(
    "extract-ns",
    params=[
        click.Option(["-n", "--namespace"], default=""),
        click.Option(["-A", "--all-namespaces"], is_flag=True, default=False),
    ],
    context_settings={
        "ignore_unknown_options": True,
        "allow_extra_args": True,
        "allow_interspersed_args": True,
        "help_option_names": [],
    },
)


def is_namespace_flag_set(cmd: str) -> bool:
    """Return True if cmd sets -n/--namespace or -A/--all-namespaces.

    Raises:
        click.UsageError: If a namespace flag is malformed, e.g. "-n" with no value
    """
    ctx = _namespace_flags.make_context("extract-ns", shlex.split(cmd))
    return bool(ctx.params["all_namespaces"] or ctx.params["namespace"])


def create_command_error(
    output: str, error_message: str, exception: Exception | None = None
) -> Error:
    """Error carrying both command output and the failure reason."""
    text = f"{output.strip()}\n{error_message.strip()}".strip()
    return Error(error=text, exception=exception)


class BinaryRunner:
    """Runs kubectl and kbcli command lines against the target cluster."""

    def __init__(
        self,
        kubectl_command: str = KUBECTL_BINARY,
        kbcli_command: str = KBCLI_BINARY,
        timeout: float | None = None,
    ) -> None:
        self.kubectl_command = kubectl_command
        self.kbcli_command = kbcli_command
        self.timeout = timeout

    def run_kubectl_command(
        self, kubeconfig: str | None, default_namespace: str, cmd: str
    ) -> Result:
        return self._run(self.kubectl_command, kubeconfig, default_namespace, cmd)

    def run_kbcli_command(
        self, kubeconfig: str | None, default_namespace: str, cmd: str
    ) -> Result:
        return self._run(self.kbcli_command, kubeconfig, default_namespace, cmd)

    def _run(
        self, binary: str, kubeconfig: str | None, default_namespace: str, cmd: str
    ) -> Result:
        try:
            has_namespace = is_namespace_flag_set(cmd)
            args = shlex.split(cmd)
        except (click.ClickException, ValueError) as e:
            return Error(error=f"Invalid command {cmd!r}: {e}", exception=e)

        if not has_namespace and default_namespace:
            # Prepend so trailing arguments such as "-- date" stay intact.
            args = ["-n", default_namespace, *args]

        env = dict(os.environ)
        if kubeconfig:
            env["KUBECONFIG"] = kubeconfig

        full_cmd = [binary, *args]
        logger.info(f"Running command: {' '.join(full_cmd)}")
        try:
            result = subprocess.run(
                full_cmd,
                capture_output=True,
                check=False,
                text=True,
                encoding="utf-8",
                env=env,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            return Error(error=f"{binary} not found in PATH", exception=e)
        except subprocess.TimeoutExpired as e:
            return Error(error=f"{binary} timed out after {e.timeout}s", exception=e)

        output = Text.from_ansi(result.stdout or "").plain
        if result.returncode != 0:
            stderr = Text.from_ansi(result.stderr or "").plain
            logger.debug(f"{binary} failed with exit code {result.returncode}")
            return create_command_error(
                output, stderr or f"Command failed with exit code {result.returncode}"
            )
        return Success(data=output)


def split_filter_flag(cmd: str) -> tuple[str, str]:
    """Separate the builder's --filter flag from the command line.

    Returns:
        The command without --filter, and the filter text (empty if unset)
    """
    kept: list[str] = []
    filter_text = ""
    args = iter(shlex.split(cmd))
    for arg in args:
        if arg.startswith("--filter="):
            filter_text = arg.split("=", 1)[1]
        elif arg == "--filter":
            filter_text = next(args, "")
        else:
            kept.append(arg)
    return shlex.join(kept), filter_text


def filter_output(output: str, filter_text: str) -> str:
    """Keep only the output lines containing filter_text."""
    if not filter_text:
        return output
    return "\n".join(line for line in output.splitlines() if filter_text in line)
