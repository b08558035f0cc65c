"""
Exceptions raised by the interactive kbcli command builder.
"""


class BuilderError(Exception):
    """Base exception for command builder errors."""

    pass


class ConfigurationError(BuilderError):
    """Raised when the builder is misconfigured, e.g. the root menu is empty."""

    pass


class CmdNotSupported(BuilderError):
    """Raised when a selected command is not handled by the interactive builder."""

    def __init__(self, command: str) -> None:
        super().__init__(f"command not supported: {command!r}")
        self.command = command


class ResourceNotFound(BuilderError):
    """Raised when a resource kind is not present in the server catalogue."""

    def __init__(self, name: str) -> None:
        super().__init__(f"resource not found: {name!r}")
        self.name = name


class DiscoveryFailed(BuilderError):
    """Raised when the cluster resource catalogue cannot be built."""

    pass
