"""Configuration management for kbcli-builder"""

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR_ENV = "KBCLI_BUILDER_CONFIG_DIR"

DEFAULT_CONFIG: dict[str, Any] = {
    "core": {
        "kubeconfig": None,  # Falls back to $KUBECONFIG when None
        "kubectl_command": "kubectl",
        "kbcli_command": "kbcli",
        "default_namespace": "default",
        "command_timeout_seconds": None,  # No timeout when None
    },
    "builder": {
        "allowed": {
            # At least one sub-command must be allowed.
            "cmds": [
                "cluster",
                "kubeblocks",
                "clusterdefinition",
                "clusterversion",
                "playground",
            ],
            # Empty list means all namespaces visible in the cluster.
            "namespaces": [],
        },
    },
    "system": {
        "log_level": "WARNING",
    },
}


@dataclass(frozen=True)
class ConfigKey:
    """Type and accepted values of one settable key."""

    kind: type
    nullable: bool = False
    choices: tuple[str, ...] = ()


CONFIG_KEYS: dict[str, ConfigKey] = {
    "core.kubeconfig": ConfigKey(str, nullable=True),
    "core.kubectl_command": ConfigKey(str),
    "core.kbcli_command": ConfigKey(str),
    "core.default_namespace": ConfigKey(str),
    "core.command_timeout_seconds": ConfigKey(int, nullable=True),
    "builder.allowed.cmds": ConfigKey(list),
    "builder.allowed.namespaces": ConfigKey(list),
    "system.log_level": ConfigKey(
        str, choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    ),
}

LOG_LEVELS = CONFIG_KEYS["system.log_level"].choices


def _lookup(data: dict[str, Any], path: str) -> Any:
    """Follow a dotted path through nested dicts.

    Raises:
        KeyError: If any part of the path is missing
    """
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(path)
        node = node[part]
    return node


def _assign(data: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    node = data
    for part in parents:
        node = node.setdefault(part, {})
        if not isinstance(node, dict):
            raise ValueError(f"Cannot set {path}: {part} is not a section")
    node[leaf] = value


def _merge(base: dict[str, Any], updates: dict[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _merge(base[key], value)
        else:
            base[key] = value


def _key_for(path: str) -> ConfigKey:
    try:
        return CONFIG_KEYS[path]
    except KeyError:
        known = ", ".join(CONFIG_KEYS)
        raise ValueError(f"Unknown config key {path!r}. Known keys: {known}") from None


def _split_list(raw: str) -> list[str]:
    """Parse "a,b", "[a, b]" or "a" into a list; blank input gives []."""
    raw = raw.strip()
    if raw.startswith("[") and raw.endswith("]"):
        raw = raw[1:-1]
    items = (item.strip().strip("\"'") for item in raw.split(","))
    return [item for item in items if item]


def _parse(path: str, key: ConfigKey, raw: Any) -> Any:
    """Convert CLI input for path and check it against its ConfigKey."""
    value = raw
    if isinstance(raw, str):
        if raw.strip().lower() in ("none", "null"):
            value = None
        elif key.kind is list:
            value = _split_list(raw)
        elif key.kind is int:
            try:
                value = int(raw)
            except ValueError:
                raise ValueError(
                    f"Invalid value for {path}: expected an integer, got {raw!r}"
                ) from None

    if value is None:
        if not key.nullable:
            raise ValueError(f"None is not a valid value for {path}")
        return None

    if not isinstance(value, key.kind):
        raise ValueError(
            f"Invalid type for {path}: expected {key.kind.__name__}, "
            f"got {type(value).__name__}"
        )

    if key.choices:
        value = value.upper()
        if value not in key.choices:
            raise ValueError(
                f"Invalid value for {path}: {raw}. "
                f"Valid values are: {', '.join(key.choices)}"
            )
    return value


def _config_dir(base_dir: Path | None) -> Path:
    if base_dir is not None:
        return base_dir / ".config" / "kbcli-builder"
    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".config" / "kbcli-builder"


class Config:
    """Manages kbcli-builder configuration"""

    def __init__(self, base_dir: Path | None = None) -> None:
        """Load config.yaml, writing the defaults first if it doesn't exist.

        Args:
            base_dir: Home directory to use instead of the user's (for tests)

        Raises:
            ValueError: If the file exists but cannot be read
        """
        self.config_dir = _config_dir(base_dir)
        self.config_file = self.config_dir / "config.yaml"
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self._config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_file.exists():
            _merge(self._config, self._read())
        else:
            self._write()

    def _read(self) -> dict[str, Any]:
        try:
            loaded = yaml.safe_load(self.config_file.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as e:
            raise ValueError(f"Failed to load config: {e}") from e
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError(
                f"Failed to load config: {self.config_file} must hold a mapping"
            )
        return loaded

    def _write(self) -> None:
        try:
            self.config_file.write_text(
                yaml.safe_dump(self._config, default_flow_style=False, sort_keys=False),
                encoding="utf-8",
            )
        except (yaml.YAMLError, OSError) as e:
            raise ValueError(f"Failed to save config: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Value at a dotted path (or a whole section), else default."""
        try:
            return _lookup(self._config, key)
        except KeyError:
            return default

    def set(self, key: str, value: Any) -> None:
        """Validate and persist one key.

        Raises:
            ValueError: For unknown keys or values of the wrong type
        """
        _assign(self._config, key, _parse(key, _key_for(key), value))
        self._write()

    def unset(self, key: str) -> None:
        """Reset a key to its default."""
        _key_for(key)
        _assign(self._config, key, copy.deepcopy(_lookup(DEFAULT_CONFIG, key)))
        self._write()

    def get_all(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def kubeconfig_path(self) -> str | None:
        """Kubeconfig from configuration, falling back to $KUBECONFIG."""
        return self.get("core.kubeconfig") or os.environ.get("KUBECONFIG")
