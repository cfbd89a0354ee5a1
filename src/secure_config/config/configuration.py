"""Layered application configuration.

Configuration is a flat, case-insensitive key space where nested sections
are joined with ``:`` (``Logging:LogLevel:Default``). Sources are layered
in order, later sources overriding earlier ones:

    1. appsettings.yaml, then appsettings.{environment}.yaml
    2. .env file (loaded into the process environment)
    3. environment variables (``__`` is the section separator)
    4. command-line arguments
    5. Azure Key Vault (added by the host when configured)

Environment variables ARE supported inside YAML files using ${VAR_NAME}
and ${VAR_NAME:-default} syntax.
"""

import logging
import os
import re
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, TypeVar

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from secure_config.errors import ConfigurationError

logger = logging.getLogger(__name__)

KEY_DELIMITER = ":"
ENV_KEY_DELIMITER = "__"
DEFAULT_SETTINGS_FILE = "appsettings.yaml"
ENVIRONMENT_VARIABLE = "APP_ENVIRONMENT"
DEFAULT_ENVIRONMENT = "Production"

ModelT = TypeVar("ModelT", bound=BaseModel)
ChangeCallback = Callable[[str, Any], None]


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested dicts/lists into ``section:key`` pairs. List items are keyed by index."""
    flat: dict[str, Any] = {}

    def _walk(value: Any, path: str) -> None:
        if isinstance(value, Mapping):
            if not value and path:
                flat[path] = None
            for key, child in value.items():
                _walk(child, f"{path}{KEY_DELIMITER}{key}" if path else str(key))
        elif isinstance(value, (list, tuple)):
            for index, child in enumerate(value):
                _walk(child, f"{path}{KEY_DELIMITER}{index}")
        else:
            flat[path] = value

    _walk(data, prefix)
    return flat


def _unflatten(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    root: dict[str, Any] = {}
    for key, value in items:
        parts = key.split(KEY_DELIMITER)
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        if isinstance(node.get(parts[-1]), dict) and value is None:
            continue
        node[parts[-1]] = value
    return _lists_from_indexed(root)


def _lists_from_indexed(node: Any) -> Any:
    """Turn dicts keyed 0..n-1 back into lists."""
    if not isinstance(node, dict):
        return node
    converted = {key: _lists_from_indexed(value) for key, value in node.items()}
    if converted and all(key.isdigit() for key in converted):
        indexes = sorted(converted, key=int)
        if [int(i) for i in indexes] == list(range(len(indexes))):
            return [converted[i] for i in indexes]
    return converted


class Configuration:
    """
    Case-insensitive, ``:``-separated configuration key space.

    Usage:
        config = Configuration({"Logging": {"LogLevel": {"Default": "Information"}}})
        config["logging:loglevel:default"]    # 'Information'
        config.get_section("Logging")["LogLevel:Default"]
        setup = config.bind(InitialConfiguration, "InitialConfiguration")
    """

    def __init__(self, data: Mapping[str, Any] | None = None):
        # lower-cased key -> (original key, value)
        self._values: dict[str, tuple[str, Any]] = {}
        self._callbacks: list[ChangeCallback] = []
        if data:
            self.add(data)

    def add(self, data: Mapping[str, Any]) -> "Configuration":
        """Layer another source over the current values (later wins)."""
        for key, value in flatten(data).items():
            existing = self._values.get(key.lower())
            self._values[key.lower()] = (existing[0] if existing else key, value)
        return self

    def __getitem__(self, key: str) -> Any:
        entry = self._values.get(key.lower())
        return entry[1] if entry else None

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._values.get(key.lower())
        if entry is None or entry[1] is None:
            return default
        return entry[1]

    def set(self, key: str, value: Any) -> None:
        """Set a single value and notify change listeners."""
        existing = self._values.get(key.lower())
        self._values[key.lower()] = (existing[0] if existing else key, value)
        for callback in list(self._callbacks):
            try:
                callback(key, value)
            except Exception as e:
                logger.warning(
                    "Configuration change callback failed",
                    extra={"key": key, "error": str(e)},
                )

    def on_change(self, callback: ChangeCallback) -> None:
        """Register a callback invoked as ``callback(key, value)`` after every ``set``."""
        self._callbacks.append(callback)

    def keys(self) -> list[str]:
        return [original for original, _ in self._values.values()]

    def get_section(self, name: str) -> "Configuration":
        """Sub-configuration for keys under ``name:``, with the prefix removed."""
        prefix = f"{name.lower()}{KEY_DELIMITER}"
        section = Configuration()
        for lowered, (original, value) in self._values.items():
            if lowered.startswith(prefix):
                child_key = original[len(prefix):]
                section._values[child_key.lower()] = (child_key, value)
        return section

    def exists(self, name: str) -> bool:
        """True when a value or a section named ``name`` exists."""
        prefix = f"{name.lower()}{KEY_DELIMITER}"
        return name in self or any(key.startswith(prefix) for key in self._values)

    def as_dict(self) -> dict[str, Any]:
        """Nested dict view. Sections keyed 0..n-1 become lists."""
        return _unflatten(self._values.values())

    def bind(self, model: type[ModelT], section: str | None = None) -> ModelT:
        """
        Validate a section into a pydantic model.

        Raises:
            ConfigurationError: If the section fails validation
        """
        source = self.get_section(section) if section else self
        try:
            return model.model_validate(source.as_dict())
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration section '{section or '<root>'}' for {model.__name__}",
                cause=e,
                context={"section": section},
            ) from e

    def __repr__(self) -> str:
        return f"Configuration(keys={len(self._values)})"


def parse_command_line(args: Iterable[str] | None) -> dict[str, str]:
    """
    Parse ``--Key=Value``, ``--Key Value``, ``/Key=Value`` and ``Key=Value`` arguments.

    Arguments that match none of these forms are ignored.
    """
    values: dict[str, str] = {}
    pending: str | None = None
    for arg in args or []:
        if pending is not None:
            values[pending] = arg
            pending = None
            continue

        if arg.startswith("--"):
            body = arg[2:]
        elif arg.startswith("/"):
            body = arg[1:]
        else:
            body = arg
            if "=" not in body:
                continue

        if "=" in body:
            key, value = body.split("=", 1)
            values[key] = value
        elif arg.startswith(("--", "/")):
            pending = body
    return values


def environment_values(prefix: str | None = None, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment variables as configuration keys (``A__B`` -> ``A:B``), optionally filtered by prefix."""
    environ = os.environ if environ is None else environ
    values: dict[str, str] = {}
    for name, value in environ.items():
        if prefix:
            if not name.startswith(prefix):
                continue
            name = name[len(prefix):]
        values[name.replace(ENV_KEY_DELIMITER, KEY_DELIMITER)] = value
    return values


def load_configuration(
    base_path: Path | None = None,
    environment: str | None = None,
    args: Iterable[str] | None = None,
    env_prefix: str | None = None,
    dotenv_path: Path | None = None,
    include_environment: bool = True,
) -> Configuration:
    """Build the layered configuration for an application.

    Args:
        base_path: Directory holding appsettings files (default: cwd)
        environment: Environment name for appsettings.{environment}.yaml
            (default: $APP_ENVIRONMENT or "Production")
        args: Command-line arguments
        env_prefix: Only import environment variables with this prefix
        dotenv_path: .env file (default: {base_path}/.env)
        include_environment: Import environment variables as a source

    Raises:
        ConfigurationError: If a settings file is not valid YAML
    """
    base_path = base_path or Path.cwd()
    load_dotenv(dotenv_path or base_path / ".env")
    environment = environment or os.getenv(ENVIRONMENT_VARIABLE, DEFAULT_ENVIRONMENT)

    configuration = Configuration()
    for settings_file in (
        base_path / DEFAULT_SETTINGS_FILE,
        base_path / f"appsettings.{environment}.yaml",
    ):
        try:
            data = load_yaml(settings_file)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML config at {settings_file}", cause=e
            ) from e
        if data:
            logger.info(f"Loading configuration from file: {settings_file}")
            configuration.add(_expand_env_vars(data))

    if include_environment:
        configuration.add(environment_values(env_prefix))

    cli_values = parse_command_line(args)
    if cli_values:
        logger.debug(f"Applying command-line overrides: {list(cli_values.keys())}")
        configuration.add(cli_values)

    configuration.set("Environment", environment)
    logger.debug(
        "Configuration loaded",
        extra={"environment": environment, "keys_loaded": len(configuration)},
    )
    return configuration


__all__ = [
    "Configuration",
    "load_configuration",
    "load_yaml",
    "flatten",
    "parse_command_line",
    "environment_values",
    "KEY_DELIMITER",
    "DEFAULT_SETTINGS_FILE",
    "ENVIRONMENT_VARIABLE",
]
