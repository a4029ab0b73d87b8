from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, TypeVar

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from honey_ledger.utils.config_errors import (
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    MissingEnvironmentVariableError,
)
from honey_ledger.utils.settings_base import BaseSettings

T = TypeVar("T", bound=BaseSettings)

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigLoader:
    """
    Reads layered YAML settings for the ledger.

    Files live in ``<root>/config``. The base file is, in order of precedence,
    the explicit ``cli_config_path``, the file named by ``config_env_var``, or
    ``default.yaml``. When ``env`` is given, ``<env>.yaml`` is merged on top.

    ``${VAR}`` placeholders are filled from a ``.env`` file (config dir first,
    then the root) and then from the process environment.
    """

    def __init__(self, service_root: str | Path | None = None, config_dir: str = "config"):
        self.service_root = Path(service_root).resolve() if service_root else Path.cwd().resolve()
        directory = Path(config_dir)
        if not directory.is_absolute():
            directory = self.service_root / directory
        self.config_dir = directory.resolve()

    def load(
        self,
        *,
        schema: type[T],
        env: str | None = None,
        cli_config_path: str | None = None,
        config_env_var: str | None = None,
        use_dotenv: bool = True,
    ) -> T:
        if not self.config_dir.exists():
            raise ConfigFileNotFoundError(f"Config directory not found: {self.config_dir}")

        base_path = self._base_path(cli_config_path, config_env_var)
        data = self._read_yaml(base_path)

        if env:
            layer = self.config_dir / f"{env}.yaml"
            if layer.exists():
                data = _merge(data, self._read_yaml(layer))

        variables = self._dotenv_variables() if use_dotenv else {}
        data = _substitute(data, variables, "root")

        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid settings in '{base_path}'. {e}") from e

    def _base_path(self, cli_config_path: str | None, config_env_var: str | None) -> Path:
        if cli_config_path:
            path = Path(cli_config_path).expanduser()
            if not path.is_absolute():
                path = self.service_root / path
            path = path.resolve()
            if not path.exists():
                raise ConfigFileNotFoundError(f"--config file not found: {path}")
            return path

        from_env = os.getenv(config_env_var) if config_env_var else None
        if from_env:
            path = Path(from_env).expanduser().resolve()
            if not path.exists():
                raise ConfigFileNotFoundError(f"{config_env_var} points to missing file: {path}")
            return path

        path = self.config_dir / "default.yaml"
        if not path.exists():
            raise ConfigFileNotFoundError(f"Default config not found: {path}")
        return path

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigFileNotFoundError(f"Cannot read config file: {path}. {e}") from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigParseError(f"Top-level YAML must be a mapping: {path}")
        return data

    def _dotenv_variables(self) -> dict[str, str]:
        for candidate in (self.config_dir / ".env", self.service_root / ".env"):
            if candidate.exists():
                return {k: v for k, v in dotenv_values(candidate).items() if v is not None}
        return {}


def _merge(base: Any, override: Any) -> Any:
    # mappings merge key by key; lists and scalars are replaced
    if isinstance(base, dict) and isinstance(override, dict):
        merged = dict(base)
        for key, value in override.items():
            merged[key] = _merge(merged[key], value) if key in merged else value
        return merged
    return override


def _substitute(node: Any, variables: dict[str, str], key_path: str) -> Any:
    if isinstance(node, dict):
        return {k: _substitute(v, variables, f"{key_path}.{k}") for k, v in node.items()}
    if isinstance(node, list):
        return [_substitute(v, variables, f"{key_path}[{i}]") for i, v in enumerate(node)]
    if not isinstance(node, str):
        return node

    def lookup(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        if name in os.environ:
            return os.environ[name]
        raise MissingEnvironmentVariableError(name, key_path)

    return _PLACEHOLDER.sub(lookup, node)
