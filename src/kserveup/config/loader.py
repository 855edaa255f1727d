"""
Deployment configuration file loading and merging.

Search order:
1. Explicit path (--config flag)
2. .kserveup/deploy.yaml (project root)
3. ~/.kserveup/deploy.yaml (user home)

Command-line overrides are applied on top of the file, and credential
references (``access_key_env`` / ``secret_key_env``) are resolved from the
environment here so downstream components never read ambient state.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml

from kserveup.config.deployment import DeploymentConfig
from kserveup.config.settings import Settings, get_settings
from kserveup.core.errors import ConfigurationError

logger = structlog.get_logger()

CONFIG_DIR = ".kserveup"
CONFIG_FILE = "deploy.yaml"


def get_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """
    Find the deployment configuration file to use.

    Returns:
        Path to config file or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigurationError(
            f"Config file not found: {path}", details={"stage": "config"}
        )

    cwd_config = Path.cwd() / CONFIG_DIR / CONFIG_FILE
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / CONFIG_DIR / CONFIG_FILE
    if home_config.exists():
        return home_config

    return None


class ConfigLoader:
    """
    Loads a deployment config and merges overrides and settings defaults.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        settings: Settings | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.config_path = config_path
        self.settings = settings or get_settings()
        self.environ = os.environ if environ is None else environ

    def load(self, overrides: dict[str, Any] | None = None) -> DeploymentConfig:
        data = self._read_file() if self.config_path else {}
        data.setdefault("namespace", self.settings.namespace)
        poll = data["poll"] = dict(data.get("poll") or {})
        poll.setdefault("interval", self.settings.poll_interval)
        poll.setdefault("deadline", self.settings.poll_deadline)

        for key, value in (overrides or {}).items():
            if value is None:
                continue
            if key in ("interval", "deadline"):
                poll[key] = value
            elif key == "storage_overrides":
                data["storage"] = {**(data.get("storage") or {}), **value}
            else:
                data[key] = value

        config = DeploymentConfig.from_dict(data)
        self._resolve_credentials(config)
        return config

    def _read_file(self) -> dict[str, Any]:
        assert self.config_path is not None
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.config_path}: {e}", details={"stage": "config"}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {self.config_path} must contain a mapping",
                details={"stage": "config"},
            )

        logger.debug("loaded_config", path=str(self.config_path))
        # Accept both a bare mapping and one nested under "deployment:"
        return dict(data.get("deployment", data))

    def _resolve_credentials(self, config: DeploymentConfig) -> None:
        storage = config.storage
        if not storage.access_key and storage.access_key_env:
            storage.access_key = self._from_env(storage.access_key_env)
        if not storage.secret_key and storage.secret_key_env:
            storage.secret_key = self._from_env(storage.secret_key_env)

    def _from_env(self, name: str) -> str:
        value = self.environ.get(name)
        if not value:
            raise ConfigurationError(
                f"Credential environment variable {name} is not set",
                details={"stage": "config", "variable": name},
            )
        return value


def load_deployment_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    settings: Settings | None = None,
    environ: Mapping[str, str] | None = None,
) -> DeploymentConfig:
    """
    Convenience function to load a deployment configuration.

    Args:
        path: Optional explicit config file path
        overrides: Values from the command line; ``None`` entries are ignored
        settings: Settings providing defaults (namespace, poll timings)
        environ: Environment used to resolve credential references

    Returns:
        DeploymentConfig instance
    """
    loader = ConfigLoader(get_config_path(path), settings=settings, environ=environ)
    return loader.load(overrides)


def save_deployment_config(config: DeploymentConfig, path: str | Path) -> Path:
    """Write a config back out, omitting inline credentials."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w") as f:
        yaml.safe_dump({"deployment": config.to_dict()}, f, default_flow_style=False, sort_keys=False)
    logger.info("saved_config", path=str(target))
    return target
