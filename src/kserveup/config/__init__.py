"""
kserveup configuration system.

Provides:
- Pydantic-based settings (environment variables, .env files)
- Typed deployment configuration records
- YAML config file lookup with command-line overrides
"""

from kserveup.config.deployment import (
    DeploymentConfig,
    ResourceRequirements,
    StorageConfig,
    with_detected_storage,
)
from kserveup.config.loader import (
    ConfigLoader,
    get_config_path,
    load_deployment_config,
    save_deployment_config,
)
from kserveup.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "DeploymentConfig",
    "StorageConfig",
    "ResourceRequirements",
    "with_detected_storage",
    "ConfigLoader",
    "get_config_path",
    "load_deployment_config",
    "save_deployment_config",
]
