"""Service configuration.

Settings come from the environment (and an optional ``.env`` file) through
pydantic-settings. A YAML file can be layered underneath with ``load_settings``,
which ``get_settings`` does when ``MARKETPLACE_CONFIG`` names one; explicit
environment variables still take precedence over the file.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from marketplace.core.entities import Visibility


class Settings(BaseSettings):
    # App
    app_name: str = "Business Marketplace"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./marketplace.db"

    # Identity provider session tokens
    identity_jwt_secret: str = "dev-identity-secret-change-in-production"
    identity_jwt_algorithm: str = "HS256"
    identity_jwt_audience: Optional[str] = None
    identity_cookie_name: str = "sb-access-token"

    # Identity provider admin API (role changes)
    identity_admin_url: Optional[str] = None
    identity_service_key: Optional[str] = None
    identity_admin_timeout: float = Field(10.0, gt=0)

    # Workflow policy
    nda_validity_days: int = Field(90, ge=1)
    nda_auto_approve_owner: bool = True
    default_file_visibility: Visibility = Visibility.PUBLIC

    # Pagination
    default_page_size: int = Field(10, ge=1)
    max_page_size: int = Field(100, ge=1)

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


CONFIG_PATH_ENV = "MARKETPLACE_CONFIG"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, layered over the YAML file named by ``MARKETPLACE_CONFIG`` if set."""
    config_path = os.environ.get(CONFIG_PATH_ENV)
    if config_path:
        return load_settings(config_path)
    return Settings()


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load a YAML configuration file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary with environment variables expanded

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_settings(config_path: str) -> Settings:
    """Build settings from a YAML file, letting the environment override it."""
    file_values = load_config_file(config_path)
    env_overrides = Settings().model_dump(exclude_unset=True)
    return Settings(**{**file_values, **env_overrides})
