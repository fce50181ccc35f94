"""Credential loader for gh-secrets."""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

ENV_FILE_NAME = ".gh-secrets"
USERNAME_VAR = "GH_USERNAME"
TOKEN_VAR = "GH_PERSONAL_ACCESS_TOKEN"


class ConfigError(Exception):
    """Configuration error exception."""
    pass


@dataclass(frozen=True)
class Credentials:
    """Basic auth credentials for the GitHub API."""
    username: str
    token: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, token='***')"


def default_env_file() -> Path:
    """Dotfile holding the credentials: ~/.gh-secrets"""
    return Path.home() / ENV_FILE_NAME


def _read_env_file(env_file: Path) -> Dict[str, Optional[str]]:
    if not env_file.exists():
        logger.debug(f"Credentials file not found at {env_file}, using environment only")
        return {}

    if not env_file.is_file():
        raise ConfigError(f"Credentials path is not a file: {env_file}")

    logger.info(f"Loading credentials from {env_file}")
    return dotenv_values(env_file)


def load_credentials(env_file: Optional[Union[str, Path]] = None) -> Credentials:
    """
    Load GitHub credentials from the dotfile and the process environment.

    Priority order:
    1. Process environment variables
    2. Dotfile (~/.gh-secrets by default)

    Args:
        env_file: Path to the dotfile, defaults to ~/.gh-secrets

    Returns:
        Credentials built from GH_USERNAME and GH_PERSONAL_ACCESS_TOKEN

    Raises:
        ConfigError: If either variable is missing or empty
    """
    # Resolve the path on each call so a patched home directory is honored
    env_path = Path(env_file) if env_file else default_env_file()

    values = _read_env_file(env_path)
    for name in (USERNAME_VAR, TOKEN_VAR):
        env_value = os.getenv(name)
        if env_value:
            values[name] = env_value

    missing = [name for name in (USERNAME_VAR, TOKEN_VAR) if not values.get(name)]
    if missing:
        raise ConfigError(
            f"Missing credentials: {', '.join(missing)}\n"
            f"Set them in the environment or in {env_path}:\n"
            f"  {USERNAME_VAR}=your-github-username\n"
            f"  {TOKEN_VAR}=your-personal-access-token"
        )

    return Credentials(username=values[USERNAME_VAR], token=values[TOKEN_VAR])
