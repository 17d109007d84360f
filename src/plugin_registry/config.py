"""
Runtime configuration for the registry tools.

Defaults mirror the layout the tools expect when run from a registry
checkout: the registry sits in the working directory, optional secrets
live in config/config_secrets.json.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from src.logging_config import get_logger

logger = get_logger(__name__)

REGISTRY_LOCATIONS = [
    "plugin_registry.json",                             # Current directory
    "../dolphin-plugin-registry/plugin_registry.json",  # Sibling registry checkout
    "local_plugin_registry.json",                       # Local agent registry
]

TOKEN_PLACEHOLDER = "YOUR_GITHUB_PERSONAL_ACCESS_TOKEN"


@dataclass
class RegistryConfig:
    """Settings shared by the update-check and rebuild workflows."""

    registry_locations: List[str] = field(default_factory=lambda: list(REGISTRY_LOCATIONS))
    download_dir: str = "./downloaded_updates"
    api_base_url: str = "https://api.github.com"
    user_agent: str = "Plugin-Registry-Sync/1.0"
    request_timeout: int = 10
    download_timeout: int = 60
    manifest_path: str = "plugin.yaml"
    github_token: Optional[str] = None


def load_github_token(config_dir: Optional[Path] = None) -> Optional[str]:
    """
    Load a GitHub API token from config_secrets.json or the environment.

    Args:
        config_dir: Directory holding config_secrets.json (default: ./config)

    Returns:
        GitHub token or None if not configured
    """
    config_path = Path(config_dir or "config") / "config_secrets.json"
    try:
        if config_path.exists():
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
            token = (config.get('github', {}).get('api_token') or '').strip()
            if token and token != TOKEN_PLACEHOLDER:
                return token
    except (OSError, ValueError, AttributeError) as e:
        logger.debug("[Config] Could not load GitHub token from %s: %s", config_path, e)

    token = os.environ.get('GITHUB_TOKEN', '').strip()
    return token or None


def build_config(download_dir: Optional[str] = None, config_dir: Optional[Path] = None) -> RegistryConfig:
    """Build a RegistryConfig with the token resolved and CLI overrides applied."""
    config = RegistryConfig(github_token=load_github_token(config_dir))
    if download_dir:
        config.download_dir = download_dir
    return config
