"""
Pytest fixtures for the registry tools.
"""

import pytest
import sys
import json
from pathlib import Path
from typing import Any, Callable, Dict, List
from unittest.mock import MagicMock

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.plugin_registry.config import RegistryConfig  # noqa: E402
from src.plugin_registry.github_client import GitHubReleaseClient, NoReleases  # noqa: E402
from src.plugin_registry.registry_store import RegistryStore  # noqa: E402


@pytest.fixture
def sample_plugins() -> List[Dict[str, Any]]:
    """Registry entries covering the common shapes."""
    return [
        {
            'name': 'foo',
            'version': '1.0.0',
            'repository': 'https://github.com/x/y',
            'github_repo': 'x/y',
            'download_url': 'https://github.com/x/y/releases/download/v1.0.0/foo.so',
        },
        {
            'name': 'bar',
            'version': '2.0.0',
            'repository': 'https://github.com/acme/bar',
        },
    ]


@pytest.fixture
def write_registry(tmp_path: Path) -> Callable[..., Path]:
    """Write a registry document and return its path."""
    def _write(plugins: List[Dict[str, Any]], name: str = 'plugin_registry.json') -> Path:
        path = tmp_path / name
        path.write_text(json.dumps({'plugins': plugins}, indent=2) + "\n", encoding='utf-8')
        return path
    return _write


@pytest.fixture
def store() -> RegistryStore:
    return RegistryStore()


@pytest.fixture
def config() -> RegistryConfig:
    return RegistryConfig(api_base_url='https://api.github.test', github_token=None)


@pytest.fixture
def mock_client() -> Any:
    """Create a mock GitHubReleaseClient; downloads write a small file."""
    mock = MagicMock(spec=GitHubReleaseClient)
    mock.latest_release.return_value = NoReleases()
    mock.url_reachable.return_value = True
    mock.resolve_asset_url.return_value = None

    def mock_download(url: str, destination) -> Path:
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b'plugin-binary')
        return destination

    mock.download.side_effect = mock_download
    return mock


def _build_response(status_code: int = 200, json_data: Any = None, chunks: List[bytes] = None) -> Any:
    response = MagicMock()
    response.status_code = status_code
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    response.iter_content.return_value = iter(chunks or [])
    return response


@pytest.fixture
def make_response() -> Callable[..., Any]:
    """Factory for MagicMocks standing in for requests.Response."""
    return _build_response
