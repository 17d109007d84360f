"""
GitHub Release Client

Thin wrapper around the GitHub REST API used by the registry tools:
latest-release lookups, manifest fetches from the contents endpoint,
download URL probes and asset downloads.

Every call is a single blocking request. Nothing is retried; callers get
either a result, a release outcome variant, or one of the registry
exceptions.
"""

import base64
import binascii
import os
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Union
from urllib.parse import unquote, urlparse

import requests

from src.logging_config import get_logger
from src.plugin_registry.config import RegistryConfig
from src.plugin_registry.exceptions import DownloadFailedError, FetchFailedError

API_FAILURE_MESSAGE = "API request failed"

_NAME_RE = re.compile(r'^[A-Za-z0-9_.-]+$')


@dataclass(frozen=True)
class ReleaseAsset:
    filename: str
    download_url: str


@dataclass(frozen=True)
class ReleaseInfo:
    """Latest release of a repository; tag has any leading 'v' removed."""

    tag: str
    assets: List[ReleaseAsset] = field(default_factory=list)

    def find_asset(self, filename: str) -> Optional[ReleaseAsset]:
        for asset in self.assets:
            if asset.filename == filename:
                return asset
        return None


@dataclass(frozen=True)
class NoReleases:
    """The repository exists upstream but has published no release."""


@dataclass(frozen=True)
class ReleaseError:
    message: str


ReleaseResult = Union[ReleaseInfo, NoReleases, ReleaseError]


def extract_repo_path(value: Optional[str]) -> Optional[str]:
    """
    Extract "owner/repo" from the GitHub URL forms found in registries.

    Accepts bare "owner/repo", https and ssh URLs, trailing slashes, a
    ".git" suffix and deeper paths such as /tree/main/...

    Returns:
        "owner/repo", or None if the value is not a usable repository
    """
    if not value:
        return None
    value = str(value).strip()

    if 'github.com' in value:
        # https://github.com/owner/repo/... or git@github.com:owner/repo.git
        remainder = re.split(r'github\.com[/:]', value, maxsplit=1)
        if len(remainder) != 2:
            return None
        parts = [p for p in remainder[1].split('/') if p]
    else:
        parts = [p for p in value.strip('/').split('/') if p]
        if len(parts) != 2:
            return None

    if len(parts) < 2:
        return None
    owner, repo = parts[0], parts[1]
    if repo.endswith('.git'):
        repo = repo[:-4]
    if not (_NAME_RE.match(owner) and _NAME_RE.match(repo)):
        return None
    return f"{owner}/{repo}"


def asset_filename(url: str) -> str:
    """Return the file name component of a download URL."""
    path = urlparse(url).path
    return PurePosixPath(unquote(path)).name


class GitHubReleaseClient:
    """Queries GitHub for release metadata, manifests and assets."""

    def __init__(self, config: Optional[RegistryConfig] = None):
        """
        Initialize the client.

        Args:
            config: Registry settings; the token, when present, authenticates
                API calls
        """
        self.config = config or RegistryConfig()
        self.logger = get_logger(__name__)

    def _api_headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': self.config.user_agent,
        }
        if self.config.github_token:
            headers['Authorization'] = f'token {self.config.github_token}'
        return headers

    def _api_url(self, owner_repo: str, suffix: str) -> str:
        return f"{self.config.api_base_url.rstrip('/')}/repos/{owner_repo}/{suffix}"

    def latest_release(self, owner_repo: str) -> ReleaseResult:
        """
        Fetch the latest release of a repository.

        Args:
            owner_repo: Repository identifier ("owner/repo")

        Returns:
            ReleaseInfo, NoReleases when GitHub reports "Not Found", or
            ReleaseError carrying the API message
        """
        api_url = self._api_url(owner_repo, "releases/latest")
        try:
            response = requests.get(api_url, headers=self._api_headers(), timeout=self.config.request_timeout)
        except requests.RequestException as e:
            self.logger.warning("[GitHubClient] Release lookup failed for %s: %s", owner_repo, e)
            return ReleaseError(API_FAILURE_MESSAGE)

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get('message'):
            message = str(data['message'])
            if message == "Not Found":
                return NoReleases()
            self.logger.warning("[GitHubClient] GitHub API error for %s: %s", owner_repo, message)
            return ReleaseError(message)

        if response.status_code == 404:
            return NoReleases()

        if not 200 <= response.status_code < 300 or not isinstance(data, dict):
            self.logger.warning("[GitHubClient] Release lookup failed for %s: HTTP %s", owner_repo, response.status_code)
            return ReleaseError(API_FAILURE_MESSAGE)

        tag = data.get('tag_name')
        if not isinstance(tag, str) or not tag:
            return ReleaseError("Release has no tag_name")
        if tag.startswith('v'):
            tag = tag[1:]

        assets = []
        for asset in data.get('assets') or []:
            name = asset.get('name') if isinstance(asset, dict) else None
            url = asset.get('browser_download_url') if isinstance(asset, dict) else None
            if name and url:
                assets.append(ReleaseAsset(filename=name, download_url=url))

        self.logger.debug("[GitHubClient] %s latest release %s (%d assets)", owner_repo, tag, len(assets))
        return ReleaseInfo(tag=tag, assets=assets)

    def fetch_manifest(self, owner_repo: str, path: Optional[str] = None) -> bytes:
        """
        Fetch a file from the repository's default branch via the contents API.

        The contents API bypasses the raw.githubusercontent.com CDN cache, so a
        freshly pushed manifest is seen immediately.

        Args:
            owner_repo: Repository identifier ("owner/repo")
            path: File path inside the repository (default: plugin.yaml)

        Returns:
            Decoded file content

        Raises:
            FetchFailedError: HTTP failure, missing content or bad base64
        """
        path = path or self.config.manifest_path
        api_url = self._api_url(owner_repo, f"contents/{path}")
        try:
            response = requests.get(api_url, headers=self._api_headers(), timeout=self.config.request_timeout)
        except requests.RequestException as e:
            raise FetchFailedError(f"Could not fetch {path} from {owner_repo}: {e}") from e

        if response.status_code != 200:
            raise FetchFailedError(f"Could not fetch {path} from {owner_repo}: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise FetchFailedError(f"Invalid contents response for {owner_repo}/{path}") from e

        content = data.get('content') if isinstance(data, dict) else None
        if not content:
            raise FetchFailedError(f"No content returned for {owner_repo}/{path}")

        try:
            return base64.b64decode(content)
        except (binascii.Error, ValueError) as e:
            raise FetchFailedError(f"Failed to decode {path} from {owner_repo}: {e}") from e

    def resolve_asset_url(self, owner_repo: str, filename: str) -> Optional[str]:
        """
        Look up the download URL of a named asset in the latest release.

        Returns:
            The asset's browser_download_url, or None when there is no
            release or no asset with exactly that name
        """
        release = self.latest_release(owner_repo)
        if not isinstance(release, ReleaseInfo):
            return None
        asset = release.find_asset(filename)
        return asset.download_url if asset else None

    def url_reachable(self, url: str) -> bool:
        """Probe a download URL with a HEAD request; no content is read."""
        try:
            response = requests.head(
                url,
                headers={'User-Agent': self.config.user_agent},
                timeout=self.config.request_timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            self.logger.debug("[GitHubClient] HEAD failed for %s: %s", url, e)
            return False
        return response.status_code < 400

    def download(self, url: str, destination: Union[str, Path]) -> Path:
        """
        Download a URL to a file, following redirects.

        Args:
            url: Asset URL
            destination: Target file path; parent directories are created

        Returns:
            Path of the written file

        Raises:
            DownloadFailedError: Transfer did not complete
        """
        destination = Path(destination)
        self.logger.info("[GitHubClient] Downloading %s -> %s", url, destination)
        partial = destination.with_name(f".{destination.name}.part")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            # GitHub release asset URLs redirect to objects.githubusercontent.com
            response = requests.get(
                url,
                headers={'User-Agent': self.config.user_agent},
                timeout=self.config.download_timeout,
                stream=True,
                allow_redirects=True,
            )
            response.raise_for_status()
            with open(partial, 'wb') as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
            os.replace(partial, destination)
        except (requests.RequestException, OSError) as e:
            if partial.exists():
                partial.unlink()
            raise DownloadFailedError(f"Download failed for {url}: {e}") from e
        return destination
