"""
Update Reconciler

Walks the registry, compares every plugin's recorded version with the
latest GitHub release and decides what to do about it: nothing, report,
rewrite the registry version, and/or download the release asset.

Plugins are processed one at a time and independently; a failure for one
plugin is recorded in its report and the loop moves on. Registry changes
are applied to the in-memory document and written once, after the loop.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from src.logging_config import get_logger
from src.plugin_registry.exceptions import DownloadFailedError
from src.plugin_registry.github_client import (
    GitHubReleaseClient,
    NoReleases,
    ReleaseError,
    asset_filename,
    extract_repo_path,
)
from src.plugin_registry.registry_store import RegistryStore
from src.plugin_registry.versioning import UNKNOWN_VERSION, Ordering, compare


class PluginState(Enum):
    SKIPPED = "skipped"
    INVALID_REPO = "invalid_repo"
    NO_RELEASES = "no_releases"
    API_ERROR = "api_error"
    UP_TO_DATE = "up_to_date"
    UPDATE_RECOMMENDED = "update_recommended"
    UPDATE_AVAILABLE = "update_available"
    LOCAL_AHEAD = "local_ahead"


@dataclass
class ReconcileOptions:
    auto_download: bool = False
    update_registry: bool = False
    download_dir: Path = Path("./downloaded_updates")


@dataclass
class PluginReport:
    """Outcome of checking a single plugin."""

    name: str
    current_version: str
    state: PluginState = PluginState.SKIPPED
    repo_path: Optional[str] = None
    latest_version: Optional[str] = None
    error: Optional[str] = None
    registry_updated: bool = False
    download_url: Optional[str] = None
    download_url_reachable: Optional[bool] = None
    corrected_url: Optional[str] = None
    downloaded_path: Optional[Path] = None
    download_error: Optional[str] = None


@dataclass
class RunSummary:
    """Counters and per-plugin reports accumulated over one run."""

    total_plugins: int = 0
    checked_plugins: int = 0
    error_plugins: int = 0
    updated_plugins: int = 0
    updates_available: bool = False
    registry_dirty: bool = False
    backup_path: Optional[Path] = None
    reports: List[PluginReport] = field(default_factory=list)

    @property
    def downloaded_files(self) -> List[Path]:
        return [r.downloaded_path for r in self.reports if r.downloaded_path]


class UpdateReconciler:
    """Checks registry plugins against their latest GitHub releases."""

    def __init__(self, client: GitHubReleaseClient, store: RegistryStore, options: Optional[ReconcileOptions] = None):
        self.client = client
        self.store = store
        self.options = options or ReconcileOptions()
        self.logger = get_logger(__name__)

    def run(
        self,
        registry_path: Path,
        document: Dict[str, Any],
        on_report: Optional[Callable[[PluginReport], None]] = None,
    ) -> RunSummary:
        """
        Reconcile every plugin in the document, then persist changes.

        The registry is backed up and saved at most once, after all plugins
        have been processed and only if a version was rewritten.

        Args:
            registry_path: File the document was loaded from
            document: Loaded registry document; mutated in place
            on_report: Called with each plugin's report as soon as it is final

        Returns:
            RunSummary for the whole run
        """
        summary = RunSummary()
        for plugin in list(document.get('plugins', [])):
            summary = self.check_plugin(plugin, document, summary)
            if on_report:
                on_report(summary.reports[-1])

        if summary.registry_dirty:
            summary.backup_path = self.store.backup(registry_path)
            self.store.save(registry_path, document)

        self.logger.info(
            "[Reconciler] Run complete: %d total, %d checked, %d errors, %d updated",
            summary.total_plugins, summary.checked_plugins, summary.error_plugins, summary.updated_plugins,
        )
        return summary

    def check_plugin(self, plugin: Dict[str, Any], document: Dict[str, Any], summary: RunSummary) -> RunSummary:
        """Process one registry entry and fold its outcome into the summary."""
        summary.total_plugins += 1

        name = plugin.get('name') or ''
        current_version = plugin.get('version') or UNKNOWN_VERSION
        report = PluginReport(name=name, current_version=str(current_version))
        summary.reports.append(report)

        github_repo = plugin.get('github_repo')
        if not github_repo or github_repo == 'null':
            report.state = PluginState.SKIPPED
            self.logger.debug("[Reconciler] %s has no GitHub repository, skipping", name)
            return summary

        repo_path = extract_repo_path(github_repo)
        if repo_path is None:
            report.state = PluginState.INVALID_REPO
            report.error = f"Invalid GitHub repository URL: {github_repo}"
            summary.error_plugins += 1
            self.logger.warning("[Reconciler] %s: %s", name, report.error)
            return summary
        report.repo_path = repo_path

        release = self.client.latest_release(repo_path)
        summary.checked_plugins += 1

        if isinstance(release, NoReleases):
            report.state = PluginState.NO_RELEASES
            return summary
        if isinstance(release, ReleaseError):
            report.state = PluginState.API_ERROR
            report.error = release.message
            summary.error_plugins += 1
            return summary

        latest = release.tag
        report.latest_version = latest

        if report.current_version == UNKNOWN_VERSION:
            report.state = PluginState.UPDATE_RECOMMENDED
        else:
            # "1.2" and "1.2.0" are the same version
            ordering = compare(latest, report.current_version)
            if ordering is Ordering.EQUAL:
                report.state = PluginState.UP_TO_DATE
                return summary
            if ordering is Ordering.LESS:
                report.state = PluginState.LOCAL_AHEAD
                return summary
            report.state = PluginState.UPDATE_AVAILABLE

        summary.updates_available = True
        if self.options.update_registry:
            if self.store.update_version(document, name, latest):
                report.registry_updated = True
                summary.updated_plugins += 1
                summary.registry_dirty = True
                self.logger.info("[Reconciler] %s registry version %s -> %s", name, report.current_version, latest)

        self._handle_download(plugin, repo_path, report)
        return summary

    def _handle_download(self, plugin: Dict[str, Any], repo_path: str, report: PluginReport) -> None:
        download_url = plugin.get('download_url')
        if not download_url or download_url == 'null':
            return
        report.download_url = download_url
        filename = asset_filename(download_url)

        if self.client.url_reachable(download_url):
            report.download_url_reachable = True
            source_url = download_url
        else:
            report.download_url_reachable = False
            self.logger.info("[Reconciler] %s download URL not accessible: %s", report.name, download_url)
            report.corrected_url = self.client.resolve_asset_url(repo_path, filename)
            source_url = report.corrected_url

        if not source_url or not self.options.auto_download:
            return
        if not filename:
            report.download_error = f"Cannot derive a file name from {source_url}"
            return

        destination = Path(self.options.download_dir) / filename
        try:
            report.downloaded_path = self.client.download(source_url, destination)
        except DownloadFailedError as e:
            report.download_error = str(e)
            self.logger.error("[Reconciler] %s: %s", report.name, e)
