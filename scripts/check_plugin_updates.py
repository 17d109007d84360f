#!/usr/bin/env python3
"""
Plugin Update Checker

Compares every plugin in plugin_registry.json with the latest release of its
GitHub repository. Optionally downloads the updated release assets and
rewrites the registry versions.

Usage:
    python scripts/check_plugin_updates.py
    python scripts/check_plugin_updates.py --auto-download
    python scripts/check_plugin_updates.py --update-registry
    python scripts/check_plugin_updates.py --auto-download --update-registry
    python scripts/check_plugin_updates.py --auto-download --download-dir /tmp/plugins
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.logging_config import get_logger, setup_logging  # noqa: E402
from src.plugin_registry.config import build_config  # noqa: E402
from src.plugin_registry.exceptions import ConfigError  # noqa: E402
from src.plugin_registry.github_client import GitHubReleaseClient  # noqa: E402
from src.plugin_registry.reconciler import (  # noqa: E402
    PluginReport,
    PluginState,
    ReconcileOptions,
    RunSummary,
    UpdateReconciler,
)
from src.plugin_registry.registry_store import RegistryStore  # noqa: E402

logger = get_logger("[Update Check]")

SEPARATOR = "=" * 39

EPILOG = """examples:
  %(prog)s                                     # Check for updates only
  %(prog)s --auto-download                     # Check and download updates
  %(prog)s --update-registry                   # Check and update registry versions
  %(prog)s --auto-download --update-registry   # Download and update registry
  %(prog)s --auto-download --download-dir /tmp/plugins
"""


class CheckerArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on bad arguments."""

    def error(self, message):
        print(f"Error: {message}", file=sys.stderr)
        print("Use --help for usage information", file=sys.stderr)
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = CheckerArgumentParser(
        description='Check registry plugins for newer GitHub releases',
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--auto-download', action='store_true',
                        help='Automatically download available updates')
    parser.add_argument('--download-dir', default='./downloaded_updates',
                        help='Directory to download updates to (default: ./downloaded_updates)')
    parser.add_argument('--update-registry', action='store_true',
                        help='Update plugin_registry.json with latest versions')
    parser.add_argument('--registry', default=None,
                        help='Registry file to use instead of searching the default locations')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    return parser


def print_plugin_report(report: PluginReport) -> None:
    """Print the console block for one plugin."""
    print()
    print(f"Plugin: {report.name}")
    print(f"   Current version: {report.current_version}")

    if report.state is PluginState.SKIPPED:
        print("   No GitHub repository specified - skipping")
        return
    if report.state is PluginState.INVALID_REPO:
        print("   ERROR: Invalid GitHub repository URL")
        return

    print(f"   Repository: {report.repo_path}")

    if report.state is PluginState.NO_RELEASES:
        print("   No releases found")
        return
    if report.state is PluginState.API_ERROR:
        print(f"   ERROR: {report.error}")
        return

    print(f"   Latest version: {report.latest_version}")

    if report.state is PluginState.UP_TO_DATE:
        print("   Up to date")
        return
    if report.state is PluginState.LOCAL_AHEAD:
        print(f"   Local version ({report.current_version}) newer than latest release ({report.latest_version})")
        return

    if report.state is PluginState.UPDATE_RECOMMENDED:
        print("   Current version unknown - update recommended")
    else:
        print(f"   Update available: {report.current_version} -> {report.latest_version}")

    if report.registry_updated:
        print(f"   Registry version updated: {report.current_version} -> {report.latest_version}")

    if not report.download_url:
        print("   No download URL specified")
        return

    if report.download_url_reachable:
        print(f"   Download: {report.download_url}")
    else:
        print(f"   Download URL not accessible: {report.download_url}")
        if report.corrected_url:
            print(f"   Correct URL: {report.corrected_url}")

    if report.downloaded_path:
        print(f"   Downloaded: {report.downloaded_path}")
    elif report.download_error:
        print(f"   Download failed: {report.download_error}")


def print_summary(summary: RunSummary, options: ReconcileOptions) -> None:
    """Print the end-of-run summary and next steps."""
    print()
    print(SEPARATOR)
    print("Update Check Summary")
    print(f"   Total plugins: {summary.total_plugins}")
    print(f"   Checked: {summary.checked_plugins}")
    print(f"   Errors: {summary.error_plugins}")
    if options.update_registry:
        print(f"   Registry updates: {summary.updated_plugins}")

    if not summary.updates_available:
        print("   All plugins are up to date")
        if options.update_registry:
            print("   Registry versions are current")
        print()
        return

    print("   Updates available!")
    print()

    if summary.updated_plugins:
        print("Registry updated successfully!")
        print(f"   - {summary.updated_plugins} plugin version(s) updated in registry")
        print(f"   - Backup saved: {summary.backup_path}")
        print()
    elif options.update_registry:
        print("Registry was already up to date")
        print()

    if options.auto_download:
        print(f"Downloads saved to: {options.download_dir}")
        for path in summary.downloaded_files:
            print(f"   - {path}")
        print()
        print("Next steps:")
        print(f"   1. Review the downloaded files in {options.download_dir}")
        print("   2. Replace the old files in your plugins directory")
        print("   3. Restart the agent")
    else:
        print("To update plugins:")
        print("   1. Download the new files from the URLs above")
        print("   2. Replace the old files in your plugins directory")
        print("   3. Restart the agent")
        print()
        print("Automation options:")
        print("   check_plugin_updates.py --auto-download                    # Download updates")
        print("   check_plugin_updates.py --update-registry                  # Update registry versions")
        print("   check_plugin_updates.py --auto-download --update-registry  # Both")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    config = build_config(download_dir=args.download_dir)
    store = RegistryStore()

    print("Checking for plugin updates...")
    print(SEPARATOR)

    try:
        candidates = [args.registry] if args.registry else config.registry_locations
        registry_path = store.find_registry(candidates)
        document = store.load(registry_path)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Using registry: {registry_path}")
    logger.debug("Loaded %d plugins from %s", len(document["plugins"]), registry_path)

    options = ReconcileOptions(
        auto_download=args.auto_download,
        update_registry=args.update_registry,
        download_dir=Path(config.download_dir),
    )
    reconciler = UpdateReconciler(GitHubReleaseClient(config), store, options)

    try:
        summary = reconciler.run(registry_path, document, on_report=print_plugin_report)
    except KeyboardInterrupt:
        print("\nInterrupted - registry left unchanged", file=sys.stderr)
        return 130

    print_summary(summary, options)
    return 0


if __name__ == '__main__':
    sys.exit(main())
