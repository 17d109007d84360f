#!/usr/bin/env python3
"""
Registry Rebuilder

Regenerates plugin_registry.json from the plugin.yaml manifest of every
repository it lists. Manifests are fetched through the GitHub contents API,
which bypasses the raw.githubusercontent.com CDN cache.

Usage:
    python scripts/update_registry.py
    python scripts/update_registry.py --registry path/to/plugin_registry.json
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
from src.plugin_registry.exceptions import ConfigError, ManifestConversionError  # noqa: E402
from src.plugin_registry.prerequisites import check_prerequisites  # noqa: E402

logger = get_logger("[Update Registry]")

REGISTRY_FILE = "plugin_registry.json"


class RebuildArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on bad arguments."""

    def error(self, message):
        print(f"Error: {message}", file=sys.stderr)
        print("Use --help for usage information", file=sys.stderr)
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = RebuildArgumentParser(description='Rebuild plugin_registry.json from plugin repositories')
    parser.add_argument('--registry', default=REGISTRY_FILE,
                        help=f'Registry file to rebuild (default: {REGISTRY_FILE})')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    print("Checking plugin repositories for updates...")

    try:
        check_prerequisites()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Imported after the pre-flight check; these pull in requests and PyYAML
    from src.plugin_registry.config import build_config
    from src.plugin_registry.github_client import GitHubReleaseClient
    from src.plugin_registry.rebuilder import ManifestRebuilder
    from src.plugin_registry.registry_store import RegistryStore

    registry_path = Path(args.registry)
    config = build_config()
    rebuilder = ManifestRebuilder(GitHubReleaseClient(config), RegistryStore(), config.manifest_path)

    try:
        result = rebuilder.rebuild(registry_path)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ManifestConversionError as e:
        print(f"Error: Failed to convert manifest: {e}", file=sys.stderr)
        for detail in e.details:
            print(f"   {detail}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted - registry left unchanged", file=sys.stderr)
        return 130

    logger.debug("Rebuild wrote %d plugins, skipped %d repositories", len(result.added), len(result.skipped))

    print()
    print("Registry updated successfully!")
    print(f"Updated: {registry_path}")
    print(f"Total plugins: {len(result.added)}")
    if result.skipped:
        print(f"Skipped repositories: {len(result.skipped)}")
        for repo_url in result.skipped:
            print(f"  - {repo_url}")
    print()
    print("Plugins in registry:")
    for record in result.added:
        print(f"  • {record.get('name')} v{record.get('version')}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
