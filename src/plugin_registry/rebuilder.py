"""
Manifest Rebuilder

Regenerates plugin_registry.json from scratch: every repository listed in
the current registry is asked for its plugin.yaml, each manifest is
converted to a registry record, and the collected records replace the
registry wholesale.

A repository whose manifest cannot be fetched is skipped. A manifest that
cannot be converted stops the rebuild and leaves the registry untouched.
"""

import json
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from jsonschema import Draft7Validator

from src.logging_config import get_logger
from src.plugin_registry.exceptions import FetchFailedError, ManifestConversionError
from src.plugin_registry.github_client import GitHubReleaseClient, extract_repo_path
from src.plugin_registry.registry_store import RegistryStore

SCHEMA_PATH = Path(__file__).parent / "schema" / "manifest_schema.json"


@dataclass
class RebuildResult:
    registry_path: Path
    added: List[Dict[str, Any]] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def _distinct_sequence(values: Sequence[Optional[str]]) -> List[str]:
    """Return list preserving order while removing duplicates and falsey entries."""
    seen = set()
    ordered = []
    for value in values:
        if not value or value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


def _scalar_text(content: bytes, key: str) -> Optional[str]:
    """Source text of a top-level scalar value, before YAML type resolution."""
    node = yaml.compose(content, Loader=yaml.SafeLoader)
    if not isinstance(node, yaml.MappingNode):
        return None
    for key_node, value_node in node.value:
        if key_node.value == key and isinstance(value_node, yaml.ScalarNode):
            return value_node.value
    return None


def load_manifest_schema() -> Dict[str, Any]:
    with open(SCHEMA_PATH, 'r', encoding='utf-8') as f:
        schema = json.load(f)
    Draft7Validator.check_schema(schema)
    return schema


class ManifestRebuilder:
    """Rebuilds the registry from each repository's plugin.yaml."""

    def __init__(self, client: GitHubReleaseClient, store: RegistryStore, manifest_path: str = "plugin.yaml"):
        self.client = client
        self.store = store
        self.manifest_path = manifest_path
        self.logger = get_logger(__name__)
        self.validator = Draft7Validator(load_manifest_schema())

    @staticmethod
    def repositories(document: Dict[str, Any]) -> List[str]:
        """Repository URLs of the registry, in order, each listed once."""
        return _distinct_sequence([p.get('repository') for p in document.get('plugins', [])])

    def rebuild(self, registry_path: Path) -> RebuildResult:
        """
        Rebuild the registry at registry_path.

        Args:
            registry_path: Registry to read repositories from and overwrite

        Returns:
            RebuildResult with the records written and repositories skipped

        Raises:
            ManifestConversionError: A manifest could not be converted; the
                registry file is left as it was
        """
        registry_path = Path(registry_path)
        document = self.store.load(registry_path)
        result = RebuildResult(registry_path=registry_path)
        new_document: Dict[str, Any] = {'plugins': []}

        with tempfile.TemporaryDirectory(prefix='plugin-registry-') as work:
            work_dir = Path(work)
            for repo_url in self.repositories(document):
                record = self._process_repository(repo_url, work_dir, new_document)
                if record is None:
                    result.skipped.append(repo_url)
                    continue
                new_document['plugins'].append(record)
                result.added.append(record)
                self.logger.info("[Rebuilder] Added %s v%s", record.get('name'), record.get('version'))

        self.store.save(registry_path, new_document)
        return result

    def _process_repository(self, repo_url: str, work_dir: Path, new_document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        owner_repo = extract_repo_path(repo_url)
        if owner_repo is None:
            self.logger.warning("[Rebuilder] Not a GitHub repository, skipping: %s", repo_url)
            return None

        try:
            content = self.client.fetch_manifest(owner_repo, self.manifest_path)
        except FetchFailedError as e:
            self.logger.warning("[Rebuilder] Could not fetch %s, skipping: %s", self.manifest_path, e)
            return None

        staged = work_dir / f"{owner_repo.replace('/', '__')}.json"
        staged.write_text(json.dumps(self.convert_manifest(content, repo_url), indent=2), encoding='utf-8')
        with open(staged, 'r', encoding='utf-8') as f:
            record = json.load(f)

        names = [p.get('name') for p in new_document['plugins']]
        if record['name'] in names:
            raise ManifestConversionError(
                f"Duplicate plugin name '{record['name']}' in manifest from {repo_url}",
                repository=repo_url,
            )
        return record

    def convert_manifest(self, content: bytes, repo_url: str) -> Dict[str, Any]:
        """
        Convert plugin.yaml content into a registry record.

        Args:
            content: Raw manifest bytes
            repo_url: Repository the manifest came from; used as the record's
                "repository" when the manifest does not name one

        Returns:
            JSON-compatible plugin record

        Raises:
            ManifestConversionError: Invalid YAML or a manifest failing the schema
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ManifestConversionError(f"Failed to parse YAML from {repo_url}: {e}", repository=repo_url) from e

        if not isinstance(data, dict):
            raise ManifestConversionError(f"Manifest from {repo_url} is not a mapping", repository=repo_url)

        # YAML reads "version: 1.10" as the float 1.1; keep the text as written
        version = data.get('version')
        if isinstance(version, (int, float)) and not isinstance(version, bool):
            data['version'] = _scalar_text(content, 'version') or str(version)
        data.setdefault('repository', repo_url)

        # Dates and other YAML scalars become plain JSON values
        record = json.loads(json.dumps(data, default=str))

        errors = []
        for error in self.validator.iter_errors(record):
            error_path = '.'.join(str(p) for p in error.path)
            errors.append(f"{error_path}: {error.message}" if error_path else error.message)
        if errors:
            raise ManifestConversionError(
                f"Manifest from {repo_url} failed validation", repository=repo_url, details=errors
            )
        return record
