"""
Registry Store

Reads and writes the plugin_registry.json document. Saves go through a
temporary file in the target directory and an atomic rename, so a reader
never sees a half-written registry.
"""

import json
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from src.logging_config import get_logger
from src.plugin_registry.exceptions import RegistryFormatError, RegistryNotFoundError

PathLike = Union[str, Path]

BACKUP_TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class RegistryStore:
    """Load, update, back up and save a registry document."""

    def __init__(self):
        self.logger = get_logger(__name__)

    @staticmethod
    def find_registry(candidates: Sequence[PathLike]) -> Path:
        """
        Return the first candidate location that holds a file.

        Args:
            candidates: Registry locations in search order

        Returns:
            Path of the registry to use

        Raises:
            RegistryNotFoundError: None of the candidates exists
        """
        for candidate in candidates:
            path = Path(candidate)
            if path.is_file():
                return path
        raise RegistryNotFoundError([str(c) for c in candidates])

    def load(self, path: PathLike) -> Dict[str, Any]:
        """
        Load a registry document.

        Raises:
            RegistryNotFoundError: The file does not exist
            RegistryFormatError: The file is not a {"plugins": [...]} document
        """
        path = Path(path)
        if not path.is_file():
            raise RegistryNotFoundError([str(path)])

        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise RegistryFormatError(f"Could not parse {path}: {e}") from e

        if not isinstance(document, dict):
            raise RegistryFormatError(f"{path} must contain a JSON object")
        plugins = document.get('plugins')
        if not isinstance(plugins, list):
            raise RegistryFormatError(f"{path} has no 'plugins' list")
        for index, plugin in enumerate(plugins):
            if not isinstance(plugin, dict):
                raise RegistryFormatError(f"{path}: plugins[{index}] is not an object")

        self.logger.debug("[RegistryStore] Loaded %d plugins from %s", len(plugins), path)
        return document

    @staticmethod
    def serialize(document: Dict[str, Any]) -> str:
        """Render a document exactly as save() writes it."""
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"

    def save(self, path: PathLike, document: Dict[str, Any]) -> None:
        """
        Write the document over path atomically.

        Key order is kept as loaded, so an unchanged document saves
        byte-for-byte identical output.
        """
        path = Path(path)
        directory = path.parent if str(path.parent) else Path('.')
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=str(directory))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(self.serialize(document))
            # mkstemp creates 0600; keep the registry's own mode
            if path.exists():
                shutil.copymode(path, tmp_name)
            else:
                os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise

        self.logger.info("[RegistryStore] Saved %d plugins to %s", len(document.get('plugins', [])), path)

    def backup(self, path: PathLike, now: Optional[datetime] = None) -> Path:
        """
        Copy the registry next to itself with a timestamp suffix.

        Returns:
            Path of the backup copy (<path>.backup.YYYYMMDD_HHMMSS)
        """
        path = Path(path)
        stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
        backup_path = path.with_name(f"{path.name}.backup.{stamp}")
        shutil.copy2(path, backup_path)
        self.logger.info("[RegistryStore] Registry backup created: %s", backup_path)
        return backup_path

    @staticmethod
    def update_version(document: Dict[str, Any], name: str, version: str) -> int:
        """
        Set the version of every plugin whose name matches exactly.

        Returns:
            Number of records whose version changed
        """
        changed = 0
        for plugin in document.get('plugins', []):
            if plugin.get('name') == name and plugin.get('version') != version:
                plugin['version'] = version
                changed += 1
        return changed
