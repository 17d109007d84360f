"""
Exception hierarchy for the plugin registry tools.
"""

from typing import List, Optional


class PluginRegistryError(Exception):
    """Base class for all registry tool errors."""


class ConfigError(PluginRegistryError):
    """Fatal setup problem; the run stops before any plugin is processed."""


class RegistryNotFoundError(ConfigError):
    """No registry file exists at any candidate location."""

    def __init__(self, searched: List[str]):
        self.searched = list(searched)
        super().__init__("No plugin registry found (searched: %s)" % ", ".join(self.searched))


class RegistryFormatError(ConfigError):
    """The registry file is not a valid registry document."""


class MissingPrerequisiteError(ConfigError):
    """A library required by a workflow is not installed."""


class FetchFailedError(PluginRegistryError):
    """A manifest could not be fetched or decoded."""


class DownloadFailedError(PluginRegistryError):
    """An asset download did not complete."""


class ManifestConversionError(PluginRegistryError):
    """A fetched manifest could not be converted into a plugin record."""

    def __init__(self, message: str, repository: Optional[str] = None, details: Optional[List[str]] = None):
        self.repository = repository
        self.details = details or []
        super().__init__(message)
