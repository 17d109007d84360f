"""
Pre-flight checks for workflows that need optional libraries.
"""

import importlib.util
from typing import Dict, Optional

from src.plugin_registry.exceptions import MissingPrerequisiteError

# import name -> distribution name on PyPI
REBUILD_PREREQUISITES = {
    'yaml': 'PyYAML',
    'jsonschema': 'jsonschema',
    'requests': 'requests',
}


def check_prerequisites(modules: Optional[Dict[str, str]] = None) -> None:
    """
    Verify that every required module can be imported.

    Raises:
        MissingPrerequisiteError: Naming the first missing distribution
    """
    for module, distribution in (modules or REBUILD_PREREQUISITES).items():
        if importlib.util.find_spec(module) is None:
            raise MissingPrerequisiteError(
                f"{distribution} is required but not installed (pip install {distribution})"
            )
