"""
Plugin Registry

Keeps plugin_registry.json in sync with the plugins' GitHub repositories.

Modules are imported directly (e.g. src.plugin_registry.reconciler) so the
rebuild script can check its prerequisites before requests or PyYAML are
imported.
"""
