"""Bundled signature catalogs (YAML)."""
