"""Adapters for storage backends and external book catalogs."""
