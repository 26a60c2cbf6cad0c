"""schema-describe - Normalized column descriptions from database catalogs."""

__version__ = "0.1.0"
