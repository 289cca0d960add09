"""Local dev server for the ADS-B radar front-end."""

__version__ = "1.0.0"
