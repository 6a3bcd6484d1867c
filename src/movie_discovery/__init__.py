"""Paginated, searchable movie catalog pipeline with offline fallback."""

__version__ = "0.1.0"

__all__ = ["__version__"]
