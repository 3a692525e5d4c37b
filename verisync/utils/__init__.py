# verisync/utils/__init__.py
"""
The `utils` package provides the cross-cutting helpers used by verisync:
logging setup, configuration loading and the source registry.
"""
