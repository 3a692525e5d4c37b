# verisync/schemas/__init__.py
"""
The `schemas` package defines the Pydantic models used throughout verisync.

This includes source definitions, parsed manifests, comparison results and
environment settings. Manifest and comparison models are frozen: they are
built once per run and only read afterwards.
"""
