"""
Verisync core package.

Verifies that append-only session logs replicated across two hosts are
mutually consistent: identical, or one a strict prefix of the other.
"""

__version__ = "0.1.0"

__all__ = [
    "core",
    "executors",
    "schemas",
    "utils",
]
