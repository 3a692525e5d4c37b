# verisync/core/__init__.py
"""
The `core` package holds the comparison pipeline: fetch raw manifests,
parse them, classify every path and render a report.
"""
from verisync.core.classifier import classify_pair, compare_manifests
from verisync.core.parser import parse_manifest
from verisync.core.reporter import render_json, render_report

__all__ = [
    "classify_pair",
    "compare_manifests",
    "parse_manifest",
    "render_json",
    "render_report",
]
