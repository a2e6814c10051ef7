"""Command line interface for copy generation.

Layout:
- core/: Shared utilities (types, console, configuration loading, AI progress)
- copy/: Copy generation, evaluation, styles and snapshot commands

Usage:
    copy-maker --help
    copy-maker generate brief.yaml --style steve-jobs
    copy-maker load --session 3f9c2a
"""

from .app import app, main

__all__ = ["app", "main"]
