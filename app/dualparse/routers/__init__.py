"""
Routers package for FastAPI endpoints.

Organized by domain:
- parse: Upload, dual extraction and session state
- exports: Viewer content and downloads of the current result
"""

from . import exports, parse

__all__ = ["exports", "parse"]
