"""
API package for imgcompare.

Provides Flask routes for scanning, cached matches and cache maintenance.
"""

from __future__ import annotations

from .routes import api

__all__ = ['api']
