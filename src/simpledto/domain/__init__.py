"""Domain layer: type expressions, declared properties and timestamps.

This layer depends only on stdlib and python-dateutil.
It must never import from core or config.
"""
