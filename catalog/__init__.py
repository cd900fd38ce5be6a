"""
Catalog Module

Static coding challenges, loaded once and never mutated.
"""

__version__ = "0.1.0"

from .catalog import ChallengeCatalog, ChallengeNotFound, DEFAULT_CATALOG_PATH, load_catalog

__all__ = [
    "ChallengeCatalog",
    "ChallengeNotFound",
    "DEFAULT_CATALOG_PATH",
    "load_catalog",
]
