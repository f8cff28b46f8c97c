"""Saison 本地备份引擎"""

from .core import __version__

__all__ = ["__version__"]
