"""Módulo de utilidades"""

from .cache import ScriptCache

__all__ = ["ScriptCache"]
