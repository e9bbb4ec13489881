"""Módulo LLM para generación de scripts."""

from .openrouter import OpenRouterClient
from .validator import StructuralValidator, ValidationResult
from .generator import ConstrainedGenerator

__all__ = ["OpenRouterClient", "StructuralValidator", "ValidationResult", "ConstrainedGenerator"]
