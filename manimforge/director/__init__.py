"""Reparación, indentación y ritmo de scripts Manim."""

from .repair import RepairEngine
from .indentation import IndentationNormalizer
from .pacing import DurationBalancer

__all__ = ["RepairEngine", "IndentationNormalizer", "DurationBalancer"]
